"""Orchestrates the two-stage transcript and translation pipeline."""

import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Union

from .exceptions import SessionBusyError, TranscriptionError, TranslationError, ValidationError
from .gateway import ModelGateway
from .languages import LanguageOption
from .models import AudioInput, TextInput, Transcript
from .utils import timestamp_start_seconds

logger = logging.getLogger(__name__)

Source = Union[AudioInput, TextInput]

class Stage(Enum):
    IDLE = "idle"
    TRANSCRIBING = "transcribing"
    TRANSLATING = "translating"
    DONE = "done"
    ERRORED = "errored"

@dataclass
class SessionState:
    """Everything one user session can see. Owned and written by a single WorkflowController."""
    stage: Stage = Stage.IDLE
    source: Optional[Transcript] = None
    translation: Optional[Transcript] = None
    error: Optional[str] = None
    language: Optional[LanguageOption] = None
    source_name: Optional[str] = None # audio filename, None for pasted text
    synthetic_timing: bool = False

    def reset(self) -> None:
        self.stage = Stage.IDLE
        self.source = None
        self.translation = None
        self.error = None
        self.language = None
        self.source_name = None
        self.synthetic_timing = False

    @property
    def is_busy(self) -> bool:
        return self.stage in (Stage.TRANSCRIBING, Stage.TRANSLATING)

    @property
    def can_export(self) -> bool:
        return bool(self.source) and bool(self.translation)


def check_ordering(items: Transcript, label: str) -> bool:
    """Logs a warning if start times are not ascending. Returns True when ordered."""
    previous = None
    for index, item in enumerate(items):
        start = timestamp_start_seconds(item.timestamp)
        if start is None:
            logger.warning(f"{label}: unrecognised timestamp '{item.timestamp}' at segment {index + 1}")
            return False
        if previous is not None and start < previous:
            logger.warning(f"{label}: segment {index + 1} starts before segment {index}")
            return False
        previous = start
    return True


class WorkflowController:
    """
    Runs generate-then-translate for one session, and re-translation of an
    existing transcript.

    Stages move Idle -> Transcribing -> Translating -> Done, with Errored
    reachable from either active stage. A failed translation keeps the source
    transcript. Only one generation may run at a time; a second request is
    rejected, not queued.
    """

    def __init__(
        self,
        gateway: ModelGateway,
        state: Optional[SessionState] = None,
        on_change: Optional[Callable[[SessionState], None]] = None,
    ):
        """
        Initializes the WorkflowController.

        Args:
            gateway: The model gateway used for both stages.
            state: Session record to drive. A fresh one is created if omitted.
            on_change: Called with the state after every stage transition.
        """
        self.gateway = gateway
        self.state = state if state is not None else SessionState()
        self.on_change = on_change
        self._lock = threading.Lock()

    @property
    def can_export(self) -> bool:
        return self.state.can_export

    def _transition(self, stage: Stage) -> None:
        logger.debug(f"Stage {self.state.stage.value} -> {stage.value}")
        self.state.stage = stage
        if self.on_change:
            self.on_change(self.state)

    def _validate(self, source: Optional[Source], language: Optional[LanguageOption]) -> None:
        if source is None:
            raise ValidationError("Please select an audio file")
        if not isinstance(source, (AudioInput, TextInput)):
            raise ValidationError(f"Unsupported input type: {type(source).__name__}")
        if isinstance(source, AudioInput) and not source.data:
            raise ValidationError("Please select an audio file")
        if isinstance(source, TextInput) and not (source.text or "").strip():
            raise ValidationError("Please enter some text to generate a transcript.")
        if language is None:
            raise ValidationError("Please select a language")

    def _acquire(self) -> None:
        if not self._lock.acquire(blocking=False):
            raise SessionBusyError("A transcript is already being generated. Please wait for it to finish.")

    def _fail(self, message: str, unexpected: bool = False) -> SessionState:
        self.state.error = message
        logger.error(message, exc_info=unexpected)
        self._transition(Stage.ERRORED)
        return self.state

    def _translate_stage(self, language: LanguageOption, start_time: float) -> SessionState:
        try:
            translation = self.gateway.translate(self.state.source, language)
        except TranslationError as e:
            return self._fail(f"Failed to translate to {language.name}: {e}. Please try again.")
        except Exception as e:
            return self._fail(f"Failed to translate to {language.name}: {e}. Please try again.", unexpected=True)

        self.state.translation = translation
        self._transition(Stage.DONE)
        logger.info(f"Translation to {language.name} completed in {time.time() - start_time:.2f} seconds")
        return self.state

    def generate(self, source: Optional[Source], language: Optional[LanguageOption]) -> SessionState:
        """
        Executes transcription followed by translation.

        Args:
            source: Audio or pasted text.
            language: The translation target.

        Returns:
            The session state, in stage DONE or ERRORED.

        Raises:
            ValidationError: If input or language is missing. State is left untouched.
            SessionBusyError: If a generation is already running for this session.
        """
        self._validate(source, language)
        self._acquire()

        try:
            start_time = time.time()
            self.state.reset()
            self.state.language = language
            if isinstance(source, AudioInput):
                self.state.source_name = source.filename
            self._transition(Stage.TRANSCRIBING)

            # 1. Transcribe
            try:
                transcript = self.gateway.transcribe(source)
            except TranscriptionError as e:
                return self._fail(f"Failed to generate transcript: {e}. Please try again.")
            except Exception as e:
                return self._fail(f"Failed to generate transcript: {e}. Please try again.", unexpected=True)

            self.state.source = transcript
            self.state.synthetic_timing = isinstance(source, TextInput)
            check_ordering(transcript, "Source transcript")
            self._transition(Stage.TRANSLATING)

            # 2. Translate
            return self._translate_stage(language, start_time)
        finally:
            self._lock.release()

    def translate(self, language: Optional[LanguageOption]) -> SessionState:
        """
        Translates the session's existing transcript into another language.

        The source transcript, its name and timing flag are kept; only the
        previous translation and error are cleared.

        Raises:
            ValidationError: If there is no transcript yet or no language. State is left untouched.
            SessionBusyError: If a generation is already running for this session.
        """
        if not self.state.source:
            raise ValidationError("Please generate a transcript first.")
        if language is None:
            raise ValidationError("Please select a language")
        self._acquire()

        try:
            start_time = time.time()
            self.state.translation = None
            self.state.error = None
            self.state.language = language
            self._transition(Stage.TRANSLATING)
            return self._translate_stage(language, start_time)
        finally:
            self._lock.release()
