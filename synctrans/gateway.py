"""The only boundary to the hosted generative model."""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Union

import pydantic
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from google import genai
from google.genai import types

from .exceptions import FormatError, TranscriptionError, TranslationError
from .languages import LanguageOption
from .models import AudioInput, PromptSpec, TextInput, Transcript, TranscriptItem
from .prompts import build_transcription_prompt, build_translation_prompt

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_TIMEOUT_SECONDS = 60.0


class TranscriptSegment(BaseModel):
    """One element of the JSON array the model answers with."""
    model_config = ConfigDict(strict=True, str_strip_whitespace=True)

    timestamp: str = Field(min_length=1)
    text: str = Field(min_length=1)


_SEGMENTS = TypeAdapter(List[TranscriptSegment])


def _describe(error: pydantic.ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first["loc"]) or "response"
    return f"{error.error_count()} problem(s), first at {location}: {first['msg']}"


def parse_transcript_payload(raw: Optional[str]) -> Transcript:
    """
    Parses a model response and checks it against the transcript schema.

    Args:
        raw: The response text, expected to be a JSON array of
             {"timestamp": str, "text": str} objects.

    Returns:
        The transcript items, in response order.

    Raises:
        FormatError: If the payload is not JSON, is not a non-empty array, or any
                     element lacks a non-empty string timestamp or text.
    """
    if not raw or not raw.strip():
        raise FormatError("The model returned an empty response.")
    try:
        segments = _SEGMENTS.validate_json(raw)
    except pydantic.ValidationError as e:
        raise FormatError(f"The model response does not match the transcript schema: {_describe(e)}") from e
    if not segments:
        raise FormatError("The model returned no transcript segments.")
    return [TranscriptItem(timestamp=segment.timestamp, text=segment.text) for segment in segments]


class ModelGateway(ABC):
    """
    Transcription and translation as a capability.

    Subclasses only know how to send a PromptSpec and hand back the raw
    response text; prompt construction, schema validation and error mapping
    live here so every provider behaves the same way.
    """

    @abstractmethod
    def _generate(self, prompt: PromptSpec) -> str:
        """
        Sends one request to the model.

        Args:
            prompt: Instruction, response schema and optional audio attachment.

        Returns:
            The raw response text.

        Raises:
            Exception: Any provider, transport or timeout failure.
        """
        pass

    def transcribe(self, source: Union[AudioInput, TextInput]) -> Transcript:
        """
        Produces a timestamped transcript from audio or pasted text.

        Raises:
            ValidationError: If the input is empty (no request is made).
            TranscriptionError: If the request fails or the response does not
                                match the schema (the FormatError is the cause).
        """
        prompt = build_transcription_prompt(source)
        logger.info(f"Requesting transcript ({prompt.metadata.get('mode')} input)")
        try:
            raw = self._generate(prompt)
        except Exception as e:
            logger.error(f"Transcription request failed: {e}", exc_info=True)
            raise TranscriptionError(str(e) or type(e).__name__) from e

        try:
            items = parse_transcript_payload(raw)
        except FormatError as e:
            logger.error(f"Transcription response rejected: {e}")
            raise TranscriptionError(f"The model returned an invalid format. {e}") from e

        logger.info(f"Transcript received with {len(items)} segments.")
        return items

    def translate(self, items: Transcript, language: LanguageOption) -> Transcript:
        """
        Translates the text of each item, leaving timestamps to the model to copy.

        The number and order of returned items is not reconciled against the
        input. Mismatches are logged and the model's answer is returned as is.

        Raises:
            ValidationError: If ``items`` is empty (no request is made).
            TranslationError: If the request fails or the response does not match the schema.
        """
        prompt = build_translation_prompt(items, language)
        logger.info(f"Requesting translation of {len(items)} segments into {language.name}")
        try:
            raw = self._generate(prompt)
        except Exception as e:
            logger.error(f"Translation request to {language.name} failed: {e}", exc_info=True)
            raise TranslationError(str(e) or type(e).__name__) from e

        try:
            translated = parse_transcript_payload(raw)
        except FormatError as e:
            logger.error(f"Translation response rejected: {e}")
            raise TranslationError(f"The model returned an invalid format. {e}") from e

        if len(translated) != len(items):
            logger.warning(
                f"Translation returned {len(translated)} segments for {len(items)} source segments."
            )
        elif any(src.timestamp != out.timestamp for src, out in zip(items, translated)):
            logger.warning("Translation changed one or more timestamps.")
        return translated


class GeminiGateway(ModelGateway):
    """Implements the gateway with the Google Gen AI SDK."""

    def __init__(
        self,
        api_key: str,
        model_name: str = DEFAULT_MODEL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        client: Optional[genai.Client] = None,
    ):
        """
        Initializes the GeminiGateway.

        Args:
            api_key: The Gemini API key.
            model_name: Model used for both operations.
            timeout_seconds: Upper bound for each request; a hung call fails
                             instead of blocking the session.
            client: Pre-built client, mainly for tests.
        """
        self.model_name = model_name
        self.timeout_seconds = timeout_seconds
        if client is None:
            client = genai.Client(
                api_key=api_key,
                http_options=types.HttpOptions(timeout=int(timeout_seconds * 1000)),
            )
        self.client = client
        logger.info(f"Initialized GeminiGateway with model '{self.model_name}' (timeout: {self.timeout_seconds}s)")

    def _build_contents(self, prompt: PromptSpec) -> list:
        contents: list = []
        if prompt.attachment is not None:
            contents.append(
                types.Part.from_bytes(data=prompt.attachment.data, mime_type=prompt.attachment.mime_type)
            )
        contents.append(prompt.instruction)
        return contents

    def _generate(self, prompt: PromptSpec) -> str:
        response = self.client.models.generate_content(
            model=self.model_name,
            contents=self._build_contents(prompt),
            config=types.GenerateContentConfig(
                response_mime_type="application/json",
                response_schema=prompt.schema,
            ),
        )
        logger.debug(f"Raw model response: {(response.text or '')[:200]!r}")
        return response.text
