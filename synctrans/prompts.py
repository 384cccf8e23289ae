"""Builds the instructions and response schema sent to the generative model."""

import logging
from typing import Union

from .exceptions import ValidationError
from .languages import LanguageOption, PromptVariant
from .models import AudioInput, PromptSpec, TextInput, Transcript

logger = logging.getLogger(__name__)

# Uppercase type names match google.genai.types.Type values.
TRANSCRIPT_SCHEMA = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "timestamp": {
                "type": "STRING",
                "description": "Timestamp of the segment, in the format requested by the instructions.",
            },
            "text": {
                "type": "STRING",
                "description": "The text spoken during this timestamp.",
            },
        },
        "required": ["timestamp", "text"],
    },
}

TIMESTAMP_RULE = "Preserve timestamps exactly, translate text only."

_AUDIO_TRANSCRIPTION_PROMPT = """
You are an expert audio transcriber.
Transcribe the attached audio file into a detailed, timestamped transcript.
- Break the speech into sentence-level segments.
- Give every segment a timestamp range in the MM:SS-MM:SS format, measured from the start of the audio (for example 00:00-00:05).
- Segments must be in chronological order and must not overlap.
- Transcribe in the language that is spoken; do not translate.
- Ensure the output is a valid JSON array matching the provided schema.
""".strip()

_TEXT_TRANSCRIPTION_PROMPT = """
You are an expert audio transcriber. Your task is to take a block of text and format it into a detailed transcript with plausible timestamps.
Process the following text and convert it into a transcript format.
- Assign timestamps in the MM:SS.mmm format, starting from 00:00.000.
- Distribute the timestamps logically, assuming a natural speaking pace where each sentence or clause takes a few seconds.
- Every timestamp must be later than the previous one.
- Break down long sentences into smaller, timestamped segments.
- Ensure the output is a valid JSON array matching the provided schema.

Here is the text:
---
{text}
---
""".strip()

_TRANSLATION_HEADER = """
You are an expert multilingual translator specializing in conversational, code-mixed languages.
Translate the following transcript into {language}.
- {timestamp_rule}
- Return exactly one item per transcript line, in the same order. Do not merge, split or drop lines.
""".strip()

_STANDARD_RULES = """
- Translate the text into natural {language}.
""".strip()

_PHONETIC_RULES = """
- Write {pairing} phonetically using the Latin (English) alphabet. Do not use the native {pairing} script.
- Keep common English loanwords and technical terms in English, untranslated.
- Keep the tone conversational and informal, the way people actually talk.
""".strip()

_NATIVE_SCRIPT_RULES = """
- Produce a fluent, natural translation written entirely in the native script of {language}.
""".strip()

_TRANSLATION_FOOTER = """
- Ensure the output is a valid JSON array matching the provided schema.

Original Transcript:
---
{transcript}
---
""".strip()


def serialize_transcript(items: Transcript) -> str:
    """Renders a transcript as one "[timestamp] text" line per item."""
    return "\n".join(item.to_line() for item in items)


def build_transcription_prompt(source: Union[AudioInput, TextInput]) -> PromptSpec:
    """
    Builds the transcription request for audio or pasted text.

    For text input there is no real timing to measure, so the model is asked to
    synthesize increasing timestamps at a plausible speaking pace. Such
    results are flagged with ``synthetic_timing=True``.

    Raises:
        ValidationError: If the input is empty or of an unknown kind.
    """
    if isinstance(source, AudioInput):
        if not source.data:
            raise ValidationError("Please select an audio file")
        logger.debug(f"Building audio transcription prompt ({source.mime_type}, {len(source.data)} bytes)")
        return PromptSpec(
            instruction=_AUDIO_TRANSCRIPTION_PROMPT,
            schema=TRANSCRIPT_SCHEMA,
            attachment=source,
            metadata={"operation": "transcribe", "mode": "audio"},
        )
    if isinstance(source, TextInput):
        text = (source.text or "").strip()
        if not text:
            raise ValidationError("Please enter some text to generate a transcript.")
        logger.debug(f"Building text transcription prompt ({len(text)} chars)")
        return PromptSpec(
            instruction=_TEXT_TRANSCRIPTION_PROMPT.format(text=text),
            schema=TRANSCRIPT_SCHEMA,
            synthetic_timing=True,
            metadata={"operation": "transcribe", "mode": "text"},
        )
    raise ValidationError(f"Unsupported input type: {type(source).__name__}")


def build_translation_prompt(items: Transcript, language: LanguageOption) -> PromptSpec:
    """
    Builds the translation request for a transcript.

    The instruction variant follows ``language.variant``. All variants carry
    the timestamp preservation rule and embed the transcript verbatim.

    Raises:
        ValidationError: If there is nothing to translate.
    """
    if not items:
        raise ValidationError("Cannot translate an empty transcript.")

    if language.variant is PromptVariant.PHONETIC:
        rules = _PHONETIC_RULES.format(pairing=language.pairing or language.name)
    elif language.variant is PromptVariant.NATIVE_SCRIPT:
        rules = _NATIVE_SCRIPT_RULES.format(language=language.name)
    else:
        rules = _STANDARD_RULES.format(language=language.name)

    sections = [
        _TRANSLATION_HEADER.format(language=language.name, timestamp_rule=TIMESTAMP_RULE),
        rules,
    ]
    if language.example:
        sections.append(f'- Example of the expected style: "[{items[0].timestamp}] {language.example}"')
    sections.append(_TRANSLATION_FOOTER.format(transcript=serialize_transcript(items)))

    return PromptSpec(
        instruction="\n".join(sections),
        schema=TRANSCRIPT_SCHEMA,
        metadata={"operation": "translate", "language": language.id, "variant": language.variant.value},
    )
