"""Catalog of target languages and the prompt variant each one uses."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from .exceptions import ValidationError

logger = logging.getLogger(__name__)

class PromptVariant(Enum):
    STANDARD = "standard"
    PHONETIC = "phonetic"
    NATIVE_SCRIPT = "native_script"

@dataclass(frozen=True)
class LanguageOption:
    """
    One selectable translation target.

    Attributes:
        id: Stable identifier, also used for filenames when there is no audio file.
        name: Human readable label shown in the CLI.
        variant: Which family of translation instructions applies.
        example: A sample output line showing the expected register and script.
        pairing: For code-mixed variants, the regional language mixed with English.
        needs_tamil_font: Whether exports must embed a Tamil-capable font.
    """
    id: str
    name: str
    variant: PromptVariant = PromptVariant.STANDARD
    example: Optional[str] = None
    pairing: Optional[str] = None
    needs_tamil_font: bool = False

_STANDARD = [
    "English", "Spanish", "French", "German", "Portuguese", "Italian", "Japanese",
    "Korean", "Mandarin Chinese", "Arabic", "Hindi", "Malayalam", "Bengali",
]

SUPPORTED_LANGUAGES: List[LanguageOption] = [
    LanguageOption(id=name, name=name) for name in _STANDARD
] + [
    LanguageOption(
        id="Hinglish",
        name="Hinglish",
        variant=PromptVariant.PHONETIC,
        pairing="Hindi",
        example="Aaj ki meeting bahut important hai, so sab log focus karo.",
    ),
    LanguageOption(
        id="Manglish",
        name="Manglish",
        variant=PromptVariant.PHONETIC,
        pairing="Malayalam",
        example="Innathe meeting valare important aanu, so ellarum focus cheyyanam.",
    ),
    LanguageOption(
        id="Conversational Tamil",
        name="Conversational Tamil (Tanglish)",
        variant=PromptVariant.PHONETIC,
        pairing="Tamil",
        example="Indha meeting romba important, so ellarum konjam focus pannunga.",
    ),
    LanguageOption(
        id="Tamil (Script)",
        name="Tamil (Script)",
        variant=PromptVariant.NATIVE_SCRIPT,
        example="இன்றைய கூட்டம் மிகவும் முக்கியமானது, எனவே அனைவரும் கவனம் செலுத்துங்கள்.",
        needs_tamil_font=True,
    ),
]

def get_language(language_id: Optional[str]) -> LanguageOption:
    """
    Looks up a catalog entry by id or display name, ignoring case.

    Raises:
        ValidationError: If nothing was selected or the selection is unknown.
    """
    if not language_id or not language_id.strip():
        raise ValidationError("Please select a language")
    wanted = language_id.strip().lower()
    for option in SUPPORTED_LANGUAGES:
        if wanted in (option.id.lower(), option.name.lower()):
            return option
    logger.debug(f"Unknown language requested: {language_id!r}")
    raise ValidationError(f"Unsupported language: {language_id}")
