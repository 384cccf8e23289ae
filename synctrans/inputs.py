"""Reads audio files and text files into pipeline inputs."""

import logging
import mimetypes
import os
from typing import Optional

from .exceptions import FileSystemError, ValidationError
from .models import AudioInput, TextInput

logger = logging.getLogger(__name__)

AUDIO_EXTENSIONS = (".mp3", ".wav", ".m4a", ".aac", ".ogg", ".oga", ".flac", ".webm", ".aiff", ".aif")

# Media types the model accepts; the stdlib table is the fallback.
_AUDIO_TYPES = {
    ".wav": "audio/wav",
    ".mp3": "audio/mp3",
    ".aiff": "audio/aiff",
    ".aif": "audio/aiff",
    ".m4a": "audio/mp4",
    ".aac": "audio/aac",
    ".flac": "audio/flac",
    ".ogg": "audio/ogg",
    ".oga": "audio/ogg",
    ".webm": "audio/webm",
}

def guess_audio_mime_type(path: str) -> Optional[str]:
    """Returns the declared media type for an audio file name, or None if it is not audio."""
    ext = os.path.splitext(path)[1].lower()
    mime_type = _AUDIO_TYPES.get(ext)
    if mime_type is None:
        mime_type, _ = mimetypes.guess_type(path)
    if mime_type and mime_type.startswith("audio/"):
        return mime_type
    return None

def load_audio_input(path: Optional[str], max_audio_mb: float = 20) -> AudioInput:
    """
    Reads an audio file after checking its declared type and size.

    The content itself is never decoded here.

    Args:
        path: Path to the audio file.
        max_audio_mb: Largest accepted file, in megabytes.

    Raises:
        ValidationError: If no path is given, the file is missing, not audio, or too large.
        FileSystemError: If the file cannot be read.
    """
    if not path:
        raise ValidationError("Please select an audio file")
    if not os.path.isfile(path):
        raise ValidationError(f"Audio file not found: {path}")

    mime_type = guess_audio_mime_type(path)
    if mime_type is None:
        raise ValidationError("Please select a valid audio file.")

    size = os.path.getsize(path)
    if size == 0:
        raise ValidationError(f"Audio file is empty: {path}")
    if size > max_audio_mb * 1024 * 1024:
        raise ValidationError(f"Audio file is too large ({size / (1024 * 1024):.1f} MB, limit {max_audio_mb} MB).")

    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as e:
        logger.error(f"Could not read audio file {path}: {e}", exc_info=True)
        raise FileSystemError(f"Could not read audio file {path}: {e}") from e

    logger.info(f"Loaded audio {path} ({mime_type}, {size} bytes)")
    return AudioInput(data=data, mime_type=mime_type, filename=os.path.basename(path))

def load_text_input(path: str) -> TextInput:
    """Reads a UTF-8 text file to be turned into a transcript."""
    if not os.path.isfile(path):
        raise ValidationError(f"Text file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            return TextInput(text=f.read())
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Could not read text file {path}: {e}", exc_info=True)
        raise FileSystemError(f"Could not read text file {path}: {e}") from e
