"""Utility functions for SyncTrans."""

import os
import re
import logging
from typing import Optional
from .exceptions import FileSystemError

logger = logging.getLogger(__name__)

_TIMESTAMP_START_RE = re.compile(r"^\s*(?:(\d+):)?(\d{1,3}):(\d{2})(?:[.,](\d{1,3}))?")

def ensure_dir_exists(dir_path: str) -> None:
    """
    Ensures that a directory exists. Creates it if it doesn't.

    Args:
        dir_path: The path to the directory.

    Raises:
        FileSystemError: If the directory cannot be created due to permissions
                         or if the path exists but is not a directory.
    """
    if not dir_path:
        raise ValueError("Directory path cannot be empty.")
    try:
        if not os.path.exists(dir_path):
            os.makedirs(dir_path)
            logger.info(f"Created directory: {dir_path}")
        elif not os.path.isdir(dir_path):
            raise FileSystemError(f"Path exists but is not a directory: {dir_path}")
    except OSError as e:
        logger.error(f"Error creating or accessing directory {dir_path}: {e}", exc_info=True)
        raise FileSystemError(f"Could not create or access directory {dir_path}: {e}") from e

def timestamp_start_seconds(timestamp: str) -> Optional[float]:
    """
    Reads the start of a transcript timestamp as seconds.

    Accepts both range ("01:05-01:09") and point ("01:05.250") forms, with an
    optional leading hours field. Returns None when the string is not
    recognisable; the model owns the format, so callers must tolerate that.
    """
    match = _TIMESTAMP_START_RE.match(timestamp or "")
    if not match:
        return None
    hours, minutes, seconds, fraction = match.groups()
    total = int(hours or 0) * 3600 + int(minutes) * 60 + int(seconds)
    if fraction:
        total += int(fraction.ljust(3, "0")) / 1000.0
    return float(total)

def sanitize_identifier(value: str) -> str:
    """Strips everything outside [A-Za-z0-9_] and lowercases, for use in filenames."""
    return re.sub(r"[^A-Za-z0-9_]", "", value or "").lower()
