"""Data models for SyncTrans."""

from dataclasses import dataclass, field
from typing import List, Optional

@dataclass
class TranscriptItem:
    """A single timestamped span of text."""
    timestamp: str # "MM:SS-MM:SS" for audio, "MM:SS.mmm" for text
    text: str

    def to_line(self) -> str:
        return f"[{self.timestamp}] {self.text}"

Transcript = List[TranscriptItem]

@dataclass
class AudioInput:
    """Raw audio bytes plus the media type declared by the caller."""
    data: bytes
    mime_type: str
    filename: Optional[str] = None

@dataclass
class TextInput:
    """A block of pasted text to be turned into a transcript."""
    text: str

@dataclass
class PromptSpec:
    """Everything sent to the model for one operation."""
    instruction: str
    schema: dict
    attachment: Optional[AudioInput] = None
    synthetic_timing: bool = False # True when timestamps are guessed, not measured
    metadata: dict = field(default_factory=dict)
