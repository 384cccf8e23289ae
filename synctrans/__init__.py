"""SyncTrans: timestamped transcripts from audio or text, translated by a hosted model."""

__version__ = "0.1.0"
