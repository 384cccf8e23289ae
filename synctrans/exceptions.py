"""Custom Exceptions for the SyncTrans application."""

class SyncTransError(Exception):
    """Base class for exceptions in this module."""
    pass

class ConfigurationError(SyncTransError):
    """Exception raised for errors in configuration loading or a missing API key."""
    pass

class ValidationError(SyncTransError):
    """Exception raised when user input is missing or unusable. Never a pipeline failure."""
    pass

class SessionBusyError(SyncTransError):
    """Exception raised when a generation is requested while another one is running."""
    pass

class TranscriptionError(SyncTransError):
    """Exception raised for errors during transcription."""
    pass

class TranslationError(SyncTransError):
    """Exception raised for errors during translation."""
    pass

class FormatError(SyncTransError):
    """Exception raised when the model response does not match the transcript schema."""
    pass

class ExportError(SyncTransError):
    """Exception raised for errors while writing PDF or text exports."""
    pass

class FileSystemError(SyncTransError):
    """Exception raised for file system related errors (permissions, not found etc)."""
    pass
