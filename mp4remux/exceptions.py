# mp4remux/exceptions.py
"""
Custom exceptions for ffmpeg and batch orchestration errors in the MP4 remux tool.
"""


class RemuxError(Exception):
    """Base exception for remux related errors"""
    def __init__(self, message, command=None, output=None, error_type=None):
        self.message = message
        self.command = command
        self.output = output
        self.error_type = error_type
        super().__init__(self.message)


# --- Tool errors (pause the whole batch) ---

class ProbeError(RemuxError):
    """The availability probe itself could not run (no process could be spawned)."""


class InstallError(RemuxError):
    """Automatic ffmpeg installation failed."""


# --- Item errors (recorded on one file, batch continues) ---

class ConversionError(RemuxError):
    """Remuxing a single file failed. ``message`` holds ffmpeg's diagnostic text."""


class NamingError(ConversionError):
    """No free output name was found within the attempt limit."""


class ToolMissingError(ConversionError):
    """ffmpeg disappeared after the availability probe passed."""


class OutputExistsError(ConversionError):
    """The chosen output path was taken by another writer before ffmpeg ran."""


# --- State machine misuse ---

class BatchActiveError(RemuxError): pass
class InvalidStateError(RemuxError): pass
class InvalidTransitionError(RemuxError): pass
