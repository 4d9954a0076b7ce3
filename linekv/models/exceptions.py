"""
Custom exceptions for the storage engine.
"""


class StoreError(Exception):
    """Base class for every error raised by the storage engine."""


class DecodeError(StoreError):
    """
    Raised when a stored line cannot be parsed into a record.

    This is a fail-fast error: a corrupt line is never skipped or repaired.
    """

    def __init__(self, reason: str, line: bytes = b"", line_index: int | None = None):
        """
        Initialize decode error.

        Args:
            reason: Human readable description of the failure.
            line: The raw line that failed to decode.
            line_index: 0-based position of the line in the backing file, if known.
        """
        self.reason = reason
        self.line = line
        self.line_index = line_index
        location = f" at line {line_index}" if line_index is not None else ""
        super().__init__(f"Cannot decode record{location}: {reason} ({line[:64]!r})")

    def at_line(self, line_index: int) -> "DecodeError":
        """Return a copy of this error annotated with the line position."""
        return type(self)(self.reason, self.line, line_index)


class InvalidLengthError(DecodeError):
    """The key length prefix is missing or is not a non-negative integer."""


class KeyLengthError(DecodeError):
    """The key length prefix exceeds the bytes remaining on the line."""


class InvalidEncodingError(DecodeError):
    """The key or value bytes are not valid UTF-8."""


class InvalidRecordError(StoreError, ValueError):
    """Raised when a key or value cannot be represented in the line format."""


class StorageIOError(StoreError):
    """
    Raised when reading, truncating or writing the backing file fails.

    The original OSError is chained as ``__cause__``.
    """

    def __init__(self, operation: str, file_path: str):
        self.operation = operation
        self.file_path = file_path
        super().__init__(f"Failed to {operation} backing file {file_path}")
