"""
Record dataclass and its line encoding.
"""

from dataclasses import dataclass, field

from linekv.models.exceptions import (
    InvalidEncodingError,
    InvalidLengthError,
    InvalidRecordError,
    KeyLengthError,
)

LINE_BREAK = b"\n"
SEPARATOR = b" "


@dataclass(frozen=True)
class Record:
    """
    A single key-value pair as stored on one line of the backing file.

    Attributes:
        key: The record key.
        value: The record value.

    Line format: ``<len(key)> <key><value>``

    The length prefix counts UTF-8 bytes of the key and is the only thing
    separating the key from the value, so both may contain spaces.
    """

    key: str
    value: str
    _cached_bytes: bytes = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        """Validate and cache the encoded line."""
        key_bytes = self.key.encode("utf-8")
        value_bytes = self.value.encode("utf-8")

        if LINE_BREAK in key_bytes:
            raise InvalidRecordError(f"Key cannot contain a line break: {self.key!r}")
        if LINE_BREAK in value_bytes:
            raise InvalidRecordError(f"Value cannot contain a line break: {self.value!r}")

        object.__setattr__(
            self,
            "_cached_bytes",
            str(len(key_bytes)).encode("ascii") + SEPARATOR + key_bytes + value_bytes,
        )

    def __bytes__(self) -> bytes:
        """Serialize to a line (without the trailing line break)."""
        return self._cached_bytes

    @classmethod
    def from_bytes(cls, line: bytes) -> "Record":
        """
        Deserialize a line.

        Raises:
            InvalidLengthError: If the length prefix is missing or malformed.
            KeyLengthError: If the line is shorter than the declared key.
            InvalidEncodingError: If key or value is not valid UTF-8.
        """
        separator = line.find(SEPARATOR)
        if separator < 0:
            raise InvalidLengthError("missing key length separator", line)

        prefix = line[:separator]
        # bytes.isdigit() only accepts ASCII digits, so signs and
        # whitespace are rejected here rather than by int()
        if not prefix.isdigit():
            raise InvalidLengthError(f"invalid key length {prefix!r}", line)

        key_length = int(prefix)
        key_start = separator + 1
        key_end = key_start + key_length
        if key_end > len(line):
            raise KeyLengthError(
                f"key length {key_length} exceeds {len(line) - key_start} remaining bytes",
                line,
            )

        try:
            key = line[key_start:key_end].decode("utf-8")
            value = line[key_end:].decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidEncodingError(str(e), line) from e

        return cls(key=key, value=value)

    def size_bytes(self) -> int:
        return len(self._cached_bytes)
