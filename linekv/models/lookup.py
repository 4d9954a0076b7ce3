"""
Lookup and LookupStatus for reporting the outcome of a key scan.
"""

from dataclasses import dataclass
from enum import IntEnum


class LookupStatus(IntEnum):
    """Outcome of scanning the backing file for a key."""

    FOUND = 0
    NOT_FOUND = 1


@dataclass(frozen=True)
class Lookup:
    """
    Result of LineStore.find.

    Attributes:
        value: The stored value ("" when not found).
        line_index: Line holding the key when found, otherwise the number
            of lines scanned, which is the position an append would take.
        status: Whether the key was found.

    Absence is an ordinary result; corrupt lines and I/O failures are
    raised as exceptions instead.
    """

    value: str
    line_index: int
    status: LookupStatus = LookupStatus.FOUND

    @classmethod
    def found_at(cls, value: str, line_index: int) -> "Lookup":
        return cls(value=value, line_index=line_index, status=LookupStatus.FOUND)

    @classmethod
    def missing(cls, line_count: int) -> "Lookup":
        return cls(value="", line_index=line_count, status=LookupStatus.NOT_FOUND)

    @property
    def found(self) -> bool:
        return self.status == LookupStatus.FOUND
