"""
Data models for the storage engine.
"""

from linekv.models.exceptions import (
    DecodeError,
    InvalidEncodingError,
    InvalidLengthError,
    InvalidRecordError,
    KeyLengthError,
    StorageIOError,
    StoreError,
)
from linekv.models.line_store import LineStore
from linekv.models.lookup import Lookup, LookupStatus
from linekv.models.record import Record

__all__ = [
    "Record",
    "Lookup",
    "LookupStatus",
    "LineStore",
    "StoreError",
    "DecodeError",
    "InvalidLengthError",
    "KeyLengthError",
    "InvalidEncodingError",
    "InvalidRecordError",
    "StorageIOError",
]
