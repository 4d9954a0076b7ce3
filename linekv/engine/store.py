"""
KeyValueStore - Put/Get/Delete over a LineStore.
"""

import logging

from linekv.interfaces.database import Database
from linekv.models.line_store import LineStore
from linekv.models.record import Record

logger = logging.getLogger(__name__)


class KeyValueStore(Database):
    """
    File-backed key-value store.

    Every operation scans the backing file for the key, then (for
    mutations) rewrites the file at the line index that scan reported.
    The scan and the rewrite are not isolated from each other, so callers
    must serialize all operations on one store.
    """

    def __init__(self, file_path: str, sync_writes: bool = True) -> None:
        """
        Open (or create) the backing file.

        Args:
            file_path: Path to the backing file.
            sync_writes: If True, fsync the file after every mutation.
        """
        if not file_path or not file_path.strip():
            raise ValueError("file_path cannot be empty")

        self._lines = LineStore(file_path, sync_writes=sync_writes)
        self._lines.open()

    @property
    def file_path(self) -> str:
        return self._lines.file_path

    def put(self, key: str, value: str) -> bool:
        # Encoding first rejects unrepresentable records before any I/O
        record = Record(key=key, value=value)
        lookup = self._lines.find(key)
        self._lines.write(lookup.line_index, record)
        return lookup.found

    def get(self, key: str) -> tuple[str, bool]:
        lookup = self._lines.find(key)
        return lookup.value, lookup.found

    def delete(self, key: str) -> bool:
        lookup = self._lines.find(key)
        if not lookup.found:
            return False

        self._lines.erase(lookup.line_index)
        return True

    def __len__(self) -> int:
        return self._lines.line_count()

    def items(self) -> list[tuple[str, str]]:
        """Return all key-value pairs in file order."""
        return [(record.key, record.value) for record in self._lines]

    def close(self) -> None:
        logger.debug(f"Closing store {self.file_path}")
        self._lines.close()
