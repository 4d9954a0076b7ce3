"""
LineStore - Flat-file storage of one encoded record per line.
"""

import logging
import os
from collections.abc import Iterator
from pathlib import Path
from typing import BinaryIO

from linekv.models.exceptions import DecodeError, StorageIOError
from linekv.models.lookup import Lookup
from linekv.models.record import LINE_BREAK, Record

logger = logging.getLogger(__name__)


class LineStore:
    """
    Flat-file storage of one encoded record per line.

    Every mutation is a full read-modify-write of the backing file: the
    content is loaded, split into lines, edited, and written back from the
    start after truncating. Lines are addressed by their current position,
    which is only valid until the next mutation.

    Not synchronized. Callers must serialize access.
    """

    def __init__(self, file_path: str, sync_writes: bool = True) -> None:
        """
        Initialize the line store.

        Args:
            file_path: Path to the backing file.
            sync_writes: If True, fsync the file after every rewrite.
        """
        self.file_path = file_path
        self._sync_writes = sync_writes
        self._file: BinaryIO | None = None

    def open(self) -> None:
        """Open the backing file for reading and writing, creating it if absent."""
        if self._file is not None:
            return
        try:
            Path(self.file_path).parent.mkdir(parents=True, exist_ok=True)
            Path(self.file_path).touch(exist_ok=True)
            self._file = open(self.file_path, "r+b")
        except OSError as e:
            raise StorageIOError("open", self.file_path) from e

    def is_open(self) -> bool:
        return self._file is not None

    def close(self) -> None:
        """Close the backing file, flushing any buffered data."""
        if self._file:
            try:
                self._perform_flush()
            finally:
                self._file.close()
                self._file = None

    def _require_open(self) -> BinaryIO:
        if self._file is None:
            raise RuntimeError("LineStore is not open")
        return self._file

    def _perform_flush(self) -> None:
        """Push written data from Python user space to the OS, and to disk if configured."""
        self._file.flush()
        if self._sync_writes:
            # Use fdatasync if available (Linux), fallback to fsync (macOS/Windows)
            _sync_data = getattr(os, "fdatasync", os.fsync)
            _sync_data(self._file.fileno())

    def _read_all(self) -> bytes:
        file = self._require_open()
        try:
            file.seek(0)
            return file.read()
        except OSError as e:
            raise StorageIOError("read", self.file_path) from e

    def _load_lines(self) -> list[bytes]:
        """
        Load the file and split it into lines.

        An empty file holds no lines, and a trailing line break does not
        start an extra empty line.
        """
        lines = self._read_all().split(LINE_BREAK)
        if lines[-1] == b"":
            lines.pop()
        return lines

    def _rewrite(self, lines: list[bytes]) -> None:
        """Truncate the file and write the lines back from the start."""
        file = self._require_open()
        data = LINE_BREAK.join(lines)
        try:
            file.seek(0)
            file.truncate(0)
            file.write(data)
            self._perform_flush()
        except OSError as e:
            raise StorageIOError("rewrite", self.file_path) from e
        logger.debug(f"Rewrote {self.file_path}: {len(lines)} lines, {len(data)} bytes")

    def __iter__(self) -> Iterator[Record]:
        """Iterate over all decoded records in file order."""
        for index, line in enumerate(self._load_lines()):
            try:
                yield Record.from_bytes(line)
            except DecodeError as e:
                raise e.at_line(index) from e

    def line_count(self) -> int:
        return len(self._load_lines())

    def find(self, key: str) -> Lookup:
        """
        Scan the file from the start for the first line holding ``key``.

        Args:
            key: The key to look up.

        Returns:
            Lookup with the value and line index when found, or a missing
            Lookup carrying the number of lines scanned.

        Raises:
            DecodeError: If a line before the match cannot be decoded.
            StorageIOError: If the file cannot be read.
        """
        line_index = 0
        for record in self:
            if record.key == key:
                return Lookup.found_at(record.value, line_index)
            line_index += 1

        return Lookup.missing(line_index)

    def write(self, line_index: int, record: Record) -> None:
        """
        Replace the line at ``line_index`` with ``record``, or append it
        when the index is past the last line.

        Raises:
            StorageIOError: If the file cannot be read or rewritten.
        """
        lines = self._load_lines()
        if 0 <= line_index < len(lines):
            lines[line_index] = bytes(record)
        else:
            lines.append(bytes(record))

        self._rewrite(lines)

    def erase(self, line_index: int) -> None:
        """
        Remove the line at ``line_index``. Out of range indexes are a no-op
        and leave the file untouched.

        Raises:
            StorageIOError: If the file cannot be read or rewritten.
        """
        lines = self._load_lines()
        if line_index < 0 or line_index >= len(lines):
            logger.warning(f"Erase of line {line_index} ignored: {len(lines)} lines in {self.file_path}")
            return

        del lines[line_index]
        self._rewrite(lines)

    def __enter__(self) -> "LineStore":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
