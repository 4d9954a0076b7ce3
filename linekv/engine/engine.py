"""
Engine - Async, serialized access to a Database.
"""

import asyncio
import functools
import logging
import os

from linekv.engine.memory import MemoryDatabase
from linekv.engine.store import KeyValueStore
from linekv.interfaces.database import Database

logger = logging.getLogger(__name__)


class Engine:
    """
    Async key-value engine used by the request dispatcher.

    Provides:
    - put(key, value): Insert/update a key, reporting whether it existed
    - get(key): Retrieve a value and whether it was found
    - delete(key): Delete a key, reporting whether it existed

    The underlying stores do no locking and hold one shared file handle,
    so every operation runs under a single asyncio.Lock. The blocking
    file I/O runs in the default thread pool to keep the event loop free.
    """

    def __init__(self, database: Database) -> None:
        """
        Initialize the engine.

        Args:
            database: The store to serialize access to.
        """
        self._database = database
        self._lock = asyncio.Lock()
        self._closed = False

    @classmethod
    async def create(cls, data_file: str, sync_writes: bool = True) -> "Engine":
        """
        Async factory method that opens a file-backed engine.

        Args:
            data_file: Path to the backing file (created if absent).
            sync_writes: If True, fsync the file after every mutation.

        Returns:
            Engine over a KeyValueStore.
        """
        if not data_file or not data_file.strip():
            raise ValueError("data_file cannot be empty")

        data_file = os.path.abspath(data_file)
        parent = os.path.dirname(data_file)
        if os.path.exists(data_file):
            if not os.access(data_file, os.R_OK | os.W_OK):
                raise PermissionError(f"data_file not readable and writable: {data_file}")
        elif os.path.isdir(parent) and not os.access(parent, os.W_OK):
            raise PermissionError(
                f"Cannot create data_file: {data_file}. "
                f"Parent directory not writable: {parent}"
            )

        loop = asyncio.get_running_loop()
        store = await loop.run_in_executor(
            None, functools.partial(KeyValueStore, data_file, sync_writes=sync_writes)
        )
        logger.info(f"Opened data file {data_file}")
        return cls(store)

    @classmethod
    def in_memory(cls) -> "Engine":
        return cls(MemoryDatabase())

    @property
    def database(self) -> Database:
        return self._database

    async def _run(self, func, *args):
        async with self._lock:
            # Checked under the lock: a close() queued ahead of us wins
            if self._closed:
                raise RuntimeError("Engine is closed")
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(None, func, *args)

    async def put(self, key: str, value: str) -> bool:
        """
        Async insert or update a key-value pair.

        Returns:
            True if the key already existed.
        """
        return await self._run(self._database.put, key, value)

    async def get(self, key: str) -> tuple[str, bool]:
        """
        Async retrieve a value by key.

        Returns:
            (value, True) if found, ("", False) otherwise.
        """
        return await self._run(self._database.get, key)

    async def delete(self, key: str) -> bool:
        """
        Async delete a key.

        Returns:
            True if the key existed.
        """
        return await self._run(self._database.delete, key)

    async def close(self) -> None:
        """Close the underlying database once in-flight operations finish."""
        if self._closed:
            return

        async with self._lock:
            self._closed = True
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, self._database.close)

    async def __aenter__(self) -> "Engine":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
