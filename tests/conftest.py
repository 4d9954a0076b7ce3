"""
Shared pytest fixtures for storage engine tests.
"""

import errno
import os
import tempfile

import pytest
import pytest_asyncio

from linekv.engine.engine import Engine
from linekv.engine.store import KeyValueStore
from linekv.models.line_store import LineStore


@pytest.fixture
def temp_dir():
    """Provide a temporary directory that is cleaned up after test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def data_path(temp_dir):
    """Provide a path for the backing data file."""
    return os.path.join(temp_dir, "data")


@pytest.fixture
def line_store(data_path):
    """Provide an open LineStore over an empty file."""
    with LineStore(data_path, sync_writes=False) as store:
        yield store


@pytest.fixture
def store(data_path):
    """Provide an open KeyValueStore over an empty file."""
    with KeyValueStore(data_path, sync_writes=False) as kv:
        yield kv


@pytest_asyncio.fixture
async def engine(data_path):
    """Provide a file-backed async Engine instance."""
    async with await Engine.create(data_path, sync_writes=False) as eng:
        yield eng


def read_file(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()


def write_file(path: str, data: bytes) -> None:
    with open(path, "wb") as f:
        f.write(data)


class FailingFile:
    """Wraps a file object so the named methods raise OSError(EIO)."""

    def __init__(self, wrapped, *failing: str):
        self._wrapped = wrapped
        self._failing = set(failing)

    def __getattr__(self, name):
        if name in self._failing:
            def fail(*args, **kwargs):
                raise OSError(errno.EIO, f"simulated {name} failure")
            return fail
        return getattr(self._wrapped, name)


def break_file(line_store: LineStore, *failing: str) -> None:
    """Make the given file operations of an open LineStore fail."""
    line_store._file = FailingFile(line_store._file, *failing)
