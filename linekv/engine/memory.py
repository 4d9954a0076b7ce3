"""
MemoryDatabase - Dict-backed Database for tests and ephemeral use.
"""

from linekv.interfaces.database import Database


class MemoryDatabase(Database):
    """Dict-backed database with the same contract as KeyValueStore. Nothing is persisted."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def put(self, key: str, value: str) -> bool:
        existed = key in self._data
        self._data[key] = value
        return existed

    def get(self, key: str) -> tuple[str, bool]:
        if key not in self._data:
            return "", False
        return self._data[key], True

    def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def __len__(self) -> int:
        return len(self._data)

    def items(self) -> list[tuple[str, str]]:
        return list(self._data.items())
