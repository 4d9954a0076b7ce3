"""
Database abstract base class for key-value stores.
"""

from abc import ABC, abstractmethod


class Database(ABC):
    """
    Abstract base class for key-value databases.

    Implementations:
    - KeyValueStore: Backed by a flat file of encoded lines
    - MemoryDatabase: Backed by a dict, nothing persisted
    """

    @abstractmethod
    def put(self, key: str, value: str) -> bool:
        """
        Insert or update a key-value pair.

        Args:
            key: The key to insert/update.
            value: The value to associate with the key.

        Returns:
            True if the key already existed, False otherwise.
        """
        pass

    @abstractmethod
    def get(self, key: str) -> tuple[str, bool]:
        """
        Retrieve the value for a given key.

        Args:
            key: The key to look up.

        Returns:
            (value, True) if found, ("", False) otherwise.
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Remove a key-value pair.

        Args:
            key: The key to remove.

        Returns:
            True if the key existed and was removed, False otherwise.
        """
        pass

    def close(self) -> None:
        """Release any resources held by the database."""
        pass

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
