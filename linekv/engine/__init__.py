"""
Key-value engines built on the line store.
"""

from linekv.engine.engine import Engine
from linekv.engine.memory import MemoryDatabase
from linekv.engine.store import KeyValueStore

__all__ = ["Engine", "KeyValueStore", "MemoryDatabase"]
