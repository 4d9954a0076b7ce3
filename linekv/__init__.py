"""
Flat-file key-value database engine.

This package provides a key-value store persisted as one record per line:
- Put(key, value) - scan for the key, then rewrite the file in place
- Get(key) - linear scan of the file
- Delete(key) - scan, then rewrite the file without the key's line

Line format: <key byte length> <key><value>
"""

from linekv.engine import Engine, KeyValueStore, MemoryDatabase

__all__ = ["Engine", "KeyValueStore", "MemoryDatabase"]
