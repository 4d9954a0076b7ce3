"""
Abstract base classes for the storage engine.
"""

from linekv.interfaces.database import Database

__all__ = ["Database"]
