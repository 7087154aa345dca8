"""Shared SQLAlchemy models registry for the workspace database.

Currently holds the key-value table backing ``spendwatch`` storage.
"""

from .kv import Base, KvEntry

__all__ = [
    "Base",
    "KvEntry",
]
