"""
Storage module with abstraction layer.

This module provides:
- KeyValueStore: transactional, ordered key-value store with namespaces
- DatabaseAdapter interface: configures the engine under the store
- SQLiteAdapter: SQLite-specific implementation (default)
"""

from shortener.db.interface import DatabaseAdapter
from shortener.db.store import KeyValueStore, Namespace, Transaction

__all__ = [
    "DatabaseAdapter",
    "KeyValueStore",
    "Namespace",
    "Transaction",
]
