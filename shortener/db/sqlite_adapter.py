"""
SQLite Database Adapter

This module implements the DatabaseAdapter interface for SQLite.
All SQLite-specific configuration and behavior is encapsulated here.

Key characteristics:
- File-based (single .db file)
- No server required
- Single writer at a time (file locking)
- WAL journal: readers keep a consistent snapshot and never block the writer
"""

from typing import Any
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool

from shortener.db.interface import DatabaseAdapter


class SQLiteAdapter(DatabaseAdapter):
    """
    SQLite database adapter implementation.

    pysqlite's implicit transaction handling skips BEGIN for plain SELECTs,
    which would let two reads inside one view() see different data. The
    adapter disables it and emits BEGIN itself so every scope is a real
    transaction.
    """

    def build_url(self, path: str) -> str:
        return f"sqlite+aiosqlite:///{path}"

    def create_engine(self, path: str, open_timeout: float, **kwargs) -> AsyncEngine:
        """
        Create SQLite async engine with appropriate configuration.

        Args:
            path: Path of the SQLite file
            open_timeout: Busy timeout in seconds, applied to every connection
            **kwargs: Additional engine options (merged with SQLite defaults)

        Returns:
            Configured AsyncEngine for SQLite
        """
        engine_kwargs = self.get_engine_kwargs()
        engine_kwargs.update(kwargs)

        engine = create_async_engine(
            self.build_url(path),
            poolclass=self.get_pool_class(),
            connect_args=self.get_connect_args(open_timeout),
            **engine_kwargs
        )
        self._install_transaction_hooks(engine)
        return engine

    def get_pool_class(self) -> type[NullPool]:
        """
        SQLite uses NullPool: a file-based database gains nothing from
        pooling and each scope gets its own short-lived connection.
        """
        return NullPool

    def get_connect_args(self, open_timeout: float) -> dict[str, Any]:
        return {
            "check_same_thread": False,
            "timeout": open_timeout,
        }

    def get_engine_kwargs(self) -> dict[str, Any]:
        return {
            "echo": False  # Set to True only for SQL debugging in development
        }

    @staticmethod
    def _install_transaction_hooks(engine: AsyncEngine) -> None:
        @event.listens_for(engine.sync_engine, "connect")
        def _on_connect(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.close()

        @event.listens_for(engine.sync_engine, "begin")
        def _on_begin(conn):
            conn.exec_driver_sql("BEGIN")


def get_database_adapter() -> DatabaseAdapter:
    """
    Factory function to get the database adapter.

    Returns:
        DatabaseAdapter instance (SQLite)
    """
    return SQLiteAdapter()
