"""
Transactional Key-Value Store

The storage adapter the services talk to. It exposes an embedded, ordered
key-value store split into named namespaces, with two kinds of scopes:

- view():   read-only transaction, always rolled back
- update(): read-write transaction, committed on normal exit and rolled
            back if the body raises

Writers are serialized inside the process by an asyncio lock. A store file
belongs to one process at a time: open() takes an exclusive lock next to
it and gives up after the open timeout.

Usage:
    store = KeyValueStore("urls.db")
    await store.open()
    async with store.update() as tx:
        await tx.namespace("urls").put("abc123", "...")
    async with store.view() as tx:
        value = await tx.namespace("urls").get("abc123")
    await store.close()
"""

import asyncio
import fcntl
import logging
import os
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, List, Optional, Tuple, Type

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from shortener.core.exceptions import StorageError
from shortener.db.interface import DatabaseAdapter
from shortener.db.models import NAMESPACES
from shortener.db.sqlite_adapter import get_database_adapter

logger = logging.getLogger(__name__)


class Namespace:
    """A named, ordered key space inside one transaction."""

    def __init__(self, session: AsyncSession, model: Type[SQLModel], writable: bool):
        self.session = session
        self.model = model
        self.writable = writable

    @property
    def name(self) -> str:
        return self.model.__tablename__

    async def get(self, key: str) -> Optional[str]:
        """Return the value stored under key, or None."""
        statement = select(self.model.value).where(self.model.key == key)
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def exists(self, key: str) -> bool:
        return await self.get(key) is not None

    async def put(self, key: str, value: str) -> None:
        """Insert or replace the value stored under key."""
        if not self.writable:
            raise StorageError(f"cannot write to '{self.name}' in a read-only transaction")
        await self.session.merge(self.model(key=key, value=value))
        await self.session.flush()

    async def scan(self) -> List[Tuple[str, str]]:
        """Return every (key, value) pair in ascending key order."""
        statement = select(self.model.key, self.model.value).order_by(self.model.key)
        result = await self.session.execute(statement)
        return [(key, value) for key, value in result]


class Transaction:
    """Handle passed to the body of a view() or update() scope."""

    def __init__(self, session: AsyncSession, writable: bool):
        self.session = session
        self.writable = writable

    def namespace(self, name: str) -> Namespace:
        model = NAMESPACES.get(name)
        if model is None:
            raise StorageError(f"namespace '{name}' does not exist")
        return Namespace(self.session, model, self.writable)


class StoreFileLock:
    """
    Exclusive advisory lock on "<store path>.lock".

    Held from open() to close() so a second process pointed at the same
    store fails at startup instead of sharing the file.
    """

    POLL_INTERVAL = 0.05

    def __init__(self, store_path: str):
        self.path = f"{store_path}.lock"
        self._fd: Optional[int] = None

    @property
    def held(self) -> bool:
        return self._fd is not None

    async def acquire(self, timeout: float) -> None:
        """
        Raises:
            StorageError: If another holder keeps the lock past timeout
        """
        try:
            fd = os.open(self.path, os.O_RDWR | os.O_CREAT, 0o644)
        except OSError as e:
            raise StorageError(f"cannot open lock file {self.path}: {e}", original_error=e)

        deadline = time.monotonic() + timeout
        while True:
            try:
                fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
            except BlockingIOError:
                if time.monotonic() >= deadline:
                    os.close(fd)
                    raise StorageError(f"store {self.path} is locked by another process")
                await asyncio.sleep(self.POLL_INTERVAL)
            except OSError as e:
                os.close(fd)
                raise StorageError(f"cannot lock {self.path}: {e}", original_error=e)
            else:
                self._fd = fd
                return

    def release(self) -> None:
        if self._fd is None:
            return
        fcntl.flock(self._fd, fcntl.LOCK_UN)
        os.close(self._fd)
        self._fd = None


class KeyValueStore:
    """
    File-backed key-value store with isolated, atomic scopes.

    One instance is opened at startup, shared by every request through the
    services, and closed at shutdown.
    """

    def __init__(
        self,
        path: str,
        open_timeout: float = 1.0,
        adapter: Optional[DatabaseAdapter] = None
    ):
        """
        Args:
            path: Filesystem path of the store file
            open_timeout: Seconds to wait on a file locked by another process
            adapter: Database adapter (SQLite by default)
        """
        self.path = path
        self.open_timeout = open_timeout
        self.adapter = adapter or get_database_adapter()

        self._engine: Optional[AsyncEngine] = None
        self._session_maker: Optional[async_sessionmaker] = None
        self._write_lock = asyncio.Lock()
        self._file_lock = StoreFileLock(path)

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    async def open(self) -> None:
        """
        Open the store file and make sure every namespace exists.

        Idempotent across restarts: existing namespaces are left untouched.

        Raises:
            StorageError: If the file cannot be opened or initialized, or
                another process keeps it locked past the open timeout
        """
        if self.is_open:
            logger.warning(f"Store {self.path} already open")
            return

        try:
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"failed to create store directory: {e}", original_error=e)

        await self._file_lock.acquire(self.open_timeout)

        engine = self.adapter.create_engine(self.path, self.open_timeout)
        tables = [model.__table__ for model in NAMESPACES.values()]
        try:
            async with engine.begin() as conn:
                await conn.run_sync(SQLModel.metadata.create_all, tables=tables)
        except SQLAlchemyError as e:
            await engine.dispose()
            self._file_lock.release()
            raise StorageError(f"failed to open store {self.path}: {e}", original_error=e)

        self._engine = engine
        self._session_maker = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
        logger.info(f"Store opened: path={self.path}, namespaces={sorted(NAMESPACES)}")

    async def close(self) -> None:
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._session_maker = None
        self._file_lock.release()
        logger.info(f"Store closed: path={self.path}")

    async def __aenter__(self) -> "KeyValueStore":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _new_session(self) -> AsyncSession:
        if self._session_maker is None:
            raise StorageError("store is not open")
        return self._session_maker()

    @asynccontextmanager
    async def view(self) -> AsyncIterator[Transaction]:
        """Read-only scope; nothing written here is ever committed."""
        async with self._new_session() as session:
            try:
                yield Transaction(session, writable=False)
            except SQLAlchemyError as e:
                raise StorageError(str(e), original_error=e)
            finally:
                await session.rollback()

    @asynccontextmanager
    async def update(self) -> AsyncIterator[Transaction]:
        """
        Read-write scope.

        All writes commit together when the body returns; any exception
        rolls the whole scope back and propagates (storage failures as
        StorageError).
        """
        async with self._write_lock:
            async with self._new_session() as session:
                try:
                    yield Transaction(session, writable=True)
                    await session.commit()
                except SQLAlchemyError as e:
                    await session.rollback()
                    raise StorageError(str(e), original_error=e)
                except Exception:
                    await session.rollback()
                    raise
