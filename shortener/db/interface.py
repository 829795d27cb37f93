"""
Database Abstraction Interface

This module defines the contract for database adapters that configure the
engine underneath the key-value store. Each adapter encapsulates the
driver-specific settings (connection arguments, pooling, pragmas), so the
store itself stays backend-agnostic.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.pool import Pool


class DatabaseAdapter(ABC):
    """
    Abstract base class for database adapters.

    To add a new database backend:
    1. Create a new class inheriting from DatabaseAdapter
    2. Implement all abstract methods
    3. Update the factory function to return the new adapter
    """

    @abstractmethod
    def build_url(self, path: str) -> str:
        """
        Build the SQLAlchemy connection URL for a store file.

        Args:
            path: Filesystem path of the store

        Returns:
            Connection string understood by create_engine()
        """
        pass

    @abstractmethod
    def create_engine(self, path: str, open_timeout: float, **kwargs) -> AsyncEngine:
        """
        Create and configure the async database engine.

        Args:
            path: Filesystem path of the store
            open_timeout: Seconds to wait on a lock held by another process
            **kwargs: Additional engine configuration options

        Returns:
            Configured AsyncEngine instance
        """
        pass

    @abstractmethod
    def get_pool_class(self) -> Optional[type[Pool]]:
        """
        Get the connection pool class for this database type.

        Returns:
            Pool class or None to use default
        """
        pass

    @abstractmethod
    def get_connect_args(self, open_timeout: float) -> dict[str, Any]:
        """
        Get connection arguments specific to this database type.

        Args:
            open_timeout: Seconds to wait on a lock held by another process

        Returns:
            Dictionary of connection arguments
        """
        pass

    @abstractmethod
    def get_engine_kwargs(self) -> dict[str, Any]:
        """
        Get additional engine configuration specific to this database type.

        Returns:
            Dictionary of engine configuration options
        """
        pass
