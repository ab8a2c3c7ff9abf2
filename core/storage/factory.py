"""
Storage factory for creating user repository instances.

Picks the backend named in the settings and builds it, without
initializing it. Callers run ``setup()`` themselves.
"""

from enum import Enum
from typing import TYPE_CHECKING

from core.logging import get_logger
from core.storage.base import BaseUserRepository


if TYPE_CHECKING:
    from core.config import Settings


logger = get_logger(__name__)


class StorageBackend(str, Enum):
    """Supported storage backends."""
    POSTGRES = "postgres"
    MEMORY = "memory"


def get_storage_backend(settings: "Settings") -> StorageBackend:
    """
    Determine which storage backend to use based on settings.

    Raises:
        ValueError: If the configured backend is unknown
    """
    backend_str = settings.storage_backend.lower()

    try:
        return StorageBackend(backend_str)
    except ValueError:
        raise ValueError(
            f"Unsupported storage backend: {backend_str}. "
            f"Supported backends: {[b.value for b in StorageBackend]}"
        )


def create_user_repository(settings: "Settings") -> BaseUserRepository:
    """
    Create a user repository instance based on settings.

    Returns:
        Configured repository instance (not yet initialized)
    """
    backend = get_storage_backend(settings)

    if backend == StorageBackend.POSTGRES:
        from core.storage.postgres import PostgresUserRepository

        logger.info("Creating PostgreSQL user repository")
        return PostgresUserRepository(
            async_connection_string=settings.postgres_async_url,
            echo=settings.db_echo,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
        )

    elif backend == StorageBackend.MEMORY:
        from core.storage.memory import InMemoryUserRepository

        logger.warning("Using in-memory user repository; data is lost on restart")
        return InMemoryUserRepository()

    else:
        raise ValueError(f"Unsupported backend: {backend}")
