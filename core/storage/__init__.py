"""
Storage abstraction layer.

Provides the persistence gateway for User records.

Supported backends:
- PostgreSQL (SQLAlchemy async + asyncpg)
- In-memory (tests and local experiments)
"""

from core.storage.base import (
    BaseUserRepository,
    PersistenceError,
    UserRecord,
)
from core.storage.factory import (
    create_user_repository,
    get_storage_backend,
    StorageBackend,
)

__all__ = [
    # Abstract interface
    "BaseUserRepository",
    "PersistenceError",
    "UserRecord",
    # Factory functions
    "create_user_repository",
    "get_storage_backend",
    "StorageBackend",
]
