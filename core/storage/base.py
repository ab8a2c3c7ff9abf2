"""
Abstract base classes for the user persistence gateway.

This module defines the contract every storage backend implements, so the
HTTP layer can talk to PostgreSQL in production and to an in-memory store
in tests without knowing which one it has.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional


class PersistenceError(Exception):
    """
    Any store-level failure.

    Covers connectivity problems, constraint violations (duplicate email)
    and unexpected driver errors alike. Callers are not expected to tell
    them apart.
    """

    def __init__(self, message: str, operation: Optional[str] = None):
        super().__init__(message)
        self.operation = operation


@dataclass
class UserRecord:
    """
    A persisted user.

    ``id`` is None only for a record that has not been inserted yet.
    """
    name: str
    email: str
    id: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UserRecord":
        """Create from a row mapping or dictionary."""
        return cls(
            id=data.get("id"),
            name=data["name"],
            email=data["email"],
        )


class BaseUserRepository(ABC):
    """
    Abstract base class for user storage.

    Every operation is attempted exactly once; failures surface as
    PersistenceError. Email uniqueness is the store's job, so ``insert``
    and ``save`` raise PersistenceError on a duplicate.
    """

    @abstractmethod
    async def setup(self) -> None:
        """
        Initialize the storage (open pools, create tables).

        This should be idempotent.
        """
        pass

    @abstractmethod
    async def list_all(self) -> list[UserRecord]:
        """Get every user, ordered by id ascending."""
        pass

    @abstractmethod
    async def get_by_id(self, user_id: int) -> Optional[UserRecord]:
        """Get a user by id, or None if there is no such row."""
        pass

    @abstractmethod
    async def insert(self, record: UserRecord) -> UserRecord:
        """
        Insert a new user.

        The record's ``id`` is ignored; the returned record carries the
        id assigned by the store.
        """
        pass

    @abstractmethod
    async def save(self, record: UserRecord) -> Optional[UserRecord]:
        """
        Persist name and email of an existing user.

        Returns the stored record, or None if the row no longer exists.
        """
        pass

    @abstractmethod
    async def delete_by_id(self, user_id: int) -> bool:
        """
        Permanently delete a user.

        Returns True if a row was removed.
        """
        pass

    @abstractmethod
    async def ping(self) -> bool:
        """Check that the store answers. Never raises."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Clean up resources."""
        pass
