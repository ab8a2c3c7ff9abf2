"""
In-memory storage backend.

Keeps users in a dict for the lifetime of the process. Enforces the same
unique-email constraint as the database and can be told to fail, which
makes it the substitute gateway for API tests.
"""

import asyncio
from dataclasses import replace
from typing import Optional

from core.logging import get_logger
from core.storage.base import BaseUserRepository, PersistenceError, UserRecord


logger = get_logger(__name__)


class InMemoryUserRepository(BaseUserRepository):
    """
    Dict-backed user repository.

    Ids start at 1 and are never reused. Stored records are copied on the
    way in and out so callers cannot mutate the store behind its back.

    Usage:
        repo = InMemoryUserRepository()
        await repo.setup()
        user = await repo.insert(UserRecord(name="Ada", email="ada@example.com"))
    """

    def __init__(self):
        self._users: dict[int, UserRecord] = {}
        self._next_id = 1
        self._lock = asyncio.Lock()
        self._fail_next: Optional[str] = None
        self._available = True

    async def setup(self) -> None:
        logger.info("In-memory user repository initialized")

    def force_failure(self, error: str = "Simulated storage failure") -> None:
        """Make the next data operation raise PersistenceError (for testing)."""
        self._fail_next = error

    def set_available(self, available: bool) -> None:
        """Toggle what ping() reports (for testing)."""
        self._available = available

    def _check_failure(self, operation: str) -> None:
        if self._fail_next is not None:
            error, self._fail_next = self._fail_next, None
            raise PersistenceError(f"{operation} failed: {error}", operation=operation)

    def _email_taken(self, email: str, exclude_id: Optional[int] = None) -> bool:
        return any(
            user.email == email and user.id != exclude_id
            for user in self._users.values()
        )

    async def list_all(self) -> list[UserRecord]:
        async with self._lock:
            self._check_failure("list_all")
            return [replace(self._users[key]) for key in sorted(self._users)]

    async def get_by_id(self, user_id: int) -> Optional[UserRecord]:
        async with self._lock:
            self._check_failure("get_by_id")
            user = self._users.get(user_id)
            return replace(user) if user else None

    async def insert(self, record: UserRecord) -> UserRecord:
        async with self._lock:
            self._check_failure("insert")
            if self._email_taken(record.email):
                raise PersistenceError(
                    f"insert failed: duplicate email {record.email!r}",
                    operation="insert",
                )
            stored = UserRecord(id=self._next_id, name=record.name, email=record.email)
            self._users[stored.id] = stored
            self._next_id += 1
            return replace(stored)

    async def save(self, record: UserRecord) -> Optional[UserRecord]:
        async with self._lock:
            self._check_failure("save")
            if record.id not in self._users:
                return None
            if self._email_taken(record.email, exclude_id=record.id):
                raise PersistenceError(
                    f"save failed: duplicate email {record.email!r}",
                    operation="save",
                )
            stored = UserRecord(id=record.id, name=record.name, email=record.email)
            self._users[stored.id] = stored
            return replace(stored)

    async def delete_by_id(self, user_id: int) -> bool:
        async with self._lock:
            self._check_failure("delete_by_id")
            return self._users.pop(user_id, None) is not None

    async def ping(self) -> bool:
        return self._available

    async def close(self) -> None:
        """Drop all stored users."""
        self._users.clear()
        logger.info("In-memory user repository closed")
