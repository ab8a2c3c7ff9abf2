"""
PostgreSQL storage backend implementation.

Uses SQLAlchemy async with the asyncpg driver. The table is described
with SQLAlchemy Core, so any async URL SQLAlchemy understands works
(the test suite runs it on sqlite+aiosqlite).
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy import (
    Column,
    Integer,
    MetaData,
    String,
    Table,
    delete,
    insert,
    select,
    text,
    update,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from core.logging import get_logger
from core.storage.base import BaseUserRepository, PersistenceError, UserRecord


logger = get_logger(__name__)

metadata = MetaData()

users_table = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String, nullable=False),
    Column("email", String, nullable=False, unique=True),
    # ids are never reused, matching PostgreSQL serial
    sqlite_autoincrement=True,
)


class PostgresUserRepository(BaseUserRepository):
    """
    PostgreSQL-based user repository.

    One short session per operation; nothing is held across calls.
    """

    def __init__(
        self,
        async_connection_string: str,
        echo: bool = False,
        pool_size: int = 5,
        max_overflow: int = 10,
    ):
        """
        Initialize PostgreSQL user repository.

        Args:
            async_connection_string: Async connection URI (asyncpg format)
            echo: Whether to echo SQL statements
            pool_size: Connections kept open in the pool
            max_overflow: Extra connections allowed above pool_size
        """
        self._connection_string = async_connection_string
        self._echo = echo
        self._pool_size = pool_size
        self._max_overflow = max_overflow
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    async def setup(self) -> None:
        """Initialize connection and create the users table if not exists."""
        if self._engine is not None:
            return

        engine_kwargs = {"echo": self._echo, "pool_pre_ping": True}
        # sqlite pools do not take sizing arguments
        if self._connection_string.startswith("postgresql"):
            engine_kwargs["pool_size"] = self._pool_size
            engine_kwargs["max_overflow"] = self._max_overflow

        self._engine = create_async_engine(self._connection_string, **engine_kwargs)
        self._session_factory = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(metadata.create_all)
        except (SQLAlchemyError, OSError) as e:
            logger.error("Failed to create users table", error=str(e))
            raise PersistenceError(f"setup failed: {e}", operation="setup") from e

        logger.info("PostgreSQL user repository initialized")

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        """Open a session and turn driver errors into PersistenceError."""
        if self._session_factory is None:
            raise RuntimeError(
                "Repository not initialized. Call setup() first."
            )
        try:
            async with self._session_factory() as session:
                yield session
        except (SQLAlchemyError, OSError) as e:
            logger.error(
                "User storage operation failed",
                operation=operation,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise PersistenceError(f"{operation} failed: {e}", operation=operation) from e

    async def list_all(self) -> list[UserRecord]:
        """Get every user, ordered by id."""
        async with self._session("list_all") as session:
            result = await session.execute(
                select(users_table).order_by(users_table.c.id)
            )
            return [UserRecord.from_dict(dict(row)) for row in result.mappings().all()]

    async def get_by_id(self, user_id: int) -> Optional[UserRecord]:
        """Get a user by id."""
        async with self._session("get_by_id") as session:
            result = await session.execute(
                select(users_table).where(users_table.c.id == user_id)
            )
            row = result.mappings().first()

            if row is None:
                return None

            return UserRecord.from_dict(dict(row))

    async def insert(self, record: UserRecord) -> UserRecord:
        """Insert a user and return it with the assigned id."""
        async with self._session("insert") as session:
            result = await session.execute(
                insert(users_table)
                .values(name=record.name, email=record.email)
                .returning(users_table)
            )
            row = result.mappings().one()
            await session.commit()

        logger.debug("User row inserted", user_id=row["id"])
        return UserRecord.from_dict(dict(row))

    async def save(self, record: UserRecord) -> Optional[UserRecord]:
        """Write name and email back to an existing row."""
        async with self._session("save") as session:
            result = await session.execute(
                update(users_table)
                .where(users_table.c.id == record.id)
                .values(name=record.name, email=record.email)
                .returning(users_table)
            )
            row = result.mappings().first()
            await session.commit()

        if row is None:
            return None
        return UserRecord.from_dict(dict(row))

    async def delete_by_id(self, user_id: int) -> bool:
        """Delete a user row."""
        async with self._session("delete_by_id") as session:
            result = await session.execute(
                delete(users_table).where(users_table.c.id == user_id)
            )
            await session.commit()
            return result.rowcount > 0

    async def ping(self) -> bool:
        """Run SELECT 1 against the database."""
        if self._engine is None:
            return False
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as e:
            logger.warning("Database ping failed", error=str(e))
            return False
        return True

    async def close(self) -> None:
        """Close database engine."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
        logger.info("PostgreSQL user repository closed")
