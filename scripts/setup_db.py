"""
Database setup script.

Creates the database named in POSTGRES_ASYNC_URL if it does not exist,
then creates the users table. Safe to run repeatedly.

Usage:
    python -m scripts.setup_db
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import asyncpg
from sqlalchemy.engine import make_url

from core.config import settings
from core.logging import configure_logging, get_logger
from core.storage.postgres import PostgresUserRepository


logger = get_logger(__name__)


async def create_database(url: str) -> None:
    """Create the target database through the default 'postgres' database."""
    parsed = make_url(url)
    db_name = parsed.database

    conn = await asyncpg.connect(
        host=parsed.host or "localhost",
        port=parsed.port or 5432,
        user=parsed.username,
        password=parsed.password,
        database="postgres",
    )
    try:
        exists = await conn.fetchval(
            "SELECT 1 FROM pg_database WHERE datname = $1",
            db_name,
        )
        if not exists:
            await conn.execute(f'CREATE DATABASE "{db_name}"')
            logger.info("Database created", database=db_name)
        else:
            logger.info("Database already exists", database=db_name)
    finally:
        await conn.close()


async def setup_database() -> None:
    """Create database and tables."""
    await create_database(settings.postgres_async_url)

    repository = PostgresUserRepository(
        async_connection_string=settings.postgres_async_url,
        echo=settings.db_echo,
    )
    try:
        await repository.setup()
    finally:
        await repository.close()

    logger.info("Database setup complete")


if __name__ == "__main__":
    configure_logging()
    asyncio.run(setup_database())
