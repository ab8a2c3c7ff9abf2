"""
Tests for the user repositories and the storage factory.

The SQL repository runs on sqlite+aiosqlite, which exercises the same
SQLAlchemy statements the PostgreSQL deployment uses.
"""

from types import SimpleNamespace

import pytest
import pytest_asyncio

from core.config import Settings
from core.storage import (
    PersistenceError,
    StorageBackend,
    UserRecord,
    create_user_repository,
    get_storage_backend,
)
from core.storage.memory import InMemoryUserRepository
from core.storage.postgres import PostgresUserRepository


@pytest_asyncio.fixture(params=["memory", "sql"])
async def repo(request, tmp_path):
    """Initialized repository for either backend."""
    if request.param == "memory":
        repository = InMemoryUserRepository()
    else:
        repository = PostgresUserRepository(
            async_connection_string=f"sqlite+aiosqlite:///{tmp_path / 'users.db'}"
        )
    await repository.setup()
    yield repository
    await repository.close()


@pytest.mark.asyncio
async def test_insert_assigns_id(repo):
    """Test that insert assigns an id."""
    user = await repo.insert(UserRecord(name="Ada", email="ada@example.com"))

    assert user.id is not None
    assert user.name == "Ada"
    assert user.email == "ada@example.com"


@pytest.mark.asyncio
async def test_insert_ignores_given_id(repo):
    """Test that insert ignores a caller-supplied id."""
    first = await repo.insert(UserRecord(id=50, name="Ada", email="ada@example.com"))
    second = await repo.insert(UserRecord(id=50, name="Bob", email="bob@example.com"))

    assert first.id != second.id


@pytest.mark.asyncio
async def test_insert_duplicate_email(repo):
    """Test that a duplicate email is rejected by the store."""
    await repo.insert(UserRecord(name="Ada", email="ada@example.com"))

    with pytest.raises(PersistenceError) as exc_info:
        await repo.insert(UserRecord(name="Other", email="ada@example.com"))

    assert exc_info.value.operation == "insert"
    assert len(await repo.list_all()) == 1


@pytest.mark.asyncio
async def test_get_by_id(repo):
    """Test fetching a user by id."""
    user = await repo.insert(UserRecord(name="Ada", email="ada@example.com"))

    assert await repo.get_by_id(user.id) == user
    assert await repo.get_by_id(user.id + 1) is None


@pytest.mark.asyncio
async def test_list_all_ordered_by_id(repo):
    """Test that list_all orders by id."""
    for name in ("c", "a", "b"):
        await repo.insert(UserRecord(name=name, email=f"{name}@example.com"))

    users = await repo.list_all()

    assert [u.name for u in users] == ["c", "a", "b"]
    assert [u.id for u in users] == sorted(u.id for u in users)


@pytest.mark.asyncio
async def test_save_updates_fields(repo):
    """Test saving new name and email."""
    user = await repo.insert(UserRecord(name="Ada", email="ada@example.com"))
    user.name = "Ada King"
    user.email = "king@example.com"

    saved = await repo.save(user)

    assert saved == UserRecord(id=user.id, name="Ada King", email="king@example.com")
    assert await repo.get_by_id(user.id) == saved


@pytest.mark.asyncio
async def test_save_missing_row(repo):
    """Test saving a user that does not exist."""
    assert await repo.save(UserRecord(id=404, name="Ghost", email="ghost@example.com")) is None


@pytest.mark.asyncio
async def test_save_duplicate_email(repo):
    """Test that save rejects an email taken by another user."""
    await repo.insert(UserRecord(name="Ada", email="ada@example.com"))
    bob = await repo.insert(UserRecord(name="Bob", email="bob@example.com"))
    bob.email = "ada@example.com"

    with pytest.raises(PersistenceError):
        await repo.save(bob)


@pytest.mark.asyncio
async def test_save_keeps_own_email(repo):
    """Test saving a user without changing its email."""
    user = await repo.insert(UserRecord(name="Ada", email="ada@example.com"))
    user.name = "Renamed"

    saved = await repo.save(user)

    assert saved.email == "ada@example.com"


@pytest.mark.asyncio
async def test_delete_by_id(repo):
    """Test deleting a user."""
    user = await repo.insert(UserRecord(name="Ada", email="ada@example.com"))

    assert await repo.delete_by_id(user.id) is True
    assert await repo.get_by_id(user.id) is None
    assert await repo.delete_by_id(user.id) is False


@pytest.mark.asyncio
async def test_email_reusable_after_delete(repo):
    """Test that a deleted user's email can be used again."""
    user = await repo.insert(UserRecord(name="Ada", email="ada@example.com"))
    await repo.delete_by_id(user.id)

    again = await repo.insert(UserRecord(name="Ada", email="ada@example.com"))

    assert again.id != user.id


@pytest.mark.asyncio
async def test_ids_not_reused_after_deleting_latest(repo):
    """Test that the id of a deleted latest user is not handed out again."""
    await repo.insert(UserRecord(name="Ada", email="ada@example.com"))
    latest = await repo.insert(UserRecord(name="Bob", email="bob@example.com"))
    await repo.delete_by_id(latest.id)

    newer = await repo.insert(UserRecord(name="Cy", email="cy@example.com"))

    assert newer.id > latest.id


@pytest.mark.asyncio
async def test_ping(repo):
    """Test pinging an initialized repository."""
    assert await repo.ping() is True


@pytest.mark.asyncio
async def test_memory_returns_copies(memory_repository):
    """Test that the in-memory store hands out copies."""
    user = await memory_repository.insert(UserRecord(name="Ada", email="ada@example.com"))
    user.name = "Mutated"

    assert (await memory_repository.get_by_id(user.id)).name == "Ada"


@pytest.mark.asyncio
async def test_memory_forced_failure_is_one_shot(memory_repository):
    """Test that a forced failure affects only the next call."""
    memory_repository.force_failure("boom")

    with pytest.raises(PersistenceError, match="boom"):
        await memory_repository.list_all()

    assert await memory_repository.list_all() == []


@pytest.mark.asyncio
async def test_sql_setup_is_idempotent(sql_repository):
    """Test that setup can run twice without losing data."""
    await sql_repository.insert(UserRecord(name="Ada", email="ada@example.com"))

    await sql_repository.setup()

    assert len(await sql_repository.list_all()) == 1


@pytest.mark.asyncio
async def test_sql_requires_setup(tmp_path):
    """Test using the SQL repository before setup."""
    repository = PostgresUserRepository(
        async_connection_string=f"sqlite+aiosqlite:///{tmp_path / 'users.db'}"
    )

    assert await repository.ping() is False
    with pytest.raises(RuntimeError):
        await repository.list_all()


@pytest.mark.asyncio
async def test_sql_closed_repository_does_not_answer(sql_repository):
    """Test pinging a closed SQL repository."""
    await sql_repository.close()

    assert await sql_repository.ping() is False


def test_user_record_dict_round_trip():
    """Test UserRecord dict conversion."""
    record = UserRecord(id=7, name="Ada", email="ada@example.com")

    assert record.to_dict() == {"id": 7, "name": "Ada", "email": "ada@example.com"}
    assert UserRecord.from_dict(record.to_dict()) == record


def test_get_storage_backend():
    """Test resolving configured backends."""
    assert get_storage_backend(Settings(storage_backend="memory")) == StorageBackend.MEMORY
    assert get_storage_backend(Settings(storage_backend="postgres")) == StorageBackend.POSTGRES


def test_get_storage_backend_unknown():
    """Test rejecting an unknown backend."""
    with pytest.raises(ValueError, match="Unsupported storage backend"):
        get_storage_backend(SimpleNamespace(storage_backend="mongodb"))


def test_create_user_repository():
    """Test building repositories from settings."""
    memory = create_user_repository(Settings(storage_backend="memory"))
    postgres = create_user_repository(Settings(storage_backend="postgres"))

    assert isinstance(memory, InMemoryUserRepository)
    assert isinstance(postgres, PostgresUserRepository)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
