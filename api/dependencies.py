"""
FastAPI dependencies for dependency injection.

Provides the process-scoped user repository to route handlers.
"""

from typing import Optional

from core.storage import BaseUserRepository


# Global singleton (set during app lifespan)
_user_repository: Optional[BaseUserRepository] = None


def set_user_repository(repository: Optional[BaseUserRepository]) -> None:
    """Set (or clear, with None) the global user repository."""
    global _user_repository
    _user_repository = repository


async def get_user_repository() -> BaseUserRepository:
    """
    Dependency that provides the user repository.
    
    Usage:
        @router.get("/users")
        async def list_users(
            repository: BaseUserRepository = Depends(get_user_repository)
        ):
            ...
    """
    if _user_repository is None:
        raise RuntimeError("User repository not initialized")
    return _user_repository
