"""
Pydantic schemas for API request/response validation.
"""

from api.schemas.user import (
    MessageResponse,
    UserPayload,
    UserResponse,
)

__all__ = [
    "MessageResponse",
    "UserPayload",
    "UserResponse",
]
