"""
User request and response schemas.

These Pydantic models define the API contract and provide
automatic validation and documentation.
"""

from pydantic import BaseModel, Field

from core.storage import UserRecord


class UserPayload(BaseModel):
    """Request body for creating or replacing a user."""

    name: str = Field(
        ...,
        min_length=1,
        description="Display name",
        examples=["Ada Lovelace"],
    )
    email: str = Field(
        ...,
        min_length=1,
        description="Email address, unique across all users",
        examples=["ada@example.com"],
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Ada Lovelace",
                    "email": "ada@example.com",
                }
            ]
        }
    }


class UserResponse(BaseModel):
    """A stored user."""

    id: int = Field(
        ...,
        description="Identifier assigned on creation",
    )
    name: str
    email: str

    @classmethod
    def from_record(cls, record: UserRecord) -> "UserResponse":
        return cls(id=record.id, name=record.name, email=record.email)


class MessageResponse(BaseModel):
    """Acknowledgement or error body."""

    message: str = Field(
        ...,
        description="Human-readable message",
        examples=["User deleted"],
    )
