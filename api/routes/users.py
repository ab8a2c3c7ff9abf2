"""
User management endpoints.

Provides CRUD operations for users:
- GET /users - List users
- GET /users/{user_id} - Get one user
- POST /users - Create user
- PUT /users/{user_id} - Replace name and email
- DELETE /users/{user_id} - Delete user

Update and Delete look the user up before writing. The two steps are not
wrapped in a transaction; a user deleted in between shows up as 404.
"""

from fastapi import APIRouter, Depends, Request, status
from pydantic import ValidationError as PydanticValidationError

from api.dependencies import get_user_repository
from api.errors import NotFoundError, ValidationError, format_validation_errors
from api.schemas.user import MessageResponse, UserPayload, UserResponse
from core.logging import get_logger
from core.storage import BaseUserRepository, UserRecord


logger = get_logger(__name__)
router = APIRouter(prefix="/api/v1/users", tags=["Users"])

# Largest value a PostgreSQL integer column holds
MAX_USER_ID = 2**31 - 1

ERROR_RESPONSES = {
    400: {"model": MessageResponse, "description": "Bad Request"},
    404: {"model": MessageResponse, "description": "Not Found"},
    500: {"model": MessageResponse, "description": "Internal Server Error"},
}

# The body is parsed by hand (see parse_user_payload), so describe it for the docs
USER_BODY = {
    "requestBody": {
        "required": True,
        "content": {"application/json": {"schema": UserPayload.model_json_schema()}},
    }
}


def parse_user_id(raw: str) -> int:
    """
    Parse a path id.

    Anything that is not a positive integer within the id column range
    is rejected as not found rather than as a bad request.
    """
    if not (raw.isascii() and raw.isdigit()):
        raise NotFoundError()
    user_id = int(raw)
    if not 0 < user_id <= MAX_USER_ID:
        raise NotFoundError()
    return user_id


async def parse_user_payload(request: Request) -> UserPayload:
    """Read and validate a {name, email} JSON body."""
    body = await request.body()
    try:
        return UserPayload.model_validate_json(body)
    except PydanticValidationError as e:
        raise ValidationError(format_validation_errors(e.errors()))


async def _get_existing(repository: BaseUserRepository, user_id: int) -> UserRecord:
    user = await repository.get_by_id(user_id)
    if user is None:
        raise NotFoundError()
    return user


@router.get(
    "",
    response_model=list[UserResponse],
    responses={500: ERROR_RESPONSES[500]},
    summary="Get all users",
)
async def list_users(
    repository: BaseUserRepository = Depends(get_user_repository),
) -> list[UserResponse]:
    """Retrieve every user in the database."""
    users = await repository.list_all()
    logger.debug("Listed users", count=len(users))
    return [UserResponse.from_record(user) for user in users]


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    responses={404: ERROR_RESPONSES[404], 500: ERROR_RESPONSES[500]},
    summary="Get user by ID",
)
async def get_user(
    user_id: str,
    repository: BaseUserRepository = Depends(get_user_repository),
) -> UserResponse:
    """Retrieve a single user's details by their ID."""
    user = await _get_existing(repository, parse_user_id(user_id))
    return UserResponse.from_record(user)


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: ERROR_RESPONSES[400], 500: ERROR_RESPONSES[500]},
    openapi_extra=USER_BODY,
    summary="Create a new user",
)
async def create_user(
    request: Request,
    repository: BaseUserRepository = Depends(get_user_repository),
) -> UserResponse:
    """
    Create a new user from a name and email.

    Email uniqueness is left to the database; a duplicate fails as a
    generic 500 like any other write failure.
    """
    payload = await parse_user_payload(request)

    user = await repository.insert(UserRecord(name=payload.name, email=payload.email))

    logger.info("User created", user_id=user.id, email=user.email)
    return UserResponse.from_record(user)


@router.put(
    "/{user_id}",
    response_model=UserResponse,
    responses=ERROR_RESPONSES,
    openapi_extra=USER_BODY,
    summary="Update an existing user",
)
async def update_user(
    user_id: str,
    request: Request,
    repository: BaseUserRepository = Depends(get_user_repository),
) -> UserResponse:
    """
    Update a user's name and email by their ID.

    The lookup runs first, so an unknown id is 404 even with a bad body.
    The id itself never changes.
    """
    user = await _get_existing(repository, parse_user_id(user_id))
    payload = await parse_user_payload(request)

    user.name = payload.name
    user.email = payload.email

    saved = await repository.save(user)
    if saved is None:
        raise NotFoundError()

    logger.info("User updated", user_id=saved.id)
    return UserResponse.from_record(saved)


@router.delete(
    "/{user_id}",
    response_model=MessageResponse,
    responses={404: ERROR_RESPONSES[404], 500: ERROR_RESPONSES[500]},
    summary="Delete a user",
)
async def delete_user(
    user_id: str,
    repository: BaseUserRepository = Depends(get_user_repository),
) -> MessageResponse:
    """Delete a user by their ID."""
    user = await _get_existing(repository, parse_user_id(user_id))

    if not await repository.delete_by_id(user.id):
        raise NotFoundError()

    logger.info("User deleted", user_id=user.id)
    return MessageResponse(message="User deleted")
