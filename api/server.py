"""
FastAPI application entry point.

Sets up the application with:
- Lifespan management (repository setup/close)
- Route registration
- Middleware configuration
- Error handling
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.dependencies import set_user_repository
from api.errors import register_exception_handlers
from api.routes import health_router, users_router
from core.config import settings
from core.logging import configure_logging, get_logger
from core.storage import BaseUserRepository, create_user_repository


logger = get_logger(__name__)


def create_app(repository: Optional[BaseUserRepository] = None) -> FastAPI:
    """
    Application factory.

    Creates and configures the FastAPI application. Pass a repository to
    use it instead of the one named in the settings.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        configure_logging()

        logger.info(
            "Starting User API...",
            storage_backend=settings.storage_backend,
        )

        user_repository = repository or create_user_repository(settings)
        await user_repository.setup()
        set_user_repository(user_repository)

        logger.info(
            "User API started",
            host=settings.server_host,
            port=settings.server_port,
        )

        yield

        logger.info("Shutting down User API...")
        set_user_repository(None)
        await user_repository.close()
        logger.info("User API stopped")

    app = FastAPI(
        title="User API",
        description="This is a simple API for managing users in a PostgreSQL database.",
        version="1.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routes
    app.include_router(health_router)
    app.include_router(users_router)

    register_exception_handlers(app)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.server:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.debug,
    )
