"""FastAPI application: main entry point."""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import OperationalError, TimeoutError as DatabaseTimeoutError

from labhub.config import get_settings
from labhub.core.exceptions import (
    AppError,
    database_error_handler,
    database_timeout_handler,
    global_exception_handler,
)
from labhub.core.logging import configure_logging
from labhub.core.middleware import setup_middleware
from labhub.infrastructure.database import Base, engine

# Import all models so SQLAlchemy knows about them
from labhub.domain.models.user import User  # noqa: F401
from labhub.domain.models.lab import Lab  # noqa: F401
from labhub.domain.models.profile import Profile  # noqa: F401

# Import routers
from labhub.interfaces.api.auth import router as auth_router
from labhub.interfaces.api.labs import router as labs_router
from labhub.interfaces.api.profile import router as profile_router

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown events."""
    settings = get_settings()
    logger.info("Starting LabHub API", env=settings.ENVIRONMENT)

    # Create DB tables outside production; production uses migrations
    if settings.ENVIRONMENT != "production":
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created/verified")

    yield

    logger.info("LabHub API stopped")


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging()

    app = FastAPI(
        title="LabHub: Hands-on Data Science Labs",
        description="API backend for labs and user profiles",
        version="1.0.0",
        lifespan=lifespan,
    )

    setup_middleware(app)

    app.add_exception_handler(AppError, global_exception_handler)
    app.add_exception_handler(DatabaseTimeoutError, database_timeout_handler)
    app.add_exception_handler(OperationalError, database_error_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    # Added last so it is outermost and answers preflight requests first
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth_router)
    app.include_router(labs_router)
    app.include_router(profile_router)

    @app.get("/")
    def root():
        return {
            "name": "LabHub API",
            "version": "1.0.0",
            "status": "running",
            "docs": "/docs",
        }

    @app.get("/health")
    def health():
        return {"status": "healthy"}

    return app


app = create_app()
