"""Database engine, session factory and declarative base."""

from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from labhub.config import get_settings

settings = get_settings()


def postgres_timeouts(seconds: int) -> dict:
    """libpq connect timeout plus a server-side statement timeout."""
    return {
        "connect_timeout": seconds,
        "options": f"-c statement_timeout={seconds * 1000}",
    }


def build_engine(url: str, **kwargs):
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    else:
        kwargs.setdefault("pool_timeout", settings.DB_TIMEOUT_SECONDS)
        kwargs.setdefault("pool_pre_ping", True)
        kwargs.setdefault("connect_args", postgres_timeouts(settings.DB_TIMEOUT_SECONDS))
    return create_engine(url, **kwargs)


engine = build_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)

Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency yielding a request-scoped session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
