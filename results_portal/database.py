"""Database engine construction and session dependency."""

from typing import Iterator

from fastapi import Request
from sqlalchemy import Engine
from sqlmodel import Session, SQLModel, create_engine

from results_portal.config import Settings


def build_engine(settings: Settings) -> Engine:
    """Create the connection pool for the configured database URL."""
    kwargs: dict = {"echo": False}
    if settings.database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
    else:
        # Bounded pool; acquiring a connection gives up after pool_timeout
        kwargs.update(
            {
                "pool_size": settings.pool_size,
                "max_overflow": settings.max_overflow,
                "pool_timeout": settings.pool_timeout,
                "pool_pre_ping": True,
            }
        )
    return create_engine(settings.database_url, **kwargs)


def create_db_and_tables(engine: Engine) -> None:
    """Create database tables based on SQLModel metadata."""
    SQLModel.metadata.create_all(engine)


def get_session(request: Request) -> Iterator[Session]:
    """FastAPI dependency that yields a session bound to the app's engine."""
    with Session(request.app.state.engine) as session:
        yield session
