"""Database engine construction and session dependency helpers."""

from __future__ import annotations

from collections.abc import Generator
from typing import Any

from fastapi import Request
from sqlalchemy.engine import Engine
from sqlmodel import Session, create_engine

from gym_backend.core.config import Settings


def build_engine(settings: Settings) -> Engine:
    """Create the pooled engine shared by all requests and the scheduler."""

    statement_timeout_seconds = settings.db_statement_timeout_ms / 1000
    if settings.database_url.startswith("sqlite"):
        connect_args: dict[str, Any] = {
            "check_same_thread": False,
            "timeout": statement_timeout_seconds,
        }
        return create_engine(settings.database_url, connect_args=connect_args, echo=False)

    connect_args = {"options": f"-c statement_timeout={settings.db_statement_timeout_ms}"}
    return create_engine(
        settings.database_url,
        connect_args=connect_args,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_timeout=settings.db_pool_timeout,
        pool_pre_ping=True,
        echo=False,
    )


def get_session(request: Request) -> Generator[Session, None, None]:
    """Yield a database session bound to the application's engine."""

    engine: Engine = request.app.state.engine
    with Session(engine) as session:
        yield session
