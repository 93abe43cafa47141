"""Database initialization utilities."""

from __future__ import annotations

import logging

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, col, select

from gym_backend.core.config import Settings
from gym_backend.core.security import hash_password
from gym_backend.models import AdminUser

logger = logging.getLogger(__name__)


def create_db_and_tables(engine: Engine) -> None:
    """Create all tables from SQLModel metadata."""

    SQLModel.metadata.create_all(engine)


def create_initial_admin(engine: Engine, settings: Settings) -> None:
    """Seed the configured admin account when not present."""

    with Session(engine) as session:
        existing_user = session.exec(
            select(AdminUser).where(col(AdminUser.username) == settings.admin_username)
        ).first()
        if existing_user is not None:
            return

        admin_user = AdminUser(
            username=settings.admin_username,
            password_hash=hash_password(settings.admin_password),
        )
        session.add(admin_user)
        session.commit()
        logger.info("Seeded admin account %s", settings.admin_username)


def init_db(engine: Engine, settings: Settings) -> None:
    """Initialize tables and seed admin data."""

    create_db_and_tables(engine)
    create_initial_admin(engine, settings)
