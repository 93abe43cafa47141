"""Membership auto-expiry sweep."""

from __future__ import annotations

import logging
from datetime import date

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlmodel import Session

from gym_backend.core.constants import today
from gym_backend.repositories import member_repo
from gym_backend.schemas.member import ExpiredMember

logger = logging.getLogger(__name__)


def run_auto_expire(session: Session, as_of: date | None = None) -> list[ExpiredMember]:
    """Mark paid members whose membership ended before ``as_of`` as unpaid.

    Idempotent: a second run with no writes in between affects no rows. Listing
    and dashboard reads call this first so they never report stale statuses.
    """

    rows = member_repo.expire_overdue_members(session, as_of or today())
    expired = [ExpiredMember(id=row.id, name=row.name, email=row.email) for row in rows]
    if expired:
        logger.info(
            "Auto-expired %d members: %s",
            len(expired),
            ", ".join(member.name for member in expired),
        )
    return expired


def run_inline_auto_expire(session: Session) -> list[ExpiredMember]:
    """Sweep before a read without letting a failed sweep fail the read.

    The next read or scheduler tick retries the sweep.
    """

    try:
        return run_auto_expire(session)
    except PoolTimeoutError:
        raise
    except SQLAlchemyError:
        logger.exception("Inline auto-expire failed; serving current statuses")
        session.rollback()
        return []


def run_scheduled_auto_expire(engine: Engine) -> None:
    """Scheduler entry point; failures are logged and retried on the next tick."""

    logger.info("Running periodic auto-expire check")
    try:
        with Session(engine) as session:
            run_auto_expire(session)
    except Exception:
        logger.exception("Periodic auto-expire failed")
