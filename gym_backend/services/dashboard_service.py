"""Dashboard aggregate services."""

from __future__ import annotations

from collections.abc import Sequence

from sqlmodel import Session

from gym_backend.core.constants import EXPIRING_WINDOW_DAYS, PaymentStatus, today
from gym_backend.models.member import Member
from gym_backend.repositories import member_repo
from gym_backend.schemas.dashboard import DashboardStats
from gym_backend.services import expiry_service


def get_stats(session: Session) -> DashboardStats:
    """Sweep expired memberships, then count members by state."""

    expiry_service.run_inline_auto_expire(session)
    as_of = today()
    return DashboardStats(
        total_members=member_repo.count_members(session),
        active_members=member_repo.count_members(session, PaymentStatus.PAID),
        unpaid_members=member_repo.count_members(session, PaymentStatus.UNPAID),
        expiring_members=member_repo.count_expiring_members(
            session, as_of, EXPIRING_WINDOW_DAYS
        ),
    )


def list_expiring_members(session: Session) -> Sequence[Member]:
    """Return members whose membership ends within the next week."""

    expiry_service.run_inline_auto_expire(session)
    return member_repo.list_expiring_members(session, today(), EXPIRING_WINDOW_DAYS)
