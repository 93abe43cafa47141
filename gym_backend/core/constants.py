"""Application-wide constants and shared values."""

from __future__ import annotations

from datetime import UTC, date, datetime
from enum import Enum, StrEnum

DEFAULT_MEMBER_EMAIL = "member@revivefitness.com"
EXPIRING_WINDOW_DAYS = 7


class MembershipType(StrEnum):
    """Supported membership plans."""

    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class PaymentStatus(StrEnum):
    """Supported payment status values."""

    PAID = "paid"
    UNPAID = "unpaid"


def enum_values(enum_cls: type[Enum]) -> list[str]:
    """Return enum values for SQLAlchemy enum configuration."""

    return [str(item.value) for item in enum_cls]


def utcnow() -> datetime:
    """Return timezone-aware current UTC datetime."""

    return datetime.now(UTC)


def today() -> date:
    """Return the current local calendar date used for membership expiry."""

    return date.today()
