"""Database access helpers for members."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, timedelta
from typing import Any

from sqlalchemy import ColumnElement, Row, func, or_, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, select

from gym_backend.core.constants import DEFAULT_MEMBER_EMAIL, PaymentStatus
from gym_backend.core.errors import ConstraintViolationError
from gym_backend.models.member import Member
from gym_backend.schemas.member import strip_phone


def get_member_by_id(session: Session, member_id: int) -> Member | None:
    """Return member by primary key."""

    return session.get(Member, member_id)


def create_member(session: Session, member: Member) -> Member:
    """Persist a new member."""

    session.add(member)
    _commit_or_raise_duplicate(session)
    session.refresh(member)
    return member


def update_member(session: Session, member: Member) -> Member:
    """Persist an updated member."""

    session.add(member)
    _commit_or_raise_duplicate(session)
    session.refresh(member)
    return member


def delete_member(session: Session, member: Member) -> None:
    """Hard-delete a member."""

    session.delete(member)
    session.commit()


def phone_exists(session: Session, phone: str, exclude_id: int | None = None) -> bool:
    """Return whether another member uses the same digits of ``phone``."""

    statement = select(Member.id).where(col(Member.phone_digits) == strip_phone(phone))
    if exclude_id is not None:
        statement = statement.where(col(Member.id) != exclude_id)
    return session.exec(statement).first() is not None


def email_exists(session: Session, email: str, exclude_id: int | None = None) -> bool:
    """Return whether another member uses ``email``, ignoring case.

    The placeholder address never counts as taken.
    """

    if not email or email == DEFAULT_MEMBER_EMAIL:
        return False

    statement = select(Member.id).where(func.lower(col(Member.email)) == email.lower())
    if exclude_id is not None:
        statement = statement.where(col(Member.id) != exclude_id)
    return session.exec(statement).first() is not None


def expire_overdue_members(session: Session, as_of: date) -> Sequence[Row[Any]]:
    """Flip paid members whose end date is before ``as_of`` to unpaid.

    A single conditional UPDATE so concurrent sweeps never report the same row twice.
    """

    statement = (
        update(Member)
        .where(col(Member.end_date) < as_of)
        .where(col(Member.payment_status) == PaymentStatus.PAID)
        .values(payment_status=PaymentStatus.UNPAID)
        .returning(col(Member.id), col(Member.name), col(Member.email))
        .execution_options(synchronize_session=False)
    )
    rows = session.execute(statement).all()
    session.commit()
    return rows


def list_members(
    session: Session,
    *,
    search: str | None,
    status: PaymentStatus | None,
    offset: int,
    limit: int,
) -> tuple[Sequence[Member], int]:
    """Return one page of matching members and the total match count."""

    conditions = _listing_conditions(search=search, status=status)

    total = session.exec(select(func.count()).select_from(Member).where(*conditions)).one()

    statement = select(Member).where(*conditions)
    if status == PaymentStatus.UNPAID:
        # Most recently expired first.
        statement = statement.order_by(
            col(Member.end_date).desc(),
            col(Member.created_at).desc(),
            col(Member.id).desc(),
        )
    else:
        statement = statement.order_by(col(Member.created_at).desc(), col(Member.id).desc())

    members = session.exec(statement.offset(offset).limit(limit)).all()
    return members, total


def count_members(session: Session, status: PaymentStatus | None = None) -> int:
    """Return the number of members, optionally for one payment status."""

    statement = select(func.count()).select_from(Member)
    if status is not None:
        statement = statement.where(col(Member.payment_status) == status)
    return session.exec(statement).one()


def count_expiring_members(session: Session, as_of: date, window_days: int) -> int:
    """Return the number of members whose end date falls within the window."""

    statement = (
        select(func.count())
        .select_from(Member)
        .where(*_expiring_conditions(as_of, window_days))
    )
    return session.exec(statement).one()


def list_expiring_members(session: Session, as_of: date, window_days: int) -> Sequence[Member]:
    """Return members whose end date falls within the window, soonest first."""

    statement = (
        select(Member)
        .where(*_expiring_conditions(as_of, window_days))
        .order_by(col(Member.end_date).asc(), col(Member.id).asc())
    )
    return session.exec(statement).all()


def _listing_conditions(
    *,
    search: str | None,
    status: PaymentStatus | None,
) -> list[ColumnElement[bool]]:
    conditions: list[ColumnElement[bool]] = []
    if search:
        pattern = f"%{search}%"
        conditions.append(
            or_(col(Member.name).ilike(pattern), col(Member.email).ilike(pattern))
        )
    if status is not None:
        conditions.append(col(Member.payment_status) == status)
    return conditions


def _expiring_conditions(as_of: date, window_days: int) -> list[ColumnElement[bool]]:
    return [
        col(Member.end_date) >= as_of,
        col(Member.end_date) <= as_of + timedelta(days=window_days),
    ]


def _commit_or_raise_duplicate(session: Session) -> None:
    try:
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        raise ConstraintViolationError("Email already exists") from exc
