"""Gym member model."""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import CheckConstraint, Column, Date, DateTime, Index, String, func
from sqlalchemy import Enum as SAEnum
from sqlmodel import Field, SQLModel, col

from gym_backend.core.constants import (
    DEFAULT_MEMBER_EMAIL,
    MembershipType,
    PaymentStatus,
    enum_values,
    utcnow,
)


class Member(SQLModel, table=True):
    """Gym membership record."""

    __tablename__ = "members"
    __table_args__ = (
        CheckConstraint("end_date > start_date", name="ck_members_end_after_start"),
    )

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(sa_column=Column(String(255), nullable=False))
    email: str = Field(sa_column=Column(String(255), nullable=False, index=True))
    phone: str = Field(sa_column=Column(String(32), nullable=False))
    phone_digits: str = Field(sa_column=Column(String(20), nullable=False, index=True))
    membership_type: MembershipType = Field(
        sa_column=Column(
            SAEnum(
                MembershipType,
                name="membership_type",
                native_enum=False,
                values_callable=enum_values,
            ),
            nullable=False,
        )
    )
    start_date: date = Field(sa_column=Column(Date, nullable=False))
    end_date: date = Field(sa_column=Column(Date, nullable=False, index=True))
    payment_status: PaymentStatus = Field(
        default=PaymentStatus.UNPAID,
        sa_column=Column(
            SAEnum(
                PaymentStatus,
                name="payment_status",
                native_enum=False,
                values_callable=enum_values,
            ),
            nullable=False,
            index=True,
        ),
    )
    photo_url: str | None = Field(default=None, sa_column=Column(String(500), nullable=True))
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, onupdate=utcnow),
    )


# The placeholder address may repeat; every other email is unique ignoring case.
Index(
    "uq_members_email_lower",
    func.lower(col(Member.email)),
    unique=True,
    sqlite_where=col(Member.email) != DEFAULT_MEMBER_EMAIL,
    postgresql_where=col(Member.email) != DEFAULT_MEMBER_EMAIL,
)
