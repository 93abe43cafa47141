"""Member input and response schemas."""

from __future__ import annotations

import re
from datetime import date, datetime

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from gym_backend.core.constants import DEFAULT_MEMBER_EMAIL, MembershipType, PaymentStatus

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_NON_DIGIT_PATTERN = re.compile(r"\D")
_MOBILE_LEADING_DIGITS = frozenset("6789")


def strip_phone(phone: str) -> str:
    """Return only the digits of a phone number."""

    return _NON_DIGIT_PATTERN.sub("", phone)


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        return datetime.fromisoformat(value).date()


class MemberInput(BaseModel):
    """Validated member form payload.

    Fields are checked in declaration order and the first failing field is
    reported to the client, so the order below is part of the contract.
    """

    name: str
    email: str
    phone: str
    membership_type: MembershipType
    payment_status: PaymentStatus
    start_date: date
    end_date: date

    @field_validator("name", mode="before")
    @classmethod
    def _validate_name(cls, value: object) -> str:
        name = value.strip() if isinstance(value, str) else ""
        if not name:
            raise ValueError("Name is required")
        if len(name) < 2:
            raise ValueError("Name must be at least 2 characters long")
        return name

    @field_validator("email", mode="before")
    @classmethod
    def _validate_email(cls, value: object) -> str:
        email = value.strip() if isinstance(value, str) else ""
        if not email:
            return DEFAULT_MEMBER_EMAIL
        if email != DEFAULT_MEMBER_EMAIL and _EMAIL_PATTERN.match(email) is None:
            raise ValueError("Please enter a valid email address")
        return email

    @field_validator("phone", mode="before")
    @classmethod
    def _validate_phone(cls, value: object) -> str:
        phone = value.strip() if isinstance(value, str) else ""
        if not phone:
            raise ValueError("Phone is required")

        digits = strip_phone(phone)
        if len(digits) < 10:
            raise ValueError("Phone number must have at least 10 digits")
        if len(digits) > 15:
            raise ValueError("Phone number cannot exceed 15 digits")
        if len(digits) == 10 and digits[0] not in _MOBILE_LEADING_DIGITS:
            raise ValueError("Invalid Indian phone number format")
        return phone

    @field_validator("membership_type", mode="before")
    @classmethod
    def _validate_membership_type(cls, value: object) -> MembershipType:
        try:
            return MembershipType(value)
        except ValueError:
            raise ValueError("Invalid membership type") from None

    @field_validator("payment_status", mode="before")
    @classmethod
    def _validate_payment_status(cls, value: object) -> PaymentStatus:
        try:
            return PaymentStatus(value)
        except ValueError:
            raise ValueError("Invalid payment status") from None

    @field_validator("start_date", mode="before")
    @classmethod
    def _validate_start_date(cls, value: object) -> date:
        return _coerce_date(value, label="Start date", lowercase_label="start date")

    @field_validator("end_date", mode="before")
    @classmethod
    def _validate_end_date(cls, value: object) -> date:
        return _coerce_date(value, label="End date", lowercase_label="end date")

    @model_validator(mode="after")
    def _ensure_end_after_start(self) -> MemberInput:
        if self.end_date <= self.start_date:
            raise ValueError("End date must be after start date")
        return self

    @property
    def phone_digits(self) -> str:
        return strip_phone(self.phone)


def _coerce_date(value: object, *, label: str, lowercase_label: str) -> date:
    if isinstance(value, date):
        return value
    raw = value.strip() if isinstance(value, str) else ""
    if not raw:
        raise ValueError(f"{label} is required")
    try:
        return _parse_date(raw)
    except ValueError:
        raise ValueError(f"Invalid {lowercase_label} format") from None


class MemberRead(BaseModel):
    """Member representation returned to API clients."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    id: int
    name: str
    email: str
    phone: str
    membership_type: MembershipType
    start_date: date
    end_date: date
    payment_status: PaymentStatus
    photo_url: str | None = None
    created_at: datetime
    updated_at: datetime

    @computed_field  # type: ignore[prop-decorator]
    @property
    def photo(self) -> str | None:
        """Same URL as ``photoUrl``, under the field name older clients read."""
        return self.photo_url


class MemberPage(BaseModel):
    """Paginated member listing."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    data: list[MemberRead]
    total: int
    page: int
    total_pages: int
    has_more: bool


class ExistsResponse(BaseModel):
    """Result of a phone or email existence check."""

    exists: bool


class ExpiredMember(BaseModel):
    """Member affected by an auto-expiry sweep."""

    id: int
    name: str
    email: str


class AutoExpireResponse(BaseModel):
    """Result of a manually triggered sweep."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool = True
    message: str
    expired_members: list[ExpiredMember] = Field(default_factory=list)
