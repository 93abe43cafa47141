"""Member domain services."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

from pydantic import ValidationError
from sqlmodel import Session

from gym_backend.core.constants import PaymentStatus
from gym_backend.core.errors import ConstraintViolationError, InvalidInputError, NotFoundError
from gym_backend.models.member import Member
from gym_backend.repositories import member_repo
from gym_backend.schemas.member import MemberInput
from gym_backend.services import expiry_service

MEMBER_NOT_FOUND_MESSAGE = "Member not found"


@dataclass(frozen=True)
class MemberListing:
    """One page of members with paging metadata."""

    members: Sequence[Member]
    total: int
    page: int
    total_pages: int
    has_more: bool


@dataclass(frozen=True)
class MemberUpdateResult:
    """Updated member and the photo URL it had before the update."""

    member: Member
    old_photo_url: str | None


def parse_member_input(
    *,
    name: str | None,
    email: str | None,
    phone: str | None,
    membership_type: str | None,
    payment_status: str | None,
    start_date: str | None,
    end_date: str | None,
) -> MemberInput:
    """Return validated member payload or raise with the first failing rule."""

    try:
        return MemberInput.model_validate(
            {
                "name": name,
                "email": email,
                "phone": phone,
                "membership_type": membership_type,
                "payment_status": payment_status,
                "start_date": start_date,
                "end_date": end_date,
            }
        )
    except ValidationError as exc:
        raise InvalidInputError(_first_error_message(exc)) from exc


def list_members(
    session: Session,
    *,
    search: str | None,
    status: str | None,
    page: int,
    limit: int,
) -> MemberListing:
    """Sweep expired memberships, then return one filtered page."""

    expiry_service.run_inline_auto_expire(session)

    status_filter = _parse_status_filter(status)
    search_term = search.strip() if isinstance(search, str) else None
    members, total = member_repo.list_members(
        session,
        search=search_term or None,
        status=status_filter,
        offset=(page - 1) * limit,
        limit=limit,
    )
    total_pages = math.ceil(total / limit)
    return MemberListing(
        members=members,
        total=total,
        page=page,
        total_pages=total_pages,
        has_more=page < total_pages,
    )


def get_member(session: Session, member_id: int) -> Member:
    """Return a member or raise ``NotFoundError``."""

    member = member_repo.get_member_by_id(session, member_id)
    if member is None:
        raise NotFoundError(MEMBER_NOT_FOUND_MESSAGE)
    return member


def create_member(
    session: Session,
    input_data: MemberInput,
    photo_url: str | None = None,
) -> Member:
    """Create a member from validated input."""

    if member_repo.phone_exists(session, input_data.phone):
        raise ConstraintViolationError("Phone number already exists")

    member = Member(
        name=input_data.name,
        email=input_data.email,
        phone=input_data.phone,
        phone_digits=input_data.phone_digits,
        membership_type=input_data.membership_type,
        start_date=input_data.start_date,
        end_date=input_data.end_date,
        payment_status=input_data.payment_status,
        photo_url=photo_url,
    )
    return member_repo.create_member(session, member)


def update_member(
    session: Session,
    member_id: int,
    input_data: MemberInput,
    photo_url: str | None = None,
) -> MemberUpdateResult:
    """Replace all mutable fields; keep the current photo unless a new one is given."""

    member = get_member(session, member_id)
    if member_repo.phone_exists(session, input_data.phone, exclude_id=member_id):
        raise ConstraintViolationError("Phone number already exists")

    old_photo_url = member.photo_url
    member.name = input_data.name
    member.email = input_data.email
    member.phone = input_data.phone
    member.phone_digits = input_data.phone_digits
    member.membership_type = input_data.membership_type
    member.start_date = input_data.start_date
    member.end_date = input_data.end_date
    member.payment_status = input_data.payment_status
    member.photo_url = photo_url or old_photo_url

    updated_member = member_repo.update_member(session, member)
    return MemberUpdateResult(member=updated_member, old_photo_url=old_photo_url)


def delete_member(session: Session, member_id: int) -> str | None:
    """Delete a member and return the photo URL it referenced."""

    member = get_member(session, member_id)
    photo_url = member.photo_url
    member_repo.delete_member(session, member)
    return photo_url


def phone_exists(session: Session, phone: str, exclude_id: int | None = None) -> bool:
    return member_repo.phone_exists(session, phone, exclude_id)


def email_exists(session: Session, email: str, exclude_id: int | None = None) -> bool:
    return member_repo.email_exists(session, email.strip(), exclude_id)


def _parse_status_filter(status: str | None) -> PaymentStatus | None:
    if status is None or status == "" or status == "all":
        return None
    try:
        return PaymentStatus(status)
    except ValueError:
        raise InvalidInputError("Invalid payment status") from None


def _first_error_message(exc: ValidationError) -> str:
    first_error = exc.errors()[0]
    cause = first_error.get("ctx", {}).get("error")
    if isinstance(cause, ValueError):
        return str(cause)
    return str(first_error.get("msg", "Invalid member data"))
