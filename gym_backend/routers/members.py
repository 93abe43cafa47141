"""Member management routes."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Annotated

from fastapi import APIRouter, Depends, Form, Query, Request, status
from sqlmodel import Session
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from gym_backend.core.config import Settings
from gym_backend.core.errors import ServiceError
from gym_backend.db.session import get_session
from gym_backend.dependencies import get_app_settings, get_photo_storage, require_admin
from gym_backend.models.member import Member
from gym_backend.schemas.member import ExistsResponse, MemberInput, MemberPage, MemberRead
from gym_backend.services import member_service
from gym_backend.services.member_service import MemberUpdateResult
from gym_backend.services.photo_storage import (
    PhotoStorage,
    UploadedPhoto,
    delete_photo_quietly,
    store_member_photo,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/members", dependencies=[Depends(require_admin)])


@router.get("/check-phone/{phone}", response_model=ExistsResponse)
def check_phone(
    phone: str,
    session: Annotated[Session, Depends(get_session)],
    exclude_id: Annotated[int | None, Query(alias="excludeId")] = None,
):
    return ExistsResponse(exists=member_service.phone_exists(session, phone, exclude_id))


@router.get("/check-email/{email}", response_model=ExistsResponse)
def check_email(
    email: str,
    session: Annotated[Session, Depends(get_session)],
    exclude_id: Annotated[int | None, Query(alias="excludeId")] = None,
):
    return ExistsResponse(exists=member_service.email_exists(session, email, exclude_id))


@router.get("", response_model=MemberPage)
def list_members(
    session: Annotated[Session, Depends(get_session)],
    settings: Annotated[Settings, Depends(get_app_settings)],
    search: str | None = None,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int | None, Query(ge=1)] = None,
):
    page_size = min(limit or settings.default_page_size, settings.max_page_size)
    listing = member_service.list_members(
        session,
        search=search,
        status=status_filter,
        page=page,
        limit=page_size,
    )
    logger.debug(
        "Listed %d of %d members (page %d/%d)",
        len(listing.members),
        listing.total,
        listing.page,
        listing.total_pages,
    )
    return MemberPage(
        data=[MemberRead.model_validate(member) for member in listing.members],
        total=listing.total,
        page=listing.page,
        total_pages=listing.total_pages,
        has_more=listing.has_more,
    )


@router.get("/{id}", response_model=MemberRead)
def get_member(id: int, session: Annotated[Session, Depends(get_session)]):
    return MemberRead.model_validate(member_service.get_member(session, id))


@router.post("", response_model=MemberRead, status_code=status.HTTP_201_CREATED)
async def create_member(
    request: Request,
    session: Annotated[Session, Depends(get_session)],
    settings: Annotated[Settings, Depends(get_app_settings)],
    storage: Annotated[PhotoStorage, Depends(get_photo_storage)],
    name: Annotated[str | None, Form()] = None,
    email: Annotated[str | None, Form()] = None,
    phone: Annotated[str | None, Form()] = None,
    membership_type: Annotated[str | None, Form(alias="membershipType")] = None,
    payment_status: Annotated[str | None, Form(alias="paymentStatus")] = None,
    start_date: Annotated[str | None, Form(alias="startDate")] = None,
    end_date: Annotated[str | None, Form(alias="endDate")] = None,
):
    input_data = member_service.parse_member_input(
        name=name,
        email=email,
        phone=phone,
        membership_type=membership_type,
        payment_status=payment_status,
        start_date=start_date,
        end_date=end_date,
    )
    photo = await _read_uploaded_photo(request)
    member = await run_in_threadpool(
        _create_member_with_photo, session, storage, settings, input_data, photo
    )

    logger.info("Created member %s (%s)", member.id, member.name)
    return MemberRead.model_validate(member)


@router.put("/{id}", response_model=MemberRead)
async def update_member(
    request: Request,
    id: int,
    session: Annotated[Session, Depends(get_session)],
    settings: Annotated[Settings, Depends(get_app_settings)],
    storage: Annotated[PhotoStorage, Depends(get_photo_storage)],
    name: Annotated[str | None, Form()] = None,
    email: Annotated[str | None, Form()] = None,
    phone: Annotated[str | None, Form()] = None,
    membership_type: Annotated[str | None, Form(alias="membershipType")] = None,
    payment_status: Annotated[str | None, Form(alias="paymentStatus")] = None,
    start_date: Annotated[str | None, Form(alias="startDate")] = None,
    end_date: Annotated[str | None, Form(alias="endDate")] = None,
):
    input_data = member_service.parse_member_input(
        name=name,
        email=email,
        phone=phone,
        membership_type=membership_type,
        payment_status=payment_status,
        start_date=start_date,
        end_date=end_date,
    )
    photo = await _read_uploaded_photo(request)
    result = await run_in_threadpool(
        _update_member_with_photo, session, storage, settings, id, input_data, photo
    )

    logger.info("Updated member %s", id)
    return MemberRead.model_validate(result.member)


@router.delete("/{id}")
def delete_member(
    id: int,
    session: Annotated[Session, Depends(get_session)],
    storage: Annotated[PhotoStorage, Depends(get_photo_storage)],
):
    photo_url = member_service.delete_member(session, id)
    delete_photo_quietly(storage, photo_url)
    logger.info("Deleted member %s", id)
    return {"message": "Member deleted successfully"}


async def _read_uploaded_photo(request: Request) -> UploadedPhoto | None:
    photo_file = _extract_photo_file(await request.form())
    if photo_file is None:
        return None
    return UploadedPhoto(content=await photo_file.read(), filename=str(photo_file.filename))


# The helpers below call the image host and the database, so handlers run them
# in the threadpool rather than on the event loop.


def _store_photo(
    storage: PhotoStorage,
    settings: Settings,
    photo: UploadedPhoto | None,
) -> str | None:
    if photo is None:
        return None
    return store_member_photo(
        storage,
        content=photo.content,
        filename=photo.filename,
        max_bytes=settings.max_photo_bytes,
    )


def _create_member_with_photo(
    session: Session,
    storage: PhotoStorage,
    settings: Settings,
    input_data: MemberInput,
    photo: UploadedPhoto | None,
) -> Member:
    photo_url = _store_photo(storage, settings, photo)
    try:
        return member_service.create_member(session, input_data, photo_url)
    except ServiceError:
        delete_photo_quietly(storage, photo_url)
        raise


def _update_member_with_photo(
    session: Session,
    storage: PhotoStorage,
    settings: Settings,
    member_id: int,
    input_data: MemberInput,
    photo: UploadedPhoto | None,
) -> MemberUpdateResult:
    photo_url = _store_photo(storage, settings, photo)
    try:
        result = member_service.update_member(session, member_id, input_data, photo_url)
    except ServiceError:
        delete_photo_quietly(storage, photo_url)
        raise

    if photo_url is not None:
        delete_photo_quietly(storage, result.old_photo_url)
    return result


def _extract_photo_file(form_data: Mapping[str, object]) -> UploadFile | None:
    uploaded_file = form_data.get("photo")
    if not isinstance(uploaded_file, UploadFile):
        return None
    if uploaded_file.filename is None or not uploaded_file.filename.strip():
        return None
    return uploaded_file
