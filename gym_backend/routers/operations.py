"""Health check and operational routes."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlmodel import Session

from gym_backend.db.session import get_session
from gym_backend.schemas.member import AutoExpireResponse
from gym_backend.services import expiry_service

router = APIRouter()


@router.get("/")
def health():
    return {"success": True, "message": "Server is awake and running"}


@router.post("/api/auto-expire", response_model=AutoExpireResponse)
def auto_expire(session: Annotated[Session, Depends(get_session)]):
    expired_members = expiry_service.run_auto_expire(session)
    return AutoExpireResponse(
        message=f"Auto-expired {len(expired_members)} members",
        expired_members=expired_members,
    )
