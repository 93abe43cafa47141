"""Dashboard routes."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlmodel import Session

from gym_backend.db.session import get_session
from gym_backend.dependencies import require_admin
from gym_backend.schemas.dashboard import DashboardStats
from gym_backend.schemas.member import MemberRead
from gym_backend.services import dashboard_service

router = APIRouter(prefix="/api/dashboard", dependencies=[Depends(require_admin)])


@router.get("/stats", response_model=DashboardStats)
def stats(session: Annotated[Session, Depends(get_session)]):
    return dashboard_service.get_stats(session)


@router.get("/expiring", response_model=list[MemberRead])
def expiring_members(session: Annotated[Session, Depends(get_session)]):
    return [
        MemberRead.model_validate(member)
        for member in dashboard_service.list_expiring_members(session)
    ]
