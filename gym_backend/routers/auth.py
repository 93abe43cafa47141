"""Admin authentication routes."""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Header
from sqlmodel import Session

from gym_backend.core.config import Settings
from gym_backend.core.errors import ServiceError, UnauthorizedError
from gym_backend.db.session import get_session
from gym_backend.dependencies import get_app_settings
from gym_backend.schemas.auth import LoginResponse, VerifyResponse
from gym_backend.services.auth_service import (
    authenticate_admin,
    extract_bearer_token,
    issue_access_token,
    parse_login_input,
    verify_access_token,
)

router = APIRouter(prefix="/api/auth")


@router.post("/login", response_model=LoginResponse)
def login(
    session: Annotated[Session, Depends(get_session)],
    settings: Annotated[Settings, Depends(get_app_settings)],
    payload: Annotated[dict[str, Any] | None, Body()] = None,
):
    payload = payload or {}
    login_input = parse_login_input(payload.get("username"), payload.get("password"))
    identity = authenticate_admin(
        session,
        username=login_input.username,
        password=login_input.password,
    )
    token = issue_access_token(settings, identity)
    return LoginResponse(token=token, user=identity)


@router.get("/verify", response_model=VerifyResponse)
def verify(
    settings: Annotated[Settings, Depends(get_app_settings)],
    authorization: Annotated[str | None, Header()] = None,
):
    token = extract_bearer_token(authorization)
    if token is None:
        raise UnauthorizedError("No token provided")
    try:
        identity = verify_access_token(settings, token)
    except ServiceError as exc:
        raise UnauthorizedError("Invalid or expired token") from exc
    return VerifyResponse(user=identity)
