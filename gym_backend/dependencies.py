"""Request-scoped dependencies shared by routers."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Header, Request

from gym_backend.core.config import Settings
from gym_backend.core.errors import UnauthorizedError
from gym_backend.schemas.auth import AdminIdentity
from gym_backend.services.auth_service import extract_bearer_token, verify_access_token
from gym_backend.services.photo_storage import PhotoStorage


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_photo_storage(request: Request) -> PhotoStorage:
    return request.app.state.photo_storage


def require_admin(
    settings: Annotated[Settings, Depends(get_app_settings)],
    authorization: Annotated[str | None, Header()] = None,
) -> AdminIdentity:
    """Resolve the admin behind the bearer token or reject the request."""

    token = extract_bearer_token(authorization)
    if token is None:
        raise UnauthorizedError("Access denied. No token provided.")
    return verify_access_token(settings, token)
