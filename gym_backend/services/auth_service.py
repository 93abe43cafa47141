"""Admin authentication and access token services."""

from __future__ import annotations

import logging
from datetime import timedelta

import jwt
from pydantic import ValidationError
from sqlmodel import Session, col, select

from gym_backend.core.config import Settings
from gym_backend.core.errors import (
    ForbiddenError,
    InvalidInputError,
    UnauthorizedError,
)
from gym_backend.core.security import decode_token, encode_token, verify_password
from gym_backend.models.admin_user import AdminUser
from gym_backend.schemas.auth import AdminIdentity, AdminLoginInput

logger = logging.getLogger(__name__)

BEARER_PREFIX = "bearer "


def parse_login_input(username: object, password: object) -> AdminLoginInput:
    """Return validated login input or raise ``InvalidInputError``."""

    try:
        return AdminLoginInput.model_validate({"username": username, "password": password})
    except ValidationError as exc:
        raise InvalidInputError("Username and password are required") from exc


def authenticate_admin(session: Session, username: str, password: str) -> AdminIdentity:
    """Authenticate an admin account by username and password."""

    admin_user = session.exec(select(AdminUser).where(col(AdminUser.username) == username)).first()
    if admin_user is None or admin_user.id is None:
        raise UnauthorizedError("Invalid credentials")
    if not verify_password(password, admin_user.password_hash):
        logger.info("Rejected login for %s", username)
        raise UnauthorizedError("Invalid credentials")
    return AdminIdentity(id=admin_user.id, username=admin_user.username)


def issue_access_token(settings: Settings, identity: AdminIdentity) -> str:
    """Sign an access token for ``identity``."""

    return encode_token(
        {"sub": str(identity.id), "id": identity.id, "username": identity.username},
        secret_key=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        expires_in=timedelta(hours=settings.access_token_expire_hours),
    )


def verify_access_token(settings: Settings, token: str) -> AdminIdentity:
    """Return the identity in ``token`` or raise by failure reason."""

    try:
        claims = decode_token(
            token,
            secret_key=settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
        )
    except jwt.ExpiredSignatureError as exc:
        raise UnauthorizedError("Token expired") from exc
    except jwt.InvalidTokenError as exc:
        raise ForbiddenError("Invalid token") from exc

    try:
        return AdminIdentity.model_validate(claims)
    except ValidationError as exc:
        raise ForbiddenError("Invalid token") from exc


def extract_bearer_token(authorization: str | None) -> str | None:
    """Return the token part of an ``Authorization: Bearer`` header."""

    if authorization is None:
        return None
    if not authorization.lower().startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX) :].strip()
    return token or None
