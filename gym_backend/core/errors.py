"""Service error kinds and their HTTP mapping."""

from __future__ import annotations

from enum import StrEnum

from fastapi import status


class ErrorKind(StrEnum):
    """Closed set of error kinds raised by services."""

    VALIDATION = "validation"
    CONSTRAINT = "constraint"
    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    UPLOAD = "upload"
    UNAVAILABLE = "unavailable"
    INTERNAL = "internal"


STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.CONSTRAINT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.UPLOAD: status.HTTP_400_BAD_REQUEST,
    ErrorKind.UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class ServiceError(Exception):
    """Base error carrying a kind and a client-safe message."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND[self.kind]


class InvalidInputError(ServiceError):
    kind = ErrorKind.VALIDATION


class ConstraintViolationError(ServiceError):
    kind = ErrorKind.CONSTRAINT


class NotFoundError(ServiceError):
    kind = ErrorKind.NOT_FOUND


class UnauthorizedError(ServiceError):
    kind = ErrorKind.UNAUTHORIZED


class ForbiddenError(ServiceError):
    kind = ErrorKind.FORBIDDEN


class PhotoUploadError(ServiceError):
    kind = ErrorKind.UPLOAD
