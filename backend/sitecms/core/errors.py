# backend/sitecms/core/errors.py

from __future__ import annotations

from fastapi import Request, status
from fastapi.responses import JSONResponse


class CMSError(Exception):
    """
    Base for every domain error raised by the CMS core.

    The API layer renders these as:
      {"detail": {"code": <code>, "message": <message>}}
    """

    code: str = "cms_error"
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, *, code: str | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def to_detail(self) -> dict:
        return {"code": self.code, "message": self.message}


class ValidationError(CMSError):
    code = "validation_error"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class DuplicateSlugError(ValidationError):
    code = "duplicate_slug"
    status_code = status.HTTP_409_CONFLICT


class NotFoundError(CMSError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class PermissionDenied(CMSError):
    code = "permission_denied"
    status_code = status.HTTP_403_FORBIDDEN


class ConflictError(CMSError):
    code = "conflict"
    status_code = status.HTTP_409_CONFLICT


class BackendError(CMSError):
    """Storage failed for a reason opaque to the core (network, constraint, ...)."""

    code = "backend_error"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


async def cms_error_handler(_request: Request, exc: CMSError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_detail()})
