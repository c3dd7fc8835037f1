"""Application-layer errors – caller identity and ownership checks."""

from __future__ import annotations

from typing import Any

from overflow.kernel.errors.base import BaseError


class ApplicationError(BaseError):
    """Cross-cutting application-layer concern."""

    default_code = "application_error"


class UnauthenticatedError(ApplicationError):
    """The operation needs a caller identity and none was supplied."""

    default_code = "unauthenticated"

    def __init__(self, message: str = "Authentication required", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class ForbiddenError(ApplicationError):
    """The caller does not own the resource it tries to change."""

    default_code = "forbidden"

    def __init__(
        self,
        message: str = "Access denied",
        *,
        caller_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.caller_id = caller_id


__all__ = [
    "ApplicationError",
    "ForbiddenError",
    "UnauthenticatedError",
]
