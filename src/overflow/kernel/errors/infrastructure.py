"""Infrastructure errors – broker, search engine and payload failures."""

from __future__ import annotations

from typing import Any

from overflow.kernel.errors.base import BaseError


class InfrastructureError(BaseError):
    """Infrastructure / I/O failure that is not a business rule violation."""

    default_code = "infrastructure_error"


class ChannelUnavailableError(InfrastructureError):
    """The message broker refused or could not take a publish."""

    default_code = "channel_unavailable"
    transient = True

    def __init__(
        self,
        message: str = "Message channel unavailable",
        *,
        topic: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.topic = topic


class ProjectionUnavailableError(InfrastructureError):
    """The search projection could not be reached (transient)."""

    default_code = "projection_unavailable"
    transient = True

    def __init__(
        self,
        message: str = "Search projection unavailable",
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)


class SerializationError(InfrastructureError):
    """Failed to serialize or deserialize a payload."""

    default_code = "serialization_error"

    def __init__(
        self,
        message: str,
        *,
        payload_type: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.payload_type = payload_type


class ExternalServiceError(InfrastructureError):
    """An external service returned an unexpected, non-transient response."""

    default_code = "external_service_error"

    def __init__(
        self,
        service: str,
        message: str | None = None,
        *,
        status_code: int | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message or f"External service '{service}' error", **kwargs)
        self.service = service
        self.status_code = status_code


__all__ = [
    "ChannelUnavailableError",
    "ExternalServiceError",
    "InfrastructureError",
    "ProjectionUnavailableError",
    "SerializationError",
]
