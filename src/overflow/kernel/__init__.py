"""Kernel – framework-agnostic building blocks."""

from overflow.kernel.errors import (
    ApplicationError,
    BaseError,
    ChannelUnavailableError,
    ConflictError,
    DomainError,
    ExternalServiceError,
    ForbiddenError,
    InfrastructureError,
    InvariantViolationError,
    NotFoundError,
    ProjectionUnavailableError,
    SerializationError,
    UnauthenticatedError,
    ValidationError,
)

__all__ = [
    "ApplicationError",
    "BaseError",
    "ChannelUnavailableError",
    "ConflictError",
    "DomainError",
    "ExternalServiceError",
    "ForbiddenError",
    "InfrastructureError",
    "InvariantViolationError",
    "NotFoundError",
    "ProjectionUnavailableError",
    "SerializationError",
    "UnauthenticatedError",
    "ValidationError",
]
