"""Kernel error hierarchy – public re-export surface.

Hierarchy::

    BaseError
    ├── DomainError          (domain.py)
    │   ├── InvariantViolationError
    │   ├── ValidationError
    │   ├── NotFoundError
    │   └── ConflictError
    ├── ApplicationError     (application.py)
    │   ├── UnauthenticatedError
    │   └── ForbiddenError
    └── InfrastructureError  (infrastructure.py)
        ├── ChannelUnavailableError
        ├── ProjectionUnavailableError
        ├── SerializationError
        └── ExternalServiceError
"""

from overflow.kernel.errors.application import (
    ApplicationError,
    ForbiddenError,
    UnauthenticatedError,
)
from overflow.kernel.errors.base import BaseError
from overflow.kernel.errors.domain import (
    ConflictError,
    DomainError,
    InvariantViolationError,
    NotFoundError,
    ValidationError,
)
from overflow.kernel.errors.infrastructure import (
    ChannelUnavailableError,
    ExternalServiceError,
    InfrastructureError,
    ProjectionUnavailableError,
    SerializationError,
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
