"""Kernel error hierarchy – public re-export surface.

Hierarchy::

    BaseError
    ├── DomainError          (domain.py)
    │   ├── ValidationError
    │   └── NotFoundError
    ├── ApplicationError     (application.py)
    │   └── TimeoutError
    └── InfrastructureError  (infrastructure.py)
        ├── SerializationError
        └── ExternalServiceError
"""

from flcm_rollout.kernel.errors.application import ApplicationError, TimeoutError
from flcm_rollout.kernel.errors.base import BaseError
from flcm_rollout.kernel.errors.domain import DomainError, NotFoundError, ValidationError
from flcm_rollout.kernel.errors.infrastructure import (
    ExternalServiceError,
    InfrastructureError,
    SerializationError,
)

__all__ = [
    "ApplicationError",
    "BaseError",
    "DomainError",
    "ExternalServiceError",
    "InfrastructureError",
    "NotFoundError",
    "SerializationError",
    "TimeoutError",
    "ValidationError",
]
