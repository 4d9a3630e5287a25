"""Kernel error hierarchy — public re-export surface.

Hierarchy::

    BaseError
    ├── ApplicationError         (application.py)
    │   ├── ConfigurationError
    │   └── OperationCancelledError
    └── InfrastructureError      (infrastructure.py)
        └── ResolutionError

Scheduling-specific configuration errors live in
:mod:`schedcore.scheduling.errors`; settings errors in
:mod:`schedcore.config.validation`.
"""

from schedcore.kernel.errors.application import (
    ApplicationError,
    ConfigurationError,
    OperationCancelledError,
)
from schedcore.kernel.errors.base import BaseError
from schedcore.kernel.errors.infrastructure import InfrastructureError, ResolutionError

__all__ = [
    "ApplicationError",
    "BaseError",
    "ConfigurationError",
    "InfrastructureError",
    "OperationCancelledError",
    "ResolutionError",
]
