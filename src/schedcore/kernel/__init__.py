"""Kernel – framework-agnostic building blocks shared by the scheduler."""

from schedcore.kernel.errors import (
    ApplicationError,
    BaseError,
    ConfigurationError,
    InfrastructureError,
    OperationCancelledError,
    ResolutionError,
)

__all__ = [
    "ApplicationError",
    "BaseError",
    "ConfigurationError",
    "InfrastructureError",
    "OperationCancelledError",
    "ResolutionError",
]
