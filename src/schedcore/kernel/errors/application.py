"""Application-layer errors – raised while configuring or driving schedules."""

from __future__ import annotations

from typing import Any

from schedcore.kernel.errors.base import BaseError


class ApplicationError(BaseError):
    """Cross-cutting application-layer concern."""

    default_code = "application_error"


class ConfigurationError(ApplicationError):
    """A schedule was configured with invalid input.

    Always raised synchronously from a builder or factory call, never from a
    scheduler tick.
    """

    default_code = "configuration_error"


class OperationCancelledError(ApplicationError):
    """Cooperative cancellation was requested through a cancellation token."""

    default_code = "operation_cancelled"

    def __init__(self, message: str = "Operation was cancelled", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


__all__ = ["ApplicationError", "ConfigurationError", "OperationCancelledError"]
