"""Infrastructure errors – failures of collaborators the scheduler depends on."""

from __future__ import annotations

from typing import Any

from schedcore.kernel.errors.base import BaseError


class InfrastructureError(BaseError):
    """Infrastructure failure that is not a configuration mistake."""

    default_code = "infrastructure_error"


class ResolutionError(InfrastructureError):
    """The resolution container could not produce an instance of a type."""

    default_code = "resolution_error"

    def __init__(
        self,
        target: Any,
        message: str | None = None,
        **kwargs: Any,
    ) -> None:
        name = getattr(target, "__qualname__", repr(target))
        super().__init__(message or f"Could not resolve '{name}'", **kwargs)
        self.target = target


__all__ = ["InfrastructureError", "ResolutionError"]
