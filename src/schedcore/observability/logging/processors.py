"""Observability – get_logger helper and scheduler-context processor."""
from __future__ import annotations

from typing import Any

import structlog


class ScheduledEventProcessor:
    """structlog processor that normalises the ``event_id`` key.

    Scheduler log calls bind the entry identifier as ``event_id``; when a
    caller passes a :class:`~schedcore.scheduling.event.ScheduledEvent`
    instead of its id the processor collapses it to the string key so JSON
    rendering stays flat.
    """

    def __call__(
        self,
        logger: Any,           # noqa: ARG002
        method_name: str,      # noqa: ARG002
        event_dict: dict[str, Any],
    ) -> dict[str, Any]:
        value = event_dict.get("event_id")
        if value is not None and not isinstance(value, str):
            unique_id = getattr(value, "overlapping_unique_identifier", None)
            event_dict["event_id"] = unique_id() if callable(unique_id) else str(value)
        return event_dict


def get_logger(name: str | None = None, **initial_values: Any) -> Any:
    """Return a bound structlog logger.

    Parameters
    ----------
    name:
        Logger name (typically ``__name__`` of the calling module).
    **initial_values:
        Key-value pairs to bind on the returned logger.
    """
    logger = structlog.get_logger(name)
    if initial_values:
        logger = logger.bind(**initial_values)
    return logger


__all__ = ["ScheduledEventProcessor", "get_logger"]
