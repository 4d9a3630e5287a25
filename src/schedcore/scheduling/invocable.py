"""Scheduling – work targets: invocables, cancellation tokens, inline actions."""
from __future__ import annotations

import inspect
import threading
from typing import Any, Awaitable, Callable, Protocol, runtime_checkable

from schedcore.kernel.errors import OperationCancelledError

Action = Callable[[], Any]
"""A no-argument callable; may be a plain function or return an awaitable."""


class CancellationToken:
    """Thread-safe cooperative cancellation signal.

    The scheduler owns the token and cancels it on shutdown; work bodies poll
    :attr:`is_cancellation_requested` or call
    :meth:`raise_if_cancellation_requested` at safe points.
    """

    __slots__ = ("_event",)

    def __init__(self) -> None:
        self._event = threading.Event()

    @property
    def is_cancellation_requested(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def raise_if_cancellation_requested(self) -> None:
        if self._event.is_set():
            raise OperationCancelledError()

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.is_cancellation_requested})"


@runtime_checkable
class Invocable(Protocol):
    """Port: a unit of scheduled work resolved through a :class:`ScopeFactory`."""

    async def invoke(self) -> None: ...


@runtime_checkable
class CancellableInvocable(Invocable, Protocol):
    """An invocable that accepts the scheduler's cancellation token.

    The token is assigned to :attr:`cancellation_token` right before
    :meth:`invoke` runs.
    """

    cancellation_token: CancellationToken | None


def accepts_cancellation(instance: Any) -> bool:
    """Return whether *instance* takes a ``cancellation_token`` before :meth:`invoke`.

    Classes that only annotate the attribute, without a default, qualify too.
    """
    if isinstance(instance, CancellableInvocable):
        return True
    return any(
        "cancellation_token" in getattr(klass, "__annotations__", {})
        for klass in type(instance).__mro__
    )


def is_invocable_type(candidate: Any) -> bool:
    """Return whether *candidate* is a class exposing a callable ``invoke``."""
    return inspect.isclass(candidate) and callable(getattr(candidate, "invoke", None))


class ActionOrAsyncFunc:
    """Wraps a synchronous action or an async function behind one ``invoke``."""

    __slots__ = ("_action",)

    def __init__(self, action: Action | Callable[[], Awaitable[Any]]) -> None:
        if not callable(action):
            raise TypeError(f"scheduled action must be callable, got {type(action).__name__}")
        self._action = action

    async def invoke(self) -> None:
        result = self._action()
        if inspect.isawaitable(result):
            await result

    def __repr__(self) -> str:
        name = getattr(self._action, "__qualname__", repr(self._action))
        return f"ActionOrAsyncFunc({name})"


__all__ = [
    "Action",
    "ActionOrAsyncFunc",
    "CancellableInvocable",
    "CancellationToken",
    "Invocable",
    "accepts_cancellation",
    "is_invocable_type",
]
