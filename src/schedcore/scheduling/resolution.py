"""Scheduling – resolution ports and the registry-backed container.

The scheduler never constructs invocables itself; it asks a
:class:`ScopeFactory` for a short-lived :class:`ResolutionScope`, resolves
the target inside it and lets the scope dispose whatever it produced.
"""
from __future__ import annotations

import contextlib
import inspect
from typing import Any, AsyncIterator, Callable, Protocol, Sequence, runtime_checkable

from schedcore.kernel.errors import ResolutionError
from schedcore.observability.logging import get_logger

logger = get_logger(__name__)

InvocableFactoryFn = Callable[..., Any]


@runtime_checkable
class ResolutionScope(Protocol):
    """Port: produces instances for the lifetime of one invocation."""

    def resolve(self, invocable_type: type, params: Sequence[Any] = ()) -> Any: ...


@runtime_checkable
class ScopeFactory(Protocol):
    """Port: opens a scope that is released when the async context exits."""

    def create_scope(self) -> contextlib.AbstractAsyncContextManager[ResolutionScope]: ...


class _RegistryScope:
    """Scope handed out by :class:`InvocableRegistry`; tracks what it built."""

    def __init__(self, registry: InvocableRegistry) -> None:
        self._registry = registry
        self._instances: list[Any] = []

    def resolve(self, invocable_type: type, params: Sequence[Any] = ()) -> Any:
        """Build *invocable_type*; bound *params* go straight to its constructor.

        Without params the registered factory is used. Only a call that does
        not fit the constructor signature becomes a :class:`ResolutionError`;
        errors raised while constructing propagate unchanged.
        """
        if params:
            factory: InvocableFactoryFn = invocable_type
        else:
            registered = self._registry.factory_for(invocable_type)
            if registered is None:
                raise ResolutionError(
                    invocable_type,
                    f"No registration for '{invocable_type.__qualname__}'",
                )
            factory = registered
        _check_signature(invocable_type, factory, params)
        instance = factory(*params)
        self._instances.append(instance)
        return instance

    async def dispose(self) -> None:
        while self._instances:
            instance = self._instances.pop()
            aclose = getattr(instance, "aclose", None)
            close = getattr(instance, "close", None)
            if callable(aclose):
                result = aclose()
                if inspect.isawaitable(result):
                    await result
            elif callable(close):
                result = close()
                if inspect.isawaitable(result):
                    await result


def _check_signature(invocable_type: type, factory: InvocableFactoryFn, params: Sequence[Any]) -> None:
    try:
        signature = inspect.signature(factory)
    except (TypeError, ValueError):
        return
    try:
        signature.bind(*params)
    except TypeError as exc:
        raise ResolutionError(invocable_type, cause=exc) from exc


class InvocableRegistry:
    """In-process container mapping invocable types to factories.

    Example::

        registry = InvocableRegistry()
        registry.register(SendReport)
        registry.register(Cleanup, lambda: Cleanup(db=pool))

        async with registry.create_scope() as scope:
            await scope.resolve(SendReport).invoke()
    """

    def __init__(self) -> None:
        self._factories: dict[type, InvocableFactoryFn] = {}

    def register(
        self,
        invocable_type: type,
        factory: InvocableFactoryFn | None = None,
    ) -> InvocableRegistry:
        self._factories[invocable_type] = factory or invocable_type
        return self

    def unregister(self, invocable_type: type) -> None:
        self._factories.pop(invocable_type, None)

    def factory_for(self, invocable_type: type) -> InvocableFactoryFn | None:
        return self._factories.get(invocable_type)

    def is_registered(self, invocable_type: type) -> bool:
        return invocable_type in self._factories

    @contextlib.asynccontextmanager
    async def create_scope(self) -> AsyncIterator[ResolutionScope]:
        scope = _RegistryScope(self)
        try:
            yield scope
        finally:
            await scope.dispose()
            logger.debug("resolution_scope.disposed")


__all__ = ["InvocableRegistry", "ResolutionScope", "ScopeFactory"]
