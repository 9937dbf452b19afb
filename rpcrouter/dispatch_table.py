"""Method name to handler registry.

Registration is a startup phase: build a ``DispatchTable``, then ``freeze()``
it into a read-only ``FrozenDispatchTable`` for the serving path. The mutable
table is not safe for concurrent use; once frozen it rejects registration, so
the serving path never needs a lock.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Awaitable, Callable, Iterator, Mapping

from rpcrouter.context import RequestContext
from rpcrouter.envelope import RESERVED_METHOD_PREFIX
from rpcrouter.identifier import Identifier
from rpcrouter.utils.exceptions import RegistrationError

Handler = Callable[[RequestContext, Identifier, str, bytes | None], Awaitable[Any] | Any]


class FrozenDispatchTable:
    """Read-only view of registered handlers; safe for concurrent lookups."""

    __slots__ = ("_handlers",)

    def __init__(self, handlers: Mapping[str, Handler]):
        self._handlers = MappingProxyType(dict(handlers))

    def lookup(self, method: str) -> Handler | None:
        return self._handlers.get(method)

    def methods(self) -> list[str]:
        return sorted(self._handlers)

    def __contains__(self, method: object) -> bool:
        return method in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)

    def __iter__(self) -> Iterator[str]:
        return iter(self._handlers)


class DispatchTable:
    """Mutable registry used while the hosting process wires up handlers."""

    def __init__(self) -> None:
        self._handlers: dict[str, Handler] = {}
        self._frozen: FrozenDispatchTable | None = None

    @property
    def frozen(self) -> bool:
        return self._frozen is not None

    def register(self, method: str, handler: Handler) -> None:
        """Register ``handler`` for ``method``; a later registration replaces an earlier one."""
        if self._frozen is not None:
            raise RegistrationError("dispatch table is frozen; register handlers before serving", method)
        if not isinstance(method, str) or not method:
            raise RegistrationError("method must be a non-empty string", method)
        if method.startswith(RESERVED_METHOD_PREFIX):
            raise RegistrationError(f"method names beginning with '{RESERVED_METHOD_PREFIX}' are reserved", method)
        if not callable(handler):
            raise RegistrationError("handler must be callable", method)
        self._handlers[method] = handler

    def lookup(self, method: str) -> Handler | None:
        return self._handlers.get(method)

    def freeze(self) -> FrozenDispatchTable:
        """Stop accepting registrations and return the read-only view."""
        if self._frozen is None:
            self._frozen = FrozenDispatchTable(self._handlers)
        return self._frozen

    def methods(self) -> list[str]:
        return sorted(self._handlers)

    def __contains__(self, method: object) -> bool:
        return method in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)
