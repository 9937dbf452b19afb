"""Request-scoped context threaded unchanged through to every handler."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True)
class RequestContext:
    """Deadline and caller metadata for one ``Router.serve`` call.

    The router never enforces the deadline; handlers consult it cooperatively.
    Cancellation follows asyncio: cancelling the task awaiting ``serve``
    cancels every in-flight handler, batch members included.
    """

    deadline: float | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def with_timeout(cls, seconds: float, **metadata: Any) -> RequestContext:
        return cls(deadline=time.monotonic() + seconds, metadata=metadata)

    def remaining(self) -> float | None:
        """Seconds left before the deadline (never negative), or None."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def expired(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline
