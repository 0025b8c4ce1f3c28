"""Tagged results for Gemini client calls."""

from dataclasses import dataclass
from typing import Awaitable, Generic, Optional, TypeVar

from virtual_stylist.core.errors import StylistError

T = TypeVar("T")


@dataclass(slots=True)
class CallOutcome(Generic[T]):
    """Either the payload of a successful call or the kind of failure."""

    success: bool
    value: Optional[T] = None
    error_kind: Optional[str] = None
    error_message: Optional[str] = None

    @classmethod
    def ok(cls, value: T) -> "CallOutcome[T]":
        return cls(success=True, value=value)

    @classmethod
    def failed(cls, error: BaseException) -> "CallOutcome[T]":
        kind = error.kind if isinstance(error, StylistError) else "unexpected"
        return cls(success=False, error_kind=kind, error_message=str(error))


async def capture(call: Awaitable[T]) -> CallOutcome[T]:
    """Await a client call and tag its result instead of raising."""

    try:
        return CallOutcome.ok(await call)
    except Exception as exc:  # CancelledError is a BaseException and propagates
        return CallOutcome.failed(exc)


__all__ = ["CallOutcome", "capture"]
