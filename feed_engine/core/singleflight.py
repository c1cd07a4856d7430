"""
Single-flight guard for asyncio.
Collapses concurrent computations for the same key into one shared task.
"""
import asyncio
from typing import Awaitable, Callable, Dict, Generic, TypeVar

T = TypeVar("T")


class SingleFlight(Generic[T]):
    """
    Only one in-flight computation per key; other callers await its result.

    The shared task is shielded, so a caller abandoning its request does not
    cancel the work other callers are waiting on.

    Usage:
        flight: SingleFlight[UserProfile] = SingleFlight()
        profile = await flight.do(user_id, lambda: build(user_id))
    """

    def __init__(self) -> None:
        self._inflight: Dict[str, "asyncio.Future[T]"] = {}

    async def do(self, key: str, factory: Callable[[], Awaitable[T]]) -> T:
        """Run factory for key unless a run is already in flight."""
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._inflight[key] = task
            task.add_done_callback(lambda _done, k=key: self._inflight.pop(k, None))
        return await asyncio.shield(task)

    def in_flight(self) -> int:
        """Number of keys currently being computed."""
        return len(self._inflight)
