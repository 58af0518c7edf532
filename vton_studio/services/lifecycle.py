"""Cancellation tokens and the single-slot request lifecycle manager."""

import asyncio
import inspect
import logging
from typing import Awaitable, TypeVar

from ..errors import RequestCancelled

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CancellationToken:
    """Cooperative cancellation signal threaded through every awaited call.

    A token may be linked to a parent token; cancelling the parent cancels
    the child too. Once cancelled, ``run`` and ``sleep`` raise
    ``RequestCancelled`` and the awaited work is aborted.
    """

    def __init__(self, parent: "CancellationToken | None" = None):
        self._event = asyncio.Event()
        self._parent = parent

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._parent is not None and self._parent.cancelled

    def cancel(self) -> None:
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise RequestCancelled()

    def _events(self) -> list[asyncio.Event]:
        events = [self._event]
        if self._parent is not None:
            events.extend(self._parent._events())
        return events

    async def run(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` unless this token is cancelled first.

        Raises:
            RequestCancelled: if the token is (or becomes) cancelled; the
                underlying task is cancelled before this is raised.
        """
        if self.cancelled:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            raise RequestCancelled()

        task = asyncio.ensure_future(awaitable)
        waiters = [asyncio.ensure_future(event.wait()) for event in self._events()]
        try:
            await asyncio.wait([task, *waiters], return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            for waiter in waiters:
                waiter.cancel()

        if self.cancelled:
            if not task.done():
                task.cancel()
            # Let the aborted call unwind; its outcome is irrelevant now.
            await asyncio.gather(task, return_exceptions=True)
            raise RequestCancelled()
        return task.result()

    async def sleep(self, seconds: float) -> None:
        await self.run(asyncio.sleep(seconds))


class RequestLifecycleManager:
    """Keeps at most one orchestrated request in flight.

    Starting a request cancels the previous one; finishing a request only
    clears the slot if no newer request has replaced it.
    """

    def __init__(self):
        self._active: CancellationToken | None = None

    @property
    def active(self) -> CancellationToken | None:
        return self._active

    def begin(self, parent: CancellationToken | None = None) -> CancellationToken:
        """Cancel any in-flight request and register a fresh token."""
        if self._active is not None:
            logger.debug("Superseding in-flight request")
            self._active.cancel()
        token = CancellationToken(parent=parent)
        self._active = token
        return token

    def end(self, token: CancellationToken) -> None:
        if self._active is token:
            self._active = None

    def cancel_active(self) -> bool:
        """Cancel the in-flight request, if any. Returns whether one was cancelled."""
        token = self._active
        if token is None:
            return False
        token.cancel()
        self._active = None
        return True

    def shutdown(self) -> None:
        self.cancel_active()
