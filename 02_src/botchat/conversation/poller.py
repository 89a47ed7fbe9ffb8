"""Cancellable polling loop."""

import asyncio
from typing import Awaitable, Callable, Generic, TypeVar

from ..logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

Fetch = Callable[[], Awaitable[T]]
Apply = Callable[[T], Awaitable[None]]
ErrorHandler = Callable[[Exception], Awaitable[None]]


class PollHandle:
    """Token for one running loop."""

    def __init__(self, name: str):
        self.name = name
        self.ticks = 0
        self._cancelled = False
        self._task: asyncio.Task | None = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def done(self) -> bool:
        return self._task is None or self._task.done()

    def cancel(self) -> None:
        """Stop the loop. Safe to call at any time, more than once."""
        if self._cancelled:
            return
        self._cancelled = True
        if self._task and not self._task.done():
            self._task.cancel()

    async def wait(self) -> None:
        """Wait for the loop task to finish."""
        if self._task is None or self._task is asyncio.current_task():
            return
        try:
            await self._task
        except asyncio.CancelledError:
            pass


class Poller(Generic[T]):
    """Runs fetch/apply on a fixed interval, one loop at a time.

    A failed tick is reported to on_error and the loop carries on after the
    same interval. Results that arrive after cancel() are dropped.
    """

    def __init__(
        self,
        interval: float,
        on_error: ErrorHandler | None = None,
        name: str = "poller",
    ):
        self._interval = interval
        self._on_error = on_error
        self._name = name
        self._handle: PollHandle | None = None

    @property
    def handle(self) -> PollHandle | None:
        return self._handle

    @property
    def running(self) -> bool:
        return self._handle is not None and not self._handle.cancelled

    def start(
        self,
        fetch: Fetch,
        apply: Apply,
        should_continue: Callable[[], bool] | None = None,
    ) -> PollHandle:
        """Cancel any running loop, then start a new one."""
        self.cancel()

        handle = PollHandle(self._name)
        handle._task = asyncio.create_task(
            self._run(handle, fetch, apply, should_continue)
        )
        self._handle = handle
        return handle

    def cancel(self) -> None:
        """Cancel the running loop, if any."""
        if self._handle:
            self._handle.cancel()

    async def stop(self) -> None:
        """Cancel the running loop and wait for it to exit."""
        handle = self._handle
        if handle:
            handle.cancel()
            await handle.wait()

    async def _run(
        self,
        handle: PollHandle,
        fetch: Fetch,
        apply: Apply,
        should_continue: Callable[[], bool] | None,
    ) -> None:
        logger.debug("Polling loop %s started", handle.name)
        while not handle.cancelled:
            if should_continue is not None and not should_continue():
                logger.warning("Polling loop %s lost its session, stopping", handle.name)
                break

            try:
                result = await fetch()
                if handle.cancelled:
                    break
                await apply(result)
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error("Polling tick failed: %s", e, exc_info=True)
                if self._on_error and not handle.cancelled:
                    await self._on_error(e)

            handle.ticks += 1
            try:
                await asyncio.sleep(self._interval)
            except asyncio.CancelledError:
                break

        logger.debug("Polling loop %s stopped after %d ticks", handle.name, handle.ticks)
