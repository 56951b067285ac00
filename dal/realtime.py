import asyncio
import contextlib
import inspect
from typing import Any, Callable, Set

from core.logging import get_logger
from dal.gateways import TableCallback, Unsubscribe

logger = get_logger(__name__)


async def invoke_callback(callback: Callable[..., Any], *args: Any) -> None:
    """Call a plain or coroutine callback and wait for it."""
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


class _TablePoller:
    def __init__(self, table: str, callback: TableCallback, interval_s: float) -> None:
        self.table = table
        self.callback = callback
        self.interval_s = interval_s
        self.closed = False
        self._task = asyncio.create_task(self._run(), name=f"poll-{table}")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_s)
            if self.closed:
                return
            try:
                await invoke_callback(self.callback)
            except Exception:
                logger.exception("Polling callback for table %s failed", self.table)

    async def stop(self) -> None:
        self.closed = True
        if self._task is asyncio.current_task():
            # Unsubscribed from inside its own callback; the loop exits on the next tick
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task


class PollingRealtimeGateway:
    """Change notifications for the direct-REST backend, which has no push channel.

    Each subscription re-runs its callback every ``poll_interval_ms``.
    """

    def __init__(self, poll_interval_ms: int = 5_000) -> None:
        self.poll_interval_ms = poll_interval_ms
        self._pollers: Set[_TablePoller] = set()

    async def subscribe_to_table(self, table: str, callback: TableCallback) -> Unsubscribe:
        poller = _TablePoller(table, callback, self.poll_interval_ms / 1000)
        self._pollers.add(poller)

        async def unsubscribe() -> None:
            self._pollers.discard(poller)
            await poller.stop()

        return unsubscribe

    async def close(self) -> None:
        for poller in list(self._pollers):
            await poller.stop()
        self._pollers.clear()


class BackgroundTasks:
    """Keeps references to fire-and-forget callback tasks until they finish."""

    def __init__(self) -> None:
        self._tasks: Set[asyncio.Task] = set()

    def spawn(self, coro: Any) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def cancel_all(self) -> None:
        for task in list(self._tasks):
            task.cancel()
