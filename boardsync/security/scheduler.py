"""
Cancellable one-shot scheduled task on the running event loop

At most one action is armed per instance: arm() cancels whatever was pending.
An action may re-arm its own scheduler while it runs.
"""

import asyncio
from collections.abc import Awaitable, Callable

import structlog

log = structlog.get_logger()


class ScheduledTask:
    """arm(delay, action) / cancel()"""

    def __init__(self, name: str = "scheduled-task"):
        self._name = name
        self._task: asyncio.Task | None = None
        self._delay: float | None = None

    @property
    def armed(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def delay(self) -> float | None:
        """Delay of the pending action, None when nothing is armed"""
        return self._delay if self.armed else None

    def arm(self, delay: float, action: Callable[[], Awaitable[None]]) -> None:
        self.cancel()
        self._delay = delay
        self._task = asyncio.get_running_loop().create_task(self._run(delay, action), name=self._name)

    def cancel(self) -> None:
        task, self._task, self._delay = self._task, None, None
        if task is None or task.done():
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        if task is not current:
            task.cancel()

    async def _run(self, delay: float, action: Callable[[], Awaitable[None]]) -> None:
        await asyncio.sleep(delay)
        # fired: from here on the action owns re-arming
        self._task = None
        self._delay = None
        try:
            await action()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            log.error("Scheduled action failed", task=self._name, error=str(e), exc_info=True)
