"""Named repeating timers owned by a room.

Each room runs its periodic work (state broadcast, simulation tick, mob
spawning) as :class:`RepeatingTask` instances registered in the room's
:class:`Scheduler`. The room supplies a *runner* coroutine that wraps every
firing, which is where the room lock is taken and outbound messages are
flushed.

A cancelled task never invokes its callback again, including a firing that
was already queued behind the room lock.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Dict, List

logger = logging.getLogger(__name__)

TimerCallback = Callable[[], None]
TimerRunner = Callable[[TimerCallback], Awaitable[None]]

BROADCAST_TIMER = "broadcast"
TICK_TIMER = "tick"
SPAWN_TIMER = "spawn"


async def run_directly(fire: TimerCallback) -> None:
    fire()


class RepeatingTask:
    """Calls ``callback`` every ``interval`` seconds until cancelled."""

    def __init__(
        self,
        name: str,
        interval: float,
        callback: TimerCallback,
        runner: TimerRunner = run_directly,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.name = name
        self.interval = interval
        self._callback = callback
        self._runner = runner
        self._active = True
        self._task: asyncio.Task[None] = asyncio.get_running_loop().create_task(
            self._run(), name=f"timer:{name}"
        )

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        if not self._active:
            return
        self._active = False
        # A task cancelling itself from its own callback just stops looping,
        # so the runner can still flush what the callback produced.
        if self._task is not asyncio.current_task():
            self._task.cancel()

    async def wait_closed(self) -> None:
        try:
            await self._task
        except asyncio.CancelledError:
            pass

    def _fire(self) -> None:
        if self._active:
            self._callback()

    async def _run(self) -> None:
        while self._active:
            await asyncio.sleep(self.interval)
            if not self._active:
                break
            try:
                await self._runner(self._fire)
            except Exception:
                logger.exception("Timer %s failed", self.name)


class Scheduler:
    """Registry of a room's named timers; at most one task per name."""

    def __init__(self, runner: TimerRunner = run_directly) -> None:
        self._runner = runner
        self._tasks: Dict[str, RepeatingTask] = {}

    def every(self, name: str, interval: float, callback: TimerCallback) -> RepeatingTask:
        """(Re)start timer ``name``, replacing any task with that name."""
        self.cancel(name)
        task = RepeatingTask(name, interval, callback, self._runner)
        self._tasks[name] = task
        logger.debug("Timer %s started (every %.3fs)", name, interval)
        return task

    def cancel(self, name: str) -> None:
        task = self._tasks.pop(name, None)
        if task is not None:
            task.cancel()
            logger.debug("Timer %s cancelled", name)

    def cancel_all(self) -> None:
        for name in list(self._tasks):
            self.cancel(name)

    def is_active(self, name: str) -> bool:
        return name in self._tasks

    @property
    def active(self) -> List[str]:
        return sorted(self._tasks)
