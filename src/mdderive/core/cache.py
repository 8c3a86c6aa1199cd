"""Per-key pending-task cache with epoch-based invalidation"""

import asyncio
from typing import Awaitable, Callable, Generic, TypeVar

from mdderive.core.utils.logging import get_logger


T = TypeVar("T")

logger = get_logger(__name__)


class TaskCache(Generic[T]):
    """Maps a record id to the single in-flight-or-completed task computing its value.

    The task is stored under its key before the computation gets a chance
    to run, so every caller arriving before completion awaits the same
    task instead of starting a second one. Each ``invalidate`` starts a new
    epoch for the key.

    With ``retain_failures`` False, a task that fails is evicted once it
    settles: its current waiters all see the failure and the next access
    recomputes. With ``retain_failures`` True the failure stays cached
    until the key is invalidated.
    """

    def __init__(self, name: str, retain_failures: bool = False):
        self.name = name
        self.retain_failures = retain_failures
        self._tasks: dict[str, asyncio.Task] = {}
        self._epochs: dict[str, int] = {}

    def __contains__(self, key: str) -> bool:
        return key in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

    def epoch(self, key: str) -> int:
        """Number of invalidations seen for key."""
        return self._epochs.get(key, 0)

    def task(self, key: str, factory: Callable[[], Awaitable[T]]) -> "asyncio.Task[T]":
        """Return the task cached under key, starting factory() on a miss."""
        task = self._tasks.get(key)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._tasks[key] = task
            if not self.retain_failures:
                task.add_done_callback(lambda t, key=key: self._evict_failed(key, t))
        return task

    async def get(self, key: str, factory: Callable[[], Awaitable[T]]) -> T:
        """Await the value for key; a cancelled caller never cancels the shared task."""
        return await asyncio.shield(self.task(key, factory))

    def invalidate(self, key: str) -> bool:
        """Evict key and start a new epoch. Returns True if an entry was removed."""
        self._epochs[key] = self.epoch(key) + 1
        return self._tasks.pop(key, None) is not None

    def clear(self) -> None:
        for key in list(self._tasks):
            self.invalidate(key)

    def _evict_failed(self, key: str, task: asyncio.Task) -> None:
        if task.cancelled() or task.exception() is None:
            return
        # A newer epoch may already own the slot.
        if self._tasks.get(key) is task:
            del self._tasks[key]
            logger.debug("cache_failure_evicted", cache=self.name, record_id=key)
