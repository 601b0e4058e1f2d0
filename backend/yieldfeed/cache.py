from __future__ import annotations

import asyncio
from typing import Any, Coroutine, Generic, Iterable, TypeVar

T = TypeVar("T")


def is_expired(timestamp_ms: int, now_ms: int, ttl_seconds: float) -> bool:
    return now_ms - timestamp_ms > ttl_seconds * 1000


class InflightRegistry(Generic[T]):
    """Refresh tasks currently running, indexed by every cache key they will fill.

    A caller that needs a key already covered by a running task awaits that
    task instead of starting another upstream call. Tasks unregister
    themselves when they finish, whatever the outcome.
    """

    def __init__(self) -> None:
        self._tasks: dict[str, asyncio.Task[T]] = {}

    def __contains__(self, key: str) -> bool:
        return key in self._tasks

    def get(self, key: str) -> asyncio.Task[T] | None:
        return self._tasks.get(key)

    def partition(self, keys: Iterable[str]) -> tuple[list[asyncio.Task[T]], list[str]]:
        """Split ``keys`` into running tasks to join and keys nobody is fetching."""
        joined: list[asyncio.Task[T]] = []
        uncovered: list[str] = []
        for key in keys:
            task = self._tasks.get(key)
            if task is None:
                uncovered.append(key)
            elif task not in joined:
                joined.append(task)
        return joined, uncovered

    def start(self, keys: Iterable[str], coro: Coroutine[Any, Any, T]) -> asyncio.Task[T]:
        task = asyncio.ensure_future(coro)
        registered = list(dict.fromkeys(keys))
        for key in registered:
            self._tasks[key] = task
        task.add_done_callback(lambda done: self._release(registered, done))
        return task

    def _release(self, keys: list[str], task: asyncio.Task[T]) -> None:
        for key in keys:
            if self._tasks.get(key) is task:
                del self._tasks[key]


async def join(tasks: Iterable[asyncio.Task[T]]) -> list[T]:
    """Await shared tasks without letting one caller's cancellation cancel them."""
    return list(await asyncio.gather(*(asyncio.shield(task) for task in tasks)))
