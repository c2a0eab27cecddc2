"""
Cancellable timers on the running asyncio loop.

Used for the MFA resend cooldown, email-availability debounce, delayed step
advance and the post-payment redirect. Everything is scheduled with
loop.call_later so a dispose() on the owner can cancel it.
"""
import asyncio
from typing import Any, Awaitable, Callable, Optional, Set

from app.observability.logging import log


class Timer:
    """One-shot callback after `delay` seconds."""

    def __init__(self, delay: float, callback: Callable[[], Any]):
        self.delay = float(delay)
        self._callback = callback
        self._handle: Optional[asyncio.TimerHandle] = None
        self.fired = False

    def start(self) -> "Timer":
        self.cancel()
        self.fired = False
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(max(0.0, self.delay), self._fire)
        return self

    def _fire(self) -> None:
        self._handle = None
        self.fired = True
        self._callback()

    @property
    def active(self) -> bool:
        return self._handle is not None

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


class Countdown:
    """Whole-second countdown (resend cooldown). `remaining` hits 0 then stops."""

    def __init__(self, tick: float = 1.0):
        self.tick = float(tick)
        self.remaining = 0
        self._handle: Optional[asyncio.TimerHandle] = None

    def start(self, seconds: int) -> None:
        self.cancel()
        self.remaining = max(0, int(seconds))
        if self.remaining > 0:
            self._schedule()

    def _schedule(self) -> None:
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.tick, self._on_tick)

    def _on_tick(self) -> None:
        self._handle = None
        self.remaining = max(0, self.remaining - 1)
        if self.remaining > 0:
            self._schedule()

    @property
    def running(self) -> bool:
        return self.remaining > 0

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self.remaining = 0


class TaskGroup:
    """Keeps strong refs to fire-and-forget tasks and logs their failures."""

    def __init__(self, name: str):
        self.name = name
        self._tasks: Set[asyncio.Task] = set()

    def spawn(self, coro: Awaitable[Any]) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._done)
        return task

    def _done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            log(event="background_task_failed", owner=self.name, errorType=type(exc).__name__, error=str(exc)[:300])

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


class Debouncer:
    """
    Runs `func(*args)` once the caller has been quiet for `delay` seconds.
    Each trigger() supersedes the previous pending one.
    """

    def __init__(self, delay: float, func: Callable[..., Awaitable[Any]], tasks: TaskGroup):
        self.delay = float(delay)
        self._func = func
        self._tasks = tasks
        self._handle: Optional[asyncio.TimerHandle] = None

    def trigger(self, *args) -> None:
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(max(0.0, self.delay), self._fire, args)

    def _fire(self, args) -> None:
        self._handle = None
        self._tasks.spawn(self._func(*args))

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
