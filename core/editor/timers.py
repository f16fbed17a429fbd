"""
Cancelable delayed tasks for the editing session.

All editor timers (settle delay, typing window, focus release, save
debounce) go through a Scheduler so that tests can drive a manual clock.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Protocol

import sentry_sdk

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(ABC):
    """Source of time and delayed callbacks."""

    @abstractmethod
    def now(self) -> float:
        """Current time in seconds."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle:
        """Run callback after delay seconds; the returned handle cancels it."""


class AsyncioScheduler(Scheduler):
    """Scheduler backed by the running event loop."""

    def now(self) -> float:
        return asyncio.get_running_loop().time()

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle:
        return asyncio.get_running_loop().call_later(delay, callback, *args)


class Debouncer:
    """
    Trailing debounce with cancel-and-restart semantics.

    Every trigger() cancels the pending call and schedules a new one delay
    seconds later, so a steady stream of triggers postpones the callback
    until the stream pauses.
    """

    def __init__(self, scheduler: Scheduler, delay: float, callback: Callable[[], Any], name: str = ""):
        self.scheduler = scheduler
        self.delay = delay
        self.callback = callback
        self.name = name or getattr(callback, "__name__", "debounce")
        self.armed_at: float | None = None
        self._handle: TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def trigger(self) -> None:
        self.cancel()
        self.armed_at = self.scheduler.now()
        self._handle = self.scheduler.call_later(self.delay, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        try:
            self.callback()
        except Exception as e:
            logger.error(f"Timer {self.name} callback failed: {e}")
            sentry_sdk.capture_exception(e)
