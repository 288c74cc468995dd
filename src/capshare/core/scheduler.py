# src/capshare/core/scheduler.py
"""Cancelable delayed calls.

ShareService uses a Scheduler for the short delay before announcing an
export, so tests can drive time explicitly with ManualScheduler instead of
sleeping.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Protocol, runtime_checkable


@runtime_checkable
class ScheduledCall(Protocol):
    """Handle for a pending delayed call."""

    def cancel(self) -> None:
        """Prevent the call from running. No-op if it already ran."""
        ...


@runtime_checkable
class Scheduler(Protocol):
    """Runs callbacks after a delay."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledCall:
        """Schedule callback to run once, delay seconds from now."""
        ...


class AsyncioScheduler:
    """Scheduler backed by the running asyncio event loop."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return asyncio.get_running_loop().call_later(delay, callback)


class ManualCall:
    """A call registered with ManualScheduler."""

    def __init__(self, due: float, callback: Callable[[], None]) -> None:
        self.due = due
        self.callback = callback
        self.cancelled = False
        self.ran = False

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.ran)


class ManualScheduler:
    """Scheduler driven by virtual time.

    Example:
        scheduler = ManualScheduler()
        scheduler.call_later(0.05, announce)
        scheduler.advance(0.05)  # announce() runs here
    """

    def __init__(self) -> None:
        self.now = 0.0
        self._calls: list[ManualCall] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualCall:
        if delay < 0:
            raise ValueError(f"delay must be >= 0, got {delay}")
        call = ManualCall(self.now + delay, callback)
        self._calls.append(call)
        return call

    @property
    def pending(self) -> list[ManualCall]:
        """Calls that have neither run nor been cancelled, in due order."""
        return sorted((c for c in self._calls if c.pending), key=lambda c: c.due)

    def advance(self, seconds: float) -> int:
        """Move virtual time forward, running every call that becomes due.

        Returns:
            Number of callbacks run
        """
        if seconds < 0:
            raise ValueError(f"cannot move time backwards ({seconds})")
        target = self.now + seconds
        ran = 0
        while True:
            due = [c for c in self.pending if c.due <= target]
            if not due:
                break
            call = due[0]
            self.now = call.due
            call.ran = True
            call.callback()
            ran += 1
        self.now = target
        self._calls = [c for c in self._calls if c.pending]
        return ran
