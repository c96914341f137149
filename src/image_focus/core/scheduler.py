"""Timer and frame scheduling for the reveal and layout logic.

All callbacks run on one logical timeline. ``ManualScheduler`` drives that
timeline from a virtual clock, ``AsyncioScheduler`` from an event loop.
"""

import asyncio
import heapq
import itertools
import logging
from typing import Callable, Dict, Hashable, List, Optional, Tuple

logger = logging.getLogger(__name__)

FRAME_INTERVAL_MS = 1000 / 60


class TimerHandle:
    """Cancellable reference to a scheduled callback."""

    def __init__(self, callback: Callable[[], None], when: float = 0.0):
        self._callback = callback
        self.when = when
        self._cancelled = False
        self._done = False
        self._native = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def done(self) -> bool:
        return self._done

    def cancel(self) -> None:
        if self._done or self._cancelled:
            return
        self._cancelled = True
        if self._native is not None:
            self._native.cancel()

    def _run(self) -> None:
        if self._cancelled or self._done:
            return
        self._done = True
        self._callback()


class Scheduler:
    """Interface for deferred execution."""

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        """Run ``callback`` once after ``delay_ms`` milliseconds."""
        raise NotImplementedError

    def request_frame(self, callback: Callable[[], None]) -> TimerHandle:
        """Run ``callback`` before the next rendered frame."""
        raise NotImplementedError


class ManualScheduler(Scheduler):
    """Deterministic scheduler driven by an explicit virtual clock.

    Nothing runs until ``advance`` or ``run_frame`` is called. Timers fire in
    due-time order, ties in scheduling order.
    """

    def __init__(self):
        self.now = 0.0
        self._timers: List[Tuple[float, int, TimerHandle]] = []
        self._frames: List[TimerHandle] = []
        self._sequence = itertools.count()

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        if delay_ms < 0:
            raise ValueError(f"delay_ms must be non-negative, got {delay_ms}")
        handle = TimerHandle(callback, self.now + delay_ms)
        heapq.heappush(self._timers, (handle.when, next(self._sequence), handle))
        return handle

    def request_frame(self, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(callback, self.now)
        self._frames.append(handle)
        return handle

    @property
    def pending_timers(self) -> int:
        return sum(1 for _, _, handle in self._timers if not handle.cancelled)

    @property
    def pending_frames(self) -> int:
        return sum(1 for handle in self._frames if not handle.cancelled)

    def run_frame(self) -> int:
        """Run every frame callback requested before this call."""
        frames, self._frames = self._frames, []
        ran = 0
        for handle in frames:
            if not handle.cancelled:
                handle._run()
                ran += 1
        return ran

    def advance(self, ms: float) -> int:
        """Move the clock forward, running timers that become due."""
        if ms < 0:
            raise ValueError(f"Cannot move the clock backwards by {ms}ms")
        target = self.now + ms
        ran = 0
        while self._timers and self._timers[0][0] <= target:
            when, _, handle = heapq.heappop(self._timers)
            self.now = when
            if not handle.cancelled:
                handle._run()
                ran += 1
        self.now = target
        return ran

    def run_all(self, limit_ms: float = 60_000) -> None:
        """Alternate frames and timers until nothing is pending."""
        deadline = self.now + limit_ms
        while self._frames or self.pending_timers:
            self.run_frame()
            if not self._timers:
                continue
            next_due = self._timers[0][0]
            if next_due > deadline:
                break
            self.advance(max(0.0, next_due - self.now))


class AsyncioScheduler(Scheduler):
    """Scheduler backed by an asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        loop = self.loop
        handle = TimerHandle(callback, loop.time() * 1000 + delay_ms)
        handle._native = loop.call_later(delay_ms / 1000, handle._run)
        return handle

    def request_frame(self, callback: Callable[[], None]) -> TimerHandle:
        return self.call_later(FRAME_INTERVAL_MS, callback)


class FrameCoalescer:
    """Collapse repeated frame requests per key into one pending callback."""

    def __init__(self, scheduler: Scheduler):
        self.scheduler = scheduler
        self._pending: Dict[Hashable, TimerHandle] = {}

    def is_pending(self, key: Hashable) -> bool:
        return key in self._pending

    def request(self, key: Hashable, callback: Callable[[], None]) -> bool:
        """Schedule ``callback`` for the next frame unless one is pending.

        Returns:
            True if a new frame callback was scheduled
        """
        if key in self._pending:
            logger.debug(f"Coalesced frame request for {key!r}")
            return False

        def run():
            self._pending.pop(key, None)
            callback()

        self._pending[key] = self.scheduler.request_frame(run)
        return True

    def cancel(self, key: Hashable) -> None:
        handle = self._pending.pop(key, None)
        if handle is not None:
            handle.cancel()
