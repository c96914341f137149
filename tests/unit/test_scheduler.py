"""Tests for timer and frame scheduling."""

import asyncio

import pytest

from image_focus.core.scheduler import (
    AsyncioScheduler,
    FrameCoalescer,
    ManualScheduler,
    Scheduler,
)


class TestScheduler:
    """Test the scheduler interface."""

    def test_abstract(self):
        """Test the base class does not schedule anything."""
        scheduler = Scheduler()
        with pytest.raises(NotImplementedError):
            scheduler.call_later(1, lambda: None)
        with pytest.raises(NotImplementedError):
            scheduler.request_frame(lambda: None)


class TestManualScheduler:
    """Test the virtual clock scheduler."""

    def setup_method(self):
        """Set up a fresh scheduler and call log."""
        self.scheduler = ManualScheduler()
        self.calls = []

    def test_nothing_runs_until_advanced(self):
        """Test timers wait for the clock."""
        self.scheduler.call_later(10, lambda: self.calls.append("a"))
        assert self.calls == []
        assert self.scheduler.pending_timers == 1

        assert self.scheduler.advance(9) == 0
        assert self.calls == []
        assert self.scheduler.advance(1) == 1
        assert self.calls == ["a"]
        assert self.scheduler.now == 10

    def test_order(self):
        """Test timers run by due time, ties in scheduling order."""
        self.scheduler.call_later(20, lambda: self.calls.append("late"))
        self.scheduler.call_later(5, lambda: self.calls.append("first"))
        self.scheduler.call_later(5, lambda: self.calls.append("second"))

        self.scheduler.advance(100)
        assert self.calls == ["first", "second", "late"]
        assert self.scheduler.now == 100

    def test_clock_during_callback(self):
        """Test the clock reads the due time while a timer runs."""
        self.scheduler.call_later(7, lambda: self.calls.append(self.scheduler.now))
        self.scheduler.advance(50)
        assert self.calls == [7]

    def test_nested_timers(self):
        """Test timers scheduled by timers run within the same advance."""

        def outer():
            self.calls.append("outer")
            self.scheduler.call_later(5, lambda: self.calls.append("inner"))

        self.scheduler.call_later(5, outer)
        self.scheduler.advance(10)
        assert self.calls == ["outer", "inner"]

    def test_cancel(self):
        """Test cancelled timers never run."""
        handle = self.scheduler.call_later(5, lambda: self.calls.append("x"))
        handle.cancel()

        assert handle.cancelled
        assert self.scheduler.pending_timers == 0
        assert self.scheduler.advance(10) == 0
        assert self.calls == []

    def test_cancel_after_run(self):
        """Test cancelling a finished timer is a no-op."""
        handle = self.scheduler.call_later(0, lambda: self.calls.append("x"))
        self.scheduler.advance(0)
        handle.cancel()
        assert handle.done
        assert not handle.cancelled

    def test_negative_values(self):
        """Test negative delays are rejected."""
        with pytest.raises(ValueError):
            self.scheduler.call_later(-1, lambda: None)
        with pytest.raises(ValueError):
            self.scheduler.advance(-1)

    def test_frames(self):
        """Test frame callbacks run on the next frame only."""
        self.scheduler.request_frame(lambda: self.calls.append(1))
        self.scheduler.request_frame(
            lambda: self.scheduler.request_frame(lambda: self.calls.append(3))
        )
        assert self.scheduler.pending_frames == 2

        assert self.scheduler.run_frame() == 2
        assert self.calls == [1]
        assert self.scheduler.run_frame() == 1
        assert self.calls == [1, 3]
        assert self.scheduler.run_frame() == 0

    def test_run_all(self):
        """Test frames and timers are drained together."""

        def frame():
            self.calls.append("frame")
            self.scheduler.call_later(30, lambda: self.calls.append("timer"))

        self.scheduler.request_frame(frame)
        self.scheduler.run_all()

        assert self.calls == ["frame", "timer"]
        assert self.scheduler.now == 30

    def test_run_all_limit(self):
        """Test timers beyond the limit are left pending."""
        self.scheduler.call_later(10, lambda: self.calls.append("soon"))
        self.scheduler.call_later(5000, lambda: self.calls.append("later"))
        self.scheduler.run_all(limit_ms=100)

        assert self.calls == ["soon"]
        assert self.scheduler.pending_timers == 1


class TestAsyncioScheduler:
    """Test the event loop scheduler."""

    def test_call_later(self):
        """Test timers run on the event loop."""
        calls = []

        async def run():
            scheduler = AsyncioScheduler()
            scheduler.call_later(1, lambda: calls.append("timer"))
            scheduler.request_frame(lambda: calls.append("frame"))
            cancelled = scheduler.call_later(1, lambda: calls.append("cancelled"))
            cancelled.cancel()
            await asyncio.sleep(0.1)

        asyncio.run(run())
        assert calls == ["timer", "frame"]


class TestFrameCoalescer:
    """Test per-key frame coalescing."""

    def setup_method(self):
        """Set up a coalescer on a manual scheduler."""
        self.scheduler = ManualScheduler()
        self.coalescer = FrameCoalescer(self.scheduler)
        self.calls = []

    def test_one_pending_frame_per_key(self):
        """Test repeated requests collapse into one callback."""
        assert self.coalescer.request("a", lambda: self.calls.append("a1"))
        assert not self.coalescer.request("a", lambda: self.calls.append("a2"))
        assert self.coalescer.request("b", lambda: self.calls.append("b"))

        assert self.scheduler.pending_frames == 2
        self.scheduler.run_frame()
        assert self.calls == ["a1", "b"]

    def test_request_after_run(self):
        """Test a key can be requested again once its frame ran."""
        self.coalescer.request("a", lambda: self.calls.append(1))
        self.scheduler.run_frame()
        assert not self.coalescer.is_pending("a")

        assert self.coalescer.request("a", lambda: self.calls.append(2))
        self.scheduler.run_frame()
        assert self.calls == [1, 2]

    def test_cancel(self):
        """Test a cancelled key does not run and can be requested again."""
        self.coalescer.request("a", lambda: self.calls.append("old"))
        self.coalescer.cancel("a")
        assert not self.coalescer.is_pending("a")

        self.coalescer.request("a", lambda: self.calls.append("new"))
        self.scheduler.run_frame()
        assert self.calls == ["new"]

    def test_cancel_unknown_key(self):
        """Test cancelling an unknown key is harmless."""
        self.coalescer.cancel("missing")
