"""
Tests for per-pathname click streaks and their decay timers.
"""

import asyncio

import pytest

from toppages.streaks import StreakTracker


def make_tracker(clock) -> StreakTracker:
    return StreakTracker(decay=1.5, schedule=clock.call_later)


class TestBurst:
    def test_counts_every_click_in_a_burst(self, clock) -> None:
        streaks = make_tracker(clock)

        for _ in range(4):
            streaks.click("/home")
            clock.advance(1.0)

        assert streaks.get("/home") == 4

    def test_resets_after_quiet_period(self, clock) -> None:
        streaks = make_tracker(clock)
        streaks.click("/home")
        streaks.click("/home")

        clock.advance(1.25)
        assert streaks.get("/home") == 2

        clock.advance(0.25)
        assert streaks.get("/home") == 0
        assert not streaks.pending("/home")

    def test_each_click_restarts_the_window(self, clock) -> None:
        streaks = make_tracker(clock)
        streaks.click("/docs")
        clock.advance(1.0)
        streaks.click("/docs")

        # first timer would have fired at 1.5
        clock.advance(1.0)
        assert streaks.get("/docs") == 2

        clock.advance(0.5)
        assert streaks.get("/docs") == 0

    def test_only_one_live_timer_per_pathname(self, clock) -> None:
        streaks = make_tracker(clock)
        for _ in range(5):
            streaks.click("/pricing")

        assert len(clock.live()) == 1

    def test_new_burst_after_reset_starts_at_one(self, clock) -> None:
        streaks = make_tracker(clock)
        streaks.click("/about")
        clock.advance(2)

        assert streaks.click("/about") == 1

    def test_unknown_pathname_is_zero(self, clock) -> None:
        assert make_tracker(clock).get("/nowhere") == 0


class TestIsolation:
    def test_click_on_one_page_leaves_others_alone(self, clock) -> None:
        streaks = make_tracker(clock)
        streaks.click("/home")
        clock.advance(1.0)
        home_timer = clock.live()[0]

        streaks.click("/docs")
        streaks.click("/docs")

        assert streaks.get("/home") == 1
        assert not home_timer.cancelled

        clock.advance(0.5)
        assert streaks.snapshot() == {"/home": 0, "/docs": 2}

        clock.advance(1.0)
        assert streaks.snapshot() == {"/home": 0, "/docs": 0}


class TestClose:
    def test_close_cancels_pending_timers(self, clock) -> None:
        streaks = make_tracker(clock)
        streaks.click("/home")
        streaks.click("/docs")

        streaks.close()
        clock.advance(5)

        assert clock.live() == []
        assert streaks.get("/home") == 1


class TestEventLoop:
    @pytest.mark.asyncio
    async def test_uses_running_loop_by_default(self) -> None:
        streaks = StreakTracker(decay=0.05)
        streaks.click("/home")
        streaks.click("/home")
        assert streaks.get("/home") == 2

        await asyncio.sleep(0.1)
        assert streaks.get("/home") == 0
