"""
Shared fixtures: a Flask test client and a fake timer scheduler.
"""

import os

import pytest

# Set before toppages.config is imported
os.environ.setdefault("TINYBIRD_TOKEN", "test-token")
os.environ.setdefault("TINYBIRD_HOST", "https://tinybird.test")

from toppages.app import app as flask_app


@pytest.fixture
def client():
    flask_app.config["TESTING"] = True
    with flask_app.test_client() as c:
        yield c


class FakeTimer:
    def __init__(self, clock, due, callback):
        self.clock = clock
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeClock:
    """
    Scheduler for StreakTracker that only moves when advance() is called.
    """

    def __init__(self):
        self.now = 0.0
        self.timers: list[FakeTimer] = []

    def call_later(self, delay, callback):
        timer = FakeTimer(self, self.now + delay, callback)
        self.timers.append(timer)
        return timer

    def advance(self, seconds):
        self.now += seconds
        due = [t for t in self.timers if not t.cancelled and t.due <= self.now]
        for t in sorted(due, key=lambda t: t.due):
            self.timers.remove(t)
            t.callback()

    def live(self):
        return [t for t in self.timers if not t.cancelled]


@pytest.fixture
def clock():
    return FakeClock()
