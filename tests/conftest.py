"""Shared test doubles"""

import pytest


class FakeClock:
    """Monotonic clock whose sleep() advances time instantly"""

    def __init__(self, start=0.0):
        self.now = float(start)
        self.on_sleep = None

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds

    def sleep(self, seconds):
        self.now += max(seconds, 0.0)
        if self.on_sleep is not None:
            self.on_sleep(self.now)


@pytest.fixture
def clock():
    return FakeClock()
