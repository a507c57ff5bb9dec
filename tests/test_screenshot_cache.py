"""
Test suite for vision/screen_capture.py
========================================
Tests for region capture through mss and the per-region screenshot cache.
"""

import numpy as np
import pytest

from config.bot_config import Region
from core.exceptions import CaptureError
from vision.screen_capture import ScreenCapture, ScreenshotCache, encode_jpeg

REGION_A = Region(10, 20, 4, 3)
REGION_B = Region(100, 200, 4, 3)


class FakeCapture:
    """Counts capture calls and returns a distinct buffer each time"""

    def __init__(self, fail=False):
        self.calls = 0
        self.fail = fail

    def capture(self, region):
        self.calls += 1
        if self.fail:
            raise CaptureError("grab failed")
        return np.full((region.height, region.width, 4), self.calls, dtype=np.uint8)


class FakeMss:
    def __init__(self, monitors, fail=False):
        self.monitors = monitors
        self.fail = fail
        self.closed = False
        self.grabs = []

    def grab(self, monitor):
        self.grabs.append(monitor)
        if self.fail:
            raise RuntimeError("XGetImage failed")
        return np.zeros((monitor["height"], monitor["width"], 4), dtype=np.uint8)

    def close(self):
        self.closed = True


PRIMARY = {"left": 0, "top": 0, "width": 64, "height": 48}


class TestScreenshotCache:
    """Tests for TTL and retention behavior"""

    def test_single_capture_within_ttl(self, clock):
        capture = FakeCapture()
        cache = ScreenshotCache(capture, ttl=0.05, clock=clock)

        first = cache.get_cached_or_capture(REGION_A)
        clock.advance(0.02)
        second = cache.get_cached_or_capture(REGION_A)

        assert capture.calls == 1
        assert second is first

    def test_recapture_after_expiry(self, clock):
        capture = FakeCapture()
        cache = ScreenshotCache(capture, ttl=0.05, clock=clock)

        first = cache.get_cached_or_capture(REGION_A)
        clock.advance(0.05)
        second = cache.get_cached_or_capture(REGION_A)

        assert capture.calls == 2
        assert second[0, 0, 0] == 2
        assert first[0, 0, 0] == 1

    def test_regions_are_cached_separately(self, clock):
        capture = FakeCapture()
        cache = ScreenshotCache(capture, ttl=1.0, clock=clock)

        cache.get_cached_or_capture(REGION_A)
        cache.get_cached_or_capture(REGION_B)
        cache.get_cached_or_capture(REGION_A)

        assert capture.calls == 2
        assert len(cache) == 2

    def test_cached_buffers_are_read_only(self, clock):
        cache = ScreenshotCache(FakeCapture(), clock=clock)
        image = cache.get_cached_or_capture(REGION_A)

        assert not image.flags.writeable
        with pytest.raises(ValueError):
            image[0, 0, 0] = 9

    def test_old_entries_purged_past_retention(self, clock):
        cache = ScreenshotCache(FakeCapture(), ttl=0.05, retention=1.0, clock=clock)

        cache.get_cached_or_capture(REGION_A)
        clock.advance(2.0)
        cache.get_cached_or_capture(REGION_B)

        assert len(cache) == 1
        assert cache.get(REGION_A) is None

    def test_retention_never_below_ttl(self, clock):
        cache = ScreenshotCache(FakeCapture(), ttl=5.0, retention=1.0, clock=clock)
        assert cache.retention == 5.0

        cache.set_ttl(20.0)
        assert cache.retention == 20.0
        assert cache.ttl == 20.0

    def test_capture_error_propagates_and_caches_nothing(self, clock):
        cache = ScreenshotCache(FakeCapture(fail=True), clock=clock)

        with pytest.raises(CaptureError):
            cache.get_cached_or_capture(REGION_A)
        assert len(cache) == 0

    def test_clear(self, clock):
        capture = FakeCapture()
        cache = ScreenshotCache(capture, ttl=1.0, clock=clock)
        cache.get_cached_or_capture(REGION_A)

        cache.clear()
        cache.get_cached_or_capture(REGION_A)

        assert capture.calls == 2


class TestScreenCapture:
    """Tests for the mss-backed capture"""

    def test_capture_region(self):
        fake = FakeMss([PRIMARY, PRIMARY])
        screen = ScreenCapture(mss_factory=lambda: fake)

        image = screen.capture(REGION_A)

        assert image.shape == (3, 4, 4)
        assert fake.grabs == [{"left": 10, "top": 20, "width": 4, "height": 3}]

    def test_no_display(self):
        screen = ScreenCapture(mss_factory=lambda: FakeMss([PRIMARY]))

        with pytest.raises(CaptureError, match="No display"):
            screen.capture(REGION_A)

    def test_mss_connection_failure_is_capture_error(self):
        def no_display():
            raise RuntimeError("Cannot connect to display")

        screen = ScreenCapture(mss_factory=no_display)

        with pytest.raises(CaptureError, match="No display"):
            screen.capture(REGION_A)
        with pytest.raises(CaptureError, match="No display"):
            screen.capture_full_screen()

    def test_invalid_region(self):
        screen = ScreenCapture(mss_factory=lambda: FakeMss([PRIMARY, PRIMARY]))

        with pytest.raises(CaptureError):
            screen.capture(Region(0, 0, 0, 5))

    def test_grab_failure_resets_mss(self):
        created = []

        def factory():
            created.append(FakeMss([PRIMARY, PRIMARY], fail=len(created) == 0))
            return created[-1]

        screen = ScreenCapture(mss_factory=factory)
        with pytest.raises(CaptureError):
            screen.capture(REGION_A)
        assert created[0].closed

        assert screen.capture(REGION_A).shape == (3, 4, 4)
        assert len(created) == 2

    def test_full_screen_uses_primary_monitor(self):
        fake = FakeMss([{"left": 0, "top": 0, "width": 1, "height": 1}, PRIMARY])
        screen = ScreenCapture(mss_factory=lambda: fake)

        assert screen.capture_full_screen().shape == (48, 64, 4)


class TestJpegEncoding:
    """Tests for screenshot encoding"""

    def test_encode_bgra(self):
        data = encode_jpeg(np.zeros((16, 16, 4), dtype=np.uint8))

        assert data is not None
        assert data[:2] == b"\xff\xd8"

    def test_encode_none(self):
        assert encode_jpeg(None) is None
