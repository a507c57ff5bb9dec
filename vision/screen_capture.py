"""
Screen Capture - Arcane Fishing Bot
===================================
Screenshot capture using mss, plus a per-region screenshot cache.

- Lazily created, thread-safe mss instance (reset after a failed grab)
- Primary display only
- ScreenshotCache memoizes captures per region for one detection tick and
  evicts anything older than a fixed retention ceiling
"""

import time
import threading
import logging

import mss
import numpy as np

from config.defaults import CACHE_RETENTION_S
from core.exceptions import CaptureError
from utils.locks import ReadWriteLock

logger = logging.getLogger("FishingBot")

PRIMARY_MONITOR = 1  # mss index 0 is the union of all monitors


class ScreenCapture:
    """
    Reads rectangular regions of the primary display into BGRA numpy arrays.

    All coordinates are absolute screen coordinates.
    """

    def __init__(self, mss_factory=None):
        """
        Initialize screen capture.

        Args:
            mss_factory: Callable returning an mss-like object (default: mss.mss)
        """
        self._mss_factory = mss_factory or mss.mss
        self._mss_instance = None
        self._mss_lock = threading.Lock()

    def _get_mss_instance(self):
        """
        Get or create mss instance (thread-safe).

        Raises:
            CaptureError: mss could not connect to a display
        """
        with self._mss_lock:
            if self._mss_instance is None:
                try:
                    self._mss_instance = self._mss_factory()
                except Exception as e:
                    raise CaptureError(f"No display found: {e}") from e
            return self._mss_instance

    def _reset_mss_instance(self):
        """Reset mss instance (thread-safe)."""
        with self._mss_lock:
            if self._mss_instance is not None:
                try:
                    self._mss_instance.close()
                except Exception as e:
                    logger.debug(f"[ScreenCapture] Error closing mss: {e}")
                self._mss_instance = None

    def _primary_monitor(self, mss_instance):
        monitors = mss_instance.monitors
        if len(monitors) <= PRIMARY_MONITOR:
            raise CaptureError("No display found")
        return monitors[PRIMARY_MONITOR]

    def capture(self, region):
        """
        Capture a region of the primary display.

        Args:
            region (Region): Area to capture

        Returns:
            numpy.ndarray: BGRA array of shape (height, width, 4)

        Raises:
            CaptureError: No display, invalid region, or grab failure
        """
        if region.width <= 0 or region.height <= 0:
            raise CaptureError(f"Invalid region {region.signature}")

        mss_instance = self._get_mss_instance()
        # Missing display is a hard error: no reset, no retry
        self._primary_monitor(mss_instance)

        monitor = {
            "left": region.x,
            "top": region.y,
            "width": region.width,
            "height": region.height,
        }
        try:
            screenshot = mss_instance.grab(monitor)
            return np.array(screenshot)
        except Exception as e:
            logger.warning(f"[ScreenCapture] capture failed at ({region.signature}): {e}")
            self._reset_mss_instance()
            raise CaptureError(f"Capture failed at {region.signature}: {e}") from e

    def capture_full_screen(self):
        """
        Capture the whole primary display.

        Returns:
            numpy.ndarray: BGRA array

        Raises:
            CaptureError: No display or grab failure
        """
        mss_instance = self._get_mss_instance()
        monitor = self._primary_monitor(mss_instance)
        try:
            return np.array(mss_instance.grab(monitor))
        except Exception as e:
            logger.warning(f"[ScreenCapture] full screen capture failed: {e}")
            self._reset_mss_instance()
            raise CaptureError(f"Full screen capture failed: {e}") from e

    def cleanup(self):
        """Close the mss instance if it exists."""
        self._reset_mss_instance()


def encode_jpeg(image, quality=85):
    """
    Encode a BGRA/BGR buffer as JPEG bytes.

    Returns:
        bytes: JPEG data, or None on failure
    """
    import cv2

    try:
        if image.ndim == 3 and image.shape[2] == 4:
            image = cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
        ok, encoded = cv2.imencode(".jpg", image, [cv2.IMWRITE_JPEG_QUALITY, int(quality)])
        if not ok:
            return None
        return encoded.tobytes()
    except Exception as e:
        logger.warning(f"[ScreenCapture] JPEG encode failed: {e}")
        return None


class ScreenshotCache:
    """
    Per-region screenshot memoization.

    Entries younger than ``ttl`` are served from the cache; every store
    purges entries older than ``retention``. The retention ceiling is never
    allowed below the TTL.

    Cached arrays are read-only: callers share them instead of copying.
    """

    def __init__(self, capture, ttl=0.05, retention=CACHE_RETENTION_S, clock=time.monotonic):
        """
        Args:
            capture: ScreenCapture (or anything with capture(region))
            ttl (float): Seconds a capture stays fresh
            retention (float): Seconds after which any entry is purged
            clock: Monotonic time source
        """
        self._capture = capture
        self._clock = clock
        self._entries = {}
        self._lock = ReadWriteLock()
        self.ttl = float(ttl)
        self.retention = float(retention)
        self._enforce_retention()

    def _enforce_retention(self):
        if self.retention < self.ttl:
            logger.warning(
                f"[ScreenCapture] Cache retention {self.retention}s below TTL {self.ttl}s, raising to TTL"
            )
            self.retention = self.ttl

    def set_ttl(self, ttl):
        with self._lock.write():
            self.ttl = float(ttl)
            self._enforce_retention()

    def get(self, region):
        """Return the cached buffer for a region if still fresh, else None"""
        now = self._clock()
        with self._lock.read():
            entry = self._entries.get(region.signature)
            if entry is not None:
                image, captured_at = entry
                if now - captured_at < self.ttl:
                    return image
        return None

    def get_cached_or_capture(self, region):
        """
        Return a fresh buffer for ``region``, capturing only when needed.

        Raises:
            CaptureError: propagated from the capture backend
        """
        cached = self.get(region)
        if cached is not None:
            return cached

        # Capture outside any lock; a racing duplicate capture is harmless
        image = np.array(self._capture.capture(region), copy=True)
        image.setflags(write=False)
        captured_at = self._clock()

        with self._lock.write():
            self._entries[region.signature] = (image, captured_at)
            expired = [
                key for key, (_, ts) in self._entries.items()
                if captured_at - ts >= self.retention
            ]
            for key in expired:
                del self._entries[key]

        return image

    def clear(self):
        """Clear the screenshot cache."""
        with self._lock.write():
            self._entries.clear()

    def __len__(self):
        with self._lock.read():
            return len(self._entries)
