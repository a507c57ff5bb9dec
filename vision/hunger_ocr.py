"""
Hunger OCR - Arcane Fishing Bot
===============================
Reads the hunger percentage from its screen region.

Pipeline: capture -> grayscale -> median -> Otsu binarize -> Tesseract
(digits and % only) -> first integer <= 999.

Readings are cached by an image fingerprint for a couple of seconds so an
unchanged readout is not sent through Tesseract on every tick. Any failure
yields None; the caller picks the safe default.
"""

import hashlib
import logging
import threading
import time

from core.exceptions import CaptureError, OcrFailure
from .ocr_service import preprocess_for_ocr

logger = logging.getLogger("FishingBot")

MAX_HUNGER_VALUE = 999
ASCII_DIGITS = "0123456789"
RESULT_TTL_S = 2.0
RESULT_RETENTION_S = 10.0
FINGERPRINT_SAMPLES = 32  # per axis


def parse_hunger_text(text):
    """
    Extract the hunger value from raw OCR output.

    Non-digit noise is discarded; numbers above 999 are rejected and the
    next candidate is tried.

    Args:
        text (str): Raw OCR text, e.g. "87%"

    Returns:
        int: Parsed value, or None if nothing valid was found
    """
    if not text:
        return None

    cleaned = text.strip().replace("%", "")
    if cleaned and all(c in ASCII_DIGITS for c in cleaned):
        value = int(cleaned)
        if value <= MAX_HUNGER_VALUE:
            return value

    for token in cleaned.split():
        digits = "".join(c for c in token if c in ASCII_DIGITS)
        if not digits:
            continue
        value = int(digits)
        if value <= MAX_HUNGER_VALUE:
            return value
    return None


def image_fingerprint(image):
    """Cache key: hash of a strided pixel sample plus the shape"""
    h, w = image.shape[:2]
    step_y = max(1, h // FINGERPRINT_SAMPLES)
    step_x = max(1, w // FINGERPRINT_SAMPLES)
    sample = image[::step_y, ::step_x]
    digest = hashlib.blake2b(sample.tobytes(), digest_size=16)
    digest.update(repr(image.shape).encode("ascii"))
    return digest.hexdigest()


class HungerOCR:
    """
    Hunger readout pipeline with a short-lived result cache.

    Thread-safe; the cache lock is never held while Tesseract runs.
    """

    def __init__(self, ocr_service, screen_cache=None, denoise=True, threshold=None,
                 cache_ttl=RESULT_TTL_S, cache_retention=RESULT_RETENTION_S,
                 clock=time.monotonic):
        """
        Args:
            ocr_service (OCRService): Text recognition engine
            screen_cache (ScreenshotCache): Used by read_region()
            denoise (bool): Apply the 3x3 median filter
            threshold (int): Fixed binarization threshold, None for Otsu
            cache_ttl (float): Seconds a reading is reused
            cache_retention (float): Seconds after which readings are purged
        """
        self.ocr = ocr_service
        self.screen_cache = screen_cache
        self.denoise = denoise
        self.threshold = threshold
        self.cache_ttl = cache_ttl
        self.cache_retention = max(cache_retention, cache_ttl)
        self._clock = clock
        self._cache = {}
        self._lock = threading.Lock()

    def read_region(self, region):
        """
        Capture ``region`` and read the hunger value from it.

        A failed capture is treated like unreadable text.

        Returns:
            int or None
        """
        if self.screen_cache is None:
            logger.warning("[OCR] No screen cache attached, cannot read hunger region")
            return None
        try:
            image = self.screen_cache.get_cached_or_capture(region)
        except CaptureError as e:
            logger.warning(f"[OCR] Hunger region capture failed: {e}")
            return None
        return self.read_hunger(image)

    def read_hunger(self, image):
        """
        Read the hunger value from a captured buffer.

        Returns:
            int or None: None when OCR or parsing fails
        """
        if image is None or image.size == 0:
            return None

        key = image_fingerprint(image)
        now = self._clock()
        with self._lock:
            cached = self._cache.get(key)
            if cached is not None and now - cached[1] < self.cache_ttl:
                return cached[0]

        try:
            value = self._recognize(image)
        except OcrFailure as e:
            logger.debug(f"[OCR] Hunger read failed: {e}")
            value = None

        stored_at = self._clock()
        with self._lock:
            self._cache[key] = (value, stored_at)
            expired = [k for k, (_, ts) in self._cache.items() if stored_at - ts >= self.cache_retention]
            for k in expired:
                del self._cache[k]
        return value

    def _recognize(self, image):
        try:
            processed = preprocess_for_ocr(image, denoise=self.denoise, threshold=self.threshold)
        except Exception as e:
            raise OcrFailure(f"preprocessing failed: {e}") from e

        text, _confidence = self.ocr.perform_ocr(processed)
        if text is None:
            raise OcrFailure("engine returned no text")

        value = parse_hunger_text(text)
        if value is None:
            raise OcrFailure(f"unparseable output: {text!r}")
        return value

    def clear_cache(self):
        with self._lock:
            self._cache.clear()
