"""
Vision Module - Arcane Fishing Bot
==================================
Screen analysis: capture, color classification and hunger OCR.

Modules:
    - screen_capture: mss capture of the primary display + per-region cache
    - color_detector: basic / clustering color classifier
    - ocr_service: Tesseract wrapper and OCR preprocessing
    - hunger_ocr: hunger readout pipeline with result cache

Usage:
    from vision import ScreenCapture, ScreenshotCache, ColorDetector, BITE_COLOR

    cache = ScreenshotCache(ScreenCapture(), ttl=0.05)
    image = cache.get_cached_or_capture(config.bite_region)

    detector = ColorDetector()
    result = detector.detect(image, BITE_COLOR, config.detection_settings())
"""

from .screen_capture import ScreenCapture, ScreenshotCache, encode_jpeg
from .color_detector import (
    ColorDetector,
    TargetColor,
    DetectionMode,
    DetectionSettings,
    DetectionResult,
    BITE_COLOR,
    CAUGHT_COLOR,
)
from .ocr_service import OCRService
from .hunger_ocr import HungerOCR, parse_hunger_text

__all__ = [
    'ScreenCapture',
    'ScreenshotCache',
    'encode_jpeg',
    'ColorDetector',
    'TargetColor',
    'DetectionMode',
    'DetectionSettings',
    'DetectionResult',
    'BITE_COLOR',
    'CAUGHT_COLOR',
    'OCRService',
    'HungerOCR',
    'parse_hunger_text',
]
