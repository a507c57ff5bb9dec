"""
OCR Service - Arcane Fishing Bot
================================
Tesseract OCR wrapper and image preprocessing for the hunger readout.

Fail-safe call contract: every method returns None (or
(None, 0.0)) on failure so the caller decides the fallback behaviour.
"""

import logging
import os
import shutil
import subprocess
import tempfile

from utils.path_helpers import get_resource_path

logger = logging.getLogger("FishingBot")

# Tesseract paths to check after the configured path and PATH (priority order)
TESSERACT_PATHS = [
    # 1. Bundled next to the bot (portable mode)
    get_resource_path(os.path.join("tesseract", "tesseract.exe")),
    # 2. Standard Tesseract installation
    r"C:\Program Files\Tesseract-OCR\tesseract.exe",
    r"C:\Program Files (x86)\Tesseract-OCR\tesseract.exe",
    "/usr/bin/tesseract",
    "/usr/local/bin/tesseract",
    "/opt/homebrew/bin/tesseract",
]

DIGIT_WHITELIST = "0123456789%"


# ========== PREPROCESSING ==========

def to_grayscale(image):
    """
    Luminance-weighted grayscale (0.299 R + 0.587 G + 0.114 B).

    Keeps digit/background contrast better than a plain channel average.

    Args:
        image (numpy.ndarray): BGR or BGRA buffer

    Returns:
        numpy.ndarray: uint8 single-channel image
    """
    import cv2

    if image.ndim == 2:
        return image
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
    return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)


def median_denoise(gray):
    """3x3 median filter (edges replicated)"""
    import cv2

    return cv2.medianBlur(gray, 3)


def otsu_threshold(gray):
    """
    Threshold that maximizes the inter-class variance of the histogram.

    Returns:
        int: Threshold value; pixels above it are foreground
    """
    import cv2

    threshold, _ = cv2.threshold(gray, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)
    return int(threshold)


def binarize(gray, threshold=None):
    """
    Binarize to 0/255.

    Args:
        gray (numpy.ndarray): uint8 image
        threshold (int): Fixed threshold, or None for Otsu

    Returns:
        numpy.ndarray: uint8 image with values 0 or 255
    """
    import cv2

    if threshold is None:
        threshold = otsu_threshold(gray)
    _, binary = cv2.threshold(gray, int(threshold), 255, cv2.THRESH_BINARY)
    return binary


def preprocess_for_ocr(image, denoise=True, threshold=None):
    """
    Full preprocessing chain: grayscale -> (median) -> binarize.

    Args:
        image (numpy.ndarray): BGR/BGRA buffer
        denoise (bool): Apply the 3x3 median filter
        threshold (int): Fixed threshold, or None for Otsu
    """
    gray = to_grayscale(image)
    if denoise:
        gray = median_denoise(gray)
    return binarize(gray, threshold)


# ========== ENGINE ==========

class OCRService:
    """
    Fail-safe OCR service using an external Tesseract executable.

    All methods return None on failure, allowing the caller to decide
    fallback behavior. Uses PSM 8 (single word) for the hunger readout.
    """

    def __init__(self, tesseract_path=None, default_timeout_ms=1000):
        """
        Initialize OCR service.

        Args:
            tesseract_path (str): Explicit tesseract executable (optional)
            default_timeout_ms (int): Default OCR timeout in milliseconds
        """
        self.default_timeout_ms = default_timeout_ms
        self.tesseract_path = self._find_tesseract(tesseract_path)
        self.available = self.tesseract_path is not None

        if self.available:
            logger.info(f"[OCR] Tesseract found: {self.tesseract_path}")
        else:
            logger.error(
                "[OCR] Tesseract not found! Hunger readings disabled "
                "(install from https://github.com/tesseract-ocr/tesseract)"
            )

    def _find_tesseract(self, configured=None):
        """Find Tesseract executable."""
        if configured and os.path.exists(configured):
            return configured
        on_path = shutil.which("tesseract")
        if on_path:
            return on_path
        for path in TESSERACT_PATHS:
            if os.path.exists(path):
                return path
        return None

    def is_available(self):
        """
        Returns:
            bool: True if Tesseract is installed, False otherwise
        """
        return self.available

    def perform_ocr(self, image, timeout_ms=None, psm_mode=8, char_whitelist=DIGIT_WHITELIST):
        """
        Run Tesseract on an already preprocessed image.

        Args:
            image (numpy.ndarray): Image to analyze
            timeout_ms (int): Timeout in milliseconds (default: default_timeout_ms)
            psm_mode (int): Tesseract page segmentation mode
            char_whitelist (str): Characters Tesseract may emit

        Returns:
            tuple: (detected_text: str, confidence: float) or (None, 0.0) on failure
        """
        if image is None:
            logger.debug("[OCR] perform_ocr called with None image")
            return None, 0.0

        if not self.available:
            logger.debug("[OCR] Tesseract not available")
            return None, 0.0

        import cv2

        timeout_sec = (timeout_ms or self.default_timeout_ms) / 1000.0
        tmp_path = None
        try:
            with tempfile.NamedTemporaryFile(prefix="hunger_ocr_", suffix=".png", delete=False) as tmp:
                tmp_path = tmp.name
            cv2.imwrite(tmp_path, image)

            # Hide console window on Windows
            startupinfo = None
            creationflags = 0
            if os.name == "nt":
                startupinfo = subprocess.STARTUPINFO()
                startupinfo.dwFlags |= subprocess.STARTF_USESHOWWINDOW
                startupinfo.wShowWindow = subprocess.SW_HIDE
                creationflags = subprocess.CREATE_NO_WINDOW

            cmd = [
                self.tesseract_path,
                tmp_path,
                "stdout",
                "-l", "eng",
                "--oem", "3",
                "--psm", str(psm_mode),
                "--dpi", "150",
            ]
            if char_whitelist:
                cmd.extend(["-c", f"tessedit_char_whitelist={char_whitelist}"])

            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=timeout_sec,
                encoding="utf-8",
                startupinfo=startupinfo,
                creationflags=creationflags,
            )

            if result.returncode != 0:
                logger.warning(f"[OCR] Tesseract error: {result.stderr.strip()}")
                return None, 0.0

            text = result.stdout.strip()
            # Tesseract doesn't report confidence in stdout mode
            confidence = 0.8 if text else 0.0
            logger.debug(f"[OCR] Result: '{text}' (confidence: {confidence:.2f})")
            return text, confidence

        except subprocess.TimeoutExpired:
            logger.warning(f"[OCR] Timeout exceeded ({timeout_sec}s)")
            return None, 0.0
        except Exception as e:
            logger.warning(f"[OCR] Execution error: {e}")
            return None, 0.0
        finally:
            if tmp_path and os.path.exists(tmp_path):
                try:
                    os.unlink(tmp_path)
                except OSError as e:
                    logger.debug(f"[OCR] Could not remove temp file: {e}")
