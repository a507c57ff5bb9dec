"""
Color Detector - Arcane Fishing Bot
===================================
Pixel color classification for the bite and catch indicators.

Two policies, picked per call from DetectionSettings:
    - BASIC: Manhattan distance threshold, any match (or an area-relative
      match floor on large regions) detects
    - ADVANCED: squared Euclidean threshold plus a clustering pass that
      ignores isolated noise pixels

Buffers are numpy arrays in BGR/BGRA order (as returned by mss);
target colors are RGB.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np


@dataclass(frozen=True)
class TargetColor:
    """Reference RGB color"""

    r: int
    g: int
    b: int

    def as_bgr(self):
        return np.array([self.b, self.g, self.r], dtype=np.int32)


# Red exclamation mark shown on a bite
BITE_COLOR = TargetColor(241, 27, 28)
# Yellow banner shown once the fish is landed
CAUGHT_COLOR = TargetColor(255, 255, 0)


class DetectionMode(Enum):
    BASIC = "basic"
    ADVANCED = "advanced"


@dataclass(frozen=True)
class DetectionSettings:
    """Classifier parameters (built from BotConfig.detection_settings())"""

    tolerance: int = 10
    mode: DetectionMode = DetectionMode.BASIC
    cluster_radius: int = 5
    cluster_min_pixels: int = 3
    min_clusters: int = 2
    min_match_fraction: float = 0.0
    large_region_area: int = 250000


@dataclass(frozen=True)
class DetectionResult:
    hit: bool
    match_count: int = 0
    cluster_count: int = 0
    positions: Optional[np.ndarray] = None  # (row, col) pairs of matches

    def __bool__(self):
        return self.hit


class ColorDetector:
    """
    Color detection and matching utilities.

    Stateless; safe to share between threads.
    """

    def check_color_match(self, color1, color2, tolerance=10):
        """
        Check if two RGB colors match within a per-channel tolerance.

        Returns:
            bool: True if every channel differs by at most ``tolerance``
        """
        if color1 is None or color2 is None:
            return False

        try:
            return all(abs(color1[i] - color2[i]) <= tolerance for i in range(3))
        except (IndexError, TypeError):
            return False

    def color_distance(self, pixel_rgb, target):
        """Manhattan distance between an RGB tuple and a TargetColor"""
        r, g, b = pixel_rgb[:3]
        return abs(int(r) - target.r) + abs(int(g) - target.g) + abs(int(b) - target.b)

    def detect(self, image, target, settings=None, with_positions=False):
        """
        Classify a buffer for the presence of ``target``.

        Args:
            image (numpy.ndarray): BGR/BGRA buffer, shape (h, w, 3|4)
            target (TargetColor): Reference color
            settings (DetectionSettings): Policy and thresholds
            with_positions (bool): Include match coordinates in the result

        Returns:
            DetectionResult: ``hit`` is False for an empty or non-matching buffer
        """
        settings = settings or DetectionSettings()
        if image is None or image.size == 0:
            return DetectionResult(hit=False)

        if settings.mode is DetectionMode.ADVANCED:
            return self._advanced_detection(image, target, settings, with_positions)
        return self._basic_detection(image, target, settings, with_positions)

    def _channel_deltas(self, image, target):
        bgr = image[..., :3].astype(np.int32)
        return bgr - target.as_bgr()

    def _basic_detection(self, image, target, settings, with_positions):
        max_distance = int(settings.tolerance) * 3
        distance = np.abs(self._channel_deltas(image, target)).sum(axis=2)
        mask = distance <= max_distance
        match_count = int(mask.sum())

        area = mask.shape[0] * mask.shape[1]
        required = 1
        if settings.min_match_fraction > 0 and area >= settings.large_region_area:
            required = max(1, int(area * settings.min_match_fraction))

        return DetectionResult(
            hit=match_count >= required,
            match_count=match_count,
            positions=np.argwhere(mask) if with_positions else None,
        )

    def _advanced_detection(self, image, target, settings, with_positions):
        max_distance_sq = (int(settings.tolerance) * 3) ** 2
        deltas = self._channel_deltas(image, target)
        mask = (deltas * deltas).sum(axis=2) <= max_distance_sq
        match_count = int(mask.sum())
        if match_count == 0:
            return DetectionResult(hit=False)

        # A match anchors a cluster when its Chebyshev neighbourhood
        # (itself included) holds at least cluster_min_pixels matches
        neighbours = neighbourhood_counts(mask, settings.cluster_radius)
        anchors = int(np.count_nonzero(mask & (neighbours >= settings.cluster_min_pixels)))

        return DetectionResult(
            hit=anchors >= settings.min_clusters,
            match_count=match_count,
            cluster_count=anchors,
            positions=np.argwhere(mask) if with_positions else None,
        )


def neighbourhood_counts(mask, radius):
    """
    Count True cells in the (2r+1)x(2r+1) window around every cell.

    Uses an integral image so the cost is independent of the radius.
    """
    h, w = mask.shape
    integral = np.zeros((h + 1, w + 1), dtype=np.int32)
    integral[1:, 1:] = mask.astype(np.int32).cumsum(axis=0).cumsum(axis=1)

    rows = np.arange(h)
    cols = np.arange(w)
    top = np.clip(rows - radius, 0, h)[:, None]
    bottom = np.clip(rows + radius + 1, 0, h)[:, None]
    left = np.clip(cols - radius, 0, w)[None, :]
    right = np.clip(cols + radius + 1, 0, w)[None, :]

    return (
        integral[bottom, right]
        - integral[top, right]
        - integral[bottom, left]
        + integral[top, left]
    )
