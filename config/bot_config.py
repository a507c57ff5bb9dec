# Copyright (C) 2026 BPS
# This file is part of Arcane Fishing Bot.
#
# Bot configuration record (owned by the caller, read-only to the engine)

import logging
from dataclasses import dataclass, field, fields, asdict
from typing import Optional

from .defaults import (
    DEFAULT_CONFIG,
    RESOLUTION_PRESETS,
    MIN_BITE_TIMEOUT_S,
    MAX_BITE_TIMEOUT_S,
)
from utils.validators import (
    validate_region,
    validate_tolerance,
    validate_lure_value,
    validate_webhook_url,
)

logger = logging.getLogger("FishingBot")


@dataclass(frozen=True)
class Region:
    """Screen capture rectangle (absolute coordinates, primary display)"""

    x: int
    y: int
    width: int
    height: int

    @classmethod
    def from_dict(cls, coords):
        return cls(
            x=int(coords["x"]),
            y=int(coords["y"]),
            width=int(coords["width"]),
            height=int(coords["height"]),
        )

    def to_dict(self):
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}

    @property
    def signature(self):
        """Cache key for this region"""
        return f"{self.x},{self.y},{self.width},{self.height}"

    @property
    def area(self):
        return self.width * self.height


def calculate_bite_timeout(lure):
    """
    Seconds to wait for a bite before recasting.

    Low lure values mean long, patient waits; high values mean short,
    aggressive ones. Always within [10, 180] seconds.

    Args:
        lure (float): Rod lure value

    Returns:
        float: Timeout in seconds
    """
    if lure <= 1.0:
        multiplier = 3.0 - 2.0 * lure
    else:
        multiplier = 1.25 - lure / 3.0
    seconds = multiplier * 60.0 + 5.0
    return min(max(seconds, MIN_BITE_TIMEOUT_S), MAX_BITE_TIMEOUT_S)


_REGION_FIELDS = ("bite_region", "catch_region", "hunger_region")


def _default_region(name):
    return field(default_factory=lambda: Region.from_dict(DEFAULT_CONFIG[name]))


@dataclass(frozen=True)
class BotConfig:
    """All tunables read by the fishing engine"""

    color_tolerance: int = DEFAULT_CONFIG["color_tolerance"]
    advanced_detection: bool = DEFAULT_CONFIG["advanced_detection"]
    cluster_radius: int = DEFAULT_CONFIG["cluster_radius"]
    cluster_min_pixels: int = DEFAULT_CONFIG["cluster_min_pixels"]
    min_clusters: int = DEFAULT_CONFIG["min_clusters"]
    min_match_fraction: float = DEFAULT_CONFIG["min_match_fraction"]
    large_region_area: int = DEFAULT_CONFIG["large_region_area"]

    autoclick_interval_ms: int = DEFAULT_CONFIG["autoclick_interval_ms"]
    detection_interval_ms: int = DEFAULT_CONFIG["detection_interval_ms"]
    max_fishing_timeout_ms: int = DEFAULT_CONFIG["max_fishing_timeout_ms"]
    startup_delay_ms: int = DEFAULT_CONFIG["startup_delay_ms"]

    rod_lure_value: float = DEFAULT_CONFIG["rod_lure_value"]
    fish_per_feed: int = DEFAULT_CONFIG["fish_per_feed"]
    full_hunger_threshold: int = DEFAULT_CONFIG["full_hunger_threshold"]
    rod_key: str = DEFAULT_CONFIG["rod_key"]
    food_key: str = DEFAULT_CONFIG["food_key"]

    region_preset: str = DEFAULT_CONFIG["region_preset"]
    bite_region: Region = _default_region("bite_region")
    catch_region: Region = _default_region("catch_region")
    hunger_region: Region = _default_region("hunger_region")

    failsafe_enabled: bool = DEFAULT_CONFIG["failsafe_enabled"]

    webhook_url: str = DEFAULT_CONFIG["webhook_url"]
    screenshot_enabled: bool = DEFAULT_CONFIG["screenshot_enabled"]
    screenshot_interval_mins: int = DEFAULT_CONFIG["screenshot_interval_mins"]

    tesseract_path: Optional[str] = DEFAULT_CONFIG["tesseract_path"]

    @classmethod
    def from_dict(cls, data):
        """Build a config from a settings dict, ignoring unknown keys"""
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in (data or {}).items():
            if key not in known:
                logger.debug(f"[Config] Ignoring unknown setting: {key}")
                continue
            if key in _REGION_FIELDS and isinstance(value, dict):
                value = Region.from_dict(value)
            kwargs[key] = value
        return cls(**kwargs)

    def to_dict(self):
        return asdict(self)

    def with_changes(self, **changes):
        """Return a copy with some fields replaced"""
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data.update(changes)
        return BotConfig.from_dict(data)

    def apply_resolution_preset(self, preset):
        """Return a copy using the region triplet of a resolution preset

        Unknown presets leave the regions untouched.
        """
        regions = RESOLUTION_PRESETS.get(preset)
        if regions is None:
            logger.warning(f"[Config] Unknown resolution preset: {preset}")
            return self
        return self.with_changes(region_preset=preset, **regions)

    def max_bite_time(self):
        """Bite timeout in seconds for the configured lure"""
        return calculate_bite_timeout(self.rod_lure_value)

    def timeout_description(self):
        return f"Lure {self.rod_lure_value:.1f}: ~{self.max_bite_time():.0f}s timeout"

    def detection_settings(self):
        from vision.color_detector import DetectionSettings, DetectionMode

        return DetectionSettings(
            tolerance=self.color_tolerance,
            mode=DetectionMode.ADVANCED if self.advanced_detection else DetectionMode.BASIC,
            cluster_radius=self.cluster_radius,
            cluster_min_pixels=self.cluster_min_pixels,
            min_clusters=self.min_clusters,
            min_match_fraction=self.min_match_fraction,
            large_region_area=self.large_region_area,
        )

    def validate(self):
        """
        Check the config for values the engine cannot work with.

        Returns:
            list: Human-readable problems (empty when valid)
        """
        problems = []
        if not validate_tolerance(self.color_tolerance):
            problems.append(f"color_tolerance out of range: {self.color_tolerance}")
        if not validate_lure_value(self.rod_lure_value):
            problems.append(f"rod_lure_value must be positive: {self.rod_lure_value}")
        for name in _REGION_FIELDS:
            if not validate_region(getattr(self, name), name):
                problems.append(f"{name} is not a valid region")
        for name in ("autoclick_interval_ms", "detection_interval_ms", "max_fishing_timeout_ms"):
            if getattr(self, name) <= 0:
                problems.append(f"{name} must be positive")
        if self.startup_delay_ms < 0:
            problems.append("startup_delay_ms must not be negative")
        if self.fish_per_feed < 0:
            problems.append("fish_per_feed must not be negative")
        if self.webhook_url and not validate_webhook_url(self.webhook_url):
            problems.append("webhook_url is not an http(s) URL")
        return problems
