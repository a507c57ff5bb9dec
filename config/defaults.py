# Copyright (C) 2026 BPS
# This file is part of Arcane Fishing Bot.
#
# Default configuration values and resolution presets

# Region presets per screen resolution (bite, catch, hunger)
RESOLUTION_PRESETS = {
    "3440x1440": {
        "bite_region": {"x": 1321, "y": 99, "width": 768, "height": 546},
        "catch_region": {"x": 3097, "y": 1234, "width": 342, "height": 205},
        "hunger_region": {"x": 274, "y": 1301, "width": 43, "height": 36},
    },
    "1920x1080": {
        "bite_region": {"x": 598, "y": 29, "width": 901, "height": 477},
        "catch_region": {"x": 1649, "y": 632, "width": 270, "height": 447},
        "hunger_region": {"x": 212, "y": 984, "width": 21, "height": 18},
    },
}

DEFAULT_PRESET = "3440x1440"

DEFAULT_CONFIG = {
    # Detection
    "color_tolerance": 10,
    "advanced_detection": False,
    "cluster_radius": 5,
    "cluster_min_pixels": 3,
    "min_clusters": 2,
    "min_match_fraction": 0.0,   # 0 = any single match detects
    "large_region_area": 250000,
    # Timing (milliseconds)
    "autoclick_interval_ms": 70,
    "detection_interval_ms": 50,
    "max_fishing_timeout_ms": 25000,
    "startup_delay_ms": 3000,
    # Fishing
    "rod_lure_value": 1.0,
    "fish_per_feed": 5,
    "full_hunger_threshold": 100,
    "rod_key": "5",
    "food_key": "6",
    # Regions
    "region_preset": DEFAULT_PRESET,
    **RESOLUTION_PRESETS[DEFAULT_PRESET],
    # Safety
    "failsafe_enabled": True,
    # Notifications
    "webhook_url": "",
    "screenshot_enabled": True,
    "screenshot_interval_mins": 60,
    # OCR
    "tesseract_path": None,
}

# Bite wait clamp (seconds)
MIN_BITE_TIMEOUT_S = 10.0
MAX_BITE_TIMEOUT_S = 180.0

# Screenshot cache retention ceiling (seconds), independent of per-entry TTL
CACHE_RETENTION_S = 10.0

# Error recovery
MAX_CONSECUTIVE_ERRORS = 5
ERROR_BACKOFF_STEP_S = 1.0
ERROR_BACKOFF_CAP_S = 5.0
CRITICAL_ERROR_ALERT_AT = 3

# Notifications
MILESTONE_EVERY = 10
