# Copyright (C) 2026 BPS
# This file is part of Arcane Fishing Bot.
#
# Validation utilities for regions, webhooks, and tuning values

import logging
from urllib.parse import urlparse

logger = logging.getLogger('FishingBot')


def validate_webhook_url(url):
    """Validate webhook URL format (http/https with a host)"""
    if not url or not isinstance(url, str):
        return False
    parsed = urlparse(url.strip())
    return parsed.scheme in ('http', 'https') and bool(parsed.netloc)


def validate_region(region, region_name="region", screen_width=None, screen_height=None):
    """Validate a capture region

    Accepts a Region or a dict with x, y, width, height. Offsets may be
    negative (monitors left of/above the primary) unless screen bounds are
    given, in which case the region must lie fully on screen.

    Args:
        region: Region instance or dict
        region_name: Name for log messages
        screen_width: Optional screen width limit
        screen_height: Optional screen height limit
    """
    if region is None:
        return False

    if isinstance(region, dict):
        required_keys = ['x', 'y', 'width', 'height']
        if not all(key in region for key in required_keys):
            logger.warning(f"Invalid {region_name}: missing x, y, width or height")
            return False
        values = region
    else:
        values = {
            'x': getattr(region, 'x', None),
            'y': getattr(region, 'y', None),
            'width': getattr(region, 'width', None),
            'height': getattr(region, 'height', None),
        }

    try:
        x, y = int(values['x']), int(values['y'])
        w, h = int(values['width']), int(values['height'])
    except (ValueError, TypeError):
        logger.warning(f"Invalid {region_name}: non-numeric values")
        return False

    if w <= 0 or h <= 0:
        logger.warning(f"Invalid {region_name}: empty size {w}x{h}")
        return False

    if screen_width is not None and screen_height is not None:
        if x < 0 or y < 0 or (x + w) > screen_width or (y + h) > screen_height:
            logger.warning(f"Invalid {region_name}: ({x}, {y}, {w}, {h}) out of screen bounds")
            return False
    return True


def validate_tolerance(tolerance):
    """Color tolerance must fit in a byte"""
    try:
        return 0 <= int(tolerance) <= 255
    except (ValueError, TypeError):
        return False


def validate_lure_value(lure):
    """Lure value must be a positive number"""
    try:
        return float(lure) > 0
    except (ValueError, TypeError):
        return False
