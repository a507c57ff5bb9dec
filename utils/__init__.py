# Utils module for Arcane Fishing Bot

from .path_helpers import get_app_dir, get_resource_path
from .timing import interruptible_sleep, format_duration
from .locks import ReadWriteLock
from .validators import (
    validate_webhook_url,
    validate_region,
    validate_tolerance,
    validate_lure_value,
)

__all__ = [
    'get_app_dir',
    'get_resource_path',
    'interruptible_sleep',
    'format_duration',
    'ReadWriteLock',
    'validate_webhook_url',
    'validate_region',
    'validate_tolerance',
    'validate_lure_value',
]
