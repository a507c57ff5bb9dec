# Config module for Arcane Fishing Bot

from .bot_config import BotConfig, Region, calculate_bite_timeout
from .defaults import DEFAULT_CONFIG, RESOLUTION_PRESETS

__all__ = [
    'BotConfig',
    'Region',
    'calculate_bite_timeout',
    'DEFAULT_CONFIG',
    'RESOLUTION_PRESETS',
]
