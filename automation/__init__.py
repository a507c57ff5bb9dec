"""
Automation Module - Arcane Fishing Bot
======================================
The fishing state machine.

FishingCycle receives pre-configured dependencies (vision bundle, input
controller, notifier, session store, stats) from the engine and does not
touch settings files or threads itself.

Usage:
    from automation import FishingCycle

    cycle = FishingCycle(vision, input_ctrl, notifier, session, stats, performance, config_fn)
    cycle.main_loop()
"""

from .fishing_cycle import FishingCycle, ErrorBackoff

__all__ = [
    'FishingCycle',
    'ErrorBackoff',
]
