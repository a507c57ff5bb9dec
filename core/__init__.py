"""
Core Module - Fishing Bot Lifecycle and Session State

Components:
    - engine: FishingEngine (main orchestrator)
    - state: FishingPhase, SessionState, LifetimeStats, SessionStore
    - exceptions: Engine exception hierarchy

The engine is imported from core.engine directly; this package only
re-exports the leaf modules so the vision/input layers can depend on it.

Usage:
    from core.engine import FishingEngine

    engine = FishingEngine(config)
    engine.start()
    # ... bot runs in background thread ...
    engine.stop()
"""

from core.state import FishingPhase, SessionState, LifetimeStats, SessionStore
from core.exceptions import (
    EngineException,
    CaptureError,
    OcrFailure,
    InputError,
    FailsafeTriggered,
    QueueOverflow,
)

__all__ = [
    'FishingPhase',
    'SessionState',
    'LifetimeStats',
    'SessionStore',
    'EngineException',
    'CaptureError',
    'OcrFailure',
    'InputError',
    'FailsafeTriggered',
    'QueueOverflow',
]
