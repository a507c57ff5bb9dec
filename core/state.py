"""
Session State Definitions

Defines the fishing phases, the per-session state record and the lifetime
aggregates, plus the lock-guarded store that publishes session snapshots.
"""

import time
import threading
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum, auto
from typing import Optional, Callable, List

from utils.locks import ReadWriteLock

logger = logging.getLogger("FishingBot")


class FishingPhase(Enum):
    """Fishing state machine phases"""

    IDLE = auto()              # Not fishing (before start, after stop)
    CASTING = auto()           # Throwing the line
    WAITING_FOR_BITE = auto()  # Watching for the bite indicator
    REELING = auto()           # Auto-clicking until the catch indicator
    CAUGHT = auto()            # Catch confirmed
    FEEDING = auto()           # Checking hunger / eating
    ERROR = auto()             # Recovering from a failed operation

    def __str__(self):
        return self.name.replace("_", " ").title()

    @property
    def is_active(self):
        """Returns True if the bot is doing something with the game"""
        return self not in (FishingPhase.IDLE, FishingPhase.ERROR)


@dataclass(frozen=True)
class SessionState:
    """Immutable snapshot of the current session"""

    running: bool = False
    paused: bool = False
    phase: FishingPhase = FishingPhase.IDLE
    status: str = "Ready to start fishing!"
    fish_count: int = 0
    current_streak: int = 0
    best_streak: int = 0
    errors_count: int = 0
    last_hunger: Optional[int] = None
    start_time: Optional[float] = None  # time.monotonic() at start()
    fish_per_hour: float = 0.0
    uptime_percentage: float = 100.0

    def session_seconds(self, now=None):
        """Seconds since start(), 0 when no session is open"""
        if self.start_time is None:
            return 0.0
        return max((now if now is not None else time.monotonic()) - self.start_time, 0.0)


@dataclass
class LifetimeStats:
    """Aggregates kept across sessions"""

    total_fish_caught: int = 0
    total_runtime_seconds: int = 0
    sessions_completed: int = 0
    best_session_fish: int = 0
    average_fish_per_hour: float = 0.0
    total_feeds: int = 0
    last_updated: str = field(default_factory=lambda: datetime.now().isoformat())

    def formatted_runtime(self):
        hours = self.total_runtime_seconds // 3600
        minutes = (self.total_runtime_seconds % 3600) // 60
        return f"{hours}h {minutes}m"

    def update_calculations(self):
        self.last_updated = datetime.now().isoformat()
        if self.total_runtime_seconds > 0:
            self.average_fish_per_hour = (
                self.total_fish_caught * 3600.0 / self.total_runtime_seconds
            )


class SessionStore:
    """
    Owner of the live SessionState.

    Writers replace the whole snapshot under the write lock, so readers
    always see a consistent set of phase, status and counters. Listeners
    are notified outside the lock.
    """

    def __init__(self):
        self._state = SessionState()
        self._lock = ReadWriteLock()
        self._listeners: List[Callable[[SessionState], None]] = []
        self._listeners_lock = threading.Lock()

    def snapshot(self) -> SessionState:
        with self._lock.read():
            return self._state

    def is_running(self) -> bool:
        with self._lock.read():
            return self._state.running

    def is_paused(self) -> bool:
        with self._lock.read():
            return self._state.paused

    def update(self, **changes) -> SessionState:
        """Apply field changes atomically and publish the new snapshot"""
        with self._lock.write():
            self._state = replace(self._state, **changes)
            new_state = self._state
        self._notify(new_state)
        return new_state

    def mutate(self, fn: Callable[[SessionState], dict]) -> SessionState:
        """Compute changes from the current snapshot and apply them atomically

        ``fn`` receives the current snapshot and returns a dict of changes;
        it runs under the write lock so it must not block.
        """
        with self._lock.write():
            self._state = replace(self._state, **fn(self._state))
            new_state = self._state
        self._notify(new_state)
        return new_state

    def reset(self, **initial) -> SessionState:
        """Start a fresh session record"""
        with self._lock.write():
            self._state = SessionState(**initial)
            new_state = self._state
        self._notify(new_state)
        return new_state

    def add_listener(self, listener: Callable[[SessionState], None]):
        with self._listeners_lock:
            self._listeners.append(listener)

    def _notify(self, state: SessionState):
        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(state)
            except Exception as e:
                logger.error(f"[Session] Listener error: {e}")
