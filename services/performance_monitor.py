# Copyright (C) 2026 BPS
# This file is part of Arcane Fishing Bot.
#
# Services Module - Performance Monitor

import threading
import time
from collections import deque

WINDOW_SIZE = 100


class PerformanceMonitor:
    """Rolling window of fishing-cycle durations and outcomes"""

    def __init__(self, window_size: int = WINDOW_SIZE, clock=time.monotonic):
        self._samples = deque(maxlen=window_size)
        self._lock = threading.Lock()
        self._clock = clock
        self.total_operations = 0
        self.error_count = 0
        self.last_error_time = None

    def record_operation(self, duration: float, success: bool):
        """Record one cycle (duration in seconds)"""
        with self._lock:
            self._samples.append((float(duration), bool(success)))
            self.total_operations += 1
            if not success:
                self.error_count += 1
                self.last_error_time = self._clock()

    def get_success_rate(self) -> float:
        """Percentage of successful samples in the window (100 when empty)"""
        with self._lock:
            if not self._samples:
                return 100.0
            successes = sum(1 for _, ok in self._samples if ok)
            return successes / len(self._samples) * 100.0

    def get_average_operation_time(self) -> float:
        """Mean duration in seconds over the window (0 when empty)"""
        with self._lock:
            if not self._samples:
                return 0.0
            return sum(d for d, _ in self._samples) / len(self._samples)

    def __len__(self):
        with self._lock:
            return len(self._samples)

    def reset(self):
        with self._lock:
            self._samples.clear()
            self.total_operations = 0
            self.error_count = 0
            self.last_error_time = None
