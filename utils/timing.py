# Copyright (C) 2026 BPS
# This file is part of Arcane Fishing Bot.
#
# Timing and sleep utilities

import time

# Upper bound on how long a stop request can go unnoticed during a sleep
POLL_STEP = 0.1


def interruptible_sleep(duration, running_flag_fn, clock=time.monotonic, sleep=time.sleep):
    """Sleep that can be interrupted by checking a running flag

    Args:
        duration: Sleep duration in seconds
        running_flag_fn: Callable that returns True if should continue, False to interrupt
        clock: Monotonic time source (injectable for tests)
        sleep: Sleep function (injectable for tests)

    Returns:
        True if completed full duration, False if interrupted
    """
    start = clock()
    while True:
        if not running_flag_fn():
            return False
        remaining = duration - (clock() - start)
        if remaining <= 0:
            return True
        sleep(min(POLL_STEP, remaining))


def format_duration(seconds):
    """Format seconds as HH:MM:SS"""
    seconds = int(max(seconds, 0))
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
