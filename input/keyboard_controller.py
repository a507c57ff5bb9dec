"""
Keyboard Controller - Arcane Fishing Bot
========================================
Handles keyboard input operations using pynput.keyboard.Controller.
"""

import time

from core.exceptions import InputError


class KeyboardController:
    """
    Centralized keyboard control using pynput.

    Supports character keys ('5', '6') and pynput Key objects.
    """

    def __init__(self):
        """The pynput controller is created on first use."""
        self.kb = None

    def _controller(self):
        if self.kb is None:
            from pynput.keyboard import Controller

            self.kb = Controller()
        return self.kb

    def press(self, key):
        """Press and hold a key."""
        try:
            self._controller().press(key)
        except Exception as e:
            raise InputError(f"Key press failed for {key!r}: {e}") from e

    def release(self, key):
        """Release a previously pressed key."""
        try:
            self._controller().release(key)
        except Exception as e:
            raise InputError(f"Key release failed for {key!r}: {e}") from e

    def tap(self, key, delay=0.05):
        """
        Press and release a key with a delay.

        Args:
            key: Key to tap (string like '5' or pynput Key)
            delay (float): Delay between press and release in seconds
        """
        self.press(key)
        time.sleep(delay)
        self.release(key)
