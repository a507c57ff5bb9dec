"""
Input Controller - Arcane Fishing Bot
=====================================
Game-level input actions (click, rod reset, eating) with the failsafe.

Failsafe: while failsafe is enabled, parking the cursor in the top-left
corner (x < 5 and y < 5) makes every action raise FailsafeTriggered
instead of sending input.
"""

import logging
import time
import threading

from core.exceptions import FailsafeTriggered, InputError

logger = logging.getLogger("FishingBot")

FAILSAFE_CORNER = 5       # pixels from the top-left corner
KEY_SETTLE_DELAY = 0.05   # after each key tap
ACTION_DELAY = 0.2        # between steps of multi-step actions


class InputController:
    """
    Synthetic input toward the game client.

    Every public action checks the failsafe first and records the time of
    the last successful action.
    """

    def __init__(self, mouse=None, keyboard=None, failsafe_enabled=True,
                 rod_key="5", food_key="6", sleep=time.sleep, clock=time.monotonic):
        """
        Args:
            mouse: MouseController (default: created)
            keyboard: KeyboardController (default: created)
            failsafe_enabled (bool): Honour the corner abort
            rod_key (str): Hotbar key of the fishing rod
            food_key (str): Hotbar key of the food item
        """
        if mouse is None:
            from .mouse_controller import MouseController
            mouse = MouseController()
        if keyboard is None:
            from .keyboard_controller import KeyboardController
            keyboard = KeyboardController()

        self.mouse = mouse
        self.keyboard = keyboard
        self.failsafe_enabled = failsafe_enabled
        self.rod_key = rod_key
        self.food_key = food_key
        self._sleep = sleep
        self._clock = clock
        self._last_action_time = clock()
        self._lock = threading.Lock()

    def check_failsafe(self):
        """
        Raises:
            FailsafeTriggered: Cursor is parked in the abort corner
        """
        if not self.failsafe_enabled:
            return
        x, y = self.mouse.position()
        if x < FAILSAFE_CORNER and y < FAILSAFE_CORNER:
            raise FailsafeTriggered("Failsafe triggered: mouse in top-left corner")

    def _mark_action(self):
        with self._lock:
            self._last_action_time = self._clock()

    def click(self):
        """Left click at the cursor position."""
        self.check_failsafe()
        self.mouse.click()
        self._mark_action()

    def press_key(self, key):
        """
        Tap a single hotbar key.

        Raises:
            InputError: Unsupported key or the event failed
        """
        if not isinstance(key, str) or len(key) != 1 or not key.isalnum():
            raise InputError(f"Unsupported key: {key!r}")
        self.check_failsafe()
        self.keyboard.tap(key)
        self._sleep(KEY_SETTLE_DELAY)
        self._mark_action()

    def reset_rod(self):
        """Unequip and re-equip the rod."""
        self.press_key(self.rod_key)
        self._sleep(ACTION_DELAY)
        self.press_key(self.rod_key)
        self._sleep(ACTION_DELAY)

    def eat_food(self):
        """Put the rod away, eat, and take the rod back out."""
        self.click()
        self._sleep(ACTION_DELAY)
        self.press_key(self.food_key)
        self._sleep(ACTION_DELAY)
        self.click()
        self._sleep(ACTION_DELAY)
        self.press_key(self.rod_key)
        self._sleep(ACTION_DELAY)
        logger.debug("[Input] Eat sequence sent")

    def seconds_since_last_action(self):
        with self._lock:
            return self._clock() - self._last_action_time
