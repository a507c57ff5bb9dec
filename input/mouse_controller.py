"""
Mouse Controller - Arcane Fishing Bot
=====================================
Handles mouse input operations through pyautogui.

pyautogui is imported on first use so the rest of the bot (and its tests)
can be loaded on machines without a display.
"""

import time

from core.exceptions import InputError, FailsafeTriggered

_pyautogui = None


def _get_pyautogui():
    global _pyautogui
    if _pyautogui is None:
        import pyautogui

        # Timing is handled by the fishing cycle, not by pyautogui's global pause
        pyautogui.PAUSE = 0
        _pyautogui = pyautogui
    return _pyautogui


def _load_backend():
    """pyautogui, or InputError when it cannot be loaded (e.g. no display)"""
    try:
        return _get_pyautogui()
    except Exception as e:
        raise InputError(f"Mouse backend unavailable: {e}") from e


class MouseController:
    """
    Centralized mouse control.

    Clicks happen at the current cursor position: the game window is
    expected to be focused with the cursor over it.
    """

    def __init__(self, hold_delay=0.05):
        """
        Args:
            hold_delay (float): Seconds between button down and up
        """
        self.hold_delay = hold_delay

    def position(self):
        """
        Returns:
            tuple: (x, y) cursor position
        """
        try:
            pos = _get_pyautogui().position()
            return int(pos[0]), int(pos[1])
        except Exception as e:
            raise InputError(f"Cannot read cursor position: {e}") from e

    def click(self):
        """
        Left click at the current cursor position.

        Raises:
            FailsafeTriggered: pyautogui's corner failsafe fired
            InputError: The event could not be sent
        """
        pyautogui = _load_backend()
        try:
            pyautogui.mouseDown()
            time.sleep(self.hold_delay)
            pyautogui.mouseUp()
        except pyautogui.FailSafeException as e:
            raise FailsafeTriggered("Failsafe triggered: mouse in screen corner") from e
        except Exception as e:
            raise InputError(f"Click failed: {e}") from e

    def move_to(self, x, y):
        """Move cursor to absolute screen coordinates."""
        pyautogui = _load_backend()
        try:
            pyautogui.moveTo(int(x), int(y))
        except pyautogui.FailSafeException as e:
            raise FailsafeTriggered("Failsafe triggered: mouse in screen corner") from e
        except Exception as e:
            raise InputError(f"Move failed: {e}") from e
