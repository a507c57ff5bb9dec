"""
Input Module - Arcane Fishing Bot
=================================
Input abstraction layer for mouse and keyboard.

Modules:
    - mouse_controller: pyautogui clicks at the cursor position
    - keyboard_controller: pynput key taps
    - input_controller: game actions (click, reset rod, eat) + failsafe

Usage:
    from input import InputController

    controller = InputController(failsafe_enabled=True)
    controller.click()
    controller.reset_rod()
"""

from .mouse_controller import MouseController
from .keyboard_controller import KeyboardController
from .input_controller import InputController

__all__ = [
    'MouseController',
    'KeyboardController',
    'InputController',
]
