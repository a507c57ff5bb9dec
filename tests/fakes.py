"""Test doubles for the vision, input and notification collaborators"""

import numpy as np

from core.exceptions import CaptureError
from vision.color_detector import BITE_COLOR, CAUGHT_COLOR

BLANK = np.zeros((2, 2, 4), dtype=np.uint8)


class FakeScreenCache:
    def __init__(self, fail=False):
        self.fail = fail
        self.regions = []

    def get_cached_or_capture(self, region):
        self.regions.append(region)
        if self.fail:
            raise CaptureError("capture failed")
        return BLANK

    def clear(self):
        pass

    def set_ttl(self, ttl):
        self.ttl = ttl


class FakeDetector:
    """Scripted answers per target color; the last answer repeats"""

    def __init__(self, bite=(False,), caught=(False,)):
        self.script = {BITE_COLOR: list(bite), CAUGHT_COLOR: list(caught)}
        self.calls = {BITE_COLOR: 0, CAUGHT_COLOR: 0}

    def detect(self, image, target, settings=None):
        answers = self.script[target]
        index = min(self.calls[target], len(answers) - 1)
        self.calls[target] += 1
        return answers[index]


class FakeInput:
    def __init__(self, click_error=None):
        self.clicks = 0
        self.rod_resets = 0
        self.meals = 0
        self.click_error = click_error

    def click(self):
        if self.click_error is not None:
            raise self.click_error
        self.clicks += 1

    def reset_rod(self):
        self.rod_resets += 1

    def eat_food(self):
        self.meals += 1


class FakeHunger:
    """Records the session fish count at every hunger read"""

    def __init__(self, session=None, value=50):
        self.session = session
        self.value = value
        self.reads_at = []

    def read_region(self, region):
        self.reads_at.append(self.session.snapshot().fish_count)
        return self.value


class FakeNotifier:
    def __init__(self):
        self.messages = []
        self.screenshots = []

    def send_message(self, text):
        self.messages.append(text)

    def send_screenshot(self, text, data):
        self.screenshots.append(text)

    def check_periodic_screenshot(self, screen):
        return False

    def start(self):
        pass

    def stop(self, timeout=2.0):
        pass

    def update_settings(self, **kwargs):
        pass


class FakeScreen:
    def capture_full_screen(self):
        return BLANK

    def cleanup(self):
        pass


