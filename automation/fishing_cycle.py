"""
Fishing Cycle Module
--------------------
The cast / bite / reel state machine, run on the engine's worker thread.

Architecture:
- FishingCycle receives all dependencies via constructor (dependency injection)
- Reads the live BotConfig through config_fn() once per step, so settings
  changed from another thread take effect at the next cast
- Publishes every phase/status/counter change through the SessionStore as
  one atomic snapshot
- Capture and input failures drive the Error phase with a scaled backoff;
  five in a row end the session

Methods:
  * main_loop() - Startup, pause handling and the per-cycle error policy
  * fish_once() - Cast, wait for a bite, reel
  * wait_for_bite() / reel_in_fish() / confirm_catch()
  * handle_successful_catch() / check_and_feed() / handle_error()
"""

import logging
import time

from config.defaults import (
    CRITICAL_ERROR_ALERT_AT,
    ERROR_BACKOFF_CAP_S,
    ERROR_BACKOFF_STEP_S,
    MAX_CONSECUTIVE_ERRORS,
    MILESTONE_EVERY,
)
from core.exceptions import CaptureError, FailsafeTriggered, InputError
from core.state import FishingPhase
from utils.timing import interruptible_sleep

CAST_SETTLE_S = 0.1
PAUSE_POLL_S = 0.5
CYCLE_GAP_S = 0.05
ERROR_SECONDS_ESTIMATE = 2.0  # downtime charged per error in uptime %


class ErrorBackoff:
    """Consecutive-error counter with the timestamp of the last failure"""

    def __init__(self, step=ERROR_BACKOFF_STEP_S, cap=ERROR_BACKOFF_CAP_S, clock=time.monotonic):
        self.step = step
        self.cap = cap
        self._clock = clock
        self.consecutive = 0
        self.last_error_at = None

    def record_failure(self):
        """Count a failure and return the delay before the next attempt"""
        self.consecutive += 1
        self.last_error_at = self._clock()
        return self.delay()

    def record_success(self):
        self.consecutive = 0

    def delay(self):
        return min(self.step * self.consecutive, self.cap)


class FishingCycle:
    """
    Fishing state machine.

    Idle -> Casting -> WaitingForBite -> Reeling -> Caught -> (Feeding) -> Casting,
    with Error reachable from any step that touches the screen or the input.
    """

    def __init__(
        self,
        vision,
        input_ctrl,
        notifier,
        session,
        stats_manager,
        performance,
        config_fn,
        logger=None,
        clock=time.monotonic,
        sleep=time.sleep,
    ):
        """
        Initialize FishingCycle with all dependencies.

        Args:
            vision: Vision bundle (screen, screen_cache, color_detector, hunger_ocr)
            input_ctrl: InputController
            notifier: WebhookService (send_message, send_screenshot,
                check_periodic_screenshot)
            session: SessionStore shared with the engine
            stats_manager: StatsManager for lifetime checkpoints
            performance: PerformanceMonitor
            config_fn: Callable returning the current BotConfig
            logger: Logger instance (default: 'FishingBot')
            clock / sleep: Time source and sleep function (injectable for tests)
        """
        # Vision components
        self.screen = vision["screen"]
        self.screen_cache = vision["screen_cache"]
        self.color_detector = vision["color_detector"]
        self.hunger_ocr = vision["hunger_ocr"]

        self.input = input_ctrl
        self.notifier = notifier
        self.session = session
        self.stats = stats_manager
        self.performance = performance
        self.get_config = config_fn
        self.logger = logger or logging.getLogger("FishingBot")

        self._clock = clock
        self._sleep = sleep
        self.backoff = ErrorBackoff(clock=clock)

        from vision.color_detector import BITE_COLOR, CAUGHT_COLOR

        self.bite_color = BITE_COLOR
        self.caught_color = CAUGHT_COLOR

    # ========== STATE PUBLISHING ==========

    def set_status(self, status):
        self.session.update(status=status)

    def set_phase(self, phase, status=None):
        changes = {"phase": phase}
        if status is not None:
            changes["status"] = status
        self.session.update(**changes)

    def _active(self):
        """True while the session runs and is not paused"""
        state = self.session.snapshot()
        return state.running and not state.paused

    def _wait(self, seconds):
        """Interruptible sleep; False when the session stopped meanwhile"""
        return interruptible_sleep(
            seconds, self.session.is_running, clock=self._clock, sleep=self._sleep
        )

    # ========== MAIN LOOP ==========

    def main_loop(self):
        """Run cycles until stop(), or until too many consecutive errors"""
        config = self.get_config()
        self.set_phase(FishingPhase.IDLE, "Initializing bot systems...")

        if not self._wait(config.startup_delay_ms / 1000):
            return

        self.set_status("Preparing fishing rod...")
        try:
            self.input.reset_rod()
        except InputError as e:
            self.logger.warning(f"[Cycle] Rod reset failed: {e}")

        if config.screenshot_enabled:
            self._send_startup_screenshot()

        self.set_status("Bot active! Starting fishing sequence...")
        self.backoff.record_success()

        while self.session.is_running():
            if self.session.is_paused():
                self.set_status("Bot paused - Waiting for resume...")
                self._sleep(PAUSE_POLL_S)
                continue

            operation_start = self._clock()
            try:
                caught = self.fish_once()
                self.backoff.record_success()
                if caught:
                    self.handle_successful_catch()
                success = True
            except (CaptureError, InputError) as e:
                self.backoff.record_failure()
                self.handle_error(e, self.backoff.consecutive)
                if self.backoff.consecutive >= MAX_CONSECUTIVE_ERRORS:
                    self.set_status("Too many consecutive errors - Stopping for safety")
                    self.logger.error(
                        f"[Cycle] {self.backoff.consecutive} consecutive errors, ending session"
                    )
                    break
                success = False

            self.performance.record_operation(self._clock() - operation_start, success)
            self.update_runtime_stats()
            self.notifier.check_periodic_screenshot(self.screen)
            self._sleep(CYCLE_GAP_S)

    def _send_startup_screenshot(self):
        from vision.screen_capture import encode_jpeg

        try:
            image = self.screen.capture_full_screen()
        except CaptureError as e:
            self.logger.warning(f"[Cycle] Startup screenshot failed: {e}")
            return
        data = encode_jpeg(image)
        if data is not None:
            self.notifier.send_screenshot("Bot Started - Ready to Fish!", data)

    # ========== ONE CYCLE ==========

    def fish_once(self):
        """
        Cast, wait for a bite and reel.

        Returns:
            bool: True if a fish was caught

        Raises:
            CaptureError / InputError: Propagated to main_loop's error policy
        """
        config = self.get_config()

        self.set_phase(FishingPhase.CASTING, "Casting fishing line...")
        self.input.click()
        self._wait(CAST_SETTLE_S)

        self.set_phase(FishingPhase.WAITING_FOR_BITE)
        if not self.wait_for_bite(config):
            return False

        self.set_phase(FishingPhase.REELING)
        if not self.reel_in_fish(config):
            return False

        self.set_phase(FishingPhase.CAUGHT)
        return True

    def wait_for_bite(self, config):
        """
        Poll the bite region until the bite indicator shows or the lure
        timeout elapses.

        Returns:
            bool: True on a bite; False on timeout, stop or pause
        """
        timeout = config.max_bite_time()
        interval = config.detection_interval_ms / 1000
        settings = config.detection_settings()
        self.set_status(f"Waiting for fish bite... (Timeout: {timeout:.0f}s)")

        start = self._clock()
        while self._active():
            if self._clock() - start > timeout:
                self.set_status("No bite detected - Recasting...")
                return False

            image = self.screen_cache.get_cached_or_capture(config.bite_region)
            if self.color_detector.detect(image, self.bite_color, settings):
                self.set_status("Fish bite detected! Reeling in...")
                return True

            self._sleep(interval)
        return False

    def reel_in_fish(self, config):
        """
        Click at the autoclick interval until the catch indicator is seen
        twice or the reel timeout elapses.

        Returns:
            bool: True when the catch is confirmed
        """
        max_duration = config.max_fishing_timeout_ms / 1000
        click_interval = config.autoclick_interval_ms / 1000
        settings = config.detection_settings()

        start = self._clock()
        while self._active():
            if self._clock() - start > max_duration:
                self.set_status("Reeling timeout - Fish got away...")
                return False

            self.input.click()

            image = self.screen_cache.get_cached_or_capture(config.catch_region)
            if self.color_detector.detect(image, self.caught_color, settings):
                if self.confirm_catch(config, settings):
                    self.set_status("Fish successfully caught!")
                    return True

            self._sleep(click_interval)
        return False

    def confirm_catch(self, config, settings=None):
        """Second look at the catch region after the detection interval"""
        self._sleep(config.detection_interval_ms / 1000)
        image = self.screen_cache.get_cached_or_capture(config.catch_region)
        return bool(self.color_detector.detect(
            image, self.caught_color, settings or config.detection_settings()
        ))

    # ========== OUTCOMES ==========

    def _best_effort(self, action, label):
        """Run an input sequence whose failure must not cost the catch"""
        try:
            action()
        except FailsafeTriggered:
            raise
        except InputError as e:
            self.logger.warning(f"[Cycle] {label} failed: {e}")

    def handle_successful_catch(self):
        """Count the fish, notify milestones and feed on schedule"""
        config = self.get_config()
        self._best_effort(self.input.reset_rod, "Rod reset")

        state = self.session.mutate(lambda s: {
            "fish_count": s.fish_count + 1,
            "current_streak": s.current_streak + 1,
            "best_streak": max(s.best_streak, s.current_streak + 1),
        })
        self.stats.add_fish(1)
        self.set_status(
            f"Fish #{state.fish_count} caught! Current streak: {state.current_streak}"
        )
        self.logger.info(f"[Cycle] Fish #{state.fish_count} caught")

        if state.fish_count % MILESTONE_EVERY == 0:
            self.notifier.send_message(
                f"Milestone Reached! {state.fish_count} fish caught this session!"
            )

        if config.fish_per_feed > 0 and state.fish_count % config.fish_per_feed == 0:
            self.check_and_feed(config)

    def check_and_feed(self, config=None):
        """
        Read the hunger bar and eat when it is below the full threshold.

        An unreadable bar is treated as hungry.
        """
        config = config or self.get_config()
        self.set_phase(FishingPhase.FEEDING, "Checking hunger level...")

        hunger = self.hunger_ocr.read_region(config.hunger_region)
        self.session.update(last_hunger=hunger)

        if hunger is None:
            self.set_status("Could not read hunger - Feeding to be safe...")
            self._best_effort(self.input.eat_food, "Feeding")
            self.stats.add_feed()
            self.notifier.send_message("OCR failed - Fed character as safety measure")
            return

        if hunger >= config.full_hunger_threshold:
            self.set_status(f"Hunger at {hunger}% - No feeding needed")
            return

        self.set_status(f"Hunger at {hunger}% - Feeding character...")
        self._best_effort(self.input.eat_food, "Feeding")
        self.stats.add_feed()
        self.notifier.send_message(f"Fed character (Hunger was {hunger}%)")
        self.set_status("Successfully fed character!")

    def handle_error(self, error, consecutive_count):
        """Publish the error, alert when critical and back off"""
        state = self.session.mutate(lambda s: {
            "phase": FishingPhase.ERROR,
            "errors_count": s.errors_count + 1,
            "current_streak": 0,
        })
        error_msg = f"Error #{state.errors_count}: {error} (Consecutive: {consecutive_count})"
        self.set_status(error_msg)
        self.logger.warning(f"[Cycle] {error_msg}")

        if consecutive_count >= CRITICAL_ERROR_ALERT_AT:
            self.notifier.send_message(f"Critical Error Alert: {error_msg}")

        if consecutive_count < MAX_CONSECUTIVE_ERRORS:
            self._wait(self.backoff.delay())

    def update_runtime_stats(self):
        """Refresh fish/hour and uptime % from the session clock"""
        now = self._clock()

        def _rates(s):
            if s.start_time is None:
                return {}
            elapsed = s.session_seconds(now)
            if elapsed <= 0:
                return {}
            error_time = s.errors_count * ERROR_SECONDS_ESTIMATE
            return {
                "fish_per_hour": s.fish_count * 3600.0 / elapsed,
                "uptime_percentage": max((elapsed - error_time) / elapsed * 100.0, 0.0),
            }

        self.session.mutate(_rates)
