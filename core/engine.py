"""
FishingEngine - Core Lifecycle Orchestrator

The FishingEngine is the "ignition key" of the fishing bot.
It manages session lifecycle, the live config and thread control.

Responsibilities:
    - Control session lifecycle (start/stop/pause)
    - Own the SessionStore and the config snapshot
    - Manage the worker thread safely
    - Orchestrate FishingCycle.main_loop()
    - Merge the session into lifetime stats exactly once per session

What it does NOT do:
    - Vision/detection (delegates to FishingCycle)
    - Input control (delegates to FishingCycle)
    - Fishing behavior (delegates to FishingCycle)
    - Settings I/O (receives BotConfig via DI)

Usage:
    engine = FishingEngine(BotConfig())
    engine.start()  # Starts background thread
    # ... bot runs ...
    engine.stop()   # Clean shutdown, waits for thread
"""

import logging
import threading
import time
from typing import Optional

from core.state import FishingPhase, SessionState, SessionStore
from utils.locks import ReadWriteLock
from utils.timing import format_duration

CACHE_TTL_S = 0.05


class FishingEngine:
    """
    Core session lifecycle orchestrator.

    The engine owns:
        - SessionStore (running/paused flags, phase, counters)
        - Current BotConfig (readers-writer lock)
        - Worker thread
        - Lifecycle callbacks

    The engine delegates all fishing logic to FishingCycle.
    Collaborators left as None are built from the config on first use.
    """

    def __init__(
        self,
        config,
        screen=None,
        screen_cache=None,
        color_detector=None,
        hunger_ocr=None,
        input_ctrl=None,
        notifier=None,
        stats_manager=None,
        performance=None,
        logger: Optional[logging.Logger] = None,
        callbacks: Optional[dict] = None,
        clock=time.monotonic,
        sleep=time.sleep,
    ):
        """
        Initialize FishingEngine with dependencies.

        Args:
            config: BotConfig
            screen / screen_cache / color_detector / hunger_ocr: Vision components
            input_ctrl: InputController
            notifier: WebhookService
            stats_manager: StatsManager (default: in-memory)
            performance: PerformanceMonitor
            logger: Optional logger for engine events
            callbacks: Optional dict of callbacks:
                - on_start: () -> None
                - on_stop: () -> None
                - on_error: (exception) -> None
                - on_state_change: (SessionState) -> None
            clock / sleep: Time source and sleep function (injectable for tests)
        """
        self._config = config
        self._config_lock = ReadWriteLock()
        self._logger = logger or logging.getLogger("FishingBot")
        self._callbacks = callbacks or {}
        self._clock = clock
        self._sleep = sleep

        self._screen = screen
        self._screen_cache = screen_cache
        self._color_detector = color_detector
        self._hunger_ocr = hunger_ocr
        self._input = input_ctrl
        self._notifier = notifier
        if stats_manager is None:
            from services.stats_manager import StatsManager
            stats_manager = StatsManager()
        if performance is None:
            from services.performance_monitor import PerformanceMonitor
            performance = PerformanceMonitor(clock=clock)
        self._stats = stats_manager
        self._performance = performance

        self.session = SessionStore()
        if "on_state_change" in self._callbacks:
            self.session.add_listener(self._callbacks["on_state_change"])

        # Thread control
        self._lifecycle_lock = threading.Lock()
        self._worker_thread: Optional[threading.Thread] = None
        self._session_open = False
        self._session_end_lock = threading.Lock()

        self._fishing_cycle = None

        self._logger.info("[Engine] FishingEngine initialized")

    # ========== COMPONENTS ==========

    def _build_components(self):
        """Create any collaborator that was not injected"""
        config = self.get_config()

        if self._screen is None:
            from vision.screen_capture import ScreenCapture
            self._screen = ScreenCapture()
        if self._screen_cache is None:
            from vision.screen_capture import ScreenshotCache
            self._screen_cache = ScreenshotCache(
                self._screen, ttl=min(CACHE_TTL_S, config.detection_interval_ms / 1000)
            )
        if self._color_detector is None:
            from vision.color_detector import ColorDetector
            self._color_detector = ColorDetector()
        if self._hunger_ocr is None:
            from vision.ocr_service import OCRService
            from vision.hunger_ocr import HungerOCR
            self._hunger_ocr = HungerOCR(
                OCRService(tesseract_path=config.tesseract_path),
                screen_cache=self._screen_cache,
            )
        if self._input is None:
            from input.input_controller import InputController
            self._input = InputController(
                failsafe_enabled=config.failsafe_enabled,
                rod_key=config.rod_key,
                food_key=config.food_key,
            )
        if self._notifier is None:
            from services.webhook_service import WebhookService
            self._notifier = WebhookService(
                webhook_url=config.webhook_url,
                screenshot_enabled=config.screenshot_enabled,
                screenshot_interval_mins=config.screenshot_interval_mins,
            )

    def _get_fishing_cycle(self):
        if self._fishing_cycle is None:
            from automation.fishing_cycle import FishingCycle

            self._build_components()
            self._fishing_cycle = FishingCycle(
                vision={
                    "screen": self._screen,
                    "screen_cache": self._screen_cache,
                    "color_detector": self._color_detector,
                    "hunger_ocr": self._hunger_ocr,
                },
                input_ctrl=self._input,
                notifier=self._notifier,
                session=self.session,
                stats_manager=self._stats,
                performance=self._performance,
                config_fn=self.get_config,
                logger=self._logger,
                clock=self._clock,
                sleep=self._sleep,
            )
        return self._fishing_cycle

    # ========== PUBLIC API ==========

    def start(self) -> bool:
        """
        Start a fishing session.

        Creates a background worker thread that runs FishingCycle.main_loop().
        Non-blocking - returns immediately after thread is started.

        Returns:
            True if started, False if a session is already running
        """
        with self._lifecycle_lock:
            if self.session.is_running() or (
                self._worker_thread is not None and self._worker_thread.is_alive()
            ):
                self._logger.warning("[Engine] Cannot start: already running")
                return False

            problems = self.get_config().validate()
            for problem in problems:
                self._logger.warning(f"[Engine] Config: {problem}")

            cycle = self._get_fishing_cycle()
            self._performance.reset()
            self.session.reset(
                running=True,
                status="Starting fishing session...",
                start_time=self._clock(),
            )
            self._session_open = True

            self._notifier.start()
            config = self.get_config()
            self._notifier.send_message(
                f"Fishing session started! {config.timeout_description()}"
            )

            self._worker_thread = threading.Thread(
                target=self._worker_loop,
                args=(cycle,),
                name="FishingEngine-Worker",
                daemon=True,
            )
            self._worker_thread.start()

        if "on_start" in self._callbacks:
            self._callbacks["on_start"]()
        self._logger.info("[Engine] Fishing session started")
        return True

    def stop(self, timeout: float = 5.0) -> bool:
        """
        Stop the fishing session.

        Clears the running flag and waits for the worker to exit.

        Args:
            timeout: Maximum seconds to wait for thread shutdown (default 5.0)

        Returns:
            True if stopped cleanly, False if the worker did not exit in time
        """
        self.session.update(running=False, paused=False, status="Stopping...")
        self._logger.info("[Engine] Stop signal sent, waiting for worker thread...")

        thread = self._worker_thread
        timed_out = False
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)
            if thread.is_alive():
                self._logger.warning(
                    f"[Engine] Worker thread did not stop within {timeout}s (daemon, will die on exit)"
                )
                timed_out = True

        # Timed-out workers still merge their own session on exit
        if not timed_out:
            self._end_session()
        return not timed_out

    def pause(self) -> bool:
        """
        Toggle pause. The worker keeps the session open while paused.

        Returns:
            bool: New paused flag (False if no session is running)
        """
        state = self.session.snapshot()
        if not state.running:
            return False

        paused = not state.paused
        if paused:
            self.session.update(paused=True, status="Bot paused - Waiting for resume...")
            self._notify("Bot paused")
        else:
            self.session.update(paused=False, status="Resuming fishing...")
            self._notify("Bot resumed")
        self._logger.info(f"[Engine] {'Paused' if paused else 'Resumed'}")
        return paused

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the worker exits; True if it did"""
        thread = self._worker_thread
        if thread is None:
            return True
        thread.join(timeout=timeout)
        return not thread.is_alive()

    def shutdown(self, timeout: float = 5.0):
        """Stop the session and release the notifier thread and capture handle"""
        self.stop(timeout=timeout)
        if self._notifier is not None:
            self._notifier.stop()
        if self._screen is not None:
            self._screen.cleanup()
        self._logger.info("[Engine] Shutdown complete")

    def is_running(self) -> bool:
        return self.session.is_running()

    # ========== QUERIES ==========

    def get_state(self) -> SessionState:
        """Current session snapshot"""
        return self.session.snapshot()

    def get_lifetime_stats(self):
        return self._stats.snapshot()

    def get_performance_stats(self) -> dict:
        return {
            "success_rate": self._performance.get_success_rate(),
            "average_operation_time": self._performance.get_average_operation_time(),
            "error_count": self._performance.error_count,
        }

    def get_status(self) -> dict:
        """Flat status surface for observers (CLI, UI, remote control)"""
        state = self.session.snapshot()
        lifetime = self.get_lifetime_stats()
        performance = self.get_performance_stats()
        session_seconds = state.session_seconds(self._clock()) if state.running else 0.0
        return {
            "running": state.running,
            "paused": state.paused,
            "phase": str(state.phase),
            "status": state.status,
            "fish_count": state.fish_count,
            "errors_count": state.errors_count,
            "current_streak": state.current_streak,
            "best_streak": state.best_streak,
            "session_seconds": session_seconds,
            "session_time": format_duration(session_seconds),
            "uptime_percentage": state.uptime_percentage,
            "fish_per_hour": state.fish_per_hour,
            "last_hunger": state.last_hunger,
            "success_rate": performance["success_rate"],
            "average_operation_time": performance["average_operation_time"],
            "lifetime_fish": lifetime.total_fish_caught,
            "lifetime_runtime": lifetime.formatted_runtime(),
            "lifetime_sessions": lifetime.sessions_completed,
            "lifetime_feeds": lifetime.total_feeds,
        }

    # ========== CONFIG ==========

    def get_config(self):
        with self._config_lock.read():
            return self._config

    def update_config(self, config):
        """Swap in a new BotConfig; the worker picks it up at the next step"""
        with self._config_lock.write():
            self._config = config

        if self._input is not None:
            self._input.failsafe_enabled = config.failsafe_enabled
            self._input.rod_key = config.rod_key
            self._input.food_key = config.food_key
        if self._notifier is not None:
            self._notifier.update_settings(
                webhook_url=config.webhook_url,
                screenshot_enabled=config.screenshot_enabled,
                screenshot_interval_mins=config.screenshot_interval_mins,
            )
        if self._screen_cache is not None:
            self._screen_cache.set_ttl(min(CACHE_TTL_S, config.detection_interval_ms / 1000))
        self._logger.info("[Engine] Config updated")

    # ========== INTERNAL ==========

    def _notify(self, message):
        if self._notifier is not None:
            self._notifier.send_message(message)

    def _worker_loop(self, cycle):
        """
        Worker thread main loop.

        Runs FishingCycle.main_loop() and handles exceptions.
        This is the ONLY code that runs in the background thread.
        """
        self._logger.info("[Engine] Worker thread started")
        try:
            cycle.main_loop()
        except Exception as e:
            self._logger.error(f"[Engine] Worker thread exception: {e}", exc_info=True)
            self.session.update(status=f"Fatal error: {e}")
            if "on_error" in self._callbacks:
                self._callbacks["on_error"](e)
        finally:
            self.session.update(running=False, paused=False, phase=FishingPhase.IDLE)
            self._end_session()
            self._logger.info("[Engine] Worker thread exited")

    def _end_session(self):
        """Merge the session into lifetime stats and send the summary (once)"""
        with self._session_end_lock:
            if not self._session_open:
                return
            self._session_open = False

        state = self.session.snapshot()
        runtime = state.session_seconds(self._clock())
        self._stats.complete_session(
            state.fish_count, runtime, state.errors_count, state.best_streak
        )
        self._notifier.send_message(
            f"Session Complete! Fish caught: {state.fish_count}, "
            f"Runtime: {format_duration(runtime)}, Errors: {state.errors_count}, "
            f"Best streak: {state.best_streak}"
        )
        self._screen_cache.clear()
        self.session.update(status="Fishing session completed")

        if "on_stop" in self._callbacks:
            self._callbacks["on_stop"]()
        self._logger.info(
            f"[Engine] Session ended: {state.fish_count} fish in {format_duration(runtime)}"
        )
