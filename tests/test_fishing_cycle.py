"""
Test suite for automation/fishing_cycle.py
===========================================
Tests for the cast / bite / reel state machine with injected fakes and a
fake clock.
"""

import pytest

from automation.fishing_cycle import ErrorBackoff, FishingCycle
from config.bot_config import BotConfig
from core.exceptions import CaptureError, FailsafeTriggered, InputError
from core.state import FishingPhase, SessionStore
from services.performance_monitor import PerformanceMonitor
from services.stats_manager import StatsManager
from vision.color_detector import CAUGHT_COLOR

from tests.fakes import (
    FakeDetector,
    FakeHunger,
    FakeInput,
    FakeNotifier,
    FakeScreen,
    FakeScreenCache,
)

FAST_CONFIG = BotConfig(startup_delay_ms=0, screenshot_enabled=False)


def make_cycle(clock, config=FAST_CONFIG, detector=None, input_ctrl=None,
               screen_cache=None, hunger_value=50):
    session = SessionStore()
    session.reset(running=True, start_time=clock())
    notifier = FakeNotifier()
    cycle = FishingCycle(
        vision={
            "screen": FakeScreen(),
            "screen_cache": screen_cache or FakeScreenCache(),
            "color_detector": detector or FakeDetector(),
            "hunger_ocr": FakeHunger(session, hunger_value),
        },
        input_ctrl=input_ctrl or FakeInput(),
        notifier=notifier,
        session=session,
        stats_manager=StatsManager(),
        performance=PerformanceMonitor(clock=clock),
        config_fn=lambda: config,
        clock=clock,
        sleep=clock.sleep,
    )
    return cycle


def record_phases(session):
    phases = []

    def listener(state):
        if not phases or phases[-1] is not state.phase:
            phases.append(state.phase)

    session.add_listener(listener)
    return phases


class TestErrorBackoff:
    """Tests for the counter+timestamp backoff"""

    def test_scaled_and_capped(self, clock):
        backoff = ErrorBackoff(clock=clock)
        delays = [backoff.record_failure() for _ in range(7)]

        assert delays == [1.0, 2.0, 3.0, 4.0, 5.0, 5.0, 5.0]

    def test_success_resets(self, clock):
        backoff = ErrorBackoff(clock=clock)
        backoff.record_failure()
        clock.advance(3)
        backoff.record_failure()

        assert backoff.last_error_at == 3
        backoff.record_success()
        assert backoff.consecutive == 0
        assert backoff.delay() == 0


class TestFishOnce:
    """Tests for a single cast/bite/reel cycle"""

    def test_full_catch(self, clock):
        detector = FakeDetector(bite=[True], caught=[True])
        cycle = make_cycle(clock, detector=detector)
        phases = record_phases(cycle.session)

        assert cycle.fish_once() == True
        assert phases == [
            FishingPhase.CASTING,
            FishingPhase.WAITING_FOR_BITE,
            FishingPhase.REELING,
            FishingPhase.CAUGHT,
        ]
        # cast click + one reel click
        assert cycle.input.clicks == 2

    def test_bite_timeout_recasts(self, clock):
        cycle = make_cycle(clock)

        assert cycle.fish_once() == False
        assert cycle.input.clicks == 1
        assert clock() >= 65.0
        assert cycle.session.snapshot().status == "No bite detected - Recasting..."

    def test_bite_wait_follows_lure(self, clock):
        cycle = make_cycle(clock, config=FAST_CONFIG.with_changes(rod_lure_value=3.0))
        cycle.fish_once()

        assert 20.0 <= clock() < 21.0

    def test_catch_needs_confirmation(self, clock):
        detector = FakeDetector(bite=[True], caught=[True, False, True, True])
        cycle = make_cycle(clock, detector=detector)

        assert cycle.fish_once() == True
        assert detector.calls[CAUGHT_COLOR] == 4
        assert cycle.input.clicks == 3

    def test_reel_timeout_lets_fish_escape(self, clock):
        detector = FakeDetector(bite=[True], caught=[False])
        cycle = make_cycle(clock, detector=detector)

        assert cycle.fish_once() == False
        assert cycle.session.snapshot().status == "Reeling timeout - Fish got away..."
        assert cycle.input.clicks > 100

    def test_capture_error_propagates(self, clock):
        cycle = make_cycle(clock, screen_cache=FakeScreenCache(fail=True))

        with pytest.raises(CaptureError):
            cycle.fish_once()

    def test_stop_interrupts_bite_wait(self, clock):
        cycle = make_cycle(clock)
        clock.on_sleep = lambda now: now >= 1.0 and cycle.session.update(running=False)

        assert cycle.fish_once() == False
        assert clock() < 2.0


class TestMainLoop:
    """Tests for the session loop"""

    def test_start_reaches_casting(self, clock):
        cycle = make_cycle(clock)
        phases = record_phases(cycle.session)
        clock.on_sleep = lambda now: now >= 1.0 and cycle.session.update(running=False)

        cycle.main_loop()

        assert phases[:3] == [FishingPhase.IDLE, FishingPhase.CASTING, FishingPhase.WAITING_FOR_BITE]
        assert cycle.input.rod_resets == 1

    def test_one_recast_per_bite_timeout(self, clock):
        cycle = make_cycle(clock)
        clock.on_sleep = lambda now: now >= 100.0 and cycle.session.update(running=False)

        cycle.main_loop()

        # casts at ~0s and ~65s; the stop lands before the third
        assert cycle.input.clicks == 2
        assert cycle.performance.total_operations == 2

    def test_five_consecutive_errors_end_loop(self, clock):
        cycle = make_cycle(clock, input_ctrl=FakeInput(click_error=InputError("no focus")))

        cycle.main_loop()

        state = cycle.session.snapshot()
        assert state.errors_count == 5
        assert state.status == "Too many consecutive errors - Stopping for safety"
        assert sum("Critical Error Alert" in m for m in cycle.notifier.messages) == 3

    def test_failsafe_counts_as_error(self, clock):
        cycle = make_cycle(clock, input_ctrl=FakeInput(click_error=FailsafeTriggered("corner")))
        cycle.main_loop()

        assert cycle.session.snapshot().errors_count == 5

    def test_backoff_delays(self, clock):
        cycle = make_cycle(clock, screen_cache=FakeScreenCache(fail=True))
        cycle.main_loop()

        # 1+2+3+4 s of backoff, none after the fifth error
        assert 10.0 <= clock() < 11.5

    def test_paused_loop_does_not_cast(self, clock):
        cycle = make_cycle(clock)
        cycle.session.update(paused=True)
        clock.on_sleep = lambda now: now >= 3.0 and cycle.session.update(running=False)

        cycle.main_loop()

        assert cycle.input.clicks == 0
        assert cycle.session.snapshot().status == "Bot paused - Waiting for resume..."


class TestCatchHandling:
    """Tests for counters, milestones and feeding"""

    def test_counters_and_streak(self, clock):
        cycle = make_cycle(clock)
        cycle.handle_successful_catch()
        cycle.handle_successful_catch()

        state = cycle.session.snapshot()
        assert state.fish_count == 2
        assert state.current_streak == 2
        assert state.best_streak == 2
        assert cycle.stats.snapshot().total_fish_caught == 2
        assert cycle.input.rod_resets == 2

    def test_error_resets_streak_keeps_best(self, clock):
        cycle = make_cycle(clock)
        for _ in range(3):
            cycle.handle_successful_catch()
        cycle.handle_error(CaptureError("boom"), 1)

        state = cycle.session.snapshot()
        assert state.current_streak == 0
        assert state.best_streak == 3
        assert state.fish_count == 3
        assert state.phase is FishingPhase.ERROR

    def test_feed_cadence(self, clock):
        cycle = make_cycle(clock, hunger_value=50)
        for _ in range(15):
            cycle.handle_successful_catch()

        assert cycle.hunger_ocr.reads_at == [5, 10, 15]
        assert cycle.input.meals == 3
        assert cycle.stats.snapshot().total_feeds == 3
        assert cycle.session.snapshot().last_hunger == 50

    def test_feeding_disabled(self, clock):
        cycle = make_cycle(clock, config=FAST_CONFIG.with_changes(fish_per_feed=0))
        for _ in range(10):
            cycle.handle_successful_catch()

        assert cycle.hunger_ocr.reads_at == []

    def test_full_hunger_skips_meal(self, clock):
        cycle = make_cycle(clock, hunger_value=100)
        for _ in range(5):
            cycle.handle_successful_catch()

        assert cycle.hunger_ocr.reads_at == [5]
        assert cycle.input.meals == 0

    def test_unreadable_hunger_feeds_defensively(self, clock):
        cycle = make_cycle(clock, hunger_value=None)
        for _ in range(5):
            cycle.handle_successful_catch()

        assert cycle.input.meals == 1
        assert cycle.session.snapshot().last_hunger is None
        assert any("safety" in m for m in cycle.notifier.messages)

    def test_milestone_every_ten(self, clock):
        cycle = make_cycle(clock, config=FAST_CONFIG.with_changes(fish_per_feed=0))
        for _ in range(20):
            cycle.handle_successful_catch()

        milestones = [m for m in cycle.notifier.messages if m.startswith("Milestone")]
        assert len(milestones) == 2

    def test_runtime_stats(self, clock):
        cycle = make_cycle(clock)
        cycle.handle_successful_catch()
        cycle.handle_error(CaptureError("x"), 1)
        clock.now = 3600.0

        cycle.update_runtime_stats()

        state = cycle.session.snapshot()
        assert state.fish_per_hour == pytest.approx(1.0)
        assert state.uptime_percentage == pytest.approx((3600 - 2) / 3600 * 100)
