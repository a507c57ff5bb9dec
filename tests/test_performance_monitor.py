"""
Test suite for services/performance_monitor.py
===============================================
"""

import pytest

from services.performance_monitor import PerformanceMonitor


class TestPerformanceMonitor:
    """Tests for the rolling operation window"""

    def test_empty_window(self):
        monitor = PerformanceMonitor()

        assert monitor.get_success_rate() == 100.0
        assert monitor.get_average_operation_time() == 0.0

    def test_success_rate_and_mean(self):
        monitor = PerformanceMonitor()
        monitor.record_operation(1.0, True)
        monitor.record_operation(2.0, True)
        monitor.record_operation(3.0, False)
        monitor.record_operation(2.0, True)

        assert monitor.get_success_rate() == pytest.approx(75.0)
        assert monitor.get_average_operation_time() == pytest.approx(2.0)

    def test_window_evicts_oldest(self):
        monitor = PerformanceMonitor(window_size=100)
        for _ in range(10):
            monitor.record_operation(10.0, False)
        for _ in range(100):
            monitor.record_operation(1.0, True)

        assert len(monitor) == 100
        assert monitor.get_success_rate() == 100.0
        assert monitor.get_average_operation_time() == pytest.approx(1.0)
        assert monitor.total_operations == 110

    def test_error_tracking(self, clock):
        monitor = PerformanceMonitor(clock=clock)
        clock.advance(42.0)
        monitor.record_operation(0.5, False)

        assert monitor.error_count == 1
        assert monitor.last_error_time == 42.0

    def test_reset(self):
        monitor = PerformanceMonitor()
        monitor.record_operation(1.0, False)
        monitor.reset()

        assert len(monitor) == 0
        assert monitor.error_count == 0
        assert monitor.last_error_time is None
