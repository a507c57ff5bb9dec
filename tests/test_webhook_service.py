"""
Test suite for services/webhook_service.py
===========================================
Tests for queue caps, delivery payloads and periodic screenshots.
"""

import time

import numpy as np
import pytest
import requests

from services.webhook_service import MessageKind, WebhookService

URL = "https://discord.com/api/webhooks/1/abc"


class FakeResponse:
    def __init__(self, status_code=204):
        self.status_code = status_code


class FakeSession:
    """Records POSTs instead of sending them"""

    def __init__(self, status_code=204, error=None):
        self.posts = []
        self.status_code = status_code
        self.error = error

    def post(self, url, **kwargs):
        self.posts.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return FakeResponse(self.status_code)


class FakeScreen:
    def __init__(self):
        self.captures = 0

    def capture_full_screen(self):
        self.captures += 1
        return np.zeros((8, 8, 4), dtype=np.uint8)


def make_service(url=URL, session=None, **kwargs):
    kwargs.setdefault("message_delay", 0)
    return WebhookService(webhook_url=url, session=session or FakeSession(), **kwargs)


class TestQueueCapacity:
    """Tests for the bounded producer side"""

    def test_text_queue_keeps_newest_fifty(self):
        service = make_service()
        for i in range(60):
            service.send_message(f"msg {i}")

        queued = service.queued_messages()
        assert len(queued) == 50
        assert queued[0].content == "msg 10"
        assert queued[-1].content == "msg 59"
        assert service.dropped_count == 10

    def test_screenshot_cap_does_not_evict_text(self):
        service = make_service()
        service.send_message("hello")
        for i in range(12):
            service.send_screenshot(f"shot {i}", b"jpeg")

        queued = service.queued_messages()
        screenshots = [m for m in queued if m.kind is MessageKind.SCREENSHOT]
        assert len(screenshots) == 10
        assert screenshots[0].content == "shot 2"
        assert queued[0].content == "hello"


class TestDelivery:
    """Tests for the consumer side"""

    def test_text_payload(self):
        session = FakeSession()
        service = make_service(session=session)
        service.send_message("hello")

        assert service.process_batch(URL) == 1
        url, kwargs = session.posts[0]
        assert url == URL
        assert kwargs["json"] == {"content": "hello"}

    def test_screenshot_payload(self):
        session = FakeSession()
        service = make_service(session=session)
        service.send_screenshot("caption", b"\xff\xd8data")

        service.process_batch(URL)
        _, kwargs = session.posts[0]
        assert kwargs["data"] == {"content": "caption"}
        assert kwargs["files"] == {"file": ("screenshot.jpg", b"\xff\xd8data", "image/jpeg")}

    def test_batch_size_and_order(self):
        session = FakeSession()
        service = make_service(session=session)
        for i in range(7):
            service.send_message(str(i))

        assert service.process_batch(URL) == 5
        assert service.pending() == 2
        assert [kw["json"]["content"] for _, kw in session.posts] == ["0", "1", "2", "3", "4"]

    def test_delivery_errors_are_swallowed(self):
        session = FakeSession(error=requests.ConnectionError("offline"))
        service = make_service(session=session)
        service.send_message("a")
        service.send_message("b")

        assert service.process_batch(URL) == 2
        assert service.pending() == 0

    def test_http_error_status_is_dropped(self):
        service = make_service(session=FakeSession(status_code=500))
        service.send_message("a")

        assert service.process_batch(URL) == 1
        assert service.pending() == 0

    def test_no_requests_without_url(self):
        session = FakeSession()
        service = make_service(url="", session=session, idle_delay=0.01, cycle_delay=0.01)
        for i in range(5):
            service.send_message(str(i))

        service.start()
        time.sleep(0.1)
        service.stop()

        assert session.posts == []
        assert service.pending() == 5

    def test_worker_delivers_when_url_set(self):
        session = FakeSession()
        service = make_service(session=session, cycle_delay=0.01)
        service.send_message("queued before start")

        service.start()
        deadline = time.monotonic() + 2.0
        while not session.posts and time.monotonic() < deadline:
            time.sleep(0.01)
        service.stop()

        assert len(session.posts) == 1
        assert not service.is_running()

    def test_start_twice_keeps_one_worker(self):
        service = make_service(url="", idle_delay=0.01)
        service.start()
        first = service._worker_thread
        service.start()

        assert service._worker_thread is first
        service.stop()

    def test_stop_delivers_last_queued_message(self):
        session = FakeSession()
        service = make_service(session=session, cycle_delay=60)
        service.start()
        time.sleep(0.05)

        service.send_message("Session Complete!")
        service.stop()

        assert [kw["json"]["content"] for _, kw in session.posts] == ["Session Complete!"]
        assert service.pending() == 0
        assert not service.is_running()

    def test_flush_respects_time_budget(self, clock):
        class SlowSession(FakeSession):
            def post(self, url, **kwargs):
                clock.advance(2.0)
                return super().post(url, **kwargs)

        session = SlowSession()
        service = make_service(session=session, clock=clock)
        for i in range(5):
            service.send_message(f"msg {i}")

        assert service.flush(3.0) == 2
        assert service.pending() == 3

    def test_flush_without_url_keeps_queue(self):
        service = make_service(url="")
        service.send_message("hello")

        assert service.flush(1.0) == 0
        assert service.pending() == 1


class TestPeriodicScreenshots:
    """Tests for interval-driven screenshots"""

    def test_not_due_before_interval(self, clock):
        service = make_service(screenshot_enabled=True, screenshot_interval_mins=1, clock=clock)
        screen = FakeScreen()
        clock.advance(59)

        assert service.check_periodic_screenshot(screen) == False
        assert screen.captures == 0

    def test_due_after_interval(self, clock):
        service = make_service(screenshot_enabled=True, screenshot_interval_mins=1, clock=clock)
        screen = FakeScreen()
        clock.advance(61)

        assert service.check_periodic_screenshot(screen) == True
        assert service.queued_messages()[0].kind is MessageKind.SCREENSHOT
        # Interval restarts after a screenshot
        assert service.check_periodic_screenshot(screen) == False

    def test_disabled_without_url(self, clock):
        service = make_service(url="", screenshot_enabled=True, screenshot_interval_mins=1, clock=clock)
        clock.advance(3600)

        assert service.check_periodic_screenshot(FakeScreen()) == False


class TestTestMessage:
    """Tests for the synchronous test message"""

    def test_requires_url(self):
        ok, message = make_service(url="").send_test_message()

        assert ok == False
        assert "Webhook URL" in message

    def test_success(self):
        session = FakeSession(status_code=204)
        ok, _ = make_service(session=session).send_test_message()

        assert ok == True
        assert len(session.posts) == 1

    def test_http_error(self):
        ok, message = make_service(session=FakeSession(status_code=404)).send_test_message()

        assert ok == False
        assert "404" in message

    def test_network_error(self):
        session = FakeSession(error=requests.ConnectionError("offline"))
        ok, _ = make_service(session=session).send_test_message()

        assert ok == False
