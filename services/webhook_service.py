# Copyright (C) 2026 BPS
# This file is part of Arcane Fishing Bot.
#
# Services Module - Webhook Service
#
# Best-effort notification queue drained by its own background thread.
# Producers never block: pushes are capacity-bounded and drop the oldest
# message of the same kind on overflow. Delivery failures are logged and
# dropped, never retried.

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import requests

from core.exceptions import CaptureError

logger = logging.getLogger("FishingBot")

TEXT_QUEUE_CAPACITY = 50
SCREENSHOT_QUEUE_CAPACITY = 10
BATCH_SIZE = 5
MESSAGE_DELAY_SECONDS = 0.5
CYCLE_DELAY_SECONDS = 2.0
IDLE_DELAY_SECONDS = 5.0
WEBHOOK_TIMEOUT = 30.0
DRAIN_SECONDS = 3.0


class MessageKind(Enum):
    TEXT = "text"
    SCREENSHOT = "screenshot"


@dataclass(frozen=True)
class WebhookMessage:
    kind: MessageKind
    content: str
    image_data: Optional[bytes] = None


class WebhookService:
    """Webhook notification dispatcher - queue, worker thread and delivery"""

    def __init__(
        self,
        webhook_url: str = "",
        screenshot_enabled: bool = False,
        screenshot_interval_mins: int = 60,
        session=None,
        text_capacity: int = TEXT_QUEUE_CAPACITY,
        screenshot_capacity: int = SCREENSHOT_QUEUE_CAPACITY,
        batch_size: int = BATCH_SIZE,
        message_delay: float = MESSAGE_DELAY_SECONDS,
        cycle_delay: float = CYCLE_DELAY_SECONDS,
        idle_delay: float = IDLE_DELAY_SECONDS,
        drain_timeout: float = DRAIN_SECONDS,
        clock=time.monotonic,
    ):
        """
        Initialize webhook service

        Args:
            webhook_url: Endpoint URL; empty disables delivery
            screenshot_enabled: Send periodic screenshots
            screenshot_interval_mins: Minutes between periodic screenshots
            session: requests.Session-like object (default: new Session)
            text_capacity / screenshot_capacity: Queue caps per message kind
            batch_size: Messages delivered per worker cycle
            message_delay / cycle_delay / idle_delay: Worker pacing (seconds)
            drain_timeout: Time budget for delivering what is still queued on stop
        """
        self.webhook_url = webhook_url or ""
        self.screenshot_enabled = screenshot_enabled
        self.screenshot_interval_mins = screenshot_interval_mins
        self.session = session or requests.Session()

        self.capacity = {
            MessageKind.TEXT: text_capacity,
            MessageKind.SCREENSHOT: screenshot_capacity,
        }
        self.batch_size = batch_size
        self.message_delay = message_delay
        self.cycle_delay = cycle_delay
        self.idle_delay = idle_delay
        self.drain_timeout = drain_timeout
        self._clock = clock

        self._queue = deque()
        self._queue_lock = threading.Lock()
        self._settings_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._worker_thread: Optional[threading.Thread] = None
        self._last_screenshot_time = clock()
        self.dropped_count = 0

    # ========== LIFECYCLE ==========

    def start(self):
        """Start the delivery thread (no-op if already running)"""
        if self._worker_thread is not None and self._worker_thread.is_alive():
            return
        self._stop_event = threading.Event()
        self._worker_thread = threading.Thread(
            target=self._worker_loop,
            args=(self._stop_event,),
            name="WebhookService-Worker",
            daemon=True,
        )
        self._worker_thread.start()
        logger.info("[Webhook] Delivery worker started")

    def stop(self, timeout: float = 5.0):
        """Signal the delivery thread to exit and wait for its final drain"""
        self._stop_event.set()
        thread = self._worker_thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)
            if thread.is_alive():
                logger.warning("[Webhook] Worker still busy after stop (daemon, will exit later)")
        self._worker_thread = None

    def is_running(self) -> bool:
        thread = self._worker_thread
        return thread is not None and thread.is_alive()

    def update_settings(
        self,
        webhook_url: str = None,
        screenshot_enabled: bool = None,
        screenshot_interval_mins: int = None,
    ):
        """Update webhook settings"""
        with self._settings_lock:
            if webhook_url is not None:
                self.webhook_url = webhook_url
            if screenshot_enabled is not None:
                self.screenshot_enabled = screenshot_enabled
            if screenshot_interval_mins is not None:
                self.screenshot_interval_mins = screenshot_interval_mins

    def _current_url(self) -> str:
        with self._settings_lock:
            return (self.webhook_url or "").strip()

    # ========== PRODUCERS ==========

    def send_message(self, message: str):
        """Queue a text message (never blocks)"""
        self._push(WebhookMessage(MessageKind.TEXT, message))

    def send_screenshot(self, message: str, image_data: bytes):
        """Queue a screenshot with a caption (never blocks)"""
        self._push(WebhookMessage(MessageKind.SCREENSHOT, message, image_data))

    def _push(self, msg: WebhookMessage):
        limit = self.capacity[msg.kind]
        with self._queue_lock:
            self._queue.append(msg)
            same_kind = [m for m in self._queue if m.kind is msg.kind]
            overflow = len(same_kind) - limit
            for old in same_kind[:max(overflow, 0)]:
                self._queue.remove(old)
                self.dropped_count += 1
        if overflow > 0:
            logger.debug(f"[Webhook] {msg.kind.value} queue full ({limit}), dropped oldest")

    def pending(self) -> int:
        with self._queue_lock:
            return len(self._queue)

    def queued_messages(self):
        """Copy of the queue, oldest first"""
        with self._queue_lock:
            return list(self._queue)

    def _take_batch(self):
        batch = []
        with self._queue_lock:
            while self._queue and len(batch) < self.batch_size:
                batch.append(self._queue.popleft())
        return batch

    # ========== WORKER ==========

    def _worker_loop(self, stop_event: threading.Event):
        while not stop_event.is_set():
            webhook_url = self._current_url()
            if not webhook_url:
                stop_event.wait(self.idle_delay)
                continue

            self.process_batch(webhook_url, stop_event)
            stop_event.wait(self.cycle_delay)
        self.flush(self.drain_timeout)
        logger.info("[Webhook] Delivery worker exited")

    def flush(self, timeout: float) -> int:
        """
        Deliver queued messages back to back until the queue is empty or
        the time budget runs out. Used for the final drain on stop.

        Returns:
            int: Number of messages delivered
        """
        webhook_url = self._current_url()
        if not webhook_url:
            return 0
        deadline = self._clock() + timeout
        sent = 0
        while self._clock() < deadline:
            with self._queue_lock:
                if not self._queue:
                    break
                message = self._queue.popleft()
            self._deliver(webhook_url, message)
            sent += 1
        if self.pending():
            logger.warning(f"[Webhook] Stopped with {self.pending()} undelivered message(s)")
        return sent

    def process_batch(self, webhook_url: str, stop_event: Optional[threading.Event] = None) -> int:
        """
        Deliver up to batch_size queued messages.

        Returns:
            int: Number of messages taken off the queue
        """
        batch = self._take_batch()
        for message in batch:
            self._deliver(webhook_url, message)
            if stop_event is not None:
                stop_event.wait(self.message_delay)
            else:
                time.sleep(self.message_delay)
        return len(batch)

    def _deliver(self, webhook_url: str, message: WebhookMessage):
        """POST one message; failures are logged and dropped"""
        try:
            if message.kind is MessageKind.TEXT:
                response = self.session.post(
                    webhook_url, json={"content": message.content}, timeout=WEBHOOK_TIMEOUT
                )
            else:
                files = {"file": ("screenshot.jpg", message.image_data, "image/jpeg")}
                response = self.session.post(
                    webhook_url,
                    data={"content": message.content},
                    files=files,
                    timeout=WEBHOOK_TIMEOUT,
                )
            status = getattr(response, "status_code", None)
            if status is not None and status >= 400:
                logger.warning(f"[Webhook] Delivery failed: HTTP {status}")
        except Exception as e:
            logger.warning(f"[Webhook] Delivery error: {e}")

    # ========== PERIODIC SCREENSHOTS ==========

    def check_periodic_screenshot(self, screen) -> bool:
        """
        Queue a full-screen screenshot if the interval has elapsed.

        Args:
            screen: ScreenCapture (capture_full_screen())

        Returns:
            bool: True if a screenshot was queued
        """
        with self._settings_lock:
            enabled = self.screenshot_enabled and bool((self.webhook_url or "").strip())
            interval = self.screenshot_interval_mins * 60
            now = self._clock()
            due = enabled and now - self._last_screenshot_time >= interval
            if due:
                self._last_screenshot_time = now
        if not due:
            return False

        from vision.screen_capture import encode_jpeg

        try:
            image = screen.capture_full_screen()
        except CaptureError as e:
            logger.warning(f"[Webhook] Periodic screenshot failed: {e}")
            return False
        data = encode_jpeg(image)
        if data is None:
            return False
        self.send_screenshot("Periodic Screenshot", data)
        return True

    def send_test_message(self):
        """
        Send a test webhook message synchronously

        Returns:
            tuple: (success: bool, message: str)
        """
        webhook_url = self._current_url()
        if not webhook_url:
            return False, "Please enter a Webhook URL first!"
        try:
            response = self.session.post(
                webhook_url,
                json={"content": "Test message from Arcane Fishing Bot!"},
                timeout=10,
            )
            if response.status_code in (200, 204):
                return True, "Test message sent successfully!"
            return False, f"Webhook error: {response.status_code}"
        except requests.RequestException as e:
            return False, f"Error testing webhook: {e}"
