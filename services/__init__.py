# Copyright (C) 2026 BPS
# This file is part of Arcane Fishing Bot.
#
# Services Module - Public Interface

from .webhook_service import WebhookService, WebhookMessage, MessageKind
from .stats_manager import StatsManager
from .logging_service import LoggingService
from .performance_monitor import PerformanceMonitor

__all__ = [
    "WebhookService",
    "WebhookMessage",
    "MessageKind",
    "StatsManager",
    "LoggingService",
    "PerformanceMonitor",
]
