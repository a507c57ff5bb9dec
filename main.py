# Copyright (C) 2026 BPS
# This file is part of Arcane Fishing Bot.
#
# Headless launcher: builds the config, starts the engine and prints the
# status line until Ctrl+C.

import argparse
import logging
import os
import sys
import time

from config.bot_config import BotConfig
from config.defaults import RESOLUTION_PRESETS, DEFAULT_PRESET
from core.engine import FishingEngine
from services.logging_service import LoggingService
from services.stats_manager import StatsManager
from utils.path_helpers import get_app_dir

STATUS_INTERVAL = 5.0


def build_parser():
    parser = argparse.ArgumentParser(description="Arcane Fishing Bot (headless)")
    parser.add_argument("--preset", choices=sorted(RESOLUTION_PRESETS), default=DEFAULT_PRESET,
                        help="Screen resolution preset for the detection regions")
    parser.add_argument("--lure", type=float, default=None, help="Rod lure value")
    parser.add_argument("--fish-per-feed", type=int, default=None,
                        help="Check hunger every N fish (0 disables feeding)")
    parser.add_argument("--advanced", action="store_true", help="Use clustering detection")
    parser.add_argument("--webhook", default="", help="Webhook URL for notifications")
    parser.add_argument("--test-webhook", action="store_true",
                        help="Send a test message to the webhook and exit")
    parser.add_argument("--no-failsafe", action="store_true", help="Disable the corner failsafe")
    parser.add_argument("--tesseract", default=None, help="Path to tesseract executable")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    return parser


def build_config(args):
    config = BotConfig().apply_resolution_preset(args.preset)
    changes = {
        "advanced_detection": args.advanced,
        "webhook_url": args.webhook,
        "failsafe_enabled": not args.no_failsafe,
        "tesseract_path": args.tesseract,
    }
    if args.lure is not None:
        changes["rod_lure_value"] = args.lure
    if args.fish_per_feed is not None:
        changes["fish_per_feed"] = args.fish_per_feed
    return config.with_changes(**changes)


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging_service = LoggingService(log_level=logging.DEBUG if args.debug else logging.INFO)
    logger = logging_service.get_logger()

    config = build_config(args)
    problems = config.validate()
    if problems:
        for problem in problems:
            logger.error(f"Invalid setting: {problem}")
        return 2

    if args.test_webhook:
        from services.webhook_service import WebhookService

        ok, message = WebhookService(webhook_url=config.webhook_url).send_test_message()
        print(message)
        return 0 if ok else 1

    stats = StatsManager(os.path.join(get_app_dir(), "fishing_stats.db"))
    engine = FishingEngine(config, stats_manager=stats, logger=logger)

    logger.info(config.timeout_description())
    logger.info("Move the mouse to the top-left corner to trigger the failsafe; Ctrl+C to quit")
    engine.start()
    try:
        while not engine.wait(timeout=STATUS_INTERVAL):
            status = engine.get_status()
            print(
                f"[{status['session_time']}] {status['phase']}: {status['status']} "
                f"| fish={status['fish_count']} errors={status['errors_count']} "
                f"| {status['fish_per_hour']:.1f}/h"
            )
    except KeyboardInterrupt:
        logger.info("Interrupted, stopping...")
    finally:
        engine.shutdown()
        lifetime = engine.get_lifetime_stats()
        logger.info(
            f"Lifetime: {lifetime.total_fish_caught} fish, {lifetime.formatted_runtime()}, "
            f"{lifetime.sessions_completed} sessions"
        )
        logging_service.close()
    return 0


if __name__ == "__main__":
    # Give the user time to focus the game window before the startup delay
    time.sleep(0.5)
    sys.exit(main())
