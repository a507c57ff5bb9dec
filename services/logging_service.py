# Copyright (C) 2026 BPS
# This file is part of Arcane Fishing Bot.
#
# Services Module - Logging Service

import logging
import os

from utils.path_helpers import get_app_dir

LOGGER_NAME = 'FishingBot'
LOG_FORMAT = '%(asctime)s | %(levelname)s | %(message)s'


class LoggingService:
    """
    Centralized logging setup for the 'FishingBot' logger

    Every module logs through logging.getLogger('FishingBot'); this service
    attaches the file and console handlers once.
    """

    def __init__(self, log_file: str = None, log_level: int = logging.INFO, console: bool = True):
        """
        Initialize logging service

        Args:
            log_file: Path to log file (default: fishing_bot.log in the app dir)
            log_level: Logging level (default: INFO)
            console: Also log to stderr
        """
        if log_file is None:
            log_file = os.path.join(get_app_dir(), 'fishing_bot.log')

        self.log_file = log_file
        self.log_level = log_level
        self.console = console
        self.logger = None
        self._setup_logging()

    def _setup_logging(self):
        """Setup logging with file and console handlers"""
        logger = logging.getLogger(LOGGER_NAME)
        logger.setLevel(self.log_level)

        # Re-initialising must not stack duplicate handlers
        for handler in list(logger.handlers):
            if getattr(handler, '_fishing_bot_handler', False):
                logger.removeHandler(handler)
                handler.close()

        formatter = logging.Formatter(LOG_FORMAT)
        handlers = [logging.FileHandler(self.log_file, encoding='utf-8')]
        if self.console:
            handlers.append(logging.StreamHandler())
        for handler in handlers:
            handler.setFormatter(formatter)
            handler._fishing_bot_handler = True
            logger.addHandler(handler)

        self.logger = logger

    def get_logger(self):
        """Get the logger instance"""
        return self.logger

    def close(self):
        """Detach and close this service's handlers"""
        if not self.logger:
            return
        for handler in list(self.logger.handlers):
            if getattr(handler, '_fishing_bot_handler', False):
                self.logger.removeHandler(handler)
                handler.close()
