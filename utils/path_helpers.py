# Copyright (C) 2026 BPS
# This file is part of Arcane Fishing Bot.
#
# Locations of the log file, the stats database and bundled resources

import os
import sys

APP_DIR_ENV = 'ARCANE_FISHING_BOT_HOME'


def _project_root():
    return os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))


def get_app_dir():
    """Directory for fishing_bot.log and fishing_stats.db

    ARCANE_FISHING_BOT_HOME wins when set (created if missing); frozen builds
    use the executable's folder; source runs use the project root.
    """
    override = os.environ.get(APP_DIR_ENV)
    if override:
        os.makedirs(override, exist_ok=True)
        return os.path.abspath(override)
    if getattr(sys, 'frozen', False):
        return os.path.dirname(sys.executable)
    return _project_root()


def get_resource_path(relative_path):
    """Absolute path of a bundled resource (e.g. a portable Tesseract)"""
    # PyInstaller unpacks bundled files under sys._MEIPASS
    base_path = getattr(sys, '_MEIPASS', None) or _project_root()
    return os.path.join(base_path, relative_path)
