# Copyright (C) 2026 BPS
# This file is part of Arcane Fishing Bot.
#
# Services Module - Stats Manager
#
# Owns the lifetime statistics. Mutated only at the catch, feed and
# session-end checkpoints; persisted to SQLite when a database path is given.

import sqlite3
import os
import logging
import threading
from dataclasses import replace, asdict
from datetime import datetime

from core.state import LifetimeStats
from utils.locks import ReadWriteLock

logger = logging.getLogger("FishingBot")

_LIFETIME_COLUMNS = (
    "total_fish_caught",
    "total_runtime_seconds",
    "sessions_completed",
    "best_session_fish",
    "average_fish_per_hour",
    "total_feeds",
    "last_updated",
)


class StatsManager:
    """
    Lifetime statistics with optional SQLite persistence

    Without a db_path the stats live in memory only.
    """

    def __init__(self, db_path: str = None):
        self.db_path = db_path
        self._stats = LifetimeStats()
        self._lock = ReadWriteLock()
        self._db_lock = threading.Lock()
        if self.db_path:
            self._init_database()
            self._load()

    def _init_database(self):
        """Initialize SQLite database with tables"""
        try:
            directory = os.path.dirname(os.path.abspath(self.db_path))
            os.makedirs(directory, exist_ok=True)
            with sqlite3.connect(self.db_path) as conn:
                cursor = conn.cursor()
                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS lifetime (
                        id INTEGER PRIMARY KEY CHECK (id = 1),
                        total_fish_caught INTEGER DEFAULT 0,
                        total_runtime_seconds INTEGER DEFAULT 0,
                        sessions_completed INTEGER DEFAULT 0,
                        best_session_fish INTEGER DEFAULT 0,
                        average_fish_per_hour REAL DEFAULT 0,
                        total_feeds INTEGER DEFAULT 0,
                        last_updated TEXT
                    )
                """
                )
                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS sessions (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        end_time TEXT NOT NULL,
                        runtime_seconds INTEGER DEFAULT 0,
                        fish_count INTEGER DEFAULT 0,
                        errors_count INTEGER DEFAULT 0,
                        best_streak INTEGER DEFAULT 0
                    )
                """
                )
                conn.commit()
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Stats DB init error: {e}")

    def _load(self):
        """Load lifetime aggregates from the database"""
        try:
            with sqlite3.connect(self.db_path) as conn:
                cursor = conn.cursor()
                cursor.execute(f"SELECT {', '.join(_LIFETIME_COLUMNS)} FROM lifetime WHERE id = 1")
                row = cursor.fetchone()
            if row:
                with self._lock.write():
                    self._stats = LifetimeStats(**dict(zip(_LIFETIME_COLUMNS, row)))
                logger.info(f"Lifetime stats loaded: {self._stats.total_fish_caught} fish")
        except (sqlite3.Error, OSError) as e:
            logger.warning(f"Failed to load lifetime stats: {e}")

    def _save(self):
        """Persist the latest snapshot (no-op without a database)"""
        if not self.db_path:
            return
        with self._db_lock:
            stats = self.snapshot()
            values = asdict(stats)
            try:
                with sqlite3.connect(self.db_path) as conn:
                    cursor = conn.cursor()
                    cursor.execute(
                        f"""
                        INSERT OR REPLACE INTO lifetime (id, {', '.join(_LIFETIME_COLUMNS)})
                        VALUES (1, {', '.join('?' for _ in _LIFETIME_COLUMNS)})
                    """,
                        tuple(values[c] for c in _LIFETIME_COLUMNS),
                    )
                    conn.commit()
            except (sqlite3.Error, OSError) as e:
                logger.error(f"Save lifetime stats error: {e}")

    # ========== CHECKPOINTS ==========

    def add_fish(self, count: int = 1):
        """Catch checkpoint"""
        with self._lock.write():
            self._stats.total_fish_caught += count
            self._stats.update_calculations()
        self._save()

    def add_feed(self):
        """Feed checkpoint"""
        with self._lock.write():
            self._stats.total_feeds += 1
            self._stats.update_calculations()
        self._save()

    def complete_session(self, session_fish: int, runtime_seconds: float,
                         errors_count: int = 0, best_streak: int = 0):
        """Session-end checkpoint: merge runtime and session records"""
        runtime_seconds = int(runtime_seconds)
        with self._lock.write():
            self._stats.total_runtime_seconds += runtime_seconds
            self._stats.sessions_completed += 1
            if session_fish > self._stats.best_session_fish:
                self._stats.best_session_fish = session_fish
            self._stats.update_calculations()
        self._save()
        self._log_session(session_fish, runtime_seconds, errors_count, best_streak)
        logger.info(
            f"Session merged: fish={session_fish}, runtime={runtime_seconds}s, errors={errors_count}"
        )

    def _log_session(self, fish, runtime_seconds, errors_count, best_streak):
        if not self.db_path:
            return
        try:
            with sqlite3.connect(self.db_path) as conn:
                cursor = conn.cursor()
                cursor.execute(
                    """
                    INSERT INTO sessions (end_time, runtime_seconds, fish_count, errors_count, best_streak)
                    VALUES (?, ?, ?, ?, ?)
                """,
                    (datetime.now().isoformat(), runtime_seconds, fish, errors_count, best_streak),
                )
                conn.commit()
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Log session error: {e}")

    # ========== QUERIES ==========

    def snapshot(self) -> LifetimeStats:
        """Copy of the current lifetime stats"""
        with self._lock.read():
            return replace(self._stats)

    def get_recent_sessions(self, limit: int = 10) -> list:
        """Most recent session records, newest first"""
        if not self.db_path:
            return []
        try:
            with sqlite3.connect(self.db_path) as conn:
                cursor = conn.cursor()
                cursor.execute(
                    """
                    SELECT end_time, runtime_seconds, fish_count, errors_count, best_streak
                    FROM sessions ORDER BY id DESC LIMIT ?
                """,
                    (limit,),
                )
                rows = cursor.fetchall()
            return [
                {
                    "end_time": r[0],
                    "runtime_seconds": r[1],
                    "fish": r[2],
                    "errors": r[3],
                    "best_streak": r[4],
                }
                for r in rows
            ]
        except (sqlite3.Error, OSError) as e:
            logger.warning(f"Failed to read sessions: {e}")
            return []
