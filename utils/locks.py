# Copyright (C) 2026 BPS
# This file is part of Arcane Fishing Bot.
#
# Readers-writer lock for shared bot state

import threading
from contextlib import contextmanager


class ReadWriteLock:
    """
    Readers-writer lock built on threading.Condition.

    Any number of readers may hold the lock at once; a writer holds it
    exclusively. Waiting writers block new readers so a steady stream of
    status polls cannot starve the worker thread.

    Not reentrant: a thread holding the write side must not re-acquire it.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    def acquire_read(self):
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1

    def release_read(self):
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self):
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True

    def release_write(self):
        with self._cond:
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def read(self):
        """Shared access context"""
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write(self):
        """Exclusive access context"""
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()
