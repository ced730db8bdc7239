"""
Tests for the parking engine

unit/         domain rules, pricing, service use cases on the in-memory store
integration/  SQLAlchemy storage, concurrent admission and exit
"""

from datetime import datetime, timedelta
import threading


class FakeClock:
    """Deterministic clock; advance() moves it forward, set() pins it"""

    def __init__(self, start: datetime = datetime(2024, 1, 1, 8, 0, 0)):
        self._now = start
        self._lock = threading.Lock()

    def __call__(self) -> datetime:
        with self._lock:
            return self._now

    def advance(self, **kwargs) -> datetime:
        with self._lock:
            self._now = self._now + timedelta(**kwargs)
            return self._now

    def set(self, moment: datetime) -> None:
        with self._lock:
            self._now = moment
