"""Ledger clock — strictly increasing logical timestamps.

Timestamps on ledger records never come from the caller.  They are
microseconds since the epoch taken from the server clock, bumped forward
whenever the wall clock stalls or steps backwards so that every tick is
greater than the last one handed out by this process.

At startup the clock is seeded with the largest timestamp already stored,
so a restart on a host whose clock lags cannot produce an older tick.
"""

from __future__ import annotations

import threading
import time

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession


class LedgerClock:
    def __init__(self) -> None:
        self._last = 0
        self._lock = threading.Lock()

    def tick(self) -> int:
        with self._lock:
            now = time.time_ns() // 1_000
            self._last = max(now, self._last + 1)
            return self._last

    @property
    def last(self) -> int:
        """Most recent tick handed out (or seeded)."""
        return self._last

    def observe(self, value: int) -> None:
        """Never hand out a tick at or below ``value``."""
        with self._lock:
            self._last = max(self._last, value)

    async def seed(self, db: AsyncSession) -> int:
        """Advance past every timestamp already stored in the ledger."""
        from trackchain.models import (
            Batch,
            Product,
            ProductAlert,
            ProductHistory,
            ProductPermission,
            ProductRecall,
            Stakeholder,
            TemperatureLog,
            Verification,
        )

        stamped = (
            Stakeholder.registration_time,
            Batch.production_date,
            Product.creation_time,
            ProductHistory.timestamp,
            ProductPermission.granted_at,
            Verification.timestamp,
            TemperatureLog.timestamp,
            ProductAlert.timestamp,
            ProductRecall.recall_date,
        )
        latest = 0
        for column in stamped:
            value = await db.scalar(select(func.max(column)))
            latest = max(latest, value or 0)
        self.observe(latest)
        return latest


ledger_clock = LedgerClock()
