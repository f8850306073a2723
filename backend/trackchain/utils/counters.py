"""Sequential id allocation backed by ``ledger_counters``.

Ids start at 1 and are handed out densely.  The counter row is read with
a row lock, so two transactions taking an id from the same counter are
serialized while unrelated counters stay independent.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from trackchain.models.counter import LedgerCounter

PRODUCT_COUNTER = "product"
BATCH_COUNTER = "batch"
VERIFICATION_COUNTER = "verification"

ALL_COUNTERS = (PRODUCT_COUNTER, BATCH_COUNTER, VERIFICATION_COUNTER)


async def next_id(db: AsyncSession, name: str) -> int:
    """Take the next id from the named counter."""
    counter = (
        await db.execute(
            select(LedgerCounter).where(LedgerCounter.name == name).with_for_update()
        )
    ).scalar_one_or_none()
    if counter is None:
        counter = LedgerCounter(name=name, next_value=1)
        db.add(counter)

    value = counter.next_value
    counter.next_value = value + 1
    await db.flush()
    return value
