"""Batch ledger service.

Batches are opened by manufacturers.  ``issue_one`` is the only code path
that touches ``remaining_quantity``, and it is called exclusively by the
lifecycle service while creating a product.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from trackchain.middleware.exceptions import (
    InvalidQuantityError,
    NotAuthorizedError,
    NotFoundError,
)
from trackchain.models.batch import Batch
from trackchain.models.stakeholder import StakeholderRole
from trackchain.schemas.batch import BatchCreate
from trackchain.services import registry
from trackchain.utils.clock import ledger_clock
from trackchain.utils.counters import BATCH_COUNTER, next_id

logger = logging.getLogger(__name__)


async def get_batch(
    db: AsyncSession,
    batch_id: int,
    *,
    for_update: bool = False,
) -> Batch | None:
    stmt = select(Batch).where(Batch.id == batch_id)
    if for_update:
        stmt = stmt.with_for_update()
    return (await db.execute(stmt)).scalar_one_or_none()


async def create_batch(
    db: AsyncSession,
    caller: str,
    body: BatchCreate,
) -> Batch:
    """Open a new production batch owned by ``caller``.

    Raises:
        NotAuthorizedError unless the caller is a registered manufacturer.
    """
    stakeholder = await registry.lookup(db, caller)
    if stakeholder is None or stakeholder.role != StakeholderRole.MANUFACTURER:
        raise NotAuthorizedError("Only manufacturers can create batches")

    batch = Batch(
        id=await next_id(db, BATCH_COUNTER),
        batch_number=body.batch_number,
        manufacturer=caller,
        production_date=ledger_clock.tick(),
        total_quantity=body.total_quantity,
        remaining_quantity=body.total_quantity,
        quality_grade=body.quality_grade,
        production_location=body.production_location,
        raw_materials=body.raw_materials,
        certifications=body.certifications,
        is_active=True,
    )
    db.add(batch)
    await db.flush()

    logger.info(
        "Batch %d (%s) opened by %s with %d units",
        batch.id, batch.batch_number, caller, batch.total_quantity,
    )
    return batch


async def issue_one(db: AsyncSession, batch_id: int) -> Batch:
    """Take one unit from the batch.

    Raises:
        NotFoundError if the batch does not exist.
        InvalidQuantityError if no units remain.
    """
    batch = await get_batch(db, batch_id, for_update=True)
    if batch is None:
        raise NotFoundError("Batch", batch_id)
    if batch.remaining_quantity <= 0:
        raise InvalidQuantityError(f"Batch {batch_id} has no remaining units")

    batch.remaining_quantity -= 1
    await db.flush()
    return batch
