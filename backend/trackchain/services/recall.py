"""Recall service.

A recall bypasses the transition table: the product goes to RECALLED
from whatever status it is in, including SOLD.  The recall record is
overwritten if the product is recalled again, and every recall appends a
history entry flagged ``verification_required``.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from trackchain.middleware.exceptions import NotAuthorizedError
from trackchain.models.product import ProductStatus
from trackchain.models.recall import ProductRecall
from trackchain.schemas.recall import RecallCreate
from trackchain.services import history, lifecycle, registry
from trackchain.utils.clock import ledger_clock

logger = logging.getLogger(__name__)


async def initiate_recall(
    db: AsyncSession,
    caller: str,
    product_id: int,
    body: RecallCreate,
) -> ProductRecall:
    """Recall a product.

    Raises:
        NotFoundError if the product does not exist.
        NotAuthorizedError unless the caller is the manufacturer or the
        registry owner.
    """
    product = await lifecycle.require_product(db, product_id)
    if caller != product.manufacturer and not registry.is_registry_owner(caller):
        raise NotAuthorizedError("Only the manufacturer or registry owner can recall a product")

    lifecycle.force_recall(product)

    recall = await get_recall(db, product_id)
    if recall is None:
        recall = ProductRecall(product_id=product_id)
        db.add(recall)
    recall.reason = body.reason
    recall.recall_date = ledger_clock.tick()
    recall.affected_batches = list(body.affected_batches)
    recall.severity = body.severity
    recall.initiator = caller
    recall.status = "ACTIVE"
    recall.consumer_notification = True

    await history.append_entry(
        db,
        product.id,
        from_holder=product.current_holder,
        to_holder=product.current_holder,
        status=ProductStatus.RECALLED,
        location=product.current_location,
        notes=body.reason,
        verification_required=True,
    )

    logger.warning(
        "Product %d recalled by %s (severity %d): %s",
        product.id, caller, body.severity, body.reason,
    )
    return recall


async def get_recall(db: AsyncSession, product_id: int) -> ProductRecall | None:
    return (
        await db.execute(select(ProductRecall).where(ProductRecall.product_id == product_id))
    ).scalar_one_or_none()
