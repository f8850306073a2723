"""Verification service — attestations recorded against products.

Verifications are a parallel record to the provenance history: they do
not append history entries.  Each one bumps the product's
``total_verifications`` rollup (through the lifecycle engine) and the
verifier's ``verification_count``.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from trackchain.middleware.exceptions import NotAuthorizedError
from trackchain.models.product import Product
from trackchain.models.stakeholder import StakeholderRole
from trackchain.models.verification import Verification
from trackchain.schemas.verification import VerificationCreate
from trackchain.services import lifecycle, registry
from trackchain.utils.clock import ledger_clock
from trackchain.utils.counters import VERIFICATION_COUNTER, next_id

logger = logging.getLogger(__name__)

VERIFYING_ROLES = frozenset({StakeholderRole.VERIFIER, StakeholderRole.MANUFACTURER})

SCORE_PER_VERIFICATION = 10
MAX_AUTHENTICITY_SCORE = 100


def authenticity_score(product: Product) -> int:
    return min(MAX_AUTHENTICITY_SCORE, product.total_verifications * SCORE_PER_VERIFICATION)


async def add_verification(
    db: AsyncSession,
    caller: str,
    product_id: int,
    body: VerificationCreate,
) -> Verification:
    """Record a verification issued by ``caller``.

    Raises:
        NotFoundError if the product does not exist.
        NotAuthorizedError unless the caller is a registered verifier or
        manufacturer.
    """
    product = await lifecycle.require_product(db, product_id)

    verifier = await registry.lookup(db, caller, for_update=True)
    if verifier is None or verifier.role not in VERIFYING_ROLES:
        raise NotAuthorizedError("Only verifiers and manufacturers can add verifications")

    verification = Verification(
        id=await next_id(db, VERIFICATION_COUNTER),
        product_id=product.id,
        verifier=caller,
        verification_type=body.verification_type,
        result=body.result,
        data=body.data,
        timestamp=ledger_clock.tick(),
        expiry_time=body.expiry_time,
        certificate_hash=body.certificate_hash,
        notes=body.notes,
    )
    db.add(verification)

    lifecycle.note_verification(product)
    verifier.verification_count += 1
    await db.flush()

    logger.info(
        "Verification %d (%s, result=%s) on product %d by %s",
        verification.id, body.verification_type.name, body.result, product.id, caller,
    )
    return verification


async def get_verification(db: AsyncSession, verification_id: int) -> Verification | None:
    return (
        await db.execute(select(Verification).where(Verification.id == verification_id))
    ).scalar_one_or_none()


async def list_verification_ids(db: AsyncSession, product_id: int) -> list[int]:
    """Verification ids of a product in the order they were recorded."""
    result = await db.execute(
        select(Verification.id)
        .where(Verification.product_id == product_id)
        .order_by(Verification.id.asc())
    )
    return [row[0] for row in result.all()]
