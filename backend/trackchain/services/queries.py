"""Read-only product views: authenticity check and supply-chain summary.

Both views answer for unknown product ids too, with ``exists=False`` or a
zeroed summary, so a QR scan of a forged code gets a clean negative
answer instead of an error.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from trackchain.schemas.product import AuthenticityOut, SupplyChainSummary
from trackchain.services import lifecycle
from trackchain.services.verification import authenticity_score


async def verify_product_authenticity(db: AsyncSession, product_id: int) -> AuthenticityOut:
    product = await lifecycle.get_product(db, product_id)
    if product is None:
        return AuthenticityOut(exists=False)

    return AuthenticityOut(
        exists=True,
        manufacturer=product.manufacturer,
        batch_id=product.batch_id,
        status=int(product.current_status),
        is_recalled=product.is_recalled,
        verification_count=product.total_verifications,
        authenticity_score=authenticity_score(product),
    )


async def get_supply_chain_summary(db: AsyncSession, product_id: int) -> SupplyChainSummary:
    product = await lifecycle.get_product(db, product_id)
    if product is None:
        return SupplyChainSummary(product_id=product_id)

    return SupplyChainSummary(
        product_id=product_id,
        current_status=int(product.current_status),
        current_location=product.current_location or "",
        current_holder=product.current_holder,
        manufacturer=product.manufacturer,
        creation_time=product.creation_time,
        total_verifications=product.total_verifications,
        is_recalled=product.is_recalled,
    )
