"""Product lifecycle engine.

Owns product records and is the only writer of their mutable state.
Every status change, custody transfer and product creation appends
exactly one entry to the provenance history.

Transition rules:
    created → in_production → quality_check → packaged → in_transit
    in_transit → at_warehouse → in_transit
    in_transit → at_retailer → sold
    any status → recalled
    at_warehouse | at_retailer → expired

Each operation checks, in order: the product exists, the caller is
allowed to act on it, the requested change is legal.  All checks run
before anything is written, so a rejected call leaves no trace.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from trackchain.middleware.exceptions import (
    InvalidQuantityError,
    InvalidStakeholderError,
    InvalidTransitionError,
    NotAuthorizedError,
    NotFoundError,
)
from trackchain.models.permission import ProductPermission
from trackchain.models.product import Product, ProductStatus
from trackchain.schemas.product import (
    PermissionGrant,
    ProductCreate,
    StatusUpdate,
    TransferRequest,
)
from trackchain.services import batches, history, registry
from trackchain.utils.clock import ledger_clock
from trackchain.utils.counters import PRODUCT_COUNTER, next_id

logger = logging.getLogger("trackchain.lifecycle")

S = ProductStatus

VALID_TRANSITIONS: frozenset[tuple[ProductStatus, ProductStatus]] = frozenset({
    (S.CREATED, S.IN_PRODUCTION),
    (S.IN_PRODUCTION, S.QUALITY_CHECK),
    (S.QUALITY_CHECK, S.PACKAGED),
    (S.PACKAGED, S.IN_TRANSIT),
    (S.IN_TRANSIT, S.AT_WAREHOUSE),
    (S.AT_WAREHOUSE, S.IN_TRANSIT),
    (S.IN_TRANSIT, S.AT_RETAILER),
    (S.AT_RETAILER, S.SOLD),
})

EXPIRABLE_FROM: frozenset[ProductStatus] = frozenset({S.AT_WAREHOUSE, S.AT_RETAILER})


def is_valid_transition(current: ProductStatus, new: ProductStatus) -> bool:
    if new == S.RECALLED:
        return True
    if new == S.EXPIRED:
        return current in EXPIRABLE_FROM
    return (current, new) in VALID_TRANSITIONS


# ── Authorization ────────────────────────────────────────────

def can_update_product(
    identity: str,
    product: Product,
    permission: ProductPermission | None = None,
) -> bool:
    """Capability check against a product snapshot.

    True for the manufacturer, the current holder, or anyone holding a
    delegated ``can_update`` grant for this product.
    """
    if identity == product.manufacturer or identity == product.current_holder:
        return True
    return bool(permission and permission.can_update)


async def get_permission(
    db: AsyncSession,
    product_id: int,
    identity: str,
) -> ProductPermission | None:
    return (
        await db.execute(
            select(ProductPermission).where(
                ProductPermission.product_id == product_id,
                ProductPermission.identity == identity,
            )
        )
    ).scalar_one_or_none()


async def is_authorized_for_product(
    db: AsyncSession,
    identity: str,
    product: Product,
) -> bool:
    if can_update_product(identity, product):
        return True
    return can_update_product(identity, product, await get_permission(db, product.id, identity))


# ── Loading ──────────────────────────────────────────────────

async def get_product(
    db: AsyncSession,
    product_id: int,
    *,
    for_update: bool = False,
) -> Product | None:
    stmt = select(Product).where(Product.id == product_id)
    if for_update:
        stmt = stmt.with_for_update()
    return (await db.execute(stmt)).scalar_one_or_none()


async def require_product(
    db: AsyncSession,
    product_id: int,
    *,
    for_update: bool = True,
) -> Product:
    """Load a product (locked by default) or raise NotFoundError."""
    product = await get_product(db, product_id, for_update=for_update)
    if product is None:
        raise NotFoundError("Product", product_id)
    return product


# ── Operations ───────────────────────────────────────────────

async def create_product(
    db: AsyncSession,
    caller: str,
    body: ProductCreate,
) -> Product:
    """Issue a new product against one of the caller's batches.

    Raises:
        NotFoundError if the batch does not exist.
        NotAuthorizedError unless the caller manufactured the batch.
        InvalidQuantityError if the batch has no units left.
    """
    batch = await batches.get_batch(db, body.batch_id, for_update=True)
    if batch is None:
        raise NotFoundError("Batch", body.batch_id)
    if caller != batch.manufacturer:
        raise NotAuthorizedError("Only the batch manufacturer can create products")
    if batch.remaining_quantity <= 0:
        raise InvalidQuantityError(f"Batch {batch.id} has no remaining units")

    product = Product(
        id=await next_id(db, PRODUCT_COUNTER),
        name=body.name,
        category=body.category,
        batch_id=batch.id,
        manufacturer=caller,
        origin_country=body.origin_country,
        description=body.description,
        base_price=body.base_price,
        expiry_date=body.expiry_date,
        creation_time=ledger_clock.tick(),
        current_status=S.CREATED,
        current_location=body.initial_location,
        current_holder=caller,
        is_recalled=False,
        total_verifications=0,
    )
    db.add(product)
    await db.flush()

    await batches.issue_one(db, batch.id)
    await history.init_sequence(db, product.id)
    await history.append_entry(
        db,
        product.id,
        from_holder=caller,
        to_holder=caller,
        status=S.CREATED,
        location=body.initial_location,
        notes="Product created",
    )

    logger.info("Product %d created from batch %d by %s", product.id, batch.id, caller)
    return product


async def update_status(
    db: AsyncSession,
    caller: str,
    product_id: int,
    body: StatusUpdate,
) -> Product:
    """Move a product to a new status, location and holder.

    Raises:
        NotFoundError if the product does not exist.
        NotAuthorizedError unless the caller may act on the product.
        InvalidTransitionError for unknown status codes or illegal moves.
    """
    product = await require_product(db, product_id)
    if not await is_authorized_for_product(db, caller, product):
        raise NotAuthorizedError(f"Not authorized to update product {product_id}")

    current = product.current_status
    try:
        new_status = ProductStatus(body.new_status)
    except ValueError:
        raise InvalidTransitionError(current.name, body.new_status)
    if not is_valid_transition(current, new_status):
        raise InvalidTransitionError(current.name, new_status.name)

    previous_holder = product.current_holder
    product.current_status = new_status
    product.current_location = body.new_location
    product.current_holder = body.new_holder
    if new_status == S.RECALLED:
        product.is_recalled = True

    await history.append_entry(
        db,
        product.id,
        from_holder=previous_holder,
        to_holder=body.new_holder,
        status=new_status,
        location=body.new_location,
        temperature=body.temperature,
        humidity=body.humidity,
        notes=body.notes,
    )

    logger.info(
        "Product %d: %s → %s by %s", product.id, current.name, new_status.name, caller,
    )
    return product


async def transfer_product(
    db: AsyncSession,
    caller: str,
    product_id: int,
    body: TransferRequest,
) -> Product:
    """Hand custody to another registered stakeholder; status is unchanged.

    Raises:
        NotFoundError if the product does not exist.
        NotAuthorizedError unless the caller currently holds the product.
        InvalidStakeholderError if the new owner is not registered.
    """
    product = await require_product(db, product_id)
    if caller != product.current_holder:
        raise NotAuthorizedError("Only the current holder can transfer a product")
    if await registry.lookup(db, body.new_owner) is None:
        raise InvalidStakeholderError(f"Transfer target is not registered: {body.new_owner}")

    previous_holder = product.current_holder
    product.current_holder = body.new_owner
    product.current_location = body.new_location

    await history.append_entry(
        db,
        product.id,
        from_holder=previous_holder,
        to_holder=body.new_owner,
        status=product.current_status,
        location=body.new_location,
        notes=body.notes,
    )

    logger.info("Product %d transferred %s → %s", product.id, previous_holder, body.new_owner)
    return product


# ── Mutation surface for sibling services ────────────────────

def note_verification(product: Product) -> None:
    """Count one more verification against a locked product."""
    product.total_verifications += 1


def force_recall(product: Product) -> None:
    """Put a locked product into RECALLED regardless of its current status."""
    product.current_status = S.RECALLED
    product.is_recalled = True


# ── Delegated permissions ────────────────────────────────────

async def _require_grant_authority(db: AsyncSession, caller: str, product_id: int) -> Product:
    product = await require_product(db, product_id)
    if caller != product.manufacturer and not registry.is_registry_owner(caller):
        raise NotAuthorizedError(
            "Only the manufacturer or registry owner can manage product permissions"
        )
    return product


async def grant_permission(
    db: AsyncSession,
    caller: str,
    product_id: int,
    body: PermissionGrant,
) -> ProductPermission:
    """Create or replace a delegated permission on a product."""
    await _require_grant_authority(db, caller, product_id)
    if await registry.lookup(db, body.identity) is None:
        raise InvalidStakeholderError(f"Grantee is not registered: {body.identity}")

    permission = await get_permission(db, product_id, body.identity)
    if permission is None:
        permission = ProductPermission(product_id=product_id, identity=body.identity)
        db.add(permission)
    permission.can_update = body.can_update
    permission.granted_by = caller
    permission.granted_at = ledger_clock.tick()
    await db.flush()

    logger.info(
        "Product %d: %s granted can_update=%s to %s",
        product_id, caller, body.can_update, body.identity,
    )
    return permission


async def revoke_permission(
    db: AsyncSession,
    caller: str,
    product_id: int,
    identity: str,
) -> None:
    await _require_grant_authority(db, caller, product_id)

    permission = await get_permission(db, product_id, identity)
    if permission is None:
        raise NotFoundError("Permission", f"{product_id}/{identity}")
    await db.delete(permission)
    await db.flush()

    logger.info("Product %d: permission for %s revoked by %s", product_id, identity, caller)
