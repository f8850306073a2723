"""Product router — lifecycle events, provenance history and recalls.

Endpoints:
    POST   /api/products/                               Create product from a batch
    GET    /api/products/{product_id}                   Product detail
    POST   /api/products/{product_id}/status            Status / location / holder change
    POST   /api/products/{product_id}/transfer          Custody transfer
    GET    /api/products/{product_id}/history           Full provenance history
    GET    /api/products/{product_id}/history/{seq}     Single history entry
    GET    /api/products/{product_id}/authenticity      Authenticity check (public)
    GET    /api/products/{product_id}/summary           Supply-chain summary (public)
    GET    /api/products/{product_id}/qr                QR code SVG for authenticity lookup
    POST   /api/products/{product_id}/permissions       Grant delegated update rights
    DELETE /api/products/{product_id}/permissions/{id}  Revoke delegated update rights
    POST   /api/products/{product_id}/recall            Initiate a recall
    GET    /api/products/{product_id}/recall            Current recall record
"""

import io
import json

import segno
from fastapi import APIRouter, Depends, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from trackchain.auth.deps import get_caller
from trackchain.database import get_db
from trackchain.middleware.exceptions import NotFoundError
from trackchain.schemas.common import IdResponse, OperationResult
from trackchain.schemas.product import (
    AuthenticityOut,
    HistoryEntryOut,
    PermissionGrant,
    PermissionOut,
    ProductCreate,
    ProductHistoryOut,
    ProductOut,
    StatusUpdate,
    SupplyChainSummary,
    TransferRequest,
)
from trackchain.schemas.recall import RecallCreate, RecallOut
from trackchain.services import history, lifecycle, queries, recall
from trackchain.utils.cache import cached, mark_product_stale

router = APIRouter()


# ── Create / read ────────────────────────────────────────────

@router.post("/", response_model=IdResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    body: ProductCreate,
    db: AsyncSession = Depends(get_db),
    caller: str = Depends(get_caller),
):
    """Issue a product against one of the caller's batches.

    Decrements the batch's remaining quantity and writes history entry 1.
    """
    product = await lifecycle.create_product(db, caller, body)
    mark_product_stale(db, product.id)
    return IdResponse(id=product.id)


@router.get("/{product_id}", response_model=ProductOut)
async def get_product(
    product_id: int,
    db: AsyncSession = Depends(get_db),
):
    product = await lifecycle.get_product(db, product_id)
    if product is None:
        raise NotFoundError("Product", product_id)
    return ProductOut.model_validate(product)


# ── Lifecycle events ─────────────────────────────────────────

@router.post("/{product_id}/status", response_model=ProductOut)
async def update_status(
    product_id: int,
    body: StatusUpdate,
    db: AsyncSession = Depends(get_db),
    caller: str = Depends(get_caller),
):
    product = await lifecycle.update_status(db, caller, product_id, body)
    mark_product_stale(db, product_id)
    return ProductOut.model_validate(product)


@router.post("/{product_id}/transfer", response_model=ProductOut)
async def transfer_product(
    product_id: int,
    body: TransferRequest,
    db: AsyncSession = Depends(get_db),
    caller: str = Depends(get_caller),
):
    product = await lifecycle.transfer_product(db, caller, product_id, body)
    mark_product_stale(db, product_id)
    return ProductOut.model_validate(product)


# ── Provenance history ───────────────────────────────────────

@router.get("/{product_id}/history", response_model=ProductHistoryOut)
async def get_history(
    product_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Return every history entry in sequence order plus a chain check."""
    await lifecycle.require_product(db, product_id, for_update=False)
    entries = await history.list_entries(db, product_id)
    return ProductHistoryOut(
        product_id=product_id,
        entries=[HistoryEntryOut.model_validate(e) for e in entries],
        chain_valid=history.chain_is_valid(entries),
    )


@router.get("/{product_id}/history/{sequence}", response_model=HistoryEntryOut)
async def get_history_entry(
    product_id: int,
    sequence: int,
    db: AsyncSession = Depends(get_db),
):
    entry = await history.get_entry(db, product_id, sequence)
    if entry is None:
        raise NotFoundError("History entry", f"{product_id}#{sequence}")
    return HistoryEntryOut.model_validate(entry)


# ── Public views ─────────────────────────────────────────────

@router.get("/{product_id}/authenticity", response_model=AuthenticityOut)
@cached(ttl=60, prefix="products")
async def verify_authenticity(
    product_id: int,
    db: AsyncSession = Depends(get_db),
):
    return await queries.verify_product_authenticity(db, product_id)


@router.get("/{product_id}/summary", response_model=SupplyChainSummary)
@cached(ttl=60, prefix="products")
async def get_summary(
    product_id: int,
    db: AsyncSession = Depends(get_db),
):
    return await queries.get_supply_chain_summary(db, product_id)


@router.get("/{product_id}/qr")
async def get_product_qr(
    product_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Return an SVG QR code pointing at the product's authenticity check."""
    product = await lifecycle.get_product(db, product_id)
    if product is None:
        raise NotFoundError("Product", product_id)

    qr_data = json.dumps({
        "product_id": product.id,
        "name": product.name,
        "batch_id": product.batch_id,
        "manufacturer": product.manufacturer,
        "verify": f"/api/products/{product.id}/authenticity",
    }, separators=(",", ":"))

    qr = segno.make(qr_data)
    buf = io.BytesIO()
    qr.save(buf, kind="svg", scale=4, dark="#1e3a8a")
    return Response(content=buf.getvalue(), media_type="image/svg+xml")


# ── Delegated permissions ────────────────────────────────────

@router.post(
    "/{product_id}/permissions",
    response_model=PermissionOut,
    status_code=status.HTTP_201_CREATED,
)
async def grant_permission(
    product_id: int,
    body: PermissionGrant,
    db: AsyncSession = Depends(get_db),
    caller: str = Depends(get_caller),
):
    permission = await lifecycle.grant_permission(db, caller, product_id, body)
    return PermissionOut.model_validate(permission)


@router.delete("/{product_id}/permissions/{identity}", response_model=OperationResult)
async def revoke_permission(
    product_id: int,
    identity: str,
    db: AsyncSession = Depends(get_db),
    caller: str = Depends(get_caller),
):
    await lifecycle.revoke_permission(db, caller, product_id, identity)
    return OperationResult()


# ── Recall ───────────────────────────────────────────────────

@router.post("/{product_id}/recall", response_model=RecallOut)
async def initiate_recall(
    product_id: int,
    body: RecallCreate,
    db: AsyncSession = Depends(get_db),
    caller: str = Depends(get_caller),
):
    record = await recall.initiate_recall(db, caller, product_id, body)
    mark_product_stale(db, product_id)
    return RecallOut.model_validate(record)


@router.get("/{product_id}/recall", response_model=RecallOut)
async def get_recall(
    product_id: int,
    db: AsyncSession = Depends(get_db),
):
    record = await recall.get_recall(db, product_id)
    if record is None:
        raise NotFoundError("Recall for product", product_id)
    return RecallOut.model_validate(record)
