"""Verification & monitoring router.

Endpoints:
    POST   /api/products/{product_id}/verifications   Add a verification
    GET    /api/products/{product_id}/verifications   Verification ids, in order
    GET    /api/verifications/{verification_id}       Single verification
    POST   /api/products/{product_id}/temperature     Record a temperature reading
    GET    /api/products/{product_id}/alert           Current alert slot
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from trackchain.auth.deps import get_caller
from trackchain.database import get_db
from trackchain.middleware.exceptions import NotFoundError
from trackchain.schemas.common import IdResponse
from trackchain.schemas.verification import (
    AlertOut,
    ProductVerificationsOut,
    TemperatureLogOut,
    TemperatureReading,
    VerificationCreate,
    VerificationOut,
)
from trackchain.services import lifecycle, monitoring, verification
from trackchain.utils.cache import mark_product_stale

router = APIRouter()


# ── Verifications ────────────────────────────────────────────

@router.post(
    "/products/{product_id}/verifications",
    response_model=IdResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_verification(
    product_id: int,
    body: VerificationCreate,
    db: AsyncSession = Depends(get_db),
    caller: str = Depends(get_caller),
):
    record = await verification.add_verification(db, caller, product_id, body)
    mark_product_stale(db, product_id)
    return IdResponse(id=record.id)


@router.get("/products/{product_id}/verifications", response_model=ProductVerificationsOut)
async def list_product_verifications(
    product_id: int,
    db: AsyncSession = Depends(get_db),
):
    await lifecycle.require_product(db, product_id, for_update=False)
    ids = await verification.list_verification_ids(db, product_id)
    return ProductVerificationsOut(product_id=product_id, verification_ids=ids)


@router.get("/verifications/{verification_id}", response_model=VerificationOut)
async def get_verification(
    verification_id: int,
    db: AsyncSession = Depends(get_db),
):
    record = await verification.get_verification(db, verification_id)
    if record is None:
        raise NotFoundError("Verification", verification_id)
    return VerificationOut.model_validate(record)


# ── Temperature monitoring ───────────────────────────────────

@router.post("/products/{product_id}/temperature", response_model=TemperatureLogOut)
async def record_temperature(
    product_id: int,
    body: TemperatureReading,
    db: AsyncSession = Depends(get_db),
    caller: str = Depends(get_caller),
):
    log, _alert_raised = await monitoring.record_temperature(db, caller, product_id, body)
    return TemperatureLogOut.model_validate(log)


@router.get("/products/{product_id}/alert", response_model=AlertOut)
async def get_alert(
    product_id: int,
    db: AsyncSession = Depends(get_db),
):
    alert = await monitoring.get_active_alert(db, product_id)
    if alert is None:
        raise NotFoundError("Alert for product", product_id)
    return AlertOut.model_validate(alert)
