"""Batch router — production batches.

Endpoints:
    POST   /api/batches             Open a batch (manufacturers only)
    GET    /api/batches/{batch_id}  Batch detail with remaining quantity
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from trackchain.auth.deps import get_caller
from trackchain.database import get_db
from trackchain.middleware.exceptions import NotFoundError
from trackchain.schemas.batch import BatchCreate, BatchOut
from trackchain.schemas.common import IdResponse
from trackchain.services import batches

router = APIRouter()


@router.post("/", response_model=IdResponse, status_code=status.HTTP_201_CREATED)
async def create_batch(
    body: BatchCreate,
    db: AsyncSession = Depends(get_db),
    caller: str = Depends(get_caller),
):
    batch = await batches.create_batch(db, caller, body)
    return IdResponse(id=batch.id)


@router.get("/{batch_id}", response_model=BatchOut)
async def get_batch(
    batch_id: int,
    db: AsyncSession = Depends(get_db),
):
    batch = await batches.get_batch(db, batch_id)
    if batch is None:
        raise NotFoundError("Batch", batch_id)
    return BatchOut.model_validate(batch)
