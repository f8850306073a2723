"""Stakeholder router — registry operations.

Endpoints:
    POST   /api/stakeholders                     Register the caller
    GET    /api/stakeholders/{identity}          Registry lookup
    POST   /api/stakeholders/{identity}/verify   Mark verified (registry owner)
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from trackchain.auth.deps import get_caller
from trackchain.database import get_db
from trackchain.middleware.exceptions import NotFoundError
from trackchain.schemas.stakeholder import StakeholderOut, StakeholderRegister
from trackchain.services import registry

router = APIRouter()


@router.post("/", response_model=StakeholderOut, status_code=status.HTTP_201_CREATED)
async def register_stakeholder(
    body: StakeholderRegister,
    db: AsyncSession = Depends(get_db),
    caller: str = Depends(get_caller),
):
    stakeholder = await registry.register_stakeholder(db, caller, body)
    return StakeholderOut.model_validate(stakeholder)


@router.get("/{identity}", response_model=StakeholderOut)
async def get_stakeholder(
    identity: str,
    db: AsyncSession = Depends(get_db),
):
    stakeholder = await registry.lookup(db, identity)
    if stakeholder is None:
        raise NotFoundError("Stakeholder", identity)
    return StakeholderOut.model_validate(stakeholder)


@router.post("/{identity}/verify", response_model=StakeholderOut)
async def verify_stakeholder(
    identity: str,
    db: AsyncSession = Depends(get_db),
    caller: str = Depends(get_caller),
):
    stakeholder = await registry.verify_stakeholder(db, caller, identity)
    return StakeholderOut.model_validate(stakeholder)
