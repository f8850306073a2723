"""Stakeholder registry service.

Registration is self-service: the caller registers its own identity with
a role that can never change afterwards.  Verification is reserved for
the registry owner configured in ``settings.registry_owner``.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from trackchain.config import settings
from trackchain.middleware.exceptions import (
    AlreadyExistsError,
    InvalidStakeholderError,
    NotAuthorizedError,
    NotFoundError,
)
from trackchain.models.stakeholder import Stakeholder, StakeholderRole
from trackchain.schemas.stakeholder import StakeholderRegister
from trackchain.utils.clock import ledger_clock

logger = logging.getLogger(__name__)


def is_registry_owner(identity: str) -> bool:
    return identity == settings.registry_owner


async def lookup(
    db: AsyncSession,
    identity: str,
    *,
    for_update: bool = False,
) -> Stakeholder | None:
    stmt = select(Stakeholder).where(Stakeholder.identity == identity)
    if for_update:
        stmt = stmt.with_for_update()
    return (await db.execute(stmt)).scalar_one_or_none()


async def register_stakeholder(
    db: AsyncSession,
    identity: str,
    body: StakeholderRegister,
) -> Stakeholder:
    """Register ``identity`` as an unverified, active stakeholder.

    Raises:
        InvalidStakeholderError if the role code is not one of the seven roles.
        AlreadyExistsError if the identity is already registered.
    """
    try:
        role = StakeholderRole(body.role)
    except ValueError:
        raise InvalidStakeholderError(f"Unknown stakeholder role: {body.role}")

    if await lookup(db, identity) is not None:
        raise AlreadyExistsError(f"Stakeholder already registered: {identity}")

    stakeholder = Stakeholder(
        identity=identity,
        role=role,
        company_name=body.company_name,
        contact_info=body.contact_info,
        certifications=body.certifications,
        is_verified=False,
        is_active=True,
        verification_count=0,
        registration_time=ledger_clock.tick(),
    )
    db.add(stakeholder)
    await db.flush()

    logger.info("Registered stakeholder %s as %s", identity, role.name)
    return stakeholder


async def verify_stakeholder(
    db: AsyncSession,
    caller: str,
    target: str,
) -> Stakeholder:
    """Mark ``target`` as verified.  Only the registry owner may do this."""
    if not is_registry_owner(caller):
        raise NotAuthorizedError("Only the registry owner can verify stakeholders")

    stakeholder = await lookup(db, target, for_update=True)
    if stakeholder is None:
        raise NotFoundError("Stakeholder", target)

    stakeholder.is_verified = True
    await db.flush()

    logger.info("Stakeholder %s verified by registry owner", target)
    return stakeholder
