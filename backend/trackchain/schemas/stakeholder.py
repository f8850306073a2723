"""Pydantic schemas for the stakeholder registry."""

from pydantic import BaseModel, Field

from trackchain.models.stakeholder import StakeholderRole


class StakeholderRegister(BaseModel):
    """Payload for POST /api/stakeholders — the caller registers itself.

    ``role`` is the numeric role code (1 = manufacturer … 7 = logistics).
    Codes outside that range are rejected by the registry with
    INVALID_STAKEHOLDER rather than by schema validation.
    """
    role: int
    company_name: str = Field(..., min_length=1, max_length=255)
    contact_info: str | None = None
    certifications: list[str] | None = None


class StakeholderOut(BaseModel):
    identity: str
    role: StakeholderRole
    company_name: str
    contact_info: str | None
    certifications: list[str] | None
    is_verified: bool
    is_active: bool
    verification_count: int
    registration_time: int

    model_config = {"from_attributes": True}
