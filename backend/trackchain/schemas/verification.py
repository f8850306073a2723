"""Pydantic schemas for verifications, temperature readings and alerts."""

from pydantic import BaseModel, model_validator

from trackchain.models.verification import VerificationType


# ── Verifications ────────────────────────────────────────────

class VerificationCreate(BaseModel):
    verification_type: VerificationType
    result: bool
    data: str | None = None
    expiry_time: int | None = None
    certificate_hash: str | None = None
    notes: str | None = None


class VerificationOut(BaseModel):
    id: int
    product_id: int
    verifier: str
    verification_type: VerificationType
    result: bool
    data: str | None
    timestamp: int
    expiry_time: int | None
    certificate_hash: str | None
    notes: str | None

    model_config = {"from_attributes": True}


class ProductVerificationsOut(BaseModel):
    product_id: int
    verification_ids: list[int]


# ── Temperature monitoring ───────────────────────────────────

class TemperatureReading(BaseModel):
    temperature: float
    humidity: float | None = None
    location: str | None = None
    min_temp: float
    max_temp: float

    @model_validator(mode="after")
    def range_is_ordered(self):
        if self.min_temp > self.max_temp:
            raise ValueError("min_temp must not exceed max_temp")
        return self


class TemperatureLogOut(BaseModel):
    product_id: int
    sequence: int
    temperature: float
    humidity: float | None
    location: str | None
    min_temp: float
    max_temp: float
    is_within_range: bool
    recorder: str
    timestamp: int

    model_config = {"from_attributes": True}


class AlertOut(BaseModel):
    product_id: int
    alert_type: str
    severity: int
    message: str
    timestamp: int
    is_resolved: bool
    resolver: str | None

    model_config = {"from_attributes": True}
