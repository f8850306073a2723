"""Pydantic schemas for the batch ledger."""

from pydantic import BaseModel, Field


class BatchCreate(BaseModel):
    batch_number: str = Field(..., min_length=1, max_length=100)
    total_quantity: int = Field(..., ge=0)

    # Optional production metadata
    quality_grade: str | None = None
    production_location: str | None = None
    raw_materials: list[str] | None = None
    certifications: list[str] | None = None


class BatchOut(BaseModel):
    id: int
    batch_number: str
    manufacturer: str
    production_date: int
    total_quantity: int
    remaining_quantity: int
    quality_grade: str | None
    production_location: str | None
    raw_materials: list[str] | None
    certifications: list[str] | None
    is_active: bool

    model_config = {"from_attributes": True}
