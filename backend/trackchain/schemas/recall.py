"""Pydantic schemas for product recalls."""

from pydantic import BaseModel, Field


class RecallCreate(BaseModel):
    reason: str = Field(..., min_length=1)
    affected_batches: list[int] = []
    severity: int = Field(..., ge=1)


class RecallOut(BaseModel):
    product_id: int
    reason: str
    recall_date: int
    affected_batches: list[int]
    severity: int
    initiator: str
    status: str
    consumer_notification: bool

    model_config = {"from_attributes": True}
