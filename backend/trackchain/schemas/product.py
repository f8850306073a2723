"""Pydantic schemas for products, lifecycle events and provenance history."""

from pydantic import BaseModel, Field

from trackchain.models.product import ProductStatus


# ── Create ───────────────────────────────────────────────────

class ProductCreate(BaseModel):
    batch_id: int
    name: str = Field(..., min_length=1, max_length=255)
    initial_location: str | None = None

    # Optional creation facts
    category: str | None = None
    expiry_date: int | None = None
    origin_country: str | None = None
    description: str | None = None
    base_price: float | None = Field(None, ge=0)


# ── Lifecycle events ─────────────────────────────────────────

class StatusUpdate(BaseModel):
    """Payload for POST /api/products/{id}/status.

    ``new_status`` is the numeric status code.  Unknown codes and illegal
    moves are both rejected with INVALID_TRANSITION.
    """
    new_status: int
    new_location: str | None = None
    new_holder: str
    temperature: float | None = None
    humidity: float | None = None
    notes: str | None = None


class TransferRequest(BaseModel):
    new_owner: str
    new_location: str | None = None
    notes: str | None = None


class PermissionGrant(BaseModel):
    identity: str
    can_update: bool = True


class PermissionOut(BaseModel):
    product_id: int
    identity: str
    can_update: bool
    granted_by: str
    granted_at: int

    model_config = {"from_attributes": True}


# ── Response ─────────────────────────────────────────────────

class ProductOut(BaseModel):
    id: int
    name: str
    category: str | None
    batch_id: int
    manufacturer: str
    origin_country: str | None
    description: str | None
    base_price: float | None
    expiry_date: int | None
    creation_time: int
    current_status: ProductStatus
    current_location: str | None
    current_holder: str
    is_recalled: bool
    total_verifications: int

    model_config = {"from_attributes": True}


class HistoryEntryOut(BaseModel):
    product_id: int
    sequence: int
    from_holder: str
    to_holder: str
    status: ProductStatus
    location: str | None
    timestamp: int
    temperature: float | None = None
    humidity: float | None = None
    notes: str | None = None
    transaction_hash: str | None = None
    verification_required: bool
    previous_hash: str
    entry_hash: str

    model_config = {"from_attributes": True}


class ProductHistoryOut(BaseModel):
    product_id: int
    entries: list[HistoryEntryOut]
    chain_valid: bool


# ── Read-only views ──────────────────────────────────────────

class AuthenticityOut(BaseModel):
    exists: bool
    manufacturer: str | None = None
    batch_id: int = 0
    status: int = 0
    is_recalled: bool = False
    verification_count: int = 0
    authenticity_score: int = 0


class SupplyChainSummary(BaseModel):
    product_id: int
    current_status: int = 0
    current_location: str = ""
    current_holder: str | None = None
    manufacturer: str | None = None
    creation_time: int = 0
    total_verifications: int = 0
    is_recalled: bool = False
