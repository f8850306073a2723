"""Product — a single trackable unit.

Creation facts (name, batch, manufacturer, origin, expiry) never change.
The mutable state (status, location, holder, recall flag and the
verification rollup) is only written by the lifecycle service, and every
status or custody change is mirrored by an entry in ``product_history``.

Lifecycle:
    created → in_production → quality_check → packaged → in_transit
    in_transit ⇄ at_warehouse,  in_transit → at_retailer → sold
    any → recalled,  at_warehouse | at_retailer → expired
"""

import enum

from sqlalchemy import BigInteger, Boolean, Enum as SAEnum, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from trackchain.database import Base


class ProductStatus(enum.IntEnum):
    CREATED = 1
    IN_PRODUCTION = 2
    QUALITY_CHECK = 3
    PACKAGED = 4
    IN_TRANSIT = 5
    AT_WAREHOUSE = 6
    AT_RETAILER = 7
    SOLD = 8
    RECALLED = 9
    EXPIRED = 10


class Product(Base):
    __tablename__ = "products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)

    # ── Creation facts (immutable) ───────────────────────────
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str | None] = mapped_column(String(100))
    batch_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("batches.id"), nullable=False, index=True
    )
    manufacturer: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    origin_country: Mapped[str | None] = mapped_column(String(100))
    description: Mapped[str | None] = mapped_column(Text)
    base_price: Mapped[float | None] = mapped_column(Float)
    expiry_date: Mapped[int | None] = mapped_column(BigInteger)
    creation_time: Mapped[int] = mapped_column(BigInteger, nullable=False)

    # ── Current state ────────────────────────────────────────
    current_status: Mapped[ProductStatus] = mapped_column(
        SAEnum(ProductStatus), default=ProductStatus.CREATED, index=True
    )
    current_location: Mapped[str | None] = mapped_column(String(255))
    current_holder: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    is_recalled: Mapped[bool] = mapped_column(Boolean, default=False)

    # Rollup of verifications recorded against this product
    total_verifications: Mapped[int] = mapped_column(Integer, default=0)
