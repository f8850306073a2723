"""ProductHistory — the append-only provenance log.

One row per status change, custody transfer, creation or recall, keyed by
(product_id, sequence).  Sequences start at 1 and grow by exactly one per
product; rows are never updated or deleted.  Each row carries the hash of
its predecessor so the per-product chain can be re-verified at any time.

The next sequence for a product lives in ``product_sequence_counters`` and
is locked for the duration of an append.
"""

from sqlalchemy import BigInteger, Boolean, Enum as SAEnum, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from trackchain.database import Base
from trackchain.models.product import ProductStatus


class ProductHistory(Base):
    __tablename__ = "product_history"

    product_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("products.id"), primary_key=True
    )
    sequence: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)

    # ── Custody ──────────────────────────────────────────────
    from_holder: Mapped[str] = mapped_column(String(128), nullable=False)
    to_holder: Mapped[str] = mapped_column(String(128), nullable=False)
    status: Mapped[ProductStatus] = mapped_column(SAEnum(ProductStatus), nullable=False)
    location: Mapped[str | None] = mapped_column(String(255))
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)

    # ── Environment at the time of the event ─────────────────
    temperature: Mapped[float | None] = mapped_column(Float)
    humidity: Mapped[float | None] = mapped_column(Float)

    notes: Mapped[str | None] = mapped_column(Text)
    transaction_hash: Mapped[str | None] = mapped_column(String(128))
    verification_required: Mapped[bool] = mapped_column(Boolean, default=False)

    # ── Hash chain ───────────────────────────────────────────
    # SHA-256 hex; the first entry of a product chains from 64 zeros
    previous_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    entry_hash: Mapped[str] = mapped_column(String(64), nullable=False)


class ProductSequenceCounter(Base):
    __tablename__ = "product_sequence_counters"

    product_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("products.id"), primary_key=True
    )
    next_sequence: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
