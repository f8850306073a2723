"""Batch — a manufacturer's production run.

Products are issued against a batch one unit at a time; each issue
decrements ``remaining_quantity`` by exactly one.  Nothing ever increments
it.
"""

from sqlalchemy import BigInteger, Boolean, CheckConstraint, Integer, JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from trackchain.database import Base


class Batch(Base):
    __tablename__ = "batches"
    __table_args__ = (
        CheckConstraint(
            "remaining_quantity >= 0 AND remaining_quantity <= total_quantity",
            name="ck_batches_remaining_within_total",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    batch_number: Mapped[str] = mapped_column(String(100), nullable=False)
    manufacturer: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    production_date: Mapped[int] = mapped_column(BigInteger, nullable=False)

    # ── Quantities ───────────────────────────────────────────
    total_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    remaining_quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    # ── Production metadata ──────────────────────────────────
    quality_grade: Mapped[str | None] = mapped_column(String(50))
    production_location: Mapped[str | None] = mapped_column(String(255))
    raw_materials: Mapped[list | None] = mapped_column(JSON)
    certifications: Mapped[list | None] = mapped_column(JSON)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
