"""Verification — a quality or authenticity attestation about a product.

Immutable once written.  A product's verification list is its
verifications ordered by id, which is the order they were recorded in.
"""

import enum

from sqlalchemy import BigInteger, Boolean, Enum as SAEnum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from trackchain.database import Base


class VerificationType(enum.IntEnum):
    QUALITY = 1
    AUTHENTICITY = 2
    TEMPERATURE = 3
    QUANTITY = 4
    CERTIFICATION = 5


class Verification(Base):
    __tablename__ = "verifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    product_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("products.id"), nullable=False, index=True
    )
    verifier: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    verification_type: Mapped[VerificationType] = mapped_column(
        SAEnum(VerificationType), nullable=False
    )
    result: Mapped[bool] = mapped_column(Boolean, nullable=False)
    data: Mapped[str | None] = mapped_column(Text)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    expiry_time: Mapped[int | None] = mapped_column(BigInteger)
    certificate_hash: Mapped[str | None] = mapped_column(String(128))
    notes: Mapped[str | None] = mapped_column(Text)
