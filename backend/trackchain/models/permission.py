"""ProductPermission — delegated update rights on a single product.

A grant lets a stakeholder who is neither the manufacturer nor the
current holder record status changes and temperature readings.
"""

from sqlalchemy import BigInteger, Boolean, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from trackchain.database import Base


class ProductPermission(Base):
    __tablename__ = "product_permissions"

    product_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("products.id"), primary_key=True
    )
    identity: Mapped[str] = mapped_column(String(128), primary_key=True)

    can_update: Mapped[bool] = mapped_column(Boolean, default=True)
    granted_by: Mapped[str] = mapped_column(String(128), nullable=False)
    granted_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
