"""ProductRecall — the recall record of a product.

At most one row per product; recalling a product again overwrites it.
"""

from sqlalchemy import BigInteger, Boolean, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from trackchain.database import Base


class ProductRecall(Base):
    __tablename__ = "product_recalls"

    product_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("products.id"), primary_key=True
    )
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    recall_date: Mapped[int] = mapped_column(BigInteger, nullable=False)
    # [batch_id, ...]
    affected_batches: Mapped[list] = mapped_column(JSON, default=list)
    severity: Mapped[int] = mapped_column(Integer, nullable=False)
    initiator: Mapped[str] = mapped_column(String(128), nullable=False)

    # ACTIVE | CLOSED
    status: Mapped[str] = mapped_column(String(20), default="ACTIVE")
    consumer_notification: Mapped[bool] = mapped_column(Boolean, default=True)
