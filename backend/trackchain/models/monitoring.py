"""Environmental monitoring records: temperature readings and alerts.

TemperatureLog rows are keyed by the product's *next* history sequence at
the time of the reading, so a reading belongs to the custody interval
that starts with the following history entry.  Two readings inside the
same interval share a key; the later one replaces the earlier.

ProductAlert holds a single alert slot per product.  A new out-of-range
reading overwrites the slot rather than adding a row.
"""

from sqlalchemy import BigInteger, Boolean, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from trackchain.database import Base


class TemperatureLog(Base):
    __tablename__ = "temperature_logs"

    product_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("products.id"), primary_key=True
    )
    sequence: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)

    temperature: Mapped[float] = mapped_column(Float, nullable=False)
    humidity: Mapped[float | None] = mapped_column(Float)
    location: Mapped[str | None] = mapped_column(String(255))

    # Acceptable range declared by the recorder
    min_temp: Mapped[float] = mapped_column(Float, nullable=False)
    max_temp: Mapped[float] = mapped_column(Float, nullable=False)
    is_within_range: Mapped[bool] = mapped_column(Boolean, nullable=False)

    recorder: Mapped[str] = mapped_column(String(128), nullable=False)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)


class ProductAlert(Base):
    __tablename__ = "product_alerts"

    product_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("products.id"), primary_key=True
    )

    # TEMPERATURE_ALERT
    alert_type: Mapped[str] = mapped_column(String(50), nullable=False)
    # 1 (info) … 5 (critical)
    severity: Mapped[int] = mapped_column(Integer, nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)

    is_resolved: Mapped[bool] = mapped_column(Boolean, default=False)
    resolver: Mapped[str | None] = mapped_column(String(128))
