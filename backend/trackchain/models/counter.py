"""LedgerCounter — persisted sequential id allocators.

One row per counter name (``product``, ``batch``, ``verification``).  The
row is locked while an id is taken so ids are dense and never reused.
"""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from trackchain.database import Base


class LedgerCounter(Base):
    __tablename__ = "ledger_counters"

    name: Mapped[str] = mapped_column(String(50), primary_key=True)
    next_value: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
