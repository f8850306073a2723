"""Stakeholder — a registered supply-chain participant.

Identity and role are fixed at registration.  ``is_verified`` can only be
flipped by the registry owner, and ``verification_count`` only grows as
the stakeholder issues verifications.
"""

import enum

from sqlalchemy import BigInteger, Boolean, Enum as SAEnum, Integer, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from trackchain.database import Base


class StakeholderRole(enum.IntEnum):
    MANUFACTURER = 1
    SUPPLIER = 2
    DISTRIBUTOR = 3
    RETAILER = 4
    CONSUMER = 5
    VERIFIER = 6
    LOGISTICS = 7


class Stakeholder(Base):
    __tablename__ = "stakeholders"

    identity: Mapped[str] = mapped_column(String(128), primary_key=True)
    role: Mapped[StakeholderRole] = mapped_column(SAEnum(StakeholderRole), nullable=False)

    # ── Profile ──────────────────────────────────────────────
    company_name: Mapped[str] = mapped_column(String(255), nullable=False)
    contact_info: Mapped[str | None] = mapped_column(Text)
    # ["ISO-9001", "HACCP", ...]
    certifications: Mapped[list | None] = mapped_column(JSON)

    # ── Status ───────────────────────────────────────────────
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    verification_count: Mapped[int] = mapped_column(Integer, default=0)

    registration_time: Mapped[int] = mapped_column(BigInteger, nullable=False)
