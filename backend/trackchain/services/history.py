"""Provenance history log.

Append-only, per-product, densely numbered event log.  ``append_entry`` is
called by the lifecycle and recall services only; nothing in the code base
updates or deletes a ``ProductHistory`` row.

Every entry is sealed with a SHA-256 hash over its own content and the
hash of the entry before it, so ``verify_chain`` can detect an edited,
dropped or reordered entry.  Replaying entries 1..N in order rebuilds
the product's current status, location and holder.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from trackchain.models.product import ProductStatus
from trackchain.models.product_history import ProductHistory, ProductSequenceCounter
from trackchain.utils.clock import ledger_clock

GENESIS_HASH = "0" * 64


# ── Hashing ──────────────────────────────────────────────────

def compute_entry_hash(entry: ProductHistory) -> str:
    payload = {
        "product_id": entry.product_id,
        "sequence": entry.sequence,
        "from_holder": entry.from_holder,
        "to_holder": entry.to_holder,
        "status": int(entry.status),
        "location": entry.location,
        "timestamp": entry.timestamp,
        "temperature": entry.temperature,
        "humidity": entry.humidity,
        "notes": entry.notes,
        "transaction_hash": entry.transaction_hash,
        "verification_required": bool(entry.verification_required),
        "previous_hash": entry.previous_hash,
    }
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


# ── Sequence counter ─────────────────────────────────────────

async def init_sequence(db: AsyncSession, product_id: int) -> None:
    """Start a new product's history at sequence 1."""
    db.add(ProductSequenceCounter(product_id=product_id, next_sequence=1))
    await db.flush()


async def next_sequence(db: AsyncSession, product_id: int) -> int:
    """Sequence the next entry of this product will receive (1 if none)."""
    value = await db.scalar(
        select(ProductSequenceCounter.next_sequence).where(
            ProductSequenceCounter.product_id == product_id
        )
    )
    return value or 1


# ── Append / read ────────────────────────────────────────────

async def append_entry(
    db: AsyncSession,
    product_id: int,
    *,
    from_holder: str,
    to_holder: str,
    status: ProductStatus,
    location: str | None,
    temperature: float | None = None,
    humidity: float | None = None,
    notes: str | None = None,
    transaction_hash: str | None = None,
    verification_required: bool = False,
) -> ProductHistory:
    """Write the next history entry for ``product_id`` and advance its counter."""
    counter = (
        await db.execute(
            select(ProductSequenceCounter)
            .where(ProductSequenceCounter.product_id == product_id)
            .with_for_update()
        )
    ).scalar_one_or_none()
    if counter is None:
        counter = ProductSequenceCounter(product_id=product_id, next_sequence=1)
        db.add(counter)

    sequence = counter.next_sequence
    if sequence == 1:
        previous_hash = GENESIS_HASH
    else:
        previous = await get_entry(db, product_id, sequence - 1)
        previous_hash = previous.entry_hash

    entry = ProductHistory(
        product_id=product_id,
        sequence=sequence,
        from_holder=from_holder,
        to_holder=to_holder,
        status=status,
        location=location,
        timestamp=ledger_clock.tick(),
        temperature=temperature,
        humidity=humidity,
        notes=notes,
        transaction_hash=transaction_hash,
        verification_required=verification_required,
        previous_hash=previous_hash,
    )
    entry.entry_hash = compute_entry_hash(entry)
    db.add(entry)

    counter.next_sequence = sequence + 1
    await db.flush()
    return entry


async def get_entry(
    db: AsyncSession,
    product_id: int,
    sequence: int,
) -> ProductHistory | None:
    return (
        await db.execute(
            select(ProductHistory).where(
                ProductHistory.product_id == product_id,
                ProductHistory.sequence == sequence,
            )
        )
    ).scalar_one_or_none()


async def list_entries(db: AsyncSession, product_id: int) -> list[ProductHistory]:
    result = await db.execute(
        select(ProductHistory)
        .where(ProductHistory.product_id == product_id)
        .order_by(ProductHistory.sequence.asc())
    )
    return list(result.scalars().all())


# ── Replay / verification ────────────────────────────────────

@dataclass
class ReplayedState:
    """Product state rebuilt purely from its history entries."""
    status: ProductStatus | None = None
    location: str | None = None
    holder: str | None = None
    entry_count: int = 0
    sequences: list[int] = field(default_factory=list)


def fold_entries(entries: list[ProductHistory]) -> ReplayedState:
    state = ReplayedState()
    for entry in entries:
        state.status = entry.status
        state.location = entry.location
        state.holder = entry.to_holder
        state.entry_count += 1
        state.sequences.append(entry.sequence)
    return state


async def replay(db: AsyncSession, product_id: int) -> ReplayedState:
    return fold_entries(await list_entries(db, product_id))


def chain_is_valid(entries: list[ProductHistory]) -> bool:
    """True when entries are numbered 1..N and every hash link holds."""
    expected_previous = GENESIS_HASH
    for expected_sequence, entry in enumerate(entries, start=1):
        if entry.sequence != expected_sequence:
            return False
        if entry.previous_hash != expected_previous:
            return False
        if compute_entry_hash(entry) != entry.entry_hash:
            return False
        expected_previous = entry.entry_hash
    return True


async def verify_chain(db: AsyncSession, product_id: int) -> bool:
    return chain_is_valid(await list_entries(db, product_id))
