"""Management CLI.

Usage:
    python -m trackchain.cli init-db                # Create counters for a fresh ledger
    python -m trackchain.cli issue-token <identity> # Mint a bearer token for an identity
"""

import sys

from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session

from trackchain.auth.jwt import create_access_token
from trackchain.config import settings
from trackchain.models.counter import LedgerCounter
from trackchain.utils.counters import ALL_COUNTERS


def init_db():
    """Insert the id counters that don't exist yet (tables come from Alembic)."""
    engine = create_engine(settings.database_url_sync)
    with Session(engine) as session:
        existing = set(session.scalars(select(LedgerCounter.name)))
        for name in ALL_COUNTERS:
            if name in existing:
                print(f"  {name}: exists")
                continue
            session.add(LedgerCounter(name=name, next_value=1))
            print(f"  {name}: created")
        session.commit()


def issue_token(identity: str):
    print(create_access_token(identity))


if __name__ == "__main__":
    cmd = sys.argv[1] if len(sys.argv) > 1 else ""
    if cmd == "init-db":
        init_db()
    elif cmd == "issue-token" and len(sys.argv) > 2:
        issue_token(sys.argv[2])
    else:
        print("Usage: python -m trackchain.cli [init-db|issue-token <identity>]")
