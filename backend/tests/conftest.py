"""Pytest configuration and fixtures for TrackChain tests.

Provides an in-memory SQLite ledger, an HTTP client wired to it, bearer
tokens for arbitrary identities and a small cast of registered
stakeholders with a batch and a product.
"""

import os

os.environ.setdefault("CACHE_ENABLED", "false")
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from trackchain.auth.jwt import create_access_token
from trackchain.config import settings
from trackchain.database import Base, get_db, unit_of_work
from trackchain.main import app
from trackchain.models import Batch, Product, StakeholderRole
from trackchain.schemas.batch import BatchCreate
from trackchain.schemas.product import ProductCreate
from trackchain.schemas.stakeholder import StakeholderRegister
from trackchain.services import batches, lifecycle, registry

MANUFACTURER = "SP-ACME-FOODS"
DISTRIBUTOR = "SP-NORTHWIND-DIST"
RETAILER = "SP-CORNER-GROCER"
VERIFIER = "SP-QA-LABS"
CONSUMER = "SP-JANE-DOE"
STRANGER = "SP-UNREGISTERED"
REGISTRY_OWNER = settings.registry_owner


# ── Test Database Setup ──────────────────────────────────────────

@pytest_asyncio.fixture
async def test_engine():
    """Fresh in-memory ledger per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def client(db_session) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client with the database dependency pointed at the test session.

    Requests run inside the same unit of work as ``get_db``, so each one
    commits on success and rolls back on error.
    """

    async def override_get_db():
        async with unit_of_work(db_session):
            yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ── Auth ─────────────────────────────────────────────────────────

@pytest.fixture
def auth_headers_for():
    """Build bearer headers for any identity."""

    def _headers(identity: str) -> dict:
        return {"Authorization": f"Bearer {create_access_token(identity)}"}

    return _headers


# ── Ledger Data Fixtures ─────────────────────────────────────────

@pytest_asyncio.fixture
async def stakeholders(db_session: AsyncSession) -> dict:
    """Register one stakeholder per role used in the tests."""
    cast = {
        MANUFACTURER: (StakeholderRole.MANUFACTURER, "Acme Foods"),
        DISTRIBUTOR: (StakeholderRole.DISTRIBUTOR, "Northwind Distribution"),
        RETAILER: (StakeholderRole.RETAILER, "Corner Grocer"),
        VERIFIER: (StakeholderRole.VERIFIER, "QA Labs"),
        CONSUMER: (StakeholderRole.CONSUMER, "Jane Doe"),
    }
    registered = {}
    for identity, (role, company) in cast.items():
        registered[identity] = await registry.register_stakeholder(
            db_session,
            identity,
            StakeholderRegister(role=int(role), company_name=company),
        )
    await db_session.commit()
    return registered


@pytest_asyncio.fixture
async def batch(db_session: AsyncSession, stakeholders) -> Batch:
    created = await batches.create_batch(
        db_session,
        MANUFACTURER,
        BatchCreate(batch_number="LOT-2026-001", total_quantity=3, quality_grade="A"),
    )
    await db_session.commit()
    return created


@pytest_asyncio.fixture
async def product(db_session: AsyncSession, batch: Batch) -> Product:
    created = await lifecycle.create_product(
        db_session,
        MANUFACTURER,
        ProductCreate(
            batch_id=batch.id,
            name="Organic Apples 1kg",
            initial_location="Acme Plant, Yakima",
            category="produce",
            origin_country="US",
        ),
    )
    await db_session.commit()
    return created


# ── Test Markers ─────────────────────────────────────────────────

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "api: API endpoint tests")
    config.addinivalue_line("markers", "cache: Cache behaviour tests")
    config.addinivalue_line("markers", "slow: Slow tests")
