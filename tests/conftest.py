"""
Test Suite Configuration
"""
from datetime import datetime
from decimal import Decimal
from typing import AsyncGenerator, List

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine

from crm.config import Settings
from crm.database.connection import create_session_factory
from crm.database.models import Base
from crm.reporting import (
    ActivityRecord,
    ActivityType,
    CategoryRecord,
    CustomerRecord,
    ProductRecord,
)


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Create test settings"""
    return Settings(
        app_env="testing",
        debug=True,
    )


@pytest.fixture
async def test_engine(tmp_path):
    """Per-test SQLite file, so concurrent sessions get their own connections"""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'crm.db'}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return create_session_factory(test_engine)


@pytest.fixture
async def test_db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session"""
    async with session_factory() as session:
        yield session
        await session.rollback()


# =============================================================================
# RECORD FIXTURES
# =============================================================================

def make_activity(
    activity_id: str,
    product: ProductRecord,
    activity_type: ActivityType = ActivityType.PURCHASE,
    customer_id: str = "c1",
    day: int = 1,
) -> ActivityRecord:
    return ActivityRecord(
        id=activity_id,
        customer_id=customer_id,
        customer_name=f"Customer {customer_id}",
        product=product,
        date=datetime(2025, 1, day),
        type=activity_type,
    )


@pytest.fixture
def activity_factory():
    return make_activity


@pytest.fixture
def sample_categories() -> List[CategoryRecord]:
    return [
        CategoryRecord(id="cat-1", name="Electronics", color="#2563eb"),
        CategoryRecord(id="cat-2", name="Books", color="#7c3aed"),
    ]


@pytest.fixture
def sample_products() -> List[ProductRecord]:
    return [
        ProductRecord(id="p1", name="Wireless Mouse", price=Decimal("10"), category_id="cat-1"),
        ProductRecord(id="p2", name="Cookbook", price=Decimal("20"), category_id="cat-2"),
        ProductRecord(id="p3", name="Monitor", price=Decimal("150.50"), category_id="cat-1"),
    ]


@pytest.fixture
def sample_customers() -> List[CustomerRecord]:
    return [
        CustomerRecord(id="c1", name="John Doe", email="john@example.com"),
        CustomerRecord(id="c2", name="Jane Smith", email="jane@example.com"),
    ]


@pytest.fixture
def sample_activities(sample_products) -> List[ActivityRecord]:
    """P1 sold three times, P2 once: revenue 50"""
    p1, p2, _ = sample_products
    return [
        make_activity("a1", p1, customer_id="c1", day=1),
        make_activity("a2", p2, customer_id="c1", day=2),
        make_activity("a3", p1, customer_id="c2", day=3),
        make_activity("a4", p1, customer_id="c2", day=4),
    ]
