"""
Reporting Data Sources

The aggregation engine reads its inputs through the ``ReportingDataSource``
protocol. Two implementations are provided:

- SqlAlchemyDataSource: reads the relational store, one session per fetch
- InMemoryDataSource: serves records held in memory (tests, demos)
"""

from typing import Any, Callable, Iterable, List, Optional, Protocol, TypeVar

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from crm.database.models import Activity, Category, Customer, Product
from .errors import DataSourceUnavailable
from .records import (
    ActivityRecord,
    ActivityType,
    CategoryRecord,
    CustomerRecord,
    ProductRecord,
    parse_activity,
    parse_category,
    parse_customer,
    parse_product,
)

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class ReportingDataSource(Protocol):
    """Read contract the aggregation engine depends on."""

    async def fetch_all_products(self) -> List[ProductRecord]: ...

    async def fetch_all_categories(self) -> List[CategoryRecord]: ...

    async def fetch_all_customers(self) -> List[CustomerRecord]: ...

    async def fetch_all_purchase_activities(self) -> List[ActivityRecord]: ...


def _parse_all(rows: Iterable[Any], parser: Callable[[Any], Optional[T]]) -> List[T]:
    """Parse rows, dropping the ones the parser rejects."""
    records = []
    for row in rows:
        record = parser(row)
        if record is not None:
            records.append(record)
    return records


class SqlAlchemyDataSource:
    """
    Data source backed by the SQLAlchemy models.

    Each fetch opens its own short-lived session, so the engine may run
    several fetches concurrently. Failures surface as DataSourceUnavailable.

    Example:
        source = SqlAlchemyDataSource(get_session_factory())
        engine = AggregationEngine(source)
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def _fetch(self, collection: str, statement) -> List[Any]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(statement)
                rows = list(result.scalars().all())
        except (SQLAlchemyError, OSError) as e:
            logger.error("Data source fetch failed", collection=collection, error=str(e))
            raise DataSourceUnavailable(collection, str(e)) from e

        logger.debug("Data source fetch completed", collection=collection, rows=len(rows))
        return rows

    async def fetch_all_products(self) -> List[ProductRecord]:
        rows = await self._fetch("products", select(Product))
        return _parse_all(rows, parse_product)

    async def fetch_all_categories(self) -> List[CategoryRecord]:
        rows = await self._fetch("categories", select(Category))
        return _parse_all(rows, parse_category)

    async def fetch_all_customers(self) -> List[CustomerRecord]:
        rows = await self._fetch("customers", select(Customer))
        return _parse_all(rows, parse_customer)

    async def fetch_all_purchase_activities(self) -> List[ActivityRecord]:
        # Ledger order is the scan order used for tie-breaking in rankings
        statement = (
            select(Activity)
            .where(Activity.type == ActivityType.PURCHASE.value)
            .order_by(Activity.date, Activity.created_at, Activity.id)
        )
        rows = await self._fetch("activities", statement)
        return _parse_all(rows, parse_activity)


class InMemoryDataSource:
    """
    Data source over in-memory records.

    Activities are returned unfiltered; the engine applies the purchase
    filter itself.
    """

    def __init__(
        self,
        products: Iterable[ProductRecord] = (),
        categories: Iterable[CategoryRecord] = (),
        customers: Iterable[CustomerRecord] = (),
        activities: Iterable[ActivityRecord] = (),
    ):
        self.products = list(products)
        self.categories = list(categories)
        self.customers = list(customers)
        self.activities = list(activities)

    async def fetch_all_products(self) -> List[ProductRecord]:
        return list(self.products)

    async def fetch_all_categories(self) -> List[CategoryRecord]:
        return list(self.categories)

    async def fetch_all_customers(self) -> List[CustomerRecord]:
        return list(self.customers)

    async def fetch_all_purchase_activities(self) -> List[ActivityRecord]:
        return list(self.activities)
