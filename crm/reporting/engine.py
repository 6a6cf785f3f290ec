"""
Aggregation Engine

Computes the dashboard statistics from the product, category and customer
catalogs and the purchase ledger. Every call fetches a fresh snapshot from
the injected data source and recomputes from scratch; the engine holds no
state besides the data source handle.
"""

import asyncio
from dataclasses import dataclass
from decimal import Decimal
from typing import List

import structlog

from . import aggregations
from .aggregations import CategorySales, ProductRevenue, ProductSales
from .sources import ReportingDataSource

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class DashboardSummary:
    """All dashboard metrics computed from one request"""
    total_products: int
    total_customers: int
    total_revenue: Decimal
    products_sold: int
    revenue_per_customer: Decimal
    average_products_per_customer: Decimal
    top_products: List[ProductSales]
    top_categories: List[CategorySales]

    @property
    def categories_with_sales(self) -> int:
        return len(self.top_categories)


class AggregationEngine:
    """
    Stateless reporting engine.

    Independent operations may be awaited concurrently; they share nothing
    but the read-only data source. A failed fetch raises
    DataSourceUnavailable for that operation only.

    Example:
        engine = AggregationEngine(SqlAlchemyDataSource(session_factory))
        revenue = await engine.total_revenue()
        best = await engine.top_products_by_sales(5)
    """

    def __init__(self, source: ReportingDataSource):
        self.source = source

    async def count_products(self) -> int:
        return len(await self.source.fetch_all_products())

    async def count_customers(self) -> int:
        return len(await self.source.fetch_all_customers())

    async def total_revenue(self) -> Decimal:
        activities = await self.source.fetch_all_purchase_activities()
        return aggregations.total_revenue(activities)

    async def products_sold(self) -> int:
        activities = await self.source.fetch_all_purchase_activities()
        return aggregations.purchase_count(activities)

    async def top_products_by_sales(self, limit: int) -> List[ProductSales]:
        activities = await self.source.fetch_all_purchase_activities()
        return aggregations.top_products_by_sales(activities, limit)

    async def top_categories_by_sales(self, limit: int) -> List[CategorySales]:
        activities, categories, products = await asyncio.gather(
            self.source.fetch_all_purchase_activities(),
            self.source.fetch_all_categories(),
            self.source.fetch_all_products(),
        )
        return aggregations.top_categories_by_sales(activities, categories, products, limit)

    async def revenue_per_customer(self) -> Decimal:
        revenue, customers = await asyncio.gather(
            self.total_revenue(),
            self.count_customers(),
        )
        return aggregations.safe_ratio(revenue, customers)

    async def average_products_per_customer(self) -> Decimal:
        sold, customers = await asyncio.gather(
            self.products_sold(),
            self.count_customers(),
        )
        return aggregations.safe_ratio(sold, customers)

    async def revenue_by_product(self) -> List[ProductRevenue]:
        activities = await self.source.fetch_all_purchase_activities()
        return aggregations.revenue_by_product(activities)

    async def dashboard_summary(self, limit: int = 5) -> DashboardSummary:
        """
        Compute every dashboard metric from a single snapshot.

        The four collections are fetched concurrently once, then each metric
        is derived from the same data so the numbers agree with each other.
        """
        products, categories, customers, activities = await asyncio.gather(
            self.source.fetch_all_products(),
            self.source.fetch_all_categories(),
            self.source.fetch_all_customers(),
            self.source.fetch_all_purchase_activities(),
        )

        revenue = aggregations.total_revenue(activities)
        sold = aggregations.purchase_count(activities)

        summary = DashboardSummary(
            total_products=len(products),
            total_customers=len(customers),
            total_revenue=revenue,
            products_sold=sold,
            revenue_per_customer=aggregations.safe_ratio(revenue, len(customers)),
            average_products_per_customer=aggregations.safe_ratio(sold, len(customers)),
            top_products=aggregations.top_products_by_sales(activities, limit),
            top_categories=aggregations.top_categories_by_sales(
                activities, categories, products, limit
            ),
        )

        logger.info(
            "Dashboard summary computed",
            products=summary.total_products,
            customers=summary.total_customers,
            purchases=sold,
            revenue=str(revenue),
        )
        return summary
