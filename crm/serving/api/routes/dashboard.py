"""
Dashboard API Endpoints

Exposes the aggregation engine. Every request recomputes from the current
catalogs and ledger; ``/summary`` returns all metrics from one snapshot.
"""

from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from crm.config import get_settings
from crm.reporting import AggregationEngine, CategorySales, ProductRevenue, ProductSales
from crm.serving.api.dependencies import get_aggregation_engine

settings = get_settings()
router = APIRouter()


def limit_query():
    return Query(
        settings.reporting.default_top_limit,
        ge=1,
        le=settings.reporting.max_top_limit,
        description="Number of entries in the ranking",
    )


class CountResponse(BaseModel):
    count: int


class ValueResponse(BaseModel):
    value: Decimal


class ProductSalesOut(BaseModel):
    product_id: str
    name: str
    price: Optional[Decimal]
    category_id: Optional[str]
    sales_count: int

    @classmethod
    def from_sales(cls, sales: ProductSales) -> "ProductSalesOut":
        product = sales.product
        return cls(
            product_id=product.id,
            name=product.name,
            price=product.price,
            category_id=product.category_id,
            sales_count=sales.sales_count,
        )


class CategorySalesOut(BaseModel):
    category_id: str
    name: str
    color: Optional[str]
    sales_count: int

    @classmethod
    def from_sales(cls, sales: CategorySales) -> "CategorySalesOut":
        return cls(
            category_id=sales.category.id,
            name=sales.category.name,
            color=sales.category.color,
            sales_count=sales.sales_count,
        )


class ProductRevenueOut(BaseModel):
    product_id: str
    name: str
    revenue: Decimal

    @classmethod
    def from_revenue(cls, entry: ProductRevenue) -> "ProductRevenueOut":
        return cls(product_id=entry.product.id, name=entry.product.name, revenue=entry.revenue)


class DashboardSummaryOut(BaseModel):
    total_products: int
    total_customers: int
    total_revenue: Decimal
    products_sold: int
    revenue_per_customer: Decimal
    average_products_per_customer: Decimal
    categories_with_sales: int
    top_products: List[ProductSalesOut]
    top_categories: List[CategorySalesOut]


@router.get("/summary", response_model=DashboardSummaryOut)
async def get_dashboard_summary(
    limit: int = limit_query(),
    engine: AggregationEngine = Depends(get_aggregation_engine),
) -> DashboardSummaryOut:
    summary = await engine.dashboard_summary(limit)
    return DashboardSummaryOut(
        total_products=summary.total_products,
        total_customers=summary.total_customers,
        total_revenue=summary.total_revenue,
        products_sold=summary.products_sold,
        revenue_per_customer=summary.revenue_per_customer,
        average_products_per_customer=summary.average_products_per_customer,
        categories_with_sales=summary.categories_with_sales,
        top_products=[ProductSalesOut.from_sales(s) for s in summary.top_products],
        top_categories=[CategorySalesOut.from_sales(s) for s in summary.top_categories],
    )


@router.get("/products/count", response_model=CountResponse)
async def count_products(engine: AggregationEngine = Depends(get_aggregation_engine)) -> CountResponse:
    return CountResponse(count=await engine.count_products())


@router.get("/customers/count", response_model=CountResponse)
async def count_customers(engine: AggregationEngine = Depends(get_aggregation_engine)) -> CountResponse:
    return CountResponse(count=await engine.count_customers())


@router.get("/revenue", response_model=ValueResponse)
async def total_revenue(engine: AggregationEngine = Depends(get_aggregation_engine)) -> ValueResponse:
    """Sum of snapshot prices over all purchases."""
    return ValueResponse(value=await engine.total_revenue())


@router.get("/top-products", response_model=List[ProductSalesOut])
async def top_products(
    limit: int = limit_query(),
    engine: AggregationEngine = Depends(get_aggregation_engine),
) -> List[ProductSalesOut]:
    return [ProductSalesOut.from_sales(s) for s in await engine.top_products_by_sales(limit)]


@router.get("/top-categories", response_model=List[CategorySalesOut])
async def top_categories(
    limit: int = limit_query(),
    engine: AggregationEngine = Depends(get_aggregation_engine),
) -> List[CategorySalesOut]:
    return [CategorySalesOut.from_sales(s) for s in await engine.top_categories_by_sales(limit)]


@router.get("/revenue-per-customer", response_model=ValueResponse)
async def revenue_per_customer(engine: AggregationEngine = Depends(get_aggregation_engine)) -> ValueResponse:
    return ValueResponse(value=await engine.revenue_per_customer())


@router.get("/products-per-customer", response_model=ValueResponse)
async def products_per_customer(engine: AggregationEngine = Depends(get_aggregation_engine)) -> ValueResponse:
    return ValueResponse(value=await engine.average_products_per_customer())


@router.get("/revenue-by-product", response_model=List[ProductRevenueOut])
async def revenue_by_product(engine: AggregationEngine = Depends(get_aggregation_engine)) -> List[ProductRevenueOut]:
    return [ProductRevenueOut.from_revenue(r) for r in await engine.revenue_by_product()]
