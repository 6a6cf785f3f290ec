"""
Dashboard Aggregations

Pure functions over a snapshot of catalogs and the activity ledger.
Nothing here performs I/O or keeps state between calls.

Rankings group purchases by id, count them and sort by count descending.
``sorted`` is stable, and groups are created in ledger scan order, so equal
counts keep the order in which their first sale appeared.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence

from .records import ActivityRecord, CategoryRecord, ProductRecord

ZERO = Decimal(0)


@dataclass(frozen=True)
class ProductSales:
    product: ProductRecord
    sales_count: int


@dataclass(frozen=True)
class CategorySales:
    category: CategoryRecord
    sales_count: int


@dataclass(frozen=True)
class ProductRevenue:
    product: ProductRecord
    revenue: Decimal


def _check_limit(limit: int) -> None:
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise ValueError(f"limit must be a positive integer, got {limit!r}")


def purchases(activities: Iterable[ActivityRecord]) -> List[ActivityRecord]:
    """Keep purchase entries only, in ledger order."""
    return [activity for activity in activities if activity.is_purchase]


def total_revenue(activities: Iterable[ActivityRecord]) -> Decimal:
    """Sum of the snapshot price over purchases; missing prices count as 0."""
    total = ZERO
    for activity in purchases(activities):
        if activity.product.price is not None:
            total += activity.product.price
    return total


def purchase_count(activities: Iterable[ActivityRecord]) -> int:
    return len(purchases(activities))


def safe_ratio(numerator, denominator: int) -> Decimal:
    """``numerator / denominator``, or 0 when the denominator is 0."""
    if not denominator:
        return ZERO
    return Decimal(numerator) / Decimal(denominator)


def top_products_by_sales(
    activities: Iterable[ActivityRecord],
    limit: int,
) -> List[ProductSales]:
    """Best-selling products. The product shown is its first snapshot in the ledger."""
    _check_limit(limit)

    first_seen: Dict[str, ProductRecord] = {}
    counts: Dict[str, int] = {}
    for activity in purchases(activities):
        product_id = activity.product.id
        if product_id not in counts:
            first_seen[product_id] = activity.product
            counts[product_id] = 0
        counts[product_id] += 1

    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [
        ProductSales(product=first_seen[product_id], sales_count=count)
        for product_id, count in ranked[:limit]
    ]


def resolve_category_id(
    activity: ActivityRecord,
    catalog_products: Dict[str, ProductRecord],
) -> Optional[str]:
    """Category id from the snapshot, else from the live product row."""
    if activity.product.category_id:
        return activity.product.category_id
    live = catalog_products.get(activity.product.id)
    return live.category_id if live else None


def top_categories_by_sales(
    activities: Iterable[ActivityRecord],
    categories: Sequence[CategoryRecord],
    products: Sequence[ProductRecord],
    limit: int,
) -> List[CategorySales]:
    """
    Best-selling categories.

    Sales whose category cannot be resolved, or whose category no longer
    exists in the catalog, are left out of this ranking only.
    """
    _check_limit(limit)

    categories_by_id = {category.id: category for category in categories}
    products_by_id = {product.id: product for product in products}

    counts: Dict[str, int] = {}
    for activity in purchases(activities):
        category_id = resolve_category_id(activity, products_by_id)
        if category_id is None or category_id not in categories_by_id:
            continue
        counts[category_id] = counts.get(category_id, 0) + 1

    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [
        CategorySales(category=categories_by_id[category_id], sales_count=count)
        for category_id, count in ranked[:limit]
    ]


def revenue_by_product(activities: Iterable[ActivityRecord]) -> List[ProductRevenue]:
    """Purchase revenue per product, highest first."""
    first_seen: Dict[str, ProductRecord] = {}
    revenue: Dict[str, Decimal] = {}
    for activity in purchases(activities):
        product_id = activity.product.id
        if product_id not in revenue:
            first_seen[product_id] = activity.product
            revenue[product_id] = ZERO
        if activity.product.price is not None:
            revenue[product_id] += activity.product.price

    ranked = sorted(revenue.items(), key=lambda item: item[1], reverse=True)
    return [
        ProductRevenue(product=first_seen[product_id], revenue=amount)
        for product_id, amount in ranked
    ]
