"""
Reporting Records

Canonical read-only records consumed by the aggregation engine, and the
parsers that build them from API payloads, REST rows or ORM objects.

Parsing happens once, at the data-source boundary. Legacy product shapes
(``categoryIds`` lists, embedded ``categories``) are collapsed to a single
``category_id`` here so the aggregations never re-inspect raw rows.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Mapping, Optional

import structlog

logger = structlog.get_logger(__name__)


class ActivityType(str, Enum):
    """Kinds of ledger entries. Only purchases count towards sales."""
    PURCHASE = "purchase"
    REFUND = "refund"
    OTHER = "other"


@dataclass(frozen=True)
class ProductRecord:
    id: str
    name: str
    price: Optional[Decimal]
    category_id: Optional[str] = None


@dataclass(frozen=True)
class CategoryRecord:
    id: str
    name: str
    color: Optional[str] = None


@dataclass(frozen=True)
class CustomerRecord:
    id: str
    name: str
    email: str


@dataclass(frozen=True)
class ActivityRecord:
    """
    One ledger entry. ``product`` is the snapshot written with the entry,
    not a reference to the live catalog row.
    """
    id: str
    customer_id: str
    customer_name: str
    product: ProductRecord
    date: datetime
    type: ActivityType
    notes: Optional[str] = None

    @property
    def is_purchase(self) -> bool:
        return self.type is ActivityType.PURCHASE


# =============================================================================
# FIELD COERCION
# =============================================================================

def _get(row: Any, *names: str) -> Any:
    """Read the first present attribute/key among ``names``."""
    for name in names:
        if isinstance(row, Mapping):
            if name in row and row[name] is not None:
                return row[name]
        else:
            value = getattr(row, name, None)
            if value is not None:
                return value
    return None


def to_price(value: Any) -> Optional[Decimal]:
    """
    Coerce a price to ``Decimal``.

    Returns None for missing, non-numeric, non-finite or negative values.
    """
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        price = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not price.is_finite() or price < 0:
        return None
    return price


def to_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp (a trailing ``Z`` is accepted)."""
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def _first_category_id(row: Any) -> Optional[str]:
    category_id = _get(row, "category_id", "categoryId")
    if category_id:
        return str(category_id)

    category_ids = _get(row, "category_ids", "categoryIds")
    if category_ids:
        return str(category_ids[0])

    categories = _get(row, "categories")
    if categories:
        first = categories[0]
        first_id = _get(first, "id")
        return str(first_id) if first_id else None

    return None


# =============================================================================
# PARSERS
# =============================================================================

def parse_product(row: Any) -> Optional[ProductRecord]:
    """Build a ProductRecord, or None when the row has no id."""
    product_id = _get(row, "id", "product_id")
    if not product_id:
        logger.warning("Skipping product without id")
        return None

    raw_price = _get(row, "price")
    price = to_price(raw_price)
    if price is None and raw_price is not None:
        logger.warning("Malformed product price", product_id=str(product_id), price=str(raw_price))

    return ProductRecord(
        id=str(product_id),
        name=str(_get(row, "name") or ""),
        price=price,
        category_id=_first_category_id(row),
    )


def parse_category(row: Any) -> Optional[CategoryRecord]:
    category_id = _get(row, "id")
    if not category_id:
        logger.warning("Skipping category without id")
        return None
    return CategoryRecord(
        id=str(category_id),
        name=str(_get(row, "name") or ""),
        color=_get(row, "color"),
    )


def parse_customer(row: Any) -> Optional[CustomerRecord]:
    customer_id = _get(row, "id")
    if not customer_id:
        logger.warning("Skipping customer without id")
        return None
    return CustomerRecord(
        id=str(customer_id),
        name=str(_get(row, "name") or ""),
        email=str(_get(row, "email") or ""),
    )


def parse_activity_type(value: Any) -> ActivityType:
    if isinstance(value, ActivityType):
        return value
    try:
        return ActivityType(str(value).lower())
    except ValueError:
        logger.warning("Unknown activity type, treating as other", type=str(value))
        return ActivityType.OTHER


def parse_activity(row: Any) -> Optional[ActivityRecord]:
    """
    Build an ActivityRecord from a nested payload (``product`` sub-object,
    camelCase or snake_case) or a flat ledger row (``product_id``,
    ``product_name``, ``product_price``, ``product_category_id``).

    Returns None when the activity id or the product id is missing.
    """
    activity_id = _get(row, "id")
    embedded = _get(row, "product")

    if embedded is not None:
        product_id = _get(embedded, "id")
        product_name = _get(embedded, "name")
        raw_price = _get(embedded, "price")
        category_id = _first_category_id(embedded)
    else:
        product_id = _get(row, "product_id", "productId")
        product_name = _get(row, "product_name", "productName")
        raw_price = _get(row, "product_price", "productPrice")
        category_id = _get(row, "product_category_id", "productCategoryId")

    if not activity_id or not product_id:
        logger.warning(
            "Skipping malformed activity",
            activity_id=str(activity_id) if activity_id else None,
            has_product_id=bool(product_id),
        )
        return None

    price = to_price(raw_price)
    if price is None:
        logger.warning("Activity has no usable price", activity_id=str(activity_id), price=str(raw_price))

    date = to_datetime(_get(row, "date"))
    if date is None:
        date = datetime.fromtimestamp(0, tz=timezone.utc)

    return ActivityRecord(
        id=str(activity_id),
        customer_id=str(_get(row, "customer_id", "customerId") or ""),
        customer_name=str(_get(row, "customer_name", "customerName") or ""),
        product=ProductRecord(
            id=str(product_id),
            name=str(product_name or ""),
            price=price,
            category_id=str(category_id) if category_id else None,
        ),
        date=date,
        type=parse_activity_type(_get(row, "type")),
        notes=_get(row, "notes"),
    )
