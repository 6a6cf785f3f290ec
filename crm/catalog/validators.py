"""
Catalog Validation Rules

Field-level checks applied before catalog writes. Each rule returns a
ValidationError or None; the ``validate_*`` helpers collect them.

Uniqueness checks take the competing values (names, emails) of the other
rows, so the rules stay free of I/O.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, List, Optional
import re

MIN_NAME_LENGTH = 2
MAX_PRICE = Decimal("10000")
MAX_PRICE_DECIMALS = 2

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass(frozen=True)
class ValidationError:
    """One failed rule"""
    field: str
    message: str


class CatalogValidationError(Exception):
    """Raised by the catalog service when a write fails validation"""

    def __init__(self, errors: List[ValidationError]):
        self.errors = errors
        super().__init__("; ".join(f"{e.field}: {e.message}" for e in errors))


class NotFoundError(Exception):
    """Requested catalog row does not exist"""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


def _normalize(value: str) -> str:
    return value.strip().lower()


def _check_name(name: Optional[str], label: str) -> Optional[ValidationError]:
    if not name or not name.strip():
        return ValidationError("name", f"{label} name is required")
    if len(name.strip()) < MIN_NAME_LENGTH:
        return ValidationError("name", f"{label} name must be at least {MIN_NAME_LENGTH} characters")
    return None


# =============================================================================
# PRODUCTS
# =============================================================================

def validate_product_name(
    name: Optional[str],
    other_names: Iterable[str] = (),
) -> Optional[ValidationError]:
    error = _check_name(name, "Product")
    if error:
        return error

    if _normalize(name) in {_normalize(other) for other in other_names}:
        return ValidationError("name", "A product with this name already exists")
    return None


def validate_product_price(price: Any) -> Optional[ValidationError]:
    if price is None or price == "" or isinstance(price, bool):
        return ValidationError("price", "Price is required")

    try:
        value = price if isinstance(price, Decimal) else Decimal(str(price))
    except (InvalidOperation, ValueError):
        return ValidationError("price", "Price is required")

    if not value.is_finite():
        return ValidationError("price", "Price is required")
    if value < 0:
        return ValidationError("price", "Price cannot be negative")
    if value > MAX_PRICE:
        return ValidationError("price", f"Price cannot exceed {MAX_PRICE:,}")
    if -value.normalize().as_tuple().exponent > MAX_PRICE_DECIMALS:
        return ValidationError("price", f"Price cannot have more than {MAX_PRICE_DECIMALS} decimals")
    return None


def validate_product(
    name: Optional[str],
    price: Any,
    other_names: Iterable[str] = (),
) -> List[ValidationError]:
    errors = [
        validate_product_name(name, other_names),
        validate_product_price(price),
    ]
    return [e for e in errors if e is not None]


# =============================================================================
# CUSTOMERS
# =============================================================================

def validate_customer_name(name: Optional[str]) -> Optional[ValidationError]:
    return _check_name(name, "Customer")


def validate_customer_email(
    email: Optional[str],
    other_emails: Iterable[str] = (),
) -> Optional[ValidationError]:
    if not email or not email.strip():
        return ValidationError("email", "Email is required")
    if not EMAIL_PATTERN.match(email.strip()):
        return ValidationError("email", "Enter a valid email address")
    if _normalize(email) in {_normalize(other) for other in other_emails}:
        return ValidationError("email", "A customer with this email already exists")
    return None


def validate_customer(
    name: Optional[str],
    email: Optional[str],
    other_emails: Iterable[str] = (),
) -> List[ValidationError]:
    errors = [
        validate_customer_name(name),
        validate_customer_email(email, other_emails),
    ]
    return [e for e in errors if e is not None]


# =============================================================================
# CATEGORIES
# =============================================================================

def validate_category(name: Optional[str]) -> List[ValidationError]:
    error = _check_name(name, "Category")
    return [error] if error else []
