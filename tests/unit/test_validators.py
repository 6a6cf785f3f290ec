"""
Unit Tests - Catalog Validation
"""
from decimal import Decimal

import pytest

from crm.catalog.validators import (
    CatalogValidationError,
    ValidationError,
    validate_category,
    validate_customer,
    validate_customer_email,
    validate_product,
    validate_product_name,
    validate_product_price,
)


class TestProductRules:
    """Tests for product validation"""

    def test_valid_product(self):
        assert validate_product("Mouse", Decimal("19.99"), ["Keyboard"]) == []

    @pytest.mark.parametrize("name, message", [
        ("", "Product name is required"),
        ("   ", "Product name is required"),
        ("A", "Product name must be at least 2 characters"),
    ])
    def test_bad_names(self, name, message):
        assert validate_product_name(name).message == message

    def test_duplicate_name_ignores_case(self):
        error = validate_product_name(" mouse ", ["Mouse"])

        assert error.message == "A product with this name already exists"

    @pytest.mark.parametrize("price, message", [
        (None, "Price is required"),
        ("abc", "Price is required"),
        (Decimal("-1"), "Price cannot be negative"),
        (Decimal("10000.01"), "Price cannot exceed 10,000"),
        (Decimal("1.999"), "Price cannot have more than 2 decimals"),
    ])
    def test_bad_prices(self, price, message):
        assert validate_product_price(price).message == message

    @pytest.mark.parametrize("price", [0, "10000", Decimal("9.90"), 12.5])
    def test_good_prices(self, price):
        assert validate_product_price(price) is None

    def test_all_errors_collected(self):
        errors = validate_product("", Decimal("-3"))

        assert [e.field for e in errors] == ["name", "price"]


class TestCustomerRules:
    """Tests for customer validation"""

    def test_valid_customer(self):
        assert validate_customer("Jane Smith", "jane@example.com") == []

    @pytest.mark.parametrize("email, message", [
        ("", "Email is required"),
        ("jane", "Enter a valid email address"),
        ("jane@example", "Enter a valid email address"),
        ("jane @example.com", "Enter a valid email address"),
    ])
    def test_bad_emails(self, email, message):
        assert validate_customer_email(email).message == message

    def test_duplicate_email(self):
        error = validate_customer_email("JANE@example.com", ["jane@example.com"])

        assert error.message == "A customer with this email already exists"


def test_category_name_required():
    assert validate_category("") == [ValidationError("name", "Category name is required")]


def test_validation_error_message():
    exc = CatalogValidationError([
        ValidationError("name", "Product name is required"),
        ValidationError("price", "Price is required"),
    ])

    assert str(exc) == "name: Product name is required; price: Price is required"
