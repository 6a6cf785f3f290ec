"""
Unit Tests - Catalog Service (SQLite)
"""
from decimal import Decimal

import pytest

from crm.catalog import CatalogService, CatalogValidationError, NotFoundError
from crm.database.models import Activity


@pytest.fixture
def service(test_db) -> CatalogService:
    return CatalogService(test_db)


class TestCategories:
    async def test_create_and_list(self, service):
        await service.create_category("Electronics", color="#2563eb")

        categories = await service.list_categories()

        assert [c.name for c in categories] == ["Electronics"]

    async def test_delete_keeps_products(self, service):
        category = await service.create_category("Books")
        product = await service.create_product("Atlas", Decimal("30"), category.id)

        await service.delete_category(category.id)
        await service.session.refresh(product)

        assert product.category_id is None
        assert await service.list_categories() == []


class TestProducts:
    """Tests for product CRUD"""

    async def test_create_product(self, service):
        product = await service.create_product(" Mouse ", Decimal("19.99"))

        assert product.id
        assert product.name == "Mouse"
        assert product.price == Decimal("19.99")

    async def test_duplicate_name_rejected(self, service):
        await service.create_product("Mouse", Decimal("10"))

        with pytest.raises(CatalogValidationError) as exc_info:
            await service.create_product("MOUSE", Decimal("12"))

        assert exc_info.value.errors[0].message == "A product with this name already exists"

    async def test_unknown_category_rejected(self, service):
        with pytest.raises(CatalogValidationError) as exc_info:
            await service.create_product("Mouse", Decimal("10"), category_id="missing")

        assert exc_info.value.errors[0].field == "category_id"

    async def test_blank_category_means_uncategorised(self, service):
        product = await service.create_product("Mouse", Decimal("10"), category_id="  ")

        assert product.category_id is None

    async def test_update_with_blank_category_clears_it(self, service):
        category = await service.create_category("Electronics")
        product = await service.create_product("Mouse", Decimal("10"), category.id)

        updated = await service.update_product(product.id, {"category_id": ""})

        assert updated.category_id is None

    async def test_update_product(self, service):
        product = await service.create_product("Mouse", Decimal("10"))

        updated = await service.update_product(product.id, {"price": "12.50", "ignored": 1})

        assert updated.price == Decimal("12.50")

    async def test_rename_to_own_name_allowed(self, service):
        product = await service.create_product("Mouse", Decimal("10"))

        updated = await service.update_product(product.id, {"name": "Mouse"})

        assert updated.name == "Mouse"

    async def test_missing_product(self, service):
        with pytest.raises(NotFoundError):
            await service.get_product("nope")

    async def test_filter_by_category(self, service):
        category = await service.create_category("Books")
        await service.create_product("Atlas", Decimal("30"), category.id)
        await service.create_product("Mouse", Decimal("10"))

        products = await service.list_products(category_id=category.id)

        assert [p.name for p in products] == ["Atlas"]


class TestCustomers:
    async def test_create_customer(self, service):
        customer = await service.create_customer("Jane Smith", "jane@example.com")

        assert customer.email == "jane@example.com"
        assert customer.purchases == []

    async def test_duplicate_email_rejected(self, service):
        await service.create_customer("Jane Smith", "jane@example.com")

        with pytest.raises(CatalogValidationError):
            await service.create_customer("Other Jane", "Jane@Example.com")

    async def test_update_customer(self, service):
        customer = await service.create_customer("Jane Smith", "jane@example.com")

        updated = await service.update_customer(customer.id, {"name": "  Jane Doe "})

        assert updated.name == "Jane Doe"


class TestPurchases:
    """Linking products records purchases in the ledger"""

    async def _customer_and_product(self, service):
        category = await service.create_category("Electronics")
        product = await service.create_product("Mouse", Decimal("10"), category.id)
        customer = await service.create_customer("Jane Smith", "jane@example.com")
        return customer, product

    async def test_add_records_purchase_snapshot(self, service):
        customer, product = await self._customer_and_product(service)

        activity = await service.add_purchased_product(customer.id, product.id)

        assert activity.type == "purchase"
        assert activity.product_name == "Mouse"
        assert activity.product_price == Decimal("10")
        assert activity.product_category_id == product.category_id
        assert activity.customer_name == "Jane Smith"

        refreshed = await service.get_customer(customer.id)
        assert [link.product.id for link in refreshed.purchases] == [product.id]

    async def test_adding_twice_records_once(self, service):
        customer, product = await self._customer_and_product(service)

        await service.add_purchased_product(customer.id, product.id)
        second = await service.add_purchased_product(customer.id, product.id)

        assert second is None
        assert await service.count_activities() == 1

    async def test_link_created_concurrently_is_not_recorded_twice(self, service, monkeypatch):
        customer, product = await self._customer_and_product(service)
        await service.add_purchased_product(customer.id, product.id)

        async def lookup_before_other_insert(customer_id, product_id):
            return None

        monkeypatch.setattr(service, "_find_link", lookup_before_other_insert)
        second = await service.add_purchased_product(customer.id, product.id)

        assert second is None
        assert await service.count_activities() == 1
        assert len((await service.get_customer(customer.id)).purchases) == 1

    async def test_remove_records_refund(self, service):
        customer, product = await self._customer_and_product(service)
        await service.add_purchased_product(customer.id, product.id)

        refund = await service.remove_purchased_product(customer.id, product.id)

        assert refund.type == "refund"
        assert (await service.get_customer(customer.id)).purchases == []
        assert len(await service.list_activities(customer_id=customer.id)) == 2

    async def test_remove_unlinked_product(self, service):
        customer, product = await self._customer_and_product(service)

        with pytest.raises(NotFoundError):
            await service.remove_purchased_product(customer.id, product.id)

    async def test_snapshot_survives_price_change(self, service):
        customer, product = await self._customer_and_product(service)
        activity = await service.add_purchased_product(customer.id, product.id)

        await service.update_product(product.id, {"price": Decimal("99")})
        await service.session.refresh(activity)

        assert activity.product_price == Decimal("10")

    async def test_delete_product_keeps_ledger(self, service):
        customer, product = await self._customer_and_product(service)
        await service.add_purchased_product(customer.id, product.id)

        await service.delete_product(product.id)

        assert (await service.get_customer(customer.id)).purchases == []
        assert await service.count_activities() == 1

    async def test_delete_customer_keeps_ledger(self, service):
        customer, product = await self._customer_and_product(service)
        await service.add_purchased_product(customer.id, product.id)

        await service.delete_customer(customer.id)

        with pytest.raises(NotFoundError):
            await service.get_customer(customer.id)
        assert await service.count_activities() == 1


class TestActivities:
    async def test_record_other_activity(self, service):
        product = await service.create_product("Mouse", Decimal("10"))
        customer = await service.create_customer("Jane Smith", "jane@example.com")

        activity = await service.record_activity(customer.id, product.id, "call", notes="Follow-up")

        assert isinstance(activity, Activity)
        assert activity.type == "other"
        assert activity.notes == "Follow-up"

    async def test_filter_by_type(self, service):
        product = await service.create_product("Mouse", Decimal("10"))
        customer = await service.create_customer("Jane Smith", "jane@example.com")
        await service.add_purchased_product(customer.id, product.id)
        await service.record_activity(customer.id, product.id, "other")

        purchases = await service.list_activities(activity_type="purchase")

        assert len(purchases) == 1
