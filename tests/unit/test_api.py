"""
Unit Tests - HTTP API
"""
from collections import deque
from typing import AsyncGenerator

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from crm.database.connection import get_db_dependency
from crm.main import create_app
from crm.reporting import AggregationEngine, DataSourceUnavailable, InMemoryDataSource, SqlAlchemyDataSource
from crm.serving.api.dependencies import get_aggregation_engine
from crm.serving.api.middleware import RateLimitMiddleware


@pytest.fixture
def app(test_settings, session_factory):
    app = create_app(test_settings)

    async def override_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_dependency] = override_db
    app.dependency_overrides[get_aggregation_engine] = lambda: AggregationEngine(
        SqlAlchemyDataSource(session_factory)
    )
    return app


@pytest.fixture
async def client(app) -> AsyncGenerator[httpx.AsyncClient, None]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


async def _create_catalog(client):
    category = (await client.post("/api/v1/categories", json={"name": "Electronics"})).json()
    mouse = (await client.post(
        "/api/v1/products",
        json={"name": "Mouse", "price": "10", "category_id": category["id"]},
    )).json()
    keyboard = (await client.post(
        "/api/v1/products",
        json={"name": "Keyboard", "price": "20", "category_id": category["id"]},
    )).json()
    customer = (await client.post(
        "/api/v1/customers",
        json={"name": "Jane Smith", "email": "jane@example.com"},
    )).json()
    return category, mouse, keyboard, customer


class TestCatalogEndpoints:
    """Tests for catalog CRUD endpoints"""

    async def test_create_product(self, client):
        response = await client.post("/api/v1/products", json={"name": "Mouse", "price": "19.99"})

        assert response.status_code == 201
        assert response.json()["price"] == "19.99"

    async def test_validation_errors(self, client):
        response = await client.post("/api/v1/products", json={"name": "M", "price": "-1"})

        assert response.status_code == 422
        fields = {e["field"] for e in response.json()["errors"]}
        assert fields == {"name", "price"}

    async def test_blank_category_is_stored_as_null(self, client):
        response = await client.post(
            "/api/v1/products",
            json={"name": "Mouse", "price": "1", "category_id": ""},
        )

        assert response.status_code == 201
        assert response.json()["category_id"] is None

    async def test_unknown_product(self, client):
        response = await client.get("/api/v1/products/missing")

        assert response.status_code == 404

    async def test_purchase_flow(self, client):
        _, mouse, _, customer = await _create_catalog(client)
        url = f"/api/v1/customers/{customer['id']}/products/{mouse['id']}"

        first = await client.post(url)
        second = await client.post(url)
        detail = await client.get(f"/api/v1/customers/{customer['id']}")

        assert first.status_code == 201
        assert first.json()["activity"]["type"] == "purchase"
        assert second.status_code == 200
        assert second.json()["created"] is False
        assert [p["name"] for p in detail.json()["purchased_products"]] == ["Mouse"]

        refund = await client.delete(url)
        activities = await client.get("/api/v1/activities", params={"customer_id": customer["id"]})

        assert refund.json()["type"] == "refund"
        assert activities.json()["total"] == 2


class TestDashboardEndpoints:
    """Tests for the reporting endpoints"""

    async def test_summary(self, client):
        _, mouse, keyboard, customer = await _create_catalog(client)
        for product in (mouse, keyboard):
            await client.post(f"/api/v1/customers/{customer['id']}/products/{product['id']}")

        response = await client.get("/api/v1/dashboard/summary", params={"limit": 1})
        body = response.json()

        assert response.status_code == 200
        assert body["total_products"] == 2
        assert body["total_customers"] == 1
        assert body["products_sold"] == 2
        assert float(body["total_revenue"]) == 30
        assert float(body["revenue_per_customer"]) == 30
        assert len(body["top_products"]) == 1
        assert body["top_categories"][0]["name"] == "Electronics"

    async def test_empty_database(self, client):
        count = await client.get("/api/v1/dashboard/customers/count")
        ratio = await client.get("/api/v1/dashboard/revenue-per-customer")

        assert count.json() == {"count": 0}
        assert float(ratio.json()["value"]) == 0

    async def test_limit_must_be_positive(self, client):
        response = await client.get("/api/v1/dashboard/top-products", params={"limit": 0})

        assert response.status_code == 422

    async def test_data_source_failure(self, app, client):
        class BrokenSource(InMemoryDataSource):
            async def fetch_all_products(self):
                raise DataSourceUnavailable("products", "timeout")

        app.dependency_overrides[get_aggregation_engine] = lambda: AggregationEngine(BrokenSource())

        response = await client.get("/api/v1/dashboard/products/count")

        assert response.status_code == 503
        assert response.json()["collection"] == "products"


class TestExportEndpoints:
    async def test_empty_export(self, client):
        response = await client.get("/api/v1/export/products.csv")

        assert response.status_code == 404

    async def test_products_csv(self, client):
        await _create_catalog(client)

        response = await client.get("/api/v1/export/products.csv")

        assert response.status_code == 200
        assert "attachment" in response.headers["content-disposition"]
        assert "Mouse" in response.content.decode("utf-8-sig")

    async def test_unknown_format(self, client):
        response = await client.get("/api/v1/export/products.pdf")

        assert response.status_code == 422


async def test_liveness(client):
    response = await client.get("/api/v1/health/live")

    assert response.json() == {"status": "alive"}
    assert response.headers["X-Content-Type-Options"] == "nosniff"


class TestRateLimiter:
    """Tests for the in-memory sliding window"""

    async def test_idle_clients_are_forgotten(self):
        limiter = RateLimitMiddleware(app=None, max_requests=5, window_seconds=60)
        limiter._hits = {
            "10.0.0.1": deque([0.0, 10.0]),
            "10.0.0.2": deque([50.0, 100.0]),
        }

        limiter.sweep(now=120.0)

        assert list(limiter._hits) == ["10.0.0.2"]
        assert list(limiter._hits["10.0.0.2"]) == [100.0]

    async def test_limit_returns_429(self, test_settings):
        app = create_app(test_settings)
        app.user_middleware.clear()
        app.add_middleware(RateLimitMiddleware, max_requests=2, window_seconds=60)
        transport = httpx.ASGITransport(app=app)

        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
            statuses = [(await client.get("/api/v1/info")).status_code for _ in range(3)]
            health = await client.get("/api/v1/health/live")

        assert statuses == [200, 200, 429]
        assert health.status_code == 200
