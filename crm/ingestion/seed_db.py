"""
Demo Data Seeding

Fills an empty database with a reproducible CRM dataset: categories,
products, customers and their purchases. Everything is written through
CatalogService, so validation runs and every purchase lands in the
activity ledger exactly as it would from the API.

Usage:
    python -m crm.ingestion.seed_db --customers 50 --seed 42
"""

import argparse
import asyncio
import random
from datetime import timedelta
from decimal import Decimal
from typing import Dict, List, Optional

from faker import Faker

from crm.catalog import CatalogService
from crm.config.logging import configure_logging, get_logger
from crm.database.connection import close_database, get_db, get_engine, init_database
from crm.database.models import Base, Product, utcnow

logger = get_logger(__name__)

CATEGORIES = [
    ("Electronics", "#2563eb", ["Phone", "Laptop", "Tablet", "Headphones", "Camera"]),
    ("Clothing", "#db2777", ["Shirt", "Jacket", "Sneakers", "Dress", "Hat"]),
    ("Home", "#16a34a", ["Lamp", "Chair", "Kettle", "Blanket", "Vase"]),
    ("Sports", "#ea580c", ["Ball", "Racket", "Bike Helmet", "Yoga Mat", "Dumbbell"]),
    ("Books", "#7c3aed", ["Novel", "Cookbook", "Atlas", "Biography", "Comic"]),
]

PRICE_RANGES: Dict[str, tuple] = {
    "Electronics": (80, 1500),
    "Clothing": (15, 180),
    "Home": (10, 400),
    "Sports": (8, 250),
    "Books": (5, 60),
}


async def create_schema() -> None:
    """Create missing tables (demo databases only; production uses migrations)."""
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Schema ensured")


class DemoDataSeeder:
    """
    Writes a deterministic demo dataset through the catalog service.

    Example:
        async with get_db() as db:
            counts = await DemoDataSeeder(db, seed=42).run(customers=25)
    """

    def __init__(self, session, seed: int = 42):
        self.service = CatalogService(session)
        self.fake = Faker()
        self.fake.seed_instance(seed)
        self.rng = random.Random(seed)

    async def seed_categories(self) -> Dict[str, str]:
        logger.info("Seeding categories...")
        ids = {}
        for name, color, _ in CATEGORIES:
            category = await self.service.create_category(
                name, description=self.fake.sentence(nb_words=8), color=color
            )
            ids[name] = category.id
        return ids

    async def seed_products(self, category_ids: Dict[str, str]) -> List[Product]:
        logger.info("Seeding products...")
        products = []
        for name, _, kinds in CATEGORIES:
            low, high = PRICE_RANGES[name]
            for kind in kinds:
                price = Decimal(self.rng.randint(low * 100, high * 100)) / 100
                product = await self.service.create_product(
                    f"{self.fake.unique.word().title()} {kind}",
                    price,
                    category_id=category_ids[name],
                )
                products.append(product)
        return products

    async def seed_customers(self, count: int) -> List[str]:
        logger.info("Seeding customers...", count=count)
        ids = []
        for _ in range(count):
            customer = await self.service.create_customer(
                self.fake.name(), self.fake.unique.email()
            )
            ids.append(customer.id)
        return ids

    async def seed_purchases(
        self,
        customer_ids: List[str],
        products: List[Product],
        max_per_customer: int = 4,
    ) -> int:
        logger.info("Seeding purchases...")
        # A few best sellers get most of the traffic
        weights = [1.0 / (rank + 1) for rank in range(len(products))]
        recorded = 0

        for customer_id in customer_ids:
            wanted = self.rng.randint(0, max_per_customer)
            chosen = {p.id: p for p in self.rng.choices(products, weights=weights, k=wanted)}
            for product in chosen.values():
                activity = await self.service.add_purchased_product(customer_id, product.id)
                if activity is not None:
                    # spread purchases over the last quarter
                    activity.date = utcnow() - timedelta(days=self.rng.randint(0, 90))
                    recorded += 1
        return recorded

    async def run(self, customers: int = 25) -> Dict[str, int]:
        category_ids = await self.seed_categories()
        products = await self.seed_products(category_ids)
        customer_ids = await self.seed_customers(customers)
        purchases = await self.seed_purchases(customer_ids, products)
        return {
            "categories": len(category_ids),
            "products": len(products),
            "customers": len(customer_ids),
            "purchases": purchases,
        }


async def main(customers: int = 25, seed: int = 42, url: Optional[str] = None) -> Dict[str, int]:
    logger.info("Starting database seeding...")
    await init_database(url)

    try:
        await create_schema()
        async with get_db() as db:
            if await CatalogService(db).list_products():
                logger.warning("Database already has products, skipping seeding")
                return {}
            counts = await DemoDataSeeder(db, seed=seed).run(customers=customers)
        logger.info("Database seeding completed", **counts)
        return counts
    finally:
        await close_database()


def cli() -> None:
    parser = argparse.ArgumentParser(description="Seed the CRM database with demo data")
    parser.add_argument("--customers", type=int, default=25)
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--database-url", default=None)
    args = parser.parse_args()

    configure_logging()
    asyncio.run(main(customers=args.customers, seed=args.seed, url=args.database_url))


if __name__ == "__main__":
    cli()
