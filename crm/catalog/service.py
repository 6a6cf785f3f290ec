"""
Catalog Service

CRUD for categories, products and customers, the purchased-products
relationship, and the activity ledger that purchases feed.

Linking a product to a customer appends a ``purchase`` activity holding a
snapshot of the product; unlinking appends a ``refund``. Ledger rows are
never updated or deleted.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from crm.database.models import Activity, Category, Customer, CustomerProduct, Product, utcnow
from crm.reporting.records import ActivityType, parse_activity_type
from .validators import (
    CatalogValidationError,
    NotFoundError,
    ValidationError,
    validate_category,
    validate_customer,
    validate_product,
)

logger = structlog.get_logger(__name__)

CATEGORY_FIELDS = {"name", "description", "color"}
PRODUCT_FIELDS = {"name", "price", "category_id"}
CUSTOMER_FIELDS = {"name", "email"}


def _strip(value: Optional[str]) -> Optional[str]:
    return value.strip() if isinstance(value, str) else value


def _category_ref(value: Optional[str]) -> Optional[str]:
    """Blank category ids mean uncategorised."""
    value = _strip(value)
    return value or None


def _as_utc(value: datetime) -> datetime:
    """Aware timestamps are converted to the naive UTC the columns store."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class CatalogService:
    """
    Catalog operations bound to one database session.

    The caller owns the transaction (``get_db`` commits on exit); the
    service only flushes so generated ids are available.

    Example:
        async with get_db() as db:
            service = CatalogService(db)
            product = await service.create_product("Mouse", Decimal("19.99"))
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _get(self, model, entity: str, entity_id: str):
        row = await self.session.get(model, entity_id)
        if row is None:
            raise NotFoundError(entity, entity_id)
        return row

    # =========================================================================
    # CATEGORIES
    # =========================================================================

    async def list_categories(self) -> List[Category]:
        result = await self.session.execute(
            select(Category).order_by(Category.created_at.desc(), Category.name)
        )
        return list(result.scalars().all())

    async def get_category(self, category_id: str) -> Category:
        return await self._get(Category, "Category", category_id)

    async def create_category(
        self,
        name: str,
        description: Optional[str] = None,
        color: Optional[str] = None,
    ) -> Category:
        errors = validate_category(name)
        if errors:
            raise CatalogValidationError(errors)

        category = Category(name=name.strip(), description=description, color=color)
        self.session.add(category)
        await self.session.flush()
        logger.info("Category created", category_id=category.id, name=category.name)
        return category

    async def update_category(self, category_id: str, changes: Dict[str, Any]) -> Category:
        category = await self.get_category(category_id)
        changes = {k: v for k, v in changes.items() if k in CATEGORY_FIELDS}

        if "name" in changes:
            errors = validate_category(changes["name"])
            if errors:
                raise CatalogValidationError(errors)
            changes["name"] = changes["name"].strip()

        for field, value in changes.items():
            setattr(category, field, value)
        await self.session.flush()
        logger.info("Category updated", category_id=category_id, fields=sorted(changes))
        return category

    async def delete_category(self, category_id: str) -> None:
        """Delete a category. Its products stay, uncategorised."""
        category = await self.get_category(category_id)
        await self.session.execute(
            update(Product)
            .where(Product.category_id == category_id)
            .values(category_id=None)
        )
        await self.session.delete(category)
        await self.session.flush()
        logger.info("Category deleted", category_id=category_id)

    # =========================================================================
    # PRODUCTS
    # =========================================================================

    async def list_products(self, category_id: Optional[str] = None) -> List[Product]:
        query = select(Product).order_by(Product.created_at.desc(), Product.name)
        if category_id:
            query = query.where(Product.category_id == category_id)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_product(self, product_id: str) -> Product:
        return await self._get(Product, "Product", product_id)

    async def _other_product_names(self, exclude_id: Optional[str] = None) -> List[str]:
        query = select(Product.name)
        if exclude_id:
            query = query.where(Product.id != exclude_id)
        return list((await self.session.execute(query)).scalars().all())

    async def _check_category_exists(self, category_id: Optional[str]) -> Optional[ValidationError]:
        if category_id and await self.session.get(Category, category_id) is None:
            return ValidationError("category_id", "Category does not exist")
        return None

    async def create_product(
        self,
        name: str,
        price: Decimal,
        category_id: Optional[str] = None,
    ) -> Product:
        category_id = _category_ref(category_id)
        errors = validate_product(name, price, await self._other_product_names())
        category_error = await self._check_category_exists(category_id)
        if category_error:
            errors.append(category_error)
        if errors:
            raise CatalogValidationError(errors)

        product = Product(name=name.strip(), price=Decimal(str(price)), category_id=category_id)
        self.session.add(product)
        await self.session.flush()
        logger.info("Product created", product_id=product.id, name=product.name)
        return product

    async def update_product(self, product_id: str, changes: Dict[str, Any]) -> Product:
        product = await self.get_product(product_id)
        changes = {k: v for k, v in changes.items() if k in PRODUCT_FIELDS}

        errors = validate_product(
            changes.get("name", product.name),
            changes.get("price", product.price),
            await self._other_product_names(exclude_id=product_id),
        )
        if "category_id" in changes:
            changes["category_id"] = _category_ref(changes["category_id"])
            category_error = await self._check_category_exists(changes["category_id"])
            if category_error:
                errors.append(category_error)
        if errors:
            raise CatalogValidationError(errors)

        if "name" in changes:
            changes["name"] = changes["name"].strip()
        if "price" in changes:
            changes["price"] = Decimal(str(changes["price"]))

        for field, value in changes.items():
            setattr(product, field, value)
        await self.session.flush()
        logger.info("Product updated", product_id=product_id, fields=sorted(changes))
        return product

    async def delete_product(self, product_id: str) -> None:
        """Delete a product and its purchase links. Ledger snapshots remain."""
        result = await self.session.execute(
            select(Product)
            .options(selectinload(Product.purchases))
            .where(Product.id == product_id)
            .execution_options(populate_existing=True)
        )
        product = result.scalar_one_or_none()
        if product is None:
            raise NotFoundError("Product", product_id)

        # purchases are loaded, so the ORM cascade removes the links
        await self.session.delete(product)
        await self.session.flush()
        logger.info("Product deleted", product_id=product_id)

    # =========================================================================
    # CUSTOMERS
    # =========================================================================

    def _customer_query(self):
        return select(Customer).options(
            selectinload(Customer.purchases).selectinload(CustomerProduct.product)
        )

    async def list_customers(self) -> List[Customer]:
        result = await self.session.execute(
            self._customer_query().order_by(Customer.created_at.desc(), Customer.name)
        )
        return list(result.scalars().all())

    async def get_customer(self, customer_id: str) -> Customer:
        result = await self.session.execute(
            self._customer_query()
            .where(Customer.id == customer_id)
            .execution_options(populate_existing=True)
        )
        customer = result.scalar_one_or_none()
        if customer is None:
            raise NotFoundError("Customer", customer_id)
        return customer

    async def _other_emails(self, exclude_id: Optional[str] = None) -> List[str]:
        query = select(Customer.email)
        if exclude_id:
            query = query.where(Customer.id != exclude_id)
        return list((await self.session.execute(query)).scalars().all())

    async def create_customer(self, name: str, email: str) -> Customer:
        errors = validate_customer(name, email, await self._other_emails())
        if errors:
            raise CatalogValidationError(errors)

        customer = Customer(name=name.strip(), email=email.strip())
        self.session.add(customer)
        await self.session.flush()
        logger.info("Customer created", customer_id=customer.id)
        return await self.get_customer(customer.id)

    async def update_customer(self, customer_id: str, changes: Dict[str, Any]) -> Customer:
        customer = await self.get_customer(customer_id)
        changes = {k: _strip(v) for k, v in changes.items() if k in CUSTOMER_FIELDS}

        errors = validate_customer(
            changes.get("name", customer.name),
            changes.get("email", customer.email),
            await self._other_emails(exclude_id=customer_id),
        )
        if errors:
            raise CatalogValidationError(errors)

        for field, value in changes.items():
            setattr(customer, field, value)
        await self.session.flush()
        logger.info("Customer updated", customer_id=customer_id, fields=sorted(changes))
        return customer

    async def delete_customer(self, customer_id: str) -> None:
        """Delete a customer and its purchase links. Ledger entries remain."""
        customer = await self.get_customer(customer_id)
        await self.session.delete(customer)
        await self.session.flush()
        logger.info("Customer deleted", customer_id=customer_id)

    # =========================================================================
    # PURCHASED PRODUCTS
    # =========================================================================

    async def _find_link(self, customer_id: str, product_id: str) -> Optional[CustomerProduct]:
        result = await self.session.execute(
            select(CustomerProduct).where(
                CustomerProduct.customer_id == customer_id,
                CustomerProduct.product_id == product_id,
            )
        )
        return result.scalar_one_or_none()

    async def add_purchased_product(self, customer_id: str, product_id: str) -> Optional[Activity]:
        """
        Link a product to a customer and record the purchase.

        Returns the new purchase activity, or None when the product was
        already linked (no second purchase is recorded).
        """
        customer = await self._get(Customer, "Customer", customer_id)
        product = await self.get_product(product_id)

        if await self._find_link(customer_id, product_id) is not None:
            logger.info("Product already purchased", customer_id=customer_id, product_id=product_id)
            return None

        try:
            async with self.session.begin_nested():
                self.session.add(CustomerProduct(customer_id=customer_id, product_id=product_id))
                activity = self._append_activity(customer, product, ActivityType.PURCHASE)
        except IntegrityError:
            # another request linked the pair between the lookup and the insert
            logger.info("Product already purchased", customer_id=customer_id, product_id=product_id)
            return None

        logger.info(
            "Purchase recorded",
            customer_id=customer_id,
            product_id=product_id,
            activity_id=activity.id,
        )
        return activity

    async def remove_purchased_product(self, customer_id: str, product_id: str) -> Activity:
        """Unlink a product from a customer and record a refund."""
        customer = await self._get(Customer, "Customer", customer_id)
        product = await self.get_product(product_id)

        link = await self._find_link(customer_id, product_id)
        if link is None:
            raise NotFoundError("Purchase", f"{customer_id}/{product_id}")

        await self.session.delete(link)
        activity = self._append_activity(customer, product, ActivityType.REFUND)
        await self.session.flush()
        logger.info("Refund recorded", customer_id=customer_id, product_id=product_id)
        return activity

    # =========================================================================
    # ACTIVITIES
    # =========================================================================

    def _append_activity(
        self,
        customer: Customer,
        product: Product,
        activity_type: ActivityType,
        notes: Optional[str] = None,
        date: Optional[datetime] = None,
    ) -> Activity:
        activity = Activity(
            customer_id=customer.id,
            customer_name=customer.name,
            product_id=product.id,
            product_name=product.name,
            product_price=product.price,
            product_category_id=product.category_id,
            date=_as_utc(date) if date else utcnow(),
            type=activity_type.value,
            notes=notes,
        )
        self.session.add(activity)
        return activity

    async def record_activity(
        self,
        customer_id: str,
        product_id: str,
        activity_type: Any,
        notes: Optional[str] = None,
        date: Optional[datetime] = None,
    ) -> Activity:
        """Append a ledger entry without touching the purchased-products link."""
        customer = await self._get(Customer, "Customer", customer_id)
        product = await self.get_product(product_id)

        activity = self._append_activity(
            customer, product, parse_activity_type(activity_type), notes=notes, date=date
        )
        await self.session.flush()
        logger.info("Activity recorded", activity_id=activity.id, type=activity.type)
        return activity

    async def list_activities(
        self,
        customer_id: Optional[str] = None,
        activity_type: Optional[str] = None,
    ) -> List[Activity]:
        """Ledger entries, most recent first."""
        query = select(Activity).order_by(Activity.date.desc(), Activity.created_at.desc())
        if customer_id:
            query = query.where(Activity.customer_id == customer_id)
        if activity_type:
            query = query.where(Activity.type == activity_type)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count_activities(self) -> int:
        return (await self.session.execute(select(func.count(Activity.id)))).scalar() or 0
