"""
Database Models - CRM Schema

Tables mirror the collections the dashboard reads:

Catalog Tables:
- Category: Product groupings with an optional display colour
- Product: Sellable items with a current price
- Customer: People who buy products

Relationship / Ledger Tables:
- CustomerProduct: Many-to-many "purchased products" link
- Activity: Append-only ledger of purchases, refunds and other interactions.
  Each row snapshots the product (name, price, category) at the time it was
  written, so later catalog edits never rewrite history.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, List
import uuid

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all database models"""
    pass


def _new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the ``DateTime`` columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# =============================================================================
# CATALOG TABLES
# =============================================================================

class Category(Base):
    """Product category"""
    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    color: Mapped[Optional[str]] = mapped_column(String(20))  # e.g. "#6b7280"

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, server_default=func.now()
    )

    products: Mapped[List["Product"]] = relationship(back_populates="category", passive_deletes=True)


class Product(Base):
    """
    Product Table

    ``price`` is the current catalog price; historical revenue is read from
    the price snapshotted on each activity instead.
    """
    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    category_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("categories.id", ondelete="SET NULL")
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, server_default=func.now()
    )

    category: Mapped[Optional[Category]] = relationship(back_populates="products")
    purchases: Mapped[List["CustomerProduct"]] = relationship(
        back_populates="product", cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (
        Index("ix_products_category", "category_id"),
    )


class Customer(Base):
    """Customer Table. Email uniqueness is enforced here, not by the dashboard."""
    __tablename__ = "customers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, server_default=func.now()
    )

    purchases: Mapped[List["CustomerProduct"]] = relationship(
        back_populates="customer", cascade="all, delete-orphan", passive_deletes=True
    )


# =============================================================================
# RELATIONSHIP / LEDGER TABLES
# =============================================================================

class CustomerProduct(Base):
    """Purchased-products link between a customer and a product"""
    __tablename__ = "customer_products"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    customer_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("customers.id", ondelete="CASCADE"), nullable=False
    )
    product_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("products.id", ondelete="CASCADE"), nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, server_default=func.now()
    )

    customer: Mapped[Customer] = relationship(back_populates="purchases")
    product: Mapped[Product] = relationship(back_populates="purchases")

    __table_args__ = (
        UniqueConstraint("customer_id", "product_id", name="uq_customer_products_pair"),
    )


class Activity(Base):
    """
    Activity Ledger Table

    Denormalized on purpose: no foreign keys, the product and customer
    columns are copies taken when the row was appended.
    """
    __tablename__ = "activities"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)

    customer_id: Mapped[str] = mapped_column(String(36), nullable=False)
    customer_name: Mapped[str] = mapped_column(String(200), nullable=False)

    # Product snapshot
    product_id: Mapped[str] = mapped_column(String(36), nullable=False)
    product_name: Mapped[str] = mapped_column(String(200), nullable=False)
    product_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2))
    product_category_id: Mapped[Optional[str]] = mapped_column(String(36))

    date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)  # purchase | refund | other
    notes: Mapped[Optional[str]] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, server_default=func.now()
    )

    __table_args__ = (
        Index("ix_activities_type", "type"),
        Index("ix_activities_customer", "customer_id"),
        Index("ix_activities_date", "date"),
    )
