"""
Products API Endpoints

REST API for the product catalog.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, ConfigDict

from crm.catalog import CatalogService
from crm.serving.api.dependencies import get_catalog_service

router = APIRouter()


class ProductOut(BaseModel):
    """Product response. Money is serialised as a decimal string."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    price: Decimal
    category_id: Optional[str] = None
    created_at: Optional[datetime] = None


class ProductCreate(BaseModel):
    name: str
    price: Decimal
    category_id: Optional[str] = None


class ProductUpdate(BaseModel):
    name: Optional[str] = None
    price: Optional[Decimal] = None
    category_id: Optional[str] = None


@router.get("", response_model=List[ProductOut])
async def list_products(
    category_id: Optional[str] = Query(None, description="Only products in this category"),
    service: CatalogService = Depends(get_catalog_service),
) -> List[ProductOut]:
    products = await service.list_products(category_id=category_id)
    return [ProductOut.model_validate(p) for p in products]


@router.post("", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
async def create_product(
    payload: ProductCreate,
    service: CatalogService = Depends(get_catalog_service),
) -> ProductOut:
    product = await service.create_product(payload.name, payload.price, payload.category_id)
    return ProductOut.model_validate(product)


@router.get("/{product_id}", response_model=ProductOut)
async def get_product(
    product_id: str,
    service: CatalogService = Depends(get_catalog_service),
) -> ProductOut:
    return ProductOut.model_validate(await service.get_product(product_id))


@router.patch("/{product_id}", response_model=ProductOut)
async def update_product(
    product_id: str,
    payload: ProductUpdate,
    service: CatalogService = Depends(get_catalog_service),
) -> ProductOut:
    product = await service.update_product(product_id, payload.model_dump(exclude_unset=True))
    return ProductOut.model_validate(product)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(
    product_id: str,
    service: CatalogService = Depends(get_catalog_service),
) -> Response:
    await service.delete_product(product_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
