"""
Categories API Endpoints
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, ConfigDict

from crm.catalog import CatalogService
from crm.serving.api.dependencies import get_catalog_service

router = APIRouter()


class CategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: Optional[str] = None
    color: Optional[str] = None
    created_at: Optional[datetime] = None


class CategoryCreate(BaseModel):
    name: str
    description: Optional[str] = None
    color: Optional[str] = None


class CategoryUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    color: Optional[str] = None


@router.get("", response_model=List[CategoryOut])
async def list_categories(service: CatalogService = Depends(get_catalog_service)) -> List[CategoryOut]:
    return [CategoryOut.model_validate(c) for c in await service.list_categories()]


@router.post("", response_model=CategoryOut, status_code=status.HTTP_201_CREATED)
async def create_category(
    payload: CategoryCreate,
    service: CatalogService = Depends(get_catalog_service),
) -> CategoryOut:
    category = await service.create_category(payload.name, payload.description, payload.color)
    return CategoryOut.model_validate(category)


@router.get("/{category_id}", response_model=CategoryOut)
async def get_category(
    category_id: str,
    service: CatalogService = Depends(get_catalog_service),
) -> CategoryOut:
    return CategoryOut.model_validate(await service.get_category(category_id))


@router.patch("/{category_id}", response_model=CategoryOut)
async def update_category(
    category_id: str,
    payload: CategoryUpdate,
    service: CatalogService = Depends(get_catalog_service),
) -> CategoryOut:
    category = await service.update_category(category_id, payload.model_dump(exclude_unset=True))
    return CategoryOut.model_validate(category)


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: str,
    service: CatalogService = Depends(get_catalog_service),
) -> Response:
    """Products in the category are kept without a category."""
    await service.delete_category(category_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
