"""
Customers API Endpoints

Customer CRUD and the purchased-products relationship. Linking a product
records a purchase in the activity ledger; unlinking records a refund.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel

from crm.catalog import CatalogService
from crm.database.models import Customer
from crm.serving.api.dependencies import get_catalog_service
from crm.serving.api.routes.activities import ActivityOut
from crm.serving.api.routes.products import ProductOut

router = APIRouter()


class CustomerOut(BaseModel):
    id: str
    name: str
    email: str
    created_at: Optional[datetime] = None
    purchased_products: List[ProductOut] = []

    @classmethod
    def from_customer(cls, customer: Customer) -> "CustomerOut":
        return cls(
            id=customer.id,
            name=customer.name,
            email=customer.email,
            created_at=customer.created_at,
            purchased_products=[ProductOut.model_validate(link.product) for link in customer.purchases],
        )


class CustomerCreate(BaseModel):
    name: str
    email: str


class CustomerUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None


class PurchaseResult(BaseModel):
    """``activity`` is null when the product was already linked."""
    created: bool
    activity: Optional[ActivityOut] = None


@router.get("", response_model=List[CustomerOut])
async def list_customers(service: CatalogService = Depends(get_catalog_service)) -> List[CustomerOut]:
    return [CustomerOut.from_customer(c) for c in await service.list_customers()]


@router.post("", response_model=CustomerOut, status_code=status.HTTP_201_CREATED)
async def create_customer(
    payload: CustomerCreate,
    service: CatalogService = Depends(get_catalog_service),
) -> CustomerOut:
    customer = await service.create_customer(payload.name, payload.email)
    return CustomerOut.from_customer(customer)


@router.get("/{customer_id}", response_model=CustomerOut)
async def get_customer(
    customer_id: str,
    service: CatalogService = Depends(get_catalog_service),
) -> CustomerOut:
    return CustomerOut.from_customer(await service.get_customer(customer_id))


@router.patch("/{customer_id}", response_model=CustomerOut)
async def update_customer(
    customer_id: str,
    payload: CustomerUpdate,
    service: CatalogService = Depends(get_catalog_service),
) -> CustomerOut:
    customer = await service.update_customer(customer_id, payload.model_dump(exclude_unset=True))
    return CustomerOut.from_customer(customer)


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_customer(
    customer_id: str,
    service: CatalogService = Depends(get_catalog_service),
) -> Response:
    await service.delete_customer(customer_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{customer_id}/products/{product_id}", response_model=PurchaseResult)
async def add_purchased_product(
    customer_id: str,
    product_id: str,
    response: Response,
    service: CatalogService = Depends(get_catalog_service),
) -> PurchaseResult:
    activity = await service.add_purchased_product(customer_id, product_id)
    if activity is None:
        return PurchaseResult(created=False)
    response.status_code = status.HTTP_201_CREATED
    return PurchaseResult(created=True, activity=ActivityOut.model_validate(activity))


@router.delete("/{customer_id}/products/{product_id}", response_model=ActivityOut)
async def remove_purchased_product(
    customer_id: str,
    product_id: str,
    service: CatalogService = Depends(get_catalog_service),
) -> ActivityOut:
    """Returns the refund entry written to the ledger."""
    activity = await service.remove_purchased_product(customer_id, product_id)
    return ActivityOut.model_validate(activity)
