"""
Activities API Endpoints

Read access to the activity ledger, and manual entries for interactions
that are not purchases (calls, notes, ...).
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, ConfigDict

from crm.catalog import CatalogService
from crm.reporting import ActivityType
from crm.serving.api.dependencies import get_catalog_service

router = APIRouter()


class ActivityOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    customer_id: str
    customer_name: str
    product_id: str
    product_name: str
    product_price: Optional[Decimal] = None
    product_category_id: Optional[str] = None
    date: datetime
    type: str
    notes: Optional[str] = None


class ActivityCreate(BaseModel):
    customer_id: str
    product_id: str
    type: ActivityType = ActivityType.OTHER
    notes: Optional[str] = None
    date: Optional[datetime] = None


class ActivityListResponse(BaseModel):
    items: List[ActivityOut]
    total: int


@router.get("", response_model=ActivityListResponse)
async def list_activities(
    customer_id: Optional[str] = Query(None),
    type: Optional[ActivityType] = Query(None, description="Filter by activity type"),
    service: CatalogService = Depends(get_catalog_service),
) -> ActivityListResponse:
    """Ledger entries, most recent first."""
    activities = await service.list_activities(
        customer_id=customer_id,
        activity_type=type.value if type else None,
    )
    return ActivityListResponse(
        items=[ActivityOut.model_validate(a) for a in activities],
        total=len(activities),
    )


@router.post("", response_model=ActivityOut, status_code=status.HTTP_201_CREATED)
async def record_activity(
    payload: ActivityCreate,
    service: CatalogService = Depends(get_catalog_service),
) -> ActivityOut:
    activity = await service.record_activity(
        payload.customer_id,
        payload.product_id,
        payload.type,
        notes=payload.notes,
        date=payload.date,
    )
    return ActivityOut.model_validate(activity)
