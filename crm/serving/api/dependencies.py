"""
Shared FastAPI dependencies.
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from crm.catalog import CatalogService
from crm.chat import WebhookChatClient
from crm.config import get_settings
from crm.database.connection import get_db_dependency, get_session_factory
from crm.export import DataExporter
from crm.reporting import AggregationEngine, SqlAlchemyDataSource


async def get_catalog_service(db: AsyncSession = Depends(get_db_dependency)) -> CatalogService:
    return CatalogService(db)


def get_aggregation_engine() -> AggregationEngine:
    """A fresh engine per request; the data source opens its own sessions."""
    return AggregationEngine(SqlAlchemyDataSource(get_session_factory()))


def get_exporter() -> DataExporter:
    settings = get_settings()
    return DataExporter(
        date_format=settings.export.date_format,
        csv_bom=settings.export.csv_bom,
    )


def get_chat_client(request: Request) -> WebhookChatClient:
    return request.app.state.chat_client
