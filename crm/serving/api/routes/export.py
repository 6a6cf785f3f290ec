"""
Export API Endpoints

Downloads of the catalogs as CSV or Excel.
"""

from fastapi import APIRouter, Depends, Response

from crm.catalog import CatalogService
from crm.export import DataExporter, ExportFile, ExportFormat, collect_customers, collect_products
from crm.serving.api.dependencies import get_catalog_service, get_exporter

router = APIRouter()


def _download(export: ExportFile) -> Response:
    return Response(
        content=export.content,
        media_type=export.media_type,
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
    )


@router.get("/products.{fmt}")
async def export_products(
    fmt: ExportFormat,
    service: CatalogService = Depends(get_catalog_service),
    exporter: DataExporter = Depends(get_exporter),
) -> Response:
    products = collect_products(await service.list_products())
    return _download(exporter.export_products(products, fmt))


@router.get("/customers.{fmt}")
async def export_customers(
    fmt: ExportFormat,
    service: CatalogService = Depends(get_catalog_service),
    exporter: DataExporter = Depends(get_exporter),
) -> Response:
    customers = collect_customers(await service.list_customers())
    return _download(exporter.export_customers(customers, fmt))


@router.get("/report.{fmt}")
async def export_report(
    fmt: ExportFormat,
    service: CatalogService = Depends(get_catalog_service),
    exporter: DataExporter = Depends(get_exporter),
) -> Response:
    """Products and customers together, with summary rows."""
    products = collect_products(await service.list_products())
    customers = collect_customers(await service.list_customers())
    return _download(exporter.export_report(products, customers, fmt))
