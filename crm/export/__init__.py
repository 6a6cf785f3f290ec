"""
Export Module
"""
from .exporters import (
    CustomerPurchases,
    DataExporter,
    EmptyExportError,
    ExportFile,
    ExportFormat,
    collect_customers,
    collect_products,
    customers_frame,
    products_frame,
    report_frame,
    to_csv_bytes,
    to_xlsx_bytes,
)

__all__ = [
    "DataExporter",
    "ExportFile",
    "ExportFormat",
    "EmptyExportError",
    "CustomerPurchases",
    "collect_customers",
    "collect_products",
    "products_frame",
    "customers_frame",
    "report_frame",
    "to_csv_bytes",
    "to_xlsx_bytes",
]
