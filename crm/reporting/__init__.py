"""
Reporting Module
"""
from .aggregations import CategorySales, ProductRevenue, ProductSales
from .engine import AggregationEngine, DashboardSummary
from .errors import DataSourceUnavailable, ReportingError
from .records import (
    ActivityRecord,
    ActivityType,
    CategoryRecord,
    CustomerRecord,
    ProductRecord,
)
from .sources import InMemoryDataSource, ReportingDataSource, SqlAlchemyDataSource

__all__ = [
    "AggregationEngine",
    "DashboardSummary",
    "ProductSales",
    "CategorySales",
    "ProductRevenue",
    "ReportingError",
    "DataSourceUnavailable",
    "ActivityRecord",
    "ActivityType",
    "CategoryRecord",
    "CustomerRecord",
    "ProductRecord",
    "ReportingDataSource",
    "SqlAlchemyDataSource",
    "InMemoryDataSource",
]
