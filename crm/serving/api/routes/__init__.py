"""
API Routes Module
"""
from .activities import router as activities_router
from .categories import router as categories_router
from .chat import router as chat_router
from .customers import router as customers_router
from .dashboard import router as dashboard_router
from .export import router as export_router
from .health import router as health_router
from .products import router as products_router

__all__ = [
    "health_router",
    "categories_router",
    "products_router",
    "customers_router",
    "activities_router",
    "dashboard_router",
    "export_router",
    "chat_router",
]
