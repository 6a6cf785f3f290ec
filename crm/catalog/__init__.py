"""
Catalog Module
"""
from .service import CatalogService
from .validators import CatalogValidationError, NotFoundError, ValidationError

__all__ = [
    "CatalogService",
    "CatalogValidationError",
    "NotFoundError",
    "ValidationError",
]
