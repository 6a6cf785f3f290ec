"""
Data Ingestion Module
"""
from .seed_db import DemoDataSeeder

__all__ = ["DemoDataSeeder"]
