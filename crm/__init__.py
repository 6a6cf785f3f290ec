"""
CRM Dashboard Service

Catalog management, activity ledger and dashboard reporting.
"""

__version__ = "1.0.0"
