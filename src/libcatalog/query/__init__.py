"""
Read-side queries over the catalog.
"""

from .aggregation import CatalogCounts, CatalogQueries, DependentSummary

__all__ = ["CatalogCounts", "CatalogQueries", "DependentSummary"]
