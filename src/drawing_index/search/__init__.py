"""Search module for the drawing index.

This module contains the query engine for ranked, structured and
fallback searches.
"""

from .query_engine import AdvancedCriteria, SearchFilters, SearchQueryEngine

__all__ = ["AdvancedCriteria", "SearchFilters", "SearchQueryEngine"]
