"""Custom exceptions for the drawing index.

This module contains all custom exception classes used throughout
the ingestion, indexing and search system.
"""

from .exceptions import (
    ExtractionError,
    ValidationError,
    DatabaseError,
    NotFoundError,
    DocumentNotFoundError,
    TagNotFoundError,
    QuerySyntaxError
)

__all__ = [
    "ExtractionError",
    "ValidationError",
    "DatabaseError",
    "NotFoundError",
    "DocumentNotFoundError",
    "TagNotFoundError",
    "QuerySyntaxError"
]
