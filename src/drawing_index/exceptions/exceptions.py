"""Custom exceptions for the drawing index.

This module contains all custom exception classes used throughout
the ingestion, indexing and search system.
"""

__all__ = [
    "ExtractionError",
    "ValidationError",
    "DatabaseError",
    "NotFoundError",
    "DocumentNotFoundError",
    "TagNotFoundError",
    "QuerySyntaxError",
]


class ExtractionError(Exception):
    """Exception raised when a format decoder cannot produce text.

    This exception never leaves the extractor layer: extractors report it
    as a failed extraction result and ingestion continues with
    filename-only metadata.
    """
    pass


class ValidationError(Exception):
    """Exception raised during input validation.

    This exception is raised when a file is rejected before reaching the
    pipeline (unsupported extension, oversize content) or when an update
    names an unknown metadata field.
    """
    pass


class DatabaseError(Exception):
    """Exception raised during database operations.

    This exception is raised when there are issues with database
    connectivity, queries, or data persistence. The failed transaction
    has always been rolled back when it is raised.
    """
    pass


class NotFoundError(Exception):
    """Exception raised when an operation addresses a missing record."""
    pass


class DocumentNotFoundError(NotFoundError):
    """Exception raised when no document exists for an identifier."""
    pass


class TagNotFoundError(NotFoundError):
    """Exception raised when no tag exists for an identifier."""
    pass


class QuerySyntaxError(Exception):
    """Exception raised when the ranked search engine rejects a query.

    Distinct from DatabaseError so that only malformed queries trigger the
    substring fallback scan; storage failures still propagate.
    """
    pass
