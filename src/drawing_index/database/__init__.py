"""Database module for the drawing index.

This module contains database management classes including connection
management, the write transaction boundary, the full-text search index
and the repositories for documents and tags.
"""

from .database_manager import DatabaseManager
from .search_index import SearchIndex, build_match_expression, segment_text
from .document_repository import DocumentRepository
from .tag_repository import TagRepository

__all__ = [
    "DatabaseManager",
    "SearchIndex",
    "build_match_expression",
    "segment_text",
    "DocumentRepository",
    "TagRepository"
]
