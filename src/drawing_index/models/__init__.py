"""Data models for the drawing index.

This module contains the SQLAlchemy table definitions for documents and
tags, and the detached record types handed out to callers.
"""

from .tables import Base, Document, Tag, UTCDateTime, as_utc, document_tags, utcnow
from .records import DocumentDraft, DocumentRecord, TagRecord, METADATA_FIELDS

__all__ = [
    "Base",
    "Document",
    "Tag",
    "document_tags",
    "utcnow",
    "as_utc",
    "UTCDateTime",
    "DocumentDraft",
    "DocumentRecord",
    "TagRecord",
    "METADATA_FIELDS"
]
