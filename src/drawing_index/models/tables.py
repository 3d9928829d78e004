"""Database models for the drawing index.

This module contains SQLAlchemy model definitions for indexed documents,
user-defined tags and their many-to-many association.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Table, Text
from sqlalchemy.types import TypeDecorator
from sqlalchemy.orm import declarative_base, relationship

__all__ = ["Base", "Document", "Tag", "document_tags", "utcnow", "as_utc", "UTCDateTime"]

Base = declarative_base()


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Return ``value`` as an aware UTC datetime; naive values are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class UTCDateTime(TypeDecorator):
    """DateTime stored as naive UTC and loaded back as aware UTC.

    SQLite keeps no zone, so values are converted to UTC before they are
    written.
    """
    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect: Any) -> Optional[datetime]:
        if value is None:
            return None
        return as_utc(value).replace(tzinfo=None)

    def process_result_value(self, value: Optional[datetime], dialect: Any) -> Optional[datetime]:
        return as_utc(value)


document_tags = Table(
    "document_tags",
    Base.metadata,
    Column("document_id", Integer, ForeignKey("documents.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
    Column("created_at", UTCDateTime(), default=utcnow),
)


class Document(Base):
    """SQLAlchemy model for one indexed drawing file.

    The primary record for the search index: every row has exactly one
    entry in the full-text table, keyed by the same identifier.

    Attributes:
        id: Store-assigned identifier, never reused (AUTOINCREMENT)
        file_name: Display name of the original file
        file_size: Size of the file content in bytes
        file_type: Format tag derived from the extension at ingestion
        file_path: Storage location of the file, may be empty
        drawing_number: Drawing number parsed from the file name
        product_name: Product name parsed from the file name
        part_name: Part name inferred from the extracted text
        client_name: Client name inferred from the extracted text
        extracted_text: Raw extraction output, stored as produced
        created_at: Creation time of the file
        updated_at: Last modification time of the file
        indexed_at: Time the index entry was last written
    """
    __tablename__ = "documents"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    file_name = Column(String(255), nullable=False)
    file_size = Column(Integer, nullable=False, default=0)
    file_type = Column(String(10), nullable=False, index=True)
    file_path = Column(String(1024), nullable=False, default="")
    drawing_number = Column(String(255), nullable=False, default="")
    product_name = Column(String(255), nullable=False, default="")
    part_name = Column(String(255), nullable=False, default="")
    client_name = Column(String(255), nullable=False, default="")
    extracted_text = Column(Text, nullable=False, default="")
    created_at = Column(UTCDateTime(), nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime(), nullable=False, default=utcnow)
    indexed_at = Column(UTCDateTime(), nullable=False, default=utcnow)

    tags = relationship(
        "Tag",
        secondary=document_tags,
        back_populates="documents",
        order_by="Tag.name",
    )


class Tag(Base):
    """SQLAlchemy model for a user-defined label, unique by name."""
    __tablename__ = "tags"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False, unique=True)
    created_at = Column(UTCDateTime(), nullable=False, default=utcnow)

    documents = relationship(
        "Document",
        secondary=document_tags,
        back_populates="tags",
    )
