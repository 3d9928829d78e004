"""Document repository for the drawing index.

This module contains the DocumentRepository class, the primary record
store. Every write updates the document row and its search index entry
inside one transaction.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from ..models import (
    Document,
    DocumentDraft,
    DocumentRecord,
    TagRecord,
    METADATA_FIELDS,
    document_tags,
    utcnow
)
from ..exceptions import DocumentNotFoundError, ValidationError
from .database_manager import DatabaseManager
from .search_index import SearchIndex

__all__ = ["DocumentRepository"]

logger = logging.getLogger(__name__)


class DocumentRepository:
    """Repository pattern implementation for document persistence.

    This class encapsulates all database operations on document records
    and keeps the search index in lockstep with them: an insert, update
    or delete of a row and the matching index change commit together or
    not at all.

    Attributes:
        db_manager: DatabaseManager instance for database operations
        search_index: SearchIndex maintained alongside the documents
    """

    def __init__(self, db_manager: DatabaseManager,
                 search_index: Optional[SearchIndex] = None) -> None:
        """Initialize repository with database manager.

        Args:
            db_manager: DatabaseManager instance for database operations
            search_index: Index to maintain; a default SearchIndex if omitted
        """
        self.db_manager: DatabaseManager = db_manager
        self.search_index: SearchIndex = search_index or SearchIndex()

    def add(self, draft: DocumentDraft) -> DocumentRecord:
        """Persist a new document and its index entry.

        Args:
            draft: Fields assembled by the ingestion pipeline

        Returns:
            Record of the stored document with its assigned identifier

        Raises:
            DatabaseError: If the write fails; neither row nor index entry is kept
        """
        now = utcnow()
        with self.db_manager.transaction() as session:
            document = Document(
                file_name=draft.file_name,
                file_size=draft.file_size,
                file_type=draft.file_type,
                file_path=draft.file_path,
                drawing_number=draft.drawing_number,
                product_name=draft.product_name,
                part_name=draft.part_name,
                client_name=draft.client_name,
                extracted_text=draft.extracted_text,
                created_at=draft.created_at or now,
                updated_at=draft.updated_at or now,
                indexed_at=now
            )
            session.add(document)
            session.flush()
            self.search_index.add(session, document)
            record = DocumentRecord.from_model(document)

        logger.info("Indexed %s as document %d", record.file_name, record.id)
        return record

    def get(self, document_id: int) -> DocumentRecord:
        """Load one document with its tags.

        Raises:
            DocumentNotFoundError: If no document has this identifier
        """
        with self.db_manager.read_session() as session:
            document = self._load(session, document_id)
            return DocumentRecord.from_model(
                document, [TagRecord.from_model(tag) for tag in document.tags]
            )

    def update_metadata(self, document_id: int, fields: Dict[str, Any]) -> DocumentRecord:
        """Overwrite metadata fields and rebuild the index entry.

        Values are converted to strings and trimmed; ``None`` leaves a
        field unchanged. The index entry is replaced as a whole.

        Args:
            document_id: Identifier of the document to update
            fields: Mapping of metadata field names to new values

        Returns:
            Record of the updated document

        Raises:
            ValidationError: If a field is not an editable metadata field
            DocumentNotFoundError: If no document has this identifier
            DatabaseError: If the write fails
        """
        unknown = sorted(set(fields) - set(METADATA_FIELDS))
        if unknown:
            raise ValidationError(f"Unknown metadata fields: {', '.join(unknown)}")

        with self.db_manager.transaction() as session:
            document = self._load(session, document_id)
            for name, value in fields.items():
                if value is not None:
                    setattr(document, name, str(value).strip())
            document.indexed_at = utcnow()
            session.flush()
            self.search_index.replace(session, document)
            record = DocumentRecord.from_model(
                document, [TagRecord.from_model(tag) for tag in document.tags]
            )

        logger.info("Updated metadata of document %d", document_id)
        return record

    def delete(self, document_id: int) -> DocumentRecord:
        """Delete a document, its index entry and its tag associations.

        Returns:
            Record of the document as it was before deletion

        Raises:
            DocumentNotFoundError: If no document has this identifier
            DatabaseError: If the write fails
        """
        with self.db_manager.transaction() as session:
            document = self._load(session, document_id)
            record = DocumentRecord.from_model(
                document, [TagRecord.from_model(tag) for tag in document.tags]
            )
            self.search_index.remove(session, document_id)
            session.delete(document)

        logger.info("Deleted document %d (%s)", document_id, record.file_name)
        return record

    def clear(self) -> int:
        """Delete every document and index entry.

        Returns:
            Number of documents removed
        """
        with self.db_manager.transaction() as session:
            total = session.execute(select(func.count(Document.id))).scalar_one()
            session.execute(delete(document_tags))
            session.execute(delete(Document))
            self.search_index.clear(session)

        logger.info("Cleared %d documents", total)
        return total

    def stats(self) -> Dict[str, Any]:
        """Return the document count and the latest indexing time."""
        with self.db_manager.read_session() as session:
            total, last_indexed = session.execute(
                select(func.count(Document.id), func.max(Document.indexed_at))
            ).one()
            return {"total_files": total, "last_indexed": last_indexed}

    @staticmethod
    def _load(session: Session, document_id: int) -> Document:
        document = session.get(Document, document_id)
        if document is None:
            raise DocumentNotFoundError(f"Document {document_id} not found")
        return document
