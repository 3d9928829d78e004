"""Tag repository for the drawing index.

This module contains the TagRepository class for user-defined labels and
their many-to-many association with documents.
"""

from typing import List

from sqlalchemy import select

from ..models import Document, Tag, TagRecord
from ..exceptions import DocumentNotFoundError, TagNotFoundError, ValidationError
from .database_manager import DatabaseManager

__all__ = ["TagRepository"]


class TagRepository:
    """Repository for tags and document-tag assignments.

    Attributes:
        db_manager: DatabaseManager instance for database operations
    """

    def __init__(self, db_manager: DatabaseManager) -> None:
        self.db_manager: DatabaseManager = db_manager

    def create_tag(self, name: str) -> TagRecord:
        """Create a tag with a unique, trimmed name.

        Raises:
            ValidationError: If the name is empty or already taken
        """
        trimmed = (name or "").strip()
        if not trimmed:
            raise ValidationError("Tag name must not be empty")

        with self.db_manager.transaction() as session:
            existing = session.execute(select(Tag).where(Tag.name == trimmed)).scalar_one_or_none()
            if existing is not None:
                raise ValidationError(f"Tag already exists: {trimmed}")
            tag = Tag(name=trimmed)
            session.add(tag)
            session.flush()
            return TagRecord.from_model(tag)

    def list_tags(self) -> List[TagRecord]:
        with self.db_manager.read_session() as session:
            tags = session.execute(select(Tag).order_by(Tag.name.asc())).scalars().all()
            return [TagRecord.from_model(tag) for tag in tags]

    def delete_tag(self, tag_id: int) -> None:
        """Delete a tag together with all of its document assignments.

        Raises:
            TagNotFoundError: If no tag has this identifier
        """
        with self.db_manager.transaction() as session:
            tag = session.get(Tag, tag_id)
            if tag is None:
                raise TagNotFoundError(f"Tag {tag_id} not found")
            session.delete(tag)

    def assign(self, document_id: int, tag_id: int) -> None:
        """Attach a tag to a document; attaching twice is a no-op.

        Raises:
            DocumentNotFoundError: If the document does not exist
            TagNotFoundError: If the tag does not exist
        """
        with self.db_manager.transaction() as session:
            document, tag = self._load_pair(session, document_id, tag_id)
            if tag not in document.tags:
                document.tags.append(tag)

    def unassign(self, document_id: int, tag_id: int) -> None:
        """Detach a tag from a document; detaching an absent tag is a no-op."""
        with self.db_manager.transaction() as session:
            document, tag = self._load_pair(session, document_id, tag_id)
            if tag in document.tags:
                document.tags.remove(tag)

    def tags_for_document(self, document_id: int) -> List[TagRecord]:
        """Return the tags of a document ordered by name.

        Raises:
            DocumentNotFoundError: If the document does not exist
        """
        with self.db_manager.read_session() as session:
            document = session.get(Document, document_id)
            if document is None:
                raise DocumentNotFoundError(f"Document {document_id} not found")
            return [TagRecord.from_model(tag) for tag in document.tags]

    @staticmethod
    def _load_pair(session, document_id: int, tag_id: int):
        document = session.get(Document, document_id)
        if document is None:
            raise DocumentNotFoundError(f"Document {document_id} not found")
        tag = session.get(Tag, tag_id)
        if tag is None:
            raise TagNotFoundError(f"Tag {tag_id} not found")
        return document, tag
