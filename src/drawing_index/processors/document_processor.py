"""Document processor for the drawing index.

This module contains the DocumentProcessor class that orchestrates the
ingestion workflow: validation, file name parsing, text extraction,
metadata inference and the final write to the record store.
"""

import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ..database import DocumentRepository
from ..exceptions import ValidationError
from ..extractors import MetadataExtractor, TextExtractorDispatch, parse_file_name
from ..models import DocumentDraft, DocumentRecord
from ..validators import FileValidator

__all__ = ["DocumentProcessor"]

logger = logging.getLogger(__name__)


class DocumentProcessor:
    """Service class for drawing ingestion.

    Everything before the final write is side-effect free: ``prepare``
    builds a DocumentDraft in memory and only ``ingest`` touches the store.
    Extraction failures never fail an ingestion; the document is stored
    with whatever the file name provides.

    Attributes:
        repository: Record store for documents
        dispatch: Text extractor dispatch by format tag
        metadata_extractor: Regex extractor for part and client names
        validator: Upstream file checks
    """

    def __init__(
        self,
        repository: DocumentRepository,
        dispatch: Optional[TextExtractorDispatch] = None,
        metadata_extractor: Optional[MetadataExtractor] = None,
        validator: Optional[FileValidator] = None
    ) -> None:
        """Initialize processor with required dependencies.

        Args:
            repository: Repository instance for data persistence
            dispatch: Text extractor dispatch; the default extractors if omitted
            metadata_extractor: Metadata extractor; the configured rules if omitted
            validator: File validator
        """
        self.repository: DocumentRepository = repository
        self.dispatch: TextExtractorDispatch = dispatch or TextExtractorDispatch()
        self.metadata_extractor: MetadataExtractor = metadata_extractor or MetadataExtractor()
        self.validator: FileValidator = validator or FileValidator()

    def prepare(
        self,
        file_bytes: bytes,
        file_name: str,
        format_tag: Optional[str] = None,
        storage_location: str = "",
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None
    ) -> DocumentDraft:
        """Run the extraction pipeline for one file without storing anything.

        Args:
            file_bytes: Raw file content
            file_name: Original file name; its extension decides the format
            format_tag: Format tag claimed by the caller; the extension wins
            storage_location: Where the file is kept
            created_at: Creation time of the file, if known
            updated_at: Last modification time of the file, if known

        Returns:
            DocumentDraft ready to be stored

        Raises:
            ValidationError: If the file is rejected upstream
        """
        tag = self.validator.validate_file(file_bytes, file_name)
        if format_tag is not None and format_tag.lower().lstrip(".") != tag:
            logger.warning(
                "Format tag %r does not match the extension of %s; using %r", format_tag, file_name, tag
            )

        name_fields = parse_file_name(file_name)
        extraction = self.dispatch.extract(file_bytes, tag)
        if not extraction.ok:
            logger.info("Indexing %s with file name metadata only", file_name)
        metadata = self.metadata_extractor.extract(extraction.text)

        return DocumentDraft(
            file_name=file_name,
            file_size=len(file_bytes),
            file_type=tag,
            file_path=storage_location,
            drawing_number=name_fields.drawing_number,
            product_name=name_fields.product_name,
            part_name=metadata.part_name,
            client_name=metadata.client_name,
            extracted_text=extraction.text,
            extraction_ok=extraction.ok,
            created_at=created_at,
            updated_at=updated_at
        )

    def ingest(
        self,
        file_bytes: bytes,
        file_name: str,
        format_tag: Optional[str] = None,
        storage_location: str = ""
    ) -> DocumentRecord:
        """Index one file.

        Returns:
            Record of the stored document

        Raises:
            ValidationError: If the file is rejected upstream
            DatabaseError: If the store write fails
        """
        draft = self.prepare(file_bytes, file_name, format_tag, storage_location)
        return self.repository.add(draft)

    def read_path(self, path: Union[str, "os.PathLike[str]"]) -> Dict[str, Any]:
        """Read a stored file and its timestamps.

        Returns:
            Keyword arguments for ``prepare``

        Raises:
            ValidationError: If the file cannot be read
        """
        file_path = Path(path)
        try:
            file_bytes = file_path.read_bytes()
            stat = file_path.stat()
        except OSError as e:
            raise ValidationError(f"Cannot read {file_path}: {str(e)}")

        created = getattr(stat, "st_birthtime", stat.st_ctime)
        return {
            "file_bytes": file_bytes,
            "file_name": file_path.name,
            "storage_location": str(file_path),
            "created_at": datetime.fromtimestamp(created, tz=timezone.utc),
            "updated_at": datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
        }

    def ingest_path(self, path: Union[str, "os.PathLike[str]"]) -> DocumentRecord:
        """Index a file from its storage location.

        The location is recorded on the document, and the creation and
        modification times come from the file system.
        """
        draft = self.prepare(**self.read_path(path))
        return self.repository.add(draft)

    def update_metadata(self, document_id: int, fields: Dict[str, Any]) -> DocumentRecord:
        return self.repository.update_metadata(document_id, fields)

    def delete(self, document_id: int) -> DocumentRecord:
        return self.repository.delete(document_id)
