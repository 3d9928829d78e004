"""Application wiring for the drawing index.

This module contains the DrawingIndexer class, which assembles the
database, repositories, processors and query engine behind one object.
"""

import logging
import os
from typing import Any, Dict, List, Optional, Union

from .config import Config
from .database import DatabaseManager, DocumentRepository, SearchIndex, TagRepository
from .extractors import MetadataExtractor, TextExtractorDispatch
from .models import DocumentRecord
from .processors import (
    AsyncBatchProcessor,
    AsyncDocumentProcessor,
    BatchResult,
    DocumentProcessor,
    ProgressCallback
)
from .search import AdvancedCriteria, SearchFilters, SearchQueryEngine

__all__ = ["DrawingIndexer"]

logger = logging.getLogger(__name__)


class DrawingIndexer:
    """Entry point for ingesting and searching drawings.

    Example:
        indexer = DrawingIndexer("sqlite:///drawings.db")
        record = indexer.ingest(data, "A-001_配管.pdf")
        hits = indexer.search("配管", SearchFilters(file_type="pdf"))

    Attributes:
        db_manager: Shared DatabaseManager
        documents: Document record store
        tags: Tag store
        processor: Synchronous ingestion workflow
        async_processor: Asynchronous ingestion workflow
        query_engine: Search over the store and index
    """

    def __init__(
        self,
        database_url: Optional[str] = None,
        dispatch: Optional[TextExtractorDispatch] = None,
        metadata_extractor: Optional[MetadataExtractor] = None,
        max_concurrent: int = Config.MAX_CONCURRENT_INGESTIONS
    ) -> None:
        """Wire up all components on one database.

        Args:
            database_url: SQLite URL; Config.DATABASE_URL by default
            dispatch: Text extractor dispatch to use instead of the default
            metadata_extractor: Metadata extractor to use instead of the default
            max_concurrent: Concurrency limit for batch ingestion
        """
        search_index = SearchIndex()
        self.db_manager = DatabaseManager(database_url or Config.DATABASE_URL)
        self.documents = DocumentRepository(self.db_manager, search_index)
        self.tags = TagRepository(self.db_manager)
        self.processor = DocumentProcessor(self.documents, dispatch, metadata_extractor)
        self.async_processor = AsyncDocumentProcessor(self.processor)
        self.query_engine = SearchQueryEngine(self.db_manager, search_index)
        self.max_concurrent = max_concurrent

    def ingest(self, file_bytes: bytes, file_name: str,
               format_tag: Optional[str] = None, storage_location: str = "") -> DocumentRecord:
        return self.processor.ingest(file_bytes, file_name, format_tag, storage_location)

    def ingest_path(self, path: Union[str, "os.PathLike[str]"]) -> DocumentRecord:
        return self.processor.ingest_path(path)

    async def ingest_batch(self, uploads: List[Any],
                           progress_callback: Optional[ProgressCallback] = None) -> List[BatchResult]:
        """Ingest several files concurrently.

        Args:
            uploads: Objects with ``name`` and ``read()``, such as FileUpload
            progress_callback: Receives a ProgressEvent per step

        Returns:
            One BatchResult per upload, in order
        """
        batch = AsyncBatchProcessor(self.async_processor, self.max_concurrent, progress_callback)
        return await batch.process_batch(uploads)

    def get(self, document_id: int) -> DocumentRecord:
        return self.documents.get(document_id)

    def search(self, query: Optional[str] = "", filters: Optional[SearchFilters] = None,
               sort_by: str = Config.DEFAULT_SORT_FIELD,
               sort_order: str = Config.DEFAULT_SORT_DIRECTION) -> List[DocumentRecord]:
        return self.query_engine.search(query, filters, sort_by, sort_order)

    def advanced_search(self, criteria: AdvancedCriteria) -> List[DocumentRecord]:
        return self.query_engine.advanced_search(criteria)

    def update_metadata(self, document_id: int, fields: Dict[str, Any]) -> DocumentRecord:
        return self.processor.update_metadata(document_id, fields)

    def delete(self, document_id: int) -> DocumentRecord:
        return self.processor.delete(document_id)

    def stats(self) -> Dict[str, Any]:
        return self.documents.stats()

    def clear(self) -> int:
        return self.documents.clear()
