"""Drawing Index - ingestion and search for technical drawing files.

This package extracts text and metadata from drawings (PDF, raster
images, DXF and DWG) and keeps them searchable through a ranked
full-text index that stays in lockstep with the record store.

The package is organized into the following modules:
- config: Application configuration and settings
- exceptions: Custom exception classes
- models: Database tables and record types
- database: Database management, the search index and repositories
- validators: Upstream file validation
- extractors: Format extractors, file name parser and metadata extractor
- search: Ranked, structured and fallback search
- processors: Synchronous, asynchronous and batch ingestion workflows
"""

import logging

__version__ = "1.0.0"
__description__ = "Technical drawing ingestion and full-text search"

from .config import Config
from .exceptions import (
    DatabaseError,
    DocumentNotFoundError,
    ExtractionError,
    NotFoundError,
    QuerySyntaxError,
    TagNotFoundError,
    ValidationError
)
from .models import Base, Document, DocumentDraft, DocumentRecord, Tag, TagRecord
from .database import DatabaseManager, DocumentRepository, SearchIndex, TagRepository
from .validators import FileValidator
from .extractors import (
    CadTextExtractor,
    ExtractionResult,
    MetadataExtractor,
    OcrTextExtractor,
    PdfTextExtractor,
    TextExtractorDispatch,
    parse_file_name
)
from .search import AdvancedCriteria, SearchFilters, SearchQueryEngine
from .processors import (
    AsyncBatchProcessor,
    AsyncDocumentProcessor,
    BatchResult,
    DocumentProcessor,
    FileUpload
)
from .indexer import DrawingIndexer

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Configuration
    "Config",
    # Exceptions
    "DatabaseError",
    "DocumentNotFoundError",
    "ExtractionError",
    "NotFoundError",
    "QuerySyntaxError",
    "TagNotFoundError",
    "ValidationError",
    # Models
    "Base",
    "Document",
    "DocumentDraft",
    "DocumentRecord",
    "Tag",
    "TagRecord",
    # Database
    "DatabaseManager",
    "DocumentRepository",
    "SearchIndex",
    "TagRepository",
    # Validators
    "FileValidator",
    # Extractors
    "CadTextExtractor",
    "ExtractionResult",
    "MetadataExtractor",
    "OcrTextExtractor",
    "PdfTextExtractor",
    "TextExtractorDispatch",
    "parse_file_name",
    # Search
    "AdvancedCriteria",
    "SearchFilters",
    "SearchQueryEngine",
    # Processors
    "AsyncBatchProcessor",
    "AsyncDocumentProcessor",
    "BatchResult",
    "DocumentProcessor",
    "FileUpload",
    # Application
    "DrawingIndexer"
]
