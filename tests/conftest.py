"""Pytest configuration and fixtures for the drawing index test suite.

This module provides shared fixtures and test configuration for all test modules.
"""

from datetime import datetime, timezone
from typing import Callable, Dict, Optional

import pytest

from drawing_index import (
    DatabaseManager,
    DocumentDraft,
    DocumentProcessor,
    DocumentRepository,
    ExtractionResult,
    MetadataExtractor,
    SearchIndex,
    SearchQueryEngine,
    TagRepository,
    TextExtractorDispatch
)
from drawing_index.processors import AsyncDocumentProcessor


class EchoExtractor:
    """Extractor treating the file content itself as UTF-8 text."""

    def __init__(self) -> None:
        self.calls = 0

    def extract(self, data: bytes) -> ExtractionResult:
        self.calls += 1
        return ExtractionResult(text=data.decode("utf-8"), ok=True)


@pytest.fixture
def test_db_url(tmp_path) -> str:
    """URL of a fresh SQLite file database."""
    return f"sqlite:///{tmp_path / 'drawings.db'}"


@pytest.fixture
def test_db_manager(test_db_url: str) -> DatabaseManager:
    """Create a DatabaseManager instance with a temporary database."""
    return DatabaseManager(database_url=test_db_url)


@pytest.fixture
def search_index() -> SearchIndex:
    return SearchIndex()


@pytest.fixture
def document_repository(test_db_manager: DatabaseManager, search_index: SearchIndex) -> DocumentRepository:
    """Create a DocumentRepository with a test database."""
    return DocumentRepository(test_db_manager, search_index)


@pytest.fixture
def tag_repository(test_db_manager: DatabaseManager) -> TagRepository:
    return TagRepository(test_db_manager)


@pytest.fixture
def query_engine(test_db_manager: DatabaseManager, search_index: SearchIndex) -> SearchQueryEngine:
    return SearchQueryEngine(test_db_manager, search_index)


@pytest.fixture
def echo_extractor() -> EchoExtractor:
    return EchoExtractor()


@pytest.fixture
def echo_dispatch(echo_extractor: EchoExtractor) -> TextExtractorDispatch:
    """Dispatch whose PDF, OCR and DXF extractors return the content as text."""
    return TextExtractorDispatch(
        pdf_extractor=echo_extractor,
        ocr_extractor=echo_extractor,
        cad_extractor=echo_extractor
    )


@pytest.fixture
def document_processor(document_repository: DocumentRepository,
                       echo_dispatch: TextExtractorDispatch) -> DocumentProcessor:
    """Create a DocumentProcessor with echoing extractors."""
    return DocumentProcessor(document_repository, echo_dispatch, MetadataExtractor())


@pytest.fixture
def async_processor(document_processor: DocumentProcessor) -> AsyncDocumentProcessor:
    return AsyncDocumentProcessor(document_processor)


@pytest.fixture
def make_draft() -> Callable[..., DocumentDraft]:
    """Factory for document drafts with sensible defaults."""
    def factory(file_name: str = "A-001_配管.pdf", **fields: Optional[object]) -> DocumentDraft:
        values: Dict[str, object] = {
            "file_name": file_name,
            "file_size": 1024,
            "file_type": file_name.rsplit(".", 1)[-1].lower(),
            "drawing_number": "",
            "product_name": "",
        }
        values.update(fields)
        return DocumentDraft(**values)

    return factory


@pytest.fixture
def sample_drawing_text() -> str:
    """Title block text as extracted from a drawing."""
    return (
        "図面番号：A-001\n"
        "部品名：フランジ\n"
        "施主：山田建設\n"
        "設計 株式会社サンプル設計\n"
    )


@pytest.fixture
def fixed_time() -> datetime:
    return datetime(2024, 1, 15, 9, 30, tzinfo=timezone.utc)
