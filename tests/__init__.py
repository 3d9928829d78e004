"""Test package for the drawing index.

This package contains unit and integration tests for all components
of the drawing index including validators, extractors, the record
store, the search index, the query engine and the processors.

Test Structure:
- conftest.py: Shared fixtures and test configuration
- test_validators.py: Tests for the upstream file checks
- test_filename_parser.py: Tests for file name metadata
- test_metadata_extractor.py: Tests for regex metadata rules
- test_extractors.py: Tests for format extractors and dispatch
- test_database.py: Tests for the record and tag stores
- test_search_index.py: Tests for the full-text index
- test_query_engine.py: Tests for ranked, fallback and advanced search
- test_processors.py: Tests for synchronous ingestion
- test_async_processors.py: Tests for asynchronous and batch ingestion

Usage:
    Run all tests: pytest
    Run specific module: pytest tests/test_query_engine.py
"""

__version__ = "1.0.0"
