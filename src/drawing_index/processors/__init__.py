"""Processors module for the drawing index.

This module contains processing classes that orchestrate the ingestion
workflow including validation, text extraction, metadata inference and
persistence, synchronously, asynchronously and in batches.
"""

from .document_processor import DocumentProcessor
from .async_document_processor import AsyncDocumentProcessor
from .batch_processor import (
    AsyncBatchProcessor,
    BatchResult,
    FileUpload,
    ProgressCallback,
    ProgressEvent,
    ProgressEventType
)

__all__ = [
    "DocumentProcessor",
    "AsyncDocumentProcessor",
    "AsyncBatchProcessor",
    "BatchResult",
    "FileUpload",
    "ProgressCallback",
    "ProgressEvent",
    "ProgressEventType"
]
