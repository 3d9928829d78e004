"""Asynchronous document processor for the drawing index.

This module contains the AsyncDocumentProcessor class, which runs the
ingestion workflow without blocking the event loop. Extraction runs in
a worker thread so slow OCR or PDF decoding does not hold up other
ingestions.
"""

import asyncio
import os
from datetime import datetime
from typing import Optional, Union

from ..models import DocumentDraft, DocumentRecord
from .document_processor import DocumentProcessor

__all__ = ["AsyncDocumentProcessor"]


class AsyncDocumentProcessor:
    """Asynchronous wrapper around DocumentProcessor.

    Cancelling ``ingest_async`` while extraction is running leaves the
    store untouched. Once the store write has started it is shielded: the
    caller still sees the cancellation, but the write completes or rolls
    back as a whole.

    Attributes:
        processor: Synchronous processor doing the actual work
    """

    def __init__(self, processor: DocumentProcessor) -> None:
        self.processor: DocumentProcessor = processor

    async def prepare_async(
        self,
        file_bytes: bytes,
        file_name: str,
        format_tag: Optional[str] = None,
        storage_location: str = "",
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None
    ) -> DocumentDraft:
        """Run validation and extraction in a worker thread.

        Raises:
            ValidationError: If the file is rejected upstream
        """
        return await asyncio.to_thread(
            self.processor.prepare,
            file_bytes, file_name, format_tag, storage_location, created_at, updated_at
        )

    async def save_async(self, draft: DocumentDraft) -> DocumentRecord:
        """Store a draft; the write cannot be interrupted by cancellation.

        Raises:
            DatabaseError: If the store write fails
        """
        return await asyncio.shield(asyncio.to_thread(self.processor.repository.add, draft))

    async def ingest_async(
        self,
        file_bytes: bytes,
        file_name: str,
        format_tag: Optional[str] = None,
        storage_location: str = "",
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None
    ) -> DocumentRecord:
        """Index one file asynchronously.

        Args:
            file_bytes: Raw file content
            file_name: Original file name
            format_tag: Format tag claimed by the caller; the extension wins
            storage_location: Where the file is kept
            created_at: Creation time of the file, if known
            updated_at: Last modification time of the file, if known

        Returns:
            Record of the stored document

        Raises:
            ValidationError: If the file is rejected upstream
            DatabaseError: If the store write fails
        """
        draft = await self.prepare_async(
            file_bytes, file_name, format_tag, storage_location, created_at, updated_at
        )
        return await self.save_async(draft)

    async def ingest_path_async(self, path: Union[str, "os.PathLike[str]"]) -> DocumentRecord:
        """Index a file from its storage location asynchronously."""
        arguments = await asyncio.to_thread(self.processor.read_path, path)
        return await self.ingest_async(**arguments)
