"""Asynchronous batch processor for the drawing index.

This module contains the AsyncBatchProcessor class that ingests many
files concurrently, reporting progress per file and isolating failures
so one bad file never aborts the rest of the batch.
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, Set

from ..config import Config
from ..models import DocumentRecord
from .async_document_processor import AsyncDocumentProcessor

__all__ = [
    "AsyncBatchProcessor",
    "BatchResult",
    "FileUpload",
    "ProgressEvent",
    "ProgressEventType",
    "ProgressCallback"
]

logger = logging.getLogger(__name__)


class ProgressEventType(Enum):
    """Types of progress events."""
    BATCH_STARTED = "batch_started"
    FILE_STARTED = "file_started"
    FILE_COMPLETED = "file_completed"
    FILE_FAILED = "file_failed"
    FILE_CANCELLED = "file_cancelled"
    BATCH_COMPLETED = "batch_completed"


@dataclass
class ProgressEvent:
    """Progress event data structure."""
    event_type: ProgressEventType
    file_name: Optional[str] = None
    current_file: int = 0
    total_files: int = 0
    message: str = ""
    error: Optional[str] = None


@dataclass
class FileUpload:
    """File content handed to a batch, with where it is stored."""
    name: str
    content: bytes
    storage_location: str = ""

    def read(self) -> bytes:
        return self.content


@dataclass
class BatchResult:
    """Outcome of one file of a batch."""
    file_name: str
    success: bool
    document: Optional[DocumentRecord] = None
    db_id: Optional[int] = None
    error: Optional[str] = None
    cancelled: bool = False


class ProgressCallback(Protocol):
    """Protocol for progress callback functions."""
    def __call__(self, event: ProgressEvent) -> None:
        """Handle progress event."""
        ...


class AsyncBatchProcessor:
    """Asynchronously ingests multiple files.

    At most ``max_concurrent`` files are processed at a time. A file that
    is still waiting or extracting can be cancelled by name; nothing is
    stored for it.

    Attributes:
        processor: AsyncDocumentProcessor for individual files
        max_concurrent: Maximum number of concurrent ingestions
        progress_callback: Optional callback function for progress updates
    """

    def __init__(
        self,
        processor: AsyncDocumentProcessor,
        max_concurrent: int = Config.MAX_CONCURRENT_INGESTIONS,
        progress_callback: Optional[ProgressCallback] = None
    ) -> None:
        """Initialize async batch processor.

        Args:
            processor: AsyncDocumentProcessor instance for file processing
            max_concurrent: Maximum number of concurrent operations
            progress_callback: Optional callback for progress updates
        """
        self.processor: AsyncDocumentProcessor = processor
        self.max_concurrent: int = max_concurrent
        self.progress_callback: Optional[ProgressCallback] = progress_callback
        self._semaphore: asyncio.Semaphore = asyncio.Semaphore(max_concurrent)
        self._pending: Dict[str, List["asyncio.Task[BatchResult]"]] = {}
        self._cancel_requested: Set[str] = set()

    def _emit_progress(self, event: ProgressEvent) -> None:
        """Emit progress event to callback if available."""
        if self.progress_callback:
            self.progress_callback(event)

    def cancel(self, file_name: str) -> bool:
        """Cancel the pending ingestion of a file in the running batch.

        Args:
            file_name: Name of the file as given in the batch

        Returns:
            True if an unfinished ingestion was cancelled
        """
        tasks = [task for task in self._pending.get(file_name, []) if not task.done()]
        if not tasks:
            return False

        self._cancel_requested.add(file_name)
        for task in tasks:
            task.cancel()
        logger.info("Cancelled ingestion of %s", file_name)
        return True

    async def _read_file_async(self, upload: Any) -> bytes:
        """Read upload content, off the event loop unless it reads asynchronously."""
        aread = getattr(upload, "aread", None)
        if aread is not None and inspect.iscoroutinefunction(aread):
            return await aread()
        return await asyncio.to_thread(upload.read)

    async def _process_single_file(self, upload: Any, file_index: int, total_files: int) -> BatchResult:
        """Ingest a single file of the batch.

        Returns:
            BatchResult with the stored record, the error or the cancellation
        """
        file_name = upload.name
        try:
            async with self._semaphore:
                self._emit_progress(ProgressEvent(
                    event_type=ProgressEventType.FILE_STARTED,
                    file_name=file_name,
                    current_file=file_index + 1,
                    total_files=total_files,
                    message=f"Starting ingestion of {file_name}"
                ))

                file_bytes = await self._read_file_async(upload)
                document = await self.processor.ingest_async(
                    file_bytes,
                    file_name,
                    storage_location=getattr(upload, "storage_location", "")
                )

        except asyncio.CancelledError:
            if file_name not in self._cancel_requested:
                raise
            self._emit_progress(ProgressEvent(
                event_type=ProgressEventType.FILE_CANCELLED,
                file_name=file_name,
                current_file=file_index + 1,
                total_files=total_files,
                message=f"Cancelled ingestion of {file_name}"
            ))
            return BatchResult(file_name=file_name, success=False, error="Cancelled", cancelled=True)

        except Exception as e:
            error_msg = str(e)
            logger.warning("Ingestion of %s failed: %s", file_name, error_msg)
            self._emit_progress(ProgressEvent(
                event_type=ProgressEventType.FILE_FAILED,
                file_name=file_name,
                current_file=file_index + 1,
                total_files=total_files,
                message=f"Failed to ingest {file_name}",
                error=error_msg
            ))
            return BatchResult(file_name=file_name, success=False, error=error_msg)

        self._emit_progress(ProgressEvent(
            event_type=ProgressEventType.FILE_COMPLETED,
            file_name=file_name,
            current_file=file_index + 1,
            total_files=total_files,
            message=f"Indexed {file_name}"
        ))
        return BatchResult(file_name=file_name, success=True, document=document, db_id=document.id)

    async def process_batch(self, uploads: List[Any]) -> List[BatchResult]:
        """Ingest multiple files concurrently.

        Processing continues when individual files fail; every file gets a
        result, in the order the files were given.

        Args:
            uploads: Objects with a ``name`` and a ``read()`` (or async
                ``aread()``) method, such as FileUpload

        Returns:
            List of BatchResult objects, one per file
        """
        total_files = len(uploads)

        self._emit_progress(ProgressEvent(
            event_type=ProgressEventType.BATCH_STARTED,
            total_files=total_files,
            message=f"Starting batch ingestion of {total_files} files"
        ))

        tasks = []
        for index, upload in enumerate(uploads):
            task = asyncio.create_task(self._process_single_file(upload, index, total_files))
            self._pending.setdefault(upload.name, []).append(task)
            tasks.append(task)

        try:
            batch_results = await asyncio.gather(*tasks, return_exceptions=True)
        finally:
            for upload, task in zip(uploads, tasks):
                siblings = self._pending.get(upload.name, [])
                if task in siblings:
                    siblings.remove(task)
                if not siblings:
                    self._pending.pop(upload.name, None)
                    self._cancel_requested.discard(upload.name)

        final_results = []
        for upload, result in zip(uploads, batch_results):
            if isinstance(result, BaseException):
                final_results.append(BatchResult(
                    file_name=upload.name,
                    success=False,
                    error=str(result) or type(result).__name__,
                    cancelled=isinstance(result, asyncio.CancelledError)
                ))
            else:
                final_results.append(result)

        successful_count = sum(1 for r in final_results if r.success)
        cancelled_count = sum(1 for r in final_results if r.cancelled)
        failed_count = len(final_results) - successful_count - cancelled_count

        self._emit_progress(ProgressEvent(
            event_type=ProgressEventType.BATCH_COMPLETED,
            total_files=total_files,
            message=(
                f"Batch ingestion completed. {successful_count} successful, "
                f"{failed_count} failed, {cancelled_count} cancelled"
            )
        ))

        return final_results
