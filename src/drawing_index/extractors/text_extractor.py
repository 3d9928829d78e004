"""Text extractor dispatch for the drawing index.

This module contains the extraction contract shared by all format
extractors and the TextExtractorDispatch class that selects one by
format tag.
"""

import logging
from typing import Dict, Optional, Protocol

from ..config import Config
from .cad_extractor import CadTextExtractor
from .ocr_extractor import OcrTextExtractor
from .pdf_extractor import PdfTextExtractor
from .result import ExtractionResult

__all__ = ["TextExtractor", "TextExtractorDispatch"]

logger = logging.getLogger(__name__)


class TextExtractor(Protocol):
    """Capability implemented by every format extractor."""

    def extract(self, data: bytes) -> ExtractionResult:
        """Turn file content into raw text; failures are reported, not raised."""
        ...


class TextExtractorDispatch:
    """Selects the text extractor for a file by its format tag.

    The dispatch table is closed: PDF files go to the PDF text layer
    extractor, raster images to OCR, DXF drawings to the CAD text-entity
    extractor. DWG drawings map to no extractor because the binary format
    cannot be read; their metadata comes from the file name alone.

    Attributes:
        extractors: Mapping of format tag to extractor (None for DWG)
    """

    def __init__(
        self,
        pdf_extractor: Optional[TextExtractor] = None,
        ocr_extractor: Optional[TextExtractor] = None,
        cad_extractor: Optional[TextExtractor] = None
    ) -> None:
        """Initialize dispatch with the format extractors.

        Args:
            pdf_extractor: Extractor for ``pdf``; PdfTextExtractor by default
            ocr_extractor: Extractor for raster images; OcrTextExtractor by default
            cad_extractor: Extractor for ``dxf``; CadTextExtractor by default
        """
        ocr: TextExtractor = ocr_extractor or OcrTextExtractor()
        self.extractors: Dict[str, Optional[TextExtractor]] = {
            "pdf": pdf_extractor or PdfTextExtractor(),
            "dxf": cad_extractor or CadTextExtractor(),
            "dwg": None,
        }
        for tag in Config.IMAGE_FORMATS:
            self.extractors[tag] = ocr

    def extract(self, data: bytes, format_tag: str) -> ExtractionResult:
        """Extract raw text from file content.

        Never raises: an unknown tag, an unsupported format or any error
        inside an extractor yields an empty, failed result.

        Args:
            data: Raw file content
            format_tag: Format tag of the file (extension without the dot)

        Returns:
            ExtractionResult with the text and whether extraction succeeded
        """
        tag = (format_tag or "").lower().lstrip(".")
        if tag not in self.extractors:
            logger.warning("No extractor registered for format %r", format_tag)
            return ExtractionResult.failed()

        extractor = self.extractors[tag]
        if extractor is None:
            logger.info("Content extraction is not supported for %s files", tag)
            return ExtractionResult.failed()

        try:
            return extractor.extract(data)
        except Exception as e:
            logger.warning("Text extraction for %s content failed: %s", tag, e)
            return ExtractionResult.failed()
