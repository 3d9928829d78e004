"""PDF text layer extraction."""

import io
import logging
from typing import Callable

import pdfplumber

from ..exceptions import ExtractionError
from .result import ExtractionResult

__all__ = ["PdfTextExtractor", "decode_pdf_text"]

logger = logging.getLogger(__name__)

PdfDecoder = Callable[[bytes], str]


def decode_pdf_text(pdf_bytes: bytes) -> str:
    """Read the embedded text layer of every page with pdfplumber.

    Args:
        pdf_bytes: Raw PDF file content as bytes

    Returns:
        Page texts joined with newlines; empty if no page carries text

    Raises:
        ExtractionError: If the document has no pages
    """
    with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
        if not pdf.pages:
            raise ExtractionError("PDF contains no pages")

        text_parts = []
        for page in pdf.pages:
            page_text = page.extract_text()
            if page_text:
                text_parts.append(page_text)

        return "\n".join(text_parts)


class PdfTextExtractor:
    """Extracts the embedded text layer of PDF documents.

    A readable PDF without a text layer (a scanned sheet) is a successful
    extraction with empty text. Damaged, encrypted or page-less documents
    are failures; text from pages read before an error is discarded.
    """

    def __init__(self, decoder: PdfDecoder = decode_pdf_text) -> None:
        self.decoder = decoder

    def extract(self, data: bytes) -> ExtractionResult:
        try:
            text = self.decoder(data)
        except Exception as e:
            logger.warning("PDF text extraction failed: %s", e)
            return ExtractionResult.failed()

        return ExtractionResult(text=text or "", ok=True)
