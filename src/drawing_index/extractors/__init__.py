"""Extractors module for the drawing index.

This module contains the format extractors (PDF text layer, OCR, DXF
text entities), their dispatch by format tag, the file name parser and
the regex metadata extractor.
"""

from .result import ExtractionResult
from .pdf_extractor import PdfTextExtractor
from .ocr_extractor import OcrTextExtractor
from .cad_extractor import CadEntity, CadTextExtractor
from .text_extractor import TextExtractor, TextExtractorDispatch
from .filename_parser import FileNameMetadata, parse_file_name
from .metadata_extractor import ExtractedMetadata, MetadataExtractor, PatternRule

__all__ = [
    "ExtractionResult",
    "PdfTextExtractor",
    "OcrTextExtractor",
    "CadEntity",
    "CadTextExtractor",
    "TextExtractor",
    "TextExtractorDispatch",
    "FileNameMetadata",
    "parse_file_name",
    "ExtractedMetadata",
    "MetadataExtractor",
    "PatternRule"
]
