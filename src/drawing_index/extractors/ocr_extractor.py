"""Optical character recognition for raster drawings."""

import io
import logging
from typing import Callable, Optional

import pytesseract
from PIL import Image

from ..config import Config
from .result import ExtractionResult

__all__ = ["OcrTextExtractor", "tesseract_ocr"]

logger = logging.getLogger(__name__)

OcrEngine = Callable[[bytes, str], str]


def tesseract_ocr(image_bytes: bytes, language: str) -> str:
    """Recognise text in an image with Tesseract.

    Only the first frame of multi-frame images (TIFF) is read.
    """
    with Image.open(io.BytesIO(image_bytes)) as image:
        if image.mode not in ("RGB", "L"):
            image = image.convert("RGB")
        return pytesseract.image_to_string(image, lang=language)


class OcrTextExtractor:
    """Recognises text in raster images (png, jpg, jpeg, tiff, bmp).

    Args:
        engine: Callable taking image bytes and a language setting
        language: Recognition language, ``jpn+eng`` unless configured
    """

    def __init__(self, engine: OcrEngine = tesseract_ocr, language: Optional[str] = None) -> None:
        self.engine = engine
        self.language = language or Config.OCR_LANGUAGE

    def extract(self, data: bytes) -> ExtractionResult:
        try:
            text = self.engine(data, self.language)
        except Exception as e:
            logger.warning("OCR failed: %s", e)
            return ExtractionResult.failed()

        return ExtractionResult(text=text or "", ok=True)
