"""Configuration module for the drawing index.

This module contains all configuration parameters including
database settings, the allowed file formats, OCR settings,
metadata pattern rules and search defaults.
"""

import os
from typing import Tuple

from dotenv import load_dotenv

load_dotenv()

__all__ = ["Config"]


class Config:
    """Configuration class containing application settings and constants.

    Operational values are read from the environment (a ``.env`` file is
    honoured); everything else is a fixed constant of the indexing pipeline.
    """

    # Database configuration
    DATABASE_URL: str = os.getenv("DRAWING_INDEX_DATABASE_URL", "sqlite:///drawings.db")

    # File intake limits
    MAX_FILE_SIZE: int = 50 * 1024 * 1024  # 50MB maximum file size

    # Closed set of format tags accepted for ingestion
    ALLOWED_FORMATS: Tuple[str, ...] = ("pdf", "jpg", "jpeg", "png", "tiff", "tif", "dwg", "dxf")
    IMAGE_FORMATS: Tuple[str, ...] = ("jpg", "jpeg", "png", "tiff", "tif")

    # OCR engine language hint (tesseract model names)
    OCR_LANGUAGE: str = os.getenv("DRAWING_INDEX_OCR_LANGUAGE", "jpn+eng")

    # Batch ingestion
    MAX_CONCURRENT_INGESTIONS: int = int(os.getenv("DRAWING_INDEX_MAX_CONCURRENCY", "5"))

    # "<drawing number>_<product name>.<ext>"
    FILENAME_DELIMITER: str = "_"

    METADATA_MAX_LENGTH: int = 100

    # Ordered (label, pattern) rules; the first rule yielding a non-empty
    # capture wins and later rules are not consulted.
    PART_NAME_RULES: Tuple[Tuple[str, str], ...] = (
        ("部品名", r"部品名[：:]\s*([^\n\r]+)"),
        ("部品", r"部品[：:]\s*([^\n\r]+)"),
        ("品名", r"品名[：:]\s*([^\n\r]+)"),
        ("PART", r"(?i)PART[：:]\s*([^\n\r]+)"),
        ("COMPONENT", r"(?i)COMPONENT[：:]\s*([^\n\r]+)"),
    )

    CLIENT_NAME_RULES: Tuple[Tuple[str, str], ...] = (
        ("施主", r"施主[：:]\s*([^\n\r]+)"),
        ("発注者", r"発注者[：:]\s*([^\n\r]+)"),
        ("クライアント", r"クライアント[：:]\s*([^\n\r]+)"),
        ("CLIENT", r"(?i)CLIENT[：:]\s*([^\n\r]+)"),
        ("OWNER", r"(?i)OWNER[：:]\s*([^\n\r]+)"),
        # Unlabelled company lines. Known to match unrelated body text.
        ("株式会社", r"([^\n\r]*株式会社[^\n\r]*)"),
        ("有限会社", r"([^\n\r]*有限会社[^\n\r]*)"),
        ("合同会社", r"([^\n\r]*合同会社[^\n\r]*)"),
    )

    # Search configuration
    SEARCH_RESULT_LIMIT: int = 100
    SORT_FIELDS: Tuple[str, ...] = (
        "id",
        "file_name",
        "file_size",
        "file_type",
        "drawing_number",
        "created_at",
        "updated_at",
        "indexed_at",
        "rank",
    )
    DEFAULT_SORT_FIELD: str = "id"
    DEFAULT_SORT_DIRECTION: str = "desc"
