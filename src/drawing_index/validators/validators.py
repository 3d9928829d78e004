"""Validators module for the drawing index.

This module contains the upstream file checks applied before a file
enters the ingestion pipeline: the format allow-list and the size limit.
"""

from pathlib import PurePath

from ..config import Config
from ..exceptions import ValidationError

__all__ = ["FileValidator"]


class FileValidator:
    """Validates incoming drawing files.

    This class provides static methods for file validation including the
    extension allow-list and file size checks. All validation methods
    raise ValidationError for rejected files.
    """

    @staticmethod
    def format_tag(filename: str) -> str:
        """Derive the format tag of a file from its extension.

        Args:
            filename: Original file name

        Returns:
            Lower-cased extension without the dot, empty if there is none
        """
        return PurePath(filename).suffix.lower().lstrip(".")

    @staticmethod
    def validate_file(file_bytes: bytes, filename: str) -> str:
        """Perform all intake checks on a file.

        Args:
            file_bytes: Raw file content as bytes
            filename: Original filename for format detection and error reporting

        Returns:
            The file's format tag

        Raises:
            ValidationError: If any validation check fails
        """
        tag = FileValidator._validate_file_extension(filename)
        FileValidator._validate_file_size(file_bytes, filename)
        return tag

    @staticmethod
    def _validate_file_size(file_bytes: bytes, filename: str) -> None:
        """Validate file size within the upload limit.

        Raises:
            ValidationError: If the file is larger than Config.MAX_FILE_SIZE
        """
        if len(file_bytes) > Config.MAX_FILE_SIZE:
            raise ValidationError(
                f"File {filename} is too large. Maximum size: {Config.MAX_FILE_SIZE // (1024*1024)}MB"
            )

    @staticmethod
    def _validate_file_extension(filename: str) -> str:
        """Validate that the extension is one of the supported formats.

        Raises:
            ValidationError: If the extension is not in Config.ALLOWED_FORMATS
        """
        tag = FileValidator.format_tag(filename)
        if tag not in Config.ALLOWED_FORMATS:
            raise ValidationError(
                f"Unsupported file format: {PurePath(filename).suffix or '(none)'}. "
                f"Allowed: {', '.join(Config.ALLOWED_FORMATS)}"
            )
        return tag
