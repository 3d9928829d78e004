"""File name parsing for the drawing index.

Drawings are conventionally named ``<drawing number>_<product name>.<ext>``.
The parser derives both fields from the name alone, so even files whose
content cannot be read get a usable drawing number.
"""

import os
from typing import NamedTuple, Optional

from ..config import Config

__all__ = ["FileNameMetadata", "parse_file_name"]


class FileNameMetadata(NamedTuple):
    drawing_number: str
    product_name: str


def parse_file_name(file_name: str, delimiter: Optional[str] = None) -> FileNameMetadata:
    """Split a file name into drawing number and product name.

    The extension is removed and the base name split on the delimiter.
    The first segment is the drawing number; the remaining segments,
    rejoined with the delimiter, are the product name. A name without the
    delimiter is all drawing number. Never raises.

    Args:
        file_name: File name, with or without an extension
        delimiter: Segment delimiter, Config.FILENAME_DELIMITER by default

    Returns:
        FileNameMetadata with both values trimmed
    """
    delimiter = delimiter or Config.FILENAME_DELIMITER
    base_name = os.path.splitext(os.path.basename(file_name or ""))[0]

    drawing_number, _, product_name = base_name.partition(delimiter)
    return FileNameMetadata(
        drawing_number=drawing_number.strip(),
        product_name=product_name.strip()
    )
