"""Result type shared by the text extractors."""

from typing import NamedTuple

__all__ = ["ExtractionResult"]


class ExtractionResult(NamedTuple):
    """Raw text produced by an extractor and whether extraction succeeded."""
    text: str
    ok: bool

    @classmethod
    def failed(cls) -> "ExtractionResult":
        return cls(text="", ok=False)
