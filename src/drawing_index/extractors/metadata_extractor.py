"""Metadata extractor for the drawing index.

This module contains the MetadataExtractor class for regex-based
inference of the part name and client name from extracted text.
"""

import logging
import re
from typing import Iterable, List, NamedTuple, Optional, Pattern, Sequence, Tuple

from ..config import Config
from ..exceptions import ExtractionError

__all__ = ["PatternRule", "ExtractedMetadata", "MetadataExtractor"]

logger = logging.getLogger(__name__)


class PatternRule(NamedTuple):
    """A labelled pattern whose first capture group is the field value."""
    label: str
    pattern: Pattern[str]


class ExtractedMetadata(NamedTuple):
    part_name: str
    client_name: str


def compile_rules(rules: Iterable[Tuple[str, str]]) -> List[PatternRule]:
    """Compile ``(label, pattern)`` pairs, keeping their order.

    Raises:
        ExtractionError: If a pattern does not compile or has no capture group
    """
    compiled: List[PatternRule] = []
    for label, pattern in rules:
        try:
            regex = re.compile(pattern)
        except re.error as e:
            raise ExtractionError(f"Regex compilation error in rule {label!r}: {str(e)}")
        if regex.groups < 1:
            raise ExtractionError(f"Rule {label!r} has no capture group")
        compiled.append(PatternRule(label, regex))
    return compiled


class MetadataExtractor:
    """Regex-based extractor for the part name and client name.

    Each field has a priority-ordered list of rules. Rules are tried in
    order and the first one producing a non-empty capture wins; later
    rules are never consulted. Client rules end with unlabelled
    legal-entity suffix lines (``株式会社`` etc.), which also match
    unrelated text mentioning a company.

    Attributes:
        part_rules: Ordered rules for the part name
        client_rules: Ordered rules for the client name
        max_length: Length matched values are truncated to
    """

    def __init__(
        self,
        part_rules: Optional[Sequence[Tuple[str, str]]] = None,
        client_rules: Optional[Sequence[Tuple[str, str]]] = None,
        max_length: int = Config.METADATA_MAX_LENGTH
    ) -> None:
        """Initialize extractor with rule lists.

        Args:
            part_rules: ``(label, pattern)`` pairs; Config.PART_NAME_RULES by default
            client_rules: ``(label, pattern)`` pairs; Config.CLIENT_NAME_RULES by default
            max_length: Maximum length of an extracted value

        Raises:
            ExtractionError: If a rule does not compile
        """
        self.part_rules: List[PatternRule] = compile_rules(
            Config.PART_NAME_RULES if part_rules is None else part_rules
        )
        self.client_rules: List[PatternRule] = compile_rules(
            Config.CLIENT_NAME_RULES if client_rules is None else client_rules
        )
        self.max_length = max_length

    def extract(self, text: str) -> ExtractedMetadata:
        """Infer the part name and client name from raw text.

        Args:
            text: Raw extracted text, possibly empty

        Returns:
            ExtractedMetadata; a field without a matching rule is empty
        """
        if not text or not text.strip():
            return ExtractedMetadata(part_name="", client_name="")

        return ExtractedMetadata(
            part_name=self.first_match(self.part_rules, text),
            client_name=self.first_match(self.client_rules, text)
        )

    def first_match(self, rules: Sequence[PatternRule], text: str) -> str:
        """Return the trimmed, truncated capture of the first matching rule."""
        for rule in rules:
            for match in rule.pattern.finditer(text):
                value = (match.group(1) or "").strip()
                if value:
                    logger.debug("Rule %s matched %r", rule.label, value)
                    return value[:self.max_length]
        return ""
