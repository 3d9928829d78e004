"""Text entity extraction for DXF drawings.

ASCII DXF files are a flat sequence of (group code, value) line pairs.
Drawing entities live in the ENTITIES section; each starts with a code 0
pair naming its kind. TEXT carries its string in code 1, MTEXT splits long
strings over code 3 chunks followed by a final code 1 and embeds
formatting codes that are stripped here.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Tuple

from ..exceptions import ExtractionError
from .result import ExtractionResult

__all__ = [
    "CadEntity",
    "CadTextExtractor",
    "decode_dxf_entities",
    "plain_mtext",
    "TEXT_ENTITY_KINDS"
]

logger = logging.getLogger(__name__)

TEXT_ENTITY_KINDS = frozenset({"TEXT", "MTEXT"})

_BINARY_SENTINEL = b"AutoCAD Binary DXF"
_CODEPAGE = re.compile(rb"\$DWGCODEPAGE\s*\r?\n\s*3\s*\r?\n\s*ANSI_(\d+)")
_LINE_BREAK = re.compile(r"\r\n|\r|\n")
_UNICODE_ESCAPE = re.compile(r"\\U\+([0-9A-Fa-f]{4})")
_MTEXT_STACK = re.compile(r"\\S([^;]*);")
_MTEXT_FORMAT = re.compile(r"\\(?:[ACcFfHQTWp][^;]*;|[LlOoKk])")
_MTEXT_BRACE = re.compile(r"(?<!\\)[{}]")


@dataclass(frozen=True)
class CadEntity:
    """A drawing entity reduced to its kind and optional text payload."""
    kind: str
    text: Optional[str] = None


CadDecoder = Callable[[bytes], List[CadEntity]]


def _decode(dxf_bytes: bytes) -> str:
    """Decode DXF bytes; R2007+ files are UTF-8, older ones use $DWGCODEPAGE."""
    if dxf_bytes.startswith(_BINARY_SENTINEL):
        raise ExtractionError("Binary DXF is not supported")
    try:
        return dxf_bytes.decode("utf-8-sig")
    except UnicodeDecodeError:
        match = _CODEPAGE.search(dxf_bytes)
        encoding = f"cp{match.group(1).decode('ascii')}" if match else "cp1252"
        try:
            return dxf_bytes.decode(encoding, errors="replace")
        except LookupError:
            return dxf_bytes.decode("cp1252", errors="replace")


def _group_pairs(content: str) -> Iterator[Tuple[int, str]]:
    # Only CR and LF end a line; values may contain other Unicode separators.
    lines = _LINE_BREAK.split(content.rstrip("\r\n"))
    if len(lines) % 2:
        lines = lines[:-1]
    for index in range(0, len(lines), 2):
        try:
            code = int(lines[index].strip())
        except ValueError:
            raise ExtractionError(f"Malformed DXF group code at line {index + 1}")
        yield code, lines[index + 1]


def _unescape(value: str) -> str:
    return _UNICODE_ESCAPE.sub(lambda m: chr(int(m.group(1), 16)), value)


def plain_mtext(raw: str) -> str:
    """Strip MTEXT formatting codes, keeping paragraph breaks as newlines."""
    text = _unescape(raw).replace("\\\\", "\x00")
    text = text.replace("\\P", "\n").replace("\\~", " ")
    text = _MTEXT_STACK.sub(lambda m: re.sub(r"[\^#]", "/", m.group(1)), text)
    text = _MTEXT_FORMAT.sub("", text)
    text = _MTEXT_BRACE.sub("", text)
    text = text.replace("\\{", "{").replace("\\}", "}")
    return text.replace("\x00", "\\")


def _finish(kind: str, text_parts: List[str], chunks: List[str]) -> CadEntity:
    if kind == "TEXT":
        return CadEntity(kind, _unescape("".join(text_parts)))
    if kind == "MTEXT":
        return CadEntity(kind, plain_mtext("".join(chunks + text_parts)))
    return CadEntity(kind)


def decode_dxf_entities(dxf_bytes: bytes) -> List[CadEntity]:
    """Read the entities of an ASCII DXF drawing in file order.

    Raises:
        ExtractionError: If the content is binary DXF, has malformed group
            codes or contains no DXF sections at all
    """
    content = _decode(dxf_bytes)

    entities: List[CadEntity] = []
    section: Optional[str] = None
    expect_section_name = False
    saw_section = False
    kind: Optional[str] = None
    text_parts: List[str] = []
    chunks: List[str] = []

    for code, value in _group_pairs(content):
        if expect_section_name:
            expect_section_name = False
            if code == 2:
                section = value.strip().upper()
                continue

        if code == 0:
            marker = value.strip().upper()
            if kind is not None:
                entities.append(_finish(kind, text_parts, chunks))
                kind, text_parts, chunks = None, [], []
            if marker == "SECTION":
                saw_section = True
                expect_section_name = True
            elif marker == "ENDSEC":
                section = None
            elif section == "ENTITIES":
                kind = marker
            continue

        if kind == "TEXT" and code == 1:
            text_parts.append(value)
        elif kind == "MTEXT" and code == 3:
            chunks.append(value)
        elif kind == "MTEXT" and code == 1:
            text_parts.append(value)

    if kind is not None:
        entities.append(_finish(kind, text_parts, chunks))
    if not saw_section:
        raise ExtractionError("Content is not a DXF drawing")
    return entities


class CadTextExtractor:
    """Collects the text of TEXT and MTEXT entities in a DXF drawing.

    Texts are joined with single spaces in drawing order. A drawing
    without text entities is a successful extraction with empty text.
    """

    def __init__(self, decoder: CadDecoder = decode_dxf_entities) -> None:
        self.decoder = decoder

    def extract(self, data: bytes) -> ExtractionResult:
        try:
            entities = self.decoder(data)
        except Exception as e:
            logger.warning("DXF text extraction failed: %s", e)
            return ExtractionResult.failed()

        texts = [
            entity.text for entity in entities
            if entity.kind.upper() in TEXT_ENTITY_KINDS and entity.text
        ]
        return ExtractionResult(text=" ".join(texts), ok=True)
