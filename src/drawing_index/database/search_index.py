"""Full-text search index for the drawing index.

This module contains the SearchIndex class, which maintains the SQLite
FTS5 projection of every document. Index entries are written on the same
session (and therefore in the same transaction) as the document row they
mirror, so a reader sees both or neither.

Tokenization is done in two steps. Text is first NFKC-normalised and
characters of scripts written without spaces (kana, kanji, hangul) are
split into single-character tokens; FTS5's ``unicode61`` tokenizer then
folds case and strips diacritics. Queries are segmented the same way, and
multi-character terms become phrase queries so that a kanji word only
matches its characters in sequence.
"""

import re
import unicodedata
from typing import Any, Dict, Optional

from sqlalchemy import column, literal_column, table, text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session

from ..exceptions import QuerySyntaxError
from ..models import Document

__all__ = ["SearchIndex", "segment_text", "build_match_expression"]

INDEX_TABLE = "documents_fts"
INDEXED_COLUMNS = (
    "file_name",
    "drawing_number",
    "product_name",
    "part_name",
    "client_name",
    "extracted_text",
)

_CREATE_SQL = (
    f"CREATE VIRTUAL TABLE IF NOT EXISTS {INDEX_TABLE} USING fts5("
    + ", ".join(INDEXED_COLUMNS)
    + ", tokenize = 'unicode61 remove_diacritics 2')"
)
_INSERT_SQL = (
    f"INSERT INTO {INDEX_TABLE} (rowid, {', '.join(INDEXED_COLUMNS)}) "
    f"VALUES (:rowid, {', '.join(':' + name for name in INDEXED_COLUMNS)})"
)
_DELETE_SQL = f"DELETE FROM {INDEX_TABLE} WHERE rowid = :rowid"

# Hiragana, katakana, CJK ideographs, hangul syllables and the kanji
# iteration marks.
_UNSPACED_SCRIPT = re.compile(
    "([\u3005\u3006\u3040-\u30ff\u31f0-\u31ff\u3400-\u4dbf\u4e00-\u9fff\uf900-\ufaff\uac00-\ud7af])"
)
_OPERATORS = frozenset({"AND", "OR", "NOT"})
# FTS5 bareword characters, with an optional prefix marker.
_BAREWORD = re.compile(r"^(?:[0-9A-Za-z_]|[^\x00-\x7f])+\*?$")
# A character unicode61 keeps as part of a token.
_TOKEN_CHAR = re.compile(r"[^\W_]")

# Messages SQLite uses when FTS5 cannot parse a MATCH expression.
_SYNTAX_ERROR_MARKERS = (
    "fts5: syntax error",
    "syntax error near",
    "unterminated string",
    "no such column",
    "unknown special query",
    "malformed match expression",
)


def segment_text(value: Optional[str]) -> str:
    """Project text into the whitespace-delimited form stored in the index."""
    normalized = unicodedata.normalize("NFKC", value or "")
    return " ".join(_UNSPACED_SCRIPT.sub(r" \1 ", normalized).split())


def build_match_expression(query: str) -> str:
    """Compile a user query into an FTS5 MATCH expression.

    Quote characters are escaped first. The query is then split into
    whitespace-separated terms: ``AND``/``OR``/``NOT`` pass through as
    operators, every other term must be an FTS5 bareword (letters, digits,
    underscore, non-ASCII characters, optional trailing ``*`` for prefix
    search) and is emitted as a phrase of its segmented tokens.

    Args:
        query: Raw free-text query

    Returns:
        MATCH expression safe to bind as a parameter

    Raises:
        QuerySyntaxError: If a term is not expressible in the ranked syntax
            or the query has no terms at all
    """
    normalized = unicodedata.normalize("NFKC", query).strip()
    escaped = normalized.replace('"', '""')

    parts = []
    for term in escaped.split():
        if term in _OPERATORS:
            parts.append(term)
            continue
        if not _BAREWORD.match(term):
            raise QuerySyntaxError(f"Unsupported query term: {term!r}")

        prefix = term.endswith("*")
        tokens = segment_text(term.rstrip("*"))
        if not _TOKEN_CHAR.search(tokens):
            raise QuerySyntaxError(f"Query term has no searchable characters: {term!r}")
        phrase = '"' + tokens + '"'
        parts.append(phrase + "*" if prefix else phrase)

    if not parts:
        raise QuerySyntaxError("Query contains no searchable terms")
    return " ".join(parts)


class SearchIndex:
    """Maintains and queries the FTS5 projection of documents.

    Every write method takes the caller's session so the index entry is
    written inside the caller's transaction. The class holds no state of
    its own.
    """

    fts_table = table(
        INDEX_TABLE,
        column("rowid"),
        column("rank"),
        *(column(name) for name in INDEXED_COLUMNS)
    )

    @staticmethod
    def create_schema(connection: Any) -> None:
        """Create the FTS5 virtual table if it does not exist.

        Args:
            connection: SQLAlchemy connection inside a transaction
        """
        connection.execute(text(_CREATE_SQL))

    @staticmethod
    def project(document: Document) -> Dict[str, str]:
        """Build the tokenized projection of a document's searchable fields."""
        return {name: segment_text(getattr(document, name)) for name in INDEXED_COLUMNS}

    def add(self, session: Session, document: Document) -> None:
        """Insert the index entry for a flushed document.

        Args:
            session: Session of the open write transaction
            document: Document with an assigned identifier
        """
        params: Dict[str, Any] = {"rowid": document.id}
        params.update(self.project(document))
        session.execute(text(_INSERT_SQL), params)

    def remove(self, session: Session, document_id: int) -> None:
        """Delete the index entry of a document, if present."""
        session.execute(text(_DELETE_SQL), {"rowid": document_id})

    def replace(self, session: Session, document: Document) -> None:
        """Rewrite a document's index entry from its current field values.

        The old entry is deleted and a fresh one inserted, so no token of a
        superseded value can survive.
        """
        self.remove(session, document.id)
        self.add(session, document)

    def clear(self, session: Session) -> None:
        session.execute(text(f"DELETE FROM {INDEX_TABLE}"))

    def get_entry(self, session: Session, document_id: int) -> Optional[Dict[str, str]]:
        """Return the stored projection of a document, or None if absent."""
        row = session.execute(
            text(f"SELECT {', '.join(INDEXED_COLUMNS)} FROM {INDEX_TABLE} WHERE rowid = :rowid"),
            {"rowid": document_id}
        ).mappings().first()
        return dict(row) if row is not None else None

    def count(self, session: Session) -> int:
        return session.execute(text(f"SELECT count(*) FROM {INDEX_TABLE}")).scalar_one()

    @classmethod
    def match_clause(cls, expression: str) -> Any:
        """SQL condition restricting a select to entries matching ``expression``."""
        return literal_column(INDEX_TABLE).op("MATCH")(expression)

    @classmethod
    def join_condition(cls) -> Any:
        return cls.fts_table.c.rowid == Document.id

    @classmethod
    def rank_column(cls) -> Any:
        return cls.fts_table.c.rank

    @staticmethod
    def is_syntax_error(error: DBAPIError) -> bool:
        """Tell a rejected MATCH expression apart from a storage failure."""
        message = str(getattr(error, "orig", error)).lower()
        return any(marker in message for marker in _SYNTAX_ERROR_MARKERS)
