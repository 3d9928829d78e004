"""Search query engine for the drawing index.

This module contains the SearchQueryEngine class. A non-empty query runs
as a ranked full-text match; a query the ranked engine cannot parse is
re-run as an unranked substring scan over the metadata fields, and an
empty query is a plain structured listing.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import or_, select
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import Config
from ..database import DatabaseManager, SearchIndex, build_match_expression
from ..exceptions import DatabaseError, QuerySyntaxError
from ..models import Document, DocumentRecord, Tag, TagRecord, document_tags

__all__ = ["SearchFilters", "AdvancedCriteria", "SearchQueryEngine", "FALLBACK_FIELDS"]

logger = logging.getLogger(__name__)

# Columns scanned when the ranked engine rejects a query.
FALLBACK_FIELDS = ("file_name", "drawing_number", "product_name", "part_name", "client_name")


@dataclass
class SearchFilters:
    """Structured filters ANDed with any search.

    Attributes:
        file_type: Exact format tag, e.g. ``pdf``
        tag_id: Only documents carrying this tag
    """
    file_type: Optional[str] = None
    tag_id: Optional[int] = None


@dataclass
class AdvancedCriteria:
    """Per-field criteria of an advanced search.

    Text criteria are case-insensitive substring filters; empty values are
    ignored. ``date_from``/``date_to`` bound the last-modified time,
    inclusively. A bare ``date_to`` covers the whole day. Naive datetimes
    are taken as UTC.
    """
    drawing_number: Optional[str] = None
    product_name: Optional[str] = None
    part_name: Optional[str] = None
    client_name: Optional[str] = None
    file_type: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    sort_by: str = "updated_at"
    sort_order: str = "desc"


def _as_utc(value: date, end_of_day: bool = False) -> datetime:
    if not isinstance(value, datetime):
        moment = datetime.combine(value, time.min)
        return moment + timedelta(days=1) if end_of_day else moment
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class SearchQueryEngine:
    """Runs searches over the record store and its full-text index.

    Attributes:
        db_manager: DatabaseManager used for read sessions
        search_index: Index queried for ranked matches
        limit: Maximum number of results returned
    """

    def __init__(
        self,
        db_manager: DatabaseManager,
        search_index: Optional[SearchIndex] = None,
        limit: int = Config.SEARCH_RESULT_LIMIT
    ) -> None:
        self.db_manager: DatabaseManager = db_manager
        self.search_index: SearchIndex = search_index or SearchIndex()
        self.limit: int = limit

    @staticmethod
    def resolve_sort(sort_by: Optional[str], sort_order: Optional[str]) -> Tuple[str, str]:
        """Map caller sort options onto the allow-list.

        Unknown fields fall back to Config.DEFAULT_SORT_FIELD; any direction
        other than ``asc``/``desc`` (case-insensitive) becomes descending.

        Returns:
            Tuple of (field, direction)
        """
        field = sort_by if sort_by in Config.SORT_FIELDS else Config.DEFAULT_SORT_FIELD
        direction = (sort_order or "").strip().lower()
        if direction not in ("asc", "desc"):
            direction = Config.DEFAULT_SORT_DIRECTION
        return field, direction

    def search(
        self,
        query: Optional[str] = "",
        filters: Optional[SearchFilters] = None,
        sort_by: str = Config.DEFAULT_SORT_FIELD,
        sort_order: str = Config.DEFAULT_SORT_DIRECTION
    ) -> List[DocumentRecord]:
        """Search documents.

        Args:
            query: Free-text query; empty lists documents by filters only
            filters: Format tag and tag filters
            sort_by: One of Config.SORT_FIELDS
            sort_order: ``asc`` or ``desc``

        Returns:
            At most ``limit`` distinct records with their tags attached

        Raises:
            DatabaseError: If the store cannot be read
        """
        filters = filters or SearchFilters()
        field, direction = self.resolve_sort(sort_by, sort_order)
        term = (query or "").strip()

        with self.db_manager.read_session() as session:
            if not term:
                return self._structured(session, filters, field, direction)
            try:
                return self._ranked(session, term, filters, field, direction)
            except QuerySyntaxError as e:
                logger.info("Ranked search rejected %r (%s); using substring scan", term, e)
                session.rollback()
                return self._fallback(session, term, filters, field, direction)

    def advanced_search(self, criteria: AdvancedCriteria) -> List[DocumentRecord]:
        """Search by per-field substring filters and a modification date range.

        Raises:
            DatabaseError: If the store cannot be read
        """
        field, direction = self.resolve_sort(criteria.sort_by, criteria.sort_order)
        conditions: List[Any] = []

        for name in ("drawing_number", "product_name", "part_name", "client_name"):
            value = (getattr(criteria, name) or "").strip()
            if value:
                conditions.append(getattr(Document, name).contains(value, autoescape=True))
        if criteria.file_type:
            conditions.append(Document.file_type == criteria.file_type.lower())
        if criteria.date_from is not None:
            conditions.append(Document.updated_at >= _as_utc(criteria.date_from))
        if criteria.date_to is not None:
            if isinstance(criteria.date_to, datetime):
                conditions.append(Document.updated_at <= _as_utc(criteria.date_to))
            else:
                conditions.append(Document.updated_at < _as_utc(criteria.date_to, end_of_day=True))

        stmt = select(Document).where(*conditions).order_by(*self._order(field, direction))
        with self.db_manager.read_session() as session:
            documents = self._execute(session, stmt.limit(self.limit)).scalars().all()
            return self._attach_tags(session, [(document, None) for document in documents])

    def _filter_conditions(self, filters: SearchFilters) -> List[Any]:
        conditions: List[Any] = []
        if filters.file_type:
            conditions.append(Document.file_type == filters.file_type.lower())
        if filters.tag_id is not None:
            conditions.append(Document.id.in_(
                select(document_tags.c.document_id).where(document_tags.c.tag_id == filters.tag_id)
            ))
        return conditions

    @staticmethod
    def _order(field: str, direction: str) -> List[Any]:
        """Structured ORDER BY; rank has no meaning here and maps to id."""
        if field in ("id", "rank"):
            return [Document.id.asc() if direction == "asc" else Document.id.desc()]
        column = getattr(Document, field)
        if direction == "asc":
            return [column.asc(), Document.id.asc()]
        return [column.desc(), Document.id.desc()]

    def _ranked_order(self, field: str, direction: str) -> List[Any]:
        rank = self.search_index.rank_column().asc()
        if field in ("id", "rank"):
            tie_break = Document.id.asc() if direction == "asc" else Document.id.desc()
            return [rank, tie_break]
        column = getattr(Document, field)
        return [column.asc() if direction == "asc" else column.desc(), rank, Document.id.desc()]

    def _structured(self, session: Session, filters: SearchFilters,
                    field: str, direction: str) -> List[DocumentRecord]:
        stmt = (
            select(Document)
            .where(*self._filter_conditions(filters))
            .order_by(*self._order(field, direction))
            .limit(self.limit)
        )
        documents = self._execute(session, stmt).scalars().all()
        return self._attach_tags(session, [(document, None) for document in documents])

    def _ranked(self, session: Session, term: str, filters: SearchFilters,
                field: str, direction: str) -> List[DocumentRecord]:
        expression = build_match_expression(term)
        stmt = (
            select(Document, self.search_index.rank_column())
            .join(self.search_index.fts_table, self.search_index.join_condition())
            .where(self.search_index.match_clause(expression), *self._filter_conditions(filters))
            .order_by(*self._ranked_order(field, direction))
            .limit(self.limit)
        )
        rows = self._execute(session, stmt).all()
        return self._attach_tags(session, [(document, rank) for document, rank in rows])

    def _fallback(self, session: Session, term: str, filters: SearchFilters,
                  field: str, direction: str) -> List[DocumentRecord]:
        matches = or_(*(
            getattr(Document, name).contains(term, autoescape=True) for name in FALLBACK_FIELDS
        ))
        stmt = (
            select(Document)
            .where(matches, *self._filter_conditions(filters))
            .order_by(*self._order(field, direction))
            .limit(self.limit)
        )
        documents = self._execute(session, stmt).scalars().all()
        return self._attach_tags(session, [(document, None) for document in documents])

    def _execute(self, session: Session, stmt: Any) -> Any:
        """Execute a statement, classifying database errors.

        Raises:
            QuerySyntaxError: If FTS5 rejected the MATCH expression
            DatabaseError: For any other database failure
        """
        try:
            return session.execute(stmt)
        except OperationalError as e:
            if self.search_index.is_syntax_error(e):
                raise QuerySyntaxError(f"Search syntax error: {str(e.orig)}")
            raise DatabaseError(f"Search error: {str(e)}")
        except SQLAlchemyError as e:
            raise DatabaseError(f"Search error: {str(e)}")

    def _attach_tags(self, session: Session,
                     rows: Sequence[Tuple[Document, Optional[float]]]) -> List[DocumentRecord]:
        """Build records, dropping duplicate ids and attaching tags by name order."""
        seen = set()
        unique: List[Tuple[Document, Optional[float]]] = []
        for document, rank in rows:
            if document.id not in seen:
                seen.add(document.id)
                unique.append((document, rank))
        if not unique:
            return []

        tags: Dict[int, List[TagRecord]] = {document_id: [] for document_id in seen}
        tag_rows = self._execute(
            session,
            select(document_tags.c.document_id, Tag)
            .join(Tag, Tag.id == document_tags.c.tag_id)
            .where(document_tags.c.document_id.in_(sorted(seen)))
            .order_by(Tag.name.asc())
        ).all()
        for document_id, tag in tag_rows:
            tags[document_id].append(TagRecord.from_model(tag))

        return [
            DocumentRecord.from_model(document, tags[document.id], rank)
            for document, rank in unique
        ]
