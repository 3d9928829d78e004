"""Detached record types returned by the drawing index.

Repositories and the query engine hand these out instead of live ORM
instances, so callers never touch a closed session.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from .tables import Document, Tag, as_utc

__all__ = ["TagRecord", "DocumentRecord", "DocumentDraft", "METADATA_FIELDS"]

# Fields a caller may overwrite through update_metadata.
METADATA_FIELDS = ("drawing_number", "product_name", "part_name", "client_name")


@dataclass(frozen=True)
class TagRecord:
    """Snapshot of a tag row."""
    id: int
    name: str
    created_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, tag: Tag) -> "TagRecord":
        return cls(id=tag.id, name=tag.name, created_at=as_utc(tag.created_at))


@dataclass
class DocumentRecord:
    """Snapshot of a document row with its resolved tags.

    ``rank`` is only set on results of a ranked query; lower is more
    relevant (BM25 as reported by SQLite FTS5).
    """
    id: int
    file_name: str
    file_size: int
    file_type: str
    file_path: str
    drawing_number: str
    product_name: str
    part_name: str
    client_name: str
    extracted_text: str
    created_at: Optional[datetime]
    updated_at: Optional[datetime]
    indexed_at: Optional[datetime]
    tags: List[TagRecord] = field(default_factory=list)
    rank: Optional[float] = None

    @classmethod
    def from_model(
        cls,
        document: Document,
        tags: Optional[Sequence[TagRecord]] = None,
        rank: Optional[float] = None
    ) -> "DocumentRecord":
        """Build a record from an ORM document.

        Args:
            document: Loaded Document instance
            tags: Tag records to attach; empty when omitted
            rank: Relevance score of a ranked query, if any

        Returns:
            DocumentRecord detached from any session
        """
        return cls(
            id=document.id,
            file_name=document.file_name,
            file_size=document.file_size,
            file_type=document.file_type,
            file_path=document.file_path,
            drawing_number=document.drawing_number,
            product_name=document.product_name,
            part_name=document.part_name,
            client_name=document.client_name,
            extracted_text=document.extracted_text,
            created_at=as_utc(document.created_at),
            updated_at=as_utc(document.updated_at),
            indexed_at=as_utc(document.indexed_at),
            tags=list(tags or []),
            rank=rank,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class DocumentDraft:
    """Fields of a document assembled by the ingestion pipeline.

    Nothing is persisted until a draft is handed to the repository, so a
    draft can be discarded at any point without touching stored state.
    """
    file_name: str
    file_size: int
    file_type: str
    file_path: str = ""
    drawing_number: str = ""
    product_name: str = ""
    part_name: str = ""
    client_name: str = ""
    extracted_text: str = ""
    extraction_ok: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
