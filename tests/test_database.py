"""Tests for the database module.

This module contains tests for database management functionality
including engine setup, the write transaction boundary and the document
and tag repositories.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from sqlalchemy import func, select, text
from sqlalchemy.exc import OperationalError

from drawing_index.config import Config
from drawing_index.database import DatabaseManager, DocumentRepository, TagRepository
from drawing_index.exceptions import (
    DatabaseError,
    DocumentNotFoundError,
    NotFoundError,
    TagNotFoundError,
    ValidationError
)
from drawing_index.models import Document, Tag, document_tags


class TestDatabaseManager:
    """Test cases for DatabaseManager class."""

    def test_init_default_url(self):
        """Test initialization with default database URL."""
        db_manager = DatabaseManager()
        assert db_manager.database_url == Config.DATABASE_URL
        assert db_manager._engine is None
        assert db_manager._session_factory is None

    def test_engine_property_lazy_initialization(self, test_db_manager):
        """Test that engine is created lazily and cached."""
        assert test_db_manager._engine is None

        engine = test_db_manager.engine
        assert engine is not None
        assert test_db_manager.engine is engine

    def test_engine_creates_schema(self, test_db_manager):
        """Test that tables and the full-text index exist after startup."""
        with test_db_manager.engine.connect() as connection:
            names = {
                row[0] for row in connection.execute(
                    text("SELECT name FROM sqlite_master WHERE type = 'table'")
                )
            }
        assert {"documents", "tags", "document_tags", "documents_fts"} <= names

    def test_file_database_uses_wal(self, test_db_manager):
        """Test file databases run in WAL mode with foreign keys on."""
        with test_db_manager.engine.connect() as connection:
            assert connection.execute(text("PRAGMA journal_mode")).scalar() == "wal"
            assert connection.execute(text("PRAGMA foreign_keys")).scalar() == 1

    def test_in_memory_database(self, make_draft):
        """Test the in-memory database keeps its data across sessions."""
        db_manager = DatabaseManager("sqlite://")
        assert db_manager.is_memory is True

        repository = DocumentRepository(db_manager)
        record = repository.add(make_draft())
        assert repository.get(record.id).file_name == "A-001_配管.pdf"

    def test_non_sqlite_url_rejected(self):
        """Test databases without FTS5 are rejected."""
        with pytest.raises(DatabaseError, match="Unsupported database URL"):
            DatabaseManager("postgresql://localhost/drawings").engine

    def test_engine_creation_error(self):
        """Test handling of engine creation errors."""
        with patch("drawing_index.database.database_manager.create_engine") as mock_create_engine:
            mock_create_engine.side_effect = Exception("Database connection failed")

            with pytest.raises(DatabaseError, match="Database initialization error"):
                DatabaseManager("sqlite:///unused.db").engine

    def test_transaction_commits(self, test_db_manager):
        """Test a successful unit of work is committed."""
        with test_db_manager.transaction() as session:
            session.add(Tag(name="構造"))

        with test_db_manager.read_session() as session:
            assert session.execute(select(func.count(Tag.id))).scalar_one() == 1

    def test_transaction_rolls_back_on_error(self, test_db_manager):
        """Test an exception inside the unit of work discards every write."""
        with pytest.raises(RuntimeError):
            with test_db_manager.transaction() as session:
                session.add(Tag(name="構造"))
                session.flush()
                raise RuntimeError("abort")

        with test_db_manager.read_session() as session:
            assert session.execute(select(func.count(Tag.id))).scalar_one() == 0

    def test_transaction_wraps_database_errors(self, test_db_manager):
        """Test SQLAlchemy errors surface as DatabaseError."""
        with pytest.raises(DatabaseError, match="Database write error"):
            with test_db_manager.transaction() as session:
                session.add(Tag(name="dup"))
                session.add(Tag(name="dup"))


class TestDocumentRepository:
    """Test cases for DocumentRepository class."""

    def test_add_and_get(self, document_repository, make_draft, fixed_time):
        """Test storing a draft and loading it back."""
        record = document_repository.add(make_draft(
            "A-001_配管.pdf",
            file_path="/drawings/A-001_配管.pdf",
            drawing_number="A-001",
            product_name="配管",
            part_name="フランジ",
            client_name="山田建設",
            extracted_text="部品名：フランジ",
            created_at=fixed_time,
            updated_at=fixed_time
        ))

        loaded = document_repository.get(record.id)
        assert loaded.id == record.id
        assert loaded.file_type == "pdf"
        assert loaded.file_path == "/drawings/A-001_配管.pdf"
        assert loaded.part_name == "フランジ"
        assert loaded.extracted_text == "部品名：フランジ"
        assert loaded.created_at == fixed_time
        assert loaded.indexed_at is not None
        assert loaded.tags == []

        data = loaded.to_dict()
        assert data["drawing_number"] == "A-001"
        assert data["tags"] == []
        assert data["rank"] is None

    def test_timestamps_round_trip(self, document_repository, query_engine, make_draft, fixed_time):
        """Test written and reloaded records carry the same aware UTC times."""
        record = document_repository.add(make_draft(created_at=fixed_time, updated_at=fixed_time))

        loaded = document_repository.get(record.id)
        found = query_engine.search("")[0]

        assert record.updated_at == loaded.updated_at == found.updated_at
        assert record.indexed_at == loaded.indexed_at
        assert loaded.updated_at.tzinfo is not None
        assert sorted([record.updated_at, found.updated_at]) == [fixed_time, fixed_time]

    def test_timestamps_converted_to_utc(self, document_repository, make_draft):
        """Test offset and naive times are stored as UTC."""
        tokyo = timezone(timedelta(hours=9))
        record = document_repository.add(make_draft(
            created_at=datetime(2024, 1, 15, 18, 30, tzinfo=tokyo),
            updated_at=datetime(2024, 1, 15, 9, 30)
        ))

        loaded = document_repository.get(record.id)

        assert loaded.created_at == datetime(2024, 1, 15, 9, 30, tzinfo=timezone.utc)
        assert loaded.created_at.utcoffset() == timedelta(0)
        assert loaded.updated_at == datetime(2024, 1, 15, 9, 30, tzinfo=timezone.utc)
        assert record.updated_at == loaded.updated_at

    def test_update_metadata_keeps_timestamps_comparable(self, document_repository, make_draft, fixed_time):
        """Test records returned by an update compare equal to reloaded ones."""
        record = document_repository.add(make_draft(updated_at=fixed_time))

        updated = document_repository.update_metadata(record.id, {"part_name": "継手"})

        assert updated.updated_at == document_repository.get(record.id).updated_at
        assert updated.indexed_at == document_repository.get(record.id).indexed_at

    def test_get_missing(self, document_repository):
        """Test loading an unknown identifier."""
        with pytest.raises(DocumentNotFoundError, match="Document 999 not found"):
            document_repository.get(999)

    def test_not_found_is_distinct(self):
        """Test not-found errors share a base distinct from storage errors."""
        assert issubclass(DocumentNotFoundError, NotFoundError)
        assert issubclass(TagNotFoundError, NotFoundError)
        assert not issubclass(DocumentNotFoundError, DatabaseError)

    def test_identifiers_never_reused(self, document_repository, make_draft):
        """Test a deleted identifier is not handed out again."""
        first = document_repository.add(make_draft("a.pdf"))
        document_repository.delete(first.id)
        second = document_repository.add(make_draft("b.pdf"))

        assert second.id > first.id

    def test_update_metadata_overwrites(self, document_repository, make_draft):
        """Test fields are overwritten, trimmed, and None leaves a field alone."""
        record = document_repository.add(make_draft(drawing_number="A-001", part_name="旧"))

        updated = document_repository.update_metadata(
            record.id, {"part_name": "  新しい部品  ", "client_name": "山田建設", "drawing_number": None}
        )

        assert updated.part_name == "新しい部品"
        assert updated.client_name == "山田建設"
        assert updated.drawing_number == "A-001"
        assert document_repository.get(record.id).part_name == "新しい部品"

    def test_update_metadata_is_not_truncated(self, document_repository, make_draft):
        """Test direct overwrites are stored as given."""
        record = document_repository.add(make_draft())
        value = "あ" * 150

        assert document_repository.update_metadata(record.id, {"part_name": value}).part_name == value

    def test_update_metadata_unknown_field(self, document_repository, make_draft):
        """Test only metadata fields may be overwritten."""
        record = document_repository.add(make_draft())

        with pytest.raises(ValidationError, match="Unknown metadata fields: file_type"):
            document_repository.update_metadata(record.id, {"file_type": "dxf"})

    def test_update_metadata_missing(self, document_repository):
        """Test updating an unknown identifier."""
        with pytest.raises(DocumentNotFoundError):
            document_repository.update_metadata(42, {"part_name": "x"})

    def test_delete_removes_tag_associations(self, document_repository, tag_repository,
                                             test_db_manager, make_draft):
        """Test deleting a document removes its tag links but not the tags."""
        record = document_repository.add(make_draft())
        tag = tag_repository.create_tag("構造")
        tag_repository.assign(record.id, tag.id)

        deleted = document_repository.delete(record.id)

        assert [t.name for t in deleted.tags] == ["構造"]
        with test_db_manager.read_session() as session:
            assert session.execute(select(func.count()).select_from(document_tags)).scalar_one() == 0
        assert [t.name for t in tag_repository.list_tags()] == ["構造"]
        with pytest.raises(DocumentNotFoundError):
            document_repository.get(record.id)

    def test_delete_missing(self, document_repository):
        """Test deleting an unknown identifier."""
        with pytest.raises(DocumentNotFoundError):
            document_repository.delete(7)

    def test_failed_index_write_rolls_back_row(self, document_repository, test_db_manager,
                                               search_index, make_draft):
        """Test a failing index write leaves neither row nor entry behind."""
        error = OperationalError("INSERT", {}, Exception("disk I/O error"))
        with patch.object(search_index, "add", side_effect=error):
            with pytest.raises(DatabaseError):
                document_repository.add(make_draft())

        with test_db_manager.read_session() as session:
            assert session.execute(select(func.count(Document.id))).scalar_one() == 0
            assert search_index.count(session) == 0

    def test_failed_index_update_keeps_old_values(self, document_repository, search_index,
                                                  test_db_manager, make_draft):
        """Test a failing index rewrite rolls back the metadata change."""
        record = document_repository.add(make_draft(part_name="旧"))
        error = OperationalError("INSERT", {}, Exception("disk I/O error"))

        with patch.object(search_index, "replace", side_effect=error):
            with pytest.raises(DatabaseError):
                document_repository.update_metadata(record.id, {"part_name": "新"})

        assert document_repository.get(record.id).part_name == "旧"
        with test_db_manager.read_session() as session:
            assert search_index.get_entry(session, record.id)["part_name"] == "旧"

    def test_stats(self, document_repository, make_draft):
        """Test document count and last indexing time."""
        assert document_repository.stats() == {"total_files": 0, "last_indexed": None}

        document_repository.add(make_draft("a.pdf"))
        document_repository.add(make_draft("b.pdf"))

        stats = document_repository.stats()
        assert stats["total_files"] == 2
        assert stats["last_indexed"] is not None

    def test_clear(self, document_repository, tag_repository, make_draft):
        """Test clearing removes documents and their tag links."""
        record = document_repository.add(make_draft())
        tag = tag_repository.create_tag("電気")
        tag_repository.assign(record.id, tag.id)

        assert document_repository.clear() == 1
        assert document_repository.stats()["total_files"] == 0
        assert [t.name for t in tag_repository.list_tags()] == ["電気"]

    def test_concurrent_adds_get_unique_ids(self, document_repository, make_draft):
        """Test writes from many threads never share an identifier."""
        with ThreadPoolExecutor(max_workers=8) as executor:
            records = list(executor.map(
                lambda n: document_repository.add(make_draft(f"T-{n}_図面.pdf")), range(24)
            ))

        ids = [record.id for record in records]
        assert len(set(ids)) == 24
        for record in records:
            assert document_repository.get(record.id).file_name == record.file_name


class TestTagRepository:
    """Test cases for TagRepository class."""

    def test_create_and_list(self, tag_repository):
        """Test tags are trimmed and listed by name."""
        tag_repository.create_tag("  構造 ")
        tag_repository.create_tag("意匠")
        tag_repository.create_tag("電気")

        names = [tag.name for tag in tag_repository.list_tags()]
        assert names == sorted(["構造", "意匠", "電気"])

    def test_create_empty_name(self, tag_repository):
        """Test an empty name is rejected."""
        with pytest.raises(ValidationError, match="must not be empty"):
            tag_repository.create_tag("   ")

    def test_create_duplicate(self, tag_repository):
        """Test tag names are unique."""
        tag_repository.create_tag("構造")
        with pytest.raises(ValidationError, match="already exists"):
            tag_repository.create_tag("構造")

    def test_assign_is_idempotent(self, tag_repository, document_repository, make_draft):
        """Test assigning twice keeps one link."""
        record = document_repository.add(make_draft())
        tag = tag_repository.create_tag("構造")

        tag_repository.assign(record.id, tag.id)
        tag_repository.assign(record.id, tag.id)

        assert [t.id for t in tag_repository.tags_for_document(record.id)] == [tag.id]

    def test_tags_ordered_by_name(self, tag_repository, document_repository, make_draft):
        """Test a document's tags come back in name order."""
        record = document_repository.add(make_draft())
        for name in ("c-tag", "a-tag", "b-tag"):
            tag_repository.assign(record.id, tag_repository.create_tag(name).id)

        assert [t.name for t in document_repository.get(record.id).tags] == ["a-tag", "b-tag", "c-tag"]

    def test_unassign(self, tag_repository, document_repository, make_draft):
        """Test detaching a tag, twice."""
        record = document_repository.add(make_draft())
        tag = tag_repository.create_tag("構造")
        tag_repository.assign(record.id, tag.id)

        tag_repository.unassign(record.id, tag.id)
        tag_repository.unassign(record.id, tag.id)

        assert tag_repository.tags_for_document(record.id) == []

    def test_delete_tag_removes_associations(self, tag_repository, document_repository, make_draft):
        """Test deleting a tag detaches it from every document."""
        first = document_repository.add(make_draft("a.pdf"))
        second = document_repository.add(make_draft("b.pdf"))
        tag = tag_repository.create_tag("構造")
        tag_repository.assign(first.id, tag.id)
        tag_repository.assign(second.id, tag.id)

        tag_repository.delete_tag(tag.id)

        assert tag_repository.list_tags() == []
        assert tag_repository.tags_for_document(first.id) == []
        assert tag_repository.tags_for_document(second.id) == []

    def test_missing_records(self, tag_repository, document_repository, make_draft):
        """Test not-found errors for tags and documents."""
        record = document_repository.add(make_draft())
        tag = tag_repository.create_tag("構造")

        with pytest.raises(TagNotFoundError):
            tag_repository.delete_tag(999)
        with pytest.raises(TagNotFoundError):
            tag_repository.assign(record.id, 999)
        with pytest.raises(DocumentNotFoundError):
            tag_repository.assign(999, tag.id)
        with pytest.raises(DocumentNotFoundError):
            tag_repository.tags_for_document(999)
