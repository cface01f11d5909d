"""Unit tests for platforms/xochitl.py — metadata store scanning."""

import os
from unittest.mock import patch

import pytest

from rmsync.errors import ScanError
from rmsync.platforms.xochitl import MetadataStore

# ---------------------------------------------------------------------------
# list_collections
# ---------------------------------------------------------------------------


class TestListCollections:
    def test_returns_only_collections(self, xochitl_dir) -> None:
        store = MetadataStore(xochitl_dir)
        result = store.list_collections()
        assert [(f.display_name, f.path) for f in result] == [
            ("Notes", xochitl_dir / "c0ffee.metadata")
        ]

    def test_other_types_never_listed(self, tmp_path, write_metadata) -> None:
        write_metadata(tmp_path, "a", "Lower", "collectiontype")
        write_metadata(tmp_path, "b", "Template", "TemplateType")
        write_metadata(tmp_path, "c", "Doc", "DocumentType")
        assert MetadataStore(tmp_path).list_collections() == []

    def test_walks_subdirectories(self, tmp_path, write_metadata) -> None:
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        write_metadata(tmp_path, "top", "Top", "CollectionType")
        write_metadata(nested, "deep", "Deep", "CollectionType")
        names = [f.display_name for f in MetadataStore(tmp_path).list_collections()]
        assert sorted(names) == ["Deep", "Top"]

    def test_empty_directory(self, tmp_path) -> None:
        assert MetadataStore(tmp_path).list_collections() == []


# ---------------------------------------------------------------------------
# list_documents
# ---------------------------------------------------------------------------


class TestListDocuments:
    def test_scenario_report_present_orphan_absent(self, xochitl_dir) -> None:
        result = MetadataStore(xochitl_dir).list_documents()
        assert [(f.display_name, f.path) for f in result] == [
            ("Report", xochitl_dir / "d0c001.pdf")
        ]

    def test_collections_not_listed_as_documents(self, tmp_path, write_metadata) -> None:
        write_metadata(tmp_path, "c", "Folder", "CollectionType")
        (tmp_path / "c.pdf").write_bytes(b"x")
        assert MetadataStore(tmp_path).list_documents() == []

    def test_custom_content_extension(self, tmp_path, write_metadata) -> None:
        write_metadata(tmp_path, "book", "Book", "DocumentType")
        (tmp_path / "book.epub").write_bytes(b"epub")
        store = MetadataStore(tmp_path, content_extension=".epub")
        assert [f.path for f in store.list_documents()] == [tmp_path / "book.epub"]

    def test_only_exact_metadata_extension_considered(self, tmp_path, write_metadata) -> None:
        path = write_metadata(tmp_path, "doc", "Doc", "DocumentType")
        path.rename(tmp_path / "doc.metadata.bak")
        (tmp_path / "doc.pdf").write_bytes(b"x")
        assert MetadataStore(tmp_path).list_documents() == []

    def test_directory_named_like_metadata_is_skipped(self, tmp_path) -> None:
        (tmp_path / "weird.metadata").mkdir()
        assert MetadataStore(tmp_path).list_documents() == []

    def test_missing_fields_default(self, tmp_path) -> None:
        (tmp_path / "min.metadata").write_text('{"type": "DocumentType"}')
        (tmp_path / "min.pdf").write_bytes(b"x")
        result = MetadataStore(tmp_path).list_documents()
        assert [f.display_name for f in result] == [""]

    def test_order_is_deterministic(self, tmp_path, write_metadata) -> None:
        for stem, name in [("b", "Second"), ("a", "First"), ("c", "Third")]:
            write_metadata(tmp_path, stem, name, "DocumentType")
            (tmp_path / f"{stem}.pdf").write_bytes(b"x")
        names = [f.display_name for f in MetadataStore(tmp_path).list_documents()]
        assert names == ["First", "Second", "Third"]


# ---------------------------------------------------------------------------
# Scan errors
# ---------------------------------------------------------------------------


class TestScanErrors:
    def test_missing_base_directory(self, tmp_path) -> None:
        store = MetadataStore(tmp_path / "nope")
        with pytest.raises(ScanError, match="not found"):
            store.list_documents()

    def test_invalid_json_fails_whole_scan(self, xochitl_dir) -> None:
        (xochitl_dir / "broken.metadata").write_text("{not json")
        with pytest.raises(ScanError) as exc_info:
            MetadataStore(xochitl_dir).list_documents()
        assert exc_info.value.path == xochitl_dir / "broken.metadata"

    def test_invalid_json_fails_collections_too(self, xochitl_dir) -> None:
        (xochitl_dir / "broken.metadata").write_text("")
        with pytest.raises(ScanError):
            MetadataStore(xochitl_dir).list_collections()

    def test_non_object_json(self, tmp_path) -> None:
        (tmp_path / "list.metadata").write_text("[1, 2, 3]")
        with pytest.raises(ScanError, match="expected an object"):
            MetadataStore(tmp_path).list_collections()

    @pytest.mark.skipif(os.geteuid() == 0, reason="root ignores directory permissions")
    def test_unreadable_subdirectory(self, xochitl_dir) -> None:
        locked = xochitl_dir / "locked"
        locked.mkdir()
        locked.chmod(0)
        try:
            with pytest.raises(ScanError):
                MetadataStore(xochitl_dir).list_documents()
        finally:
            locked.chmod(0o755)

    def test_wrongly_typed_field_fails_whole_scan(self, xochitl_dir, write_metadata) -> None:
        write_metadata(xochitl_dir, "listname", ["x"], "DocumentType")
        (xochitl_dir / "listname.pdf").write_bytes(b"x")
        with pytest.raises(ScanError, match="visibleName") as exc_info:
            MetadataStore(xochitl_dir).list_documents()
        assert exc_info.value.path == xochitl_dir / "listname.metadata"

    def test_traversal_error_raises_scan_error(self, xochitl_dir) -> None:
        def failing_walk(top, onerror=None):
            onerror(PermissionError(13, "Permission denied", str(top)))
            return iter([])

        with patch("rmsync.platforms.xochitl.os.walk", side_effect=failing_walk):
            with pytest.raises(ScanError, match="Permission denied") as exc_info:
                MetadataStore(xochitl_dir).list_collections()
        assert exc_info.value.path == xochitl_dir
