"""Tests for file utility functions."""

from __future__ import annotations

from pathlib import Path

from docscreener.utils.files import iter_document_paths


class TestIterDocumentPaths:
    """Test iter_document_paths function."""

    def test_single_pdf_file(self, tmp_path: Path) -> None:
        """Should yield single PDF file."""
        pdf = tmp_path / "test.pdf"
        pdf.write_text("dummy")

        paths = list(iter_document_paths([pdf]))

        assert paths == [pdf]

    def test_single_text_file(self, tmp_path: Path) -> None:
        """Should yield plain text files too."""
        txt = tmp_path / "notes.txt"
        txt.write_text("dummy")

        assert list(iter_document_paths([txt])) == [txt]

    def test_directory_filters_unsupported(self, tmp_path: Path) -> None:
        """Should skip files that are neither PDF nor text."""
        (tmp_path / "doc1.pdf").write_text("dummy1")
        (tmp_path / "doc2.txt").write_text("dummy2")
        (tmp_path / "image.png").write_bytes(b"\x89PNG")
        (tmp_path / "data.csv").write_text("a,b")

        paths = list(iter_document_paths([tmp_path]))

        assert {p.name for p in paths} == {"doc1.pdf", "doc2.txt"}

    def test_nested_directories(self, tmp_path: Path) -> None:
        """Should find documents in nested directories."""
        subdir = tmp_path / "subdir"
        subdir.mkdir()

        (tmp_path / "root.pdf").write_text("root")
        (subdir / "nested.pdf").write_text("nested")
        (subdir / "nested.txt").write_text("text")

        paths = list(iter_document_paths([tmp_path]))

        assert {p.name for p in paths} == {"root.pdf", "nested.pdf", "nested.txt"}

    def test_case_insensitive_extension(self, tmp_path: Path) -> None:
        """Should match upper-case extensions."""
        (tmp_path / "doc1.PDF").write_text("dummy1")
        (tmp_path / "doc2.TXT").write_text("dummy2")

        paths = list(iter_document_paths([tmp_path]))

        assert len(paths) == 2

    def test_sorted_within_directory(self, tmp_path: Path) -> None:
        """Should yield directory contents in sorted order."""
        for name in ("c.txt", "a.txt", "b.pdf"):
            (tmp_path / name).write_text("x")

        paths = list(iter_document_paths([tmp_path]))

        assert [p.name for p in paths] == ["a.txt", "b.pdf", "c.txt"]

    def test_empty_directory(self, tmp_path: Path) -> None:
        """Should handle empty directory."""
        assert list(iter_document_paths([tmp_path])) == []

    def test_nonexistent_file(self, tmp_path: Path) -> None:
        """Should skip nonexistent files."""
        fake = tmp_path / "nonexistent.pdf"

        assert list(iter_document_paths([fake])) == []
