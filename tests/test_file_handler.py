"""Tests for file_handler module: page discovery and encoding-aware reads."""

import pytest

from blogsync.file_handler import discover_pages, read_file_with_encoding

# =============================================================================
# discover_pages
# =============================================================================


class TestDiscoverPages:
    """Tests for discover_pages(root)."""

    def test_finds_markdown_recursively(self, content_dir):
        (content_dir / "a.md").write_text("x")
        (content_dir / "posts" / "hello").mkdir(parents=True)
        (content_dir / "posts" / "hello" / "index.md").write_text("x")
        (content_dir / "b.markdown").write_text("x")

        result = discover_pages(content_dir)
        assert [p.relative_to(content_dir).as_posix() for p in result] == [
            "a.md",
            "b.markdown",
            "posts/hello/index.md",
        ]

    def test_ignores_other_files(self, content_dir):
        (content_dir / "notes.txt").write_text("x")
        (content_dir / "image.png").write_bytes(b"\x89PNG")
        assert discover_pages(content_dir) == []

    def test_directory_named_like_page_skipped(self, content_dir):
        (content_dir / "odd.md").mkdir()
        (content_dir / "odd.md" / "real.md").write_text("x")
        result = discover_pages(content_dir)
        assert [p.name for p in result] == ["real.md"]

    def test_missing_root(self, tmp_path):
        assert discover_pages(tmp_path / "nope") == []

    def test_root_is_file(self, tmp_path):
        f = tmp_path / "a.md"
        f.write_text("x")
        assert discover_pages(f) == []


# =============================================================================
# read_file_with_encoding
# =============================================================================


class TestReadFileWithEncoding:
    """Tests for read_file_with_encoding(path)."""

    def test_utf8(self, tmp_path):
        f = tmp_path / "utf8.md"
        f.write_text('+++\ntitle = "Café au lait"\n+++\n', encoding="utf-8")
        content, encoding = read_file_with_encoding(f)
        assert "Café au lait" in content
        assert encoding == "utf-8"

    def test_ascii_reported_as_utf8(self, tmp_path):
        f = tmp_path / "ascii.md"
        f.write_bytes(b"plain ascii text\n")
        content, encoding = read_file_with_encoding(f)
        assert content == "plain ascii text\n"
        assert encoding == "utf-8"

    def test_empty_file(self, tmp_path):
        f = tmp_path / "empty.md"
        f.write_bytes(b"")
        assert read_file_with_encoding(f) == ("", "utf-8")

    def test_bom_stripped(self, tmp_path):
        f = tmp_path / "bom.md"
        f.write_bytes(b"\xef\xbb\xbf+++\ntitle = \"x\"\n+++\n")
        content, _ = read_file_with_encoding(f)
        assert content.startswith("+++")

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(OSError):
            read_file_with_encoding(tmp_path / "missing.md")
