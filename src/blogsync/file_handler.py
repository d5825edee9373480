"""File handler module: page discovery and encoding-aware reads."""

import codecs
from pathlib import Path

from charset_normalizer import from_bytes

PAGE_EXTENSIONS: frozenset[str] = frozenset({".md", ".markdown"})


def discover_pages(root: Path) -> list[Path]:
    """Return every Markdown page under *root*, sorted.

    Only files ending in ``.md`` or ``.markdown`` are pages; directories
    are descended into but never returned.  A missing root yields no
    pages.
    """
    if not root.is_dir():
        return []
    return sorted(
        path
        for path in root.rglob("*")
        if path.suffix in PAGE_EXTENSIONS and path.is_file()
    )


def read_file_with_encoding(path: Path) -> tuple[str, str]:
    """Decode a page whatever its encoding; returns (text, encoding).

    charset-normalizer picks the encoding.  Empty or undetectable input
    is treated as UTF-8, and ASCII is reported as UTF-8 since every page
    is published as UTF-8 anyway.  A leading BOM is dropped so the
    frontmatter marker starts the text.
    """
    raw = path.read_bytes()
    match = from_bytes(raw).best() if raw else None
    if match is None:
        text = raw.decode("utf-8", errors="replace")
        return (text.lstrip("\ufeff"), "utf-8")

    encoding = codecs.lookup(match.encoding).name
    if encoding == "ascii":
        encoding = "utf-8"
    return (str(match).lstrip("\ufeff"), encoding)
