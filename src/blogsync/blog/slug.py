"""Derive the canonical slug of a page.

Resolution order:

1. **Explicit** -- the ``slug`` frontmatter key.
2. **Title** -- the ``title`` frontmatter key.
3. **Path** -- the file name without extension, or the parent directory
   name when the file is an ``index`` page (``posts/hello/index.md`` ->
   ``hello``).

Whichever value wins is lowercased and has whitespace and path separators
replaced with ``-``.  Slugs are not required to be unique: the same slug in
two collections names two different posts.
"""

from __future__ import annotations

import re
from pathlib import PurePath, PurePosixPath, PureWindowsPath

from .metadata import Metadata

_REPLACE = re.compile(r"[\s/\\]")


def slug(path: str | PurePath, metadata: Metadata) -> str:
    """Return the slug for the page at *path* with *metadata*."""
    value = metadata.get_string("slug") or metadata.get_string("title")
    if not value:
        value = _slug_from_path(path)
    return _REPLACE.sub("-", value.lower())


def _slug_from_path(path: str | PurePath) -> str:
    raw = str(path)
    # Accept either separator regardless of the host platform.
    p: PurePath = (
        PureWindowsPath(raw) if "\\" in raw else PurePosixPath(raw)
    )
    if p.stem == "index":
        return p.parent.name
    return p.stem
