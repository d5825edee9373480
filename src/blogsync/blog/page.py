"""Local pages: one Markdown file with frontmatter.

``load_page`` reads a file and builds a ``Page``; ``build_page`` does the
same from text already in memory.  Pages are rebuilt on every run and
never persisted.

Eligibility is a property of the page, not an error: drafts, pages
without a title, pages whose rendered body is empty, and pages that still
use a YAML header are all valid ``Page`` objects that report a
``SkipReason``.  Only failures to read, decode, or template a file raise
``PageError``.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel

from ..config_schema import SiteConfig
from ..converters.unwrap import UnwrapRenderer, unwrap_markdown
from ..file_handler import read_file_with_encoding
from .metadata import (
    FrontmatterError,
    HeaderKind,
    Metadata,
    decode_frontmatter,
)
from .slug import slug as derive_slug
from .template import BodyTemplate, TemplateError


class SkipReason(str, Enum):
    """Why a page or post was left alone."""

    DRAFT = "draft"
    MISSING_TITLE = "missing-title"
    EMPTY_BODY = "empty-body"
    YAML_HEADER = "yaml-header"
    NO_OP = "no-op"
    ORPHANED = "orphaned"
    ERROR = "error"


SKIP_MESSAGES: dict[SkipReason, str] = {
    SkipReason.DRAFT: "page is a draft",
    SkipReason.MISSING_TITLE: "invalid or empty title",
    SkipReason.EMPTY_BODY: "post has no body",
    SkipReason.YAML_HEADER: (
        "page has a YAML header, convert its frontmatter to TOML"
    ),
    SkipReason.NO_OP: "no updates needed",
    SkipReason.ORPHANED: (
        "no file found matching post, re-run with --delete to remove"
    ),
    SkipReason.ERROR: "error",
}


class PageError(Exception):
    """Raised when a page cannot be read, decoded, or templated."""


class Page(BaseModel):
    """One local Markdown page.

    Attributes:
        path: Path of the source file.
        header: Kind of frontmatter header the file uses.
        metadata: Decoded frontmatter.
        raw_body: Source Markdown after the frontmatter.
        slug: Derived slug.
        collection: Page ``collection`` key, else the site default.
        draft: The ``draft`` flag.
        title: The ``title`` key.
        body: Final outgoing content (normalized and templated).  Empty
            when the page was already ineligible before rendering.
    """

    path: Path
    header: HeaderKind
    metadata: Metadata
    raw_body: str
    slug: str
    collection: str
    draft: bool
    title: str
    body: str

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    @property
    def skip_reason(self) -> SkipReason | None:
        """Reason the page must not be published, or ``None``."""
        if self.header == HeaderKind.YAML:
            return SkipReason.YAML_HEADER
        if self.draft:
            return SkipReason.DRAFT
        if not self.title:
            return SkipReason.MISSING_TITLE
        if not self.body:
            return SkipReason.EMPTY_BODY
        return None

    @property
    def eligible(self) -> bool:
        return self.skip_reason is None


def build_page(
    path: Path,
    text: str,
    *,
    default_collection: str = "",
    template: BodyTemplate | None = None,
    site: SiteConfig | None = None,
    renderer: UnwrapRenderer | None = None,
) -> Page:
    """
    Build a ``Page`` from the full text of a file.

    The body is only rendered for pages that could still be published,
    so a draft with a broken body never fails the run.

    Raises:
        PageError: If the frontmatter cannot be decoded or the template
            fails to execute.
    """
    try:
        fm = decode_frontmatter(text)
    except FrontmatterError as exc:
        raise PageError(f"error decoding metadata for {path}: {exc}") from exc

    meta = fm.metadata
    title = meta.get_string("title")
    draft = meta.get_bool("draft")
    collection = meta.get_string("collection") or default_collection

    body = ""
    if fm.header == HeaderKind.TOML and not draft and title:
        normalized = unwrap_markdown(fm.body.strip(), renderer)
        try:
            body = (template or BodyTemplate()).render(normalized, meta, site)
        except TemplateError as exc:
            raise PageError(f"{exc} for file {path}") from exc

    return Page(
        path=path,
        header=fm.header,
        metadata=meta,
        raw_body=fm.body,
        slug=derive_slug(path, meta),
        collection=collection,
        draft=draft,
        title=title,
        body=body,
    )


def load_page(
    path: Path,
    *,
    default_collection: str = "",
    template: BodyTemplate | None = None,
    site: SiteConfig | None = None,
    renderer: UnwrapRenderer | None = None,
) -> Page:
    """Read the file at *path* and build its ``Page``.

    Raises:
        PageError: If the file cannot be read or the page cannot be built.
    """
    try:
        text, _ = read_file_with_encoding(path)
    except OSError as exc:
        raise PageError(f"error opening {path}: {exc}") from exc
    return build_page(
        path,
        text,
        default_collection=default_collection,
        template=template,
        site=site,
        renderer=renderer,
    )
