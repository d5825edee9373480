"""Pydantic models for the publish engine.

Defines the core data contracts used across all sync modules:

- ``ActionKind``: Enum of possible publish operations.
- ``Action``: One planned operation.
- ``PublishOptions``: Settings for a publish run.
- ``PublishResult``: Outcome of one action.
- ``PublishReport``: Aggregate results for a full publish run.

All models are frozen (immutable) for safety.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel

from ..blog.metadata import TIME_FORMATS
from ..blog.page import SkipReason
from ..config_schema import DEFAULT_CONTENT, DEFAULT_TEMPLATE, SiteConfig
from ..core.models import PostParams


class ActionKind(str, Enum):
    """Possible publish operations for a page or post."""

    CREATE = "create"
    UPDATE = "update"
    SKIP = "skip"
    DELETE = "delete"
    PIN = "pin"
    UNPIN = "unpin"


class Action(BaseModel):
    """One planned publish operation.

    Attributes:
        kind: Operation to perform.
        path: Source file, or ``""`` for orphaned posts.
        slug: Slug of the page or post.
        collection: Collection alias the action applies to.
        params: Outgoing fields for CREATE and UPDATE.
        post_id: Target post for UPDATE, DELETE, PIN and UNPIN.  ``None``
            for a pin that follows a create whose id is not yet known.
        token: Post token for UPDATE and DELETE.
        position: Pin position for PIN.
        reason: Why a SKIP was planned.
        message: Human-readable detail for the log and report.
    """

    kind: ActionKind
    path: str = ""
    slug: str = ""
    collection: str = ""
    params: PostParams | None = None
    post_id: str | None = None
    token: str = ""
    position: int | None = None
    reason: SkipReason | None = None
    message: str = ""

    model_config = {"frozen": True}

    @property
    def writes(self) -> bool:
        """Whether executing this action calls the remote service."""
        return self.kind != ActionKind.SKIP


class PublishOptions(BaseModel):
    """Settings for one publish run.

    Attributes:
        collection: Default collection for pages without a ``collection``
            key.
        content: Directory containing pages.
        tmpl: Body template, or ``@path`` to load one from a file.
        delete: Delete remote posts that have no matching file.
        dry_run: Plan and log every action but make no changes.
        force: Update matched posts even when nothing changed.
        create_collections: Create missing collections before publishing.
        time_formats: Formats tried when a date field holds a string.
    """

    collection: str = ""
    content: str = DEFAULT_CONTENT
    tmpl: str = DEFAULT_TEMPLATE
    delete: bool = False
    dry_run: bool = False
    force: bool = False
    create_collections: bool = False
    time_formats: tuple[str, ...] = TIME_FORMATS

    model_config = {"frozen": True}

    @classmethod
    def from_site(cls, site: SiteConfig, **overrides: Any) -> PublishOptions:
        """Options seeded from the site config, then *overrides*.

        Overrides that are ``None`` are ignored so CLI flags that were not
        given fall through to the config file.
        """
        values: dict[str, Any] = {
            "collection": site.collection,
            "content": site.content or DEFAULT_CONTENT,
            "tmpl": site.tmpl or DEFAULT_TEMPLATE,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


class PublishResult(BaseModel):
    """Result of one action.

    Attributes:
        action: Operation that was planned.
        path: Source file, or ``""`` for orphaned posts.
        slug: Slug of the page or post.
        collection: Collection alias.
        post_id: Post affected, when known.
        success: Whether the operation succeeded (always true when it was
            not executed).
        executed: Whether the remote service was called.
        reason: Why the page or post was skipped.
        error: Error message if the operation failed.
    """

    action: ActionKind
    path: str = ""
    slug: str = ""
    collection: str = ""
    post_id: str | None = None
    success: bool = True
    executed: bool = False
    reason: SkipReason | None = None
    error: str | None = None

    model_config = {"frozen": True}


class PublishReport(BaseModel):
    """Aggregate report for a full publish run.

    Attributes:
        dry_run: Whether this was a dry-run (no changes applied).
        results: Individual results, in execution order.
        started_at: ISO 8601 timestamp when the run started.
        completed_at: ISO 8601 timestamp when the run completed.
    """

    dry_run: bool = False
    results: list[PublishResult] = []
    started_at: str
    completed_at: str | None = None

    model_config = {"frozen": True}

    def _of(self, kind: ActionKind) -> list[PublishResult]:
        return [r for r in self.results if r.action == kind]

    @property
    def created(self) -> list[PublishResult]:
        """Results where action is CREATE."""
        return self._of(ActionKind.CREATE)

    @property
    def updated(self) -> list[PublishResult]:
        """Results where action is UPDATE."""
        return self._of(ActionKind.UPDATE)

    @property
    def deleted(self) -> list[PublishResult]:
        """Results where action is DELETE."""
        return self._of(ActionKind.DELETE)

    @property
    def pinned(self) -> list[PublishResult]:
        """Results where action is PIN."""
        return self._of(ActionKind.PIN)

    @property
    def skipped(self) -> list[PublishResult]:
        """Results where action is SKIP, orphans excluded."""
        return [
            r
            for r in self._of(ActionKind.SKIP)
            if r.reason != SkipReason.ORPHANED
        ]

    @property
    def orphaned(self) -> list[PublishResult]:
        """Remote posts left in place because deletion was off."""
        return [r for r in self.results if r.reason == SkipReason.ORPHANED]

    @property
    def errors(self) -> list[PublishResult]:
        """Results where success is False."""
        return [r for r in self.results if not r.success]

    @property
    def writes(self) -> list[PublishResult]:
        """Results that called the remote service."""
        return [r for r in self.results if r.executed]

    def summary(self) -> str:
        """Format a one-line summary of the run."""
        text = (
            f"{len(self.created)} created, {len(self.updated)} updated, "
            f"{len(self.deleted)} deleted, {len(self.skipped)} skipped, "
            f"{len(self.orphaned)} orphaned, {len(self.errors)} errors"
        )
        if self.dry_run:
            text += " (dry run)"
        return text
