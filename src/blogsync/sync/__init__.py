"""Publish engine.

Public API for reconciling a tree of local Markdown pages with the posts
of a Write.as account.

Architecture
------------
Every run fetches the full remote listing once and matches each local
page against it by (slug, collection).  A match is consumed, so each
remote post is claimed by at most one page; whatever is left unmatched
at the end is an orphan.

Modules:

- ``engine``     -- ``PublishEngine``: orchestrates a full run and the
  single-file variant used by watch mode.
- ``reconciler`` -- ``Reconciler``: decides each page's actions.
- ``pool``       -- ``RemotePool``: consume-once arena of remote posts.
- ``compare``    -- ``eq_post`` / ``eq_params``: the update-avoidance
  equality law.
- ``models``     -- ``ActionKind``, ``Action``, ``PublishOptions``,
  ``PublishResult``, ``PublishReport``.  Post and collection models
  live in ``blogsync.core.models``.
- ``reporter``   -- Human-readable and JSON report formatting.

Usage example
-------------
::

    from blogsync.config import load_config
    from blogsync.core.client import WriteAsClient
    from blogsync.sync import PublishEngine, PublishOptions
    from blogsync.sync import format_publish_report

    client = WriteAsClient(load_config())
    engine = PublishEngine(client, PublishOptions(collection="blog"))

    # Dry-run first to preview changes
    preview = engine.run(dry_run=True)
    print(format_publish_report(preview))

    report = engine.run()
    print(format_publish_report(report))
"""

from ..core.models import Collection, PostParams, RemotePost
from .compare import eq_params, eq_post
from .engine import PublishEngine, PublishError
from .models import (
    Action,
    ActionKind,
    PublishOptions,
    PublishReport,
    PublishResult,
)
from .pool import RemotePool
from .reconciler import PagePlan, Reconciler
from .reporter import (
    format_dry_run_preview,
    format_publish_report,
    report_to_json,
)

__all__ = [
    "Action",
    "ActionKind",
    "Collection",
    "PagePlan",
    "PostParams",
    "PublishEngine",
    "PublishError",
    "PublishOptions",
    "PublishReport",
    "PublishResult",
    "Reconciler",
    "RemotePool",
    "RemotePost",
    "eq_params",
    "eq_post",
    "format_dry_run_preview",
    "format_publish_report",
    "report_to_json",
]
