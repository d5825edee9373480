"""Publish engine that drives a full run against Write.as.

The ``PublishEngine`` ties together page loading, the reconciler and the
API client.  A run:

1. Optionally creates missing collections.
2. Lists every remote post once.  This is the only fatal step.
3. Walks the content tree, loading and planning each page in order.
4. Executes each page's actions as soon as they are planned.
5. Plans and executes the orphan pass.
6. Builds and returns a ``PublishReport``.

Error handling is per page and per action: a failure is logged and
recorded in the report, and the run continues.  Nothing is retried; the
next run is the retry.  In dry-run mode planning and logging are
unchanged and no write is sent.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

import requests

from ..blog.page import Page, PageError, SkipReason, load_page
from ..blog.template import BodyTemplate
from ..config_schema import SiteConfig
from ..converters.unwrap import UnwrapRenderer
from ..core.client import WriteAsClient, WriteAsError
from ..core.models import RemotePost
from ..file_handler import discover_pages
from .models import (
    Action,
    ActionKind,
    PublishOptions,
    PublishReport,
    PublishResult,
)
from .pool import RemotePool
from .reconciler import PagePlan, Reconciler

logger = logging.getLogger(__name__)

# Errors a single remote call may raise without ending the run.
REMOTE_ERRORS = (WriteAsError, requests.RequestException)


class PublishError(RuntimeError):
    """Raised when a run cannot proceed at all."""


class PublishEngine:
    """Publish a tree of pages to Write.as.

    Args:
        client: WriteAsClient (or a double with the same methods).
        options: Publish options.
        site: Site config, passed to templates and used for defaults.

    Raises:
        TemplateError: If the body template cannot be loaded or compiled.
    """

    def __init__(
        self,
        client: WriteAsClient,
        options: PublishOptions,
        site: SiteConfig | None = None,
    ) -> None:
        self.client = client
        self.options = options
        self.site = site or SiteConfig()

        self.template = BodyTemplate.from_option(options.tmpl)
        self.renderer = UnwrapRenderer()
        self.reconciler = Reconciler(options, self.site)
        self.pool: RemotePool | None = None
        self._collections: set[str] | None = None

    # ------------------------------------------------------------------
    # Main entry point
    # ------------------------------------------------------------------

    def run(self, dry_run: bool | None = None) -> PublishReport:
        """Execute a full publish run.

        Args:
            dry_run: Override ``options.dry_run``.

        Returns:
            A ``PublishReport`` summarising what was (or would be) done.

        Raises:
            PublishError: If the remote posts cannot be listed.
        """
        if dry_run is None:
            dry_run = self.options.dry_run
        started_at = datetime.now(timezone.utc).isoformat()

        if self.options.create_collections and not dry_run:
            self.ensure_collection(
                self.options.collection,
                title=self.site.title,
                description=self.site.description,
            )

        try:
            posts = self.client.get_user_posts()
        except REMOTE_ERRORS as exc:
            raise PublishError(f"error fetching user's posts: {exc}") from exc
        logger.debug("fetched %d remote posts", len(posts))
        self.pool = RemotePool(posts)

        results: list[PublishResult] = []
        for path in discover_pages(Path(self.options.content)):
            results.extend(self.publish_file(path, self.pool, dry_run))

        for action in self.reconciler.plan_orphans(self.pool):
            result, _ = self._execute(action, dry_run)
            results.append(result)

        return PublishReport(
            dry_run=dry_run,
            results=results,
            started_at=started_at,
            completed_at=datetime.now(timezone.utc).isoformat(),
        )

    # ------------------------------------------------------------------
    # Single-file variant
    # ------------------------------------------------------------------

    def load(self, path: Path) -> Page:
        """Load one page with this engine's template and defaults."""
        return load_page(
            path,
            default_collection=self.options.collection,
            template=self.template,
            site=self.site,
            renderer=self.renderer,
        )

    def publish_file(
        self, path: Path, pool: RemotePool, dry_run: bool = False
    ) -> list[PublishResult]:
        """Load, plan and execute one page against *pool*.

        Returns one result per action, or a single SKIP result for a page
        that could not be loaded or is not eligible.
        """
        logger.debug("opening %s", path)
        try:
            page = self.load(path)
        except PageError as exc:
            logger.error("%s, skipping", exc)
            return [
                PublishResult(
                    action=ActionKind.SKIP,
                    path=str(path),
                    success=False,
                    reason=SkipReason.ERROR,
                    error=str(exc),
                )
            ]

        plan = self.reconciler.plan_page(page, pool)
        if plan.skip_reason is not None:
            return [
                PublishResult(
                    action=ActionKind.SKIP,
                    path=str(path),
                    slug=page.slug,
                    collection=page.collection,
                    reason=plan.skip_reason,
                )
            ]
        return self._execute_plan(plan, pool, dry_run)

    def remove_file(
        self, post: RemotePost, dry_run: bool = False
    ) -> PublishResult:
        """Delete a previously published post whose file is gone."""
        action = Action(
            kind=ActionKind.DELETE,
            slug=post.slug,
            collection=post.collection_alias,
            post_id=post.id,
            token=post.token,
        )
        logger.debug("file for post %r removed, deleting", post.slug)
        result, _ = self._execute(action, dry_run)
        if result.executed and result.success and self.pool is not None:
            self.pool.discard(post.id)
        return result

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------

    def ensure_collection(
        self, alias: str, title: str = "", description: str = ""
    ) -> None:
        """Create collection *alias* unless the user already owns it.

        The user's collections are fetched once per engine.  Failures are
        logged and never fatal.
        """
        if not alias:
            return
        if self._collections is None:
            try:
                owned = self.client.get_user_collections()
            except REMOTE_ERRORS as exc:
                logger.error("error fetching existing collections: %s", exc)
                owned = []
            self._collections = {c.alias for c in owned}
        if alias in self._collections:
            return

        logger.debug("creating collection %s", alias)
        try:
            self.client.create_collection(
                alias, title=title or alias, description=description
            )
        except REMOTE_ERRORS as exc:
            logger.debug("error creating collection %s: %s", alias, exc)
            return
        self._collections.add(alias)

    # ------------------------------------------------------------------
    # Action execution
    # ------------------------------------------------------------------

    def _execute_plan(
        self, plan: PagePlan, pool: RemotePool, dry_run: bool
    ) -> list[PublishResult]:
        primary = plan.actions[0]

        if (
            self.options.create_collections
            and not dry_run
            and primary.kind in (ActionKind.CREATE, ActionKind.UPDATE)
        ):
            self.ensure_collection(primary.collection)

        result, post = self._execute(primary, dry_run)
        results = [result]
        if not result.success:
            # The pins need the post, so they go with it.
            return results

        post_id = primary.post_id
        if post is not None:
            post_id = post.id
            pool.add(post)

        for action in plan.pins:
            if action.post_id != post_id:
                action = action.model_copy(update={"post_id": post_id})
            pin_result, _ = self._execute(action, dry_run)
            results.append(pin_result)
        return results

    def _execute(
        self, action: Action, dry_run: bool
    ) -> tuple[PublishResult, RemotePost | None]:
        """Execute one action, or only describe it when *dry_run*.

        Returns the result and, for CREATE and UPDATE, the post the
        service sent back.
        """
        fields = {
            "action": action.kind,
            "path": action.path,
            "slug": action.slug,
            "collection": action.collection,
            "post_id": action.post_id,
            "reason": action.reason,
        }
        if action.kind == ActionKind.SKIP:
            return PublishResult(**fields), None

        if action.kind == ActionKind.UNPIN:
            logger.debug("attempting to unpin post %s", action.slug)
        elif action.kind == ActionKind.PIN:
            logger.debug(
                "attempting to pin post %s to position %d",
                action.slug,
                action.position,
            )
        if dry_run:
            return PublishResult(**fields), None

        post: RemotePost | None = None
        try:
            if action.kind == ActionKind.CREATE:
                post = self.client.create_post(action.params)
            elif action.kind == ActionKind.UPDATE:
                post = self.client.update_post(
                    action.post_id, action.token, action.params
                )
            elif action.kind == ActionKind.DELETE:
                self.client.delete_post(action.post_id, action.token)
            elif action.kind == ActionKind.PIN:
                self.client.pin_post(
                    action.collection, action.post_id, action.position
                )
            elif action.kind == ActionKind.UNPIN:
                self.client.unpin_post(action.collection, action.post_id)
        except REMOTE_ERRORS as exc:
            self._log_failure(action, exc)
            return (
                PublishResult(
                    **fields, success=False, executed=True, error=str(exc)
                ),
                None,
            )

        if post is not None:
            fields["post_id"] = post.id
        return PublishResult(**fields, executed=True), post

    def _log_failure(self, action: Action, exc: Exception) -> None:
        if action.kind == ActionKind.CREATE:
            logger.error("error creating post from %s: %s", action.path, exc)
        elif action.kind == ActionKind.UPDATE:
            logger.error(
                "error updating post %r from %s: %s",
                action.post_id,
                action.path,
                exc,
            )
        elif action.kind == ActionKind.DELETE:
            logger.error("error deleting post %r: %s", action.slug, exc)
        elif action.kind == ActionKind.PIN:
            logger.debug(
                "error pinning post %s to position %d: %s",
                action.slug,
                action.position,
                exc,
            )
        else:
            logger.debug("error unpinning post %s: %s", action.slug, exc)
