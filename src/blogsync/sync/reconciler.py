"""Action planning: decide what each page and orphaned post needs.

The reconciler is pure apart from logging and consuming entries from the
``RemotePool``.  It never calls the remote service, so dry-run and live
runs make identical decisions and log identical messages; only the
engine's execution step differs.

For each eligible page:

1. Match it against the pool by (slug, collection); a match is consumed.
2. Build the outgoing ``PostParams``.
3. Plan CREATE when unmatched, SKIP when ``eq_params`` holds and force is
   off, UPDATE otherwise.  Updates never carry ``created``.
4. Plan an UNPIN, then a PIN when the page declares an integer ``pin``.
   Pin state cannot be read back, so both are planned on every run.

Posts still in the pool afterwards are orphans: DELETE when deletion is
enabled, otherwise a SKIP carrying a warning.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from ..blog.page import SKIP_MESSAGES, Page, SkipReason
from ..config_schema import SiteConfig
from ..core.models import PostParams, RemotePost
from .compare import eq_params
from .models import Action, ActionKind, PublishOptions
from .pool import RemotePool

logger = logging.getLogger(__name__)

DEFAULT_FONT = "norm"


@dataclass
class PagePlan:
    """Actions planned for one page.

    ``actions`` is empty for an ineligible page; ``skip_reason`` then
    says why.  Otherwise the first action is the primary one (CREATE,
    UPDATE or a no-op SKIP) and the rest are pin actions.
    """

    page: Page
    existing: RemotePost | None = None
    actions: list[Action] = field(default_factory=list)
    skip_reason: SkipReason | None = None

    @property
    def primary(self) -> Action | None:
        return self.actions[0] if self.actions else None

    @property
    def pins(self) -> list[Action]:
        return self.actions[1:]


class Reconciler:
    """Plan publish actions for pages against a pool of remote posts.

    Args:
        options: Publish options (default collection, force, delete,
            time formats).
        site: Site config, used for the default language.
    """

    def __init__(
        self, options: PublishOptions, site: SiteConfig | None = None
    ) -> None:
        self.options = options
        self.site = site or SiteConfig()

    def build_params(
        self, page: Page, existing: RemotePost | None = None
    ) -> PostParams:
        """Derive the outgoing params for *page*.

        ``created`` is ``publishDate``, else ``date``, else absent.
        ``updated`` is ``lastmod``, else ``created``.
        """
        meta = page.metadata
        formats = self.options.time_formats
        created = meta.get_time("publishDate", formats) or meta.get_time(
            "date", formats
        )
        updated = meta.get_time("lastmod", formats) or created

        return PostParams(
            id=existing.id if existing else "",
            token=existing.token if existing else "",
            slug=page.slug,
            title=page.title,
            content=page.body,
            font=meta.get_string("font") or DEFAULT_FONT,
            language=meta.get_string("lang") or self.site.language,
            rtl=meta.get_bool("rtl"),
            created=created,
            updated=updated,
            collection=page.collection,
        )

    def plan_page(self, page: Page, pool: RemotePool) -> PagePlan:
        """Plan the actions for one page, consuming its match from *pool*."""
        path = str(page.path)
        reason = page.skip_reason
        if reason is not None:
            if reason == SkipReason.DRAFT:
                logger.debug("skipping draft %s", path)
            else:
                logger.info("%s: %s, skipping", path, SKIP_MESSAGES[reason])
            return PagePlan(page=page, skip_reason=reason)

        existing = pool.take(page.slug, page.collection)
        params = self.build_params(page, existing)
        base = {
            "path": path,
            "slug": page.slug,
            "collection": page.collection,
        }

        if existing is None:
            logger.debug("publishing %s from %s", page.slug, path)
            primary = Action(kind=ActionKind.CREATE, params=params, **base)
        elif eq_params(existing, params) and not self.options.force:
            logger.debug("no updates needed for %s, skipping", page.slug)
            primary = Action(
                kind=ActionKind.SKIP,
                post_id=existing.id,
                reason=SkipReason.NO_OP,
                message=SKIP_MESSAGES[SkipReason.NO_OP],
                **base,
            )
        else:
            logger.debug(
                "updating /%s (%r) from %s", page.slug, existing.id, path
            )
            primary = Action(
                kind=ActionKind.UPDATE,
                params=params.without_created(),
                post_id=existing.id,
                token=existing.token,
                **base,
            )

        post_id = existing.id if existing else None
        actions = [
            primary,
            Action(kind=ActionKind.UNPIN, post_id=post_id, **base),
        ]
        position = page.metadata.get_int("pin", default=None)
        if position is not None:
            actions.append(
                Action(
                    kind=ActionKind.PIN,
                    post_id=post_id,
                    position=position,
                    **base,
                )
            )
        return PagePlan(page=page, existing=existing, actions=actions)

    def plan_orphans(self, pool: RemotePool) -> list[Action]:
        """Plan what to do with every post no page matched."""
        actions: list[Action] = []
        for post in pool.remaining():
            base = {
                "slug": post.slug,
                "collection": post.collection_alias,
                "post_id": post.id,
            }
            if self.options.delete:
                logger.debug(
                    "no file found matching post %r, deleting", post.slug
                )
                actions.append(
                    Action(kind=ActionKind.DELETE, token=post.token, **base)
                )
                continue
            logger.warning(
                "no file found matching post %r, re-run with --delete to remove",
                post.slug,
            )
            actions.append(
                Action(
                    kind=ActionKind.SKIP,
                    reason=SkipReason.ORPHANED,
                    message=SKIP_MESSAGES[SkipReason.ORPHANED],
                    **base,
                )
            )
        return actions

    def plan(
        self, pages: Iterable[Page], posts: Iterable[RemotePost]
    ) -> list[Action]:
        """Plan a whole run: every page in order, then the orphans."""
        pool = RemotePool(posts)
        actions: list[Action] = []
        for page in pages:
            actions.extend(self.plan_page(page, pool).actions)
        actions.extend(self.plan_orphans(pool))
        return actions
