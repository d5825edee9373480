"""Republish pages as they change.

``Watcher`` performs one full publish run, then polls the content tree
for modification times.  Each new or changed file is published on its
own against the pool retained from the full run; a removed file has its
post deleted when deletion is enabled.

Files are handled one at a time in the calling thread.  ``stop()`` (also
wired to SIGINT by ``run``) takes effect between files.
"""

from __future__ import annotations

import logging
import signal
import threading
from pathlib import Path

from .blog.page import SkipReason
from .file_handler import discover_pages
from .sync.engine import PublishEngine
from .sync.models import ActionKind, PublishReport, PublishResult

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 1.0


def snapshot(root: Path) -> dict[Path, float]:
    """Modification time of every page under *root*."""
    mtimes: dict[Path, float] = {}
    for path in discover_pages(root):
        try:
            mtimes[path] = path.stat().st_mtime
        except OSError:
            # removed between the walk and the stat
            continue
    return mtimes


def diff_snapshots(
    old: dict[Path, float], new: dict[Path, float]
) -> tuple[list[Path], list[Path]]:
    """Return ``(changed, removed)`` paths between two snapshots.

    New files count as changed.
    """
    changed = sorted(p for p, mtime in new.items() if old.get(p) != mtime)
    removed = sorted(p for p in old if p not in new)
    return changed, removed


def _published(result: PublishResult) -> bool:
    if result.action in (ActionKind.CREATE, ActionKind.UPDATE):
        return result.success
    return result.reason == SkipReason.NO_OP


class Watcher:
    """Keep a Write.as account in step with a content directory.

    Args:
        engine: Engine used for the initial run and each file.
        interval: Seconds between polls.
        dry_run: Plan and log but send no writes.
    """

    def __init__(
        self,
        engine: PublishEngine,
        interval: float = DEFAULT_INTERVAL,
        dry_run: bool = False,
    ) -> None:
        self.engine = engine
        self.interval = interval
        self.dry_run = dry_run
        self.root = Path(engine.options.content)

        self._stop = threading.Event()
        self._mtimes: dict[Path, float] = {}
        # path -> id of the post the file was last published as
        self._published: dict[Path, str] = {}

    def start(self) -> PublishReport:
        """Run the initial full publish and take the first snapshot.

        Raises:
            PublishError: If the remote posts cannot be listed.
        """
        self._mtimes = snapshot(self.root)
        report = self.engine.run(dry_run=self.dry_run)
        self._remember(report.results)
        logger.info("initial publish: %s", report.summary())
        return report

    def stop(self) -> None:
        self._stop.set()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def poll(self) -> list[PublishResult]:
        """Publish or remove whatever changed since the last poll."""
        current = snapshot(self.root)
        changed, removed = diff_snapshots(self._mtimes, current)
        results: list[PublishResult] = []

        for path in changed:
            if self.stopped:
                return results
            logger.info("%s changed, publishing", path)
            results.extend(self.publish(path))
            self._mtimes[path] = current[path]

        for path in removed:
            if self.stopped:
                return results
            results.extend(self.remove(path))
            self._mtimes.pop(path, None)

        return results

    def publish(self, path: Path) -> list[PublishResult]:
        """Publish one file against the retained pool.

        A file published before is matched against its own post only; a
        new file competes for the posts no other file holds.  When the
        file does not publish this time (a draft, a load error, a failed
        update) it keeps its post.
        """
        pool = self.engine.pool
        post_id = self._published.get(path)
        if post_id is not None:
            pool.release(post_id)

        results = self.engine.publish_file(path, pool, self.dry_run)
        if not self._remember(results) and post_id is not None:
            pool.claim(post_id)
        return results

    def remove(self, path: Path) -> list[PublishResult]:
        """Handle a file that no longer exists."""
        post_id = self._published.pop(path, None)
        if post_id is None:
            logger.debug("%s removed, it had no post", path)
            return []

        post = self.engine.pool.get(post_id)
        if post is None:
            logger.debug("%s removed, post %s is gone", path, post_id)
            return []

        if not self.engine.options.delete:
            logger.warning(
                "%s removed, re-run with --delete to remove post %r",
                path,
                post.slug,
            )
            return []
        return [self.engine.remove_file(post, self.dry_run)]

    def run(self) -> None:
        """Publish, then poll until ``stop()`` or SIGINT."""
        previous = None
        if threading.current_thread() is threading.main_thread():
            previous = signal.signal(
                signal.SIGINT, lambda signum, frame: self.stop()
            )
        try:
            self.start()
            while not self._stop.wait(self.interval):
                self.poll()
        finally:
            if previous is not None:
                signal.signal(signal.SIGINT, previous)
        logger.info("stopped watching %s", self.root)

    def _remember(self, results: list[PublishResult]) -> bool:
        remembered = False
        for result in results:
            if result.path and result.post_id and _published(result):
                self._published[Path(result.path)] = result.post_id
                remembered = True
        return remembered
