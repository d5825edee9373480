"""Tests for watch mode."""

import os
import signal

import pytest

from blogsync.blog.page import SkipReason
from blogsync.sync.engine import PublishEngine
from blogsync.sync.models import ActionKind, PublishOptions
from blogsync.watch import Watcher, diff_snapshots, snapshot
from conftest import FakeWriteAsClient, write_page

PAGE = '+++\ntitle = "Hi"\n+++\n{body}\n'


def _touch(path, text, mtime):
    path.write_text(text, encoding="utf-8")
    os.utime(path, (mtime, mtime))


@pytest.fixture
def client():
    return FakeWriteAsClient()


def _watcher(client, content_dir, **options):
    engine = PublishEngine(
        client, PublishOptions(content=str(content_dir), **options)
    )
    return Watcher(engine, interval=0.01)


class TestSnapshots:
    def test_snapshot(self, content_dir):
        path = write_page(content_dir, "a.md", "x")
        (content_dir / "notes.txt").write_text("x")
        assert list(snapshot(content_dir)) == [path]

    def test_diff(self, tmp_path):
        a, b, c = tmp_path / "a.md", tmp_path / "b.md", tmp_path / "c.md"
        old = {a: 1.0, b: 1.0}
        new = {a: 2.0, c: 1.0}
        assert diff_snapshots(old, new) == ([a, c], [b])

    def test_diff_unchanged(self, tmp_path):
        snap = {tmp_path / "a.md": 1.0}
        assert diff_snapshots(snap, dict(snap)) == ([], [])


class TestWatcher:
    def test_start_runs_full_publish(self, client, content_dir):
        write_page(content_dir, "hi.md", PAGE.format(body="one"))
        watcher = _watcher(client, content_dir)
        report = watcher.start()
        assert len(report.created) == 1
        assert watcher.engine.pool is not None

    def test_changed_file_updates_post(self, client, content_dir):
        path = content_dir / "hi.md"
        _touch(path, PAGE.format(body="one"), 1_000_000)
        watcher = _watcher(client, content_dir)
        watcher.start()
        client.calls.clear()

        _touch(path, PAGE.format(body="two"), 2_000_000)
        results = watcher.poll()

        assert results[0].action == ActionKind.UPDATE
        method, post_id, _, params = client.calls[0]
        assert (method, post_id) == ("update_post", "new1")
        assert params.content == "two\n"

    def test_unchanged_content_is_noop(self, client, content_dir):
        path = content_dir / "hi.md"
        _touch(path, PAGE.format(body="one"), 1_000_000)
        watcher = _watcher(client, content_dir)
        watcher.start()

        _touch(path, PAGE.format(body="one"), 2_000_000)
        results = watcher.poll()
        assert results[0].reason == SkipReason.NO_OP

    def test_new_file_created(self, client, content_dir):
        watcher = _watcher(client, content_dir)
        watcher.start()
        write_page(content_dir, "new.md", PAGE.format(body="fresh"))
        results = watcher.poll()
        assert results[0].action == ActionKind.CREATE

    def test_poll_without_changes(self, client, content_dir):
        write_page(content_dir, "hi.md", PAGE.format(body="one"))
        watcher = _watcher(client, content_dir)
        watcher.start()
        client.calls.clear()
        assert watcher.poll() == []
        assert client.calls == []

    def test_removed_file_deleted(self, client, content_dir):
        path = write_page(content_dir, "hi.md", PAGE.format(body="one"))
        watcher = _watcher(client, content_dir, delete=True)
        watcher.start()
        client.calls.clear()

        path.unlink()
        results = watcher.poll()

        assert results[0].action == ActionKind.DELETE
        assert client.calls == [("delete_post", "new1", "tok")]

    def test_removed_file_without_delete_warns(
        self, client, content_dir, caplog
    ):
        path = write_page(content_dir, "hi.md", PAGE.format(body="one"))
        watcher = _watcher(client, content_dir)
        watcher.start()
        client.calls.clear()

        path.unlink()
        assert watcher.poll() == []
        assert client.calls == []
        assert "re-run with --delete" in caplog.text

    def test_removed_draft_does_nothing(self, client, content_dir):
        path = write_page(
            content_dir, "d.md", '+++\ntitle = "D"\ndraft = true\n+++\nx\n'
        )
        watcher = _watcher(client, content_dir, delete=True)
        watcher.start()
        path.unlink()
        assert watcher.poll() == []
        assert client.calls == []

    def test_dry_run(self, client, content_dir):
        path = content_dir / "hi.md"
        _touch(path, PAGE.format(body="one"), 1_000_000)
        engine = PublishEngine(
            client, PublishOptions(content=str(content_dir), delete=True)
        )
        watcher = Watcher(engine, interval=0.01, dry_run=True)
        watcher.start()
        _touch(path, PAGE.format(body="two"), 2_000_000)
        watcher.poll()
        path.unlink()
        watcher.poll()
        assert client.calls == []

    def test_stop_between_files(self, client, content_dir):
        watcher = _watcher(client, content_dir)
        watcher.start()
        write_page(content_dir, "a.md", PAGE.format(body="a"))
        watcher.stop()
        assert watcher.stopped
        assert watcher.poll() == []
        assert client.calls == []

    def test_run_until_stopped(self, client, content_dir):
        write_page(content_dir, "hi.md", PAGE.format(body="one"))
        watcher = _watcher(client, content_dir)
        handler = signal.getsignal(signal.SIGINT)
        watcher.stop()
        watcher.run()
        assert client.calls[0][0] == "create_post"
        assert signal.getsignal(signal.SIGINT) is handler


SAME_TITLE = '+++\ntitle = "Post"\n+++\n{body}\n'


class TestSharedSlug:
    """Two files deriving the same slug each keep their own post."""

    @pytest.fixture
    def pair(self, client, content_dir):
        a, b = content_dir / "a.md", content_dir / "b.md"
        _touch(a, SAME_TITLE.format(body="first"), 1_000_000)
        _touch(b, SAME_TITLE.format(body="second"), 1_000_000)
        return a, b

    def test_initial_run_creates_both(self, client, content_dir, pair):
        report = _watcher(client, content_dir).start()
        assert [r.post_id for r in report.created] == ["new1", "new2"]

    def test_edit_updates_own_post(self, client, content_dir, pair):
        a, b = pair
        watcher = _watcher(client, content_dir)
        watcher.start()
        client.calls.clear()

        _touch(b, SAME_TITLE.format(body="second, edited"), 2_000_000)
        results = watcher.poll()

        assert (results[0].action, results[0].post_id) == (
            ActionKind.UPDATE,
            "new2",
        )
        assert [c[:2] for c in client.calls] == [
            ("update_post", "new2"),
            ("unpin_post", ""),
        ]
        assert client.calls[1] == ("unpin_post", "", "new2")

        client.calls.clear()
        _touch(a, SAME_TITLE.format(body="first, edited"), 3_000_000)
        assert watcher.poll()[0].post_id == "new1"
        assert client.calls[0][:2] == ("update_post", "new1")

    def test_unchanged_edit_compares_own_post(self, client, content_dir, pair):
        _, b = pair
        watcher = _watcher(client, content_dir)
        watcher.start()
        client.calls.clear()

        _touch(b, SAME_TITLE.format(body="second"), 2_000_000)
        results = watcher.poll()
        assert results[0].reason == SkipReason.NO_OP
        assert results[0].post_id == "new2"
        assert client.calls == [("unpin_post", "", "new2")]

    def test_remove_deletes_own_post(self, client, content_dir, pair):
        a, b = pair
        watcher = _watcher(client, content_dir, delete=True)
        watcher.start()
        client.calls.clear()

        b.unlink()
        watcher.poll()
        assert client.calls == [("delete_post", "new2", "tok")]

        client.calls.clear()
        _touch(a, SAME_TITLE.format(body="first, edited"), 2_000_000)
        watcher.poll()
        assert client.calls[0][:2] == ("update_post", "new1")

    def test_failed_update_keeps_post(self, client, content_dir, pair):
        _, b = pair
        watcher = _watcher(client, content_dir)
        watcher.start()

        client.fail.add("update_post")
        _touch(b, SAME_TITLE.format(body="try one"), 2_000_000)
        assert not watcher.poll()[0].success

        client.fail.clear()
        client.calls.clear()
        _touch(b, SAME_TITLE.format(body="try two"), 3_000_000)
        watcher.poll()
        assert client.calls[0][:2] == ("update_post", "new2")

    def test_file_turned_draft_keeps_post(self, client, content_dir, pair):
        _, b = pair
        watcher = _watcher(client, content_dir, delete=True)
        watcher.start()

        _touch(
            b, '+++\ntitle = "Post"\ndraft = true\n+++\nx\n', 2_000_000
        )
        assert watcher.poll()[0].reason == SkipReason.DRAFT

        client.calls.clear()
        b.unlink()
        watcher.poll()
        assert client.calls == [("delete_post", "new2", "tok")]
