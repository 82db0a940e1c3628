#!/usr/bin/env python3
"""
Unit tests for the background remote status poller.

Discovery and git calls are replaced with fakes so each cycle can be
driven directly through poll_once().
"""

import sys
import tempfile
import threading
import time
import unittest
from contextlib import nullcontext
from datetime import datetime
from pathlib import Path
from unittest.mock import MagicMock

sys.path.insert(0, str(Path(__file__).parent))

from githelper.config import Config
from githelper.git_ops.locator import RepositoryCandidate
from githelper.git_ops.poller import RemoteStatusPoller, SYNC_ACTION
from githelper.git_ops.remote_status import RemoteStatus
from githelper.git_ops.utils import create_git_result
from githelper.ui import StatusDisplay


def candidate(name: str) -> RepositoryCandidate:
    return RepositoryCandidate(display_name=name, absolute_path=Path("/workspace") / name,
                               has_version_control_metadata=True)


def behind(path: Path, count: int, author: str = "Ada") -> object:
    status = RemoteStatus(repository_path=path, commits_behind=count, last_polled_at=datetime.now(),
                          latest_author=author if count else None)
    return create_git_result(True, f"{count} behind", "remote status", value=status)


def failed(message: str = "fetch failed: could not resolve host") -> object:
    return create_git_result(False, message, "fetch", error_code="GIT_COMMAND_FAILED")


class TestRemoteStatusPoller(unittest.TestCase):
    """Test cases for a single poll cycle."""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.config = Config(workspace_dir=Path(self.temp_dir.name), data_dir=Path(self.temp_dir.name) / "data",
                             poll_interval=0.05)
        self.ui = MagicMock()
        self.ui.progress.return_value = nullcontext()
        self.ui.notify.return_value = None
        self.display = StatusDisplay()
        self.check = MagicMock()
        self.sync = MagicMock(return_value=create_git_result(True, "pulled", "pull"))

    def tearDown(self):
        self.temp_dir.cleanup()

    def make_poller(self, repositories):
        locate = MagicMock(side_effect=lambda root, bounds: iter(repositories))
        poller = RemoteStatusPoller(self.config, self.ui, display=self.display,
                                    locate=locate, check=self.check, sync=self.sync)
        return poller, locate

    def test_no_repositories_means_no_calls(self):
        poller, locate = self.make_poller([])

        statuses = poller.poll_once()

        self.assertEqual(statuses, [])
        locate.assert_called_once()
        self.check.assert_not_called()
        self.ui.notify.assert_not_called()
        self.assertFalse(self.display.visible)

    def test_up_to_date_repository_is_not_announced(self):
        repo = candidate("repo")
        self.check.side_effect = lambda path: behind(path, 0)
        self.display.update("3 Incoming", "old")
        poller, _ = self.make_poller([repo])

        statuses = poller.poll_once()

        self.assertEqual([s.commits_behind for s in statuses], [0])
        self.ui.notify.assert_not_called()
        self.assertFalse(self.display.visible)

    def test_only_first_behind_repository_is_announced(self):
        repos = [candidate("a"), candidate("b"), candidate("c")]
        self.check.side_effect = lambda path: behind(path, 2 if path.name in ("b", "c") else 0, author="Grace")
        poller, _ = self.make_poller(repos)

        statuses = poller.poll_once()

        checked = [call.args[0].name for call in self.check.call_args_list]
        self.assertEqual(checked, ["a", "b"])
        self.assertEqual(len(statuses), 2)
        self.ui.notify.assert_called_once_with("Remote Update: Grace pushed 2 new commit(s).", [SYNC_ACTION])
        self.assertTrue(self.display.visible)
        self.assertEqual(self.display.text, "2 Incoming")
        self.assertEqual(self.display.tooltip, "Last change by Grace")

    def test_failures_are_skipped(self):
        repos = [candidate("offline"), candidate("no_upstream"), candidate("fine")]
        results = {"offline": failed(), "no_upstream": failed("no upstream configured")}
        self.check.side_effect = lambda path: results.get(path.name) or behind(path, 1)
        poller, _ = self.make_poller(repos)

        statuses = poller.poll_once()

        self.assertEqual(self.check.call_count, 3)
        self.assertEqual([s.repository_path.name for s in statuses], ["fine"])
        self.ui.notify.assert_called_once()
        self.ui.error.assert_not_called()

    def test_all_failures_stay_silent(self):
        self.check.side_effect = lambda path: failed()
        poller, _ = self.make_poller([candidate("a"), candidate("b")])

        self.assertEqual(poller.poll_once(), [])
        self.ui.notify.assert_not_called()
        self.ui.error.assert_not_called()

    def test_sync_action_pulls_and_hides_status(self):
        repo = candidate("repo")
        self.check.side_effect = lambda path: behind(path, 1, author="Linus")
        self.ui.notify.return_value = SYNC_ACTION
        poller, _ = self.make_poller([repo])

        poller.poll_once()

        self.sync.assert_called_once_with(repo.absolute_path)
        self.ui.progress.assert_called_once_with("Syncing...")
        self.ui.info.assert_called_once_with("Successfully synced updates from Linus")
        self.assertFalse(self.display.visible)

    def test_failed_sync_reports_error(self):
        self.check.side_effect = lambda path: behind(path, 1)
        self.ui.notify.return_value = SYNC_ACTION
        self.sync.return_value = failed("pull failed: merge conflict")
        poller, _ = self.make_poller([candidate("repo")])

        poller.poll_once()

        self.ui.error.assert_called_once_with("pull failed: merge conflict")
        self.assertTrue(self.display.visible)

    def test_dismissed_notification_does_not_pull(self):
        self.check.side_effect = lambda path: behind(path, 4)
        poller, _ = self.make_poller([candidate("repo")])

        poller.poll_once()

        self.sync.assert_not_called()

    def test_repositories_are_rediscovered_each_cycle(self):
        self.check.side_effect = lambda path: behind(path, 0)
        poller, locate = self.make_poller([candidate("repo")])

        poller.poll_once()
        poller.poll_once()

        self.assertEqual(locate.call_count, 2)
        bounds = locate.call_args.args[1]
        self.assertEqual(bounds.max_depth, self.config.poll_max_depth)


class TestPollerLifecycle(unittest.TestCase):
    """Test cases for start/stop of the timer thread."""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.config = Config(workspace_dir=Path(self.temp_dir.name), data_dir=Path(self.temp_dir.name) / "data",
                             poll_interval=0.05)

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_start_runs_cycles_until_stopped(self):
        cycles = threading.Event()
        locate = MagicMock(side_effect=lambda root, bounds: (cycles.set(), iter([]))[1])
        poller = RemoteStatusPoller(self.config, MagicMock(), display=StatusDisplay(), locate=locate)

        poller.start()
        self.assertTrue(poller.is_running)
        self.assertTrue(cycles.wait(2))
        poller.stop(wait=True, timeout=2)

        self.assertFalse(poller.is_running)
        calls_after_stop = locate.call_count
        time.sleep(0.2)
        self.assertEqual(locate.call_count, calls_after_stop)

    def test_start_twice_keeps_one_thread(self):
        poller = RemoteStatusPoller(self.config, MagicMock(), display=StatusDisplay(),
                                    locate=MagicMock(return_value=iter([])))
        poller.start()
        first = poller._thread
        poller.start()

        self.assertIs(poller._thread, first)
        poller.stop(wait=True, timeout=2)

    def test_restart_during_cycle_leaves_one_timer(self):
        entered = threading.Event()
        release = threading.Event()
        calls = []

        def locate(root, bounds):
            calls.append(threading.current_thread())
            if len(calls) == 1:
                entered.set()
                release.wait(2)
            return iter([])

        poller = RemoteStatusPoller(self.config, MagicMock(), display=StatusDisplay(), locate=locate)
        poller.start()
        first = poller._thread
        self.assertTrue(entered.wait(2))

        poller.stop()
        self.assertFalse(poller.is_running)
        poller.start()
        second = poller._thread
        release.set()

        first.join(2)
        self.assertFalse(first.is_alive())
        self.assertTrue(second.is_alive())
        alive = [t for t in (first, second) if t.is_alive()]
        self.assertEqual(len(alive), 1)
        poller.stop(wait=True, timeout=2)
        self.assertFalse(second.is_alive())

    def test_unexpected_error_does_not_end_polling(self):
        calls = []

        def locate(root, bounds):
            calls.append(1)
            raise RuntimeError("boom")

        poller = RemoteStatusPoller(self.config, MagicMock(), display=StatusDisplay(), locate=locate)
        poller.start()
        deadline = time.time() + 2
        while len(calls) < 2 and time.time() < deadline:
            time.sleep(0.02)
        poller.stop(wait=True, timeout=2)

        self.assertGreaterEqual(len(calls), 2)


class TestStatusDisplay(unittest.TestCase):

    def test_changes_are_reported(self):
        seen = []
        display = StatusDisplay(on_change=lambda d: seen.append((d.text, d.visible)))

        display.update("1 Incoming", "Last change by Ada")
        display.hide()
        display.hide()

        self.assertEqual(seen, [("1 Incoming", True), ("1 Incoming", False)])


if __name__ == "__main__":
    unittest.main()
