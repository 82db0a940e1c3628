#!/usr/bin/env python3
"""
Tests for the command line interface.

Commands are invoked through typer's CliRunner against a temporary
workspace; logging setup is patched out so handlers never bind to the
runner's captured streams.
"""

import shutil
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from typer.testing import CliRunner

sys.path.insert(0, str(Path(__file__).parent))

from githelper import __version__
from githelper.cli import app

runner = CliRunner()


class TestCli(unittest.TestCase):

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp()).resolve()
        self.workspace = self.temp_dir / "workspace"
        self.workspace.mkdir()
        self.env = {"GITHELPER_DATA_DIR": str(self.temp_dir / "data"), "COLUMNS": "200"}
        self._logging = patch("githelper.cli.setup_logging")
        self._logging.start()

    def tearDown(self):
        self._logging.stop()
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def invoke(self, *args, env=None):
        return runner.invoke(app, ["--workspace", str(self.workspace), *args], env={**self.env, **(env or {})})

    def make_repo(self, name):
        path = self.workspace / name
        (path / ".git").mkdir(parents=True)
        return path

    def test_version(self):
        result = runner.invoke(app, ["--version"])

        self.assertEqual(result.exit_code, 0)
        self.assertIn(f"githelper version {__version__}", result.output)

    def test_repos_in_empty_workspace(self):
        result = self.invoke("repos")

        self.assertEqual(result.exit_code, 0)
        self.assertIn("No repositories found", result.output)

    def test_repos_lists_repositories(self):
        self.make_repo("alpha")
        self.make_repo("beta")

        result = self.invoke("repos")

        self.assertEqual(result.exit_code, 0)
        self.assertIn("alpha", result.output)
        self.assertIn("beta", result.output)
        self.assertNotIn("No repositories found", result.output)

    def test_repos_publishable(self):
        self.make_repo("alpha")
        (self.workspace / "plain").mkdir()

        result = self.invoke("repos", "--publishable")

        self.assertEqual(result.exit_code, 0)
        self.assertIn("Publishable folders", result.output)
        self.assertIn("plain", result.output)
        self.assertNotIn("alpha", result.output)

    def test_repos_publishable_with_nothing_to_publish(self):
        (self.workspace / ".git").mkdir()

        result = self.invoke("repos", "--publishable")

        self.assertEqual(result.exit_code, 0)
        self.assertIn("No folders to publish", result.output)

    def test_repos_depth_zero_only_checks_workspace_root(self):
        self.make_repo("alpha")

        result = self.invoke("repos", "--depth", "0")

        self.assertEqual(result.exit_code, 0)
        self.assertIn("No repositories found", result.output)

    def test_negative_depth_is_rejected(self):
        result = self.invoke("repos", "--depth", "-1")

        self.assertNotEqual(result.exit_code, 0)

    def test_configuration_error_exits_with_message(self):
        result = self.invoke("repos", env={"GITHELPER_SCAN_DEPTH": "deep"})

        self.assertEqual(result.exit_code, 1)
        self.assertIn("Configuration error", result.output)

    def test_watch_applies_interval_and_stops_poller(self):
        with patch("githelper.cli.RemoteStatusPoller") as poller_class:
            poller = poller_class.return_value
            poller.is_running = False

            result = self.invoke("watch", "--interval", "7")

        self.assertEqual(result.exit_code, 0)
        config = poller_class.call_args.args[0]
        self.assertEqual(config.poll_interval, 7)
        self.assertEqual(config.workspace_dir, self.workspace)
        poller.start.assert_called_once_with()
        poller.stop.assert_called_once_with()
        self.assertIn("every 7s", result.output)


if __name__ == "__main__":
    unittest.main()
