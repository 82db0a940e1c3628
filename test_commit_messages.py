#!/usr/bin/env python3
"""
Unit tests for commit message prompts and reply parsing.
"""

import sys
import tempfile
import unittest
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock

import httpx
from openai import APIConnectionError

sys.path.insert(0, str(Path(__file__).parent))

from githelper.ai import (
    CommitMessageCandidate,
    CommitMessageGenerator,
    build_commit_prompt,
    parse_commit_candidates
)
from githelper.config import Config
from githelper.errors import ExternalCallError, error_handler


def fake_client(reply: str) -> MagicMock:
    client = MagicMock()
    client.chat.completions.create.return_value = SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=reply))]
    )
    return client


class TestParseCommitCandidates(unittest.TestCase):

    def test_objects_with_subject_and_body(self):
        raw = '[{"subject": "Add login form", "body": "Uses the new auth API."}, {"subject": "Fix typo"}]'

        candidates = parse_commit_candidates(raw)

        self.assertEqual([c.subject for c in candidates], ["Add login form", "Fix typo"])
        self.assertEqual(candidates[0].body, "Uses the new auth API.")
        self.assertEqual(candidates[1].body, "")
        self.assertFalse(any(c.is_fallback for c in candidates))

    def test_plain_strings(self):
        candidates = parse_commit_candidates('["feat: add cache", "perf: cache lookups", "chore: tidy"]')

        self.assertEqual([c.label for c in candidates], ["feat: add cache", "perf: cache lookups", "chore: tidy"])

    def test_markdown_fence_is_stripped(self):
        raw = '```json\n[{"subject": "Refactor parser", "body": ""}]\n```'

        candidates = parse_commit_candidates(raw)

        self.assertEqual(len(candidates), 1)
        self.assertEqual(candidates[0].subject, "Refactor parser")
        self.assertFalse(candidates[0].is_fallback)

    def test_invalid_json_gives_single_raw_entry(self):
        raw = "Sure! Here are some ideas: update readme"

        candidates = parse_commit_candidates(raw)

        self.assertEqual(len(candidates), 1)
        self.assertEqual(candidates[0].label, raw)
        self.assertTrue(candidates[0].is_fallback)

    def test_unexpected_shapes_fall_back(self):
        for raw in ('{"subject": "x"}', "[]", '[{"body": "no subject"}]', "[1, 2]"):
            with self.subTest(raw=raw):
                candidates = parse_commit_candidates(raw)
                self.assertEqual([c.label for c in candidates], [raw])

    def test_message_joins_subject_and_body(self):
        self.assertEqual(CommitMessageCandidate("Subject", "Body text").message, "Subject\n\nBody text")
        self.assertEqual(CommitMessageCandidate("Subject only").message, "Subject only")


class TestBuildCommitPrompt(unittest.TestCase):

    def test_diff_is_truncated(self):
        diff = "+" * 5000

        prompt = build_commit_prompt(diff, count=3, limit=3000)

        self.assertIn("Generate 3 distinct git commit messages", prompt)
        self.assertIn('"subject"', prompt)
        self.assertEqual(prompt.count("+"), 3000)

    def test_short_diff_is_kept(self):
        diff = "diff --git a/x b/x\n+hello\n"
        self.assertTrue(build_commit_prompt(diff).endswith(diff))


class TestCommitMessageGenerator(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.config = Config(workspace_dir=Path(self.temp_dir.name), data_dir=Path(self.temp_dir.name) / "data",
                             ai_model="test-model", diff_char_limit=10)

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_suggest_sends_prompt_and_parses_reply(self):
        client = fake_client('[{"subject": "Add tests", "body": "Cover parser"}]')
        generator = CommitMessageGenerator(self.config, "key", client=client)

        candidates = generator.suggest("0123456789abcdef")

        kwargs = client.chat.completions.create.call_args.kwargs
        self.assertEqual(kwargs["model"], "test-model")
        self.assertTrue(kwargs["messages"][0]["content"].endswith("0123456789"))
        self.assertEqual(candidates[0].message, "Add tests\n\nCover parser")

    def test_non_json_reply_falls_back(self):
        generator = CommitMessageGenerator(self.config, "key", client=fake_client("just text"))

        candidates = generator.suggest("diff")

        self.assertEqual([c.label for c in candidates], ["just text"])

    def test_empty_reply_is_an_error_not_a_blank_option(self):
        for reply in ("", "   \n"):
            with self.subTest(reply=reply):
                generator = CommitMessageGenerator(self.config, "key", client=fake_client(reply))

                with self.assertRaises(ExternalCallError) as raised:
                    generator.suggest("diff")
                self.assertEqual(raised.exception.error_code, "AI_EMPTY_REPLY")

    def test_missing_content_or_choices_is_an_error(self):
        no_content = fake_client("")
        no_content.chat.completions.create.return_value.choices[0].message.content = None
        no_choices = MagicMock()
        no_choices.chat.completions.create.return_value = SimpleNamespace(choices=[])

        for client in (no_content, no_choices):
            with self.subTest(client=client):
                with self.assertRaises(ExternalCallError):
                    CommitMessageGenerator(self.config, "key", client=client).suggest("diff")

    def test_empty_reply_error_code_reaches_error_response(self):
        generator = CommitMessageGenerator(self.config, "key", client=fake_client(""))
        with self.assertRaises(ExternalCallError) as raised:
            generator.suggest("diff")

        response = error_handler.handle_ai_error(raised.exception)

        self.assertEqual(response.error_code, "AI_EMPTY_REPLY")
        self.assertEqual(response.category, "external_call")

    def test_service_failure_raises_external_call_error(self):
        client = MagicMock()
        request = httpx.Request("POST", "https://example.invalid/chat/completions")
        client.chat.completions.create.side_effect = APIConnectionError(request=request)
        generator = CommitMessageGenerator(self.config, "key", client=client)

        with self.assertRaises(ExternalCallError) as raised:
            generator.suggest("diff")
        self.assertTrue(str(raised.exception).startswith("AI Error:"))


if __name__ == "__main__":
    unittest.main()
