"""Commit message suggestions from an OpenAI-compatible chat endpoint."""

import json
import logging
import re
from dataclasses import dataclass
from typing import List, Optional

from openai import OpenAI, OpenAIError

from .config import Config
from .errors import ExternalCallError

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)


@dataclass
class CommitMessageCandidate:
    """One suggested commit message."""
    subject: str
    body: str = ""
    is_fallback: bool = False

    @property
    def label(self) -> str:
        return self.subject

    @property
    def message(self) -> str:
        """Full commit message: subject, blank line, body."""
        subject = self.subject.strip()
        body = self.body.strip()
        return f"{subject}\n\n{body}" if body else subject


def build_commit_prompt(diff: str, count: int = 3, limit: int = 3000) -> str:
    """Prompt asking for `count` commit messages for a diff cut to `limit` characters."""
    return (
        f"Generate {count} distinct git commit messages for the following diff. "
        "Respond with only a JSON array of objects, each with a short imperative "
        '"subject" (at most 72 characters) and an optional "body" explaining the change, '
        'for example [{"subject": "...", "body": "..."}].\n\n'
        f"{diff[:limit]}"
    )


def _fallback(raw: str) -> List[CommitMessageCandidate]:
    return [CommitMessageCandidate(subject=raw, is_fallback=True)]


def parse_commit_candidates(raw: str) -> List[CommitMessageCandidate]:
    """
    Parse the model's reply.

    Accepts a JSON array of {"subject", "body"} objects or of plain strings,
    optionally wrapped in a Markdown code fence. Anything else yields a
    single candidate whose label is the raw reply.
    """
    logger = logging.getLogger('githelper.ai')
    cleaned = _FENCE_RE.sub("", raw or "").strip()

    try:
        data = json.loads(cleaned)
    except ValueError:
        logger.debug("Model reply is not valid JSON; offering it verbatim")
        return _fallback(raw)

    if not isinstance(data, list) or not data:
        return _fallback(raw)

    candidates = []
    for item in data:
        if isinstance(item, str) and item.strip():
            candidates.append(CommitMessageCandidate(subject=item.strip()))
        elif isinstance(item, dict) and isinstance(item.get("subject"), str) and item["subject"].strip():
            body = item.get("body")
            candidates.append(CommitMessageCandidate(
                subject=item["subject"].strip(),
                body=body.strip() if isinstance(body, str) else ""
            ))
        else:
            logger.debug(f"Unexpected item in model reply: {item!r}")
            return _fallback(raw)

    return candidates


class CommitMessageGenerator:
    """Sends a diff to the model and returns parsed suggestions."""

    def __init__(self, config: Config, api_key: str, client: Optional[OpenAI] = None):
        self.config = config
        self.client = client or OpenAI(api_key=api_key, base_url=config.ai_base_url)
        self.logger = logging.getLogger('githelper.ai')

    def complete(self, prompt: str) -> str:
        """Raw text reply for a single-message prompt."""
        try:
            response = self.client.chat.completions.create(
                model=self.config.ai_model,
                messages=[{"role": "user", "content": prompt}],
            )
        except OpenAIError as e:
            raise ExternalCallError(f"AI Error: {e}", operation="generate commit messages",
                                    error_code="AI_REQUEST_FAILED") from e

        reply = response.choices[0].message.content if response.choices else None
        if not reply or not reply.strip():
            raise ExternalCallError("AI Error: the model returned an empty reply",
                                    operation="generate commit messages", error_code="AI_EMPTY_REPLY")
        return reply

    def suggest(self, diff: str) -> List[CommitMessageCandidate]:
        prompt = build_commit_prompt(diff, self.config.suggestion_count, self.config.diff_char_limit)
        self.logger.info(f"Requesting {self.config.suggestion_count} commit message(s) from {self.config.ai_model}")
        return parse_commit_candidates(self.complete(prompt))
