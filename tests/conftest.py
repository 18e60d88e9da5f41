"""Shared fixtures: a scripted LLM stand-in and Settings builders."""

from __future__ import annotations

from typing import Any

import pytest

from devhub.config import Settings

SAMPLE_TRANSCRIPT = """\
Alice: Welcome everyone, let's start with the sprint review.
Bob: The login service refactor is done and merged.
Alice: Great. Bob will update the deployment docs by Friday.
Carol: I found a possible SQL injection in the reporting endpoint, we should fix it asap.
Bob: Agreed, we decided to block the release until the fix is in.
Alice: Any questions before we wrap up?
Carol: Who owns the monitoring dashboards?
"""

MEETING_REPLIES: dict[str, str] = {
    "concise but comprehensive summary": "The team reviewed the sprint and agreed to fix a security issue.",
    "extract every action item": (
        "ITEM: Update the deployment docs\nASSIGNED: Bob\nPRIORITY: Medium\nNOTES: By Friday\n---\n"
        "ITEM: Fix SQL injection in reporting endpoint\nASSIGNED: Carol\nPRIORITY: Urgent\nNOTES: Blocks release\n---"
    ),
    "key topics and themes": "Sprint review\nLogin service refactor\nSQL injection",
    "every decision that was made": "Block the release until the injection fix is merged",
    "questions that remain unanswered": "Who owns the monitoring dashboards?",
    "overall sentiment": "POSITIVE",
}


class ScriptedLLM:
    """Stand-in for ``LLMClient`` that answers by matching markers in the prompt.

    A reply that is an exception instance is raised instead of returned.
    Every prompt is recorded in ``prompts``.
    """

    def __init__(
        self,
        replies: dict[str, Any] | None = None,
        default: str = "",
        tool_reply: dict[str, Any] | None = None,
    ) -> None:
        self.replies = replies or {}
        self.default = default
        self.tool_reply = tool_reply
        self.prompts: list[str] = []
        self.tool_prompts: list[str] = []

    async def invoke(self, prompt: str, system: str | None = None, max_tokens: int | None = None) -> str:
        self.prompts.append(prompt)
        for marker, reply in self.replies.items():
            if marker in prompt:
                if isinstance(reply, BaseException):
                    raise reply
                return reply
        return self.default

    async def invoke_tool(
        self, prompt: str, tool: dict[str, Any], system: str | None = None
    ) -> dict[str, Any] | None:
        self.tool_prompts.append(prompt)
        return self.tool_reply


def make_settings(**overrides: Any) -> Settings:
    """Settings isolated from any local .env file."""
    values: dict[str, Any] = {"anthropic_api_key": "test-key"}
    values.update(overrides)
    return Settings(_env_file=None, **values)  # type: ignore[call-arg]


GITHUB_SETTINGS = {
    "github_token": "gh-token",
    "github_repo_owner": "acme",
    "github_repo_name": "webapp",
    "github_api_url": "https://api.github.test",
    "http_max_retries": 1,
}

JIRA_SETTINGS = {
    "jira_url": "https://acme.atlassian.test",
    "jira_email": "bot@acme.test",
    "jira_api_token": "jira-token",
    "jira_project_key": "OPS",
    "http_max_retries": 1,
}


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def meeting_llm() -> ScriptedLLM:
    return ScriptedLLM(dict(MEETING_REPLIES))
