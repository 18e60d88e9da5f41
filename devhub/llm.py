"""Claude-backed LLM client: plain-text prompts and tool-use structured output."""

from __future__ import annotations

import json
import logging
from typing import Any

from anthropic import AsyncAnthropic
from anthropic.types import TextBlock

from devhub.config import Settings
from devhub.errors import DevHubError, ErrorKind

logger = logging.getLogger(__name__)


class LLMClient:
    """Thin async wrapper around the Anthropic Messages API.

    The rest of the package only depends on ``invoke`` (prompt in, text out)
    and ``invoke_tool`` (prompt plus tool schema in, tool input dict out).
    """

    def __init__(self, settings: Settings, client: AsyncAnthropic | None = None) -> None:
        settings.require_llm()
        self.model = settings.llm_model
        self.max_tokens = settings.llm_max_tokens
        self._client = client or AsyncAnthropic(
            api_key=settings.anthropic_api_key,
            timeout=settings.llm_timeout_seconds,
        )

    async def invoke(self, prompt: str, system: str | None = None, max_tokens: int | None = None) -> str:
        """Send a single-turn prompt and return the text reply.

        Args:
            prompt: The user prompt.
            system: Optional system prompt.
            max_tokens: Override for the configured completion budget.

        Returns:
            The text of the first content block.

        Raises:
            DevHubError: With kind ``PARSE`` if Claude replies with no text block.
        """
        kwargs: dict[str, Any] = {}
        if system:
            kwargs["system"] = system

        response = await self._client.messages.create(
            model=self.model,
            max_tokens=max_tokens or self.max_tokens,
            messages=[{"role": "user", "content": prompt}],
            **kwargs,
        )

        # response.content[0] is a union of block types; plain prompts yield text.
        block = response.content[0] if response.content else None
        if not isinstance(block, TextBlock):
            raise DevHubError(
                f"Expected TextBlock from Claude, got {type(block).__name__}",
                kind=ErrorKind.PARSE,
                details={"model": self.model},
            )
        return block.text

    async def invoke_tool(
        self,
        prompt: str,
        tool: dict[str, Any],
        system: str | None = None,
    ) -> dict[str, Any] | None:
        """Force a tool call and return the tool input as a dict.

        Returns None when the reply carries no matching tool_use block.
        """
        kwargs: dict[str, Any] = {}
        if system:
            kwargs["system"] = system

        response = await self._client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            tools=[tool],
            tool_choice={"type": "tool", "name": tool["name"]},
            messages=[{"role": "user", "content": prompt}],
            **kwargs,
        )
        return parse_tool_input(response, tool["name"])


def parse_tool_input(response: Any, tool_name: str) -> dict[str, Any] | None:
    """Pull the input payload of the named tool_use block out of a response."""
    for block in response.content:
        if block.type != "tool_use":
            continue
        if block.name != tool_name:
            continue

        data = block.input
        if isinstance(data, str):
            try:
                data = json.loads(data)
            except json.JSONDecodeError:
                logger.warning("Tool %s returned non-JSON input", tool_name)
                return None
        if isinstance(data, dict):
            return data
    return None
