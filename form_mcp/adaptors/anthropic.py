"""Anthropic API adaptor for form-mcp."""

import os
from typing import Optional

from anthropic import AsyncAnthropic

from form_mcp.model import DEFAULT_MAX_TOKENS, DescriptionAdaptor


class AnthropicAdaptor(DescriptionAdaptor):
    """Anthropic description adaptor using the official SDK.

    Args:
        api_key: Anthropic API key. Falls back to ANTHROPIC_API_KEY environment variable.
        model: Model name (default: claude-haiku-4-5-20251001).
        max_tokens: Maximum tokens in the response (default: 150).
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "claude-haiku-4-5-20251001",
        max_tokens: int = DEFAULT_MAX_TOKENS,
    ):
        self.api_key = api_key or os.environ.get("ANTHROPIC_API_KEY")
        if not self.api_key:
            raise ValueError(
                "Anthropic API key not provided. "
                "Pass api_key argument or set ANTHROPIC_API_KEY environment variable."
            )

        self.model = model
        self.max_tokens = max_tokens
        self.client = AsyncAnthropic(api_key=self.api_key)

    async def describe(self, prompt: str, **kwargs) -> str:
        response = await self.client.messages.create(
            model=self.model,
            max_tokens=kwargs.get("max_tokens", self.max_tokens),
            messages=[{"role": "user", "content": prompt}],
        )
        return self._parse_response(response)

    def _parse_response(self, response) -> str:
        texts = [block.text for block in response.content if block.type == "text"]
        return "".join(texts).strip()
