"""OpenAI API adaptor for form-mcp."""

import os
from typing import Optional

import httpx

from form_mcp.model import DEFAULT_MAX_TOKENS, DescriptionAdaptor


class OpenAIAdaptor(DescriptionAdaptor):
    """OpenAI-compatible description adaptor.

    Supports OpenAI API and compatible endpoints (local models, proxies, etc.).

    Args:
        api_key: OpenAI API key. Falls back to OPENAI_API_KEY environment variable.
        model: Model name (default: gpt-5-mini).
        base_url: Base URL for the API (default: https://api.openai.com/v1).
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gpt-5-mini",
        base_url: Optional[str] = None,
    ):
        self.api_key = api_key or os.environ.get("OPENAI_API_KEY")
        if not self.api_key:
            raise ValueError(
                "OpenAI API key not provided. "
                "Pass api_key argument or set OPENAI_API_KEY environment variable."
            )

        self.model = model
        self.base_url = base_url or "https://api.openai.com/v1"

    async def describe(self, prompt: str, **kwargs) -> str:
        """Call the chat completions endpoint with a single user prompt.

        Raises:
            ValueError: If API response is malformed or unexpected.
            httpx.HTTPError: If the API request fails.
        """
        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_completion_tokens": kwargs.get("max_tokens", DEFAULT_MAX_TOKENS),
        }

        async with httpx.AsyncClient() as client:
            response = await client.post(
                f"{self.base_url}/chat/completions",
                json=payload,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                timeout=kwargs.get("timeout", 30.0),
            )

        if response.status_code != 200:
            error_data = response.json()
            error_msg = error_data.get("error", {}).get("message", "Unknown error")
            raise ValueError(f"OpenAI API error: {error_msg}")

        return self._parse_response(response.json())

    def _parse_response(self, data: dict) -> str:
        """Extract the text of the first choice.

        Raises:
            ValueError: If response format is unexpected.
        """
        if not data.get("choices"):
            raise ValueError("OpenAI response missing 'choices' field")

        message = data["choices"][0].get("message", {})
        return (message.get("content") or "").strip()
