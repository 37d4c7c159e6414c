"""Google Gemini API adaptor for form-mcp."""

import os
from typing import Optional

from google import genai
from google.genai import types

from form_mcp.model import DEFAULT_MAX_TOKENS, DescriptionAdaptor


class GeminiAdaptor(DescriptionAdaptor):
    """Google Gemini description adaptor using the official google-genai SDK.

    Args:
        api_key: Google AI API key. Falls back to GOOGLE_API_KEY environment variable.
        model: Model name (default: gemini-2.5-flash).
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gemini-2.5-flash",
    ):
        self.api_key = api_key or os.environ.get("GOOGLE_API_KEY")
        if not self.api_key:
            raise ValueError(
                "Google API key not provided. "
                "Pass api_key argument or set GOOGLE_API_KEY environment variable."
            )

        self.model = model
        self.client = genai.Client(api_key=self.api_key)

    async def describe(self, prompt: str, **kwargs) -> str:
        config = types.GenerateContentConfig(
            max_output_tokens=kwargs.get("max_tokens", DEFAULT_MAX_TOKENS),
            temperature=0.2,
        )
        response = await self.client.aio.models.generate_content(
            model=self.model,
            contents=prompt,
            config=config,
        )
        return (response.text or "").strip()
