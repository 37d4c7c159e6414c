"""Ollama adaptor for form-mcp."""

from typing import Optional

from ollama import AsyncClient

from form_mcp.model import DEFAULT_MAX_TOKENS, DescriptionAdaptor


class OllamaAdaptor(DescriptionAdaptor):
    """Ollama description adaptor using the official SDK.

    Args:
        model: Model name (default: llama3.1).
        host: Ollama server URL (default: None, SDK defaults to localhost:11434).
    """

    def __init__(
        self,
        model: str = "llama3.1",
        host: Optional[str] = None,
    ):
        self.model = model
        self.client = AsyncClient(host=host)

    async def describe(self, prompt: str, **kwargs) -> str:
        response = await self.client.chat(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            options={"num_predict": kwargs.get("max_tokens", DEFAULT_MAX_TOKENS)},
        )
        return (response.message.content or "").strip()
