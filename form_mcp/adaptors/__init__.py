"""Description providers for form-mcp.

This module provides implementations of DescriptionAdaptor for various LLM
providers. SDK-based providers are only available when their SDK is installed.
"""

from typing import Optional

from form_mcp.adaptors.openai import OpenAIAdaptor
from form_mcp.model import DescriptionAdaptor

__all__ = ["OpenAIAdaptor", "get_adaptor"]

# Conditional imports for optional SDK-based adaptors
try:
    from form_mcp.adaptors.anthropic import AnthropicAdaptor

    __all__.append("AnthropicAdaptor")
except ImportError:
    pass

try:
    from form_mcp.adaptors.gemini import GeminiAdaptor

    __all__.append("GeminiAdaptor")
except ImportError:
    pass

try:
    from form_mcp.adaptors.ollama import OllamaAdaptor

    __all__.append("OllamaAdaptor")
except ImportError:
    pass


def get_adaptor(
    provider: str,
    api_key: Optional[str] = None,
    model: Optional[str] = None,
    base_url: Optional[str] = None,
) -> DescriptionAdaptor:
    """Build the adaptor for ``provider``.

    Raises:
        ValueError: If the provider is unknown or its API key is missing.
        ImportError: If the provider's SDK is not installed.
    """
    kwargs = {"model": model} if model else {}

    if provider == "claude":
        from form_mcp.adaptors.anthropic import AnthropicAdaptor

        return AnthropicAdaptor(api_key=api_key, **kwargs)
    if provider == "gemini":
        from form_mcp.adaptors.gemini import GeminiAdaptor

        return GeminiAdaptor(api_key=api_key, **kwargs)
    if provider == "openai":
        return OpenAIAdaptor(api_key=api_key, base_url=base_url, **kwargs)
    if provider == "ollama":
        from form_mcp.adaptors.ollama import OllamaAdaptor

        return OllamaAdaptor(host=base_url, **kwargs)
    raise ValueError(f"Unknown description provider: {provider!r}")
