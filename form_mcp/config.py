"""Configuration surface for form-mcp."""

from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, Field

Provider = Literal["claude", "gemini", "openai", "ollama"]


class EnhancerSettings(BaseModel):
    """Optional LLM enrichment of tool descriptions.

    api_key falls back to the provider's environment variable when omitted.
    """

    provider: Provider
    api_key: Optional[str] = None
    model: Optional[str] = None
    base_url: Optional[str] = None


class FormOverride(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class FormToolsConfig(BaseModel):
    exclude: list[str] = Field(
        default_factory=list,
        description="CSS selectors for forms that are never exposed.",
    )
    auto_submit: bool = Field(
        default=False,
        description="Submit agent-filled forms without waiting for a human.",
    )
    enhance: Optional[EnhancerSettings] = None
    overrides: dict[str, FormOverride] = Field(
        default_factory=dict,
        description="Name/description overrides keyed by CSS selector; first match wins.",
    )
    debug: bool = False


def resolve_config(
    user_config: Union[FormToolsConfig, dict[str, Any], None] = None,
) -> FormToolsConfig:
    """Apply defaults to a user configuration.

    Raises:
        pydantic.ValidationError: If the configuration is invalid.
    """
    if user_config is None:
        return FormToolsConfig()
    if isinstance(user_config, FormToolsConfig):
        return user_config
    return FormToolsConfig.model_validate(user_config)
