import logging
from typing import Any, Optional, Union

from bs4 import Tag

from form_mcp.config import FormToolsConfig, resolve_config
from form_mcp.discovery import DiscoveryEngine
from form_mcp.hooks import HookRegistry
from form_mcp.page import Page

logger = logging.getLogger(__name__)


class FormToolsHandle:
    """Returned by ``initialize``; inspects or tears down one instance."""

    def __init__(self, engine: DiscoveryEngine):
        self.engine = engine

    @property
    def supported(self) -> bool:
        """True if the page currently has a tool host."""
        return self.engine.registry.is_supported()

    @property
    def hooks(self) -> HookRegistry:
        return self.engine.hooks

    def list_tools(self) -> list[tuple[Tag, str]]:
        """Snapshot of (form, tool name) pairs currently registered."""
        return self.engine.registry.list_all()

    async def destroy(self) -> None:
        """Stop observing the page, unregister every tool and release its forms."""
        self.engine.stop()
        await self.engine.wait_idle()
        await self.engine.registry.unregister_all()
        self.engine.bridge.discard_all()


async def initialize(
    page: Page,
    config: Union[FormToolsConfig, dict[str, Any], None] = None,
    hooks: Optional[HookRegistry] = None,
) -> FormToolsHandle:
    """Expose the forms of ``page`` as tools and keep them in sync.

    Args:
        page: The live page.
        config: FormToolsConfig or a dict of its fields (all optional).
        hooks: Registry for lifecycle notifications; subscribe before calling
            to see the initial registrations.

    Raises:
        pydantic.ValidationError: If ``config`` is invalid.
        ToolRegistrationError: If the host rejects one of the initial forms.
    """
    resolved = resolve_config(config)

    if resolved.debug:
        logging.getLogger("form_mcp").setLevel(logging.DEBUG)
        provider = resolved.enhance.provider if resolved.enhance else None
        logger.debug(
            f"Initializing: supported={page.model_context is not None}, "
            f"exclude={resolved.exclude}, auto_submit={resolved.auto_submit}, "
            f"enhance={provider}, overrides={list(resolved.overrides)}"
        )

    engine = DiscoveryEngine(page, resolved, hooks=hooks)
    await engine.start()
    return FormToolsHandle(engine)
