"""Bookkeeping of which live form exposes which tool name.

The tool host lives in ``page.model_context``. Its presence is probed on
every call, so a host that appears or disappears mid-session is honored
immediately.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from bs4 import Tag

from form_mcp.analyzer import ToolMetadata
from form_mcp.exceptions import ToolRegistrationError
from form_mcp.page import Page
from form_mcp.tools import Executor, FormTool, ToolHost

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Tracks form → tool name, at most one registration per form.

    Register and unregister calls for the same form run one at a time, so
    overlapping rescans cannot leave two registrations behind.
    """

    def __init__(self, page: Page):
        self.page = page
        # id(form) -> (form, tool name); ids are only valid while the form is held here
        self._tools: dict[int, tuple[Tag, str]] = {}
        # id(form) -> [lock, number of callers using it]
        self._locks: dict[int, list] = {}

    def host(self) -> Optional[ToolHost]:
        """Return the current tool host, or None if the page has none."""
        context = getattr(self.page, "model_context", None)
        if context is None:
            return None
        if not callable(getattr(context, "register_tool", None)):
            return None
        if not callable(getattr(context, "unregister_tool", None)):
            return None
        return context

    def is_supported(self) -> bool:
        return self.host() is not None

    @asynccontextmanager
    async def _form_lock(self, form: Tag):
        key = id(form)
        entry = self._locks.get(key)
        if entry is None:
            entry = self._locks[key] = [asyncio.Lock(), 0]
        entry[1] += 1
        try:
            async with entry[0]:
                yield
        finally:
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[key]

    async def register(self, form: Tag, metadata: ToolMetadata, executor: Executor) -> bool:
        """Register ``form`` as a tool, replacing its previous registration.

        Returns:
            True if the host accepted the tool, False if there is no host.

        Raises:
            ToolRegistrationError: If the host rejects the registration.
        """
        async with self._form_lock(form):
            if self.get_name(form) is not None:
                await self._unregister(form)

            host = self.host()
            if host is None:
                return False

            try:
                await host.register_tool(FormTool(metadata, executor))
            except ToolRegistrationError:
                raise
            except Exception as e:
                raise ToolRegistrationError(
                    f"Host rejected tool '{metadata.name}': {e}"
                ) from e

            self._tools[id(form)] = (form, metadata.name)
            return True

    async def unregister(self, form: Tag) -> None:
        """Unregister the tool for ``form``; a no-op if it has none."""
        async with self._form_lock(form):
            await self._unregister(form)

    async def _unregister(self, form: Tag) -> None:
        host = self.host()
        if host is None:
            return

        name = self.get_name(form)
        if name is None:
            return

        try:
            await host.unregister_tool(name)
        except Exception as e:
            # Tool may already be gone on the host side
            logger.debug(f"Ignoring unregister failure for '{name}': {e}")

        entry = self._tools.get(id(form))
        if entry is not None and entry[0] is form:
            del self._tools[id(form)]

    def get_name(self, form: Tag) -> Optional[str]:
        entry = self._tools.get(id(form))
        if entry is None or entry[0] is not form:
            return None
        return entry[1]

    def list_all(self) -> list[tuple[Tag, str]]:
        """Snapshot of (form, tool name) pairs."""
        if self.host() is None:
            return []
        return list(self._tools.values())

    async def unregister_all(self) -> None:
        forms = [form for form, _ in self._tools.values()]
        await asyncio.gather(*(self.unregister(form) for form in forms))
        self._tools.clear()

    def reset(self) -> None:
        """Forget every registration without telling the host."""
        self._tools.clear()
