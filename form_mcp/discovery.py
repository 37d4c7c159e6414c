"""Form discovery: initial scan, mutation observation and navigation rescans."""

import asyncio
import logging
from typing import Optional

import soupsieve
from bs4 import Tag

from form_mcp.analyzer import FormAnalyzer
from form_mcp.config import FormOverride, FormToolsConfig
from form_mcp.enrichment import DescriptionEnricher
from form_mcp.execution import ExecuteBridge
from form_mcp.hooks import FormLifecycleEventData, HookEvent, HookRegistry
from form_mcp.page import Event, MutationObserver, MutationRecord, Page
from form_mcp.registry import ToolRegistry

logger = logging.getLogger(__name__)

# Forms carrying this attribute are exposed by the browser's own mechanism
NATIVE_TOOL_ATTR = "toolname"
OPT_OUT_ATTR = "data-no-webmcp"


def forms_in(node: Tag) -> list[Tag]:
    """The node itself if it is a form, otherwise the forms it contains."""
    if not isinstance(node, Tag):
        return []
    if node.name == "form":
        return [node]
    return node.find_all("form")


def selector_matches(form: Tag, selector: str) -> bool:
    """Match a CSS selector, treating a malformed selector as no match."""
    try:
        return soupsieve.match(selector, form)
    except soupsieve.SelectorSyntaxError as e:
        logger.debug(f"Ignoring invalid selector {selector!r}: {e}")
        return False


class DiscoveryEngine:
    """Keeps the tools exposed by a page in step with the forms in it.

    Each form moves Unregistered → Registered → Unregistered; a form that is
    added again is analyzed and registered afresh.

    Args:
        page: The live page to watch.
        config: Resolved configuration.
        registry: Registry to publish into (default: one bound to ``page``).
        analyzer: Form analyzer (default: one bound to ``page``).
        bridge: Execute bridge (default: one bound to ``page``).
        hooks: Receives "form:registered" / "form:unregistered".
        enricher: Description enricher (default: built from ``config.enhance``).
    """

    def __init__(
        self,
        page: Page,
        config: FormToolsConfig,
        registry: Optional[ToolRegistry] = None,
        analyzer: Optional[FormAnalyzer] = None,
        bridge: Optional[ExecuteBridge] = None,
        hooks: Optional[HookRegistry] = None,
        enricher: Optional[DescriptionEnricher] = None,
    ):
        self.page = page
        self.config = config
        self.registry = registry or ToolRegistry(page)
        self.analyzer = analyzer or FormAnalyzer(page)
        self.bridge = bridge or ExecuteBridge(page, config)
        self.hooks = hooks or HookRegistry()
        if enricher is None and config.enhance is not None:
            enricher = DescriptionEnricher(config.enhance)
        self.enricher = enricher

        self._observer: Optional[MutationObserver] = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._observer is not None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Wait for the page to load, register its forms, then keep watching.

        Raises:
            ToolRegistrationError: If the host rejects one of the initial forms.
        """
        if self.running:
            return

        if self.page.ready_state == "loading":
            loaded = asyncio.get_running_loop().create_future()

            def on_loaded(event: Event) -> None:
                if not loaded.done():
                    loaded.set_result(None)

            self.page.add_event_listener(None, "DOMContentLoaded", on_loaded, once=True)
            await loaded

        self._observer = MutationObserver(self._on_mutations)
        self._observer.observe(self.page)
        self.page.add_event_listener(None, "hashchange", self._on_navigation_event)
        self.page.add_event_listener(None, "popstate", self._on_navigation_event)
        self.page.add_navigation_observer(self._on_navigate)

        try:
            await self.scan()
        except BaseException:
            self.stop()
            raise

    def stop(self) -> None:
        """Stop observing the page. Registered tools stay registered."""
        if self._observer is not None:
            self._observer.disconnect()
            self._observer = None
        self.page.remove_event_listener(None, "hashchange", self._on_navigation_event)
        self.page.remove_event_listener(None, "popstate", self._on_navigation_event)
        self.page.remove_navigation_observer(self._on_navigate)

    async def wait_idle(self) -> None:
        """Deliver pending mutations and wait for all resulting work."""
        self.page.flush_mutations()
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
            self.page.flush_mutations()

    def reset(self) -> None:
        """Reset per-page counters and bookkeeping (for test isolation)."""
        self.analyzer.reset()
        self.registry.reset()

    # ------------------------------------------------------------------
    # Scanning
    # ------------------------------------------------------------------

    async def scan(self) -> None:
        """Register every form currently in the page."""
        forms = self.page.query_forms()
        await asyncio.gather(*(self.register_form(form) for form in forms))

    async def rescan(self) -> None:
        await self.scan()

    def is_excluded(self, form: Tag) -> bool:
        if form.has_attr(NATIVE_TOOL_ATTR) or form.has_attr(OPT_OUT_ATTR):
            return True
        return any(selector_matches(form, selector) for selector in self.config.exclude)

    def resolve_override(self, form: Tag) -> Optional[FormOverride]:
        for selector, override in self.config.overrides.items():
            if selector_matches(form, selector):
                return override
        return None

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    async def register_form(self, form: Tag) -> None:
        if not self.page.is_connected(form) or self.is_excluded(form):
            return

        metadata = self.analyzer.analyze(form, self.resolve_override(form))
        if self.enricher is not None:
            if self.config.debug:
                logger.debug(f"Enriching: {metadata.name}")
            metadata = await self.enricher.enrich(metadata)

        executor = self.bridge.build_executor(form)
        if not await self.registry.register(form, metadata, executor):
            return

        if not self.page.is_connected(form):
            # Removed while registering; its removal may already have been handled
            await self.registry.unregister(form)
            self.bridge.discard(form)
            return

        if self.config.debug:
            logger.debug(f"Registered: {metadata.name} {metadata.input_schema.to_dict()}")
        await self.hooks.trigger(
            HookEvent.FORM_REGISTERED.value,
            FormLifecycleEventData(form=form, tool_name=metadata.name),
        )

    async def unregister_form(self, form: Tag) -> None:
        self.bridge.discard(form)
        name = self.registry.get_name(form)
        if name is None:
            return

        await self.registry.unregister(form)

        if self.config.debug:
            logger.debug(f"Unregistered: {name}")
        await self.hooks.trigger(
            HookEvent.FORM_UNREGISTERED.value,
            FormLifecycleEventData(form=form, tool_name=name),
        )

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def _on_mutations(self, records: list[MutationRecord], observer: MutationObserver) -> None:
        added: dict[int, Tag] = {}
        removed: dict[int, Tag] = {}
        for record in records:
            for node in record.added_nodes:
                for form in forms_in(node):
                    added[id(form)] = form
            for node in record.removed_nodes:
                for form in forms_in(node):
                    removed[id(form)] = form

        for form in removed.values():
            # Still in the page: the form was relocated, not removed
            if self.page.is_connected(form):
                continue
            self._spawn(self.unregister_form(form))

        for key, form in added.items():
            if key in removed:
                continue
            if not self.page.is_connected(form):
                continue
            self._spawn(self.register_form(form))

    def _on_navigation_event(self, event: Event) -> None:
        self._spawn(self.rescan())

    def _on_navigate(self, url: str) -> None:
        if self.config.debug:
            logger.debug(f"Navigation to {url}, rescanning forms")
        self._spawn(self.rescan())

    def _spawn(self, coro) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Form discovery task failed: {exc}", exc_info=exc)
