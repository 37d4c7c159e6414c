"""Live page model for form-mcp.

A Page wraps a mutable BeautifulSoup element tree and provides the pieces of
a browser environment the rest of the package relies on:

- structural mutations delivered in batches to MutationObserver instances
- DOM-style events with bubbling (input, change, submit, hashchange, ...)
- history navigation with explicit navigation observers
- form submission with a recorded default action
- a ``model_context`` slot holding the tool host, which may come and go

Element identity matters everywhere: BeautifulSoup compares tags
structurally, so two empty ``<form>`` tags are ``==``. Code in this package
always compares tags with ``is`` and keys side tables with ``id()``.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Union
from urllib.parse import urldefrag, urljoin, urlsplit

from bs4 import BeautifulSoup, Tag

logger = logging.getLogger(__name__)

CONTROL_TAGS = ["input", "textarea", "select"]

INPUT_TYPES = {
    "button", "checkbox", "color", "date", "datetime-local", "email", "file",
    "hidden", "image", "month", "number", "password", "radio", "range",
    "reset", "search", "submit", "tel", "text", "time", "url", "week",
}

_BUTTON_INPUT_TYPES = {"submit", "image", "reset", "button"}


# ============================================================================
# Element helpers
# ============================================================================


def parse_fragment(html: str) -> list[Tag]:
    """Parse an HTML fragment into detached top-level tags."""
    fragment = BeautifulSoup(html, "html.parser")
    return [node.extract() for node in list(fragment.contents) if isinstance(node, Tag)]


def input_type(control: Tag) -> str:
    """Return the normalized ``type`` of an <input>, as ``input.type`` would."""
    raw = (control.get("type") or "text").strip().lower()
    return raw if raw in INPUT_TYPES else "text"


def text_content(node: Tag) -> str:
    return node.get_text().strip()


def option_value(option: Tag) -> str:
    """Option value, falling back to its text like ``HTMLOptionElement.value``."""
    value = option.get("value")
    if value is None:
        return " ".join(option.get_text().split())
    return value


def selected_options(select: Tag) -> list[Tag]:
    options = select.find_all("option")
    selected = [o for o in options if o.has_attr("selected")]
    if select.has_attr("multiple"):
        return selected
    if selected:
        return [selected[-1]]
    enabled = [o for o in options if not o.has_attr("disabled")]
    return enabled[:1]


def control_value(control: Tag) -> str:
    if control.name == "textarea":
        return control.get_text()
    if control.name == "select":
        chosen = selected_options(control)
        return option_value(chosen[0]) if chosen else ""
    return control.get("value", "")


def is_checked(control: Tag) -> bool:
    return control.has_attr("checked")


def ancestors(node: Tag):
    """Yield element ancestors of ``node``, stopping before the document."""
    parent = node.parent
    while parent is not None and not isinstance(parent, BeautifulSoup):
        yield parent
        parent = parent.parent


def form_data(form: Tag, submitter: Optional[Tag] = None) -> list[tuple[str, str]]:
    """Construct the form data set in tree order.

    Mirrors the browser algorithm closely enough for submission: disabled and
    unnamed controls are skipped, checkable controls contribute only when
    checked, and the only button included is the submitter.
    """
    entries: list[tuple[str, str]] = []
    for control in form.find_all(["input", "textarea", "select", "button"]):
        name = control.get("name")
        if not name or control.has_attr("disabled"):
            continue

        if control.name == "button" or (
            control.name == "input" and input_type(control) in _BUTTON_INPUT_TYPES
        ):
            if submitter is not None and control is submitter:
                entries.append((name, control.get("value", "")))
            continue

        if control.name == "select":
            for option in selected_options(control):
                entries.append((name, option_value(option)))
        elif control.name == "textarea":
            entries.append((name, control.get_text()))
        else:
            kind = input_type(control)
            if kind in ("checkbox", "radio"):
                if is_checked(control):
                    entries.append((name, control.get("value", "on")))
            elif kind == "file":
                continue
            else:
                entries.append((name, control.get("value", "")))
    return entries


# ============================================================================
# Events
# ============================================================================


@dataclass
class Event:
    type: str
    target: Optional[Tag] = None
    bubbles: bool = False
    default_prevented: bool = False

    def prevent_default(self) -> None:
        self.default_prevented = True


@dataclass
class SubmitEvent(Event):
    """A submit event, optionally carrying agent-invocation markers."""

    submitter: Optional[Tag] = None
    agent_invoked: bool = False
    respond_with: Optional[Callable[[Any], None]] = None


@dataclass
class _Listener:
    target: Optional[Tag]
    type: str
    callback: Callable[[Event], None]
    once: bool = False


@dataclass
class Submission:
    """Default action of a submission that was not prevented."""

    form: Tag
    url: str
    method: str
    data: list[tuple[str, str]]


# ============================================================================
# Mutation observation
# ============================================================================


@dataclass
class MutationRecord:
    target: Tag
    added_nodes: list[Tag] = field(default_factory=list)
    removed_nodes: list[Tag] = field(default_factory=list)


class MutationObserver:
    """Receives batches of MutationRecords from the pages it observes."""

    def __init__(self, callback: Callable[[list[MutationRecord], "MutationObserver"], None]):
        self._callback = callback
        self._page: Optional["Page"] = None
        self._records: list[MutationRecord] = []
        self._scheduled = False

    def observe(self, page: "Page") -> None:
        if self._page is page:
            return
        if self._page is not None:
            self.disconnect()
        self._page = page
        page._observers.append(self)

    def disconnect(self) -> None:
        if self._page is not None:
            self._page._observers = [o for o in self._page._observers if o is not self]
        self._page = None
        self._records = []

    def take_records(self) -> list[MutationRecord]:
        records, self._records = self._records, []
        return records

    def _enqueue(self, record: MutationRecord) -> None:
        self._records.append(record)
        if self._scheduled:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._deliver()
            return
        self._scheduled = True
        loop.call_soon(self._deliver)

    def _deliver(self) -> None:
        self._scheduled = False
        if self._page is None:
            return
        records = self.take_records()
        if records:
            self._callback(records, self)


# ============================================================================
# Page
# ============================================================================


class Page:
    """A single page's live element tree plus its browsing context.

    Args:
        html: Initial document markup.
        url: Current location (default: about:blank).
        ready_state: "loading", "interactive" or "complete".
        model_context: Tool host exposed to scripts, or None when absent.
    """

    def __init__(
        self,
        html: str = "",
        url: str = "about:blank",
        ready_state: str = "complete",
        model_context: Any = None,
    ):
        self.soup = BeautifulSoup(html, "html.parser")
        self.url = url
        self.ready_state = ready_state
        self.model_context = model_context
        self.submissions: list[Submission] = []
        self._history: list[str] = [url]
        self._listeners: list[_Listener] = []
        self._observers: list[MutationObserver] = []
        self._navigation_observers: list[Callable[[str], None]] = []

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def title(self) -> str:
        tag = self.soup.find("title")
        return text_content(tag) if tag is not None else ""

    @property
    def body(self) -> Tag:
        return self.soup.find("body") or self.soup

    def query_forms(self) -> list[Tag]:
        return self.soup.find_all("form")

    def get_element_by_id(self, element_id: str) -> Optional[Tag]:
        if not element_id:
            return None
        return self.soup.find(id=element_id)

    def is_connected(self, node: Tag) -> bool:
        parent = node.parent
        while parent is not None:
            if parent is self.soup:
                return True
            parent = parent.parent
        return node is self.soup

    def resolve_url(self, raw: str) -> Optional[str]:
        """Resolve ``raw`` against the page URL; None when malformed."""
        try:
            resolved = urljoin(self.url, raw.strip())
            parts = urlsplit(resolved)
        except ValueError:
            return None
        if not parts.scheme:
            return None
        return resolved

    def form_action(self, form: Tag) -> str:
        """Absolute submission target of ``form``, defaulting to the page URL."""
        raw = form.get("action")
        if raw:
            resolved = self.resolve_url(raw)
            if resolved:
                return resolved
        return self.url

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def append(self, parent: Tag, content: Union[str, Tag]) -> list[Tag]:
        """Append markup or a tag to ``parent`` and record the insertion."""
        nodes = self._as_nodes(content)
        for node in nodes:
            parent.append(node)
        self._queue(MutationRecord(target=parent, added_nodes=nodes))
        return nodes

    def insert_before(self, reference: Tag, content: Union[str, Tag]) -> list[Tag]:
        nodes = self._as_nodes(content)
        for node in nodes:
            reference.insert_before(node)
        self._queue(MutationRecord(target=reference.parent, added_nodes=nodes))
        return nodes

    def remove(self, node: Tag) -> Tag:
        parent = node.parent
        node.extract()
        if parent is not None:
            self._queue(MutationRecord(target=parent, removed_nodes=[node]))
        return node

    def move(self, node: Tag, new_parent: Tag) -> None:
        """Relocate ``node``; observers see a removal and an insertion."""
        old_parent = node.parent
        node.extract()
        new_parent.append(node)
        if old_parent is not None:
            self._queue(MutationRecord(target=old_parent, removed_nodes=[node]))
        self._queue(MutationRecord(target=new_parent, added_nodes=[node]))

    def replace_children(self, parent: Tag, content: Union[str, Tag]) -> list[Tag]:
        removed = [child.extract() for child in list(parent.contents)]
        nodes = self._as_nodes(content)
        for node in nodes:
            parent.append(node)
        self._queue(
            MutationRecord(
                target=parent,
                added_nodes=nodes,
                removed_nodes=[n for n in removed if isinstance(n, Tag)],
            )
        )
        return nodes

    def flush_mutations(self) -> None:
        """Deliver any batched mutation records right away."""
        for observer in list(self._observers):
            observer._deliver()

    def _as_nodes(self, content: Union[str, Tag]) -> list[Tag]:
        if isinstance(content, Tag):
            return [content.extract() if content.parent is not None else content]
        return parse_fragment(content)

    def _queue(self, record: MutationRecord) -> None:
        for observer in list(self._observers):
            observer._enqueue(record)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def add_event_listener(
        self,
        target: Optional[Tag],
        type: str,
        callback: Callable[[Event], None],
        once: bool = False,
    ) -> None:
        """Listen on an element, or on the page itself when ``target`` is None."""
        self._listeners.append(_Listener(target=target, type=type, callback=callback, once=once))

    def remove_event_listener(
        self, target: Optional[Tag], type: str, callback: Callable[[Event], None]
    ) -> None:
        self._listeners = [
            entry
            for entry in self._listeners
            if not (entry.target is target and entry.type == type and entry.callback == callback)
        ]

    def dispatch_event(self, event: Event) -> bool:
        """Dispatch ``event``; returns False if a listener prevented the default."""
        path: list[Optional[Tag]] = []
        if event.target is not None:
            path.append(event.target)
            if event.bubbles:
                path.extend(ancestors(event.target))
        if event.target is None or event.bubbles:
            path.append(None)

        for current in path:
            for entry in list(self._listeners):
                if entry.target is not current or entry.type != event.type:
                    continue
                if entry.once:
                    self._listeners = [e for e in self._listeners if e is not entry]
                entry.callback(event)
        return not event.default_prevented

    def finish_loading(self) -> None:
        """Leave the "loading" state and fire DOMContentLoaded."""
        if self.ready_state != "loading":
            return
        self.ready_state = "interactive"
        self.dispatch_event(Event("DOMContentLoaded"))

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def add_navigation_observer(self, callback: Callable[[str], None]) -> None:
        """Be told about push_state/replace_state navigations."""
        self._navigation_observers.append(callback)

    def remove_navigation_observer(self, callback: Callable[[str], None]) -> None:
        self._navigation_observers = [c for c in self._navigation_observers if c != callback]

    def push_state(self, url: str) -> None:
        resolved = self.resolve_url(url)
        if resolved is None:
            logger.debug(f"Ignoring malformed navigation target: {url!r}")
            return
        self.url = resolved
        self._history.append(resolved)
        self._notify_navigation()

    def replace_state(self, url: str) -> None:
        resolved = self.resolve_url(url)
        if resolved is None:
            logger.debug(f"Ignoring malformed navigation target: {url!r}")
            return
        self.url = resolved
        self._history[-1] = resolved
        self._notify_navigation()

    def set_hash(self, fragment: str) -> None:
        base, current = urldefrag(self.url)
        fragment = fragment.lstrip("#")
        if fragment == current:
            return
        self.url = f"{base}#{fragment}" if fragment else base
        self._history.append(self.url)
        self.dispatch_event(Event("hashchange"))

    def back(self) -> None:
        if len(self._history) < 2:
            return
        self._history.pop()
        self.url = self._history[-1]
        self.dispatch_event(Event("popstate"))

    def _notify_navigation(self) -> None:
        for callback in list(self._navigation_observers):
            callback(self.url)

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def request_submit(
        self,
        form: Tag,
        submitter: Optional[Tag] = None,
        agent_invoked: bool = False,
        respond_with: Optional[Callable[[Any], None]] = None,
    ) -> bool:
        """Fire a submit event at ``form`` and run the default action.

        Returns True when the default submission went ahead.
        """
        event = SubmitEvent(
            type="submit",
            target=form,
            bubbles=True,
            submitter=submitter,
            agent_invoked=agent_invoked,
            respond_with=respond_with,
        )
        if not self.dispatch_event(event):
            return False

        self.submissions.append(
            Submission(
                form=form,
                url=self.form_action(form),
                method=(form.get("method") or "get").lower(),
                data=form_data(form, submitter),
            )
        )
        return True
