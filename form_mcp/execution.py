"""Bridge between tool invocations and real form submissions.

When a host calls a form tool's executor:
 1. the supplied parameters are filled into the form's controls
 2. the form is submitted programmatically (auto-submit) or left for a human
 3. the next submit event resolves the executor with the serialized form data
"""

import asyncio
import logging
import time
import weakref
from dataclasses import asdict, dataclass, field
from typing import Any, Optional

from bs4 import Tag

from form_mcp.config import FormToolsConfig
from form_mcp.exceptions import ExecutionSuperseded, FormDetached
from form_mcp.page import Event, Page, SubmitEvent, form_data, input_type, option_value

logger = logging.getLogger(__name__)

AUTOSUBMIT_ATTR = "data-webmcp-autosubmit"


@dataclass
class ExecuteResult:
    success: bool
    data: Optional[dict] = None
    url: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class PendingExecution:
    form_ref: weakref.ref
    future: asyncio.Future
    created_at: float = field(default_factory=time.time)


def serialize_form(form: Tag, submitter: Optional[Tag] = None) -> dict[str, Any]:
    """Form data as a dict; repeated names collect into a list in order."""
    result: dict[str, Any] = {}
    for key, value in form_data(form, submitter):
        if key not in result:
            result[key] = value
        elif isinstance(result[key], list):
            result[key].append(value)
        else:
            result[key] = [result[key], value]
    return result


def to_form_value(value: Any) -> str:
    """Stringify a parameter the way a browser assigns it to ``value``."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class ExecuteBridge:
    """Builds executors for forms and resolves them on submission.

    Pending executions are kept in an identity-keyed table that holds only
    weak references to forms. The submit listener attached to each form does
    hold it, until ``discard()`` or ``discard_all()`` detaches the listener.
    """

    def __init__(self, page: Page, config: FormToolsConfig):
        self.page = page
        self.config = config
        self._pending: dict[int, PendingExecution] = {}
        self._listeners: dict[int, tuple[Tag, Any]] = {}

    def build_executor(self, form: Tag):
        self._attach_submit_listener(form)

        async def execute(params: dict[str, Any]) -> ExecuteResult:
            self.fill_fields(form, params or {})

            future = asyncio.get_running_loop().create_future()
            self._set_pending(form, future)

            if self.config.auto_submit or form.has_attr(AUTOSUBMIT_ATTR):
                self.page.request_submit(form)
            # Otherwise the form stays filled until a human submits it.
            return await future

        return execute

    def has_pending(self, form: Tag) -> bool:
        entry = self._pending.get(id(form))
        return entry is not None and entry.form_ref() is form

    def discard(self, form: Tag, reason: str = "Form was removed before it was submitted") -> None:
        """Forget a form that left the page, failing any pending invocation."""
        key = id(form)
        entry = self._pending.get(key)
        if entry is not None and entry.form_ref() is form:
            del self._pending[key]
            if not entry.future.done():
                entry.future.set_exception(FormDetached(reason))

        listener = self._listeners.get(key)
        if listener is not None and listener[0] is form:
            del self._listeners[key]
            self.page.remove_event_listener(form, "submit", listener[1])

    def discard_all(self, reason: str = "Form tools were shut down before the form was submitted") -> None:
        """Discard every form this bridge has attached to."""
        for form, _ in list(self._listeners.values()):
            self.discard(form, reason)

    # ------------------------------------------------------------------
    # Pending executions
    # ------------------------------------------------------------------

    def _set_pending(self, form: Tag, future: asyncio.Future) -> None:
        key = id(form)
        previous = self._pop_pending(form)
        if previous is not None and not previous.future.done():
            previous.future.set_exception(
                ExecutionSuperseded("A newer invocation replaced this one before submission")
            )

        def _drop(ref: weakref.ref, key: int = key) -> None:
            entry = self._pending.get(key)
            if entry is not None and entry.form_ref is ref:
                del self._pending[key]

        self._pending[key] = PendingExecution(form_ref=weakref.ref(form, _drop), future=future)

    def _pop_pending(self, form: Tag) -> Optional[PendingExecution]:
        key = id(form)
        entry = self._pending.get(key)
        if entry is None or entry.form_ref() is not form:
            return None
        del self._pending[key]
        return entry

    # ------------------------------------------------------------------
    # Submit interception
    # ------------------------------------------------------------------

    def _attach_submit_listener(self, form: Tag) -> None:
        key = id(form)
        existing = self._listeners.get(key)
        if existing is not None and existing[0] is form:
            return

        def on_submit(event: Event) -> None:
            self._handle_submit(form, event)

        self._listeners[key] = (form, on_submit)
        self.page.add_event_listener(form, "submit", on_submit)

    def _handle_submit(self, form: Tag, event: Event) -> None:
        if event.target is not form:
            return
        pending = self._pop_pending(form)
        if pending is None:
            # Ordinary human submission
            return

        submitter = event.submitter if isinstance(event, SubmitEvent) else None
        data = serialize_form(form, submitter)

        respond_with = getattr(event, "respond_with", None)
        if getattr(event, "agent_invoked", False) and callable(respond_with):
            event.prevent_default()
            result = ExecuteResult(success=True, data=data)
            respond_with(result.to_dict())
        else:
            result = ExecuteResult(success=True, data=data, url=self.page.form_action(form))

        if not pending.future.done():
            pending.future.set_result(result)

    # ------------------------------------------------------------------
    # Field filling
    # ------------------------------------------------------------------

    def fill_fields(self, form: Tag, params: dict[str, Any]) -> None:
        for name, value in params.items():
            control = self._find_control(form, name)
            if control is None:
                continue

            if control.name == "select":
                self._select_option(control, to_form_value(value))
                self._dispatch(control, "change")
                continue

            if control.name == "textarea":
                control.string = to_form_value(value)
                self._dispatch(control, "input", "change")
                continue

            kind = input_type(control)
            if kind == "checkbox":
                self._set_checked(control, bool(value))
                self._dispatch(control, "change")
            elif kind == "radio":
                self._check_radio(form, name, to_form_value(value))
            elif kind == "file":
                logger.debug(f"Skipping file input '{name}'")
            else:
                control["value"] = to_form_value(value)
                self._dispatch(control, "input", "change")

    def _find_control(self, form: Tag, name: str) -> Optional[Tag]:
        for control in form.find_all(["input", "textarea", "select"]):
            if control.get("name") == name:
                return control
        return None

    def _check_radio(self, form: Tag, name: str, value: str) -> None:
        group = [
            r for r in form.find_all("input")
            if input_type(r) == "radio" and r.get("name") == name
        ]
        match = next((r for r in group if r.get("value", "on") == value), None)
        if match is None:
            return
        for radio in group:
            self._set_checked(radio, radio is match)
        self._dispatch(match, "input", "change")

    @staticmethod
    def _select_option(select: Tag, value: str) -> None:
        options = select.find_all("option")
        if not any(_option_matches(o, value) for o in options):
            return
        for option in options:
            if _option_matches(option, value):
                option["selected"] = ""
            elif option.has_attr("selected"):
                del option["selected"]

    @staticmethod
    def _set_checked(control: Tag, checked: bool) -> None:
        if checked:
            control["checked"] = ""
        elif control.has_attr("checked"):
            del control["checked"]

    def _dispatch(self, control: Tag, *types: str) -> None:
        for event_type in types:
            self.page.dispatch_event(Event(event_type, target=control, bubbles=True))


def _option_matches(option: Tag, value: str) -> bool:
    return option_value(option) == value
