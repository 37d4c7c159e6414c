"""Infer tool name, description and input schema from a <form>."""

import copy
import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlsplit

from bs4 import BeautifulSoup, Tag

from form_mcp.config import FormOverride
from form_mcp.page import CONTROL_TAGS, Page, ancestors, input_type, text_content
from form_mcp.schema import JsonSchema, collect_radio_enum, map_control

MAX_NAME_LENGTH = 64
MAX_SUBMIT_TEXT_LENGTH = 80
DEFAULT_DESCRIPTION = "Submit form"

_HEADING = re.compile(r"^h[1-3]$", re.IGNORECASE)
_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_CAMEL_BOUNDARY = re.compile(r"([a-z])([A-Z])")


@dataclass(frozen=True)
class ToolMetadata:
    name: str
    description: str
    input_schema: JsonSchema


def sanitize_name(raw: str) -> str:
    """Turn arbitrary text into a tool name: lowercase, ``[a-z0-9_]``, max 64."""
    name = _NON_ALNUM.sub("_", raw.lower().strip()).strip("_")
    name = name[:MAX_NAME_LENGTH].rstrip("_")
    return name or "form"


def humanize_name(raw: str) -> str:
    """``first_name`` / ``firstName`` → ``First Name``."""
    spaced = re.sub(r"[-_]", " ", raw)
    spaced = _CAMEL_BOUNDARY.sub(r"\1 \2", spaced)
    return " ".join(word[:1].upper() + word[1:] for word in spaced.split())


class FormAnalyzer:
    """Derives ToolMetadata from forms on one page.

    Holds the counter behind fallback names (``form_1``, ``form_2``, ...);
    call ``reset()`` to start numbering again.
    """

    def __init__(self, page: Page):
        self.page = page
        self._form_index = 0

    def reset(self) -> None:
        self._form_index = 0

    def analyze(self, form: Tag, override: Optional[FormOverride] = None) -> ToolMetadata:
        override_name = override.name if override else None
        override_description = override.description if override else None

        if override_name and override_name.strip():
            name = sanitize_name(override_name)
        else:
            name = self.infer_name(form)

        if override_description and override_description.strip():
            description = override_description.strip()
        else:
            description = self.infer_description(form)

        return ToolMetadata(
            name=name,
            description=description,
            input_schema=self.build_schema(form),
        )

    # ------------------------------------------------------------------
    # Name
    # ------------------------------------------------------------------

    def infer_name(self, form: Tag) -> str:
        explicit = (form.get("data-webmcp-name") or "").strip()
        if explicit:
            return sanitize_name(explicit)

        submit_text = self._submit_text(form)
        if submit_text:
            return sanitize_name(submit_text)

        heading = nearest_heading_text(form)
        if heading:
            return sanitize_name(heading)

        for attr in ("id", "name"):
            value = (form.get(attr) or "").strip()
            if value:
                return sanitize_name(value)

        segment = self._action_segment(form)
        if segment:
            return sanitize_name(segment)

        self._form_index += 1
        return f"form_{self._form_index}"

    def _submit_text(self, form: Tag) -> str:
        buttons = [
            b for b in form.find_all("button")
            if (b.get("type") or "submit").strip().lower() == "submit"
        ]
        inputs = [i for i in form.find_all("input") if input_type(i) == "submit"]

        for button in buttons + inputs:
            if button.name == "input":
                text = (button.get("value") or "").strip()
            else:
                text = text_content(button)
            if 0 < len(text) < MAX_SUBMIT_TEXT_LENGTH:
                return text
        return ""

    def _action_segment(self, form: Tag) -> str:
        action = form.get("action")
        if not action:
            return ""
        resolved = self.page.resolve_url(action)
        if resolved is None:
            return ""
        segments = [s for s in urlsplit(resolved).path.split("/") if s]
        return segments[-1] if segments else ""

    # ------------------------------------------------------------------
    # Description
    # ------------------------------------------------------------------

    def infer_description(self, form: Tag) -> str:
        explicit = (form.get("data-webmcp-description") or "").strip()
        if explicit:
            return explicit

        legend = form.find("legend")
        if legend is not None and text_content(legend):
            return text_content(legend)

        aria_label = (form.get("aria-label") or "").strip()
        if aria_label:
            return aria_label

        described = self._described_by_text(form)
        if described:
            return described

        heading = nearest_heading_text(form)
        title = self.page.title
        if heading and title:
            return f"{heading} — {title}"
        return heading or title or DEFAULT_DESCRIPTION

    def _described_by_text(self, element: Tag) -> str:
        ids = (element.get("aria-describedby") or "").split()
        texts = []
        for element_id in ids:
            target = self.page.get_element_by_id(element_id)
            if target is not None and text_content(target):
                texts.append(text_content(target))
        return " ".join(texts)

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    def build_schema(self, form: Tag) -> JsonSchema:
        schema = JsonSchema()
        seen_radio_groups: set[str] = set()

        for control in form.find_all(CONTROL_TAGS):
            name = control.get("name")
            if not name:
                continue

            is_radio = control.name == "input" and input_type(control) == "radio"
            if is_radio:
                if name in seen_radio_groups:
                    continue
                seen_radio_groups.add(name)

            prop = map_control(control)
            if prop is None:
                continue

            title = self._field_title(control)
            if title:
                prop.title = title
            description = self._field_description(control)
            if description:
                prop.description = description
            if is_radio:
                prop.enum = collect_radio_enum(form, name)

            schema.properties[name] = prop
            if control.has_attr("required") and name not in schema.required:
                schema.required.append(name)

        return schema

    def _field_title(self, control: Tag) -> str:
        explicit = (control.get("data-webmcp-title") or "").strip()
        if explicit:
            return explicit

        label_text = self._label_text(control)
        if label_text:
            return label_text

        for attr in ("name", "id"):
            value = control.get(attr)
            if value:
                humanized = humanize_name(value)
                if humanized:
                    return humanized
        return ""

    def _field_description(self, control: Tag) -> str:
        explicit = (control.get("data-webmcp-description") or "").strip()
        if explicit:
            return explicit

        aria_description = (control.get("aria-description") or "").strip()
        if aria_description:
            return aria_description

        described = self._described_by_text(control)
        if described:
            return described

        # placeholder last: often just an example value
        if control.name in ("input", "textarea"):
            placeholder = (control.get("placeholder") or "").strip()
            if placeholder:
                return placeholder
        return ""

    def _label_text(self, control: Tag) -> str:
        control_id = control.get("id")
        if control_id:
            for label in self.page.soup.find_all("label"):
                if label.get("for") == control_id:
                    text = label_text_without_controls(label)
                    if text:
                        return text
                    break

        for parent in ancestors(control):
            if parent.name == "label":
                return label_text_without_controls(parent)
        return ""


def nearest_heading_text(form: Tag) -> str:
    """Text of the closest h1-h3 before ``form``, searching outwards.

    Checks the preceding siblings of the form, then of each ancestor, up to
    the document root.
    """
    node: Optional[Tag] = form
    while node is not None and not isinstance(node, BeautifulSoup):
        for sibling in node.find_previous_siblings():
            if isinstance(sibling, Tag) and _HEADING.match(sibling.name or ""):
                text = text_content(sibling)
                if text:
                    return text
        node = node.parent
    return ""


def label_text_without_controls(label: Tag) -> str:
    clone = copy.copy(label)
    for nested in clone.find_all(["input", "select", "textarea", "button"]):
        nested.decompose()
    return text_content(clone)
