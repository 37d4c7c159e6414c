"""Form control → JSON Schema property mapping."""

import math
from typing import Literal, Optional

from bs4 import Tag
from pydantic import BaseModel, ConfigDict, Field

from form_mcp.page import input_type, option_value

# input.maxLength reports this when no limit is set
UNBOUNDED_MAX_LENGTH = 524288

_EXCLUDED_TYPES = {"file", "hidden", "submit", "reset", "button", "image", "password"}


class JsonSchemaProperty(BaseModel):
    """A single parameter in a tool's input schema."""

    model_config = ConfigDict(populate_by_name=True)

    type: str
    format: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    enum: Optional[list[str]] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    min_length: Optional[int] = Field(default=None, alias="minLength")
    max_length: Optional[int] = Field(default=None, alias="maxLength")
    pattern: Optional[str] = None

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class JsonSchema(BaseModel):
    """Object schema describing a tool's parameters."""

    type: Literal["object"] = "object"
    properties: dict[str, JsonSchemaProperty] = Field(default_factory=dict)
    required: list[str] = Field(default_factory=list)

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


def map_control(control: Tag) -> Optional[JsonSchemaProperty]:
    """Map an <input>, <textarea> or <select> to a schema property.

    Returns None for controls that are never exposed (passwords, files,
    hidden fields and buttons).
    """
    if control.name == "textarea":
        return JsonSchemaProperty(type="string")
    if control.name == "select":
        return _map_select(control)
    if control.name == "input":
        return _map_input(control)
    return None


def _map_input(control: Tag) -> Optional[JsonSchemaProperty]:
    kind = input_type(control)

    if kind in ("text", "search", "tel"):
        return _string_schema(control)
    if kind == "email":
        return _string_schema(control, format="email")
    if kind == "url":
        return _string_schema(control, format="uri")
    if kind in ("number", "range"):
        return JsonSchemaProperty(
            type="number",
            minimum=_parse_float(control.get("min")),
            maximum=_parse_float(control.get("max")),
        )
    if kind == "date":
        return JsonSchemaProperty(type="string", format="date")
    if kind == "datetime-local":
        return JsonSchemaProperty(type="string", format="date-time")
    if kind == "time":
        return JsonSchemaProperty(type="string", format="time")
    if kind == "month":
        return JsonSchemaProperty(type="string", pattern=r"^\d{4}-\d{2}$")
    if kind == "week":
        return JsonSchemaProperty(type="string", pattern=r"^\d{4}-W\d{2}$")
    if kind == "color":
        return JsonSchemaProperty(type="string", pattern=r"^#[0-9a-fA-F]{6}$")
    if kind == "checkbox":
        return JsonSchemaProperty(type="boolean")
    if kind == "radio":
        # enum is attached by the analyzer, which sees the whole group
        return JsonSchemaProperty(type="string")
    if kind in _EXCLUDED_TYPES:
        return None
    return JsonSchemaProperty(type="string")


def _string_schema(control: Tag, format: Optional[str] = None) -> JsonSchemaProperty:
    prop = JsonSchemaProperty(type="string", format=format)
    min_length = _parse_length(control.get("minlength"))
    if min_length > 0:
        prop.min_length = min_length
    max_length = _parse_length(control.get("maxlength"))
    if max_length > 0 and max_length != UNBOUNDED_MAX_LENGTH:
        prop.max_length = max_length
    if control.get("pattern"):
        prop.pattern = control["pattern"]
    return prop


def _map_select(select: Tag) -> JsonSchemaProperty:
    values = _distinct(option_value(o) for o in select.find_all("option"))
    if not values:
        return JsonSchemaProperty(type="string")
    return JsonSchemaProperty(type="string", enum=values)


def collect_radio_enum(form: Tag, name: str) -> list[str]:
    """Ordered, distinct, non-empty values of the radios named ``name``."""
    radios = [
        control
        for control in form.find_all("input")
        if input_type(control) == "radio" and control.get("name") == name
    ]
    return _distinct(radio.get("value", "on") for radio in radios)


def _distinct(values) -> list[str]:
    seen: list[str] = []
    for value in values:
        if value and value not in seen:
            seen.append(value)
    return seen


def _parse_length(raw: Optional[str]) -> int:
    # Invalid or missing values read as -1, like input.minLength
    try:
        return int((raw or "").strip())
    except ValueError:
        return -1


def _parse_float(raw: Optional[str]) -> Optional[float]:
    if raw is None or raw.strip() == "":
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if math.isfinite(value) else None
