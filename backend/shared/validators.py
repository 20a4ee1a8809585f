"""Parsing helpers for list-valued settings read from the environment."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from pydantic_settings import EnvSettingsSource

if TYPE_CHECKING:
    from pydantic.fields import FieldInfo

# Settings fields that take a list of strings from a single env var.
STRING_LIST_FIELDS = frozenset({"cors_origins"})


def _require_items(items: list[str]) -> list[str]:
    if not items:
        raise ValueError("String list value must not be empty")
    return items


def _parse_json_array(text: str) -> list[str]:
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON array: {e}") from e
    if not isinstance(parsed, list) or not all(isinstance(item, str) for item in parsed):
        raise ValueError("JSON value must be an array of strings")
    return parsed


def parse_string_list(value: str | list[str]) -> list[str]:
    """Accept a list, a JSON array string, or a comma-separated string.

    Blank CSV items are dropped. An empty result is rejected.
    """
    if isinstance(value, list):
        return _require_items(value)

    text = value.strip()
    if text.startswith("["):
        return _require_items(_parse_json_array(text))
    return _require_items([item.strip() for item in text.split(",") if item.strip()])


class StringListEnvSettingsSource(EnvSettingsSource):
    """Hands string-list env vars to field validators unparsed.

    pydantic-settings would otherwise try to JSON-decode list fields and fail
    on plain comma-separated values.
    """

    def prepare_field_value(
        self,
        field_name: str,
        field: FieldInfo,
        value: Any,  # noqa: ANN401
        value_is_complex: bool,  # noqa: FBT001
    ) -> Any:  # noqa: ANN401
        if field_name in STRING_LIST_FIELDS and isinstance(value, str):
            return value
        return super().prepare_field_value(field_name, field, value, value_is_complex)
