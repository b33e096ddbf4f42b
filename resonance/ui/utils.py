from __future__ import annotations

import json
from datetime import datetime
from enum import Enum
from typing import Any


def parse_custom_fields(text: str) -> dict[str, Any]:
    """Return the JSON object typed into a custom-fields box."""

    stripped = text.strip()
    if not stripped:
        return {}
    try:
        value = json.loads(stripped)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON: {exc.msg}") from exc
    if not isinstance(value, dict):
        raise ValueError("Custom fields must be a JSON object")
    return value


def parse_tags(text: str) -> list[str]:
    """Split comma or newline separated tags, dropping blanks and duplicates."""

    tags: list[str] = []
    for line in text.splitlines():
        for raw_tag in line.split(","):
            tag = raw_tag.strip()
            if tag and tag not in tags:
                tags.append(tag)
    return tags


def format_timestamp(value: datetime | None) -> str:
    if value is None:
        return "-"
    return value.strftime("%Y-%m-%d %H:%M")


def enum_label(value: Enum | str | None) -> str:
    """``IN_PROGRESS`` -> ``In progress``."""

    if value is None:
        return "-"
    raw = value.value if isinstance(value, Enum) else str(value)
    return raw.replace("_", " ").capitalize()
