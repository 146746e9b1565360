"""Utility functions for formatting replies."""

import json
import re
from typing import Any

_BOLD_RE = re.compile(r"\*\*(.*?)\*\*")
_ITALIC_RE = re.compile(r"\*(.*?)\*")
_FENCE_RE = re.compile(r"```(?:json)?\n?(.*?)```", re.DOTALL)
_CODE_RE = re.compile(r"`(.*?)`")
_MD_SPECIAL_RE = re.compile(r"([_*\[\]()~`>#+=|{}.!-])")


def fenced_json(payload: Any) -> str:
    """Render a payload as a fenced JSON block."""
    return "```json\n" + json.dumps(payload, indent=2, ensure_ascii=False, default=str) + "\n```"


def strip_markdown(text: str) -> str:
    """Remove the Markdown markup the bot emits, keeping the content."""
    text = _FENCE_RE.sub(r"\1", text)
    text = _BOLD_RE.sub(r"\1", text)
    text = _ITALIC_RE.sub(r"\1", text)
    return _CODE_RE.sub(r"\1", text)


def escape_markdown(text: Any) -> str:
    """Escape characters that would otherwise be read as markup."""
    return _MD_SPECIAL_RE.sub(r"\\\1", str(text))


def percent(part: int, whole: int) -> str:
    """Format ``part / whole`` as a one-decimal percentage (0 when empty)."""
    if whole <= 0:
        return "0"
    return f"{part / whole * 100:.1f}"


def format_date(value: Any) -> str:
    try:
        return value.strftime("%Y-%m-%d")
    except AttributeError:
        return str(value)
