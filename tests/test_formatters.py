"""Tests for reply formatting helpers."""

from datetime import datetime, timezone

from lookupbot.utils.formatters import (
    escape_markdown,
    fenced_json,
    format_date,
    percent,
    strip_markdown,
)


class TestFencedJson:
    def test_pretty_prints_unicode(self) -> None:
        text = fenced_json({"city": "São Paulo"})
        assert text.startswith("```json\n")
        assert text.endswith("\n```")
        assert "São Paulo" in text

    def test_unserializable_values_use_str(self) -> None:
        assert "2024-01-02" in fenced_json({"at": datetime(2024, 1, 2)})


class TestStripMarkdown:
    def test_removes_markup(self) -> None:
        assert strip_markdown("*bold* and `code`") == "bold and code"
        assert strip_markdown("```json\n{\"a\": 1}```") == '{"a": 1}'


class TestEscapeMarkdown:
    def test_escapes_special_characters(self) -> None:
        assert escape_markdown("a_b*c") == "a\\_b\\*c"
        assert escape_markdown(42) == "42"


class TestNumbers:
    def test_percent(self) -> None:
        assert percent(1, 4) == "25.0"
        assert percent(3, 0) == "0"

    def test_format_date(self) -> None:
        assert format_date(datetime(2024, 5, 6, tzinfo=timezone.utc)) == "2024-05-06"
        assert format_date("unknown") == "unknown"
