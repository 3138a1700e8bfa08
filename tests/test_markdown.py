"""Tests for markdown detection and stripping."""

from __future__ import annotations

import pytest

from concierge.markdown import contains_markdown, markdown_features, strip_markdown

SAMPLES = [
    "**Important:** `code`",
    "# Office Hours\n- Monday to Friday\n- 9 AM to 5 PM",
    "1. Log in\n2. Click *Register*",
    "See [the portal](https://portal.example.edu) for __details__.",
    "```\nprint('hi')\n```",
    "Use _this_ form",
    " # Office hours\n**Mon-Fri** 9 to 5",
]


class TestContainsMarkdown:
    """Detection of each supported feature."""

    @pytest.mark.parametrize(
        "text, feature",
        [
            ("This is **bold**", "bold"),
            ("This is __bold__", "bold"),
            ("This is *italic*", "italic"),
            ("Run `pip install`", "code"),
            ("## Header", "header"),
            ("- item", "list"),
            ("1. first", "numbered_list"),
            ("[link](https://example.edu)", "link"),
        ],
    )
    def test_feature_detected(self, text, feature):
        assert contains_markdown(text) is True
        assert feature in markdown_features(text)

    def test_plain_text_is_clean(self):
        text = "The center is open 9 AM to 5 PM, Monday through Friday."
        assert contains_markdown(text) is False
        assert markdown_features(text) == []

    def test_snake_case_word_is_not_italic(self):
        assert contains_markdown("Check your student_id please") is False


class TestStripMarkdown:
    """Stripping removes markers and keeps the words."""

    def test_bold_and_code(self):
        assert strip_markdown("**Important:** `code`") == "Important: code"

    def test_headers_and_lists(self):
        text = "# Office Hours\n- Monday to Friday\n- 9 AM to 5 PM"
        assert strip_markdown(text) == "Office Hours\nMonday to Friday\n9 AM to 5 PM"

    def test_numbered_list_and_italic(self):
        assert strip_markdown("1. Log in\n2. Click *Register*") == "Log in\nClick Register"

    def test_link_keeps_url(self):
        result = strip_markdown("See [the portal](https://portal.example.edu)")
        assert result == "See the portal (https://portal.example.edu)"

    def test_code_fence_removed(self):
        assert strip_markdown("```\nprint('hi')\n```") == "print('hi')"

    def test_header_exposed_by_trimming_is_removed(self):
        text = " # Office hours\n**Mon-Fri** 9 to 5"
        assert strip_markdown(text) == "Office hours\nMon-Fri 9 to 5"

    def test_plain_text_unchanged(self):
        text = "Your appointment is at 10:00."
        assert strip_markdown(text) == text

    @pytest.mark.parametrize("text", SAMPLES)
    def test_result_has_no_markdown(self, text):
        assert contains_markdown(strip_markdown(text)) is False

    @pytest.mark.parametrize("text", SAMPLES)
    def test_idempotent(self, text):
        once = strip_markdown(text)
        assert strip_markdown(once) == once
