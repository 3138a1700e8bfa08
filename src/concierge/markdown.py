"""Markdown detection and plain-text stripping for SMS replies.

Detection patterns and strip transforms are paired: every pattern that
contains_markdown() looks for is removed by one of the transforms in
strip_markdown(), and stripping repeats until the text stops changing.
The result is therefore a fixed point, so stripping twice equals
stripping once.
"""

from __future__ import annotations

import re

MARKDOWN_PATTERNS: dict[str, re.Pattern[str]] = {
    "bold": re.compile(r"\*\*[^*\n]+\*\*|__[^_\n]+__"),
    "italic": re.compile(r"\*[^*\n]+\*|(?<!\w)_[^_\n]+_(?!\w)"),
    "code": re.compile(r"`[^`\n]+`|```"),
    "header": re.compile(r"^#{1,6}[ \t]", re.MULTILINE),
    "list": re.compile(r"^[ \t]*[-*+][ \t]", re.MULTILINE),
    "numbered_list": re.compile(r"^[ \t]*\d+\.[ \t]", re.MULTILINE),
    "link": re.compile(r"\[[^\]\n]+\]\([^)\n]+\)"),
}

# Applied in order on each pass. Each transform removes the marker it targets.
_STRIP_TRANSFORMS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"^[ \t]*```[^\n]*\n?", re.MULTILINE), ""),
    (re.compile(r"\[([^\]\n]+)\]\(([^)\n]+)\)"), r"\1 (\2)"),
    (re.compile(r"\*\*([^*\n]+)\*\*"), r"\1"),
    (re.compile(r"__([^_\n]+)__"), r"\1"),
    (re.compile(r"\*([^*\n]+)\*"), r"\1"),
    (re.compile(r"(?<!\w)_([^_\n]+)_(?!\w)"), r"\1"),
    (re.compile(r"`([^`\n]+)`"), r"\1"),
    (re.compile(r"^#{1,6}[ \t]+", re.MULTILINE), ""),
    (re.compile(r"^[ \t]*[-*+][ \t]+", re.MULTILINE), ""),
    (re.compile(r"^[ \t]*\d+\.[ \t]+", re.MULTILINE), ""),
    # Unpaired leftovers
    (re.compile(r"\*\*|`"), ""),
]


def markdown_features(text: str) -> list[str]:
    """Return the names of the markdown features present in text."""
    return [name for name, pattern in MARKDOWN_PATTERNS.items() if pattern.search(text)]


def contains_markdown(text: str) -> bool:
    """True if text contains any markdown formatting marker."""
    return any(pattern.search(text) for pattern in MARKDOWN_PATTERNS.values())


def _strip_once(text: str) -> str:
    for pattern, replacement in _STRIP_TRANSFORMS:
        text = pattern.sub(replacement, text)
    return text


def strip_markdown(text: str) -> str:
    """Remove markdown markers from text using deterministic transforms.

    Link targets are kept in parentheses after the link text so the
    reader still gets the URL over SMS. Outer whitespace is trimmed on
    every pass, since trimming can expose a header at the start of text.
    """
    current = text
    while True:
        stripped = _strip_once(current).strip()
        if stripped == current:
            return stripped
        current = stripped
