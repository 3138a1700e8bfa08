"""Redaction and size limiting for trace storage safety.

Removes secret patterns (API keys, tokens, passwords) from message
content and tool payloads, and caps payload size, before anything is
written to a trace store.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable
from typing import Any

# Regex patterns that match common secret formats.
REDACTION_PATTERNS: list[str] = [
    r"(?i)bearer\s+[a-zA-Z0-9._-]+",  # Bearer tokens (before general auth pattern)
    r"sk-ant-[a-zA-Z0-9-]{20,}",  # Anthropic API keys (before the generic sk- pattern)
    r"sk-[a-zA-Z0-9]{20,}",  # OpenAI API keys
    r"(?i)(api[_-]?key|secret|password|token|authorization)\s*[:=]\s*\S+",
    r"(?i)x-api-key:\s*\S+",
    r"ghp_[a-zA-Z0-9]{36}",  # GitHub PATs
]

_COMPILED_PATTERNS: list[re.Pattern[str]] = [re.compile(p) for p in REDACTION_PATTERNS]

REDACTED_PLACEHOLDER = "[REDACTED]"

MAX_MESSAGE_CONTENT_SIZE: int = 50_000
MAX_TOOL_PAYLOAD_SIZE: int = 100_000


def truncate_content(content: str, max_size: int) -> str:
    """Truncate content to max_size characters, appending a notice if truncated."""
    if len(content) <= max_size:
        return content
    return content[:max_size] + "... [truncated]"


def build_redaction_pipeline(
    custom_patterns: list[str] | None = None,
) -> Callable[[str], str]:
    """Build a redaction function combining built-in and custom patterns.

    Custom patterns extend (never replace) the built-in set and are
    compiled once here.

    Raises:
        ValueError: If a custom pattern fails to compile.
    """
    all_patterns: list[re.Pattern[str]] = list(_COMPILED_PATTERNS)

    for pattern_str in custom_patterns or []:
        try:
            all_patterns.append(re.compile(pattern_str))
        except re.error as exc:
            raise ValueError(
                f"Invalid custom redaction pattern {pattern_str!r}: {exc}"
            ) from exc

    def redact(content: str) -> str:
        for pattern in all_patterns:
            content = pattern.sub(REDACTED_PLACEHOLDER, content)
        return content

    return redact


def sanitize_payload(payload: Any, redact_fn: Callable[[str], str]) -> Any:
    """Redact every string inside a JSON-like payload and cap its size.

    Dict keys are kept as-is. A payload whose serialized form is still
    larger than MAX_TOOL_PAYLOAD_SIZE is replaced by a truncation marker.
    """

    def walk(value: Any) -> Any:
        if isinstance(value, str):
            return redact_fn(value)
        if isinstance(value, dict):
            return {key: walk(item) for key, item in value.items()}
        if isinstance(value, (list, tuple)):
            return [walk(item) for item in value]
        return value

    cleaned = walk(payload)
    serialized = json.dumps(cleaned, default=str)
    if len(serialized) > MAX_TOOL_PAYLOAD_SIZE:
        return {"truncated": True, "original_size": len(serialized)}
    return cleaned
