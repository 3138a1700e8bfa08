"""BaseAdapter ABC and unified message/result dataclasses.

All language-model adapters (mock, OpenAI, Anthropic, custom) subclass
BaseAdapter and implement call(). The dataclasses here define the
universal types that flow between the orchestrator and a provider.

These are plain dataclasses (not Pydantic) to avoid overhead in the
hot path of adapter calls.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

# Normalised stop reasons. Every adapter maps its provider's finish
# reason onto one of these.
STOP_END_TURN = "end_turn"
STOP_TOOL_USE = "tool_use"
STOP_MAX_TOKENS = "max_tokens"


@dataclass
class ToolCallResult:
    """A tool invocation requested by the model."""

    id: str
    name: str
    arguments: dict[str, Any]


@dataclass
class TokenUsage:
    """Token usage counts from a single adapter call."""

    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0


@dataclass
class AdapterTurnResult:
    """Result of a single call() to a language-model adapter.

    Captures the model's text, any requested tool calls, token usage,
    the raw provider response (for debugging), and the stop reason.
    """

    content: str | None
    tool_calls: list[ToolCallResult]
    usage: TokenUsage
    raw_response: dict[str, Any]
    stop_reason: str

    @property
    def wants_tools(self) -> bool:
        """True when the model asked for at least one tool invocation."""
        return bool(self.tool_calls)


@dataclass
class Message:
    """A single message in the conversation history.

    Roles: user, assistant, tool_result. The system prompt travels
    separately as the ``system`` argument of call().
    """

    role: str
    content: str | None = None
    tool_calls: list[ToolCallResult] | None = None
    tool_call_id: str | None = None
    tool_name: str | None = None


@dataclass
class AdapterConfig:
    """Generation settings passed to an adapter for a single call."""

    model: str | None = None
    temperature: float | None = None
    max_tokens: int | None = None
    extras: dict[str, Any] = field(default_factory=dict)


class BaseAdapter(ABC):
    """Abstract base class for all language-model adapters.

    Subclasses must implement call() which takes the system prompt, a
    conversation history and optional tool definitions
    (``{name, description, input_schema}``), and returns an
    AdapterTurnResult whose stop_reason is one of the normalised values.
    """

    @abstractmethod
    async def call(
        self,
        system: str,
        messages: list[Message],
        tools: list[dict[str, Any]] | None = None,
        config: AdapterConfig | None = None,
    ) -> AdapterTurnResult:
        """Send one request to the model and return the result.

        Args:
            system: System prompt for this call.
            messages: Conversation history as a list of Message objects.
            tools: Optional tool definitions; empty or None disables tools.
            config: Optional generation settings for this call.

        Returns:
            AdapterTurnResult with the model's response.
        """
        ...

    def provider_name(self) -> str:
        """Return the provider name for this adapter.

        Default implementation returns the class name.
        Subclasses may override for custom naming.
        """
        return type(self).__name__

    def model_name(self) -> str:
        """Return the model identifier used for tracing."""
        return "unknown"
