"""Anthropic adapter for the concierge orchestrator.

Converts unified Message/tool definition types to Anthropic messages
format and extracts results into AdapterTurnResult.
"""

from __future__ import annotations

from typing import Any

from concierge.adapters.base import (
    STOP_END_TURN,
    STOP_MAX_TOKENS,
    STOP_TOOL_USE,
    AdapterConfig,
    AdapterTurnResult,
    BaseAdapter,
    Message,
    TokenUsage,
    ToolCallResult,
)

DEFAULT_MODEL = "claude-sonnet-4-5-20250929"
DEFAULT_MAX_TOKENS = 4096

_STOP_REASONS: dict[str, str] = {
    "end_turn": STOP_END_TURN,
    "stop_sequence": STOP_END_TURN,
    "tool_use": STOP_TOOL_USE,
    "max_tokens": STOP_MAX_TOKENS,
}


class AnthropicAdapter(BaseAdapter):
    """Adapter for Anthropic messages API.

    Uses lazy-initialized AsyncAnthropic client that reads ANTHROPIC_API_KEY
    from the environment automatically.
    """

    def __init__(self, model: str | None = None) -> None:
        self._client: Any = None
        self._model = model or DEFAULT_MODEL

    def _get_client(self) -> Any:
        """Lazily initialize and return the AsyncAnthropic client."""
        if self._client is None:
            from anthropic import AsyncAnthropic

            self._client = AsyncAnthropic()
        return self._client

    def _convert_message(self, msg: Message) -> dict[str, Any]:
        """Convert a single unified Message to Anthropic format.

        Args:
            msg: A unified Message object.

        Returns:
            Dict in Anthropic message format.
        """
        if msg.role == "user":
            return {"role": "user", "content": msg.content}
        elif msg.role == "assistant":
            content: list[dict[str, Any]] = []
            if msg.content:
                content.append({"type": "text", "text": msg.content})
            if msg.tool_calls:
                for tc in msg.tool_calls:
                    content.append(
                        {
                            "type": "tool_use",
                            "id": tc.id,
                            "name": tc.name,
                            "input": tc.arguments,
                        }
                    )
            return {"role": "assistant", "content": content}
        elif msg.role == "tool_result":
            # Tool results are sent as user messages with tool_result content blocks
            return {
                "role": "user",
                "content": [
                    {
                        "type": "tool_result",
                        "tool_use_id": msg.tool_call_id,
                        "content": msg.content,
                    }
                ],
            }
        else:
            # Fallback: treat as user message
            return {"role": "user", "content": msg.content}

    def _convert_messages(self, messages: list[Message]) -> list[dict[str, Any]]:
        """Convert unified Messages to Anthropic format.

        Consecutive tool results are merged into one user turn, since the
        API expects every tool_use block of an assistant turn to be
        answered in the next user message.
        """
        converted: list[dict[str, Any]] = []
        for msg in messages:
            entry = self._convert_message(msg)
            if (
                msg.role == "tool_result"
                and converted
                and converted[-1]["role"] == "user"
                and isinstance(converted[-1]["content"], list)
                and all(b.get("type") == "tool_result" for b in converted[-1]["content"])
            ):
                converted[-1]["content"].extend(entry["content"])
            else:
                converted.append(entry)
        return converted

    def _convert_tools(
        self, tools: list[dict[str, Any]]
    ) -> list[dict[str, Any]]:
        """Convert unified tool definitions to Anthropic format."""
        return [
            {
                "name": tool["name"],
                "description": tool.get("description", ""),
                "input_schema": tool.get("input_schema", {"type": "object", "properties": {}}),
            }
            for tool in tools
        ]

    async def call(
        self,
        system: str,
        messages: list[Message],
        tools: list[dict[str, Any]] | None = None,
        config: AdapterConfig | None = None,
    ) -> AdapterTurnResult:
        """Send one request to the Anthropic API."""
        config = config or AdapterConfig()
        client = self._get_client()

        kwargs: dict[str, Any] = {
            "model": config.model or self._model,
            "messages": self._convert_messages(messages),
            "max_tokens": (
                config.max_tokens if config.max_tokens is not None else DEFAULT_MAX_TOKENS
            ),
        }

        if system:
            kwargs["system"] = system

        if tools:
            kwargs["tools"] = self._convert_tools(tools)

        if config.temperature is not None:
            kwargs["temperature"] = config.temperature

        # Pass through provider-specific extras
        kwargs.update(config.extras)

        response = await client.messages.create(**kwargs)

        content_parts: list[str] = []
        tool_calls: list[ToolCallResult] = []

        for block in response.content:
            if block.type == "text":
                content_parts.append(block.text)
            elif block.type == "tool_use":
                tool_calls.append(
                    ToolCallResult(
                        id=block.id,
                        name=block.name,
                        # block.input is already a dict, no json.loads needed
                        arguments=block.input,
                    )
                )

        content = "\n".join(content_parts) if content_parts else None

        usage = TokenUsage(
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
            total_tokens=response.usage.input_tokens + response.usage.output_tokens,
        )

        stop_reason = _STOP_REASONS.get(response.stop_reason, STOP_END_TURN)
        if tool_calls:
            stop_reason = STOP_TOOL_USE

        return AdapterTurnResult(
            content=content,
            tool_calls=tool_calls,
            usage=usage,
            raw_response=response.model_dump(),
            stop_reason=stop_reason,
        )

    def provider_name(self) -> str:
        """Return the provider name."""
        return "anthropic"

    def model_name(self) -> str:
        return self._model
