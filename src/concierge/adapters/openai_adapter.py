"""OpenAI adapter for the concierge orchestrator.

Converts unified Message/tool definition types to OpenAI chat completion
format and extracts results into AdapterTurnResult.
"""

from __future__ import annotations

import json
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

DEFAULT_MODEL = "gpt-4o"

# OpenAI finish_reason -> normalised stop reason.
_STOP_REASONS: dict[str, str] = {
    "stop": STOP_END_TURN,
    "tool_calls": STOP_TOOL_USE,
    "function_call": STOP_TOOL_USE,
    "length": STOP_MAX_TOKENS,
}


class OpenAIAdapter(BaseAdapter):
    """Adapter for OpenAI chat completion API.

    Uses lazy-initialized AsyncOpenAI client that reads OPENAI_API_KEY
    from the environment automatically.
    """

    def __init__(self, model: str | None = None) -> None:
        self._client: Any = None
        self._model = model or DEFAULT_MODEL

    def _get_client(self) -> Any:
        """Lazily initialize and return the AsyncOpenAI client."""
        if self._client is None:
            from openai import AsyncOpenAI

            self._client = AsyncOpenAI()
        return self._client

    def _convert_messages(self, system: str, messages: list[Message]) -> list[dict[str, Any]]:
        """Convert the system prompt and unified Messages to OpenAI chat format.

        Args:
            system: System prompt (omitted when empty).
            messages: List of unified Message objects.

        Returns:
            List of dicts in OpenAI chat completion message format.
        """
        result: list[dict[str, Any]] = []
        if system:
            result.append({"role": "system", "content": system})
        for msg in messages:
            if msg.role == "user":
                result.append({"role": "user", "content": msg.content})
            elif msg.role == "assistant":
                entry: dict[str, Any] = {
                    "role": "assistant",
                    "content": msg.content,
                }
                if msg.tool_calls:
                    entry["tool_calls"] = [
                        {
                            "id": tc.id,
                            "type": "function",
                            "function": {
                                "name": tc.name,
                                "arguments": json.dumps(tc.arguments),
                            },
                        }
                        for tc in msg.tool_calls
                    ]
                result.append(entry)
            elif msg.role == "tool_result":
                result.append(
                    {
                        "role": "tool",
                        "tool_call_id": msg.tool_call_id,
                        "content": msg.content,
                    }
                )
        return result

    def _convert_tools(
        self, tools: list[dict[str, Any]]
    ) -> list[dict[str, Any]]:
        """Convert unified tool definitions to OpenAI function format.

        OpenAI calls the JSON schema 'parameters' instead of 'input_schema'.
        """
        return [
            {
                "type": "function",
                "function": {
                    "name": tool["name"],
                    "description": tool.get("description", ""),
                    "parameters": tool.get("input_schema", {"type": "object", "properties": {}}),
                },
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
        """Send one request to the OpenAI API."""
        config = config or AdapterConfig()
        client = self._get_client()

        kwargs: dict[str, Any] = {
            "model": config.model or self._model,
            "messages": self._convert_messages(system, messages),
        }

        if tools:
            kwargs["tools"] = self._convert_tools(tools)

        if config.temperature is not None:
            kwargs["temperature"] = config.temperature

        if config.max_tokens is not None:
            kwargs["max_tokens"] = config.max_tokens

        # Pass through provider-specific extras
        kwargs.update(config.extras)

        response = await client.chat.completions.create(**kwargs)

        choice = response.choices[0]
        content = choice.message.content

        tool_calls: list[ToolCallResult] = []
        if choice.message.tool_calls:
            for tc in choice.message.tool_calls:
                tool_calls.append(
                    ToolCallResult(
                        id=tc.id,
                        name=tc.function.name,
                        arguments=json.loads(tc.function.arguments or "{}"),
                    )
                )

        usage = TokenUsage(
            input_tokens=response.usage.prompt_tokens,
            output_tokens=response.usage.completion_tokens,
            total_tokens=response.usage.total_tokens,
        )

        stop_reason = _STOP_REASONS.get(choice.finish_reason, STOP_END_TURN)
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
        return "openai"

    def model_name(self) -> str:
        return self._model
