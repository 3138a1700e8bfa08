"""Tests for concierge.adapters.anthropic_adapter.

Uses unittest.mock to mock the Anthropic SDK client, so tests run
without API keys or network access.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from concierge.adapters.anthropic_adapter import DEFAULT_MAX_TOKENS, AnthropicAdapter
from concierge.adapters.base import (
    STOP_END_TURN,
    STOP_MAX_TOKENS,
    STOP_TOOL_USE,
    AdapterConfig,
    Message,
    ToolCallResult,
)


class TestAnthropicConvertMessages:
    """Test message format conversion to Anthropic format."""

    def test_user_message(self):
        adapter = AnthropicAdapter()
        result = adapter._convert_message(Message(role="user", content="Hello"))
        assert result == {"role": "user", "content": "Hello"}

    def test_assistant_text_becomes_content_block(self):
        adapter = AnthropicAdapter()
        result = adapter._convert_message(Message(role="assistant", content="Hi there"))
        assert result == {"role": "assistant", "content": [{"type": "text", "text": "Hi there"}]}

    def test_assistant_with_tool_use(self):
        adapter = AnthropicAdapter()
        msg = Message(
            role="assistant",
            content="Let me check.",
            tool_calls=[
                ToolCallResult(id="toolu_1", name="search_kb", arguments={"query": "hours"})
            ],
        )
        result = adapter._convert_message(msg)
        assert result["content"] == [
            {"type": "text", "text": "Let me check."},
            {"type": "tool_use", "id": "toolu_1", "name": "search_kb", "input": {"query": "hours"}},
        ]

    def test_tool_result_sent_as_user_block(self):
        adapter = AnthropicAdapter()
        msg = Message(
            role="tool_result", content='{"ok": true}', tool_call_id="toolu_1", tool_name="x"
        )
        result = adapter._convert_message(msg)
        assert result == {
            "role": "user",
            "content": [{"type": "tool_result", "tool_use_id": "toolu_1", "content": '{"ok": true}'}],
        }

    def test_consecutive_tool_results_are_merged(self):
        """Every tool_use of one assistant turn is answered in a single user turn."""
        adapter = AnthropicAdapter()
        messages = [
            Message(role="user", content="Book tutoring"),
            Message(
                role="assistant",
                content=None,
                tool_calls=[
                    ToolCallResult(id="a", name="search_kb", arguments={"query": "tutoring"}),
                    ToolCallResult(id="b", name="check_availability", arguments={"service": "tutoring"}),
                ],
            ),
            Message(role="tool_result", content="{}", tool_call_id="a", tool_name="search_kb"),
            Message(role="tool_result", content="{}", tool_call_id="b", tool_name="check_availability"),
        ]
        result = adapter._convert_messages(messages)
        assert [m["role"] for m in result] == ["user", "assistant", "user"]
        assert [b["tool_use_id"] for b in result[2]["content"]] == ["a", "b"]

    def test_plain_user_message_after_tool_results_not_merged(self):
        adapter = AnthropicAdapter()
        messages = [
            Message(role="tool_result", content="{}", tool_call_id="a", tool_name="search_kb"),
            Message(role="user", content="Thanks"),
        ]
        result = adapter._convert_messages(messages)
        assert len(result) == 2
        assert result[1] == {"role": "user", "content": "Thanks"}


class TestAnthropicConvertTools:
    """Test tool definition conversion to Anthropic format."""

    def test_convert_tools_keeps_input_schema(self):
        adapter = AnthropicAdapter()
        schema = {"type": "object", "properties": {"query": {"type": "string"}}}
        result = adapter._convert_tools(
            [{"name": "search_kb", "description": "Search", "input_schema": schema}]
        )
        assert result == [{"name": "search_kb", "description": "Search", "input_schema": schema}]

    def test_missing_schema_defaults_to_empty_object(self):
        adapter = AnthropicAdapter()
        result = adapter._convert_tools([{"name": "noop"}])
        assert result[0]["description"] == ""
        assert result[0]["input_schema"] == {"type": "object", "properties": {}}


class TestAnthropicCall:
    """Test call() with a mocked Anthropic client."""

    def _text_block(self, text: str) -> MagicMock:
        block = MagicMock()
        block.type = "text"
        block.text = text
        return block

    def _tool_block(self, block_id: str, name: str, arguments: dict) -> MagicMock:
        block = MagicMock()
        block.type = "tool_use"
        block.id = block_id
        block.name = name
        block.input = arguments
        return block

    def _mock_response(self, blocks: list, stop_reason: str = "end_turn") -> MagicMock:
        response = MagicMock()
        response.content = blocks
        response.stop_reason = stop_reason
        response.usage.input_tokens = 20
        response.usage.output_tokens = 8
        response.model_dump.return_value = {"id": "msg_123"}
        return response

    def _adapter_with(self, response: MagicMock) -> tuple[AnthropicAdapter, MagicMock]:
        adapter = AnthropicAdapter()
        mock_client = MagicMock()
        mock_client.messages.create = AsyncMock(return_value=response)
        adapter._client = mock_client
        return adapter, mock_client

    @pytest.mark.asyncio
    async def test_text_response(self):
        adapter, _ = self._adapter_with(self._mock_response([self._text_block("Hello!")]))

        result = await adapter.call("system", [Message(role="user", content="Hi")])

        assert result.content == "Hello!"
        assert result.tool_calls == []
        assert result.stop_reason == STOP_END_TURN
        assert result.usage.total_tokens == 28
        assert result.raw_response == {"id": "msg_123"}

    @pytest.mark.asyncio
    async def test_tool_use_response(self):
        blocks = [
            self._text_block("Checking."),
            self._tool_block("toolu_9", "search_kb", {"query": "hours"}),
        ]
        adapter, _ = self._adapter_with(self._mock_response(blocks, stop_reason="tool_use"))

        result = await adapter.call("system", [Message(role="user", content="Hours?")])

        assert result.content == "Checking."
        assert result.tool_calls == [
            ToolCallResult(id="toolu_9", name="search_kb", arguments={"query": "hours"})
        ]
        assert result.stop_reason == STOP_TOOL_USE

    @pytest.mark.asyncio
    async def test_max_tokens_stop_reason(self):
        adapter, _ = self._adapter_with(
            self._mock_response([self._text_block("Cut o")], stop_reason="max_tokens")
        )
        result = await adapter.call("system", [Message(role="user", content="Hi")])
        assert result.stop_reason == STOP_MAX_TOKENS

    @pytest.mark.asyncio
    async def test_system_passed_as_parameter(self):
        adapter, client = self._adapter_with(self._mock_response([self._text_block("ok")]))

        await adapter.call("Be brief.", [Message(role="user", content="Hi")])

        kwargs = client.messages.create.call_args[1]
        assert kwargs["system"] == "Be brief."
        assert kwargs["messages"] == [{"role": "user", "content": "Hi"}]
        assert kwargs["max_tokens"] == DEFAULT_MAX_TOKENS

    @pytest.mark.asyncio
    async def test_config_overrides(self):
        adapter, client = self._adapter_with(self._mock_response([self._text_block("ok")]))

        await adapter.call(
            "",
            [Message(role="user", content="Hi")],
            config=AdapterConfig(model="claude-x", max_tokens=256, temperature=0.0),
        )

        kwargs = client.messages.create.call_args[1]
        assert kwargs["model"] == "claude-x"
        assert kwargs["max_tokens"] == 256
        assert kwargs["temperature"] == 0.0
        assert "system" not in kwargs

    def test_provider_name(self):
        assert AnthropicAdapter().provider_name() == "anthropic"

    def test_lazy_client_init(self):
        assert AnthropicAdapter()._client is None
