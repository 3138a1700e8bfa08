"""Language-model adapters behind one call contract.

Re-exports the BaseAdapter ABC, the message/result dataclasses, the
concrete adapters and the registry functions. Provider SDKs are only
imported when a real adapter makes its first call.
"""

from concierge.adapters.anthropic_adapter import AnthropicAdapter
from concierge.adapters.base import (
    AdapterConfig,
    AdapterTurnResult,
    BaseAdapter,
    Message,
    TokenUsage,
    ToolCallResult,
)
from concierge.adapters.mock_adapter import MockAdapter
from concierge.adapters.openai_adapter import OpenAIAdapter
from concierge.adapters.registry import get_adapter, get_default_adapter, resolve_provider
from concierge.adapters.retry import retry_with_backoff

__all__ = [
    "AdapterConfig",
    "AdapterTurnResult",
    "AnthropicAdapter",
    "BaseAdapter",
    "Message",
    "MockAdapter",
    "OpenAIAdapter",
    "TokenUsage",
    "ToolCallResult",
    "get_adapter",
    "get_default_adapter",
    "resolve_provider",
    "retry_with_backoff",
]
