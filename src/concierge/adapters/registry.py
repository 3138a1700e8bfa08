"""Adapter registry for resolving provider names to adapter instances.

Supports builtin names ("mock", "openai", "anthropic") and custom
dotted-path imports (e.g., "my.module.MyAdapter"). The provider is
chosen once, when the orchestrator is built.
"""

from __future__ import annotations

import importlib
import logging
import os

from concierge.adapters.base import BaseAdapter
from concierge.models.config import ConciergeSettings

logger = logging.getLogger(__name__)

# Builtin short names -> fully-qualified class paths. Provider SDKs are
# imported lazily by the adapters themselves on first call.
BUILTIN_ADAPTERS: dict[str, str] = {
    "mock": "concierge.adapters.mock_adapter.MockAdapter",
    "openai": "concierge.adapters.openai_adapter.OpenAIAdapter",
    "anthropic": "concierge.adapters.anthropic_adapter.AnthropicAdapter",
}

# SDK module each real provider needs, with the matching install hint.
_SDK_MODULES: dict[str, str] = {
    "openai": "openai",
    "anthropic": "anthropic",
}

_INSTALL_HINTS: dict[str, str] = {
    "openai": "pip install student-success-concierge[openai]",
    "anthropic": "pip install student-success-concierge[anthropic]",
}


def get_adapter(name: str, model: str | None = None) -> BaseAdapter:
    """Resolve an adapter by name or dotted path and return an instance.

    Args:
        name: A builtin adapter name or a fully-qualified dotted path
              to an adapter class.
        model: Optional model identifier passed to the adapter.

    Returns:
        An instance of the resolved adapter class.

    Raises:
        ValueError: If the name is not a builtin and has no dots (unknown).
        ImportError: If the module or provider SDK cannot be imported.
        TypeError: If the resolved class is not a subclass of BaseAdapter.
    """
    key = name.strip().lower()
    if key in BUILTIN_ADAPTERS:
        dotted_path = BUILTIN_ADAPTERS[key]
    elif "." in name:
        dotted_path = name.strip()
    else:
        available = ", ".join(sorted(BUILTIN_ADAPTERS))
        raise ValueError(
            f"Unknown adapter '{name}'. "
            f"Available builtin adapters: {available}. "
            f"For custom adapters, provide the full dotted path "
            f"(e.g., 'my.module.MyAdapter')."
        )

    if key in _SDK_MODULES:
        try:
            importlib.import_module(_SDK_MODULES[key])
        except ImportError as exc:
            raise ImportError(
                f"Adapter '{key}' requires the {key} package. "
                f"Install it: {_INSTALL_HINTS[key]}"
            ) from exc

    module_path, _, class_name = dotted_path.rpartition(".")
    if not module_path or not class_name:
        raise ValueError(
            f"Invalid adapter path '{dotted_path}'. "
            f"Expected format: 'module.path.ClassName'."
        )

    module = importlib.import_module(module_path)
    try:
        cls = getattr(module, class_name)
    except AttributeError:
        raise ImportError(
            f"Module '{module_path}' has no attribute '{class_name}'."
        ) from None

    if not isinstance(cls, type) or not issubclass(cls, BaseAdapter):
        raise TypeError(
            f"'{dotted_path}' is not a subclass of BaseAdapter. "
            f"Custom adapters must inherit from concierge.adapters.base.BaseAdapter."
        )

    return cls(model=model) if model else cls()


def resolve_provider(settings: ConciergeSettings | None = None) -> str:
    """Pick the provider name: explicit setting, then API keys, then mock.

    ``settings.provider`` already carries the CONCIERGE_LLM_PROVIDER
    override when loaded through load_settings().
    """
    provider = (settings.provider if settings else "auto").strip()
    if provider and provider.lower() != "auto":
        return provider
    if os.environ.get("ANTHROPIC_API_KEY"):
        return "anthropic"
    if os.environ.get("OPENAI_API_KEY"):
        return "openai"
    return "mock"


def get_default_adapter(settings: ConciergeSettings | None = None) -> BaseAdapter:
    """Build the adapter selected by settings and the environment."""
    provider = resolve_provider(settings)
    logger.debug("Using %s adapter", provider)
    return get_adapter(provider, model=settings.model if settings else None)
