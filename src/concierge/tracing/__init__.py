"""Conversation tracing: models, stores, redaction and the recorder."""

from concierge.tracing.json_store import JsonTraceStore
from concierge.tracing.models import (
    CompleteTrace,
    Trace,
    TraceFilter,
    TraceMessage,
    TraceMeta,
    TraceToolCall,
)
from concierge.tracing.recorder import TraceRecorder
from concierge.tracing.store import InMemoryTraceStore, TraceStore

__all__ = [
    "CompleteTrace",
    "InMemoryTraceStore",
    "JsonTraceStore",
    "Trace",
    "TraceFilter",
    "TraceMessage",
    "TraceMeta",
    "TraceRecorder",
    "TraceStore",
    "TraceToolCall",
]
