"""TraceRecorder: the append-only conversation log the orchestrator writes to.

Applies the redaction pipeline and size limits to every message and
tool payload, then writes through an injected TraceStore. Each log call
commits on its own; nothing is batched across a run.
"""

from __future__ import annotations

import logging
from typing import Any
from uuid import uuid4

from concierge.errors import TraceNotFoundError
from concierge.tracing.models import (
    CompleteTrace,
    MessageRole,
    Trace,
    TraceFilter,
    TraceMeta,
    TraceMessage,
    TraceToolCall,
)
from concierge.tracing.redaction import (
    MAX_MESSAGE_CONTENT_SIZE,
    build_redaction_pipeline,
    sanitize_payload,
    truncate_content,
)
from concierge.tracing.store import TraceStore

logger = logging.getLogger(__name__)


class TraceRecorder:
    """Start traces and log messages and tool calls to them."""

    def __init__(
        self,
        store: TraceStore,
        custom_patterns: list[str] | None = None,
    ) -> None:
        self.store = store
        self.redact_fn = build_redaction_pipeline(custom_patterns)

    def start_trace(self, meta: TraceMeta) -> str:
        """Create a new trace and return its id."""
        trace = Trace(id=uuid4().hex, **meta.model_dump())
        self.store.create_trace(trace)
        logger.debug("Started trace %s (channel=%s)", trace.id, trace.channel)
        return trace.id

    def log_message(self, trace_id: str, role: MessageRole, content: str) -> TraceMessage:
        """Append a message to a trace.

        Raises:
            TraceNotFoundError: If the trace does not exist.
        """
        clean = truncate_content(self.redact_fn(content), MAX_MESSAGE_CONTENT_SIZE)
        return self.store.append_message(trace_id, role, clean)

    def log_tool_call(
        self, trace_id: str, tool_name: str, input: Any, output: Any
    ) -> TraceToolCall:
        """Append a tool call record (input and result payload) to a trace.

        Raises:
            TraceNotFoundError: If the trace does not exist.
        """
        return self.store.append_tool_call(
            trace_id,
            tool_name,
            sanitize_payload(input, self.redact_fn),
            sanitize_payload(output, self.redact_fn),
        )

    def get_trace(self, trace_id: str) -> Trace | None:
        return self.store.get_trace(trace_id)

    def get_complete_trace(self, trace_id: str) -> CompleteTrace:
        """Return the trace with all its messages and tool calls.

        Raises:
            TraceNotFoundError: If the trace does not exist.
        """
        trace = self.store.get_trace(trace_id)
        if trace is None:
            raise TraceNotFoundError(trace_id)
        return CompleteTrace(
            trace=trace,
            messages=self.store.get_messages(trace_id),
            tool_calls=self.store.get_tool_calls(trace_id),
        )

    def list_traces(self, filters: TraceFilter | None = None) -> list[Trace]:
        return self.store.list_traces(filters)

    def count_traces(self, filters: TraceFilter | None = None) -> int:
        return len(self.store.list_traces(filters))

    def archive_trace(self, trace_id: str, archived: bool = True) -> Trace:
        trace = self.store.set_archived(trace_id, archived)
        logger.info("Trace %s %s", trace_id, "archived" if archived else "unarchived")
        return trace

    def delete_trace(self, trace_id: str) -> bool:
        return self.store.delete_trace(trace_id)
