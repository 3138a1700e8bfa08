"""Trace storage interface and the in-memory implementation.

Stores assign per-trace sequence ids to messages and tool calls and
clamp timestamps so that, within one trace, records never go back in
time relative to what was already written.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from concierge.errors import TraceNotFoundError
from concierge.tracing.models import (
    CompleteTrace,
    MessageRole,
    Trace,
    TraceFilter,
    TraceMessage,
    TraceToolCall,
    utcnow,
)


def next_timestamp(record: CompleteTrace, requested: datetime | None) -> datetime:
    """Return requested (or now), raised to the latest timestamp already in record."""
    stamp = requested or utcnow()
    latest = [m.created_at for m in record.messages[-1:]]
    latest += [c.created_at for c in record.tool_calls[-1:]]
    if latest and stamp < max(latest):
        return max(latest)
    return stamp


class TraceStore(ABC):
    """Persistence contract the TraceRecorder writes through.

    Every append commits on its own. Appending to a trace that does not
    exist raises TraceNotFoundError.
    """

    @abstractmethod
    def create_trace(self, trace: Trace) -> None:
        ...

    @abstractmethod
    def append_message(
        self,
        trace_id: str,
        role: MessageRole,
        content: str,
        created_at: datetime | None = None,
    ) -> TraceMessage:
        ...

    @abstractmethod
    def append_tool_call(
        self,
        trace_id: str,
        tool_name: str,
        input: Any,
        output: Any,
        created_at: datetime | None = None,
    ) -> TraceToolCall:
        ...

    @abstractmethod
    def get_trace(self, trace_id: str) -> Trace | None:
        ...

    @abstractmethod
    def get_messages(self, trace_id: str) -> list[TraceMessage]:
        ...

    @abstractmethod
    def get_tool_calls(self, trace_id: str) -> list[TraceToolCall]:
        ...

    @abstractmethod
    def list_traces(self, filters: TraceFilter | None = None) -> list[Trace]:
        """Return matching traces, newest first."""
        ...

    @abstractmethod
    def set_archived(self, trace_id: str, archived: bool) -> Trace:
        ...

    @abstractmethod
    def delete_trace(self, trace_id: str) -> bool:
        """Delete a trace and its records. Returns False if it did not exist."""
        ...


class InMemoryTraceStore(TraceStore):
    """Dict-backed store for tests and single-process use."""

    def __init__(self) -> None:
        self._records: dict[str, CompleteTrace] = {}

    def _record(self, trace_id: str) -> CompleteTrace:
        record = self._records.get(trace_id)
        if record is None:
            raise TraceNotFoundError(trace_id)
        return record

    def create_trace(self, trace: Trace) -> None:
        if trace.id in self._records:
            raise ValueError(f"Trace '{trace.id}' already exists")
        self._records[trace.id] = CompleteTrace(trace=trace)

    def append_message(
        self,
        trace_id: str,
        role: MessageRole,
        content: str,
        created_at: datetime | None = None,
    ) -> TraceMessage:
        record = self._record(trace_id)
        message = TraceMessage(
            id=len(record.messages) + 1,
            trace_id=trace_id,
            role=role,
            content=content,
            created_at=next_timestamp(record, created_at),
        )
        record.messages.append(message)
        return message

    def append_tool_call(
        self,
        trace_id: str,
        tool_name: str,
        input: Any,
        output: Any,
        created_at: datetime | None = None,
    ) -> TraceToolCall:
        record = self._record(trace_id)
        call = TraceToolCall(
            id=len(record.tool_calls) + 1,
            trace_id=trace_id,
            tool_name=tool_name,
            input=input,
            output=output,
            created_at=next_timestamp(record, created_at),
        )
        record.tool_calls.append(call)
        return call

    def get_trace(self, trace_id: str) -> Trace | None:
        record = self._records.get(trace_id)
        return record.trace if record else None

    def get_messages(self, trace_id: str) -> list[TraceMessage]:
        return list(self._record(trace_id).messages)

    def get_tool_calls(self, trace_id: str) -> list[TraceToolCall]:
        return list(self._record(trace_id).tool_calls)

    def list_traces(self, filters: TraceFilter | None = None) -> list[Trace]:
        filters = filters or TraceFilter()
        traces = [r.trace for r in self._records.values() if filters.matches(r.trace)]
        return sorted(traces, key=lambda t: t.created_at, reverse=True)

    def set_archived(self, trace_id: str, archived: bool) -> Trace:
        record = self._record(trace_id)
        record.trace = record.trace.model_copy(update={"archived": archived})
        return record.trace

    def delete_trace(self, trace_id: str) -> bool:
        return self._records.pop(trace_id, None) is not None
