"""JSON file storage for conversation traces.

One file per trace under ``<storage_dir>/traces/<trace-id>.json`` holding
the trace, its messages and its tool calls. Every append rewrites the
file atomically (write to .tmp, then rename), so each write commits on
its own and a crash never leaves a half-written trace behind.
"""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path
from typing import Any

from concierge.errors import TraceNotFoundError
from concierge.tracing.models import (
    CompleteTrace,
    MessageRole,
    Trace,
    TraceFilter,
    TraceMessage,
    TraceToolCall,
)
from concierge.tracing.store import TraceStore, next_timestamp


class JsonTraceStore(TraceStore):
    """Persist traces as JSON files.

    File layout:
        .concierge/
            traces/
                {trace-id}.json    # CompleteTrace: trace, messages, tool_calls

    Not safe for two processes appending to the same trace at once;
    callers serialize requests per trace.
    """

    def __init__(self, project_root: Path, storage_dir: str | None = None) -> None:
        self.base_dir = project_root / (storage_dir or ".concierge")
        self.traces_dir = self.base_dir / "traces"

    def ensure_dirs(self) -> None:
        self.traces_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, trace_id: str) -> Path:
        if not trace_id or "/" in trace_id or "\\" in trace_id or trace_id.startswith("."):
            raise TraceNotFoundError(trace_id)
        return self.traces_dir / f"{trace_id}.json"

    def _load(self, trace_id: str) -> CompleteTrace:
        path = self._path(trace_id)
        if not path.exists():
            raise TraceNotFoundError(trace_id)
        return CompleteTrace.model_validate_json(path.read_text(encoding="utf-8"))

    def _save(self, record: CompleteTrace) -> None:
        self.ensure_dirs()
        path = self._path(record.trace.id)
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(record.model_dump_json(indent=2), encoding="utf-8")
        os.replace(tmp_path, path)

    def create_trace(self, trace: Trace) -> None:
        if self._path(trace.id).exists():
            raise ValueError(f"Trace '{trace.id}' already exists")
        self._save(CompleteTrace(trace=trace))

    def append_message(
        self,
        trace_id: str,
        role: MessageRole,
        content: str,
        created_at: datetime | None = None,
    ) -> TraceMessage:
        record = self._load(trace_id)
        message = TraceMessage(
            id=len(record.messages) + 1,
            trace_id=trace_id,
            role=role,
            content=content,
            created_at=next_timestamp(record, created_at),
        )
        record.messages.append(message)
        self._save(record)
        return message

    def append_tool_call(
        self,
        trace_id: str,
        tool_name: str,
        input: Any,
        output: Any,
        created_at: datetime | None = None,
    ) -> TraceToolCall:
        record = self._load(trace_id)
        call = TraceToolCall(
            id=len(record.tool_calls) + 1,
            trace_id=trace_id,
            tool_name=tool_name,
            input=input,
            output=output,
            created_at=next_timestamp(record, created_at),
        )
        record.tool_calls.append(call)
        self._save(record)
        return call

    def get_trace(self, trace_id: str) -> Trace | None:
        try:
            return self._load(trace_id).trace
        except TraceNotFoundError:
            return None

    def get_messages(self, trace_id: str) -> list[TraceMessage]:
        return self._load(trace_id).messages

    def get_tool_calls(self, trace_id: str) -> list[TraceToolCall]:
        return self._load(trace_id).tool_calls

    def list_traces(self, filters: TraceFilter | None = None) -> list[Trace]:
        if not self.traces_dir.exists():
            return []
        filters = filters or TraceFilter()
        traces = [
            CompleteTrace.model_validate_json(f.read_text(encoding="utf-8")).trace
            for f in self.traces_dir.glob("*.json")
        ]
        matching = [t for t in traces if filters.matches(t)]
        return sorted(matching, key=lambda t: t.created_at, reverse=True)

    def set_archived(self, trace_id: str, archived: bool) -> Trace:
        record = self._load(trace_id)
        record.trace = record.trace.model_copy(update={"archived": archived})
        self._save(record)
        return record.trace

    def delete_trace(self, trace_id: str) -> bool:
        try:
            path = self._path(trace_id)
        except TraceNotFoundError:
            return False
        if not path.exists():
            return False
        path.unlink()
        return True
