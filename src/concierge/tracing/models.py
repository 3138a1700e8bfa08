"""Pydantic models for conversation traces.

A Trace is one conversation session. Its messages and tool calls are
append-only records ordered by per-trace sequence ids; only the
archived flag on the Trace itself ever changes.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field

Channel = Literal["sms", "webchat"]
MessageRole = Literal["user", "assistant", "system"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TraceMeta(BaseModel):
    """Fields supplied when a trace is started."""

    model_config = {"extra": "forbid"}

    channel: Channel
    student_id: int | None = None
    case_id: int | None = None
    cohort_id: int | None = None


class Trace(BaseModel):
    """One conversation session."""

    model_config = {"extra": "forbid"}

    id: str
    channel: Channel
    student_id: int | None = None
    case_id: int | None = None
    cohort_id: int | None = None
    archived: bool = False
    created_at: datetime = Field(default_factory=utcnow)


class TraceMessage(BaseModel):
    """One user, assistant or system turn within a trace."""

    model_config = {"extra": "forbid"}

    id: int
    trace_id: str
    role: MessageRole
    content: str
    created_at: datetime


class TraceToolCall(BaseModel):
    """One tool dispatch: the input sent and the result returned."""

    model_config = {"extra": "forbid"}

    id: int
    trace_id: str
    tool_name: str
    input: Any = None
    output: Any = None
    created_at: datetime


class CompleteTrace(BaseModel):
    """A trace together with its messages and tool calls, in insertion order."""

    model_config = {"extra": "forbid"}

    trace: Trace
    messages: list[TraceMessage] = Field(default_factory=list)
    tool_calls: list[TraceToolCall] = Field(default_factory=list)


class TraceFilter(BaseModel):
    """Optional equality filters for listing traces. None matches anything."""

    model_config = {"extra": "forbid"}

    channel: Channel | None = None
    student_id: int | None = None
    case_id: int | None = None
    cohort_id: int | None = None
    archived: bool | None = None

    def matches(self, trace: Trace) -> bool:
        for field_name, wanted in self.model_dump(exclude_none=True).items():
            if getattr(trace, field_name) != wanted:
                return False
        return True
