"""Tests for TraceRecorder - redaction, ids and queries over a store."""

from __future__ import annotations

import pytest

from concierge.errors import TraceNotFoundError
from concierge.tracing.models import TraceFilter, TraceMeta
from concierge.tracing.recorder import TraceRecorder
from concierge.tracing.redaction import (
    MAX_MESSAGE_CONTENT_SIZE,
    MAX_TOOL_PAYLOAD_SIZE,
    REDACTED_PLACEHOLDER,
)
from concierge.tracing.store import InMemoryTraceStore


@pytest.fixture
def recorder() -> TraceRecorder:
    return TraceRecorder(InMemoryTraceStore())


class TestStartTrace:
    def test_returns_unique_hex_ids(self, recorder):
        first = recorder.start_trace(TraceMeta(channel="sms", student_id=1))
        second = recorder.start_trace(TraceMeta(channel="sms", student_id=1))
        assert first != second
        assert len(first) == 32
        int(first, 16)

    def test_metadata_stored(self, recorder):
        trace_id = recorder.start_trace(
            TraceMeta(channel="webchat", student_id=5, case_id=2, cohort_id=3)
        )
        trace = recorder.get_trace(trace_id)
        assert (trace.channel, trace.student_id, trace.case_id, trace.cohort_id) == (
            "webchat", 5, 2, 3,
        )
        assert trace.archived is False


class TestLogging:
    def test_message_content_redacted(self, recorder):
        trace_id = recorder.start_trace(TraceMeta(channel="sms"))
        message = recorder.log_message(trace_id, "user", "my password: hunter2")
        assert message.content == f"my {REDACTED_PLACEHOLDER}"
        assert "hunter2" not in recorder.get_complete_trace(trace_id).messages[0].content

    def test_long_message_truncated(self, recorder):
        trace_id = recorder.start_trace(TraceMeta(channel="sms"))
        message = recorder.log_message(trace_id, "assistant", "a" * (MAX_MESSAGE_CONTENT_SIZE + 1))
        assert message.content.endswith("... [truncated]")

    def test_tool_payload_sanitized(self, recorder):
        trace_id = recorder.start_trace(TraceMeta(channel="webchat"))
        call = recorder.log_tool_call(
            trace_id,
            "create_ticket",
            {"summary": "token=abc123"},
            {"success": True, "output": {"blob": "x" * MAX_TOOL_PAYLOAD_SIZE}},
        )
        assert call.input == {"summary": REDACTED_PLACEHOLDER}
        assert call.output["truncated"] is True

    def test_custom_patterns(self):
        recorder = TraceRecorder(InMemoryTraceStore(), custom_patterns=[r"\bS\d{7}\b"])
        trace_id = recorder.start_trace(TraceMeta(channel="sms"))
        message = recorder.log_message(trace_id, "user", "My number is S1234567")
        assert message.content == f"My number is {REDACTED_PLACEHOLDER}"

    def test_log_to_missing_trace_raises(self, recorder):
        with pytest.raises(TraceNotFoundError, match="Trace 'missing' not found"):
            recorder.log_message("missing", "user", "Hi")


class TestQueries:
    def test_complete_trace_in_order(self, recorder):
        trace_id = recorder.start_trace(TraceMeta(channel="webchat"))
        recorder.log_message(trace_id, "user", "Hours?")
        recorder.log_tool_call(trace_id, "search_kb", {"query": "hours"}, {"success": True})
        recorder.log_message(trace_id, "assistant", "9 to 5")

        complete = recorder.get_complete_trace(trace_id)

        assert [m.role for m in complete.messages] == ["user", "assistant"]
        assert [m.id for m in complete.messages] == [1, 2]
        assert complete.tool_calls[0].tool_name == "search_kb"
        stamps = [complete.messages[0].created_at, complete.tool_calls[0].created_at,
                  complete.messages[1].created_at]
        assert stamps == sorted(stamps)

    def test_complete_trace_missing_raises(self, recorder):
        with pytest.raises(TraceNotFoundError):
            recorder.get_complete_trace("missing")

    def test_list_count_archive_delete(self, recorder):
        sms = recorder.start_trace(TraceMeta(channel="sms"))
        recorder.start_trace(TraceMeta(channel="webchat"))

        assert recorder.count_traces() == 2
        assert [t.id for t in recorder.list_traces(TraceFilter(channel="sms"))] == [sms]

        assert recorder.archive_trace(sms).archived is True
        assert recorder.count_traces(TraceFilter(archived=False)) == 1
        assert recorder.archive_trace(sms, archived=False).archived is False

        assert recorder.delete_trace(sms) is True
        assert recorder.get_trace(sms) is None
        assert recorder.count_traces() == 1
