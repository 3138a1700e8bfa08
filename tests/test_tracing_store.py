"""Tests for the trace stores (in-memory and JSON files).

Both stores implement the same contract, so most tests run against each.
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest

from concierge.errors import TraceNotFoundError
from concierge.tracing.json_store import JsonTraceStore
from concierge.tracing.models import Trace, TraceFilter
from concierge.tracing.store import InMemoryTraceStore, TraceStore

T0 = datetime(2025, 3, 3, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(params=["memory", "json"])
def store(request, tmp_path) -> TraceStore:
    if request.param == "memory":
        return InMemoryTraceStore()
    return JsonTraceStore(tmp_path)


def _trace(trace_id: str, minutes: int = 0, **fields) -> Trace:
    return Trace(
        id=trace_id,
        channel=fields.pop("channel", "webchat"),
        created_at=T0 + timedelta(minutes=minutes),
        **fields,
    )


class TestTraceStoreContract:
    """Behavior shared by every TraceStore."""

    def test_create_and_get(self, store):
        store.create_trace(_trace("t1", student_id=1))
        trace = store.get_trace("t1")
        assert trace.id == "t1"
        assert trace.student_id == 1
        assert trace.archived is False

    def test_get_missing_returns_none(self, store):
        assert store.get_trace("nope") is None

    def test_duplicate_id_rejected(self, store):
        store.create_trace(_trace("t1"))
        with pytest.raises(ValueError, match="already exists"):
            store.create_trace(_trace("t1"))

    def test_message_ids_are_sequential(self, store):
        store.create_trace(_trace("t1"))
        first = store.append_message("t1", "user", "Hi")
        second = store.append_message("t1", "assistant", "Hello")
        assert (first.id, second.id) == (1, 2)
        assert [m.content for m in store.get_messages("t1")] == ["Hi", "Hello"]

    def test_tool_call_round_trips_payload(self, store):
        store.create_trace(_trace("t1"))
        call = store.append_tool_call(
            "t1", "search_kb", {"query": "hours"}, {"success": True, "output": {"count": 0}}
        )
        assert call.id == 1
        stored = store.get_tool_calls("t1")[0]
        assert stored.tool_name == "search_kb"
        assert stored.input == {"query": "hours"}
        assert stored.output == {"success": True, "output": {"count": 0}}

    def test_timestamps_never_go_backwards(self, store):
        store.create_trace(_trace("t1"))
        store.append_message("t1", "user", "Hi", created_at=T0 + timedelta(seconds=10))
        late = store.append_tool_call("t1", "search_kb", {}, {}, created_at=T0)
        earlier = store.append_message("t1", "assistant", "Hello", created_at=T0)
        assert late.created_at == T0 + timedelta(seconds=10)
        assert earlier.created_at == T0 + timedelta(seconds=10)

    def test_append_to_missing_trace_raises(self, store):
        with pytest.raises(TraceNotFoundError):
            store.append_message("missing", "user", "Hi")
        with pytest.raises(TraceNotFoundError):
            store.append_tool_call("missing", "search_kb", {}, {})

    def test_list_newest_first_with_filters(self, store):
        store.create_trace(_trace("old", 0, channel="sms", student_id=1))
        store.create_trace(_trace("mid", 1, channel="webchat", student_id=1, case_id=9))
        store.create_trace(_trace("new", 2, channel="sms", student_id=2))

        assert [t.id for t in store.list_traces()] == ["new", "mid", "old"]
        assert [t.id for t in store.list_traces(TraceFilter(channel="sms"))] == ["new", "old"]
        assert [t.id for t in store.list_traces(TraceFilter(student_id=1))] == ["mid", "old"]
        assert [t.id for t in store.list_traces(TraceFilter(case_id=9))] == ["mid"]

    def test_archive_and_filter(self, store):
        store.create_trace(_trace("a", 0))
        store.create_trace(_trace("b", 1))

        updated = store.set_archived("a", True)

        assert updated.archived is True
        assert [t.id for t in store.list_traces(TraceFilter(archived=True))] == ["a"]
        assert [t.id for t in store.list_traces(TraceFilter(archived=False))] == ["b"]
        assert store.set_archived("a", False).archived is False

    def test_archive_missing_raises(self, store):
        with pytest.raises(TraceNotFoundError):
            store.set_archived("missing", True)

    def test_delete(self, store):
        store.create_trace(_trace("t1"))
        store.append_message("t1", "user", "Hi")
        assert store.delete_trace("t1") is True
        assert store.get_trace("t1") is None
        assert store.delete_trace("t1") is False


class TestJsonTraceStoreFiles:
    """File layout specifics of JsonTraceStore."""

    def test_file_layout(self, tmp_path):
        store = JsonTraceStore(tmp_path)
        store.create_trace(_trace("t1"))
        store.append_message("t1", "user", "Hi")

        path = tmp_path / ".concierge" / "traces" / "t1.json"
        data = json.loads(path.read_text())
        assert data["trace"]["id"] == "t1"
        assert data["messages"][0]["content"] == "Hi"
        assert data["tool_calls"] == []
        assert not list(path.parent.glob("*.tmp"))

    def test_custom_storage_dir(self, tmp_path):
        store = JsonTraceStore(tmp_path, storage_dir="data")
        store.create_trace(_trace("t1"))
        assert (tmp_path / "data" / "traces" / "t1.json").exists()

    def test_survives_new_instance(self, tmp_path):
        JsonTraceStore(tmp_path).create_trace(_trace("t1"))
        JsonTraceStore(tmp_path).append_message("t1", "user", "Hi")
        assert JsonTraceStore(tmp_path).get_messages("t1")[0].content == "Hi"

    def test_list_without_directory(self, tmp_path):
        assert JsonTraceStore(tmp_path).list_traces() == []

    @pytest.mark.parametrize("bad_id", ["../escape", "a/b", "a\\b", ".hidden", ""])
    def test_path_like_ids_not_found(self, tmp_path, bad_id):
        store = JsonTraceStore(tmp_path)
        assert store.get_trace(bad_id) is None
        assert store.delete_trace(bad_id) is False
        with pytest.raises(TraceNotFoundError):
            store.append_message(bad_id, "user", "Hi")
