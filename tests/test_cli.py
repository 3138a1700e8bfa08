"""Tests for the concierge CLI commands (chat, trace, traces, archive)."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from concierge import __version__
from concierge.adapters.mock_adapter import GREETING
from concierge.cli.main import app
from concierge.models.config import MODEL_ENV_VAR, PROVIDER_ENV_VAR

runner = CliRunner()


@pytest.fixture
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A project directory using the mock provider, set as cwd."""
    (tmp_path / "concierge.yaml").write_text("provider: mock\n")
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv(PROVIDER_ENV_VAR, raising=False)
    monkeypatch.delenv(MODEL_ENV_VAR, raising=False)
    return tmp_path


def _chat_json(*args: str) -> dict:
    result = runner.invoke(app, ["chat", *args, "--json"])
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


class TestVersion:
    def test_version_flag(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"concierge {__version__}" in result.output


class TestChatCommand:
    def test_chat_json(self, project):
        data = _chat_json("Hello!")
        assert data["response"] == GREETING
        assert data["round_count"] == 1
        assert data["tool_call_count"] == 0
        assert data["violations"] == []
        assert (project / ".concierge" / "traces" / f"{data['trace_id']}.json").exists()

    def test_chat_rich_output(self, project):
        result = runner.invoke(app, ["chat", "What are your office hours?"])
        assert result.exit_code == 0, result.output
        assert "According" in result.output
        assert "Tool calls" in result.output
        assert "none" in result.output

    def test_chat_sms_handoff(self, project):
        data = _chat_json("Can I talk to a real person?", "--channel", "sms", "--student-id", "2")
        assert data["tool_call_count"] == 1
        assert "ticket" in data["response"]

    def test_chat_resume(self, project):
        first = _chat_json("Hello!")
        second = _chat_json("Thank you", "--trace-id", first["trace_id"])
        assert second["trace_id"] == first["trace_id"]

        result = runner.invoke(app, ["trace", first["trace_id"], "--json"])
        messages = json.loads(result.stdout)["messages"]
        assert [m["role"] for m in messages] == ["user", "assistant", "user", "assistant"]

    def test_chat_unknown_trace(self, project):
        result = runner.invoke(app, ["chat", "Hi", "--trace-id", "missing"])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_chat_invalid_channel(self, project):
        result = runner.invoke(app, ["chat", "Hi", "--channel", "fax"])
        assert result.exit_code == 1
        assert "Invalid run context" in result.output

    def test_chat_unknown_provider(self, project):
        result = runner.invoke(app, ["chat", "Hi", "--provider", "nope"])
        assert result.exit_code == 1
        assert "Adapter error" in result.output

    def test_chat_bad_config(self, project):
        (project / "concierge.yaml").write_text("max_rounds: 0\n")
        result = runner.invoke(app, ["chat", "Hi"])
        assert result.exit_code == 1
        assert "Config error" in result.output

    def test_chat_with_seed_file(self, project):
        (project / "seed.yaml").write_text(
            "students:\n"
            "  - {id: 1, name: Lee}\n"
            "articles:\n"
            "  - {id: 1, title: Office Hours, category: hours, content: Open noon to 4.}\n"
        )
        (project / "concierge.yaml").write_text("provider: mock\nseed_file: seed.yaml\n")

        data = _chat_json("What are your office hours?")

        assert "Open noon to 4." in data["response"]

    def test_chat_missing_seed_file(self, project):
        (project / "concierge.yaml").write_text("provider: mock\nseed_file: nope.yaml\n")
        result = runner.invoke(app, ["chat", "Hi"])
        assert result.exit_code == 1
        assert "Seed file error" in result.output


class TestTraceCommands:
    def test_trace_shows_timeline(self, project):
        data = _chat_json("What are your office hours?")

        result = runner.invoke(app, ["trace", data["trace_id"]])

        assert result.exit_code == 0, result.output
        assert "search_kb" in result.output
        assert "What are your office hours?" in result.output

    def test_trace_json(self, project):
        data = _chat_json("What are your office hours?")

        result = runner.invoke(app, ["trace", data["trace_id"], "--json"])

        complete = json.loads(result.stdout)
        assert complete["trace"]["id"] == data["trace_id"]
        assert complete["tool_calls"][0]["tool_name"] == "search_kb"

    def test_trace_missing(self, project):
        result = runner.invoke(app, ["trace", "missing"])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_traces_filters(self, project):
        sms = _chat_json("Hello!", "--channel", "sms")
        web = _chat_json("Hello!", "--student-id", "3")

        all_ids = [t["id"] for t in json.loads(runner.invoke(app, ["traces", "--json"]).stdout)]
        assert set(all_ids) == {sms["trace_id"], web["trace_id"]}

        result = runner.invoke(app, ["traces", "--channel", "sms", "--json"])
        assert [t["id"] for t in json.loads(result.stdout)] == [sms["trace_id"]]

        result = runner.invoke(app, ["traces", "--student-id", "3", "--json"])
        assert [t["id"] for t in json.loads(result.stdout)] == [web["trace_id"]]

    def test_traces_empty(self, project):
        result = runner.invoke(app, ["traces"])
        assert result.exit_code == 0
        assert "No traces found" in result.output

    def test_traces_invalid_channel(self, project):
        result = runner.invoke(app, ["traces", "--channel", "fax"])
        assert result.exit_code == 1
        assert "Invalid channel" in result.output

    def test_archive_and_undo(self, project):
        trace_id = _chat_json("Hello!")["trace_id"]

        result = runner.invoke(app, ["archive", trace_id])
        assert result.exit_code == 0, result.output
        assert "archived" in result.output

        archived = json.loads(runner.invoke(app, ["traces", "--archived", "--json"]).stdout)
        assert [t["id"] for t in archived] == [trace_id]
        active = json.loads(runner.invoke(app, ["traces", "--active", "--json"]).stdout)
        assert active == []

        result = runner.invoke(app, ["archive", trace_id, "--undo"])
        assert result.exit_code == 0
        assert "active" in result.output

    def test_archive_missing(self, project):
        result = runner.invoke(app, ["archive", "missing"])
        assert result.exit_code == 1
