"""Deterministic keyword-driven adapter for tests and offline use.

Decisions depend only on the history passed in and the date given at
construction, so identical input always yields identical output. The
latest user message picks a flow (greeting, handoff, booking, knowledge
lookup); tool results already present after that message advance the
flow to its next step.
"""

from __future__ import annotations

import json
import re
from datetime import date
from typing import Any

from concierge.adapters.base import (
    STOP_END_TURN,
    STOP_TOOL_USE,
    AdapterConfig,
    AdapterTurnResult,
    BaseAdapter,
    Message,
    TokenUsage,
    ToolCallResult,
)
from concierge.markdown import strip_markdown
from concierge.policy import is_handoff_request, next_business_day

GREETING = "Hello! I'm the Student Success Concierge. How can I help you today?"
DEFAULT_REPLY = "I understand you're asking about that. Let me help you with your request."

_GREETING_RE = re.compile(r"^\s*(hi|hello|hey)\b")
_BOOKING_RE = re.compile(r"\b(appointment|book|booking|reserve|meeting)\b")
_KNOWLEDGE_RE = re.compile(
    r"\b(hours|open|policy|policies|fee|fees|tuition|deadline|aid|register|registration"
    r"|what|how|when|where|question|about|help)\b"
)
_STUDENT_ID_RE = re.compile(r"Student ID:\s*(\d+)")
_ISO_DATE_RE = re.compile(r"\b\d{4}-\d{2}-\d{2}\b")

_KNOWN_SERVICES: tuple[str, ...] = ("tutoring", "advising", "counseling")

# Checked in order; the first topic found in the message becomes the query.
_KB_TOPICS: tuple[str, ...] = (
    "hours",
    "financial aid",
    "tuition",
    "fees",
    "registration",
    "tutoring",
    "advising",
    "policy",
)


def _first_sentences(text: str, limit: int = 300) -> str:
    return text if len(text) <= limit else text[:limit].rsplit(" ", 1)[0] + "..."


class MockAdapter(BaseAdapter):
    """Offline adapter that imitates a tool-using concierge model."""

    def __init__(self, model: str | None = None, today: date | None = None) -> None:
        self._model = model or "mock-model"
        self._today = today or date.today()

    def provider_name(self) -> str:
        return "mock"

    def model_name(self) -> str:
        return self._model

    async def call(
        self,
        system: str,
        messages: list[Message],
        tools: list[dict[str, Any]] | None = None,
        config: AdapterConfig | None = None,
    ) -> AdapterTurnResult:
        tool_names = {t["name"] for t in tools or []}

        if not tool_names:
            return self._rewrite(messages)

        user_index, user_text = self._latest_user_message(messages)
        results = self._tool_results_since(messages, user_index)
        text = user_text.lower()

        if is_handoff_request(text):
            return self._handoff(system, messages, user_text, results, tool_names)
        if _GREETING_RE.match(text) and not results:
            return self._reply(GREETING, system, messages)
        if _BOOKING_RE.search(text):
            return self._booking(system, messages, text, results, tool_names)
        if _KNOWLEDGE_RE.search(text):
            return self._knowledge(system, messages, text, results, tool_names)
        if "thank" in text:
            return self._reply(
                "You're welcome! Is there anything else I can help you with?", system, messages
            )
        return self._reply(DEFAULT_REPLY, system, messages)

    # -- Flows --

    def _handoff(
        self,
        system: str,
        messages: list[Message],
        user_text: str,
        results: dict[str, dict[str, Any]],
        tool_names: set[str],
    ) -> AdapterTurnResult:
        if "create_ticket" not in results and "create_ticket" in tool_names:
            return self._request_tool(
                "create_ticket",
                {
                    "student_id": self._student_id(system),
                    "category": "other",
                    "summary": f"Student requested human assistance: {user_text[:200]}",
                },
                system,
                messages,
            )
        ticket = results.get("create_ticket", {})
        if ticket.get("success"):
            ticket_id = ticket["output"]["ticket_id"]
            return self._reply(
                f"I've created support ticket #{ticket_id} for you. "
                "A staff member will reach out soon.",
                system,
                messages,
            )
        return self._reply(
            "I wasn't able to open a ticket just now. Please try again shortly.",
            system,
            messages,
        )

    def _booking(
        self,
        system: str,
        messages: list[Message],
        text: str,
        results: dict[str, dict[str, Any]],
        tool_names: set[str],
    ) -> AdapterTurnResult:
        service = next((s for s in _KNOWN_SERVICES if s in text), "tutoring")
        day = self._requested_date(text)

        if "check_availability" not in results and "check_availability" in tool_names:
            return self._request_tool(
                "check_availability", {"service": service, "date": day}, system, messages
            )

        availability = results.get("check_availability", {})
        if not availability.get("success"):
            return self._reply(
                f"I couldn't find open {service} slots on {day}. "
                "Would you like me to check another day?",
                system,
                messages,
            )

        open_slots = [s for s in availability["output"]["slots"] if s["available"]]
        if "create_appointment" not in results:
            if open_slots and "create_appointment" in tool_names:
                slot = open_slots[0]
                return self._request_tool(
                    "create_appointment",
                    {
                        "student_id": self._student_id(system),
                        "service": availability["output"]["service"],
                        "date": slot["date"],
                        "time": slot["time"],
                    },
                    system,
                    messages,
                )
            return self._reply(
                f"All {service} slots on {day} are full. Would you like another day?",
                system,
                messages,
            )

        booking = results["create_appointment"]
        if booking.get("success"):
            out = booking["output"]
            return self._reply(
                f"You're booked for {out['service']} on {out['date']} at {out['time']}. "
                f"Your confirmation number is {out['appointment_id']}.",
                system,
                messages,
            )
        return self._reply(
            f"I wasn't able to book that slot: {booking.get('error')}",
            system,
            messages,
        )

    def _knowledge(
        self,
        system: str,
        messages: list[Message],
        text: str,
        results: dict[str, dict[str, Any]],
        tool_names: set[str],
    ) -> AdapterTurnResult:
        if "search_kb" not in results and "search_kb" in tool_names:
            query = next((t for t in _KB_TOPICS if t in text), text[:50])
            return self._request_tool("search_kb", {"query": query}, system, messages)

        search = results.get("search_kb", {})
        articles = (search.get("output") or {}).get("articles", []) if search.get("success") else []
        if articles:
            top = articles[0]
            return self._reply(
                f'According to our article "{top["title"]}": {_first_sentences(top["content"])}',
                system,
                messages,
            )
        return self._reply(
            "I couldn't find anything in the knowledge base about that. "
            "Would you like me to create a ticket so a staff member can help?",
            system,
            messages,
        )

    def _rewrite(self, messages: list[Message]) -> AdapterTurnResult:
        """Restate the latest assistant draft in plain text (no tools offered)."""
        draft = next(
            (m.content for m in reversed(messages) if m.role == "assistant" and m.content),
            "",
        )
        return self._reply(strip_markdown(draft), "", messages)

    # -- Helpers --

    @staticmethod
    def _latest_user_message(messages: list[Message]) -> tuple[int, str]:
        for index in range(len(messages) - 1, -1, -1):
            if messages[index].role == "user":
                return index, messages[index].content or ""
        return -1, ""

    @staticmethod
    def _tool_results_since(
        messages: list[Message], start: int
    ) -> dict[str, dict[str, Any]]:
        """Map tool name -> decoded result for tool results after ``start``.

        Results are the observation strings the orchestrator feeds back:
        JSON for successes, ``Error: ...`` for failures.
        """
        results: dict[str, dict[str, Any]] = {}
        for msg in messages[start + 1:]:
            if msg.role != "tool_result" or not msg.tool_name:
                continue
            content = msg.content or ""
            if content.startswith("Error:"):
                results[msg.tool_name] = {"success": False, "error": content[6:].strip()}
                continue
            try:
                output = json.loads(content)
            except json.JSONDecodeError:
                output = content
            results[msg.tool_name] = {"success": True, "output": output}
        return results

    @staticmethod
    def _student_id(system: str) -> int:
        match = _STUDENT_ID_RE.search(system)
        return int(match.group(1)) if match else 0

    def _requested_date(self, text: str) -> str:
        found = _ISO_DATE_RE.search(text)
        if found:
            return found.group(0)
        return next_business_day(self._today).isoformat()

    def _request_tool(
        self, name: str, arguments: dict[str, Any], system: str, messages: list[Message]
    ) -> AdapterTurnResult:
        requests_so_far = sum(1 for m in messages if m.role == "assistant" and m.tool_calls)
        return AdapterTurnResult(
            content=None,
            tool_calls=[
                ToolCallResult(
                    id=f"mock_{name}_{requests_so_far + 1}", name=name, arguments=arguments
                )
            ],
            usage=self._usage(system, messages, 0),
            raw_response={},
            stop_reason=STOP_TOOL_USE,
        )

    def _reply(self, content: str, system: str, messages: list[Message]) -> AdapterTurnResult:
        return AdapterTurnResult(
            content=content,
            tool_calls=[],
            usage=self._usage(system, messages, len(content.split())),
            raw_response={},
            stop_reason=STOP_END_TURN,
        )

    @staticmethod
    def _usage(system: str, messages: list[Message], output_tokens: int) -> TokenUsage:
        input_tokens = len(system.split()) + sum(len((m.content or "").split()) for m in messages)
        return TokenUsage(
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            total_tokens=input_tokens + output_tokens,
        )
