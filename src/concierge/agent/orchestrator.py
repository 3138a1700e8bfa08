"""Orchestrator: bounded tool-calling conversation loop with guardrails.

One run moves through LOOPING -> FINALIZING -> REMEDIATING -> DONE:

- LOOPING: call the model up to ``max_rounds`` times, dispatching any
  requested tools and feeding their results back, until the model
  answers with text.
- FINALIZING: on SMS, replace markdown in the candidate response with
  plain text (one model rewrite if the budget allows, else stripping).
- REMEDIATING: if the student asked for a human and no ticket was
  created, create one (at most once) and make the response say so.
- DONE: log the final assistant message and return.

Model failures never escape run(); tool failures come back as results.
Trace store failures propagate.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from concierge.adapters.base import AdapterTurnResult, BaseAdapter, Message
from concierge.adapters.registry import get_default_adapter
from concierge.adapters.retry import retry_with_backoff
from concierge.agent import guardrails
from concierge.agent.models import (
    OrchestratorResult,
    RunContext,
    RunPhase,
    RunState,
    ToolInvocation,
)
from concierge.agent.prompts import PLAIN_TEXT_REWRITE_REQUEST, build_system_prompt
from concierge.errors import InvalidRequestError
from concierge.models.config import ConciergeSettings
from concierge.tools.base import ToolCall, ToolResult
from concierge.tools.registry import ToolRegistry
from concierge.tracing.models import TraceMeta
from concierge.tracing.recorder import TraceRecorder

logger = logging.getLogger(__name__)


def _validation_message(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "context"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


class Orchestrator:
    """Drives one concierge turn against a model, the tools and the trace recorder.

    The adapter is chosen once, here: either the one passed in or the
    default selected from settings and the environment.
    """

    def __init__(
        self,
        recorder: TraceRecorder,
        tools: ToolRegistry,
        adapter: BaseAdapter | None = None,
        settings: ConciergeSettings | None = None,
    ) -> None:
        self.recorder = recorder
        self.tools = tools
        self.settings = settings or ConciergeSettings()
        self.adapter = adapter or get_default_adapter(self.settings)

    async def run(
        self, user_message: str, context: RunContext | dict[str, Any]
    ) -> OrchestratorResult:
        """Run one conversational turn.

        A round is one model request. Transient-error retries of that request
        happen inside the round and are not counted against the budget.

        Args:
            user_message: The student's message (non-empty).
            context: Channel, student and optional case/cohort/trace ids.

        Returns:
            OrchestratorResult with the response and run metadata.

        Raises:
            InvalidRequestError: If the message or context is invalid.
                Raised before any trace is written.
            TraceNotFoundError: If ``context.trace_id`` names no trace.
        """
        context = self._validate(user_message, context)
        trace_id, history = self._open_trace(context)
        max_rounds = context.max_rounds or self.settings.max_rounds
        state = RunState(trace_id=trace_id, max_rounds=max_rounds)

        system = build_system_prompt(
            channel=context.channel,
            student_id=context.student_id,
            scheduling=self.settings.scheduling,
            case_name=context.case_name,
            case_description=context.case_description,
        )

        self.recorder.log_message(trace_id, "user", user_message)
        history.append(Message(role="user", content=user_message))

        response = await self._loop(state, system, history)

        state.advance(RunPhase.FINALIZING)
        response = await self._apply_channel_format(state, context, system, history, response)

        state.advance(RunPhase.REMEDIATING)
        response = await self._enforce_handoff(state, context, user_message, response)

        state.advance(RunPhase.DONE)
        self.recorder.log_message(trace_id, "assistant", response)
        logger.debug("Run finished for trace %s: %s", trace_id, state.summary())

        return OrchestratorResult(
            trace_id=trace_id,
            response=response,
            tool_call_count=state.tool_call_count,
            round_count=state.round_count,
            violations=state.violations,
        )

    # -- Setup --

    @staticmethod
    def _validate(user_message: str, context: RunContext | dict[str, Any]) -> RunContext:
        if not isinstance(user_message, str) or not user_message.strip():
            raise InvalidRequestError("Message is required and must be a non-empty string")
        if isinstance(context, RunContext):
            return context
        try:
            return RunContext.model_validate(context)
        except ValidationError as exc:
            raise InvalidRequestError(f"Invalid run context: {_validation_message(exc)}") from exc

    def _open_trace(self, context: RunContext) -> tuple[str, list[Message]]:
        """Start a new trace, or resume one and replay its conversation."""
        if context.trace_id is None:
            trace_id = self.recorder.start_trace(
                TraceMeta(
                    channel=context.channel,
                    student_id=context.student_id,
                    case_id=context.case_id,
                    cohort_id=context.cohort_id,
                )
            )
            return trace_id, []

        previous = self.recorder.get_complete_trace(context.trace_id).messages
        history = [
            Message(role=m.role, content=m.content)
            for m in previous
            if m.role in ("user", "assistant")
        ]
        logger.debug("Resuming trace %s with %d messages", context.trace_id, len(history))
        return context.trace_id, history

    # -- LOOPING --

    async def _call_model(
        self, system: str, history: list[Message], tools: list[dict[str, Any]] | None
    ) -> AdapterTurnResult:
        snapshot = list(history)
        result, retried = await retry_with_backoff(
            lambda: self.adapter.call(system, snapshot, tools),
            max_retries=self.settings.max_retries,
            base_delay=self.settings.retry_base_delay,
        )
        if retried:
            logger.info("Model call succeeded after retrying %s", ", ".join(retried))
        return result

    async def _loop(self, state: RunState, system: str, history: list[Message]) -> str:
        """Run model rounds until a text answer arrives or the budget is spent."""
        definitions = self.tools.definitions()

        while state.rounds_left > 0:
            state.round_count += 1
            logger.debug(
                "Trace %s round %d/%d", state.trace_id, state.round_count, state.max_rounds
            )

            try:
                turn = await self._call_model(system, history, definitions)
            except Exception as exc:
                logger.warning(
                    "Language model call failed on round %d of trace %s",
                    state.round_count, state.trace_id, exc_info=True,
                )
                state.model_failed = True
                state.violations.append(f"Language model error: {type(exc).__name__}")
                return guardrails.FALLBACK_RESPONSE

            if turn.wants_tools:
                history.append(
                    Message(role="assistant", content=turn.content, tool_calls=turn.tool_calls)
                )
                for requested in turn.tool_calls:
                    call = ToolCall(name=requested.name, input=requested.arguments)
                    result = await self._dispatch(state, call)
                    history.append(
                        Message(
                            role="tool_result",
                            content=result.as_observation(),
                            tool_call_id=requested.id,
                            tool_name=requested.name,
                        )
                    )
                continue

            if turn.content and turn.content.strip():
                history.append(Message(role="assistant", content=turn.content))
                return turn.content

            state.violations.append(guardrails.EMPTY_RESPONSE_VIOLATION)
            return guardrails.FALLBACK_RESPONSE

        logger.info(
            "Trace %s used all %d rounds without a final answer",
            state.trace_id, state.max_rounds,
        )
        state.violations.append(guardrails.NO_FINAL_RESPONSE_VIOLATION)
        return guardrails.FALLBACK_RESPONSE

    async def _dispatch(
        self, state: RunState, call: ToolCall, forced: bool = False
    ) -> ToolResult:
        """Run one tool call, log it to the trace and record it for guardrails."""
        result = await self.tools.run_tool(call)
        self.recorder.log_tool_call(
            state.trace_id, call.name, call.input, result.model_dump(mode="json")
        )
        state.tool_call_count += 1
        state.invocations.append(ToolInvocation(call=call, result=result, forced=forced))
        if not result.success:
            logger.debug("Tool %s failed: %s", call.name, result.error)
        return result

    # -- FINALIZING --

    async def _apply_channel_format(
        self,
        state: RunState,
        context: RunContext,
        system: str,
        history: list[Message],
        response: str,
    ) -> str:
        if not guardrails.violates_channel_format(context.channel, response):
            return response

        state.violations.append(guardrails.MARKDOWN_VIOLATION)
        logger.info("Markdown in SMS response for trace %s", state.trace_id)

        if state.model_failed or state.rounds_left <= 0:
            return guardrails.to_plain_text(response)

        rewrite_history = history + [Message(role="user", content=PLAIN_TEXT_REWRITE_REQUEST)]
        state.round_count += 1
        try:
            turn = await self._call_model(system, rewrite_history, None)
        except Exception:
            logger.warning("Plain-text rewrite failed for trace %s", state.trace_id, exc_info=True)
            return guardrails.to_plain_text(response)

        rewritten = (turn.content or "").strip()
        if not rewritten or guardrails.violates_channel_format(context.channel, rewritten):
            return guardrails.to_plain_text(rewritten or response)
        return rewritten

    # -- REMEDIATING --

    async def _enforce_handoff(
        self,
        state: RunState,
        context: RunContext,
        user_message: str,
        response: str,
    ) -> str:
        if state.remediated or not guardrails.needs_handoff(user_message, state.invocations):
            return response

        state.remediated = True
        state.violations.append(guardrails.HANDOFF_VIOLATION)
        logger.info("Forcing ticket creation for trace %s", state.trace_id)

        call = guardrails.forced_ticket_call(context.student_id, user_message)
        result = await self._dispatch(state, call, forced=True)

        ticket_id = None
        if result.success:
            ticket_id = result.output["ticket_id"]
        else:
            state.violations.append(f"Forced ticket creation failed: {result.error}")
            logger.warning(
                "Forced ticket creation failed for trace %s: %s", state.trace_id, result.error
            )

        return guardrails.ensure_handoff_mention(response, ticket_id)
