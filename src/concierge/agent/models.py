"""Run context, run result and per-run bookkeeping for the orchestrator."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field

from concierge.tools.base import ToolCall, ToolResult


class RunContext(BaseModel):
    """Session context for one orchestrator run.

    ``trace_id`` continues an existing conversation; without it a new
    trace is started. ``max_rounds`` falls back to the configured
    budget when omitted.
    """

    model_config = {"extra": "forbid"}

    channel: Literal["sms", "webchat"]
    student_id: int
    case_id: int | None = None
    case_name: str | None = None
    case_description: str | None = None
    cohort_id: int | None = None
    trace_id: str | None = None
    max_rounds: int | None = Field(default=None, ge=1)


class OrchestratorResult(BaseModel):
    """What a run returns to its caller."""

    trace_id: str
    response: str
    tool_call_count: int
    round_count: int
    violations: list[str] = Field(default_factory=list)


class RunPhase(str, Enum):
    """Orchestrator state machine: LOOPING -> FINALIZING -> REMEDIATING -> DONE."""

    LOOPING = "looping"
    FINALIZING = "finalizing"
    REMEDIATING = "remediating"
    DONE = "done"


@dataclass
class ToolInvocation:
    """One tool dispatch made during a run."""

    call: ToolCall
    result: ToolResult
    forced: bool = False


@dataclass
class RunState:
    """Mutable state of a single run. Never shared between runs."""

    trace_id: str
    max_rounds: int
    phase: RunPhase = RunPhase.LOOPING
    round_count: int = 0
    tool_call_count: int = 0
    invocations: list[ToolInvocation] = field(default_factory=list)
    violations: list[str] = field(default_factory=list)
    model_failed: bool = False
    remediated: bool = False

    @property
    def rounds_left(self) -> int:
        return self.max_rounds - self.round_count

    def advance(self, phase: RunPhase) -> None:
        """Move to a later phase. Phases never go backwards."""
        order = list(RunPhase)
        if order.index(phase) < order.index(self.phase):
            raise RuntimeError(f"Cannot move from {self.phase.value} back to {phase.value}")
        self.phase = phase

    def summary(self) -> dict[str, Any]:
        return {
            "phase": self.phase.value,
            "rounds": self.round_count,
            "tool_calls": self.tool_call_count,
            "violations": list(self.violations),
        }
