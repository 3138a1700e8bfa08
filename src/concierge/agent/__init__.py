"""Concierge agent: orchestrator, run models, prompts and guardrails."""

from concierge.agent.models import OrchestratorResult, RunContext, RunPhase
from concierge.agent.orchestrator import Orchestrator
from concierge.agent.prompts import build_system_prompt

__all__ = [
    "Orchestrator",
    "OrchestratorResult",
    "RunContext",
    "RunPhase",
    "build_system_prompt",
]
