"""ToolRegistry: name-based dispatch with uniform error handling.

run_tool() never raises. Unknown names, malformed input, validation
failures and unexpected exceptions inside a tool all come back as
ToolResult.fail(...) so the orchestrator can feed them to the model.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date
from typing import Any

from pydantic import ValidationError

from concierge.models.config import SchedulingConfig
from concierge.tools.base import BaseTool, ToolCall, ToolResult
from concierge.tools.campus import CampusDirectory
from concierge.tools.check_availability import CheckAvailabilityTool
from concierge.tools.create_appointment import CreateAppointmentTool
from concierge.tools.create_ticket import CreateTicketTool
from concierge.tools.search_kb import SearchKbTool

logger = logging.getLogger(__name__)

BUILTIN_TOOLS: tuple[type[BaseTool], ...] = (
    SearchKbTool,
    CheckAvailabilityTool,
    CreateAppointmentTool,
    CreateTicketTool,
)


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "input"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


class ToolRegistry:
    """Maps tool names to tool instances sharing one campus directory."""

    def __init__(
        self,
        campus: CampusDirectory,
        scheduling: SchedulingConfig | None = None,
        today: Callable[[], date] = date.today,
        tool_classes: tuple[type[BaseTool], ...] = BUILTIN_TOOLS,
    ) -> None:
        self.campus = campus
        self._tools: dict[str, BaseTool] = {
            cls.name: cls(campus, scheduling=scheduling, today=today)
            for cls in tool_classes
        }

    def available_tools(self) -> list[str]:
        """Return registered tool names in registration order."""
        return list(self._tools)

    def is_valid_tool(self, name: str) -> bool:
        return name in self._tools

    def definitions(self) -> list[dict[str, Any]]:
        """Return ``{name, description, input_schema}`` for every tool."""
        return [tool.definition() for tool in self._tools.values()]

    async def run_tool(self, call: ToolCall) -> ToolResult:
        """Dispatch a tool call by name.

        Args:
            call: The tool name and its raw input object.

        Returns:
            The tool's ToolResult, or a failure result describing why the
            call could not run.
        """
        if not call.name:
            return ToolResult.fail("Tool name is required and must be a string")

        tool = self._tools.get(call.name)
        if tool is None:
            available = ", ".join(self._tools)
            return ToolResult.fail(
                f"Unknown tool: {call.name}. Available tools: {available}"
            )

        if not isinstance(call.input, dict):
            return ToolResult.fail("Tool input is required and must be an object")

        try:
            params = tool.input_model.model_validate(call.input)
        except ValidationError as exc:
            return ToolResult.fail(
                f"Invalid input for {call.name}: {_format_validation_error(exc)}"
            )

        try:
            return await tool.execute(params)
        except Exception as exc:
            logger.exception("Error running tool %s", call.name)
            return ToolResult.fail(f"Tool execution failed: {exc}")
