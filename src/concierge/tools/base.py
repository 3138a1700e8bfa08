"""Tool result/call models and the BaseTool ABC.

Every tool validates its own input through a Pydantic model and reports
domain failures (not found, fully booked, bad format) as
ToolResult.fail(...) rather than raising, so the orchestrator can hand
the failure back to the model as an observation.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import date
from typing import Any, ClassVar

from pydantic import BaseModel

from concierge.models.config import SchedulingConfig
from concierge.tools.campus import CampusDirectory


class ToolResult(BaseModel):
    """Uniform tool outcome: ``{success, output}`` or ``{success, error}``."""

    success: bool
    output: Any = None
    error: str | None = None

    @classmethod
    def ok(cls, output: Any) -> "ToolResult":
        return cls(success=True, output=output)

    @classmethod
    def fail(cls, error: str) -> "ToolResult":
        return cls(success=False, error=error)

    def as_observation(self) -> str:
        """Render the result as the text fed back to the model."""
        if self.success:
            return json.dumps(self.output, indent=2, default=str)
        return f"Error: {self.error}"


class ToolCall(BaseModel):
    """A request to run the named tool with the given input."""

    name: str
    input: Any = None


def _drop_titles(schema: Any) -> Any:
    """Strip Pydantic's auto-generated 'title' keys from a JSON schema."""
    if isinstance(schema, dict):
        return {
            key: _drop_titles(value)
            for key, value in schema.items()
            if not (key == "title" and isinstance(value, str))
        }
    if isinstance(schema, list):
        return [_drop_titles(item) for item in schema]
    return schema


class BaseTool(ABC):
    """Abstract base class for concierge tools.

    Subclasses set ``name``, ``description`` and ``input_model`` and
    implement execute(), which receives an already-validated input model.
    """

    name: ClassVar[str]
    description: ClassVar[str]
    input_model: ClassVar[type[BaseModel]]

    def __init__(
        self,
        campus: CampusDirectory,
        scheduling: SchedulingConfig | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.campus = campus
        self.scheduling = scheduling or SchedulingConfig()
        self.today = today

    def definition(self) -> dict[str, Any]:
        """Return the ``{name, description, input_schema}`` tool definition."""
        schema = _drop_titles(self.input_model.model_json_schema())
        schema.setdefault("required", [])
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": schema,
        }

    @abstractmethod
    async def execute(self, params: Any) -> ToolResult:
        """Run the tool with validated input and return its result."""
        ...
