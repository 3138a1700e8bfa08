"""check_availability tool: list slots for a service on a date."""

from __future__ import annotations

from pydantic import BaseModel, Field

from concierge.policy import TIME_PATTERN, parse_date
from concierge.tools.base import BaseTool, ToolResult


class CheckAvailabilityInput(BaseModel):
    service: str = Field(
        description='The service name (e.g., "tutoring", "advising")'
    )
    date: str = Field(description="Date to check in YYYY-MM-DD format")
    time: str | None = Field(
        default=None, description="Optional specific time to check in HH:MM format"
    )


class CheckAvailabilityTool(BaseTool):
    name = "check_availability"
    description = (
        "Check available time slots for a service on a specific date. "
        "Always check availability before creating appointments."
    )
    input_model = CheckAvailabilityInput

    async def execute(self, params: CheckAvailabilityInput) -> ToolResult:
        if not params.service.strip():
            return ToolResult.fail("Service parameter is required")
        if not params.date.strip():
            return ToolResult.fail("Date parameter is required")
        if parse_date(params.date) is None:
            return ToolResult.fail("Date must be in YYYY-MM-DD format")
        if params.time is not None and not TIME_PATTERN.match(params.time):
            return ToolResult.fail("Time must be in HH:MM format (24-hour)")

        slots = self.campus.find_slots(params.service, params.date, params.time)
        if not slots:
            where = f" at {params.time}" if params.time else ""
            plural = "" if params.time else "s"
            return ToolResult.fail(
                f"No availability slot{plural} found for {params.service} "
                f"on {params.date}{where}"
            )

        return ToolResult.ok(
            {
                "service": params.service,
                "date": params.date,
                "slots": [
                    {
                        "date": s.date,
                        "time": s.time,
                        "available": s.available,
                        "capacity": s.max_capacity,
                        "bookings": s.current_bookings,
                    }
                    for s in slots
                ],
            }
        )
