"""create_appointment tool: book a slot for a student."""

from __future__ import annotations

from pydantic import BaseModel, Field

from concierge.policy import format_violations, validate_appointment_request
from concierge.tools.base import BaseTool, ToolResult


class CreateAppointmentInput(BaseModel):
    student_id: int = Field(description="The student ID")
    service: str = Field(description="The service name")
    date: str = Field(description="Appointment date in YYYY-MM-DD format")
    time: str = Field(
        description="Appointment time in HH:MM format (must be within business hours)"
    )


class CreateAppointmentTool(BaseTool):
    name = "create_appointment"
    description = (
        "Create an appointment for a student. Must check availability first. "
        "Only book during business hours and within the booking window."
    )
    input_model = CreateAppointmentInput

    async def execute(self, params: CreateAppointmentInput) -> ToolResult:
        if params.student_id <= 0:
            return ToolResult.fail("Valid student ID is required")
        for field_name in ("service", "date", "time"):
            if not getattr(params, field_name).strip():
                return ToolResult.fail(f"{field_name.capitalize()} parameter is required")

        if self.campus.get_student(params.student_id) is None:
            return ToolResult.fail(f"Student with ID {params.student_id} not found")

        violations = validate_appointment_request(
            params.service,
            params.date,
            params.time,
            scheduling=self.scheduling,
            today=self.today(),
        )
        if violations:
            return ToolResult.fail(f"Scheduling policy violation: {format_violations(violations)}")

        slots = self.campus.find_slots(params.service, params.date, params.time)
        if not slots:
            return ToolResult.fail(
                f"No availability slot found for {params.service} "
                f"on {params.date} at {params.time}"
            )

        try:
            appointment = self.campus.book_slot(params.student_id, slots[0])
        except ValueError as exc:
            return ToolResult.fail(str(exc))

        return ToolResult.ok(
            {
                "appointment_id": appointment.id,
                "service": appointment.service,
                "date": appointment.date,
                "time": appointment.time,
                "status": appointment.status,
            }
        )
