"""create_ticket tool: escalate to human staff."""

from __future__ import annotations

from pydantic import BaseModel, Field

from concierge.tools.base import BaseTool, ToolResult

TICKET_CATEGORIES: tuple[str, ...] = (
    "technical",
    "academic",
    "financial",
    "administrative",
    "other",
)

MAX_SUMMARY_LENGTH = 500


class CreateTicketInput(BaseModel):
    student_id: int = Field(description="The student ID")
    category: str = Field(
        description=f"Ticket category, one of: {', '.join(TICKET_CATEGORIES)}"
    )
    summary: str = Field(description="Brief summary of the issue or request")


class CreateTicketTool(BaseTool):
    name = "create_ticket"
    description = (
        "Create a support ticket to escalate to a human staff member. Use this when "
        "the student explicitly requests human assistance or when the issue requires "
        "human judgment."
    )
    input_model = CreateTicketInput

    async def execute(self, params: CreateTicketInput) -> ToolResult:
        if params.student_id <= 0:
            return ToolResult.fail("Valid student ID is required")
        if not params.category.strip():
            return ToolResult.fail("Category parameter is required")
        if not params.summary.strip():
            return ToolResult.fail("Summary parameter is required")
        if len(params.summary) > MAX_SUMMARY_LENGTH:
            return ToolResult.fail(
                f"Summary must be {MAX_SUMMARY_LENGTH} characters or less"
            )

        if self.campus.get_student(params.student_id) is None:
            return ToolResult.fail(f"Student with ID {params.student_id} not found")

        category = params.category.strip().lower()
        if category not in TICKET_CATEGORIES:
            return ToolResult.fail(
                f"Invalid category. Must be one of: {', '.join(TICKET_CATEGORIES)}"
            )

        ticket = self.campus.open_ticket(params.student_id, category, params.summary.strip())
        return ToolResult.ok(
            {
                "ticket_id": ticket.id,
                "category": ticket.category,
                "status": ticket.status,
                "created_at": ticket.created_at.isoformat(),
            }
        )
