"""Post-loop guardrail checks applied to a run's candidate response.

Both checks are pure functions of the current run's state: the channel,
this run's user message, this run's tool invocations and the candidate
text. The orchestrator decides when to act on them; the markdown check
always runs before handoff enforcement.
"""

from __future__ import annotations

import re

from concierge.agent.models import ToolInvocation
from concierge.markdown import contains_markdown, strip_markdown
from concierge.policy import is_handoff_request
from concierge.tools.base import ToolCall

MARKDOWN_VIOLATION = "Markdown detected in SMS response"
HANDOFF_VIOLATION = "Handoff requested but no ticket created"
EMPTY_RESPONSE_VIOLATION = "No content or tool calls returned from LLM"
NO_FINAL_RESPONSE_VIOLATION = "No final response generated"

FALLBACK_RESPONSE = (
    "I apologize, but I'm having trouble processing your request. "
    "Please try again or contact support."
)

TICKET_TOOL = "create_ticket"
FORCED_TICKET_CATEGORY = "other"

_TICKET_MENTION = re.compile(r"\b(ticket|staff)\b", re.IGNORECASE)


def violates_channel_format(channel: str, text: str) -> bool:
    """True when an SMS response contains markdown."""
    return channel == "sms" and contains_markdown(text)


def to_plain_text(text: str) -> str:
    """Deterministic plain-text fallback for SMS responses."""
    return strip_markdown(text)


def ticket_created(invocations: list[ToolInvocation]) -> bool:
    """True if a create_ticket call succeeded during this run."""
    # A failed create_ticket attempt leaves the student without a ticket, so
    # it does not satisfy the handoff rule and the forced ticket still runs.
    return any(
        inv.call.name == TICKET_TOOL and inv.result.success for inv in invocations
    )


def needs_handoff(user_message: str, invocations: list[ToolInvocation]) -> bool:
    """True when the student asked for a human and no ticket exists yet."""
    return is_handoff_request(user_message) and not ticket_created(invocations)


def forced_ticket_call(student_id: int, user_message: str) -> ToolCall:
    """Build the create_ticket call made when the model skipped the handoff."""
    summary = f"Student requested human assistance: {user_message.strip()}"
    return ToolCall(
        name=TICKET_TOOL,
        input={
            "student_id": student_id,
            "category": FORCED_TICKET_CATEGORY,
            "summary": summary[:500],
        },
    )


def mentions_ticket_or_staff(text: str) -> bool:
    return bool(_TICKET_MENTION.search(text))


def ensure_handoff_mention(response: str, ticket_id: int | None = None) -> str:
    """Make sure the response tells the student a human will follow up.

    Responses that already mention a ticket or staff are returned as-is;
    otherwise a plain-text follow-up sentence is appended. ``ticket_id``
    is None when the ticket could not be created.
    """
    if mentions_ticket_or_staff(response):
        return response
    if ticket_id is not None:
        notice = (
            f"I've created support ticket {ticket_id} for you. "
            "A staff member will reach out to help you shortly."
        )
    else:
        notice = (
            "I wasn't able to open a support ticket just now. "
            "Please contact Student Success Center staff directly for help."
        )
    return f"{response.rstrip()}\n\n{notice}" if response.strip() else notice
