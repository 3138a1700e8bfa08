"""System prompt assembly for the concierge.

The prompt states the persona, the channel formatting rule, the
scheduling policy, the handoff rule and the knowledge-base accuracy
rule, followed by the student and optional case context.
"""

from __future__ import annotations

from concierge.models.config import SchedulingConfig
from concierge.policy import HANDOFF_KEYWORDS

_DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

PERSONA = """You are the Student Success Concierge, an assistant helping students at a university.

Your role is to:
- Answer questions about university services, policies, and resources
- Help students schedule appointments
- Create support tickets for issues requiring human assistance
- Be helpful, professional, and accurate"""

SMS_RULE = (
    "- SMS CHANNEL: Respond in plain text only. Do not use any markdown "
    "formatting (no bold, italic, headers, lists, links, or code). "
    "Keep responses concise for SMS."
)

WEBCHAT_RULE = "- WEBCHAT CHANNEL: You may use markdown formatting for readability."

PLAIN_TEXT_REWRITE_REQUEST = (
    "Your response contains markdown formatting. Please rewrite it in plain "
    "text only, with no bold, italic, headers, lists, links, or code. "
    "Keep it concise for SMS."
)


def _format_days(open_days: list[int]) -> str:
    days = sorted(set(open_days))
    if days and days == list(range(days[0], days[-1] + 1)) and len(days) > 2:
        return f"{_DAY_NAMES[days[0]]}-{_DAY_NAMES[days[-1]]}"
    return ", ".join(_DAY_NAMES[d] for d in days)


def scheduling_rule(scheduling: SchedulingConfig) -> str:
    return (
        f"- SCHEDULING: Only book appointments during business hours "
        f"({scheduling.business_hours_start}-{scheduling.business_hours_end}, "
        f"{_format_days(scheduling.open_days)}). Only book appointments "
        f"{scheduling.min_advance_days}-{scheduling.max_advance_days} days from today. "
        f"Available services: {', '.join(scheduling.services)}.\n"
        "- Always check availability before creating an appointment.\n"
        "- If a time slot is full or invalid, suggest alternative times."
    )


def handoff_rule() -> str:
    keywords = ", ".join(f'"{k}"' for k in HANDOFF_KEYWORDS)
    return (
        "- HANDOFF: If a student asks to speak with a human, or the issue needs "
        "human judgment, call create_ticket and tell the student that a staff "
        "member will follow up.\n"
        f"- Look for phrases like {keywords}."
    )


ACCURACY_RULE = (
    "- ACCURACY: Always search the knowledge base before answering questions "
    "about policies, hours, fees, or services. Do not make up information.\n"
    "- If you are uncertain, search the knowledge base or create a ticket."
)


def build_system_prompt(
    channel: str,
    student_id: int,
    scheduling: SchedulingConfig | None = None,
    case_name: str | None = None,
    case_description: str | None = None,
) -> str:
    """Assemble the system prompt for one orchestrator run.

    Args:
        channel: "sms" or "webchat"; selects the formatting rule.
        student_id: Student the conversation is with.
        scheduling: Scheduling policy to describe (defaults if None).
        case_name: Optional case title shown as context.
        case_description: Optional case description shown as context.

    Returns:
        The prompt text. It always contains a ``Student ID: <id>`` line.
    """
    scheduling = scheduling or SchedulingConfig()
    rules = [
        SMS_RULE if channel == "sms" else WEBCHAT_RULE,
        scheduling_rule(scheduling),
        handoff_rule(),
        ACCURACY_RULE,
    ]
    sections = [PERSONA, "IMPORTANT RULES:\n" + "\n".join(rules), f"Student ID: {student_id}"]

    if case_name or case_description:
        case_lines = []
        if case_name:
            case_lines.append(f"Case: {case_name}")
        if case_description:
            case_lines.append(f"Description: {case_description}")
        sections.append("\n".join(case_lines))

    return "\n\n".join(sections)
