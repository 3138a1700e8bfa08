"""Business rules for scheduling and human handoff.

Scheduling rules (services, business hours, open days, booking window)
come from SchedulingConfig so they can be tuned in concierge.yaml. The
handoff keyword set is fixed: it defines what the handoff guardrail
treats as a request for a human.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Literal

from concierge.models.config import SchedulingConfig

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

HANDOFF_KEYWORDS: tuple[str, ...] = (
    "human",
    "person",
    "supervisor",
    "manager",
    "staff",
    "representative",
    "agent",
    "real person",
    "speak to someone",
    "talk to someone",
    "escalate",
)


def _keyword_regex(keyword: str) -> str:
    words = [re.escape(word) for word in keyword.split()]
    if len(words) == 1:
        return words[0] + "s?"
    # "speak to someone" also covers "speak with someone"
    return r"\s+".join("(?:to|with)" if word == "to" else word for word in words)


# Longest phrases first so "real person" wins over "person".
_HANDOFF_PATTERN = re.compile(
    r"\b(?:"
    + "|".join(_keyword_regex(k) for k in sorted(HANDOFF_KEYWORDS, key=len, reverse=True))
    + r")\b",
    re.IGNORECASE,
)

ViolationType = Literal[
    "invalid_service",
    "invalid_date",
    "out_of_bounds_date",
    "closed_day",
    "invalid_time_slot",
]


@dataclass
class PolicyViolation:
    """One broken scheduling rule."""

    type: ViolationType
    message: str
    context: dict[str, Any] = field(default_factory=dict)


def find_handoff_keyword(message: str) -> str | None:
    """Return the first handoff phrase found in message, or None."""
    match = _HANDOFF_PATTERN.search(message)
    return match.group(0).lower() if match else None


def is_handoff_request(message: str) -> bool:
    """True if the message asks for a human (staff, supervisor, real person...)."""
    return find_handoff_keyword(message) is not None


def parse_date(value: str) -> date | None:
    """Parse a YYYY-MM-DD string, returning None if malformed or impossible."""
    if not DATE_PATTERN.match(value):
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        return None


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def next_business_day(
    start: date, scheduling: SchedulingConfig | None = None
) -> date:
    """Return the first open day strictly after start."""
    open_days = set((scheduling or SchedulingConfig()).open_days)
    if not open_days:
        raise ValueError("scheduling.open_days is empty")
    day = start + timedelta(days=1)
    while day.weekday() not in open_days:
        day += timedelta(days=1)
    return day


def validate_appointment_request(
    service: str,
    day: str,
    time: str,
    scheduling: SchedulingConfig | None = None,
    today: date | None = None,
) -> list[PolicyViolation]:
    """Check an appointment request against the scheduling policy.

    Format problems short-circuit: a malformed date or time is reported
    alone, since the remaining checks cannot be evaluated.

    Returns:
        List of violations; empty when the request is acceptable.
    """
    scheduling = scheduling or SchedulingConfig()
    today = today or date.today()
    violations: list[PolicyViolation] = []

    valid_services = [s.lower() for s in scheduling.services]
    if service.strip().lower() not in valid_services:
        violations.append(
            PolicyViolation(
                type="invalid_service",
                message=(
                    f'Invalid service: "{service}". '
                    f"Valid services are: {', '.join(scheduling.services)}"
                ),
                context={"service": service},
            )
        )

    requested = parse_date(day)
    if requested is None:
        violations.append(
            PolicyViolation(
                type="invalid_date",
                message="Date must be in YYYY-MM-DD format",
                context={"date": day},
            )
        )
        return violations

    days_ahead = (requested - today).days
    if days_ahead < scheduling.min_advance_days:
        violations.append(
            PolicyViolation(
                type="out_of_bounds_date",
                message=(
                    f"Appointments must be scheduled at least "
                    f"{scheduling.min_advance_days} day(s) in advance"
                ),
                context={"date": day},
            )
        )
    elif days_ahead > scheduling.max_advance_days:
        violations.append(
            PolicyViolation(
                type="out_of_bounds_date",
                message=(
                    f"Appointments cannot be scheduled more than "
                    f"{scheduling.max_advance_days} days in advance"
                ),
                context={"date": day},
            )
        )

    if requested.weekday() not in scheduling.open_days:
        violations.append(
            PolicyViolation(
                type="closed_day",
                message=f"{requested.strftime('%A')} is not a business day",
                context={"date": day},
            )
        )

    if not TIME_PATTERN.match(time):
        violations.append(
            PolicyViolation(
                type="invalid_time_slot",
                message="Time must be in HH:MM format (24-hour)",
                context={"time": time},
            )
        )
        return violations

    if not (scheduling.business_hours_start <= time < scheduling.business_hours_end):
        violations.append(
            PolicyViolation(
                type="invalid_time_slot",
                message=(
                    f"Appointments must be between {scheduling.business_hours_start} "
                    f"and {scheduling.business_hours_end}"
                ),
                context={"time": time},
            )
        )

    return violations


def format_violations(violations: list[PolicyViolation]) -> str:
    """Format violations as a numbered, single-string summary."""
    if not violations:
        return "No violations"
    return "; ".join(f"{i}. {v.message}" for i, v in enumerate(violations, start=1))
