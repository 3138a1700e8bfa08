"""In-memory campus directory the tools read from and write to.

Holds students, knowledge-base articles, availability slots,
appointments and tickets. Seeded either with built-in defaults
(slots generated relative to a given day) or from a YAML seed file.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from itertools import count
from pathlib import Path

from pydantic import BaseModel, Field

from concierge.models.config import SchedulingConfig


class Student(BaseModel):
    model_config = {"extra": "forbid"}

    id: int
    name: str
    email: str | None = None


class KbArticle(BaseModel):
    model_config = {"extra": "forbid"}

    id: int
    title: str
    category: str
    content: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class AvailabilitySlot(BaseModel):
    model_config = {"extra": "forbid"}

    service: str
    date: str
    time: str
    max_capacity: int = Field(default=1, ge=0)
    current_bookings: int = Field(default=0, ge=0)

    @property
    def available(self) -> bool:
        return self.current_bookings < self.max_capacity


class Appointment(BaseModel):
    id: int
    student_id: int
    service: str
    date: str
    time: str
    status: str = "scheduled"
    created_at: datetime


class Ticket(BaseModel):
    id: int
    student_id: int
    category: str
    summary: str
    status: str = "open"
    created_at: datetime


class CampusSeed(BaseModel):
    """Schema of a YAML seed file."""

    model_config = {"extra": "forbid"}

    students: list[Student] = Field(default_factory=list)
    articles: list[KbArticle] = Field(default_factory=list)
    slots: list[AvailabilitySlot] = Field(default_factory=list)


DEFAULT_STUDENTS: list[dict[str, object]] = [
    {"id": 1, "name": "Avery Chen", "email": "avery.chen@example.edu"},
    {"id": 2, "name": "Jordan Patel", "email": "jordan.patel@example.edu"},
    {"id": 3, "name": "Sam Rivera", "email": "sam.rivera@example.edu"},
]

DEFAULT_ARTICLES: list[dict[str, object]] = [
    {
        "id": 1,
        "title": "Student Success Center Office Hours",
        "category": "hours",
        "content": (
            "The Student Success Center is open Monday through Friday, "
            "9 AM to 5 PM. We are closed on weekends and university holidays."
        ),
    },
    {
        "id": 2,
        "title": "Tutoring Services",
        "category": "services",
        "content": (
            "Free one-on-one tutoring is available for most undergraduate courses. "
            "Sessions last 50 minutes and can be booked 1 to 30 days in advance."
        ),
    },
    {
        "id": 3,
        "title": "Academic Advising",
        "category": "services",
        "content": (
            "Academic advisors help with course planning, degree audits and "
            "major changes. Book an advising appointment at least one day ahead."
        ),
    },
    {
        "id": 4,
        "title": "Financial Aid Basics",
        "category": "financial_aid",
        "content": (
            "Financial aid packages are released in April. Submit the FAFSA by "
            "March 1 for priority consideration. Appeals are handled by staff."
        ),
    },
    {
        "id": 5,
        "title": "Tuition and Fees Payment Deadlines",
        "category": "fees",
        "content": (
            "Tuition and fees are due on the first day of each term. "
            "A late fee of $50 applies to payments received after the deadline."
        ),
    },
    {
        "id": 6,
        "title": "Course Registration Policy",
        "category": "policies",
        "content": (
            "Registration opens four weeks before each term. Courses may be "
            "dropped without penalty during the first two weeks."
        ),
    },
]


class CampusDirectory:
    """Students, knowledge base, availability and bookings for the tools.

    All mutation happens without awaiting, so concurrent runs on one
    event loop cannot interleave inside a booking.
    """

    def __init__(
        self,
        students: list[Student] | None = None,
        articles: list[KbArticle] | None = None,
        slots: list[AvailabilitySlot] | None = None,
    ) -> None:
        self.students: dict[int, Student] = {s.id: s for s in students or []}
        self.articles: list[KbArticle] = list(articles or [])
        self.slots: list[AvailabilitySlot] = list(slots or [])
        self.appointments: list[Appointment] = []
        self.tickets: list[Ticket] = []
        self._appointment_ids = count(1)
        self._ticket_ids = count(1)

    @classmethod
    def with_defaults(
        cls,
        today: date | None = None,
        scheduling: SchedulingConfig | None = None,
        slot_capacity: int = 2,
    ) -> "CampusDirectory":
        """Build a directory with sample students, articles and open slots.

        Slots are generated hourly within business hours for every open
        day inside the booking window that starts after ``today``.
        """
        scheduling = scheduling or SchedulingConfig()
        today = today or date.today()
        start_hour = int(scheduling.business_hours_start.split(":")[0])
        end_hour = int(scheduling.business_hours_end.split(":")[0])

        slots: list[AvailabilitySlot] = []
        for offset in range(scheduling.min_advance_days, scheduling.max_advance_days + 1):
            day = today + timedelta(days=offset)
            if day.weekday() not in scheduling.open_days:
                continue
            for service in scheduling.services:
                for hour in range(start_hour, end_hour):
                    slots.append(
                        AvailabilitySlot(
                            service=service.lower(),
                            date=day.isoformat(),
                            time=f"{hour:02d}:00",
                            max_capacity=slot_capacity,
                        )
                    )

        return cls(
            students=[Student.model_validate(s) for s in DEFAULT_STUDENTS],
            articles=[KbArticle.model_validate(a) for a in DEFAULT_ARTICLES],
            slots=slots,
        )

    @classmethod
    def from_yaml(cls, path: Path) -> "CampusDirectory":
        """Load a directory from a YAML seed file (students, articles, slots)."""
        import yaml

        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        seed = CampusSeed.model_validate(raw)
        return cls(students=seed.students, articles=seed.articles, slots=seed.slots)

    # -- Students --

    def get_student(self, student_id: int) -> Student | None:
        return self.students.get(student_id)

    # -- Knowledge base --

    def search_articles(
        self, query: str, category: str | None = None, limit: int = 5
    ) -> list[KbArticle]:
        """Case-insensitive substring search over title and content.

        Title matches rank ahead of content-only matches; ties keep
        newest first.
        """
        needle = query.strip().lower()
        candidates = self.articles
        if category:
            candidates = [a for a in candidates if a.category.lower() == category.strip().lower()]

        title_hits = [a for a in candidates if needle in a.title.lower()]
        content_hits = [
            a for a in candidates
            if needle not in a.title.lower() and needle in a.content.lower()
        ]
        ranked = sorted(title_hits, key=lambda a: a.created_at, reverse=True)
        ranked += sorted(content_hits, key=lambda a: a.created_at, reverse=True)
        return ranked[:limit]

    # -- Availability --

    def find_slots(
        self, service: str, day: str, time: str | None = None
    ) -> list[AvailabilitySlot]:
        service_key = service.strip().lower()
        slots = [
            s for s in self.slots
            if s.service.lower() == service_key and s.date == day
            and (time is None or s.time == time)
        ]
        return sorted(slots, key=lambda s: s.time)

    def book_slot(self, student_id: int, slot: AvailabilitySlot) -> Appointment:
        """Take one seat in slot and record the appointment.

        Raises:
            ValueError: If the slot is already full.
        """
        if not slot.available:
            raise ValueError(
                f"Slot is fully booked ({slot.current_bookings}/{slot.max_capacity})"
            )
        slot.current_bookings += 1
        appointment = Appointment(
            id=next(self._appointment_ids),
            student_id=student_id,
            service=slot.service,
            date=slot.date,
            time=slot.time,
            created_at=datetime.now(timezone.utc),
        )
        self.appointments.append(appointment)
        return appointment

    # -- Tickets --

    def open_ticket(self, student_id: int, category: str, summary: str) -> Ticket:
        ticket = Ticket(
            id=next(self._ticket_ids),
            student_id=student_id,
            category=category,
            summary=summary,
            created_at=datetime.now(timezone.utc),
        )
        self.tickets.append(ticket)
        return ticket
