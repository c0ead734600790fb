# lesson_reports/schemas/session.py
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field

from lesson_reports.services.time_utils import parse_timestamp, round_half_up

# Course key used for sessions that carry no course id.
NO_COURSE_ID = "NO_ID"


class ClassType(str, Enum):
    PRIVATE = "private"
    GROUP = "group"


class CancellationActor(str, Enum):
    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"


class Participant(BaseModel):
    """
    A teacher's or student's record of one session: attendance, timing,
    cancellation and feedback.

    Student-only fields (`enrolled_at`, the interval fields) stay None on
    teachers. Interval fields are None when their source timestamp is
    absent, never a stand-in zero.
    """

    model_config = ConfigDict(frozen=True)

    username: str = ""
    first_name: str = ""
    last_name: str = ""
    is_teacher: bool = False
    attended: bool = False
    cancelled: bool = False
    cancelled_by: str = ""
    cancelled_at: str = ""
    cancelled_interval_hours: Optional[float] = None
    tardiness: int = Field(
        0,
        description="Seconds between scheduled and actual join, clamped to [-3600, scheduled duration].",
    )
    enrolled_at: str = ""
    enrolment_interval_hours: Optional[float] = None
    rating: str = ""
    feedback: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class Session(BaseModel):
    """
    One scheduled lesson with its teacher, its students and the facts of
    its cancellation, if any.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    scheduled_start: str = ""
    scheduled_duration: int = Field(0, description="Seconds from scheduled start to end.")
    actual_duration_minutes: Optional[int] = None
    company: str = ""
    description: str = ""
    subject: str = ""
    level: str = ""
    teacher_summary: str = ""
    course_id: str = ""
    seat_capacity: Optional[int] = None
    cancelled_by_raw: str = ""
    cancelled_at: str = ""
    cancelled_by_student: bool = False
    cancelled_by_teacher: bool = False
    cancelled_by_admin: bool = False
    cancelled_interval_hours: Optional[float] = None
    teacher: Optional[Participant] = None
    students: tuple[Participant, ...] = ()

    @property
    def class_type(self) -> ClassType:
        return ClassType.PRIVATE if self.seat_capacity == 1 else ClassType.GROUP

    @property
    def is_private(self) -> bool:
        return self.class_type is ClassType.PRIVATE

    @property
    def is_cancelled(self) -> bool:
        return bool(self.cancelled_by_raw)

    @property
    def is_flagged_cancelled(self) -> bool:
        return self.cancelled_by_student or self.cancelled_by_teacher or self.cancelled_by_admin

    @property
    def cancellation_actor(self) -> Optional[CancellationActor]:
        if self.cancelled_by_teacher:
            return CancellationActor.TEACHER
        if self.cancelled_by_student:
            return CancellationActor.STUDENT
        if self.cancelled_by_admin:
            return CancellationActor.ADMIN
        return None

    @property
    def teacher_username(self) -> str:
        return self.teacher.username if self.teacher is not None else ""

    @property
    def teacher_attended(self) -> bool:
        return self.teacher is not None and self.teacher.attended

    @property
    def duration_minutes(self) -> int:
        return round_half_up(self.scheduled_duration / 60)

    @property
    def start_datetime(self) -> Optional[datetime]:
        return parse_timestamp(self.scheduled_start)

    @property
    def all_students_absent(self) -> bool:
        """True when there is at least one student and none attended."""
        return bool(self.students) and all(not s.attended for s in self.students)

    @property
    def course_key(self) -> str:
        return self.course_id or NO_COURSE_ID


class SessionSnapshot(BaseModel):
    """
    The normalized, read-only model of one uploaded dataset.

    `sessions` keeps first-seen order of session ids; every report reads
    it without mutation, and a new upload builds a new snapshot.
    """

    model_config = ConfigDict(frozen=True)

    sessions: dict[str, Session] = Field(default_factory=dict)

    def ordered(self) -> list[Session]:
        return list(self.sessions.values())

    def with_durations(self, durations: Iterable[int]) -> "SessionSnapshot":
        """
        New snapshot restricted to sessions whose rounded duration (minutes)
        is one of `durations`.
        """
        wanted = set(durations)
        return SessionSnapshot(
            sessions={
                session_id: session
                for session_id, session in self.sessions.items()
                if session.duration_minutes in wanted
            }
        )

    def chronological(self, sessions: Iterable[Session] | None = None) -> list[Session]:
        """
        Sessions sorted by scheduled start; unparseable starts go last and
        ties keep first-seen order.
        """
        items = self.ordered() if sessions is None else list(sessions)
        return sorted(
            items,
            key=lambda s: (s.start_datetime is None, s.start_datetime or datetime.min),
        )
