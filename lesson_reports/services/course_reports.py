# lesson_reports/services/course_reports.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List

from lesson_reports.schemas.report import Cell, CourseDetailReport, ReportTable
from lesson_reports.schemas.session import Participant, Session, SessionSnapshot
from lesson_reports.services.time_utils import format_hh_mm, round2, round_half_up

logger = logging.getLogger("lesson_reports.course_reports")

OVERVIEW_HEADER = [
    "course ID",
    "teacher",
    "start date",
    "end date",
    "level",
    "subject",
    "course description",
    "total classes",
    "seats",
    "students enrolled (unique)",
    "attendance rate (%)",
]

INFO_HEADER = [
    "course ID",
    "teacher(s)",
    "start date",
    "end date",
    "level",
    "subject",
    "course description",
    "seats",
    "students enrolled",
    "total classes",
    "attendance rate (%)",
]

STUDENT_SUMMARY_HEADER = ["username", "enrolled", "attended", "no_show", "cancelled", "attendance_rate"]


@dataclass
class CourseSummary:
    course_id: str
    sessions: List[Session]
    teachers: List[str]
    students: List[str]
    participations: int
    attended: int

    @property
    def first(self) -> Session:
        return self.sessions[0]

    @property
    def attendance_rate(self) -> Cell:
        if not self.participations:
            return ""
        return round_half_up(self.attended / self.participations * 100)

    @property
    def seats(self) -> Cell:
        return self.first.seat_capacity or ""


def _distinct(values: List[str]) -> List[str]:
    return list(dict.fromkeys(v for v in values if v))


def group_by_course(snapshot: SessionSnapshot) -> Dict[str, List[Session]]:
    """
    Sessions per course id in first-seen order; sessions without a course
    id share the NO_ID group.
    """
    courses: Dict[str, List[Session]] = {}
    for session in snapshot.ordered():
        courses.setdefault(session.course_key, []).append(session)
    return courses


def summarize_course(snapshot: SessionSnapshot, course_id: str, sessions: List[Session]) -> CourseSummary:
    ordered = snapshot.chronological(sessions)
    participations = [student for session in ordered for student in session.students]
    return CourseSummary(
        course_id=course_id,
        sessions=ordered,
        teachers=_distinct([s.teacher_username for s in ordered]),
        students=_distinct([p.username for p in participations]),
        participations=len(participations),
        attended=sum(1 for p in participations if p.attended),
    )


def _course_sessions(snapshot: SessionSnapshot, course_id: str) -> List[Session]:
    sessions = group_by_course(snapshot).get(course_id)
    if not sessions:
        raise LookupError(f"Course with id={course_id} not found")
    return sessions


def compute_course_overview(snapshot: SessionSnapshot) -> ReportTable:
    """
    One row per course: teachers, first and last session start, metadata
    of the earliest session, session count, distinct students and the
    attendance rate over all student participations (blank if none).
    """
    rows: List[List[Cell]] = []
    for course_id, sessions in group_by_course(snapshot).items():
        summary = summarize_course(snapshot, course_id, sessions)
        first = summary.first
        rows.append(
            [
                course_id,
                " - ".join(summary.teachers),
                first.scheduled_start,
                summary.sessions[-1].scheduled_start,
                first.level,
                first.subject,
                first.description,
                len(summary.sessions),
                summary.seats,
                len(summary.students),
                summary.attendance_rate,
            ]
        )
    logger.debug("Course overview: %d courses", len(rows))
    return ReportTable(header=list(OVERVIEW_HEADER), rows=rows)


def _student_status(student: Participant) -> str:
    if student.cancelled:
        return "cancelled"
    if student.attended:
        return "attended"
    return "no show"


def _session_cells(session: Session, students: List[str]) -> List[Cell]:
    by_username: Dict[str, Participant] = {}
    for student in session.students:
        by_username.setdefault(student.username, student)
    return [
        _student_status(by_username[username]) if username in by_username else ""
        for username in students
    ]


def compute_course_detail(snapshot: SessionSnapshot, course_id: str) -> CourseDetailReport:
    """
    Detail of one course: a one-row summary, the chronological session x
    student matrix, and the per-student summary.

    Raises LookupError if no session belongs to `course_id`.
    """
    summary = summarize_course(snapshot, course_id, _course_sessions(snapshot, course_id))
    first = summary.first

    info = ReportTable(
        header=list(INFO_HEADER),
        rows=[
            [
                course_id,
                " - ".join(summary.teachers),
                first.scheduled_start,
                summary.sessions[-1].scheduled_start,
                first.level,
                first.subject,
                first.description,
                summary.seats,
                len(summary.students),
                len(summary.sessions),
                summary.attendance_rate,
            ]
        ],
    )

    matrix_rows: List[List[Cell]] = []
    for number, session in enumerate(summary.sessions, start=1):
        start = session.start_datetime
        matrix_rows.append(
            [
                f"Class {number}",
                start.date().isoformat() if start else "",
                start.strftime("%H:%M") if start else "",
                format_hh_mm(session.scheduled_duration),
                "cancelled" if session.is_cancelled else "completed",
                *_session_cells(session, summary.students),
            ]
        )
    matrix = ReportTable(
        header=["class number", "date", "time", "duration", "status", *summary.students],
        rows=matrix_rows,
    )

    return CourseDetailReport(
        info=info,
        sessions=matrix,
        students=compute_course_student_summary(snapshot, course_id),
    )


def compute_course_student_summary(snapshot: SessionSnapshot, course_id: str) -> ReportTable:
    """
    Per-student counts within one course. Attendance takes precedence over
    cancellation, so each participation lands in exactly one of attended,
    cancelled or no-show. The rate is attended / enrolled x 100.

    Raises LookupError if no session belongs to `course_id`.
    """
    counts: Dict[str, Dict[str, int]] = {}
    for session in _course_sessions(snapshot, course_id):
        for student in session.students:
            if not student.username:
                continue
            c = counts.setdefault(
                student.username,
                {"enrolled": 0, "attended": 0, "no_show": 0, "cancelled": 0},
            )
            c["enrolled"] += 1
            if student.attended:
                c["attended"] += 1
            elif student.cancelled:
                c["cancelled"] += 1
            else:
                c["no_show"] += 1

    rows: List[List[Cell]] = [
        [
            username,
            c["enrolled"],
            c["attended"],
            c["no_show"],
            c["cancelled"],
            round2(c["attended"] / c["enrolled"] * 100),
        ]
        for username, c in counts.items()
    ]
    return ReportTable(header=list(STUDENT_SUMMARY_HEADER), rows=rows)
