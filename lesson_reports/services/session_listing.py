# lesson_reports/services/session_listing.py
from __future__ import annotations

from typing import List

from lesson_reports.schemas.report import Cell, ReportTable, SessionListReport
from lesson_reports.schemas.session import Participant, Session, SessionSnapshot
from lesson_reports.services.time_utils import parse_float_prefix, round2

SESSION_COLUMNS = [
    "Date",
    "Time",
    "Scheduled Duration",
    "Actual Duration",
    "Status",
    "Company",
    "Subject",
    "Level",
    "Description",
    "Class Slug",
]

TEACHER_COLUMNS = [
    "Teacher Username",
    "Teacher Name",
    "Teacher Attended",
    "Teacher Tardiness",
    "Teacher Summary",
]

PRIVATE_HEADER = [
    *SESSION_COLUMNS,
    *TEACHER_COLUMNS,
    "Student Username",
    "Student Name",
    "Student Attended",
    "Student Tardiness",
    "Class Feedback",
    "Class Rating",
]

GROUP_HEADER = [
    *SESSION_COLUMNS,
    *TEACHER_COLUMNS,
    "Seats",
    "Students Enrolled",
    "Students Attended",
    "Student Usernames",
    "Class Feedback",
    "Class Rating",
]

BY_STUDENT_HEADER = [
    *SESSION_COLUMNS,
    "Group Class",
    "Student Username",
    "Student Name",
    "Student Attended",
    "Student Tardiness",
    "Class Feedback",
    "Class Rating",
    *TEACHER_COLUMNS,
]


def _session_cells(session: Session) -> List[Cell]:
    start = session.start_datetime
    actual = session.actual_duration_minutes
    return [
        start.date().isoformat() if start else "",
        start.strftime("%H:%M") if start else "",
        round2(session.scheduled_duration / 60),
        actual if actual is not None else "",
        "cancelled" if session.is_flagged_cancelled else "completed",
        session.company,
        session.subject,
        session.level,
        session.description,
        session.id,
    ]


def _teacher_cells(session: Session) -> List[Cell]:
    teacher = session.teacher
    if teacher is None:
        return ["", "", False, "", session.teacher_summary]
    return [
        teacher.username,
        teacher.full_name.strip(),
        teacher.attended,
        round2(teacher.tardiness / 60),
        session.teacher_summary,
    ]


def _student_cells(student: Participant) -> List[Cell]:
    return [
        student.username,
        student.full_name.strip(),
        student.attended,
        round2(student.tardiness / 60),
        student.feedback,
        student.rating,
    ]


def compute_private_listing(snapshot: SessionSnapshot) -> ReportTable:
    """One row per (private session, student)."""
    rows: List[List[Cell]] = []
    for session in snapshot.ordered():
        if not session.is_private:
            continue
        for student in session.students:
            rows.append([*_session_cells(session), *_teacher_cells(session), *_student_cells(student)])
    return ReportTable(header=list(PRIVATE_HEADER), rows=rows)


def compute_group_listing(snapshot: SessionSnapshot) -> ReportTable:
    """
    One row per group session with enrolment counts, the joined student
    usernames and feedback, and the mean numeric rating (blank if none).
    """
    rows: List[List[Cell]] = []
    for session in snapshot.ordered():
        if session.is_private:
            continue
        students = session.students
        ratings = [r for r in (parse_float_prefix(s.rating) for s in students) if r is not None]
        feedback = [s.feedback.strip() for s in students if s.feedback.strip()]
        rows.append(
            [
                *_session_cells(session),
                *_teacher_cells(session),
                session.seat_capacity if session.seat_capacity is not None else "",
                len(students),
                sum(1 for s in students if s.attended),
                "; ".join(s.username for s in students),
                " | ".join(feedback),
                round2(sum(ratings) / len(ratings)) if ratings else "",
            ]
        )
    return ReportTable(header=list(GROUP_HEADER), rows=rows)


def compute_by_student_listing(snapshot: SessionSnapshot) -> ReportTable:
    """One row per (session, student) across both class types."""
    rows: List[List[Cell]] = []
    for session in snapshot.ordered():
        for student in session.students:
            rows.append(
                [
                    *_session_cells(session),
                    not session.is_private,
                    *_student_cells(student),
                    *_teacher_cells(session),
                ]
            )
    return ReportTable(header=list(BY_STUDENT_HEADER), rows=rows)


def compute_session_listing(snapshot: SessionSnapshot) -> SessionListReport:
    return SessionListReport(
        private=compute_private_listing(snapshot),
        group=compute_group_listing(snapshot),
        by_student=compute_by_student_listing(snapshot),
    )
