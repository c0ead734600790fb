# lesson_reports/services/teacher_performance.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List

from lesson_reports.schemas.report import Cell, ReportTable, TeacherPerformanceReport
from lesson_reports.schemas.session import ClassType, Session, SessionSnapshot
from lesson_reports.services.time_utils import parse_float_prefix, round2

logger = logging.getLogger("lesson_reports.teacher_performance")

PRIVATE_HEADER = [
    "teacher",
    "total classes booked",
    "cancelled by teacher",
    "cancelled by admin",
    "cancelled by student",
    "total remaining classes",
    "teacher no shows",
    "student no shows",
    "average teacher tardiness",
    "average student tardiness",
    "average rating",
    "feedback rate",
]

GROUP_HEADER = [
    "teacher",
    "total classes booked",
    "cancelled by teacher",
    "cancelled by admin",
    "cancelled by student",
    "total remaining classes",
    "teacher no shows",
    "student no shows (classes)",
    "student no shows (total)",
    "average teacher tardiness",
    "average student tardiness",
    "average rating",
    "feedback rate",
]

FEEDBACK_HEADER = ["teacher", "student", "class date", "feedback", "rating"]


@dataclass
class TeacherStats:
    total_booked: int = 0
    cancelled_by_teacher: int = 0
    cancelled_by_admin: int = 0
    cancelled_by_student: int = 0
    total_remaining: int = 0
    teacher_no_shows: int = 0
    student_no_show_sessions: int = 0
    student_no_show_total: int = 0
    teacher_tardiness_sum: float = 0.0
    teacher_tardiness_count: int = 0
    student_tardiness_sum: float = 0.0
    student_tardiness_count: int = 0
    rating_sum: float = 0.0
    rating_count: int = 0
    feedback_count: int = 0


def _average(total: float, count: int) -> float:
    return round2(total / count) if count else 0.0


def has_feedback(feedback: str, rating: str) -> bool:
    return bool(feedback.strip()) or parse_float_prefix(rating) is not None


def _accumulate(session: Session, class_type: ClassType, s: TeacherStats) -> None:
    s.total_booked += 1

    if session.cancelled_by_teacher:
        s.cancelled_by_teacher += 1
    elif session.cancelled_by_student:
        s.cancelled_by_student += 1
    elif session.cancelled_by_admin:
        s.cancelled_by_admin += 1

    if not session.is_cancelled:
        s.total_remaining += 1
        if not session.teacher_attended:
            s.teacher_no_shows += 1
        if class_type is ClassType.PRIVATE:
            if session.teacher_attended and session.all_students_absent:
                s.student_no_show_sessions += 1
        elif any(not st.attended and not st.cancelled for st in session.students):
            s.student_no_show_sessions += 1

    if class_type is ClassType.GROUP:
        s.student_no_show_total += sum(
            1 for st in session.students if not st.attended and not st.cancelled
        )

    s.teacher_tardiness_sum += session.teacher.tardiness / 60
    s.teacher_tardiness_count += 1

    for student in session.students:
        s.student_tardiness_sum += student.tardiness / 60
        s.student_tardiness_count += 1
        rating = parse_float_prefix(student.rating)
        if rating is not None:
            s.rating_sum += rating
            s.rating_count += 1
        if has_feedback(student.feedback, student.rating):
            s.feedback_count += 1


def compute_teacher_stats(
    snapshot: SessionSnapshot,
    class_type: ClassType,
) -> Dict[str, TeacherStats]:
    """
    Per-teacher statistics over the sessions of one class type, keyed by
    teacher username in first-seen order. Sessions without a teacher are
    ignored.
    """
    stats: Dict[str, TeacherStats] = {}
    for session in snapshot.ordered():
        if session.class_type is not class_type or not session.teacher_username:
            continue
        teacher_stats = stats.setdefault(session.teacher_username, TeacherStats())
        _accumulate(session, class_type, teacher_stats)
    return stats


def _row(name: str, s: TeacherStats, class_type: ClassType) -> List[Cell]:
    no_shows: List[Cell] = [s.student_no_show_sessions]
    if class_type is ClassType.GROUP:
        no_shows.append(s.student_no_show_total)

    feedback_rate = round2(s.feedback_count / s.total_booked * 100) if s.total_booked else 0.0
    return [
        name,
        s.total_booked,
        s.cancelled_by_teacher,
        s.cancelled_by_admin,
        s.cancelled_by_student,
        s.total_remaining,
        s.teacher_no_shows,
        *no_shows,
        _average(s.teacher_tardiness_sum, s.teacher_tardiness_count),
        _average(s.student_tardiness_sum, s.student_tardiness_count),
        _average(s.rating_sum, s.rating_count),
        feedback_rate,
    ]


def compute_teacher_table(snapshot: SessionSnapshot, class_type: ClassType) -> ReportTable:
    """
    One row per teacher for the given class type.

    Averages are in minutes (tardiness) or rating points and read 0.0 when
    nothing was measured. The feedback rate is the share of student
    participations carrying feedback text or a numeric rating, per booked
    session, as a percentage.
    """
    stats = compute_teacher_stats(snapshot, class_type)
    header = PRIVATE_HEADER if class_type is ClassType.PRIVATE else GROUP_HEADER
    rows = [_row(name, s, class_type) for name, s in stats.items()]
    logger.debug("Teacher %s table: %d teachers", class_type.value, len(rows))
    return ReportTable(header=list(header), rows=rows)


def compute_feedback_listing(snapshot: SessionSnapshot) -> ReportTable:
    """
    One row per (session, student) where the student left feedback text or
    a rating. Sessions without a teacher are left out.
    """
    rows: List[List[Cell]] = []
    for session in snapshot.ordered():
        if not session.teacher_username:
            continue
        for student in session.students:
            feedback = student.feedback.strip()
            rating = student.rating.strip()
            if feedback or rating:
                rows.append(
                    [session.teacher_username, student.username, session.scheduled_start, feedback, rating]
                )
    return ReportTable(header=list(FEEDBACK_HEADER), rows=rows)


def compute_teacher_performance(snapshot: SessionSnapshot) -> TeacherPerformanceReport:
    return TeacherPerformanceReport(
        private=compute_teacher_table(snapshot, ClassType.PRIVATE),
        group=compute_teacher_table(snapshot, ClassType.GROUP),
        feedback=compute_feedback_listing(snapshot),
    )
