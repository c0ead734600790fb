# lesson_reports/services/overview.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from lesson_reports.schemas.report import Cell, OverviewReport, ReportTable
from lesson_reports.schemas.report_settings import OverviewSettings
from lesson_reports.schemas.session import ClassType, Participant, Session, SessionSnapshot
from lesson_reports.services.time_utils import mean, mean_gap_hours, round2

logger = logging.getLogger("lesson_reports.overview")


@dataclass
class OutcomeTally:
    total: int = 0
    completed: int = 0
    cancelled: int = 0
    cancelled_by_student: int = 0
    cancelled_by_teacher: int = 0
    cancelled_by_admin: int = 0
    student_cancelled_late: int = 0
    teacher_no_show: int = 0
    student_no_show: int = 0
    both_no_show: int = 0


def _tally_labels(window_hours: float) -> Dict[str, str]:
    return {
        "total": "Total classes",
        "completed": "Completed classes",
        "cancelled": "Cancelled classes",
        "cancelled_by_student": "Cancelled by student",
        "cancelled_by_teacher": "Cancelled by teacher",
        "cancelled_by_admin": "Cancelled by admin",
        "student_cancelled_late": f"Student cancelled < {window_hours:g}h",
        "teacher_no_show": "Teacher no show",
        "student_no_show": "Student no show",
        "both_no_show": "No show (both)",
    }


def _tally_session(session: Session, class_type: ClassType, window_hours: float, t: OutcomeTally) -> None:
    t.total += 1
    teacher_attended = session.teacher_attended
    cancelled = session.is_cancelled
    all_absent = session.all_students_absent

    if teacher_attended and not cancelled:
        t.completed += 1

    if cancelled:
        t.cancelled += 1
        t.cancelled_by_student += session.cancelled_by_student
        t.cancelled_by_teacher += session.cancelled_by_teacher
        t.cancelled_by_admin += session.cancelled_by_admin
        interval = session.cancelled_interval_hours
        if session.cancelled_by_student and interval is not None and interval < window_hours:
            t.student_cancelled_late += 1
    elif not teacher_attended:
        t.teacher_no_show += 1
        if all_absent:
            t.both_no_show += 1

    if class_type is ClassType.GROUP:
        if all_absent:
            t.student_no_show += 1
    elif teacher_attended and all_absent:
        t.student_no_show += 1


def tally_outcomes(
    snapshot: SessionSnapshot,
    class_type: ClassType,
    window_hours: float,
) -> Dict[int, OutcomeTally]:
    """
    Session outcome tallies of one class type per rounded duration, in
    ascending duration order.
    """
    tallies: Dict[int, OutcomeTally] = {}
    for session in snapshot.ordered():
        if session.class_type is not class_type:
            continue
        tally = tallies.setdefault(session.duration_minutes, OutcomeTally())
        _tally_session(session, class_type, window_hours, tally)
    return dict(sorted(tallies.items()))


def compute_outcome_table(
    snapshot: SessionSnapshot,
    class_type: ClassType,
    window_hours: float,
) -> ReportTable:
    """
    Metric rows x duration columns, plus a Total column summing each row.
    """
    tallies = tally_outcomes(snapshot, class_type, window_hours)
    header = ["Metric", *(f"{d} min" for d in tallies), "Total"]

    rows: List[List[Cell]] = []
    for key, label in _tally_labels(window_hours).items():
        values = [getattr(t, key) for t in tallies.values()]
        rows.append([label, *values, sum(values)])
    return ReportTable(header=header, rows=rows)


@dataclass
class EntityStats:
    total: int = 0
    attended: int = 0
    cancelled: int = 0
    cancelled_by_student: int = 0
    cancelled_by_teacher: int = 0
    cancelled_by_admin: int = 0
    teacher_no_show: int = 0
    student_no_show: int = 0
    cancellation_intervals: List[float] = field(default_factory=list)
    tardiness_minutes: List[float] = field(default_factory=list)
    enrolment_intervals: List[float] = field(default_factory=list)
    session_starts: List[datetime] = field(default_factory=list)


COUNT_METRICS = {
    "Average Classes": "total",
    "Average Attended Classes": "attended",
    "Average Cancellations (Total)": "cancelled",
    "Average Cancellations by Student": "cancelled_by_student",
    "Average Cancellations by Teacher": "cancelled_by_teacher",
    "Average Cancellations by Admin": "cancelled_by_admin",
}

AVERAGES_LABELS = [
    *COUNT_METRICS,
    "Average Cancellation Interval (hours)",
    "Average Teacher No Shows",
    "Average Student No Shows",
    "Average Tardiness (min)",
    "Average Enrolment Interval (hours)",
    "Average Class Interval (hours)",
]


def _add_teacher_session(t: EntityStats, session: Session) -> None:
    teacher = session.teacher
    t.total += 1
    if teacher.attended:
        t.attended += 1
    if session.is_cancelled:
        t.cancelled += 1
        t.cancelled_by_student += session.cancelled_by_student
        t.cancelled_by_teacher += session.cancelled_by_teacher
        t.cancelled_by_admin += session.cancelled_by_admin
        if session.cancelled_interval_hours is not None:
            t.cancellation_intervals.append(session.cancelled_interval_hours)
    else:
        if not teacher.attended:
            t.teacher_no_show += 1
        elif session.all_students_absent:
            t.student_no_show += 1
    t.tardiness_minutes.append(teacher.tardiness / 60)
    if session.start_datetime is not None:
        t.session_starts.append(session.start_datetime)


def _add_student_session(s: EntityStats, session: Session, student: Participant) -> None:
    s.total += 1
    if student.cancelled:
        s.cancelled += 1
        if student.cancelled_by == student.username:
            s.cancelled_by_student += 1
        elif session.teacher_username and student.cancelled_by == session.teacher_username:
            s.cancelled_by_teacher += 1
        elif student.cancelled_by:
            s.cancelled_by_admin += 1
        if student.cancelled_interval_hours is not None:
            s.cancellation_intervals.append(student.cancelled_interval_hours)
    elif student.attended:
        s.attended += 1
    else:
        s.student_no_show += 1
    if not session.is_cancelled and not session.teacher_attended:
        s.teacher_no_show += 1
    if student.enrolment_interval_hours is not None:
        s.enrolment_intervals.append(student.enrolment_interval_hours)
    s.tardiness_minutes.append(student.tardiness / 60)
    if session.start_datetime is not None:
        s.session_starts.append(session.start_datetime)


def accumulate_private_entities(snapshot: SessionSnapshot) -> tuple[Dict[str, EntityStats], Dict[str, EntityStats]]:
    """
    Per-student and per-teacher accumulators over private sessions only,
    keyed by username in first-seen order.
    """
    students: Dict[str, EntityStats] = {}
    teachers: Dict[str, EntityStats] = {}
    for session in snapshot.ordered():
        if not session.is_private:
            continue
        if session.teacher_username:
            _add_teacher_session(teachers.setdefault(session.teacher_username, EntityStats()), session)
        for student in session.students:
            if student.username:
                _add_student_session(students.setdefault(student.username, EntityStats()), session, student)
    return students, teachers


def _mean_of(values: List[Optional[float]]) -> Cell:
    """Mean over the entities that have a value; blank when none do."""
    present = [v for v in values if v is not None]
    return "" if not present else round2(sum(present) / len(present))


def _entity_means(entities: Dict[str, EntityStats]) -> Dict[str, Cell]:
    values = list(entities.values())
    result: Dict[str, Cell] = {
        label: _mean_of([float(getattr(e, attr)) for e in values])
        for label, attr in COUNT_METRICS.items()
    }
    result["Average Cancellation Interval (hours)"] = _mean_of([mean(e.cancellation_intervals) for e in values])
    result["Average Teacher No Shows"] = _mean_of([float(e.teacher_no_show) for e in values])
    result["Average Student No Shows"] = _mean_of([float(e.student_no_show) for e in values])
    result["Average Tardiness (min)"] = _mean_of([mean(e.tardiness_minutes) for e in values])
    result["Average Enrolment Interval (hours)"] = _mean_of([mean(e.enrolment_intervals) for e in values])
    result["Average Class Interval (hours)"] = _mean_of([mean_gap_hours(e.session_starts) for e in values])
    return result


def compute_private_averages(snapshot: SessionSnapshot) -> ReportTable:
    """
    Students vs teachers over private sessions. Each cell is the mean
    across entities of that entity's own figure (a mean of means, not a
    pooled mean).
    """
    students, teachers = accumulate_private_entities(snapshot)
    student_means = _entity_means(students)
    teacher_means = _entity_means(teachers)
    rows: List[List[Cell]] = [
        [label, student_means[label], teacher_means[label]] for label in AVERAGES_LABELS
    ]
    logger.debug("Private averages: %d students, %d teachers", len(students), len(teachers))
    return ReportTable(header=["Metric", "Students", "Teachers"], rows=rows)


def compute_overview(snapshot: SessionSnapshot, settings: OverviewSettings) -> OverviewReport:
    window = settings.cancellation_window_hours
    return OverviewReport(
        group=compute_outcome_table(snapshot, ClassType.GROUP, window),
        private=compute_outcome_table(snapshot, ClassType.PRIVATE, window),
        averages=compute_private_averages(snapshot),
    )
