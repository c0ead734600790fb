# lesson_reports/services/student_report.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List

from lesson_reports.schemas.report import Cell, ReportTable
from lesson_reports.schemas.report_settings import (
    ALL_COMPANIES,
    StudentFilterMode,
    StudentReportSettings,
)
from lesson_reports.schemas.session import Session, SessionSnapshot
from lesson_reports.services.time_utils import mean, mean_gap_hours, parse_float_prefix, round2

logger = logging.getLogger("lesson_reports.student_report")

HEADER = [
    "student",
    "company",
    "total group classes",
    "total private classes",
    "attendance rate",
    "no show rate",
    "cancellation rate",
    "late cancellation rate",
    "average cancellation interval (hrs)",
    "average tardiness (min)",
    "average rating",
    "average enrolment interval (hrs)",
    "average class interval (hrs)",
]


@dataclass
class StudentStats:
    username: str
    company: str
    total_group: int = 0
    total_private: int = 0
    attended: int = 0
    no_show: int = 0
    cancelled: int = 0
    cancelled_late: int = 0
    cancellation_intervals: List[float] = field(default_factory=list)
    enrolment_intervals: List[float] = field(default_factory=list)
    tardiness_minutes: List[float] = field(default_factory=list)
    ratings: List[float] = field(default_factory=list)
    session_starts: List[datetime] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.total_group + self.total_private


def session_included(session: Session, settings: StudentReportSettings) -> bool:
    if settings.filter_mode is not StudentFilterMode.COMPANY:
        return True
    if settings.company_id == ALL_COMPANIES:
        return True
    return session.company == settings.company_id


def compute_student_stats(
    snapshot: SessionSnapshot,
    settings: StudentReportSettings,
) -> Dict[str, StudentStats]:
    """
    Accumulate every included participation per student username.

    Filtering
    ---------
    - company: whole sessions of other companies are skipped
      (company_id 'ALL' keeps everything).
    - custom: participations of usernames outside the allowlist are
      skipped; their sessions still count for everyone else.
    - all: nothing is filtered.

    Each participation is exactly one of cancelled, attended or no-show,
    with cancellation taking precedence.
    """
    stats: Dict[str, StudentStats] = {}

    for session in snapshot.ordered():
        if not session_included(session, settings):
            continue
        start = session.start_datetime

        for student in session.students:
            username = student.username
            if not username:
                continue
            if (
                settings.filter_mode is StudentFilterMode.CUSTOM
                and username not in settings.custom_allowlist
            ):
                continue

            s = stats.get(username)
            if s is None:
                s = stats[username] = StudentStats(username=username, company=session.company)

            if session.is_private:
                s.total_private += 1
            else:
                s.total_group += 1

            if start is not None:
                s.session_starts.append(start)

            if student.cancelled:
                s.cancelled += 1
                interval = student.cancelled_interval_hours
                if interval is not None:
                    s.cancellation_intervals.append(interval)
                    if interval < settings.cancellation_window_hours:
                        s.cancelled_late += 1
            elif student.attended:
                s.attended += 1
            else:
                s.no_show += 1

            if student.enrolment_interval_hours is not None:
                s.enrolment_intervals.append(student.enrolment_interval_hours)

            s.tardiness_minutes.append(student.tardiness / 60)

            rating = parse_float_prefix(student.rating)
            if rating is not None:
                s.ratings.append(rating)

    return stats


def _rate(count: int, total: int) -> Cell:
    return round2(count / total) if total else ""


def _blank_or_round(value: float | None) -> Cell:
    return "" if value is None else round2(value)


def compute_student_report(
    snapshot: SessionSnapshot,
    settings: StudentReportSettings,
) -> ReportTable:
    """
    One row per included student with rates as fractions of that
    student's sessions (blank when the student has none) and means that
    are blank when nothing was measured.
    """
    rows: List[List[Cell]] = []
    for s in compute_student_stats(snapshot, settings).values():
        total = s.total
        rows.append(
            [
                s.username,
                s.company,
                s.total_group,
                s.total_private,
                _rate(s.attended, total),
                _rate(s.no_show, total),
                _rate(s.cancelled, total),
                _rate(s.cancelled_late, total),
                _blank_or_round(mean(s.cancellation_intervals)),
                _blank_or_round(mean(s.tardiness_minutes)),
                _blank_or_round(mean(s.ratings)),
                _blank_or_round(mean(s.enrolment_intervals)),
                _blank_or_round(mean_gap_hours(s.session_starts)),
            ]
        )

    logger.debug("Student report: %d students (mode=%s)", len(rows), settings.filter_mode.value)
    return ReportTable(header=list(HEADER), rows=rows)
