# lesson_reports/services/compensation.py
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Tuple

from lesson_reports.schemas.report import Cell, ReportTable
from lesson_reports.schemas.report_settings import (
    ClassTypeFilter,
    CompensationSettings,
    OutputMode,
)
from lesson_reports.schemas.session import ClassType, Session, SessionSnapshot
from lesson_reports.services.time_utils import round2, round_half_up

logger = logging.getLogger("lesson_reports.compensation")


@dataclass
class PayBucket:
    attended: int = 0
    no_show: int = 0
    cancelled: int = 0
    late: int = 0
    student_no_show: int = 0


def _column_types(class_type_filter: ClassTypeFilter) -> List[ClassType]:
    if class_type_filter is ClassTypeFilter.BOTH:
        return [ClassType.PRIVATE, ClassType.GROUP]
    return [ClassType(class_type_filter.value)]


def _has_last_minute_cancellation(
    session: Session,
    teacher_username: str,
    window_hours: float,
) -> bool:
    """
    First matching student in extract order wins; a session is credited
    at most once however many students cancelled late. A cancellation
    without a timestamp has no interval and is never last-minute.
    """
    for student in session.students:
        if not student.cancelled or student.cancelled_by == teacher_username:
            continue
        interval = student.cancelled_interval_hours
        if interval is not None and interval < window_hours:
            return True
    return False


def net_count(bucket: PayBucket, class_type: ClassType, settings: CompensationSettings) -> float:
    """
    Pay-adjusted session count of one bucket:

        attended - late (if penalised)
                 + last-minute cancellations (private, if paid)
                 - student no-shows x (1 - paid share)
    """
    base = bucket.attended
    if settings.penalise_tardiness:
        base -= bucket.late
    if class_type is ClassType.PRIVATE and settings.pay_last_minute_cancellation:
        base += bucket.cancelled

    paid_share = settings.student_no_show_rate_percent / 100 if settings.pay_student_no_show else 0
    return round2(base - bucket.student_no_show * (1 - paid_share))


def accumulate_buckets(
    snapshot: SessionSnapshot,
    settings: CompensationSettings,
) -> Tuple[List[int], Dict[str, Dict[Tuple[int, ClassType], PayBucket]]]:
    """
    Tally teacher attendance per (teacher, rounded duration, class type).

    Returns the ascending durations present in the snapshot (every session
    counts, even ones without a teacher) and the buckets per teacher in
    first-seen order.
    """
    wanted_types = set(_column_types(settings.class_type_filter))
    durations = set()
    buckets: Dict[str, Dict[Tuple[int, ClassType], PayBucket]] = defaultdict(
        lambda: defaultdict(PayBucket)
    )

    for session in snapshot.ordered():
        duration = session.duration_minutes
        durations.add(duration)

        teacher = session.teacher
        if teacher is None or not teacher.username:
            continue
        class_type = session.class_type
        if class_type not in wanted_types:
            continue

        bucket = buckets[teacher.username][(duration, class_type)]

        if (
            class_type is ClassType.PRIVATE
            and settings.pay_last_minute_cancellation
            and _has_last_minute_cancellation(
                session, teacher.username, settings.cancellation_window_hours
            )
        ):
            bucket.cancelled += 1

        if teacher.attended:
            bucket.attended += 1
            tardiness_minutes = round_half_up(teacher.tardiness / 60)
            if settings.penalise_tardiness and tardiness_minutes > settings.tardiness_limit_minutes:
                bucket.late += 1
        else:
            bucket.no_show += 1

        if (
            teacher.attended
            and not teacher.cancelled
            and not session.is_cancelled
            and session.all_students_absent
        ):
            bucket.student_no_show += 1

    return sorted(durations), buckets


def _header(
    durations: List[int],
    types: List[ClassType],
    mode: OutputMode,
    window_hours: float,
) -> List[str]:
    header = ["teacher"]
    window_label = f"{window_hours:g}"
    for class_type in types:
        name = class_type.value
        for d in durations:
            if mode is OutputMode.SIMPLE:
                header.append(f"{d}min {name} classes count")
                continue
            header.append(f"{d}min {name} classes attended")
            if class_type is ClassType.PRIVATE:
                header.append(f"{d}min {name} classes cancelled < {window_label}h")
            header.append(f"{d}min {name} classes no show")
            header.append(f"{d}min {name} student no show")
            header.append(f"{d}min {name} classes late")
            header.append(f"{d}min {name} classes count")
        header.append(f"Total {name} classes count")
        header.append(f"Total {name} minutes")
    return header


def compute_compensation_report(
    snapshot: SessionSnapshot,
    settings: CompensationSettings,
    mode: OutputMode = OutputMode.DETAILED,
) -> ReportTable:
    """
    Per-teacher pay report bucketed by session duration and class type.

    The caller pre-filters the snapshot to the durations it wants paid
    (see SessionSnapshot.with_durations). Only the class types allowed by
    `class_type_filter` get columns at all.

    Columns per duration: attended, last-minute cancellations (private
    only), teacher no-shows, student no-shows, late, and the net count; in
    simple mode only the net count. Each type ends with the total net
    count and the total paid minutes.
    """
    durations, buckets = accumulate_buckets(snapshot, settings)
    types = _column_types(settings.class_type_filter)

    rows: List[List[Cell]] = []
    for teacher, teacher_buckets in buckets.items():
        row: List[Cell] = [teacher]
        for class_type in types:
            total_count = 0.0
            total_minutes = 0.0
            for d in durations:
                bucket = teacher_buckets.get((d, class_type)) or PayBucket()
                count = net_count(bucket, class_type, settings)
                if mode is OutputMode.SIMPLE:
                    row.append(count)
                else:
                    row.append(bucket.attended)
                    if class_type is ClassType.PRIVATE:
                        row.append(bucket.cancelled)
                    row.append(bucket.no_show)
                    row.append(bucket.student_no_show)
                    row.append(bucket.late)
                    row.append(count)
                total_count += count
                total_minutes += count * d
            row.append(round2(total_count))
            row.append(round2(total_minutes))
        rows.append(row)

    logger.debug(
        "Compensation report: %d teachers over %d durations", len(rows), len(durations)
    )
    return ReportTable(
        header=_header(durations, types, mode, settings.cancellation_window_hours),
        rows=rows,
    )
