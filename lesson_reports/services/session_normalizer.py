# lesson_reports/services/session_normalizer.py
from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from lesson_reports.schemas.raw_extract import RawClassRecord, RawParticipantRecord
from lesson_reports.schemas.session import Participant, Session, SessionSnapshot
from lesson_reports.services.time_utils import (
    clamp_tardiness,
    interval_hours,
    parse_bool,
    parse_int_prefix,
    timestamp_diff,
)

logger = logging.getLogger("lesson_reports.normalizer")


class SessionNormalizer:
    """
    Fuses the classes extract and the participants extract into a single
    normalized structure (SessionSnapshot).

    This keeps every report engine simple and isolated from the raw
    extract shapes.
    """

    @staticmethod
    def build_snapshot(
        classes: Iterable[RawClassRecord],
        participants: Iterable[RawParticipantRecord],
    ) -> SessionSnapshot:
        """
        Build a SessionSnapshot from both extracts.

        Rules
        -----
        - Class rows without a session id are skipped.
        - A later class row with an already seen id replaces the earlier
          session but keeps its position.
        - The first participant row marked as teacher becomes the teacher;
          further marked rows are dropped. All other rows are students, in
          extract order.
        - Tardiness is clamped to [-3600, scheduled duration].
        - A session cancellation is attributed to the teacher when the
          actor is the teacher's username, else to a student when it is a
          student's username, else to admin.
        """
        rows_by_session: Dict[str, List[RawParticipantRecord]] = defaultdict(list)
        for row in participants:
            rows_by_session[row.session_id].append(row)

        sessions: Dict[str, Session] = {}
        skipped = 0

        for record in classes:
            if not record.session_id:
                skipped += 1
                continue
            if record.session_id in sessions:
                logger.warning(
                    "Duplicate session id %s; later class row replaces the earlier one",
                    record.session_id,
                )
            sessions[record.session_id] = SessionNormalizer.build_session(
                record,
                rows_by_session.get(record.session_id, []),
            )

        logger.info(
            "Normalized %d sessions (%d class rows skipped without id, %d participant rows)",
            len(sessions),
            skipped,
            sum(len(rows) for rows in rows_by_session.values()),
        )
        return SessionSnapshot(sessions=sessions)

    @staticmethod
    def build_session(
        record: RawClassRecord,
        participant_rows: List[RawParticipantRecord],
    ) -> Session:
        scheduled_start = record.start
        scheduled_duration = timestamp_diff(record.start, record.end)

        teacher: Optional[Participant] = None
        students: List[Participant] = []

        for row in participant_rows:
            if not parse_bool(row.is_teacher):
                students.append(
                    SessionNormalizer._participant(row, scheduled_start, scheduled_duration)
                )
            elif teacher is None:
                teacher = SessionNormalizer._participant(
                    row, scheduled_start, scheduled_duration, is_teacher=True
                )
            else:
                logger.warning(
                    "Session %s has more than one teacher row; keeping %s, dropping %s",
                    record.session_id,
                    teacher.username,
                    row.username,
                )

        actor = record.cancelled_by
        by_teacher = by_student = by_admin = False
        cancelled_interval: Optional[float] = None

        if actor:
            by_teacher = teacher is not None and actor == teacher.username
            by_student = not by_teacher and any(s.username == actor for s in students)
            by_admin = not by_teacher and not by_student
            cancelled_interval = interval_hours(record.cancelled_at, scheduled_start)

        actual_duration = parse_int_prefix(record.actual_duration)

        return Session(
            id=record.session_id,
            scheduled_start=scheduled_start,
            scheduled_duration=scheduled_duration,
            actual_duration_minutes=actual_duration,
            company=record.company,
            description=record.description,
            subject=record.subject,
            level=record.level,
            teacher_summary=record.teacher_summary,
            course_id=record.course_id,
            seat_capacity=parse_int_prefix(record.seat_capacity),
            cancelled_by_raw=actor,
            cancelled_at=record.cancelled_at,
            cancelled_by_student=by_student,
            cancelled_by_teacher=by_teacher,
            cancelled_by_admin=by_admin,
            cancelled_interval_hours=cancelled_interval,
            teacher=teacher,
            students=tuple(students),
        )

    @staticmethod
    def _participant(
        row: RawParticipantRecord,
        scheduled_start: str,
        scheduled_duration: int,
        is_teacher: bool = False,
    ) -> Participant:
        tardiness = clamp_tardiness(
            timestamp_diff(row.scheduled_join, row.actual_join),
            scheduled_duration,
        )
        if is_teacher:
            return Participant(
                username=row.username,
                first_name=row.first_name,
                last_name=row.last_name,
                is_teacher=True,
                attended=parse_bool(row.attended),
                cancelled=parse_bool(row.cancelled),
                cancelled_by=row.cancelled_by,
                cancelled_at=row.cancelled_at,
                tardiness=tardiness,
                rating=row.rating,
                feedback=row.feedback,
            )

        return Participant(
            username=row.username,
            first_name=row.first_name,
            last_name=row.last_name,
            attended=parse_bool(row.attended),
            cancelled=parse_bool(row.cancelled),
            cancelled_by=row.cancelled_by,
            cancelled_at=row.cancelled_at,
            cancelled_interval_hours=interval_hours(row.cancelled_at, scheduled_start),
            tardiness=tardiness,
            enrolled_at=row.enrolled_at,
            enrolment_interval_hours=interval_hours(row.enrolled_at, scheduled_start),
            rating=row.rating,
            feedback=row.feedback,
        )
