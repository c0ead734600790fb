# lesson_reports/services/dataset_catalog.py
from __future__ import annotations

from typing import Iterable, List

from lesson_reports.core.config import Settings
from lesson_reports.schemas.report import AllowlistCheck, DatasetCatalog
from lesson_reports.schemas.session import SessionSnapshot


def _distinct(values: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(v for v in values if v))


def student_usernames(snapshot: SessionSnapshot) -> List[str]:
    return _distinct(s.username for session in snapshot.ordered() for s in session.students)


def build_catalog(snapshot: SessionSnapshot, settings: Settings) -> DatasetCatalog:
    """
    Summarize what a dataset offers for report selection.

    - course_ids: first-seen order; sessions without a course id show up
      under the NO_ID key used by the course reports.
    - durations: rounded minutes, ascending; default_durations is the
      configured preselection restricted to durations actually present.
    """
    sessions = snapshot.ordered()
    durations = sorted({s.duration_minutes for s in sessions})
    present = set(durations)
    return DatasetCatalog(
        session_count=len(sessions),
        course_ids=_distinct(s.course_key for s in sessions),
        companies=_distinct(s.company for s in sessions),
        durations=durations,
        default_durations=[d for d in settings.DEFAULT_DURATION_FILTER if d in present],
        student_usernames=student_usernames(snapshot),
    )


def validate_allowlist(snapshot: SessionSnapshot, usernames: str | Iterable[str]) -> AllowlistCheck:
    """
    Split, trim and de-duplicate a custom student list and partition it
    into usernames present in the dataset and unknown ones.

    A plain string is treated as comma-separated input.
    """
    if isinstance(usernames, str):
        usernames = usernames.split(",")
    candidates = _distinct(u.strip() for u in usernames)
    known = set(student_usernames(snapshot))
    return AllowlistCheck(
        known=[u for u in candidates if u in known],
        unknown=[u for u in candidates if u not in known],
    )
