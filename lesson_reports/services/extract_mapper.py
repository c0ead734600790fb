# lesson_reports/services/extract_mapper.py
from __future__ import annotations

import logging
from typing import Mapping, Sequence

from lesson_reports.schemas.raw_extract import RawClassRecord, RawParticipantRecord

logger = logging.getLogger("lesson_reports.extract_mapper")

# Column positions in the classes extract.
CLASS_COLUMNS: Mapping[str, int] = {
    "start": 0,
    "end": 1,
    "actual_duration": 4,
    "company": 5,
    "session_id": 6,
    "description": 9,
    "seat_capacity": 10,
    "subject": 11,
    "level": 12,
    "teacher_summary": 14,
    "cancelled_by": 22,
    "cancelled_at": 23,
    "course_id": 29,
}

# Column positions in the participants extract.
PARTICIPANT_COLUMNS: Mapping[str, int] = {
    "session_id": 2,
    "scheduled_join": 3,
    "username": 4,
    "first_name": 5,
    "last_name": 6,
    "is_teacher": 9,
    "attended": 10,
    "actual_join": 11,
    "cancelled": 12,
    "cancelled_by": 13,
    "cancelled_at": 14,
    "rating": 15,
    "feedback": 16,
    "enrolled_at": 22,
}


class ExtractSchemaError(ValueError):
    """
    Raised when a positional row does not have the shape of its extract.
    The import is aborted; nothing is partially mapped.
    """

    def __init__(self, extract: str, row_number: int, message: str) -> None:
        super().__init__(f"{extract} extract, row {row_number}: {message}")
        self.extract = extract
        self.row_number = row_number


def _map_row(
    extract: str,
    row_number: int,
    row: Sequence[str],
    columns: Mapping[str, int],
) -> dict[str, str]:
    required = columns["session_id"]
    if len(row) <= required:
        raise ExtractSchemaError(
            extract,
            row_number,
            f"expected at least {required + 1} columns, got {len(row)}",
        )

    values: dict[str, str] = {}
    for field, index in columns.items():
        cell = row[index] if index < len(row) else ""
        if cell is None:
            cell = ""
        if not isinstance(cell, str):
            raise ExtractSchemaError(
                extract,
                row_number,
                f"column {index} ({field}) is not text",
            )
        values[field] = cell
    return values


def _data_rows(rows: Sequence[Sequence[str]]) -> list[tuple[int, Sequence[str]]]:
    # Row numbers count from 2: the header row has already been removed.
    return [(number, row) for number, row in enumerate(rows, start=2) if len(row) > 1]


def map_class_rows(rows: Sequence[Sequence[str]]) -> list[RawClassRecord]:
    """
    Map positional class rows (header removed) to named records.

    Rules
    -----
    - Rows with at most one cell are blank lines and are dropped.
    - Missing trailing columns read as empty text.
    - A row too short to hold the session id raises ExtractSchemaError.
    """
    records = [
        RawClassRecord(**_map_row("classes", number, row, CLASS_COLUMNS))
        for number, row in _data_rows(rows)
    ]
    logger.debug("Mapped %d class rows", len(records))
    return records


def map_participant_rows(rows: Sequence[Sequence[str]]) -> list[RawParticipantRecord]:
    """
    Map positional participant rows (header removed) to named records,
    with the same rules as `map_class_rows`.
    """
    records = [
        RawParticipantRecord(**_map_row("participants", number, row, PARTICIPANT_COLUMNS))
        for number, row in _data_rows(rows)
    ]
    logger.debug("Mapped %d participant rows", len(records))
    return records
