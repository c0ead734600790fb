from lesson_reports.schemas.raw_extract import RawClassRecord, RawParticipantRecord
from lesson_reports.schemas.report_settings import OverviewSettings
from lesson_reports.schemas.session import ClassType
from lesson_reports.services.overview import (
    AVERAGES_LABELS,
    compute_outcome_table,
    compute_overview,
    compute_private_averages,
    tally_outcomes,
)
from lesson_reports.services.session_normalizer import SessionNormalizer


def _class(session_id, start, minutes=60, seats="1", **extra):
    end_hour = 10 + minutes // 60
    end = start.replace("10:00:00", f"{end_hour:02d}:{minutes % 60:02d}:00")
    return RawClassRecord(session_id=session_id, start=start, end=end, seat_capacity=seats, **extra)


def _participant(username, session_id, teacher=False, attended=True, **extra):
    return RawParticipantRecord(
        session_id=session_id,
        username=username,
        is_teacher="true" if teacher else "false",
        attended="true" if attended else "false",
        **extra,
    )


def _snapshot():
    """
    Four private hours with one teacher:
    completed, cancelled late by alice, nobody showed, and bob missing
    a lesson the teacher held. Plus one cancelled 30 minute group class.
    """
    classes = [
        _class("p1", "2025-03-03 10:00:00"),
        _class(
            "p2",
            "2025-03-04 10:00:00",
            cancelled_by="alice",
            cancelled_at="2025-03-04 08:00:00",
        ),
        _class("p3", "2025-03-05 10:00:00"),
        _class("p4", "2025-03-06 10:00:00"),
        _class("g1", "2025-03-07 10:00:00", minutes=30, seats="5", cancelled_by="ops"),
    ]
    participants = [
        _participant("teach", "p1", teacher=True),
        _participant("alice", "p1"),
        _participant("teach", "p2", teacher=True, attended=False),
        _participant(
            "alice",
            "p2",
            attended=False,
            cancelled="true",
            cancelled_by="alice",
            cancelled_at="2025-03-04 08:00:00",
        ),
        _participant("teach", "p3", teacher=True, attended=False),
        _participant("bob", "p3", attended=False),
        _participant("teach", "p4", teacher=True),
        _participant("bob", "p4", attended=False),
        _participant("teach", "g1", teacher=True),
        _participant("carol", "g1", attended=False),
    ]
    return SessionNormalizer.build_snapshot(classes, participants)


def test_private_outcome_table():
    table = compute_outcome_table(_snapshot(), ClassType.PRIVATE, 24)

    assert table.header == ["Metric", "60 min", "Total"]
    assert table.rows == [
        ["Total classes", 4, 4],
        ["Completed classes", 2, 2],
        ["Cancelled classes", 1, 1],
        ["Cancelled by student", 1, 1],
        ["Cancelled by teacher", 0, 0],
        ["Cancelled by admin", 0, 0],
        ["Student cancelled < 24h", 1, 1],
        ["Teacher no show", 1, 1],
        ["Student no show", 1, 1],
        ["No show (both)", 1, 1],
    ]


def test_group_outcome_table_counts_absent_groups_even_when_cancelled():
    table = compute_outcome_table(_snapshot(), ClassType.GROUP, 24)

    assert table.header == ["Metric", "30 min", "Total"]
    records = {row[0]: row[1] for row in table.rows}
    assert records["Total classes"] == 1
    assert records["Completed classes"] == 0
    assert records["Cancelled by admin"] == 1
    assert records["Student no show"] == 1


def test_tallies_are_in_ascending_duration_order():
    classes = [
        _class("a", "2025-03-03 10:00:00", minutes=90),
        _class("b", "2025-03-03 10:00:00", minutes=30),
        _class("c", "2025-03-03 10:00:00", minutes=60),
    ]
    snapshot = SessionNormalizer.build_snapshot(classes, [])

    assert list(tally_outcomes(snapshot, ClassType.PRIVATE, 24)) == [30, 60, 90]


def test_private_averages_are_means_of_entity_figures():
    table = compute_private_averages(_snapshot())

    assert table.header == ["Metric", "Students", "Teachers"]
    assert table.column("Metric") == AVERAGES_LABELS
    rows = {row[0]: (row[1], row[2]) for row in table.rows}
    assert rows["Average Classes"] == (2.0, 4.0)
    assert rows["Average Attended Classes"] == (0.5, 2.0)
    assert rows["Average Cancellations (Total)"] == (0.5, 1.0)
    assert rows["Average Cancellations by Student"] == (0.5, 1.0)
    assert rows["Average Cancellations by Teacher"] == (0.0, 0.0)
    assert rows["Average Cancellation Interval (hours)"] == (2.0, 2.0)
    assert rows["Average Teacher No Shows"] == (0.5, 1.0)
    assert rows["Average Student No Shows"] == (1.0, 1.0)
    assert rows["Average Tardiness (min)"] == (0.0, 0.0)
    assert rows["Average Enrolment Interval (hours)"] == ("", "")
    assert rows["Average Class Interval (hours)"] == (24.0, 24.0)


def test_overview_on_empty_snapshot():
    report = compute_overview(SessionNormalizer.build_snapshot([], []), OverviewSettings())

    assert report.group.header == ["Metric", "Total"]
    assert report.group.rows[0] == ["Total classes", 0]
    assert all(row[1:] == ["", ""] for row in report.averages.rows)
