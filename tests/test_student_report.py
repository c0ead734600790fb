from lesson_reports.schemas.raw_extract import RawClassRecord, RawParticipantRecord
from lesson_reports.schemas.report_settings import StudentFilterMode, StudentReportSettings
from lesson_reports.services.session_normalizer import SessionNormalizer
from lesson_reports.services.student_report import HEADER, compute_student_report


def _class(session_id, start, seats="5", company="acme"):
    return RawClassRecord(
        session_id=session_id,
        start=start,
        end=start.replace("10:00", "11:00"),
        seat_capacity=seats,
        company=company,
    )


def _participant(username, session_id, attended=True, **extra):
    return RawParticipantRecord(
        session_id=session_id,
        username=username,
        is_teacher="false",
        attended="true" if attended else "false",
        **extra,
    )


def _snapshot():
    classes = [
        _class("s1", "2025-03-03 10:00:00", seats="1"),
        _class("s2", "2025-03-05 10:00:00"),
        _class("s3", "2025-03-07 10:00:00", company="beta"),
    ]
    participants = [
        _participant("alice", "s1", rating="4", enrolled_at="2025-03-01 10:00:00"),
        _participant(
            "alice",
            "s2",
            attended=False,
            cancelled="true",
            cancelled_by="alice",
            cancelled_at="2025-03-05 04:00:00",
        ),
        _participant("bob", "s2"),
        _participant("alice", "s3", attended=False),
    ]
    return SessionNormalizer.build_snapshot(classes, participants)


def _settings(**overrides):
    values = {"cancellation_window_hours": 24}
    values.update(overrides)
    return StudentReportSettings(**values)


def test_student_report_rates_and_means():
    table = compute_student_report(_snapshot(), _settings())

    assert table.header == HEADER
    assert table.rows[0] == [
        "alice",
        "acme",
        2,
        1,
        0.33,
        0.33,
        0.33,
        0.33,
        6.0,
        0.0,
        4.0,
        48.0,
        48.0,
    ]


def test_means_are_blank_when_nothing_was_measured():
    """
    bob has no rating, no cancellation, no enrolment timestamp and a
    single session, so those means stay blank instead of reading zero.
    """
    table = compute_student_report(_snapshot(), _settings())

    assert table.rows[1] == ["bob", "acme", 1, 0, 1.0, 0.0, 0.0, 0.0, "", 0.0, "", "", ""]


def test_cancellation_outside_window_is_not_late():
    table = compute_student_report(_snapshot(), _settings(cancellation_window_hours=6))

    (alice,) = [r for r in table.records() if r["student"] == "alice"]
    assert alice["cancellation rate"] == 0.33
    assert alice["late cancellation rate"] == 0.0


def test_company_filter_skips_other_companies():
    table = compute_student_report(
        _snapshot(), _settings(filter_mode=StudentFilterMode.COMPANY, company_id="beta")
    )

    assert table.column("student") == ["alice"]
    (alice,) = table.records()
    assert alice["total group classes"] == 1
    assert alice["total private classes"] == 0
    assert alice["no show rate"] == 1.0


def test_company_filter_all_keeps_everything():
    table = compute_student_report(
        _snapshot(), _settings(filter_mode=StudentFilterMode.COMPANY, company_id="ALL")
    )

    assert table.column("student") == ["alice", "bob"]


def test_custom_allowlist_keeps_listed_students_only():
    table = compute_student_report(
        _snapshot(),
        _settings(filter_mode=StudentFilterMode.CUSTOM, custom_allowlist=frozenset({"bob"})),
    )

    assert table.column("student") == ["bob"]


def test_allowlist_ignored_outside_custom_mode():
    table = compute_student_report(
        _snapshot(),
        _settings(filter_mode=StudentFilterMode.ALL, custom_allowlist=frozenset({"bob"})),
    )

    assert table.column("student") == ["alice", "bob"]
