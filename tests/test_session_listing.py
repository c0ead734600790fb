from lesson_reports.schemas.raw_extract import RawClassRecord, RawParticipantRecord
from lesson_reports.services.session_listing import (
    BY_STUDENT_HEADER,
    GROUP_HEADER,
    PRIVATE_HEADER,
    compute_session_listing,
)
from lesson_reports.services.session_normalizer import SessionNormalizer

START = "2025-03-03 10:00:00"


def _participant(username, session_id, teacher=False, attended=True, **extra):
    return RawParticipantRecord(
        session_id=session_id,
        username=username,
        is_teacher="true" if teacher else "false",
        attended="true" if attended else "false",
        scheduled_join=START,
        **extra,
    )


def _snapshot():
    classes = [
        RawClassRecord(
            session_id="p1",
            start=START,
            end="2025-03-03 10:45:00",
            actual_duration="44",
            company="acme",
            subject="English",
            level="B2",
            seat_capacity="1",
            teacher_summary="Worked on tenses",
        ),
        RawClassRecord(
            session_id="g1",
            start=START,
            end="2025-03-03 11:00:00",
            seat_capacity="6",
            cancelled_by="ops",
        ),
    ]
    participants = [
        _participant("teach", "p1", teacher=True, first_name="Tea", last_name="Cher", actual_join="2025-03-03 10:01:30"),
        _participant("alice", "p1", first_name="Alice", last_name="Smith", actual_join=START, rating="5"),
        _participant("teach", "g1", teacher=True, actual_join=START),
        _participant("bob", "g1", rating="4", feedback="Good"),
        _participant("carol", "g1", attended=False, rating="3", feedback=" "),
    ]
    return SessionNormalizer.build_snapshot(classes, participants)


def test_private_listing_row():
    report = compute_session_listing(_snapshot())

    assert report.private.header == PRIVATE_HEADER
    (row,) = report.private.records()
    assert row["Date"] == "2025-03-03"
    assert row["Time"] == "10:00"
    assert row["Scheduled Duration"] == 45.0
    assert row["Actual Duration"] == 44
    assert row["Status"] == "completed"
    assert row["Class Slug"] == "p1"
    assert row["Teacher Name"] == "Tea Cher"
    assert row["Teacher Attended"] is True
    assert row["Teacher Tardiness"] == 1.5
    assert row["Teacher Summary"] == "Worked on tenses"
    assert row["Student Name"] == "Alice Smith"
    assert row["Student Tardiness"] == 0.0
    assert row["Class Rating"] == "5"


def test_group_listing_aggregates_students():
    report = compute_session_listing(_snapshot())

    assert report.group.header == GROUP_HEADER
    (row,) = report.group.records()
    assert row["Status"] == "cancelled"
    assert row["Actual Duration"] == ""
    assert row["Seats"] == 6
    assert row["Students Enrolled"] == 2
    assert row["Students Attended"] == 1
    assert row["Student Usernames"] == "bob; carol"
    assert row["Class Feedback"] == "Good"
    assert row["Class Rating"] == 3.5


def test_by_student_listing_covers_both_types():
    report = compute_session_listing(_snapshot())

    assert report.by_student.header == BY_STUDENT_HEADER
    assert report.by_student.column("Student Username") == ["alice", "bob", "carol"]
    assert report.by_student.column("Group Class") == [False, True, True]
    assert report.by_student.column("Teacher Username") == ["teach", "teach", "teach"]
