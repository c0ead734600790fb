from lesson_reports.schemas.raw_extract import RawClassRecord, RawParticipantRecord
from lesson_reports.schemas.session import ClassType, SessionSnapshot
from lesson_reports.services.session_normalizer import SessionNormalizer

START = "2025-03-03 10:00:00"


def _class(
    session_id: str = "s1",
    start: str = START,
    end: str = "2025-03-03 11:00:00",
    seats: str = "1",
    **extra,
) -> RawClassRecord:
    return RawClassRecord(session_id=session_id, start=start, end=end, seat_capacity=seats, **extra)


def _participant(
    username: str,
    session_id: str = "s1",
    teacher: bool = False,
    attended: bool = True,
    joined: str = START,
    **extra,
) -> RawParticipantRecord:
    return RawParticipantRecord(
        session_id=session_id,
        username=username,
        is_teacher="true" if teacher else "false",
        attended="true" if attended else "false",
        scheduled_join=START,
        actual_join=joined,
        **extra,
    )


def test_normalizer_skips_rows_without_id_and_keeps_first_seen_order():
    """
    Rows without a session id are dropped; a duplicate id replaces the
    earlier session in place.
    """
    classes = [
        _class("s1", subject="Old subject"),
        _class(""),
        _class("s2"),
        _class("s1", subject="New subject"),
    ]

    snapshot = SessionNormalizer.build_snapshot(classes, [])

    assert isinstance(snapshot, SessionSnapshot)
    assert list(snapshot.sessions) == ["s1", "s2"]
    assert snapshot.sessions["s1"].subject == "New subject"


def test_normalizer_splits_teacher_and_students_in_extract_order():
    participants = [
        _participant("bob"),
        _participant("teach", teacher=True),
        _participant("alice"),
        _participant("other-teacher", teacher=True),
        _participant("zed", session_id="s2"),
    ]

    session = SessionNormalizer.build_snapshot([_class()], participants).sessions["s1"]

    assert session.teacher is not None
    assert session.teacher.username == "teach"
    assert session.teacher.is_teacher is True
    assert [s.username for s in session.students] == ["bob", "alice"]


def test_normalizer_session_without_teacher_keeps_students():
    session = SessionNormalizer.build_snapshot([_class()], [_participant("alice")]).sessions["s1"]

    assert session.teacher is None
    assert session.teacher_attended is False
    assert session.teacher_username == ""
    assert len(session.students) == 1


def test_normalizer_computes_duration_and_clamped_tardiness():
    """
    Tardiness is the join delay in seconds clamped to [-3600, duration].
    """
    participants = [
        _participant("teach", teacher=True, joined="2025-03-03 10:06:40"),
        _participant("early", joined="2025-03-03 07:00:00"),
        _participant("late", joined="2025-03-03 13:00:00"),
        _participant("nojoin", joined=""),
    ]

    session = SessionNormalizer.build_snapshot([_class()], participants).sessions["s1"]

    assert session.scheduled_duration == 3600
    assert session.duration_minutes == 60
    assert session.teacher.tardiness == 400
    tardiness = {s.username: s.tardiness for s in session.students}
    assert tardiness == {"early": -3600, "late": 3600, "nojoin": 0}


def test_normalizer_missing_end_gives_zero_duration():
    session = SessionNormalizer.build_snapshot([_class(end="")], []).sessions["s1"]

    assert session.scheduled_duration == 0
    assert session.duration_minutes == 0


def test_normalizer_attributes_cancellation_to_student():
    """
    A session cancelled by a username that belongs to a student is a
    student cancellation, and the interval is hours before the start.
    """
    classes = [_class(seats="6", cancelled_by="alice", cancelled_at="2025-03-02 22:00:00")]
    participants = [_participant("teach", teacher=True), _participant("alice")]

    session = SessionNormalizer.build_snapshot(classes, participants).sessions["s1"]

    assert session.class_type is ClassType.GROUP
    assert session.is_cancelled is True
    assert session.cancelled_by_student is True
    assert session.cancelled_by_teacher is False
    assert session.cancelled_by_admin is False
    assert session.cancelled_interval_hours == 12.0


def test_normalizer_attributes_cancellation_to_teacher_and_admin():
    classes = [
        _class("s1", cancelled_by="teach", cancelled_at="2025-03-03 09:30:00"),
        _class("s2", cancelled_by="ops-admin"),
    ]
    participants = [
        _participant("teach", teacher=True),
        _participant("teach", session_id="s2", teacher=True),
    ]

    snapshot = SessionNormalizer.build_snapshot(classes, participants)
    by_teacher = snapshot.sessions["s1"]
    by_admin = snapshot.sessions["s2"]

    assert (by_teacher.cancelled_by_teacher, by_teacher.cancelled_by_student, by_teacher.cancelled_by_admin) == (
        True,
        False,
        False,
    )
    assert by_teacher.cancelled_interval_hours == 0.5
    assert (by_admin.cancelled_by_teacher, by_admin.cancelled_by_student, by_admin.cancelled_by_admin) == (
        False,
        False,
        True,
    )
    # No cancellation timestamp: interval stays absent.
    assert by_admin.cancelled_interval_hours is None


def test_normalizer_uncancelled_session_has_no_flags():
    session = SessionNormalizer.build_snapshot([_class()], [_participant("alice")]).sessions["s1"]

    assert session.is_cancelled is False
    assert session.cancellation_actor is None
    assert session.cancelled_interval_hours is None


def test_normalizer_student_intervals_absent_when_timestamps_missing():
    participants = [
        _participant("alice", enrolled_at="2025-03-01 10:00:00", cancelled="true", cancelled_at="2025-03-03 08:00:00"),
        _participant("bob"),
    ]

    session = SessionNormalizer.build_snapshot([_class()], participants).sessions["s1"]
    alice, bob = session.students

    assert alice.enrolment_interval_hours == 48.0
    assert alice.cancelled is True
    assert alice.cancelled_interval_hours == 2.0
    assert bob.enrolment_interval_hours is None
    assert bob.cancelled_interval_hours is None


def test_normalizer_classifies_private_strictly_on_one_seat():
    classes = [
        _class("one", seats="1"),
        _class("zero", seats="0"),
        _class("blank", seats=""),
        _class("many", seats="8"),
    ]

    snapshot = SessionNormalizer.build_snapshot(classes, [])

    types = {sid: s.class_type for sid, s in snapshot.sessions.items()}
    assert types == {
        "one": ClassType.PRIVATE,
        "zero": ClassType.GROUP,
        "blank": ClassType.GROUP,
        "many": ClassType.GROUP,
    }


def test_normalizer_is_idempotent():
    classes = [_class(cancelled_by="alice", cancelled_at="2025-03-02 10:00:00")]
    participants = [_participant("teach", teacher=True), _participant("alice", rating="4")]

    first = SessionNormalizer.build_snapshot(classes, participants)
    second = SessionNormalizer.build_snapshot(classes, participants)

    assert first == second
    assert first.model_dump() == second.model_dump()


def test_snapshot_with_durations_and_chronological_order():
    classes = [
        _class("late", start="2025-03-05 10:00:00", end="2025-03-05 10:30:00"),
        _class("early", start="2025-03-01 10:00:00", end="2025-03-01 11:00:00"),
        _class("unknown", start="", end=""),
    ]
    snapshot = SessionNormalizer.build_snapshot(classes, [])

    assert [s.id for s in snapshot.chronological()] == ["early", "late", "unknown"]
    assert list(snapshot.with_durations([60]).sessions) == ["early"]
    # The original snapshot is untouched.
    assert len(snapshot.sessions) == 3
