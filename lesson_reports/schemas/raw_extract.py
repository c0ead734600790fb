# lesson_reports/schemas/raw_extract.py
from pydantic import BaseModel, ConfigDict, Field


class RawClassRecord(BaseModel):
    """
    One row of the classes extract, with every column kept as raw text.

    Only the columns the reports use are modelled; the positional layout of
    the source extract is handled in services/extract_mapper.py.
    """

    model_config = ConfigDict(frozen=True)

    start: str = Field("", description="Scheduled start timestamp.", examples=["2025-03-03 10:00:00"])
    end: str = Field("", description="Scheduled end timestamp.", examples=["2025-03-03 11:00:00"])
    actual_duration: str = Field("", description="Actual duration in minutes, as exported.")
    company: str = Field("", description="Company the session belongs to.")
    session_id: str = Field(
        "",
        description="Unique session identifier. Rows without one are skipped.",
        examples=["cls-20250303-1000"],
    )
    description: str = Field("", description="Free-text course description.")
    seat_capacity: str = Field(
        "",
        description="Available seats. Exactly 1 marks a private session.",
        examples=["1"],
    )
    subject: str = ""
    level: str = ""
    teacher_summary: str = Field("", description="Teacher's written summary of the session.")
    course_id: str = ""
    cancelled_by: str = Field(
        "",
        description="Username (or admin identifier) of whoever cancelled the session.",
    )
    cancelled_at: str = Field("", description="Cancellation timestamp.")


class RawParticipantRecord(BaseModel):
    """
    One row of the participants extract: a teacher or a student booked on
    a session.
    """

    model_config = ConfigDict(frozen=True)

    session_id: str = Field("", description="Session this participation belongs to.")
    scheduled_join: str = Field("", description="Timestamp the participant was expected to join.")
    username: str = ""
    first_name: str = ""
    last_name: str = ""
    is_teacher: str = Field("", description="'true' for the teacher row of the session.")
    attended: str = Field("", description="'true' when the participant attended.")
    actual_join: str = Field("", description="Timestamp the participant actually joined.")
    cancelled: str = Field("", description="'true' when the participation was cancelled.")
    cancelled_by: str = ""
    cancelled_at: str = ""
    enrolled_at: str = Field("", description="Timestamp the student booked the session.")
    rating: str = Field("", description="Numeric rating as text; may be empty.", examples=["4.5"])
    feedback: str = ""


class RawDataset(BaseModel):
    """
    Both extracts of one upload, as named records.
    """

    classes: list[RawClassRecord] = Field(default_factory=list)
    participants: list[RawParticipantRecord] = Field(default_factory=list)


class PositionalExtract(BaseModel):
    """
    Both extracts of one upload as positional rows (header row already
    removed), exactly as a delimited-text parser would hand them over.
    """

    class_rows: list[list[str]] = Field(default_factory=list)
    participant_rows: list[list[str]] = Field(default_factory=list)
