# lesson_reports/schemas/requests.py
from pydantic import BaseModel, Field

from lesson_reports.schemas.raw_extract import RawDataset
from lesson_reports.schemas.report_settings import (
    CompensationSettings,
    OutputMode,
    OverviewSettings,
    StudentReportSettings,
)
from lesson_reports.schemas.session import Session


class CompensationRequest(BaseModel):
    dataset: RawDataset
    settings: CompensationSettings = Field(default_factory=CompensationSettings)
    durations: list[int] | None = Field(
        None,
        description=(
            "Rounded session durations (minutes) to pay. Omit to include every "
            "duration in the dataset."
        ),
        examples=[[30, 60]],
    )
    mode: OutputMode = Field(
        OutputMode.DETAILED,
        description="'detailed' emits every counter; 'simple' only the net count.",
    )


class StudentReportRequest(BaseModel):
    dataset: RawDataset
    settings: StudentReportSettings = Field(default_factory=StudentReportSettings)


class OverviewRequest(BaseModel):
    dataset: RawDataset
    settings: OverviewSettings = Field(default_factory=OverviewSettings)


class CourseDetailRequest(BaseModel):
    dataset: RawDataset
    course_id: str = Field(..., description="Course id, or 'NO_ID' for sessions without one.")


class AllowlistRequest(BaseModel):
    dataset: RawDataset
    usernames: str | list[str] = Field(
        ...,
        description="Comma-separated text or a list of usernames.",
        examples=["alice, bob"],
    )


class NormalizedDataset(BaseModel):
    """
    Public representation of a normalized dataset, in first-seen order.
    """

    session_count: int
    sessions: list[Session]
