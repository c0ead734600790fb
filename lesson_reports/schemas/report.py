# lesson_reports/schemas/report.py
from pydantic import BaseModel, Field

Cell = str | bool | int | float


class ReportTable(BaseModel):
    """
    A computed report: one header row plus data rows of the same width.

    Blank cells are empty strings. This is the only shape handed to
    rendering and export.
    """

    header: list[str] = Field(..., description="Column names, in output order.")
    rows: list[list[Cell]] = Field(
        default_factory=list,
        description="Data rows; each row has one cell per header column.",
    )

    def column(self, name: str) -> list[Cell]:
        index = self.header.index(name)
        return [row[index] for row in self.rows]

    def records(self) -> list[dict[str, Cell]]:
        return [dict(zip(self.header, row)) for row in self.rows]


class TeacherPerformanceReport(BaseModel):
    private: ReportTable = Field(..., description="Per-teacher statistics over private sessions.")
    group: ReportTable = Field(..., description="Per-teacher statistics over group sessions.")
    feedback: ReportTable = Field(..., description="One row per student feedback or rating.")


class CourseDetailReport(BaseModel):
    info: ReportTable = Field(..., description="One-row summary of the course.")
    sessions: ReportTable = Field(
        ...,
        description="Chronological session x student attendance matrix.",
    )
    students: ReportTable = Field(..., description="Per-student participation summary.")


class OverviewReport(BaseModel):
    group: ReportTable = Field(..., description="Outcome tallies of group sessions per duration.")
    private: ReportTable = Field(..., description="Outcome tallies of private sessions per duration.")
    averages: ReportTable = Field(
        ...,
        description="Private sessions: mean per-student vs per-teacher metrics.",
    )


class SessionListReport(BaseModel):
    private: ReportTable
    group: ReportTable
    by_student: ReportTable


class DatasetCatalog(BaseModel):
    """
    Choices a client needs before asking for reports: the courses,
    companies, durations and student usernames present in the dataset.
    """

    session_count: int = Field(..., examples=[120])
    course_ids: list[str] = Field(default_factory=list)
    companies: list[str] = Field(default_factory=list)
    durations: list[int] = Field(default_factory=list, description="Rounded minutes, ascending.")
    default_durations: list[int] = Field(
        default_factory=list,
        description="Durations preselected for the compensation report.",
    )
    student_usernames: list[str] = Field(default_factory=list)


class AllowlistCheck(BaseModel):
    known: list[str] = Field(default_factory=list)
    unknown: list[str] = Field(default_factory=list)
