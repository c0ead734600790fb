# lesson_reports/schemas/report_settings.py
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from lesson_reports.core.config import get_settings

# companyId value meaning "no company filter".
ALL_COMPANIES = "ALL"


class ClassTypeFilter(str, Enum):
    PRIVATE = "private"
    GROUP = "group"
    BOTH = "both"


class OutputMode(str, Enum):
    DETAILED = "detailed"
    SIMPLE = "simple"


class StudentFilterMode(str, Enum):
    ALL = "all"
    COMPANY = "company"
    CUSTOM = "custom"


def _default_window() -> float:
    return get_settings().DEFAULT_CANCELLATION_WINDOW_HOURS


class CompensationSettings(BaseModel):
    """
    Pay policy for the teacher compensation report.
    """

    model_config = ConfigDict(frozen=True)

    tardiness_limit_minutes: int = Field(
        default_factory=lambda: get_settings().DEFAULT_TARDINESS_LIMIT_MINUTES,
        ge=0,
        description="Teacher tardiness above this many minutes counts as late.",
    )
    cancellation_window_hours: float = Field(
        default_factory=_default_window,
        ge=0,
        description="A student cancellation closer than this to the start is last-minute.",
    )
    penalise_tardiness: bool = Field(
        False,
        description="Deduct one session for every late session.",
    )
    pay_last_minute_cancellation: bool = Field(
        False,
        description="Credit private sessions a student cancelled at the last minute.",
    )
    pay_student_no_show: bool = Field(
        False,
        description="Pay a share of sessions where every student was a no-show.",
    )
    student_no_show_rate_percent: float = Field(
        default_factory=lambda: get_settings().DEFAULT_STUDENT_NO_SHOW_RATE_PERCENT,
        ge=0,
        le=100,
        description="Share (0-100) of a student no-show session that is paid.",
    )
    class_type_filter: ClassTypeFilter = ClassTypeFilter.BOTH


class StudentReportSettings(BaseModel):
    """
    Filters and thresholds for the per-student report.
    """

    model_config = ConfigDict(frozen=True)

    cancellation_window_hours: float = Field(default_factory=_default_window, ge=0)
    company_id: str = Field(
        ALL_COMPANIES,
        description="Company to keep in 'company' mode; 'ALL' disables the filter.",
    )
    filter_mode: StudentFilterMode = StudentFilterMode.ALL
    custom_allowlist: frozenset[str] = Field(
        default_factory=frozenset,
        description="Usernames kept in 'custom' mode.",
    )


class OverviewSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    cancellation_window_hours: float = Field(default_factory=_default_window, ge=0)
