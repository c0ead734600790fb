# lesson_reports/api/routes/reports.py
from http import HTTPStatus

from fastapi import APIRouter, HTTPException

from lesson_reports.schemas.raw_extract import RawDataset
from lesson_reports.schemas.report import (
    CourseDetailReport,
    OverviewReport,
    ReportTable,
    SessionListReport,
    TeacherPerformanceReport,
)
from lesson_reports.schemas.requests import (
    CompensationRequest,
    CourseDetailRequest,
    OverviewRequest,
    StudentReportRequest,
)
from lesson_reports.schemas.session import SessionSnapshot
from lesson_reports.services.compensation import compute_compensation_report
from lesson_reports.services.course_reports import compute_course_detail, compute_course_overview
from lesson_reports.services.overview import compute_overview
from lesson_reports.services.session_listing import compute_session_listing
from lesson_reports.services.session_normalizer import SessionNormalizer
from lesson_reports.services.student_report import compute_student_report
from lesson_reports.services.teacher_performance import compute_teacher_performance

router = APIRouter(
    prefix="/reports",
    tags=["Reports"],
)


def _snapshot(dataset: RawDataset) -> SessionSnapshot:
    return SessionNormalizer.build_snapshot(dataset.classes, dataset.participants)


@router.post(
    "/compensation",
    response_model=ReportTable,
    status_code=HTTPStatus.OK,
    summary="Teacher compensation per duration and class type",
    description=(
        "Count paid sessions per teacher, bucketed by rounded duration and "
        "class type (private = exactly one seat).\n\n"
        "The net count per bucket is:\n"
        "- attended sessions\n"
        "- minus late sessions when `penalise_tardiness`\n"
        "- plus last-minute student cancellations on private sessions when "
        "`pay_last_minute_cancellation`\n"
        "- minus student no-show sessions, scaled by the unpaid share when "
        "`pay_student_no_show`\n\n"
        "Sessions without a teacher are left out."
    ),
)
async def compensation_report(payload: CompensationRequest) -> ReportTable:
    snapshot = _snapshot(payload.dataset)
    if payload.durations is not None:
        snapshot = snapshot.with_durations(payload.durations)
    return compute_compensation_report(snapshot, payload.settings, payload.mode)


@router.post(
    "/teacher-performance",
    response_model=TeacherPerformanceReport,
    status_code=HTTPStatus.OK,
    summary="Per-teacher private and group statistics plus feedback listing",
)
async def teacher_performance_report(dataset: RawDataset) -> TeacherPerformanceReport:
    return compute_teacher_performance(_snapshot(dataset))


@router.post(
    "/courses/overview",
    response_model=ReportTable,
    status_code=HTTPStatus.OK,
    summary="One summary row per course",
)
async def courses_overview(dataset: RawDataset) -> ReportTable:
    return compute_course_overview(_snapshot(dataset))


@router.post(
    "/courses/detail",
    response_model=CourseDetailReport,
    status_code=HTTPStatus.OK,
    summary="Session x student attendance matrix and student summary for one course",
    responses={
        404: {"description": "No session belongs to the requested course id."},
    },
)
async def course_detail(payload: CourseDetailRequest) -> CourseDetailReport:
    try:
        return compute_course_detail(_snapshot(payload.dataset), payload.course_id)
    except LookupError as exc:
        raise HTTPException(status_code=HTTPStatus.NOT_FOUND, detail=str(exc))


@router.post(
    "/students",
    response_model=ReportTable,
    status_code=HTTPStatus.OK,
    summary="Per-student attendance, cancellation and timing statistics",
    description=(
        "Filter modes:\n"
        "- `all`: every student participation\n"
        "- `company`: only sessions of `company_id` ('ALL' disables the filter)\n"
        "- `custom`: only participations of usernames in `custom_allowlist`\n\n"
        "Rates are fractions of the student's sessions; blank when undefined."
    ),
)
async def student_report(payload: StudentReportRequest) -> ReportTable:
    return compute_student_report(_snapshot(payload.dataset), payload.settings)


@router.post(
    "/overview",
    response_model=OverviewReport,
    status_code=HTTPStatus.OK,
    summary="Session outcome tallies per duration and private-session averages",
)
async def overview_report(payload: OverviewRequest) -> OverviewReport:
    return compute_overview(_snapshot(payload.dataset), payload.settings)


@router.post(
    "/session-list",
    response_model=SessionListReport,
    status_code=HTTPStatus.OK,
    summary="Flat private, group and by-student session listings",
)
async def session_list(dataset: RawDataset) -> SessionListReport:
    return compute_session_listing(_snapshot(dataset))
