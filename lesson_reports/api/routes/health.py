# lesson_reports/api/routes/health.py
from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from lesson_reports.core.config import get_settings

router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    status: str = Field(..., examples=["ok"])
    app_name: str = Field(..., examples=["Lesson Reports"])
    environment: str = Field(..., examples=["local"])
    version: str = Field(..., description="Version of the running report engines.", examples=["0.1.0"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Liveness probe",
)
async def health_check(request: Request) -> HealthResponse:
    """
    Reports are computed per request from the uploaded dataset, so a
    running process is a healthy one.
    """
    settings = get_settings()
    return HealthResponse(
        status="ok",
        app_name=settings.APP_NAME,
        environment=settings.APP_ENV,
        version=request.app.version,
    )
