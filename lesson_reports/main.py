# lesson_reports/main.py
import logging

from fastapi import FastAPI

from lesson_reports.api.routes import datasets, health, reports
from lesson_reports.core.config import get_settings


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s level=%(levelname)s logger=%(name)s msg=%(message)s",
    )


def create_app() -> FastAPI:
    """
    Application factory for the Lesson Reports service.
    """
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.APP_NAME,
        description=(
            "Service that fuses the classes and participants extracts of a\n"
            "lesson platform into normalized sessions and computes teacher\n"
            "compensation, teacher performance, course, student and overview reports."
        ),
        version="0.1.0",
    )

    # Routers
    app.include_router(health.router)
    app.include_router(datasets.router)
    app.include_router(reports.router)

    return app


app = create_app()
