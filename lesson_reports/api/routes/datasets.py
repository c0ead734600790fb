# lesson_reports/api/routes/datasets.py
from http import HTTPStatus

from fastapi import APIRouter, HTTPException

from lesson_reports.core.config import get_settings
from lesson_reports.schemas.raw_extract import PositionalExtract, RawDataset
from lesson_reports.schemas.report import AllowlistCheck, DatasetCatalog
from lesson_reports.schemas.requests import AllowlistRequest, NormalizedDataset
from lesson_reports.schemas.session import SessionSnapshot
from lesson_reports.services.dataset_catalog import build_catalog, validate_allowlist
from lesson_reports.services.extract_mapper import (
    ExtractSchemaError,
    map_class_rows,
    map_participant_rows,
)
from lesson_reports.services.session_normalizer import SessionNormalizer

router = APIRouter(
    prefix="/datasets",
    tags=["Datasets"],
)


def _normalized(snapshot: SessionSnapshot) -> NormalizedDataset:
    sessions = snapshot.ordered()
    return NormalizedDataset(session_count=len(sessions), sessions=sessions)


@router.post(
    "/normalize",
    response_model=NormalizedDataset,
    status_code=HTTPStatus.OK,
    summary="Normalize named extract records into sessions",
    description=(
        "Fuse the classes and participants extracts into one session per "
        "session id, with teacher, students, tardiness and cancellation "
        "attribution resolved.\n\n"
        "Class rows without a session id are skipped."
    ),
)
async def normalize_dataset(dataset: RawDataset) -> NormalizedDataset:
    snapshot = SessionNormalizer.build_snapshot(dataset.classes, dataset.participants)
    return _normalized(snapshot)


@router.post(
    "/import",
    response_model=NormalizedDataset,
    status_code=HTTPStatus.OK,
    summary="Import positional extract rows",
    description=(
        "Accept both extracts as positional rows (header row removed), map "
        "them to named records and normalize them.\n\n"
        "A row that does not fit its extract's column layout rejects the "
        "whole import with 422."
    ),
    responses={
        422: {"description": "A row does not match the extract column layout."},
    },
)
async def import_extract(extract: PositionalExtract) -> NormalizedDataset:
    try:
        classes = map_class_rows(extract.class_rows)
        participants = map_participant_rows(extract.participant_rows)
    except ExtractSchemaError as exc:
        raise HTTPException(status_code=HTTPStatus.UNPROCESSABLE_ENTITY, detail=str(exc))

    snapshot = SessionNormalizer.build_snapshot(classes, participants)
    return _normalized(snapshot)


@router.post(
    "/catalog",
    response_model=DatasetCatalog,
    status_code=HTTPStatus.OK,
    summary="List courses, companies, durations and students in a dataset",
)
async def dataset_catalog(dataset: RawDataset) -> DatasetCatalog:
    snapshot = SessionNormalizer.build_snapshot(dataset.classes, dataset.participants)
    return build_catalog(snapshot, get_settings())


@router.post(
    "/allowlist",
    response_model=AllowlistCheck,
    status_code=HTTPStatus.OK,
    summary="Check a custom student list against the dataset",
)
async def check_allowlist(payload: AllowlistRequest) -> AllowlistCheck:
    dataset = payload.dataset
    snapshot = SessionNormalizer.build_snapshot(dataset.classes, dataset.participants)
    return validate_allowlist(snapshot, payload.usernames)
