from typing import NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from ingestion_core.api.deps import get_jobs_service
from ingestion_core.api.schemas import (
    MetricResponse,
    MetricsReportRequest,
    StatusUpdateRequest,
)
from ingestion_core.domain.enums import JobStatus
from ingestion_core.domain.errors import (
    ConversionError,
    InvalidStatusError,
    JobNotFoundError,
    ReferenceIntegrityError,
)
from ingestion_core.domain.messages import IngestionJobMessage
from ingestion_core.services.jobs_service import JobsService


router = APIRouter(prefix="/api/jobs", tags=["jobs"])


def _http_error(e: Exception) -> NoReturn:
    if isinstance(e, JobNotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, InvalidStatusError):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    if isinstance(e, (ReferenceIntegrityError, ConversionError)):
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    raise e


@router.get("", response_model=list[IngestionJobMessage])
def list_jobs(
    svc: JobsService = Depends(get_jobs_service),
    store_name: Optional[str] = None,
    feature_set_id: Optional[str] = None,
    job_status: Optional[JobStatus] = Query(None, alias="status"),
    active_only: bool = False,
):
    try:
        return svc.list_job_messages(
            store_name=store_name,
            feature_set_id=feature_set_id,
            status=job_status,
            active_only=active_only,
        )
    except (ReferenceIntegrityError, ConversionError) as e:
        _http_error(e)


@router.get("/{job_id}", response_model=IngestionJobMessage)
def get_job(
    job_id: str,
    svc: JobsService = Depends(get_jobs_service),
):
    try:
        return svc.get_job_message(job_id)
    except (JobNotFoundError, ReferenceIntegrityError, ConversionError) as e:
        _http_error(e)


@router.get("/{job_id}/metrics", response_model=list[MetricResponse])
def get_metrics(
    job_id: str,
    svc: JobsService = Depends(get_jobs_service),
):
    try:
        job = svc.get_job(job_id)
    except JobNotFoundError as e:
        _http_error(e)
    return [MetricResponse(name=m.name, value=m.value) for m in job.metrics]


@router.put("/{job_id}/metrics", status_code=status.HTTP_204_NO_CONTENT)
def report_metrics(
    job_id: str,
    req: MetricsReportRequest,
    svc: JobsService = Depends(get_jobs_service),
):
    try:
        svc.update_metrics(job_id, [(m.name, m.value) for m in req.metrics])
    except (JobNotFoundError, ReferenceIntegrityError) as e:
        _http_error(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/{job_id}/status", response_model=IngestionJobMessage)
def update_status(
    job_id: str,
    req: StatusUpdateRequest,
    svc: JobsService = Depends(get_jobs_service),
):
    try:
        return svc.update_status_message(job_id, req.status)
    except (JobNotFoundError, InvalidStatusError, ReferenceIntegrityError, ConversionError) as e:
        _http_error(e)
