"""Jobs API endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from printbroker.api.deps import get_actor, get_db
from printbroker.api.errors import to_http_exception
from printbroker.constants import JobSource, JobStatus, Pathway, enum_pattern
from printbroker.schemas.job import (
    JobActivityResponse,
    JobBatchCreateRequest,
    JobBatchCreateResponse,
    JobCreateRequest,
    JobCreateResponse,
    JobDetailResponse,
    JobListResponse,
    JobUpdateRequest,
)
from printbroker.services.activity_service import list_activities
from printbroker.services.errors import BrokerServiceError
from printbroker.services.job_creation_service import JobCreationResult, create_job, create_jobs_batch
from printbroker.services.job_service import get_job_by_id, get_job_detail, list_jobs, update_job

router = APIRouter()


def _creation_response(result: JobCreationResult) -> JobCreateResponse:
    return JobCreateResponse(
        id=result.job.id,
        job_no=result.job_no,
        base_job_id=result.base_job_id,
        pathway=result.pathway,
        vendor_count=result.job.vendor_count,
        created_at=result.job.created_at,
        cost_orders_created=result.cost_orders_created,
        cost_orders_skipped_reason=result.cost_orders_skipped_reason,
    )


@router.post("", response_model=JobCreateResponse, status_code=status.HTTP_201_CREATED)
def create_new_job(
    request: JobCreateRequest,
    db: Session = Depends(get_db),
):
    """
    Create a job.

    Issues the job number, base job id and pathway in one transaction, and
    generates partner cost orders when the job can be priced.
    """
    try:
        result = create_job(db, request, source=JobSource.MANUAL)
    except BrokerServiceError as e:
        raise to_http_exception(e)
    return _creation_response(result)


@router.post("/batch", response_model=JobBatchCreateResponse, status_code=status.HTTP_201_CREATED)
def create_job_batch(
    request: JobBatchCreateRequest,
    db: Session = Depends(get_db),
):
    """
    Create several jobs at once (imports).

    Numbers are contiguous within the batch; if one job fails, none are kept.
    """
    try:
        results = create_jobs_batch(db, request.jobs, source=JobSource.IMPORT)
    except BrokerServiceError as e:
        raise to_http_exception(e)
    return JobBatchCreateResponse(jobs=[_creation_response(r) for r in results], count=len(results))


@router.get("", response_model=JobListResponse)
def list_all_jobs(
    page: int = Query(1, ge=1, description="Page number"),
    size: int = Query(20, ge=1, le=100, description="Page size"),
    status_filter: Optional[str] = Query(None, pattern=enum_pattern(JobStatus.ALL), description="Filter by status"),
    pathway: Optional[str] = Query(None, pattern=enum_pattern(Pathway.ALL), description="Filter by pathway"),
    customer_id: Optional[str] = Query(None, description="Filter by customer"),
    db: Session = Depends(get_db),
):
    """
    List jobs with pagination, newest first.

    - **page**: Page number (default: 1)
    - **size**: Page size (default: 20, max: 100)
    - **status_filter**: ACTIVE, PAID or CANCELLED
    - **pathway**: P1, P2 or P3
    """
    jobs, total = list_jobs(db, page, size, status_filter, pathway, customer_id)
    return JobListResponse(jobs=jobs, total=total, page=page, page_size=size)


@router.get("/{job_id}", response_model=JobDetailResponse)
def get_job(
    job_id: str,
    db: Session = Depends(get_db),
):
    """
    Get the full job snapshot: purchase orders, pricing, profit split and payments.

    - **job_id**: Job ID
    """
    try:
        return get_job_detail(db, job_id)
    except BrokerServiceError as e:
        raise to_http_exception(e)


@router.patch("/{job_id}", response_model=JobDetailResponse)
def patch_job(
    job_id: str,
    request: JobUpdateRequest,
    db: Session = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    """
    Partially update a job.

    Changing quantity, size, sell price, paper source or print rate generates
    any missing partner cost orders and refreshes the profit split.
    """
    try:
        update_job(db, job_id, request, changed_by=actor)
        return get_job_detail(db, job_id)
    except BrokerServiceError as e:
        raise to_http_exception(e)


@router.get("/{job_id}/activities", response_model=List[JobActivityResponse])
def get_job_activities(
    job_id: str,
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    """Audit log for a job, newest first."""
    try:
        get_job_by_id(db, job_id)
    except BrokerServiceError as e:
        raise to_http_exception(e)
    return list_activities(db, job_id, limit)
