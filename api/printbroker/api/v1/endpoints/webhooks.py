"""Ordering portal webhook endpoints."""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Response, status
from sqlalchemy.orm import Session

from printbroker.api.deps import get_db
from printbroker.api.errors import to_http_exception
from printbroker.schemas.webhook import PortalJobPayload, WebhookHealthResponse, WebhookJobResponse
from printbroker.services.errors import BrokerServiceError
from printbroker.services.webhook_service import process_portal_job, verify_webhook_secret, webhook_configured

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/jobs", response_model=WebhookJobResponse)
def receive_portal_job(
    payload: PortalJobPayload,
    response: Response,
    x_webhook_secret: Optional[str] = Header(None),
    db: Session = Depends(get_db),
):
    """
    Create or update a job pushed by the ordering portal.

    Requires the ``X-Webhook-Secret`` header. Returns 201 when a job is
    created and 200 when the job linked to ``externalJobId`` is updated.
    """
    if not verify_webhook_secret(x_webhook_secret):
        logger.warning(f"Rejected portal webhook for {payload.externalJobId}: invalid or missing secret")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Unauthorized", "code": "UNAUTHORIZED", "message": "Invalid or missing webhook secret"},
        )

    logger.info(f"Received portal webhook for job {payload.jobNo} (external id {payload.externalJobId})")
    try:
        result = process_portal_job(db, payload)
    except BrokerServiceError as e:
        raise to_http_exception(e)

    response.status_code = status.HTTP_201_CREATED if result.created else status.HTTP_200_OK
    return WebhookJobResponse(
        action=result.action,
        jobId=result.job.id,
        jobNo=result.job.job_no,
        baseJobId=result.job.base_job_id,
        pathway=result.job.pathway,
    )


@router.get("/health", response_model=WebhookHealthResponse)
def webhook_health():
    """Report whether the webhook secret is configured."""
    return WebhookHealthResponse(
        status="ok",
        configured=webhook_configured(),
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
