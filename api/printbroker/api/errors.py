"""Translate service exceptions into HTTP errors."""

import logging

from fastapi import HTTPException, status

from printbroker.services.errors import (
    BrokerServiceError,
    ConflictError,
    DataIntegrityError,
    InvalidInputError,
    JobNotFoundError,
    PreconditionFailedError,
    TransientStoreError,
)

logger = logging.getLogger(__name__)

RETRY_AFTER_SECONDS = 1

_STATUS_BY_ERROR = (
    (JobNotFoundError, status.HTTP_404_NOT_FOUND, "Not Found"),
    (InvalidInputError, status.HTTP_400_BAD_REQUEST, "Bad Request"),
    (PreconditionFailedError, status.HTTP_400_BAD_REQUEST, "Bad Request"),
    (ConflictError, status.HTTP_409_CONFLICT, "Conflict"),
    (TransientStoreError, status.HTTP_503_SERVICE_UNAVAILABLE, "Service Unavailable"),
    (DataIntegrityError, status.HTTP_500_INTERNAL_SERVER_ERROR, "Data Integrity Error"),
)


def to_http_exception(error: BrokerServiceError) -> HTTPException:
    """
    Build the HTTPException for a service error.

    The detail body is ``{error, code, message, ...details}``; transient
    failures carry a ``Retry-After`` header.
    """
    status_code, label = status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error"
    for error_type, code, error_label in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            status_code, label = code, error_label
            break

    headers = None
    if isinstance(error, TransientStoreError):
        headers = {"Retry-After": str(RETRY_AFTER_SECONDS)}
    if status_code >= 500:
        logger.error(f"{label}: {error.message}")

    return HTTPException(status_code=status_code, detail={"error": label, **error.to_dict()}, headers=headers)
