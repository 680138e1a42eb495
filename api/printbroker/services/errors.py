"""
Service-layer exceptions.

Hierarchy:
    BrokerServiceError (base)
    ├── JobNotFoundError          - referenced job does not exist
    ├── InvalidInputError         - malformed or missing input, never retried
    ├── PreconditionFailedError   - workflow step called out of order
    ├── ConflictError             - idempotency violation (e.g. duplicate payment)
    ├── TransientStoreError       - timeout/contention, retry the whole operation
    └── DataIntegrityError        - persisted state violates an invariant

Endpoints translate these into HTTP responses; services never return error
dicts for control flow.
"""

from typing import Any, Dict, Optional


class BrokerServiceError(Exception):
    """Base exception for service errors."""

    code = "SERVICE_ERROR"
    retryable = False

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for an HTTP error body."""
        return {"code": self.code, "message": self.message, **self.details}

    def __str__(self) -> str:
        return self.message


class JobNotFoundError(BrokerServiceError):
    """Job not found."""

    code = "NOT_FOUND"


class InvalidInputError(BrokerServiceError):
    """Input failed validation."""

    code = "VALIDATION_ERROR"


class PreconditionFailedError(BrokerServiceError):
    """A workflow step was requested before the step it depends on."""

    code = "PRECONDITION_FAILED"

    def __init__(self, message: str, hint: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, {**(details or {}), "hint": hint})
        self.hint = hint


class ConflictError(BrokerServiceError):
    """The requested write would duplicate state that already exists."""

    code = "CONFLICT"

    def __init__(self, message: str, hint: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, {**(details or {}), "hint": hint})
        self.hint = hint


class TransientStoreError(BrokerServiceError):
    """The store timed out or hit contention; nothing was committed."""

    code = "TRANSIENT_STORE_ERROR"
    retryable = True


class DataIntegrityError(BrokerServiceError):
    """Persisted data violates an invariant and must be repaired by hand."""

    code = "DATA_INTEGRITY_ERROR"
