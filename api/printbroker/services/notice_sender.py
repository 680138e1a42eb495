"""Downstream invoice notice senders."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from printbroker.celery_app import celery_app
from printbroker.config import settings

logger = logging.getLogger(__name__)


class NoticeSendError(Exception):
    """The notice could not be handed off."""


@dataclass
class NoticeReceipt:
    sent_at: datetime
    sent_to: str
    reference: Optional[str] = None


class BaseNoticeSender(ABC):
    """Base class for notice senders.

    A sender hands the downstream invoice notice for a job to whatever
    produces and delivers the document. It must not touch the database.
    """

    @abstractmethod
    def send(self, notice: Dict[str, Any], recipient: str) -> NoticeReceipt:
        """Send one notice.

        Args:
            notice: Serializable notice payload (job number, amounts, ...)
            recipient: Address the notice goes to

        Returns:
            NoticeReceipt with send time and recipient

        Raises:
            NoticeSendError: If the notice could not be handed off
        """
        pass


class CeleryNoticeSender(BaseNoticeSender):
    """Dispatch the notice as a task to the document worker."""

    def __init__(self, task_name: str = None):
        self.task_name = task_name or settings.notice_task_name

    def send(self, notice: Dict[str, Any], recipient: str) -> NoticeReceipt:
        try:
            result = celery_app.send_task(self.task_name, kwargs={"notice": notice, "recipient": recipient})
        except Exception as e:
            raise NoticeSendError(f"Failed to queue {self.task_name}: {e}") from e

        logger.info(f"Queued notice for job {notice.get('job_no')} to {recipient} (task {result.id})")
        return NoticeReceipt(sent_at=datetime.utcnow(), sent_to=recipient, reference=result.id)


class LoggingNoticeSender(BaseNoticeSender):
    """Log the notice instead of sending it (development)."""

    def send(self, notice: Dict[str, Any], recipient: str) -> NoticeReceipt:
        logger.info(f"Notice for job {notice.get('job_no')} to {recipient}: {notice}")
        return NoticeReceipt(sent_at=datetime.utcnow(), sent_to=recipient)


def get_notice_sender(backend: str = None) -> BaseNoticeSender:
    """Build the sender selected by ``notice_backend``.

    Raises:
        ValueError: If the backend is not supported
    """
    backend = (backend or settings.notice_backend).lower()
    if backend == "celery":
        return CeleryNoticeSender()
    if backend == "log":
        return LoggingNoticeSender()
    raise ValueError(f"Unsupported notice backend: {backend}")
