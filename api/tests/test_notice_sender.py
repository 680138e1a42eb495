"""Tests for invoice notice senders."""

from types import SimpleNamespace

import pytest

from printbroker.services import notice_sender
from printbroker.services.notice_sender import (
    CeleryNoticeSender,
    LoggingNoticeSender,
    NoticeSendError,
    get_notice_sender,
)


class TestGetNoticeSender:
    """Tests for backend selection."""

    def test_backends(self):
        assert isinstance(get_notice_sender("celery"), CeleryNoticeSender)
        assert isinstance(get_notice_sender("LOG"), LoggingNoticeSender)

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            get_notice_sender("fax")


class TestCeleryNoticeSender:
    """Tests for task dispatch."""

    def test_queues_task(self, monkeypatch):
        calls = []

        def fake_send_task(name, kwargs):
            calls.append((name, kwargs))
            return SimpleNamespace(id="task-1")

        monkeypatch.setattr(notice_sender.celery_app, "send_task", fake_send_task)

        receipt = CeleryNoticeSender("documents.tasks.notice").send({"job_no": "J-1001"}, "ap@partner.example.com")

        assert receipt.reference == "task-1"
        assert receipt.sent_to == "ap@partner.example.com"
        assert calls == [("documents.tasks.notice", {"notice": {"job_no": "J-1001"}, "recipient": "ap@partner.example.com"})]

    def test_broker_failure_becomes_send_error(self, monkeypatch):
        def broken_send_task(name, kwargs):
            raise ConnectionError("connection refused")

        monkeypatch.setattr(notice_sender.celery_app, "send_task", broken_send_task)

        with pytest.raises(NoticeSendError) as exc_info:
            CeleryNoticeSender().send({"job_no": "J-1001"}, "ap@partner.example.com")
        assert "connection refused" in str(exc_info.value)
