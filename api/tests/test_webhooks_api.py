"""Tests for the ordering portal webhook."""

from decimal import Decimal

import pytest

from printbroker.models import Company, Job, JobActivity, ProfitSplit
from printbroker.schemas.webhook import PortalJobPayload
from printbroker.services.errors import InvalidInputError
from printbroker.services.webhook_service import (
    WEBHOOK_ACTOR,
    map_paper_source,
    map_status,
    process_portal_job,
    verify_webhook_secret,
)


def portal_payload(**overrides):
    payload = {
        "jobNo": "PORTAL-5521",
        "companyName": "Acme Mailers",
        "sizeName": "7 1/4 x 16 3/8",
        "quantity": 10000,
        "specs": {"sellPrice": 900.0, "paperSource": "BRADFORD", "stock": "100# gloss"},
        "status": "ACTIVE",
        "deliveryDate": "2025-04-15T00:00:00Z",
        "createdAt": "2025-03-01T14:30:00Z",
        "externalJobId": "ext-5521",
    }
    payload.update(overrides)
    return payload


class TestMappings:
    """Tests for portal value mappings."""

    def test_status(self):
        assert map_status("COMPLETED") == "PAID"
        assert map_status("paid") == "PAID"
        assert map_status("CANCELLED") == "CANCELLED"
        assert map_status("IN_PRODUCTION") == "ACTIVE"
        assert map_status(None) == "ACTIVE"

    def test_paper_source(self):
        assert map_paper_source("BRADFORD") == "SELF_SUPPLIED"
        assert map_paper_source("vendor") == "VENDOR_SUPPLIED"
        assert map_paper_source("CUSTOMER") == "CUSTOMER_SUPPLIED"
        assert map_paper_source("SOMEONE") is None
        assert map_paper_source(None) is None


class TestSecret:
    """Tests for the shared secret check."""

    def test_matching_secret(self, webhook_secret):
        assert verify_webhook_secret(webhook_secret)
        assert not verify_webhook_secret("wrong")
        assert not verify_webhook_secret(None)

    def test_unset_secret_rejects_everything(self, monkeypatch):
        monkeypatch.setattr("printbroker.config.settings.portal_webhook_secret", None)
        assert not verify_webhook_secret("anything")


class TestProcessPortalJob:
    """Tests for process_portal_job."""

    def test_creates_job_through_normal_creation(self, test_db, customer):
        result = process_portal_job(test_db, PortalJobPayload(**portal_payload()))

        job = result.job
        assert result.created
        assert job.job_no == "J-1001"
        assert job.base_job_id == "FJ-3001"
        assert job.pathway == "P2"
        assert job.source == "WEBHOOK"
        assert job.customer_id == customer.id
        assert job.sell_price == Decimal("900.00")
        assert job.paper_source == "SELF_SUPPLIED"
        assert job.customer_po_number == "PORTAL-5521"
        assert job.title == "Job from Acme Mailers"
        assert job.specs["externalJobNo"] == "PORTAL-5521"
        assert job.specs["stock"] == "100# gloss"
        assert str(job.due_date) == "2025-04-15"
        assert job.created_at.isoformat() == "2025-03-01T14:30:00"
        assert job.external_source == "ordering-portal"

        entry = test_db.query(JobActivity).filter(JobActivity.action == "WEBHOOK_CREATE").one()
        assert entry.changed_by == WEBHOOK_ACTOR
        assert entry.new_value == "ext-5521"

    def test_second_delivery_updates_in_place(self, test_db, customer):
        first = process_portal_job(test_db, PortalJobPayload(**portal_payload()))
        second = process_portal_job(
            test_db,
            PortalJobPayload(**portal_payload(status="COMPLETED", specs={"sellPrice": 950.0})),
        )

        assert not second.created
        assert second.job.id == first.job.id
        assert second.job.job_no == "J-1001"
        assert second.job.status == "PAID"
        assert second.job.sell_price == Decimal("950.00")
        assert test_db.query(Job).count() == 1
        entry = (
            test_db.query(JobActivity)
            .filter(JobActivity.action == "WEBHOOK_UPDATE", JobActivity.field == "status")
            .one()
        )
        assert (entry.old_value, entry.new_value) == ("ACTIVE", "PAID")

    def test_update_audits_each_changed_field(self, test_db, customer):
        process_portal_job(test_db, PortalJobPayload(**portal_payload()))
        second = process_portal_job(
            test_db,
            PortalJobPayload(**portal_payload(
                quantity=20000,
                specs={"sellPrice": 950.0, "paperSource": "BRADFORD", "stock": "100# gloss"},
            )),
        )

        entries = {
            entry.field: entry
            for entry in test_db.query(JobActivity).filter(JobActivity.action == "WEBHOOK_UPDATE").all()
        }
        assert set(entries) == {"quantity", "sell_price"}
        assert (entries["quantity"].old_value, entries["quantity"].new_value) == ("10000", "20000")
        assert (entries["sell_price"].old_value, entries["sell_price"].new_value) == ("900.00", "950.00")
        assert all(entry.changed_by == WEBHOOK_ACTOR for entry in entries.values())

        test_db.expire_all()
        split = test_db.query(ProfitSplit).filter(ProfitSplit.job_id == second.job.id).one()
        assert split.sell_price == Decimal("950.00")

    def test_customer_matched_case_insensitively(self, test_db, customer):
        process_portal_job(test_db, PortalJobPayload(**portal_payload(companyName="ACME mailers ")))

        assert test_db.query(Company).count() == 1

    def test_unknown_customer_is_created(self, test_db):
        result = process_portal_job(test_db, PortalJobPayload(**portal_payload(companyName="Harbor Dental")))

        company = test_db.get(Company, result.job.customer_id)
        assert company.name == "Harbor Dental"
        assert company.type == "CUSTOMER"

    def test_bad_timestamp_rolls_back(self, test_db):
        with pytest.raises(InvalidInputError):
            process_portal_job(test_db, PortalJobPayload(**portal_payload(createdAt="yesterday")))

        assert test_db.query(Job).count() == 0
        assert test_db.query(Company).count() == 0


class TestWebhookEndpoint:
    """Tests for POST /v1/webhooks/jobs."""

    def test_missing_secret_is_401(self, client_with_db, webhook_secret):
        response = client_with_db.post("/v1/webhooks/jobs", json=portal_payload())

        assert response.status_code == 401
        assert response.json()["detail"]["code"] == "UNAUTHORIZED"

    def test_wrong_secret_is_401(self, client_with_db, webhook_secret):
        response = client_with_db.post(
            "/v1/webhooks/jobs", json=portal_payload(), headers={"X-Webhook-Secret": "not-it"}
        )
        assert response.status_code == 401

    def test_unconfigured_secret_is_401(self, client_with_db, monkeypatch):
        monkeypatch.setattr("printbroker.config.settings.portal_webhook_secret", None)

        response = client_with_db.post(
            "/v1/webhooks/jobs", json=portal_payload(), headers={"X-Webhook-Secret": "anything"}
        )
        assert response.status_code == 401

    def test_create_then_update(self, client_with_db, customer, webhook_secret):
        headers = {"X-Webhook-Secret": webhook_secret}

        created = client_with_db.post("/v1/webhooks/jobs", json=portal_payload(), headers=headers)
        assert created.status_code == 201
        body = created.json()
        assert body["action"] == "created"
        assert body["jobNo"] == "J-1001"
        assert body["baseJobId"] == "FJ-3001"
        assert body["pathway"] == "P2"

        updated = client_with_db.post(
            "/v1/webhooks/jobs", json=portal_payload(status="CANCELLED"), headers=headers
        )
        assert updated.status_code == 200
        assert updated.json()["action"] == "updated"
        assert updated.json()["jobId"] == body["jobId"]

        detail = client_with_db.get(f"/v1/jobs/{body['jobId']}").json()
        assert detail["status"] == "CANCELLED"
        assert detail["external_job_id"] == "ext-5521"

    def test_malformed_payload_is_422(self, client_with_db, webhook_secret):
        response = client_with_db.post(
            "/v1/webhooks/jobs", json={"jobNo": "X"}, headers={"X-Webhook-Secret": webhook_secret}
        )
        assert response.status_code == 422

    def test_health_reports_configuration(self, client, webhook_secret):
        data = client.get("/v1/webhooks/health").json()

        assert data["status"] == "ok"
        assert data["configured"] is True
