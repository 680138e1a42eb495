"""Tests for purchase order changes and their effect on vendor count and the profit split."""

from decimal import Decimal

import pytest

from printbroker.models import JobActivity, ProfitSplit
from printbroker.schemas.job import JobCreateRequest
from printbroker.schemas.purchase_order import PurchaseOrderCreate, PurchaseOrderUpdate
from printbroker.services.errors import InvalidInputError, JobNotFoundError
from printbroker.services.job_creation_service import create_job
from printbroker.services.purchase_order_service import (
    PurchaseOrderNotFoundError,
    create_purchase_order,
    delete_purchase_order,
    list_purchase_orders,
    update_purchase_order,
)

from conftest import partner_job_payload


@pytest.fixture
def vendor_job(test_db, customer, vendor):
    request = JobCreateRequest(
        title="Postcard drop",
        customer_id=customer.id,
        vendor_id=vendor.id,
        quantity=5000,
        sell_price=Decimal("900.00"),
        routing_type="THIRD_PARTY_VENDOR",
        job_meta_type="MAILING",
        mail_format="SELF_MAILER",
    )
    return create_job(test_db, request).job


def _vendor_po(vendor_id, buy_cost="400.00"):
    return PurchaseOrderCreate(origin_company_id="broker", target_vendor_id=vendor_id, buy_cost=Decimal(buy_cost))


def _cached_split(db, job_id):
    db.expire_all()
    return db.query(ProfitSplit).filter(ProfitSplit.job_id == job_id).one()


class TestCreatePurchaseOrder:
    """Tests for create_purchase_order."""

    def test_vendor_po_gets_execution_id(self, test_db, vendor_job, vendor):
        first = create_purchase_order(test_db, vendor_job.id, _vendor_po(vendor.id))
        second = create_purchase_order(test_db, vendor_job.id, _vendor_po(vendor.id, "25.00"))

        assert first.po_number == "MS-3001-NSP.1"
        assert second.po_number == "MS-3001-NSP.2"

    def test_internal_po_numbered_after_existing(self, test_db, customer):
        job = create_job(test_db, JobCreateRequest(**partner_job_payload(customer.id))).job

        po = create_purchase_order(
            test_db,
            job.id,
            PurchaseOrderCreate(origin_company_id="partner", target_company_id="manufacturer", buy_cost=Decimal("12")),
        )

        assert po.po_number == "PO-J-1001-3"

    def test_explicit_po_number_is_kept(self, test_db, vendor_job, vendor):
        data = _vendor_po(vendor.id)
        data.po_number = "CUSTOM-77"

        assert create_purchase_order(test_db, vendor_job.id, data).po_number == "CUSTOM-77"

    def test_refreshes_profit_split_cache(self, test_db, vendor_job, vendor):
        create_purchase_order(test_db, vendor_job.id, _vendor_po(vendor.id))

        split = _cached_split(test_db, vendor_job.id)
        assert split.total_cost == Decimal("400.00")
        assert split.gross_margin == Decimal("500.00")
        assert split.partner_share + split.broker_share == Decimal("500.00")

    def test_second_vendor_changes_count_but_not_pathway(self, test_db, vendor_job, vendor, second_vendor, caplog):
        create_purchase_order(test_db, vendor_job.id, _vendor_po(vendor.id))
        create_purchase_order(test_db, vendor_job.id, _vendor_po(second_vendor.id, "60.00"))

        test_db.expire_all()
        assert vendor_job.vendor_count == 2
        assert vendor_job.pathway == "P2"
        assert "stored as P2" in caplog.text

    def test_audit_entry(self, test_db, vendor_job, vendor):
        po = create_purchase_order(test_db, vendor_job.id, _vendor_po(vendor.id), changed_by="ops@broker")

        entry = test_db.query(JobActivity).filter(JobActivity.action == "PO_CREATED").one()
        assert entry.new_value == po.po_number
        assert entry.changed_by == "ops@broker"

    def test_unknown_vendor(self, test_db, vendor_job):
        with pytest.raises(InvalidInputError):
            create_purchase_order(test_db, vendor_job.id, _vendor_po("missing-vendor"))

    def test_unknown_job(self, test_db, vendor):
        with pytest.raises(JobNotFoundError):
            create_purchase_order(test_db, "missing", _vendor_po(vendor.id))

    def test_target_is_required(self):
        with pytest.raises(ValueError):
            PurchaseOrderCreate(origin_company_id="broker")


class TestUpdateAndDelete:
    """Tests for update_purchase_order and delete_purchase_order."""

    def test_cost_change_is_audited_and_cached(self, test_db, vendor_job, vendor):
        po = create_purchase_order(test_db, vendor_job.id, _vendor_po(vendor.id))

        update_purchase_order(test_db, vendor_job.id, po.id, PurchaseOrderUpdate(buy_cost=Decimal("450.00")))

        entry = test_db.query(JobActivity).filter(JobActivity.action == "PO_UPDATED").one()
        assert entry.field == "MS-3001-NSP.1.buy_cost"
        assert entry.old_value == "400.00"
        assert entry.new_value == "450.00"
        assert _cached_split(test_db, vendor_job.id).total_cost == Decimal("450.00")

    def test_status_change_is_not_a_cost_entry(self, test_db, vendor_job, vendor):
        po = create_purchase_order(test_db, vendor_job.id, _vendor_po(vendor.id))

        updated = update_purchase_order(test_db, vendor_job.id, po.id, PurchaseOrderUpdate(status="SENT"))

        assert updated.status == "SENT"
        assert test_db.query(JobActivity).filter(JobActivity.action == "PO_UPDATED").count() == 0

    def test_delete_recomputes(self, test_db, vendor_job, vendor, second_vendor):
        create_purchase_order(test_db, vendor_job.id, _vendor_po(vendor.id))
        extra = create_purchase_order(test_db, vendor_job.id, _vendor_po(second_vendor.id, "60.00"))

        delete_purchase_order(test_db, vendor_job.id, extra.id)

        assert [po.po_number for po in list_purchase_orders(test_db, vendor_job.id)] == ["MS-3001-NSP.1"]
        test_db.expire_all()
        assert vendor_job.vendor_count == 1
        assert _cached_split(test_db, vendor_job.id).total_cost == Decimal("400.00")
        assert test_db.query(JobActivity).filter(JobActivity.action == "PO_DELETED").count() == 1

    def test_vendor_change_rejected_on_execution_id(self, test_db, vendor_job, vendor, second_vendor):
        po = create_purchase_order(test_db, vendor_job.id, _vendor_po(vendor.id))

        with pytest.raises(InvalidInputError) as exc_info:
            update_purchase_order(
                test_db, vendor_job.id, po.id, PurchaseOrderUpdate(target_vendor_id=second_vendor.id)
            )

        assert exc_info.value.details["existing_execution_id"] == "MS-3001-NSP.1"
        test_db.expire_all()
        assert list_purchase_orders(test_db, vendor_job.id)[0].target_vendor_id == vendor.id

    def test_vendor_change_allowed_without_execution_id(self, test_db, vendor_job, vendor, second_vendor):
        data = _vendor_po(vendor.id)
        data.po_number = "CUSTOM-77"
        po = create_purchase_order(test_db, vendor_job.id, data)

        updated = update_purchase_order(
            test_db, vendor_job.id, po.id, PurchaseOrderUpdate(target_vendor_id=second_vendor.id)
        )

        assert updated.target_vendor_id == second_vendor.id

    def test_unknown_po(self, test_db, vendor_job):
        with pytest.raises(PurchaseOrderNotFoundError):
            update_purchase_order(test_db, vendor_job.id, "missing-po", PurchaseOrderUpdate(status="SENT"))


class TestPurchaseOrderEndpoints:
    """Tests for the purchase order API."""

    def test_create_list_update_delete(self, client_with_db, customer, vendor):
        job = client_with_db.post("/v1/jobs", json=partner_job_payload(customer.id, routing_type="THIRD_PARTY_VENDOR",
                                                                      vendor_id=vendor.id)).json()
        url = f"/v1/jobs/{job['id']}/purchase-orders"

        created = client_with_db.post(
            url,
            json={"origin_company_id": "broker", "target_vendor_id": vendor.id, "buy_cost": "400.00"},
            headers={"X-Actor": "ops@broker"},
        )
        assert created.status_code == 201
        po = created.json()
        assert po["po_number"] == "MS-3001-NSP.1"
        assert po["buy_cost"] == 400.0

        listed = client_with_db.get(url)
        assert [p["id"] for p in listed.json()] == [po["id"]]

        patched = client_with_db.patch(f"{url}/{po['id']}", json={"buy_cost": "410.50"})
        assert patched.status_code == 200
        assert patched.json()["buy_cost"] == 410.5

        detail = client_with_db.get(f"/v1/jobs/{job['id']}").json()
        assert detail["profit_split"]["total_cost"] == 410.5
        assert detail["profit_split"]["gross_margin"] == 489.5

        assert client_with_db.delete(f"{url}/{po['id']}").status_code == 204
        assert client_with_db.get(url).json() == []

    def test_missing_po_is_404(self, client_with_db, customer):
        job = client_with_db.post("/v1/jobs", json=partner_job_payload(customer.id)).json()

        response = client_with_db.delete(f"/v1/jobs/{job['id']}/purchase-orders/missing-po")

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "NOT_FOUND"

    def test_unknown_vendor_is_400(self, client_with_db, customer):
        job = client_with_db.post("/v1/jobs", json=partner_job_payload(customer.id)).json()

        response = client_with_db.post(
            f"/v1/jobs/{job['id']}/purchase-orders",
            json={"origin_company_id": "broker", "target_vendor_id": "missing-vendor"},
        )

        assert response.status_code == 400
        assert response.json()["detail"]["field"] == "target_vendor_id"

    def test_vendor_change_on_execution_id_is_400(self, client_with_db, customer, vendor, second_vendor):
        job = client_with_db.post("/v1/jobs", json=partner_job_payload(customer.id, routing_type="THIRD_PARTY_VENDOR",
                                                                      vendor_id=vendor.id)).json()
        url = f"/v1/jobs/{job['id']}/purchase-orders"
        po = client_with_db.post(
            url, json={"origin_company_id": "broker", "target_vendor_id": vendor.id, "buy_cost": "400.00"}
        ).json()

        response = client_with_db.patch(f"{url}/{po['id']}", json={"target_vendor_id": second_vendor.id})

        assert response.status_code == 400
        assert response.json()["detail"]["existing_execution_id"] == "MS-3001-NSP.1"
