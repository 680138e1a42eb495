"""Tests for job creation, cost order generation and the integrity check."""

import threading
from datetime import datetime
from decimal import Decimal

import pytest

from printbroker.models import GlobalSequence, Job, JobActivity, ProfitSplit, PurchaseOrder
from printbroker.schemas.job import JobComponentCreate, JobCreateRequest
from printbroker.services.errors import DataIntegrityError, InvalidInputError
from printbroker.services.job_creation_service import (
    can_generate_cost_order,
    create_job,
    create_jobs_batch,
    reprice_cost_orders,
    validate_pathway_fields,
)


def _request(customer_id, **overrides):
    data = dict(
        title="Spring self-mailer",
        customer_id=customer_id,
        quantity=10000,
        sell_price=Decimal("900.00"),
        size_name="7 1/4 x 16 3/8",
        paper_source="SELF_SUPPLIED",
        routing_type="PARTNER_INTERMEDIARY",
        job_meta_type="MAILING",
        mail_format="SELF_MAILER",
    )
    data.update(overrides)
    return JobCreateRequest(**data)


class TestCanGenerateCostOrder:
    """Tests for the cost order predicate."""

    def test_valid(self):
        assert can_generate_cost_order(10000, "7 1/4 x 16 3/8", Decimal("900")) == (True, None)

    def test_missing_quantity(self):
        assert can_generate_cost_order(0, "7 1/4 x 16 3/8", 900) == (False, "Missing or invalid quantity")

    def test_nonstandard_size(self):
        assert can_generate_cost_order(10000, "5 x 7", 900) == (False, "Invalid or missing standard size")
        assert can_generate_cost_order(10000, None, 900) == (False, "Invalid or missing standard size")

    def test_missing_sell_price(self):
        assert can_generate_cost_order(10000, "6 x 9", 0) == (False, "Missing or invalid sell price")
        assert can_generate_cost_order(10000, "6 x 9", None) == (False, "Missing or invalid sell price")


class TestCreateJob:
    """Tests for create_job."""

    def test_issues_identifiers_and_pathway(self, test_db, customer):
        result = create_job(test_db, _request(customer.id))

        assert result.job_no == "J-1001"
        assert result.base_job_id == "MS-3001"
        assert result.pathway == "P1"
        job = test_db.get(Job, result.job.id)
        assert job.master_seq == 3001
        assert job.job_type_code == "MS"
        assert job.source == "MANUAL"

    def test_partner_job_gets_cost_orders(self, test_db, customer):
        result = create_job(test_db, _request(customer.id))

        assert result.cost_orders_created
        pos = {po.po_number: po for po in result.job.purchase_orders}
        partner_po = pos["PO-J-1001-BP"]
        assert partner_po.origin_company_id == "broker"
        assert partner_po.target_company_id == "partner"
        assert partner_po.buy_cost == Decimal("529.83")
        assert partner_po.paper_cost == Decimal("154.60")
        assert partner_po.paper_markup == Decimal("27.83")
        manufacturer_po = pos["PO-J-1001-PM"]
        assert manufacturer_po.origin_company_id == "partner"
        assert manufacturer_po.buy_cost == Decimal("347.40")
        assert manufacturer_po.mfg_cost == Decimal("347.40")

    def test_profit_split_cached_in_same_transaction(self, test_db, customer):
        result = create_job(test_db, _request(customer.id))

        split = test_db.query(ProfitSplit).filter(ProfitSplit.job_id == result.job.id).one()
        assert split.total_cost == Decimal("529.83")
        assert split.gross_margin == Decimal("370.17")
        assert split.partner_share == Decimal("212.92")
        assert split.broker_share == Decimal("185.08")

    def test_unpriceable_job_skips_cost_orders(self, test_db, customer):
        result = create_job(test_db, _request(customer.id, size_name="5 x 7"))

        assert not result.cost_orders_created
        assert result.cost_orders_skipped_reason == "Invalid or missing standard size"
        assert test_db.query(PurchaseOrder).count() == 0

    def test_vendor_routed_job_has_no_cost_orders(self, test_db, customer, vendor):
        result = create_job(test_db, _request(customer.id, routing_type="THIRD_PARTY_VENDOR", vendor_id=vendor.id))

        assert result.pathway == "P2"
        assert result.cost_orders_skipped_reason == "Job is not routed through the partner"

    def test_multi_vendor_components_are_p3(self, test_db, customer, vendor, second_vendor):
        components = [
            JobComponentCreate(name="Envelope", owner="VENDOR", vendor_id=vendor.id),
            JobComponentCreate(name="Letter", owner="VENDOR", vendor_id=second_vendor.id),
        ]
        result = create_job(
            test_db,
            _request(customer.id, routing_type="THIRD_PARTY_VENDOR", mail_format="ENVELOPE", envelope_components=2,
                     components=components),
        )

        assert result.pathway == "P3"
        assert result.base_job_id == "ME2-3001"
        assert result.job.vendor_count == 2
        assert [c.name for c in result.job.components] == ["Envelope", "Letter"]

    def test_unknown_customer_rejected_before_numbering(self, test_db, customer):
        with pytest.raises(InvalidInputError):
            create_job(test_db, _request("missing-customer"))

        assert test_db.query(Job).count() == 0
        assert test_db.query(GlobalSequence).count() == 0

    def test_unknown_component_vendor_rejected(self, test_db, customer):
        components = [JobComponentCreate(name="Envelope", owner="VENDOR", vendor_id="missing-vendor")]
        with pytest.raises(InvalidInputError):
            create_job(test_db, _request(customer.id, components=components))

    def test_concurrent_creation_issues_unique_numbers(self, session_factory, customer):
        results = []
        errors = []
        lock = threading.Lock()
        barrier = threading.Barrier(10)

        def worker():
            db = session_factory()
            try:
                barrier.wait()
                result = create_job(db, _request(customer.id))
                with lock:
                    results.append((result.job_no, result.base_job_id))
            except Exception as e:
                with lock:
                    errors.append(e)
            finally:
                db.close()

        threads = [threading.Thread(target=worker) for _ in range(10)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert sorted(no for no, _ in results) == [f"J-{n}" for n in range(1001, 1011)]
        assert len({base for _, base in results}) == 10


class TestCreateJobsBatch:
    """Tests for create_jobs_batch."""

    def test_numbers_are_contiguous(self, test_db, customer):
        results = create_jobs_batch(test_db, [_request(customer.id, title=f"Drop {n}") for n in range(3)])

        assert [r.job_no for r in results] == ["J-1001", "J-1002", "J-1003"]
        assert [r.base_job_id for r in results] == ["MS-3001", "MS-3002", "MS-3003"]
        assert all(r.job.source == "IMPORT" for r in results)

    def test_failure_rolls_back_whole_batch(self, test_db, customer):
        items = [_request(customer.id), _request(customer.id), _request("missing-customer")]

        with pytest.raises(InvalidInputError):
            create_jobs_batch(test_db, items)

        assert test_db.query(Job).count() == 0
        assert test_db.query(PurchaseOrder).count() == 0
        assert test_db.query(ProfitSplit).count() == 0

    def test_numbers_continue_after_rolled_back_batch(self, test_db, customer):
        with pytest.raises(InvalidInputError):
            create_jobs_batch(test_db, [_request(customer.id), _request("missing-customer")])

        result = create_job(test_db, _request(customer.id))
        assert result.job_no == "J-1001"

    def test_empty_batch_creates_nothing(self, test_db, customer):
        assert create_jobs_batch(test_db, []) == []
        assert test_db.query(Job).count() == 0


class TestRepriceCostOrders:
    """Tests for reprice_cost_orders."""

    def test_paper_source_change_updates_generated_orders_only(self, test_db, customer):
        job = create_job(test_db, _request(customer.id)).job
        job.purchase_orders.append(PurchaseOrder(
            po_number="PO-J-1001-3",
            origin_company_id="partner",
            target_company_id="manufacturer",
            buy_cost=Decimal("12.00"),
        ))
        job.paper_source = "CUSTOMER_SUPPLIED"

        changed = reprice_cost_orders(test_db, job, changed_by="ops@broker")

        orders = {po.po_number: po for po in job.purchase_orders}
        assert "PO-J-1001-BP" in [po.po_number for po in changed]
        assert orders["PO-J-1001-BP"].paper_cost == 0
        assert orders["PO-J-1001-3"].buy_cost == Decimal("12.00")
        entry = test_db.query(JobActivity).filter(JobActivity.field == "PO-J-1001-BP.paper_cost").one()
        assert entry.action == "PO_UPDATED"
        assert entry.changed_by == "ops@broker"

    def test_unpriceable_job_is_left_alone(self, test_db, customer):
        job = create_job(test_db, _request(customer.id)).job
        job.size_name = "not a real size"

        assert reprice_cost_orders(test_db, job) == []

    def test_non_partner_job_is_skipped(self, test_db, customer, vendor):
        job = create_job(test_db, _request(customer.id, routing_type="THIRD_PARTY_VENDOR", vendor_id=vendor.id)).job

        assert reprice_cost_orders(test_db, job) == []


class TestValidatePathwayFields:
    """Tests for the post-cutover integrity check."""

    def _job(self, created_at, base_job_id=None, pathway=None):
        return Job(id="job-1", job_no="J-0999", created_at=created_at, base_job_id=base_job_id, pathway=pathway)

    def test_legacy_job_without_fields_is_allowed(self):
        validate_pathway_fields(self._job(datetime(2023, 6, 1)))

    def test_post_cutover_job_with_fields_is_valid(self):
        validate_pathway_fields(self._job(datetime(2024, 3, 1), "MS-3001", "P1"))

    def test_post_cutover_job_missing_fields_raises(self, caplog):
        with pytest.raises(DataIntegrityError) as exc_info:
            validate_pathway_fields(self._job(datetime(2024, 3, 1), base_job_id="MS-3001"))

        assert exc_info.value.details == {"job_id": "job-1", "missing": ["pathway"]}
        assert "missing pathway" in caplog.text
