"""
Tests for the procurement status flow and procurement statistics
"""
from datetime import date

import pytest

from fieldops.errors import InvalidTransitionError
from fieldops.models.models import AuditLog, ProcurementLog
from fieldops.schemas.procurement import ProcurementLogCreate, ProcurementLogUpdate
from fieldops.services import procurement as svc


def po_payload(created_by, **overrides):
    data = {
        "log_type": "Purchase Order (PO)",
        "document_id": "PO-1001",
        "supplier": "Gulf Cables",
        "date": date(2025, 5, 1),
        "amount": 2500.0,
        "created_by": created_by,
    }
    data.update(overrides)
    return ProcurementLogCreate(**data)


class TestStatusFlow:

    def test_happy_path_to_paid(self, db, admin):
        lid = svc.create_procurement_log(db, po_payload(admin.id))
        for target in ("Approved", "Ordered", "Delivered", "Paid"):
            svc.transition_procurement_status(db, lid, target, actor_id=admin.id)
        assert db.get(ProcurementLog, lid).status == "Paid"

    def test_skipping_a_step_is_refused(self, db, admin):
        lid = svc.create_procurement_log(db, po_payload(admin.id))
        with pytest.raises(InvalidTransitionError):
            svc.transition_procurement_status(db, lid, "Delivered")
        assert db.get(ProcurementLog, lid).status == "Pending"

    def test_cancel_from_ordered(self, db, admin):
        lid = svc.create_procurement_log(db, po_payload(admin.id, status="Ordered"))
        svc.transition_procurement_status(db, lid, "Cancelled")
        assert db.get(ProcurementLog, lid).status == "Cancelled"

    @pytest.mark.parametrize("terminal", ["Paid", "Cancelled"])
    def test_terminal_states_are_final(self, db, admin, terminal):
        lid = svc.create_procurement_log(db, po_payload(admin.id, status=terminal))
        with pytest.raises(InvalidTransitionError):
            svc.transition_procurement_status(db, lid, "Pending")

    def test_generic_update_checks_status(self, db, admin):
        lid = svc.create_procurement_log(db, po_payload(admin.id))
        with pytest.raises(InvalidTransitionError):
            svc.update_procurement_log(db, lid, ProcurementLogUpdate(status="Paid", notes="skip"))
        db.expire_all()
        log = db.get(ProcurementLog, lid)
        assert (log.status, log.notes) == ("Pending", None)

        svc.update_procurement_log(db, lid, ProcurementLogUpdate(status="Approved", notes="ok"))
        assert db.get(ProcurementLog, lid).status == "Approved"

    def test_same_status_is_a_no_op(self, db, admin):
        lid = svc.create_procurement_log(db, po_payload(admin.id))
        audits = db.query(AuditLog).count()
        svc.transition_procurement_status(db, lid, "Pending")
        assert db.get(ProcurementLog, lid).status == "Pending"
        assert db.query(AuditLog).count() == audits


class TestProcurementReads:

    def test_list_sorted_by_date_descending(self, db, admin, make_project):
        project = make_project("Fiber Ring")
        old = svc.create_procurement_log(db, po_payload(admin.id, date=date(2025, 1, 10)))
        new = svc.create_procurement_log(db, po_payload(admin.id, date=date(2025, 3, 10), related_project_id=project.id))
        mid = svc.create_procurement_log(db, po_payload(admin.id, date=date(2025, 2, 10), supplier="Desert Optics"))

        logs = svc.list_procurement_logs(db)
        assert [row["id"] for row in logs] == [new, mid, old]
        assert logs[0]["project_name"] == "Fiber Ring"
        assert logs[1]["project_name"] is None
        assert logs[0]["creator_name"] == "Site Admin"

        assert [row["id"] for row in svc.list_procurement_logs(db, supplier="Gulf Cables")] == [new, old]

    def test_suppliers_are_distinct_and_sorted(self, db, admin):
        svc.create_procurement_log(db, po_payload(admin.id, supplier="Zeta Supply"))
        svc.create_procurement_log(db, po_payload(admin.id, supplier="Alpha Metals"))
        svc.create_procurement_log(db, po_payload(admin.id, supplier="Zeta Supply"))
        assert svc.list_suppliers(db) == ["Alpha Metals", "Zeta Supply"]

    def test_stats(self, db, admin):
        svc.create_procurement_log(db, po_payload(admin.id, amount=100.0))
        svc.create_procurement_log(db, po_payload(admin.id, amount=None, status="Approved"))
        svc.create_procurement_log(db, po_payload(admin.id, amount=50.5, status="Paid", log_type="Invoice"))
        svc.create_procurement_log(db, po_payload(admin.id, amount=20.0, status="Cancelled"))

        stats = svc.get_procurement_stats(db)
        assert stats["total_logs"] == 4
        assert sum(stats["by_status"].values()) == stats["total_logs"]
        assert stats["by_status"] == {"Pending": 1, "Approved": 1, "Paid": 1, "Cancelled": 1}
        assert stats["by_type"] == {"Purchase Order (PO)": 3, "Invoice": 1}
        assert stats["total_amount"] == pytest.approx(170.5)
        assert stats["pending_amount"] == pytest.approx(100.0)

    def test_empty_stats(self, db):
        assert svc.get_procurement_stats(db) == {
            "total_logs": 0,
            "by_status": {},
            "by_type": {},
            "total_amount": 0.0,
            "pending_amount": 0.0,
        }
