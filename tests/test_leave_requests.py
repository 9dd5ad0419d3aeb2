"""
Tests for the leave request approval flow and its enrichment
"""
import uuid
from datetime import date

import pytest
from pydantic import ValidationError

from fieldops.errors import InvalidFieldError, InvalidTransitionError, NotFoundError
from fieldops.models.models import AuditLog, LeaveRequest, User
from fieldops.schemas.leave_requests import LeaveRequestCreate, LeaveRequestUpdate
from fieldops.services import leave_requests as svc
from fieldops.services.crud import row_to_dict


def leave_payload(requested_by=None, **overrides):
    data = {
        "requested_by": requested_by,
        "employee_name": "Alice Worker",
        "request_type": "Annual",
        "start_date": "2025-01-01",
        "end_date": "2025-01-05",
        "reason": "Family visit",
    }
    data.update(overrides)
    return LeaveRequestCreate(**data)


class TestApprovalFlow:

    def test_create_approve_and_read_back(self, db, staff, manager):
        rid = svc.create_leave_request(db, leave_payload(staff.id), actor_id=staff.id)
        created = svc.get_leave_request(db, rid)
        assert created["status"] == "Pending"
        assert created["approved_by"] is None
        assert created["approver_name"] is None

        assert svc.approve_leave_request(db, rid, manager.id) == rid

        view = svc.get_leave_request(db, rid)
        assert view["status"] == "Approved"
        assert view["approved_by"] == manager.id
        assert view["requester_name"] == "Alice Worker"
        assert view["approver_name"] == "Bob Manager"

    def test_reject_records_approver(self, db, staff, manager):
        rid = svc.create_leave_request(db, leave_payload(staff.id))
        svc.reject_leave_request(db, rid, manager.id)
        req = db.get(LeaveRequest, rid)
        assert (req.status, req.approved_by) == ("Rejected", manager.id)

    def test_repeating_a_decision_is_idempotent(self, db, staff, manager, admin):
        rid = svc.create_leave_request(db, leave_payload(staff.id))
        svc.approve_leave_request(db, rid, manager.id)
        svc.approve_leave_request(db, rid, admin.id)
        req = db.get(LeaveRequest, rid)
        assert (req.status, req.approved_by) == ("Approved", admin.id)

    def test_decided_request_cannot_flip(self, db, staff, manager):
        rid = svc.create_leave_request(db, leave_payload(staff.id))
        svc.approve_leave_request(db, rid, manager.id)
        with pytest.raises(InvalidTransitionError):
            svc.reject_leave_request(db, rid, manager.id)
        assert db.get(LeaveRequest, rid).status == "Approved"

    def test_missing_request_fails_without_writing(self, db, manager):
        missing = uuid.uuid4()
        for op in (
            lambda: svc.approve_leave_request(db, missing, manager.id),
            lambda: svc.reject_leave_request(db, missing, manager.id),
            lambda: svc.update_leave_request(db, missing, LeaveRequestUpdate(reason="x")),
            lambda: svc.delete_leave_request(db, missing),
        ):
            with pytest.raises(NotFoundError):
                op()
        assert db.query(AuditLog).count() == 0
        assert db.query(LeaveRequest).count() == 0


class TestLeaveUpdates:

    def test_generic_update_ignores_status(self, db, staff):
        rid = svc.create_leave_request(db, leave_payload(staff.id))
        svc.update_leave_request(db, rid, LeaveRequestUpdate.model_validate({"status": "Approved", "reason": "Moved"}))
        req = db.get(LeaveRequest, rid)
        assert req.status == "Pending"
        assert req.reason == "Moved"

    def test_partial_update_leaves_other_fields(self, db, staff):
        rid = svc.create_leave_request(db, leave_payload(staff.id))
        before = row_to_dict(db.get(LeaveRequest, rid))
        svc.update_leave_request(db, rid, LeaveRequestUpdate(end_date=date(2025, 1, 7)))
        db.expire_all()
        after = row_to_dict(db.get(LeaveRequest, rid))
        assert after.pop("end_date") == date(2025, 1, 7)
        before.pop("end_date")
        assert after == before

    def test_update_cannot_invert_dates(self, db, staff):
        rid = svc.create_leave_request(db, leave_payload(staff.id))
        with pytest.raises(InvalidFieldError):
            svc.update_leave_request(db, rid, LeaveRequestUpdate(end_date=date(2024, 12, 1)))
        db.expire_all()
        assert db.get(LeaveRequest, rid).end_date == date(2025, 1, 5)

    def test_create_rejects_inverted_dates(self):
        with pytest.raises(ValidationError):
            leave_payload(uuid.uuid4(), start_date="2025-02-01", end_date="2025-01-01")

    def test_requester_defaults_to_actor(self, db, staff):
        rid = svc.create_leave_request(db, leave_payload(), actor_id=staff.id)
        assert db.get(LeaveRequest, rid).requested_by == staff.id

    def test_requester_required(self, db):
        with pytest.raises(InvalidFieldError):
            svc.create_leave_request(db, leave_payload())


class TestLeaveReads:

    def test_dangling_references_degrade(self, db, staff, make_user, make_project):
        colleague = make_user("Carl Swap")
        project = make_project("Tower B")
        rid = svc.create_leave_request(
            db, leave_payload(staff.id, shift_swap_with=colleague.id, project_id=project.id, request_type="Shift Change")
        )
        assert svc.get_leave_request(db, rid)["swap_with_name"] == "Carl Swap"

        db.delete(db.get(User, staff.id))
        db.delete(db.get(User, colleague.id))
        db.delete(project)
        db.commit()

        view = svc.get_leave_request(db, rid)
        assert view["requester_name"] == "Unknown"
        assert view["swap_with_name"] is None
        assert view["project_name"] is None

    def test_list_filters(self, db, staff, manager):
        a = svc.create_leave_request(db, leave_payload(staff.id))
        svc.create_leave_request(db, leave_payload(staff.id, request_type="Sick Leave"))
        c = svc.create_leave_request(db, leave_payload(manager.id))
        svc.approve_leave_request(db, c, manager.id)

        assert [r["id"] for r in svc.list_leave_requests(db, status="Pending", request_type="Annual")] == [a]
        assert {r["id"] for r in svc.list_leave_requests(db, request_type="Annual")} == {a, c}
        assert len(svc.list_leave_requests(db, requested_by=staff.id)) == 2

    def test_stats(self, db, staff, manager):
        a = svc.create_leave_request(db, leave_payload(staff.id))
        b = svc.create_leave_request(db, leave_payload(staff.id, request_type="Sick Leave"))
        svc.create_leave_request(db, leave_payload(staff.id))
        svc.approve_leave_request(db, a, manager.id)
        svc.reject_leave_request(db, b, manager.id)
        stats = svc.get_leave_request_stats(db)
        assert stats == {
            "total": 3,
            "pending": 1,
            "approved": 1,
            "rejected": 1,
            "by_type": {"Annual": 2, "Sick Leave": 1},
        }
        assert stats["pending"] + stats["approved"] + stats["rejected"] == stats["total"]
