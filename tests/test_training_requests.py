"""
Tests for training requests: approvals, completion and note merging
"""
import uuid

import pytest

from fieldops.errors import InvalidTransitionError, NotFoundError
from fieldops.models.models import TrainingRequest
from fieldops.schemas.training_requests import TrainingRequestCreate, TrainingRequestUpdate
from fieldops.services import training_requests as svc


def training_payload(requested_by, **overrides):
    data = {
        "training_type": "Fiber",
        "requested_by": requested_by,
        "employee_name": "Alice Worker",
        "department": "Operations",
        "training_title": "OTDR Testing",
        "justification": "New splicing crew",
        "estimated_cost": 1200.0,
    }
    data.update(overrides)
    return TrainingRequestCreate(**data)


class TestTrainingFlow:

    def test_complete_from_pending(self, db, staff):
        rid = svc.create_training_request(db, training_payload(staff.id))
        svc.complete_training_request(db, rid, notes="Passed")
        req = db.get(TrainingRequest, rid)
        assert req.status == "Completed"
        assert req.notes == "Passed"

    def test_notes_keep_previous_unless_supplied(self, db, staff, manager):
        rid = svc.create_training_request(db, training_payload(staff.id, notes="Budget ok"))
        svc.approve_training_request(db, rid, manager.id)
        assert db.get(TrainingRequest, rid).notes == "Budget ok"
        svc.complete_training_request(db, rid, notes="  ")
        assert db.get(TrainingRequest, rid).notes == "Budget ok"
        svc.complete_training_request(db, rid, notes="Certificate issued")
        assert db.get(TrainingRequest, rid).notes == "Certificate issued"

    def test_completed_cannot_be_approved_or_rejected(self, db, staff, manager):
        rid = svc.create_training_request(db, training_payload(staff.id))
        svc.complete_training_request(db, rid)
        with pytest.raises(InvalidTransitionError):
            svc.approve_training_request(db, rid, manager.id)
        with pytest.raises(InvalidTransitionError):
            svc.reject_training_request(db, rid, manager.id)

    def test_reject_with_notes(self, db, staff, manager):
        rid = svc.create_training_request(db, training_payload(staff.id))
        svc.reject_training_request(db, rid, manager.id, notes="Not this quarter")
        view = svc.get_training_request(db, rid)
        assert view["status"] == "Rejected"
        assert view["notes"] == "Not this quarter"
        assert view["approver_name"] == "Bob Manager"
        assert view["requester_name"] == "Alice Worker"

    def test_missing_request(self, db, manager):
        with pytest.raises(NotFoundError):
            svc.approve_training_request(db, uuid.uuid4(), manager.id)
        with pytest.raises(NotFoundError):
            svc.complete_training_request(db, uuid.uuid4())
        with pytest.raises(NotFoundError):
            svc.update_training_request(db, uuid.uuid4(), TrainingRequestUpdate(notes="x"))

    def test_update_clears_optional_cost(self, db, staff):
        rid = svc.create_training_request(db, training_payload(staff.id))
        svc.update_training_request(db, rid, TrainingRequestUpdate(estimated_cost=None))
        req = db.get(TrainingRequest, rid)
        assert req.estimated_cost is None
        assert req.training_title == "OTDR Testing"


class TestTrainingReads:

    def test_list_and_stats(self, db, staff, manager):
        a = svc.create_training_request(db, training_payload(staff.id))
        b = svc.create_training_request(db, training_payload(staff.id, training_type="Telecom"))
        c = svc.create_training_request(db, training_payload(manager.id, department="Engineering"))
        svc.create_training_request(db, training_payload(manager.id))
        svc.approve_training_request(db, a, manager.id)
        svc.reject_training_request(db, b, manager.id)
        svc.complete_training_request(db, c)

        assert [r["id"] for r in svc.list_training_requests(db, department="Engineering")] == [c]
        assert {r["id"] for r in svc.list_training_requests(db, training_type="Fiber", requested_by=staff.id)} == {a}

        stats = svc.get_training_request_stats(db)
        assert stats == {
            "total": 4,
            "pending": 1,
            "approved": 1,
            "rejected": 1,
            "completed": 1,
            "by_type": {"Fiber": 3, "Telecom": 1},
        }
