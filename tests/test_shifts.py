"""
Tests for shift scheduling reads and statistics
"""
import uuid
from datetime import date, time

import pytest

from fieldops.errors import InvalidFieldError, NotFoundError
from fieldops.models.models import Shift
from fieldops.schemas.shifts import ShiftCreate, ShiftUpdate
from fieldops.services import shifts as svc


def shift_payload(user_id, day, start=time(7, 0), **overrides):
    data = {
        "user_id": user_id,
        "shift_type": "Morning",
        "date": day,
        "start_time": start,
        "end_time": time(15, 0),
    }
    data.update(overrides)
    return ShiftCreate(**data)


class TestShiftWrites:

    def test_update_and_missing(self, db, staff, admin):
        sid = svc.create_shift(db, shift_payload(staff.id, date(2025, 6, 2)), actor_id=admin.id)
        svc.update_shift(db, sid, ShiftUpdate(status="In Progress", notes="On site"))
        shift = db.get(Shift, sid)
        assert (shift.status, shift.notes, shift.created_by) == ("In Progress", "On site", admin.id)

        with pytest.raises(NotFoundError):
            svc.update_shift(db, uuid.uuid4(), ShiftUpdate(notes="x"))
        with pytest.raises(NotFoundError):
            svc.delete_shift(db, uuid.uuid4())

    def test_required_field_cannot_be_cleared(self, db, staff, admin):
        sid = svc.create_shift(db, shift_payload(staff.id, date(2025, 6, 2)), actor_id=admin.id)
        with pytest.raises(InvalidFieldError):
            svc.update_shift(db, sid, ShiftUpdate(shift_type=None))


class TestShiftReads:

    def test_list_orders_by_date_then_start(self, db, staff, manager, admin):
        late = svc.create_shift(db, shift_payload(staff.id, date(2025, 6, 2), start=time(14, 0)), actor_id=admin.id)
        early = svc.create_shift(db, shift_payload(staff.id, date(2025, 6, 2), start=time(6, 0)), actor_id=admin.id)
        first = svc.create_shift(db, shift_payload(manager.id, date(2025, 6, 1)), actor_id=admin.id)

        assert [s["id"] for s in svc.list_shifts(db)] == [first, early, late]
        assert [s["id"] for s in svc.list_shifts(db, user_id=staff.id)] == [early, late]

    def test_status_filter_applies_after_index(self, db, staff, admin, make_project):
        project = make_project("Tower B")
        day = date(2025, 6, 3)
        done = svc.create_shift(db, shift_payload(staff.id, day, project_id=project.id, status="Completed"), actor_id=admin.id)
        svc.create_shift(db, shift_payload(staff.id, day, project_id=project.id), actor_id=admin.id)
        svc.create_shift(db, shift_payload(staff.id, date(2025, 6, 4), status="Completed"), actor_id=admin.id)

        rows = svc.list_shifts(db, date=day, project_id=project.id, status="Completed")
        assert [s["id"] for s in rows] == [done]
        assert rows[0]["project_name"] == "Tower B"
        assert rows[0]["user_name"] == "Alice Worker"
        assert rows[0]["user_role"] == "staff"

    def test_date_range(self, db, staff, admin, make_project):
        project = make_project("Tower B")
        ids = [
            svc.create_shift(db, shift_payload(staff.id, date(2025, 6, d), project_id=project.id), actor_id=admin.id)
            for d in (1, 5, 10)
        ]
        svc.create_shift(db, shift_payload(staff.id, date(2025, 6, 5)), actor_id=admin.id)

        rows = svc.get_shifts_by_date_range(db, date(2025, 6, 1), date(2025, 6, 5), project_id=project.id)
        assert [s["id"] for s in rows] == ids[:2]
        assert len(svc.get_shifts_by_date_range(db, date(2025, 6, 5), date(2025, 6, 5))) == 2

    def test_inverted_range(self, db):
        with pytest.raises(InvalidFieldError):
            svc.get_shifts_by_date_range(db, date(2025, 6, 5), date(2025, 6, 1))

    def test_unknown_worker(self, db, admin):
        sid = svc.create_shift(db, shift_payload(uuid.uuid4(), date(2025, 6, 2)), actor_id=admin.id)
        view = svc.get_shift(db, sid)
        assert view["user_name"] == "Unknown"
        assert view["user_role"] == "Unknown"
        assert view["project_name"] is None

    def test_stats(self, db, staff, admin, make_project):
        project = make_project("Tower B")
        day = date(2025, 6, 2)
        svc.create_shift(db, shift_payload(staff.id, day, project_id=project.id), actor_id=admin.id)
        svc.create_shift(db, shift_payload(staff.id, day, shift_type="Night", status="Cancelled"), actor_id=admin.id)
        svc.create_shift(db, shift_payload(staff.id, date(2025, 6, 3), status="Completed"), actor_id=admin.id)

        assert svc.get_shift_stats(db) == {
            "total": 3,
            "scheduled": 1,
            "in_progress": 0,
            "completed": 1,
            "cancelled": 1,
            "by_shift_type": {"Morning": 2, "Night": 1},
        }
        assert svc.get_shift_stats(db, date=day)["total"] == 2
        assert svc.get_shift_stats(db, date=day, project_id=project.id)["scheduled"] == 1
