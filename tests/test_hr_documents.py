"""
Tests for HR documents: derived expiry status, expiring/expired queries and file handling
"""
import uuid
from datetime import date, timedelta

import pytest

from fieldops.errors import DuplicateKeyError, NotFoundError
from fieldops.models.models import FileObject, HRDocument
from fieldops.schemas.hr_documents import HRDocumentCreate, HRDocumentUpdate
from fieldops.services import hr_documents as svc


TODAY = date(2025, 6, 1)


def in_days(n):
    return (TODAY + timedelta(days=n)).isoformat()


def doc_payload(user_id, expiry_date=None, **overrides):
    data = {
        "user_id": user_id,
        "document_type": "Passport",
        "document_number": "P1234567",
        "expiry_date": expiry_date,
    }
    data.update(overrides)
    return HRDocumentCreate(**data)


class TestExpiryQueries:

    def test_document_expiring_in_ten_days(self, db, staff, admin, clock):
        did = svc.create_hr_document(db, doc_payload(staff.id, in_days(10)), actor_id=admin.id)

        assert [d["id"] for d in svc.get_expiring_documents(db, days=15, clock=clock)] == [did]
        assert svc.get_expiring_documents(db, days=5, clock=clock) == []
        assert svc.get_expired_documents(db, clock=clock) == []

        view = svc.get_hr_document(db, did, clock=clock)
        assert view["expiry"] == {"label": "Expires in 10d", "tier": "warning", "days_left": 10}

    def test_expiring_includes_today_and_sorts_soonest_first(self, db, staff, admin, clock):
        later = svc.create_hr_document(db, doc_payload(staff.id, in_days(20)), actor_id=admin.id)
        today = svc.create_hr_document(db, doc_payload(staff.id, in_days(0)), actor_id=admin.id)
        svc.create_hr_document(db, doc_payload(staff.id, in_days(-1)), actor_id=admin.id)
        svc.create_hr_document(db, doc_payload(staff.id, None), actor_id=admin.id)
        svc.create_hr_document(db, doc_payload(staff.id, "not a date"), actor_id=admin.id)

        assert [d["id"] for d in svc.get_expiring_documents(db, days=30, clock=clock)] == [today, later]

    def test_expired_sorted_most_overdue_first(self, db, staff, admin, clock):
        recent = svc.create_hr_document(db, doc_payload(staff.id, in_days(-2)), actor_id=admin.id)
        oldest = svc.create_hr_document(db, doc_payload(staff.id, in_days(-40)), actor_id=admin.id)
        expired = svc.get_expired_documents(db, clock=clock)
        assert [d["id"] for d in expired] == [oldest, recent]
        assert all(d["expiry"]["label"] == "Expired" for d in expired)

    def test_stats_buckets_cover_every_document(self, db, staff, admin, clock):
        for offset in (-5, 3, 25, 90):
            svc.create_hr_document(db, doc_payload(staff.id, in_days(offset)), actor_id=admin.id)
        svc.create_hr_document(db, doc_payload(staff.id, None, document_type="Medical Certificate"), actor_id=admin.id)
        svc.create_hr_document(db, doc_payload(staff.id, "31/12/2025"), actor_id=admin.id)

        stats = svc.get_hr_document_stats(db, clock=clock)
        assert stats == {
            "total": 6,
            "expired": 1,
            "expiring_soon": 2,
            "valid": 2,
            "invalid": 1,
            "by_type": {"Passport": 5, "Medical Certificate": 1},
        }
        assert stats["expired"] + stats["expiring_soon"] + stats["valid"] + stats["invalid"] == stats["total"]


class TestProjection:

    def test_staff_and_file_are_resolved(self, db, storage, staff, admin, make_file, clock):
        fo = make_file("passport.pdf")
        did = svc.create_hr_document(db, doc_payload(staff.id, in_days(200), file_id=fo.id), actor_id=admin.id)
        view = svc.get_hr_document(db, did, storage=storage, clock=clock)
        assert view["staff_name"] == "Alice Worker"
        assert view["staff_email"] == staff.email
        assert view["file_url"] == f"memory://test/{fo.key.lstrip('/')}"
        assert view["expiry"]["label"] == "Valid"

    def test_unknown_staff_and_missing_file(self, db, storage, admin, make_file, clock):
        fo = make_file()
        did = svc.create_hr_document(db, doc_payload(uuid.uuid4(), file_id=fo.id), actor_id=admin.id)
        db.delete(fo)
        db.commit()
        view = svc.get_hr_document(db, did, storage=storage, clock=clock)
        assert view["staff_name"] == "Unknown"
        assert view["staff_email"] is None
        assert view["file_url"] is None
        assert view["expiry"]["label"] == "No Date"

    def test_list_filters(self, db, staff, manager, admin, clock):
        a = svc.create_hr_document(db, doc_payload(staff.id), actor_id=admin.id)
        svc.create_hr_document(db, doc_payload(staff.id, document_type="Visa"), actor_id=admin.id)
        svc.create_hr_document(db, doc_payload(manager.id), actor_id=admin.id)
        assert [d["id"] for d in svc.list_hr_documents(db, user_id=staff.id, document_type="Passport", clock=clock)] == [a]
        assert len(svc.list_hr_documents(db, document_type="Passport", clock=clock)) == 2


class TestFiles:

    def test_delete_releases_file(self, db, storage, staff, admin, make_file):
        fo = make_file()
        key = fo.key
        did = svc.create_hr_document(db, doc_payload(staff.id, file_id=fo.id), actor_id=admin.id)
        svc.delete_hr_document(db, did, storage=storage)
        assert db.get(HRDocument, did) is None
        assert db.query(FileObject).count() == 0
        assert storage.deleted == [key]

    def test_replacing_file_releases_previous(self, db, storage, staff, admin, make_file):
        old, new = make_file("old.pdf"), make_file("new.pdf")
        old_key, new_id = old.key, new.id
        did = svc.create_hr_document(db, doc_payload(staff.id, file_id=old.id), actor_id=admin.id)
        svc.update_hr_document(db, did, HRDocumentUpdate(file_id=new_id, file_name="new.pdf"), storage=storage)
        assert db.get(HRDocument, did).file_id == new_id
        assert storage.deleted == [old_key]
        assert db.query(FileObject).filter(FileObject.id == new_id).count() == 1

    def test_update_without_file_change_keeps_file(self, db, storage, staff, admin, make_file):
        fo = make_file()
        did = svc.create_hr_document(db, doc_payload(staff.id, file_id=fo.id), actor_id=admin.id)
        svc.update_hr_document(db, did, HRDocumentUpdate(notes="checked"), storage=storage)
        assert storage.deleted == []

    def test_update_missing_document(self, db, storage):
        with pytest.raises(NotFoundError):
            svc.update_hr_document(db, uuid.uuid4(), HRDocumentUpdate(notes="x"), storage=storage)


class TestFileOwnership:

    def test_unknown_file_rejected(self, db, staff, admin):
        with pytest.raises(NotFoundError):
            svc.create_hr_document(db, doc_payload(staff.id, file_id=uuid.uuid4()), actor_id=admin.id)
        assert db.query(HRDocument).count() == 0

    def test_file_owned_by_another_document_rejected(self, db, storage, staff, admin, make_file):
        fo = make_file()
        first = svc.create_hr_document(db, doc_payload(staff.id, file_id=fo.id), actor_id=admin.id)
        other = svc.create_hr_document(db, doc_payload(staff.id, document_type="Visa"), actor_id=admin.id)

        with pytest.raises(DuplicateKeyError):
            svc.create_hr_document(db, doc_payload(staff.id, file_id=fo.id), actor_id=admin.id)
        with pytest.raises(DuplicateKeyError):
            svc.update_hr_document(db, other, HRDocumentUpdate(file_id=fo.id), storage=storage)
        assert db.get(HRDocument, other).file_id is None

        svc.update_hr_document(db, first, HRDocumentUpdate(file_id=fo.id, notes="same file"), storage=storage)
        assert storage.deleted == []

    def test_update_to_unknown_file_keeps_previous(self, db, storage, staff, admin, make_file):
        fo = make_file()
        fo_id = fo.id
        did = svc.create_hr_document(db, doc_payload(staff.id, file_id=fo_id), actor_id=admin.id)
        with pytest.raises(NotFoundError):
            svc.update_hr_document(db, did, HRDocumentUpdate(file_id=uuid.uuid4()), storage=storage)
        db.expire_all()
        assert db.get(HRDocument, did).file_id == fo_id
        assert storage.deleted == []
