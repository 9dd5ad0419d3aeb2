"""
Tests for the file registry and the local storage provider
"""
import io
import uuid

import pytest

from fieldops.auth.security import get_current_user
from fieldops.errors import InvalidFieldError
from fieldops.main import app
from fieldops.models.models import AuditLog, FileObject
from fieldops.services import files as file_service
from fieldops.services.files import get_storage
from fieldops.storage.local_provider import LocalStorageProvider


class TestUploads:

    def test_request_upload_builds_canonical_key(self, storage):
        result = file_service.request_upload(storage, "Site Photo.JPG", "image/jpeg", project_id="PRJ-7", category="photos")
        key = result["key"]
        assert key.startswith("/org/")
        assert "/prj-7/photos/" in key
        assert "site-photo-" in key
        assert key.endswith(".jpg")
        assert result["upload_url"].endswith("?upload")
        assert result["expires_in"] > 0

    def test_repeated_names_get_distinct_keys(self, storage):
        a = file_service.request_upload(storage, "plan.pdf", "application/pdf")
        b = file_service.request_upload(storage, "plan.pdf", "application/pdf")
        assert a["key"] != b["key"]

    def test_empty_name_rejected(self, storage):
        with pytest.raises(InvalidFieldError):
            file_service.request_upload(storage, "  ", "application/pdf")

    def test_confirm_registers_file(self, db, storage, admin):
        key = "/org/2025/misc/files/plan.pdf"
        storage.blobs[key] = b"%PDF"
        file_id = file_service.confirm_upload(db, storage, key, content_type="application/pdf", actor_id=admin.id)
        fo = db.get(FileObject, file_id)
        assert (fo.provider, fo.original_name, fo.created_by) == ("memory", "plan.pdf", admin.id)
        assert db.query(AuditLog).filter(AuditLog.entity_id == file_id).count() == 1

    def test_get_file_urls(self, db, storage, make_file):
        fo = make_file()
        missing = uuid.uuid4()
        urls = file_service.get_file_urls(db, storage, [fo.id, None, missing])
        assert urls == {str(fo.id): f"memory://test/{fo.key.lstrip('/')}", str(missing): None}


class TestLocalProvider:

    def test_round_trip_on_disk(self, tmp_path):
        provider = LocalStorageProvider(base_dir=str(tmp_path))
        key = "/org/2025/misc/files/a.txt"
        assert provider.get_download_url(key, 60) is None

        provider.copy_in(io.BytesIO(b"hello"), key)
        assert provider.exists(key)
        assert provider.local_path(key).read_bytes() == b"hello"
        assert provider.get_download_url(key, 60).endswith("/files/local/org/2025/misc/files/a.txt")

        provider.delete(key)
        assert not provider.exists(key)
        provider.delete(key)

    def test_path_stays_inside_base_dir(self, tmp_path):
        provider = LocalStorageProvider(base_dir=str(tmp_path))
        path = provider.local_path("/../../etc/passwd")
        assert str(path).startswith(str(tmp_path / "uploads"))


class TestLocalFileRoutes:

    def test_upload_requires_authentication(self, client, tmp_path):
        provider = LocalStorageProvider(base_dir=str(tmp_path))
        app.dependency_overrides[get_storage] = lambda: provider
        app.dependency_overrides.pop(get_current_user)

        resp = client.put("/files/local/org/2025/misc/files/x.pdf", content=b"%PDF")
        assert resp.status_code == 401
        assert not provider.exists("org/2025/misc/files/x.pdf")

    def test_authenticated_upload_then_download(self, client, tmp_path):
        provider = LocalStorageProvider(base_dir=str(tmp_path))
        app.dependency_overrides[get_storage] = lambda: provider

        assert client.put("/files/local/org/2025/misc/files/x.pdf", content=b"%PDF").status_code == 204
        resp = client.get("/files/local/org/2025/misc/files/x.pdf")
        assert resp.status_code == 200
        assert resp.content == b"%PDF"
