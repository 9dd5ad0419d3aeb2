import os
import uuid
from datetime import date

os.environ.setdefault("RATE_LIMIT", "10000/minute")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("AUTO_CREATE_DB", "false")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from fieldops.db import Base
from fieldops.models.models import FileObject, Project, User
from fieldops.services.time_rules import FixedClock
from fieldops.storage.provider import StorageProvider


TODAY = date(2025, 6, 1)


class MemoryStorage(StorageProvider):
    """Blob store double that keeps blobs in a dict and can be told to fail deletes."""

    name = "memory"
    container = "test"

    def __init__(self):
        self.blobs = {}
        self.deleted = []
        self.fail_delete = False

    def generate_upload_url(self, key, content_type, expires_s):
        return f"memory://{self.container}/{key.lstrip('/')}?upload"

    def get_download_url(self, key, expires_s):
        if key not in self.blobs:
            return None
        return f"memory://{self.container}/{key.lstrip('/')}"

    def exists(self, key):
        return key in self.blobs

    def copy_in(self, src_stream_or_url, key):
        self.blobs[key] = src_stream_or_url if isinstance(src_stream_or_url, str) else src_stream_or_url.read()

    def delete(self, key):
        if self.fail_delete:
            raise RuntimeError("storage offline")
        self.blobs.pop(key, None)
        self.deleted.append(key)


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def db(engine):
    Session = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    session = Session()
    yield session
    session.close()


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def clock():
    return FixedClock(TODAY)


@pytest.fixture
def make_user(db):
    def _make(full_name, role="staff", department=None, email=None):
        user = User(
            email=email or f"{full_name.lower().replace(' ', '.')}.{uuid.uuid4().hex[:6]}@example.com",
            full_name=full_name,
            role=role,
            department=department,
        )
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def make_project(db):
    def _make(name, code=None, status="Active"):
        project = Project(name=name, code=code or uuid.uuid4().hex[:8].upper(), status=status)
        db.add(project)
        db.commit()
        return project

    return _make


@pytest.fixture
def make_file(db, storage):
    def _make(original_name="report.pdf"):
        key = f"/org/test/{uuid.uuid4().hex}_{original_name}"
        storage.blobs[key] = b"data"
        fo = FileObject(
            provider=storage.name,
            container=storage.container,
            key=key,
            original_name=original_name,
            content_type="application/pdf",
        )
        db.add(fo)
        db.commit()
        return fo

    return _make


@pytest.fixture
def admin(make_user):
    return make_user("Site Admin", role="admin")


@pytest.fixture
def staff(make_user):
    return make_user("Alice Worker", role="staff", department="Operations")


@pytest.fixture
def manager(make_user):
    return make_user("Bob Manager", role="manager", department="Operations")


@pytest.fixture
def client(db, storage, clock, admin):
    from fastapi.testclient import TestClient

    from fieldops.auth.security import get_current_user
    from fieldops.db import get_db
    from fieldops.main import app
    from fieldops.services.files import get_storage
    from fieldops.services.time_rules import get_clock

    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_current_user] = lambda: admin
    yield TestClient(app)
    app.dependency_overrides.clear()
