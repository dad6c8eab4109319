"""
Shared fixtures: in-memory SQLite per test, fake object storage, user/token factories
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from lms.api.auth import create_access_token, get_password_hash
from lms.api.main import app
from lms.errors import StorageError
from lms.models.database import build_engine, create_tables, drop_tables, get_db
from lms.models.database_models import Semester, Student, Teacher, User, UserRole
from lms.models.database_service import (
    create_semester, create_student_profile, create_teacher_profile, create_user, transaction,
)
from lms.models.schemas import CourseCreate
from lms.services.course_content import create_course
from lms.utils.object_keys import build_object_key
from lms.utils.storage import StoredObject, get_storage

PASSWORD = "secret123"


class FakeStorage:
    """In-memory stand-in for the S3 adapter"""

    def __init__(self):
        self.objects: Dict[str, bytes] = {}
        self.deleted = []
        self.fail_deletes = False
        # number of uploads that succeed before every further upload raises; None never fails
        self.fail_uploads_after: Optional[int] = None
        self.uploads = 0

    def upload(self, data, folder, filename, content_type="application/octet-stream"):
        if self.fail_uploads_after is not None and self.uploads >= self.fail_uploads_after:
            raise StorageError(f"Failed to upload {filename}")
        self.uploads += 1
        key = build_object_key(folder, filename)
        self.objects[key] = data
        return StoredObject(url=f"https://files.test/{key}", key=key)

    def delete(self, key):
        if self.fail_deletes:
            raise StorageError(f"Failed to delete {key}")
        self.deleted.append(key)
        return self.objects.pop(key, None) is not None

    def url_for(self, key):
        return f"https://files.test/{key}"


@pytest.fixture
def engine():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    create_tables(engine)
    yield engine
    drop_tables(engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def client(db, storage):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    yield TestClient(app)
    app.dependency_overrides.clear()


class Factory:
    """Creates committed rows for tests"""

    def __init__(self, db):
        self.db = db
        self._seq = 0

    def _email(self, prefix: str) -> str:
        self._seq += 1
        return f"{prefix}{self._seq}@campus.test"

    def admin(self) -> User:
        with transaction(self.db):
            user = create_user(self.db, "Admin", self._email("admin"), get_password_hash(PASSWORD), UserRole.ADMIN)
        return user

    def teacher(self, name: str = "Teacher") -> Teacher:
        with transaction(self.db):
            user = create_user(self.db, name, self._email("teacher"), get_password_hash(PASSWORD), UserRole.TEACHER)
            teacher = create_teacher_profile(self.db, user)
        return teacher

    def student(self, teacher: Optional[Teacher] = None, name: str = "Student") -> Student:
        with transaction(self.db):
            user = create_user(self.db, name, self._email("student"), get_password_hash(PASSWORD), UserRole.STUDENT)
            student = create_student_profile(self.db, user, teacher, program="BSc CS", semester="3")
        return student

    def semester(self) -> Semester:
        start = datetime(2026, 1, 10, tzinfo=timezone.utc)
        with transaction(self.db):
            semester = create_semester(self.db, "Spring 2026", start, start + timedelta(days=120))
        return semester

    def course(self, teacher: Teacher, semester: Semester = None, now: datetime = None, **fields):
        semester = semester or self.semester()
        payload = CourseCreate(
            title=fields.pop("title", "Algorithms"),
            about_course=fields.pop("about_course", "Design and analysis of algorithms"),
            semester_id=semester.id,
            **fields,
        )
        return create_course(self.db, teacher, payload, now=now)

    @staticmethod
    def headers(user: User) -> Dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture
def make(db):
    return Factory(db)
