import itertools
import os

# settings are read at import time, so point them at SQLite first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-testing-only")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from feedbacts.core.rate_limit import limiter
from feedbacts.db import base
from feedbacts.db.database import get_db
from feedbacts.main import app
from feedbacts.models.alumni import Alumni
from feedbacts.models.course import CatalogStatus, Program
from feedbacts.models.employer import Employer
from feedbacts.models.instructor import Instructor
from feedbacts.models.student import Student
from feedbacts.models.user import User, UserRole, UserStatus
from feedbacts.services.security import create_access_token, hash_password

PASSWORD = "Secret#123"
# bcrypt is slow; hash once for every fixture user
PASSWORD_HASH = hash_password(PASSWORD)


@pytest.fixture(autouse=True)
def reset_rate_limits():
    limiter.reset()
    yield


@pytest.fixture
def engine():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    base.Base.metadata.create_all(bind=engine)
    yield engine
    base.Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    """Session for arranging data and asserting on it directly."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_program(db):
    def _make(department="College", program_code="BSIT", year_level=1, section="A", status=CatalogStatus.active):
        program = Program(
            department=department,
            program_name=f"{program_code} program",
            program_code=program_code,
            year_level=year_level,
            section=section,
            course_section=f"{program_code} {year_level}-{section}",
            status=status,
        )
        db.add(program)
        db.commit()
        db.refresh(program)
        return program

    return _make


@pytest.fixture
def make_user(db):
    counter = itertools.count(1)

    def _make(role=UserRole.student, status=UserStatus.active, program=None, department=None, company=None, email=None):
        n = next(counter)
        user = User(
            email=email or f"{role.value}{n}@school.edu",
            password_hash=PASSWORD_HASH,
            full_name=f"{role.value.title()} {n}",
            role=role,
            status=status,
        )
        db.add(user)
        db.flush()

        if role == UserRole.student:
            db.add(
                Student(
                    user_id=user.id,
                    student_number=f"2024-{n:04d}",
                    program_id=program.id if program else None,
                    academic_year=program.year_level if program else None,
                    contact_number="0917-000-0000",
                )
            )
        elif role == UserRole.instructor:
            db.add(Instructor(user_id=user.id, instructor_number=f"INS-{n}", department=department))
        elif role == UserRole.alumni:
            db.add(Alumni(user_id=user.id, company=company))
        elif role == UserRole.employer:
            db.add(Employer(user_id=user.id, company_name=company))

        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def headers_for():
    def _headers(user):
        token = create_access_token({"sub": user.id, "role": user.role.value})
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def admin(make_user):
    return make_user(UserRole.admin)


@pytest.fixture
def instructor(make_user):
    return make_user(UserRole.instructor, department="IT Department")


@pytest.fixture
def program(make_program):
    return make_program(program_code="BSIT", year_level=3, section="A")


@pytest.fixture
def student(make_user, program):
    return make_user(UserRole.student, program=program)


@pytest.fixture
def form_payload():
    return {
        "title": "Course Evaluation - IT 301",
        "description": "End of term evaluation",
        "category": "Course Evaluation",
        "targetAudience": "Students",
        "sections": [{"id": "section_1", "title": "Teaching"}],
        "questions": [
            {
                "id": "q_1",
                "question": "Rate the instructor",
                "type": "rating",
                "min": 1,
                "max": 5,
                "required": True,
                "sectionId": "section_1",
            },
            {
                "id": "q_2",
                "question": "Pick one",
                "type": "multiple-choice",
                "options": ["A", "B"],
                "required": True,
                "sectionId": "section_1",
            },
        ],
    }


@pytest.fixture
def create_form(client, headers_for, form_payload):
    """POST a form as `owner` and return its id."""
    def _create(owner, payload=None):
        res = client.post("/api/forms", json=payload or form_payload, headers=headers_for(owner))
        assert res.status_code == 201, res.json()
        return res.json()["form_id"]

    return _create
