"""Shared fixtures: a seeded file-backed SQLite database per test and an API client bound to it."""

import os
import tempfile
from datetime import date
from decimal import Decimal

# Settings are read at import time, so the environment must be ready first.
_BOOT_DIR = tempfile.mkdtemp(prefix="schoolhub-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_BOOT_DIR}/boot.db")
os.environ.setdefault("JWT_SECRET", "test-secret-key-with-enough-length-for-hs256")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker

from schoolhub.core.db import db_session, get_db, get_session_factory
from schoolhub.core.security import create_token
from schoolhub.main import app
from schoolhub.models import Base
from schoolhub.models.exam import ExamScore, ExamType
from schoolhub.models.grade import Grade
from schoolhub.models.student import Student
from schoolhub.models.subject import Subject
from schoolhub.models.user import User, UserRole
from schoolhub.services.helpers.bootstrap_school import seed_school
from schoolhub.services.users import UserService, user_cache

@pytest.fixture
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'school.db'}",
        future=True,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()

@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

@pytest.fixture
def db(session_factory):
    session = session_factory()
    seed_school(session)
    yield session
    session.close()

@pytest.fixture
def client(db, session_factory):
    def override_get_db():
        with db_session(session_factory) as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    user_cache.clear()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    user_cache.clear()

# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------

def find_grade(db, name, stream, curriculum=None):
    query = select(Grade).where(Grade.name == name, Grade.stream == stream)
    if curriculum is not None:
        query = query.where(Grade.curriculum_type == curriculum)
    return db.execute(query).scalar_one()

def make_student(db, grade, number, first_name="Test", last_name=None, **extra):
    student = Student(
        student_number=number,
        first_name=first_name,
        last_name=last_name or f"Student{number}",
        grade_id=grade.id,
        enrollment_date=date(2024, 1, 15),
        **extra,
    )
    db.add(student)
    db.flush()
    return student

def record_scores(db, student, scores, academic_year=2025, term=1):
    """``scores`` maps subject code -> score for every exam type."""
    exam_types = db.execute(select(ExamType).order_by(ExamType.order)).scalars().all()
    for code, value in scores.items():
        subject = db.execute(select(Subject).where(Subject.code == code)).scalar_one()
        for exam_type in exam_types:
            db.add(ExamScore(
                student_id=student.id,
                subject_id=subject.id,
                exam_type_id=exam_type.id,
                grade_id=student.grade_id,
                score=Decimal(str(value)),
                academic_year=academic_year,
                term=term,
            ))
    db.flush()

def make_user(db, username, roles):
    user = UserService(db).create_user(
        username=username,
        full_name=username.title(),
        password="secret123",
        roles=roles,
    )
    db.commit()
    return user

def auth_headers(user):
    token = create_token(sub=str(user.id), roles=user.roles, full_name=user.full_name)
    return {"Authorization": f"Bearer {token}"}

@pytest.fixture
def admin(db):
    return db.execute(select(User).where(User.username == "admin")).scalar_one()

@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)

@pytest.fixture
def teacher(db):
    return make_user(db, "teacher1", [UserRole.TEACHER.value])

@pytest.fixture
def teacher_headers(teacher):
    return auth_headers(teacher)

@pytest.fixture
def staff_headers(db):
    return auth_headers(make_user(db, "clerk1", [UserRole.STAFF.value]))

