"""Shared fixtures: an in-memory app, demo users and a fixed clock."""
from datetime import datetime, timedelta

import pytest
from flask_jwt_extended import create_access_token

from attendance_tracker import create_app, db
from attendance_tracker.models import Subject, User, UserRole
from attendance_tracker.services import (
    AttendancePolicy, AttendanceRepository, AttendanceService, SessionService, StatsService
)
from attendance_tracker.utils.validators import Actor, CreateSessionRequest

CLASSROOM = {'latitude': 17.4065, 'longitude': 78.4772, 'radius': 50}
START = datetime(2024, 9, 2, 9, 0, 0)


class FakeClock:
    """Settable clock handed to the services."""

    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def app():
    """Create test app."""
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def repository(app):
    return AttendanceRepository(db)


@pytest.fixture
def policy():
    return AttendancePolicy()


@pytest.fixture
def session_service(repository, policy, clock):
    return SessionService(repository, policy, clock=clock)


@pytest.fixture
def attendance_service(repository, policy, clock):
    return AttendanceService(repository, policy, clock=clock)


@pytest.fixture
def stats_service(repository):
    return StatsService(repository)


def make_student(roll_number, class_name='III-I', section='A', **kwargs):
    student = User(
        email=f'{roll_number.lower()}@student.college.edu',
        name=kwargs.pop('name', f'Student {roll_number}'),
        role=UserRole.STUDENT,
        roll_number=roll_number,
        class_name=class_name,
        section=section,
        **kwargs
    )
    return student.save()


@pytest.fixture
def faculty(app):
    return User(
        email='anitha.rao@college.edu',
        name='Dr. Anitha Rao',
        role=UserRole.FACULTY,
        employee_id='FAC001'
    ).save()


@pytest.fixture
def other_faculty(app):
    return User(
        email='suresh.kumar@college.edu',
        name='Dr. Suresh Kumar',
        role=UserRole.FACULTY,
        employee_id='FAC002'
    ).save()


@pytest.fixture
def students(app):
    """Three students in III-I/A, one in III-I/B."""
    return [
        make_student('21A001'),
        make_student('21A002'),
        make_student('21A003'),
        make_student('21B001', section='B'),
    ]


@pytest.fixture
def subject(faculty):
    return Subject(
        code='cs301',
        name='Data Structures',
        faculty_id=faculty.id,
        classes=[{'class': 'III-I', 'section': 'A'}, {'class': 'III-I', 'section': 'B'}]
    ).save()


@pytest.fixture
def faculty_actor(faculty):
    return Actor.from_user(faculty)


def actor_for(user):
    return Actor.from_user(user)


def session_request(subject, section='A', **kwargs):
    params = dict(
        subject_id=subject.id,
        class_name='III-I',
        section=section,
        period='1',
        geofence=dict(CLASSROOM)
    )
    params.update(kwargs)
    return CreateSessionRequest(**params)


@pytest.fixture
def open_session(session_service, faculty_actor, subject, students):
    """An active III-I/A session started at START; returns (session, qr_payload)."""
    return session_service.create_session(faculty_actor, session_request(subject))


def auth_headers(user):
    token = create_access_token(identity=str(user.id))
    return {'Authorization': f'Bearer {token}'}
