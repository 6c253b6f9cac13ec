"""Services package: the session lifecycle and attendance rules."""
from flask import current_app

from .policy import AttendancePolicy
from .repository import AttendanceRepository
from .session_service import SessionService
from .attendance_service import AttendanceService
from .stats_service import StatsService
from .subject_service import SubjectService


def get_repository() -> AttendanceRepository:
    from attendance_tracker import db
    return AttendanceRepository(db)


def get_policy() -> AttendancePolicy:
    return AttendancePolicy.from_config(current_app.config)


def get_session_service() -> SessionService:
    return SessionService(get_repository(), get_policy())


def get_attendance_service() -> AttendanceService:
    return AttendanceService(get_repository(), get_policy())


def get_stats_service() -> StatsService:
    return StatsService(get_repository())


def get_subject_service() -> SubjectService:
    return SubjectService(get_repository())


__all__ = [
    'AttendancePolicy', 'AttendanceRepository', 'SessionService',
    'AttendanceService', 'StatsService', 'SubjectService',
    'get_repository', 'get_policy', 'get_session_service',
    'get_attendance_service', 'get_stats_service', 'get_subject_service'
]
