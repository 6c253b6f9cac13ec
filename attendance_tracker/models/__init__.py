"""Models package with all models."""
from .base import BaseModel
from .user import User, UserRole, ClassName, Section
from .subject import Subject
from .attendance_session import AttendanceSession
from .attendance import AttendanceRecord, AttendanceStatus, MarkedBy, ATTENDED_STATUSES

__all__ = [
    'BaseModel', 'User', 'UserRole', 'ClassName', 'Section',
    'Subject', 'AttendanceSession',
    'AttendanceRecord', 'AttendanceStatus', 'MarkedBy', 'ATTENDED_STATUSES'
]
