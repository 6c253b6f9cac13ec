"""Validation utilities and typed request records.

HTTP handlers turn untyped JSON bodies into the records below; the services
only ever see already-validated values.
"""
import math
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Any

from attendance_tracker.models.user import ClassName, Section, UserRole
from attendance_tracker.utils.errors import ValidationError

STATUS_VALUES = ('present', 'absent', 'late')


@dataclass(frozen=True)
class Actor:
    """The authenticated caller as supplied by the auth layer."""
    id: int
    role: UserRole
    class_name: Optional[str] = None
    section: Optional[str] = None

    @classmethod
    def from_user(cls, user) -> 'Actor':
        return cls(id=user.id, role=user.role, class_name=user.class_name, section=user.section)

    @property
    def is_faculty(self) -> bool:
        return self.role == UserRole.FACULTY

    @property
    def is_student(self) -> bool:
        return self.role == UserRole.STUDENT


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float
    accuracy: Optional[float] = None


@dataclass(frozen=True)
class DeviceInfo:
    user_agent: Optional[str] = None
    ip_address: Optional[str] = None


@dataclass(frozen=True)
class CreateSessionRequest:
    subject_id: int
    class_name: str
    section: str
    period: str
    geofence: Optional[Dict] = None
    location_name: Optional[str] = None
    expiry_minutes: Optional[int] = None


@dataclass(frozen=True)
class SubjectRequest:
    """Subject fields from a create or update body; None means unchanged."""
    code: Optional[str] = None
    name: Optional[str] = None
    classes: Optional[List[Dict[str, str]]] = None


@dataclass(frozen=True)
class MarkAttendanceRequest:
    session_token: Optional[str] = None
    qr_data: Optional[str] = None
    location: Optional[Location] = None
    device: DeviceInfo = field(default_factory=DeviceInfo)


@dataclass(frozen=True)
class ManualAttendanceRequest:
    session_id: int
    student_ids: List[int]
    status: str = 'present'


class Validator:
    """Validation helper class."""

    @staticmethod
    def require_fields(data: Dict, required_fields: List[str]) -> None:
        """Raise if any required field is missing or empty."""
        missing = [f for f in required_fields if data.get(f) in (None, '', [])]
        if missing:
            raise ValidationError(f"Missing required field: {', '.join(missing)}")

    @staticmethod
    def validate_class_section(class_name: Any, section: Any) -> None:
        if class_name not in {c.value for c in ClassName}:
            raise ValidationError(f'Invalid class: {class_name}')
        if section not in {s.value for s in Section}:
            raise ValidationError(f'Invalid section: {section}')

    @staticmethod
    def to_int(value: Any, name: str) -> int:
        if isinstance(value, bool):
            raise ValidationError(f'{name} must be an integer')
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ValidationError(f'{name} must be an integer')

    @staticmethod
    def to_float(value: Any, name: str) -> float:
        if isinstance(value, bool):
            raise ValidationError(f'{name} must be a number')
        try:
            number = float(value)
        except (TypeError, ValueError):
            raise ValidationError(f'{name} must be a number')
        if math.isnan(number) or math.isinf(number):
            raise ValidationError(f'{name} must be a number')
        return number

    @staticmethod
    def to_date(value: Optional[str], name: str) -> Optional[date]:
        if not value:
            return None
        try:
            return date.fromisoformat(value)
        except (TypeError, ValueError):
            raise ValidationError(f'Invalid {name}. Use YYYY-MM-DD')

    @staticmethod
    def parse_location(data: Any) -> Optional[Location]:
        """Location is optional; a partial one counts as absent."""
        if not isinstance(data, dict):
            return None
        if data.get('latitude') is None or data.get('longitude') is None:
            return None

        latitude = Validator.to_float(data['latitude'], 'latitude')
        longitude = Validator.to_float(data['longitude'], 'longitude')
        if not -90 <= latitude <= 90 or not -180 <= longitude <= 180:
            raise ValidationError('Invalid location coordinates')

        accuracy = data.get('accuracy')
        if accuracy is not None:
            accuracy = Validator.to_float(accuracy, 'accuracy')
            if accuracy < 0:
                raise ValidationError('Accuracy cannot be negative')

        return Location(latitude=latitude, longitude=longitude, accuracy=accuracy)

    @staticmethod
    def parse_create_session(data: Optional[Dict]) -> CreateSessionRequest:
        data = data or {}
        Validator.require_fields(data, ['subject', 'class', 'section', 'period'])
        Validator.validate_class_section(data['class'], data['section'])

        period = str(data['period']).strip()
        if not period or len(period) > 50:
            raise ValidationError('Period must be 1-50 characters')

        expiry_minutes = data.get('expiry_minutes')
        if expiry_minutes is not None:
            expiry_minutes = Validator.to_int(expiry_minutes, 'expiry_minutes')

        geofence = data.get('geofence')
        location_name = data.get('location_name')
        if geofence is None and not location_name:
            raise ValidationError('Geofence configuration is required')

        return CreateSessionRequest(
            subject_id=Validator.to_int(data['subject'], 'subject'),
            class_name=data['class'],
            section=data['section'],
            period=period,
            geofence=geofence,
            location_name=location_name,
            expiry_minutes=expiry_minutes
        )

    @staticmethod
    def parse_mark_attendance(data: Optional[Dict], user_agent: Optional[str] = None,
                              ip_address: Optional[str] = None) -> MarkAttendanceRequest:
        data = data or {}
        session_token = data.get('session_id') or data.get('sessionId')
        qr_data = data.get('qr_data')
        if not session_token and not qr_data:
            raise ValidationError('Missing required field: session_id or qr_data')
        if session_token is not None and not isinstance(session_token, str):
            raise ValidationError('session_id must be a string')

        return MarkAttendanceRequest(
            session_token=session_token,
            qr_data=qr_data,
            location=Validator.parse_location(data.get('location')),
            device=DeviceInfo(user_agent=user_agent, ip_address=ip_address)
        )

    @staticmethod
    def parse_manual_attendance(data: Optional[Dict]) -> ManualAttendanceRequest:
        data = data or {}
        Validator.require_fields(data, ['session_id', 'students'])

        students = data['students']
        if not isinstance(students, list):
            raise ValidationError('students must be a list of student ids')

        status = data.get('status', 'present')
        if status not in STATUS_VALUES:
            raise ValidationError(f"Status must be one of: {', '.join(STATUS_VALUES)}")

        return ManualAttendanceRequest(
            session_id=Validator.to_int(data['session_id'], 'session_id'),
            student_ids=[Validator.to_int(s, 'student id') for s in students],
            status=status
        )

    @staticmethod
    def parse_subject(data: Optional[Dict], partial: bool = False) -> SubjectRequest:
        """Validate a subject body; with ``partial`` only the given fields are checked."""
        data = data or {}
        if not partial:
            Validator.require_fields(data, ['code', 'name', 'classes'])

        code = data.get('code')
        if code is not None:
            code = str(code).strip().upper()
            if not 2 <= len(code) <= 10 or not code.isalnum():
                raise ValidationError('Subject code must be 2-10 letters or digits')

        name = data.get('name')
        if name is not None:
            name = str(name).strip()
            if not 2 <= len(name) <= 100:
                raise ValidationError('Subject name must be between 2 and 100 characters')

        classes = data.get('classes')
        if classes is not None:
            if not isinstance(classes, list) or not classes:
                raise ValidationError('classes must be a non-empty list of class/section pairs')
            assignments = []
            for assignment in classes:
                if not isinstance(assignment, dict):
                    raise ValidationError('classes must be a non-empty list of class/section pairs')
                Validator.validate_class_section(assignment.get('class'), assignment.get('section'))
                pair = {'class': assignment['class'], 'section': assignment['section']}
                if pair not in assignments:
                    assignments.append(pair)
            classes = assignments

        return SubjectRequest(code=code, name=name, classes=classes)
