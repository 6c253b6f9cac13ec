"""Attendance marking: QR scans by students and manual entry by faculty."""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional

from attendance_tracker.models.attendance import (
    AttendanceRecord, AttendanceStatus, MarkedBy, ATTENDED_STATUSES
)
from attendance_tracker.models.attendance_session import AttendanceSession
from attendance_tracker.services.geofence_service import GeofenceService
from attendance_tracker.services.policy import AttendancePolicy
from attendance_tracker.services.qr_service import QRService
from attendance_tracker.services.repository import AttendanceRepository
from attendance_tracker.utils.errors import (
    AttendanceError, AuthorizationError, DuplicateError, EnrollmentMismatchError,
    ExpiredError, NotFoundError, OutOfRangeError, ValidationError
)
from attendance_tracker.utils.helpers import detect_device_type, utcnow
from attendance_tracker.utils.validators import (
    Actor, Location, ManualAttendanceRequest, MarkAttendanceRequest, STATUS_VALUES
)

logger = logging.getLogger(__name__)


@dataclass
class MarkResult:
    record: AttendanceRecord
    accuracy_level: Optional[str]

    @property
    def is_late(self) -> bool:
        return self.record.is_late()

    def to_dict(self) -> Dict:
        data = self.record.to_dict()
        data['accuracy_level'] = self.accuracy_level
        return data


@dataclass
class ManualMarkResult:
    total: int
    successful: List[Dict] = field(default_factory=list)
    errors: List[Dict] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            'successful': self.successful,
            'errors': self.errors,
            'summary': {
                'total': self.total,
                'successful': len(self.successful),
                'failed': len(self.errors)
            }
        }


class AttendanceService:
    """Validates and records attendance against a session."""

    def __init__(self, repository: AttendanceRepository, policy: Optional[AttendancePolicy] = None,
                 clock: Callable[[], datetime] = utcnow):
        self.repository = repository
        self.policy = policy or AttendancePolicy()
        self.clock = clock

    def mark_attendance(self, actor: Actor, request: MarkAttendanceRequest) -> MarkResult:
        """Run the scan checks in order; the first failing check raises."""
        try:
            return self._mark_attendance(actor, request)
        except AttendanceError as e:
            logger.warning('Attendance rejected for student %s: %s (%s)', actor.id, e.kind, e.message)
            raise

    def _mark_attendance(self, actor: Actor, request: MarkAttendanceRequest) -> MarkResult:
        session_token = request.session_token
        if request.qr_data is not None:
            session_token = QRService.decode_payload(request.qr_data).session_token

        session = self.repository.find_session_by_token(session_token) if session_token else None
        if session is None:
            raise NotFoundError('Session not found')

        now = self.clock()
        if not session.accepts_attendance(now):
            raise ExpiredError()

        if actor.class_name != session.class_name or actor.section != session.section:
            raise EnrollmentMismatchError()

        if self.repository.find_attendance(actor.id, session.id) is not None:
            raise DuplicateError()

        self._check_location(session, request.location)

        status = self.classify_status(session, now)
        location = request.location
        record = self._build_record(
            session, actor.id, status, MarkedBy.QR_SCAN, now,
            latitude=location.latitude if location else None,
            longitude=location.longitude if location else None,
            accuracy=location.accuracy if location else None,
            user_agent=request.device.user_agent,
            ip_address=request.device.ip_address,
            device_type=detect_device_type(request.device.user_agent)
        )
        self._persist(record)

        logger.info('Attendance marked for student %s in session %s as %s',
                    actor.id, session.id, status.value)

        accuracy_level = GeofenceService.classify_accuracy(location.accuracy) if location else None
        return MarkResult(record=record, accuracy_level=accuracy_level)

    def mark_manual_attendance(self, actor: Actor, request: ManualAttendanceRequest) -> ManualMarkResult:
        """Faculty bulk entry; per-student failures are collected, not raised."""
        session = self.repository.get_session(request.session_id)
        if session is None:
            raise NotFoundError('Session not found')
        if session.faculty_id != actor.id:
            raise AuthorizationError()
        if request.status not in STATUS_VALUES:
            raise ValidationError(f"Status must be one of: {', '.join(STATUS_VALUES)}")

        status = AttendanceStatus(request.status)
        result = ManualMarkResult(total=len(request.student_ids))

        for student_id in request.student_ids:
            try:
                student = self.repository.get_user(student_id)
                if student is None or not student.is_student():
                    raise NotFoundError('Student not found')

                if self.repository.find_attendance(student_id, session.id) is not None:
                    raise DuplicateError()

                record = self._build_record(session, student_id, status, MarkedBy.MANUAL, self.clock())
                self._persist(record)
            except AttendanceError as e:
                result.errors.append({
                    'student_id': student_id,
                    'kind': e.kind,
                    'message': e.message
                })
                continue

            result.successful.append({
                'student_id': student_id,
                'student': {'name': student.name, 'roll_number': student.roll_number},
                'status': status.value,
                'marked_at': record.marked_at.isoformat()
            })

        logger.info('Manual attendance for session %s by faculty %s: %s marked, %s failed',
                    session.id, actor.id, len(result.successful), len(result.errors))
        return result

    def classify_status(self, session: AttendanceSession, marked_at: datetime) -> AttendanceStatus:
        """Late iff strictly more than the threshold after the session start."""
        if marked_at > session.start_time + self.policy.late_threshold:
            return AttendanceStatus.LATE
        return AttendanceStatus.PRESENT

    def _check_location(self, session: AttendanceSession, location: Optional[Location]) -> None:
        if location is None:
            if self.policy.require_scan_location:
                raise ValidationError('Location is required to mark attendance')
            return

        if not GeofenceService.is_within(
                location.latitude, location.longitude,
                session.geofence_latitude, session.geofence_longitude,
                session.geofence_radius):
            raise OutOfRangeError()

    @staticmethod
    def _build_record(session: AttendanceSession, student_id: int, status: AttendanceStatus,
                      marked_by: MarkedBy, now: datetime, **extra) -> AttendanceRecord:
        return AttendanceRecord(
            student_id=student_id,
            session_id=session.id,
            subject_id=session.subject_id,
            faculty_id=session.faculty_id,
            class_name=session.class_name,
            section=session.section,
            status=status,
            marked_at=now,
            attendance_date=now.date(),
            marked_by=marked_by,
            **extra
        )

    def _persist(self, record: AttendanceRecord) -> None:
        """Insert the record and bump the session counters in one transaction."""
        self.repository.insert_attendance(record)
        if record.status in ATTENDED_STATUSES:
            self.repository.increment_attended(record.session_id)
        self.repository.commit()
