"""Session lifecycle: create, end, extend and read attendance sessions."""
import logging
from datetime import date, datetime, time, timedelta
from typing import Callable, Optional, Tuple

from attendance_tracker.models.attendance_session import AttendanceSession
from attendance_tracker.services.geofence_service import Geofence, GeofenceService
from attendance_tracker.services.policy import AttendancePolicy
from attendance_tracker.services.qr_service import QRService
from attendance_tracker.services.repository import AttendanceRepository
from attendance_tracker.utils.errors import (
    AuthorizationError, ConflictError, NotFoundError, StateError, ValidationError
)
from attendance_tracker.utils.helpers import utcnow
from attendance_tracker.utils.validators import Actor, CreateSessionRequest

logger = logging.getLogger(__name__)


class SessionService:
    """Service for the attendance session lifecycle."""

    def __init__(self, repository: AttendanceRepository, policy: Optional[AttendancePolicy] = None,
                 clock: Callable[[], datetime] = utcnow):
        self.repository = repository
        self.policy = policy or AttendancePolicy()
        self.clock = clock

    # =================== LIFECYCLE ===================

    def create_session(self, actor: Actor, request: CreateSessionRequest) -> Tuple[AttendanceSession, str]:
        """Open a session for a class/section and return it with its QR payload."""
        if not actor.is_faculty:
            raise AuthorizationError('Only faculty can create sessions')

        subject = self.repository.get_subject(request.subject_id)
        if subject is None or not subject.is_active:
            raise NotFoundError('Subject not found')

        if subject.faculty_id != actor.id:
            raise ValidationError('You are not assigned to this subject')

        if not subject.is_assigned_to(request.class_name, request.section):
            raise ValidationError('Subject is not assigned to the specified class and section')

        geofence = self._resolve_geofence(request)
        expiry_minutes = self._resolve_expiry_minutes(request.expiry_minutes)

        now = self.clock()
        if self.repository.find_active_for_faculty_class_section(
                actor.id, request.class_name, request.section, now) is not None:
            raise ConflictError('An active session already exists for this class')

        session = AttendanceSession(
            session_token=AttendanceSession.generate_session_token(),
            faculty_id=actor.id,
            subject_id=subject.id,
            class_name=request.class_name,
            section=request.section,
            period=request.period,
            start_time=now,
            end_time=now + timedelta(minutes=self.policy.session_period_minutes),
            expiry_time=now + timedelta(minutes=expiry_minutes),
            geofence_latitude=geofence.latitude,
            geofence_longitude=geofence.longitude,
            geofence_radius=geofence.radius,
            is_active=True,
            total_students=self.repository.count_enrolled(request.class_name, request.section),
            attended_students=0,
            attendance_percentage=0
        )
        self.repository.add_session(session)
        self.repository.commit()

        logger.info('Session %s created by faculty %s for %s/%s (%s students, expires %s)',
                    session.id, actor.id, session.class_name, session.section,
                    session.total_students, session.expiry_time.isoformat())

        return session, QRService.encode_payload(session, subject.code)

    def end_session(self, actor: Actor, session_id: int) -> AttendanceSession:
        session = self._owned_session(actor, session_id)

        if not session.is_active:
            raise StateError('Session is already ended')

        session.is_active = False
        session.end_time = self.clock()
        self.recompute_attendance_percentage(session)
        self.repository.commit()

        logger.info('Session %s ended by faculty %s (%s/%s attended)',
                    session.id, actor.id, session.attended_students, session.total_students)
        return session

    def extend_session(self, actor: Actor, session_id: int, minutes: int = 5) -> AttendanceSession:
        session = self._owned_session(actor, session_id)

        if not session.is_active:
            raise StateError('Cannot extend inactive session')

        max_minutes = self.policy.session_max_extension_minutes
        if isinstance(minutes, bool) or not isinstance(minutes, int) or not 1 <= minutes <= max_minutes:
            raise ValidationError(f'Extension must be between 1 and {max_minutes} minutes')

        session.expiry_time = session.expiry_time + timedelta(minutes=minutes)
        self.repository.commit()

        logger.info('Session %s extended by %s minutes to %s',
                    session.id, minutes, session.expiry_time.isoformat())
        return session

    @staticmethod
    def recompute_attendance_percentage(session: AttendanceSession) -> int:
        session.attendance_percentage = session.calculate_attendance_percentage()
        return session.attendance_percentage

    def is_expired(self, session: AttendanceSession) -> bool:
        return session.is_expired(self.clock())

    # =================== READS ===================

    def get_session(self, actor: Actor, session_id: int) -> AttendanceSession:
        session = self.repository.get_session(session_id)
        if session is None:
            raise NotFoundError('Session not found')

        if actor.is_faculty and session.faculty_id != actor.id:
            raise AuthorizationError()
        if actor.is_student and (session.class_name != actor.class_name
                                 or session.section != actor.section):
            raise AuthorizationError()

        return session

    def get_active_session(self, session_token: str) -> AttendanceSession:
        session = self.repository.find_session_by_token(session_token)
        if session is None or not session.accepts_attendance(self.clock()):
            raise NotFoundError('Session not found or expired')
        return session

    def get_current_active_session(self, actor: Actor) -> AttendanceSession:
        session = self.repository.find_current_active_for_faculty(actor.id, self.clock())
        if session is None:
            raise NotFoundError('No active session found')
        return session

    def list_faculty_sessions(self, actor: Actor, status: Optional[str] = None,
                              subject_id: Optional[int] = None, page: int = 1, per_page: int = 10):
        if status not in (None, 'active', 'expired'):
            raise ValidationError("Status filter must be 'active' or 'expired'")
        query = self.repository.faculty_sessions(actor.id, self.clock(), status, subject_id)
        return query.paginate(page=page, per_page=per_page, error_out=False)

    def list_student_sessions(self, actor: Actor, on_date: Optional[date] = None,
                              page: int = 1, per_page: int = 10):
        start = end = None
        if on_date is not None:
            start = datetime.combine(on_date, time.min)
            end = start + timedelta(days=1)
        query = self.repository.class_sessions(actor.class_name, actor.section, start, end)
        return query.paginate(page=page, per_page=per_page, error_out=False)

    # =================== HELPERS ===================

    def _owned_session(self, actor: Actor, session_id: int) -> AttendanceSession:
        session = self.repository.get_session(session_id)
        if session is None:
            raise NotFoundError('Session not found')
        if session.faculty_id != actor.id:
            raise AuthorizationError()
        return session

    def _resolve_geofence(self, request: CreateSessionRequest) -> Geofence:
        if request.geofence is not None:
            return GeofenceService.validate_geofence(
                request.geofence, default_radius=self.policy.default_geofence_radius
            )

        geofence = GeofenceService.get_location_geofence(request.location_name)
        if geofence is None:
            raise ValidationError(f'Unknown location: {request.location_name}')
        return geofence

    def _resolve_expiry_minutes(self, expiry_minutes: Optional[int]) -> int:
        if expiry_minutes is None:
            return self.policy.qr_code_expiry_minutes

        max_minutes = self.policy.session_period_minutes
        if not 1 <= expiry_minutes <= max_minutes:
            raise ValidationError(f'QR expiry must be between 1 and {max_minutes} minutes')
        return expiry_minutes
