"""Error taxonomy for session and attendance operations.

Every error carries a machine-readable ``kind`` and the HTTP status the API
layer answers with. The services raise these; the app-level error handler
renders them.
"""
from typing import Any, Dict, Optional


class AttendanceError(Exception):
    """Base class for every terminal, non-retryable check failure."""

    kind = 'attendance_error'
    status_code = 400
    default_message = 'Attendance request could not be processed'

    def __init__(self, message: Optional[str] = None, **details: Any):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'error': True,
            'kind': self.kind,
            'message': self.message,
            'status_code': self.status_code
        }
        if self.details:
            result['details'] = self.details
        return result


class NotFoundError(AttendanceError):
    kind = 'not_found'
    status_code = 404
    default_message = 'Resource not found'


class ValidationError(AttendanceError):
    kind = 'validation_error'
    status_code = 400
    default_message = 'Invalid input'


class ConflictError(AttendanceError):
    kind = 'conflict'
    status_code = 409
    default_message = 'An active session already exists for this class'


class ExpiredError(AttendanceError):
    kind = 'expired'
    status_code = 400
    default_message = 'Session has expired or is no longer active'


class EnrollmentMismatchError(AttendanceError):
    kind = 'enrollment_mismatch'
    status_code = 403
    default_message = 'You are not enrolled in this class session'


class DuplicateError(AttendanceError):
    kind = 'duplicate'
    status_code = 409
    default_message = 'Attendance already marked for this session'


class OutOfRangeError(AttendanceError):
    kind = 'out_of_range'
    status_code = 400
    default_message = 'You must be within the classroom area to mark attendance'


class AuthorizationError(AttendanceError):
    kind = 'authorization_error'
    status_code = 403
    default_message = 'Access denied'


class StateError(AttendanceError):
    kind = 'invalid_state'
    status_code = 400
    default_message = 'Operation not allowed in the current session state'


class DecodeError(AttendanceError):
    kind = 'decode_error'
    status_code = 400
    default_message = 'Invalid QR code'
