"""Attendance session: one time-boxed, geofenced class meeting."""
from datetime import datetime
from typing import Optional
import secrets
from attendance_tracker import db
from attendance_tracker.models.base import BaseModel
from attendance_tracker.utils.helpers import isoformat, utcnow


class AttendanceSession(BaseModel):
    """Session for tracking attendance with QR codes.

    ``session_token`` is the public identifier embedded in QR payloads; the
    integer primary key never leaves the API for scanning purposes.

    Whether a session accepts marks depends on two independent conditions,
    ``is_active`` and ``expiry_time``. A session can be active yet expired;
    nothing flips ``is_active`` when the expiry passes.
    """

    __tablename__ = 'attendance_sessions'

    session_token = db.Column(db.String(64), unique=True, nullable=False, index=True)
    faculty_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    subject_id = db.Column(db.Integer, db.ForeignKey('subjects.id'), nullable=False)
    class_name = db.Column(db.String(10), nullable=False)
    section = db.Column(db.String(20), nullable=False)
    period = db.Column(db.String(50), nullable=False)

    start_time = db.Column(db.DateTime, nullable=False)
    end_time = db.Column(db.DateTime, nullable=False)
    expiry_time = db.Column(db.DateTime, nullable=False, index=True)

    # Geofence
    geofence_latitude = db.Column(db.Float, nullable=False)
    geofence_longitude = db.Column(db.Float, nullable=False)
    geofence_radius = db.Column(db.Float, nullable=False, default=50)

    is_active = db.Column(db.Boolean, default=True, nullable=False)

    # Stats
    total_students = db.Column(db.Integer, default=0, nullable=False)
    attended_students = db.Column(db.Integer, default=0, nullable=False)
    attendance_percentage = db.Column(db.Integer, default=0, nullable=False)

    # Relationships
    faculty = db.relationship('User', foreign_keys=[faculty_id])
    subject = db.relationship('Subject')
    records = db.relationship('AttendanceRecord', backref='session', lazy='dynamic')

    __table_args__ = (
        db.Index('ix_sessions_faculty_class_section', 'faculty_id', 'class_name', 'section'),
    )

    @staticmethod
    def generate_session_token() -> str:
        """Generate unique session token."""
        return secrets.token_urlsafe(32)

    @property
    def geofence(self) -> dict:
        return {
            'latitude': self.geofence_latitude,
            'longitude': self.geofence_longitude,
            'radius': self.geofence_radius
        }

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Check if session is expired."""
        return (now or utcnow()) > self.expiry_time

    def accepts_attendance(self, now: Optional[datetime] = None) -> bool:
        """Both gates: explicitly active and not past expiry."""
        return bool(self.is_active) and not self.is_expired(now)

    def calculate_attendance_percentage(self) -> int:
        """Rounded (half up) share of enrolled students who attended, 0..100."""
        if not self.total_students:
            return 0
        attended = min(self.attended_students or 0, self.total_students)
        return (attended * 200 + self.total_students) // (self.total_students * 2)

    def to_dict(self, now: Optional[datetime] = None):
        """Convert to dictionary."""
        return {
            'id': self.id,
            'session_id': self.session_token,
            'faculty_id': self.faculty_id,
            'subject': self.subject.summary() if self.subject else None,
            'class': self.class_name,
            'section': self.section,
            'period': self.period,
            'start_time': isoformat(self.start_time),
            'end_time': isoformat(self.end_time),
            'expiry_time': isoformat(self.expiry_time),
            'geofence': self.geofence,
            'is_active': self.is_active,
            'is_expired': self.is_expired(now),
            'accepting_attendance': self.accepts_attendance(now),
            'total_students': self.total_students,
            'attended_students': self.attended_students,
            'attendance_percentage': self.attendance_percentage,
            'created_at': isoformat(self.created_at)
        }

    def __repr__(self):
        return f'<AttendanceSession {self.session_token[:8]}>'
