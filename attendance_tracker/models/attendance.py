"""Attendance model with location and device details."""
from enum import Enum
from attendance_tracker import db
from attendance_tracker.models.base import BaseModel
from attendance_tracker.utils.helpers import isoformat, utcnow


class AttendanceStatus(Enum):
    PRESENT = 'present'
    ABSENT = 'absent'
    LATE = 'late'


class MarkedBy(Enum):
    QR_SCAN = 'qr_scan'
    MANUAL = 'manual'
    SYSTEM = 'system'


ATTENDED_STATUSES = (AttendanceStatus.PRESENT, AttendanceStatus.LATE)


class AttendanceRecord(BaseModel):
    """One student's attendance for one session. Written once, never updated."""

    __tablename__ = 'attendance_records'

    student_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    session_id = db.Column(db.Integer, db.ForeignKey('attendance_sessions.id'), nullable=False)

    # Denormalized from the session at write time
    subject_id = db.Column(db.Integer, db.ForeignKey('subjects.id'), nullable=False)
    faculty_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    class_name = db.Column(db.String(10), nullable=False)
    section = db.Column(db.String(20), nullable=False)

    status = db.Column(db.Enum(AttendanceStatus), nullable=False, default=AttendanceStatus.PRESENT)
    marked_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    attendance_date = db.Column(db.Date, nullable=False)
    marked_by = db.Column(db.Enum(MarkedBy), nullable=False, default=MarkedBy.QR_SCAN)

    # Location where check-in happened
    latitude = db.Column(db.Float, nullable=True)
    longitude = db.Column(db.Float, nullable=True)
    accuracy = db.Column(db.Float, nullable=True)

    # Device
    user_agent = db.Column(db.String(512), nullable=True)
    ip_address = db.Column(db.String(64), nullable=True)
    device_type = db.Column(db.String(20), default='unknown')

    # Relationships
    student = db.relationship('User', foreign_keys=[student_id])
    subject = db.relationship('Subject')

    __table_args__ = (
        db.UniqueConstraint('student_id', 'session_id', name='uq_attendance_student_session'),
        db.Index('ix_attendance_student_subject_date', 'student_id', 'subject_id', 'attendance_date'),
        db.Index('ix_attendance_faculty_date', 'faculty_id', 'attendance_date'),
        db.Index('ix_attendance_class_section_date', 'class_name', 'section', 'attendance_date'),
    )

    @property
    def location(self):
        if self.latitude is None or self.longitude is None:
            return None
        return {
            'latitude': self.latitude,
            'longitude': self.longitude,
            'accuracy': self.accuracy or 0
        }

    def is_late(self) -> bool:
        return self.status == AttendanceStatus.LATE

    def to_dict(self):
        return {
            'id': self.id,
            'student_id': self.student_id,
            'session_id': self.session_id,
            'subject_id': self.subject_id,
            'faculty_id': self.faculty_id,
            'class': self.class_name,
            'section': self.section,
            'status': self.status.value,
            'marked_at': isoformat(self.marked_at),
            'attendance_date': self.attendance_date.isoformat(),
            'marked_by': self.marked_by.value,
            'location': self.location,
            'device_type': self.device_type
        }

    def __repr__(self):
        return f'<AttendanceRecord {self.student_id}-{self.session_id}>'
