"""Storage access for sessions and attendance records.

The services receive an ``AttendanceRepository`` instead of reaching for the
global ``db`` themselves, so the process entry point owns the connection.
"""
import logging
from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import case, func
from sqlalchemy.exc import IntegrityError

from attendance_tracker.models.attendance import AttendanceRecord, AttendanceStatus
from attendance_tracker.models.attendance_session import AttendanceSession
from attendance_tracker.models.subject import Subject
from attendance_tracker.models.user import User, UserRole
from attendance_tracker.utils.errors import DuplicateError

logger = logging.getLogger(__name__)


class AttendanceRepository:
    """Repository over the Flask-SQLAlchemy session."""

    def __init__(self, db):
        self.db = db

    @property
    def session(self):
        return self.db.session

    # =================== TRANSACTIONS ===================

    def commit(self) -> None:
        self.session.commit()

    # =================== LOOKUPS ===================

    def get_session(self, session_id: int) -> Optional[AttendanceSession]:
        return self.session.get(AttendanceSession, session_id)

    def find_session_by_token(self, session_token: str) -> Optional[AttendanceSession]:
        return self.session.query(AttendanceSession).filter_by(
            session_token=session_token
        ).first()

    def find_active_for_faculty_class_section(self, faculty_id: int, class_name: str,
                                              section: str, now: datetime) -> Optional[AttendanceSession]:
        return self.session.query(AttendanceSession).filter(
            AttendanceSession.faculty_id == faculty_id,
            AttendanceSession.class_name == class_name,
            AttendanceSession.section == section,
            AttendanceSession.is_active.is_(True),
            AttendanceSession.expiry_time >= now
        ).first()

    def find_current_active_for_faculty(self, faculty_id: int, now: datetime) -> Optional[AttendanceSession]:
        return self.session.query(AttendanceSession).filter(
            AttendanceSession.faculty_id == faculty_id,
            AttendanceSession.is_active.is_(True),
            AttendanceSession.expiry_time >= now
        ).order_by(AttendanceSession.created_at.desc(), AttendanceSession.id.desc()).first()

    def get_subject(self, subject_id: int) -> Optional[Subject]:
        return self.session.get(Subject, subject_id)

    def get_user(self, user_id: int) -> Optional[User]:
        return self.session.get(User, user_id)

    def get_subjects(self, subject_ids) -> dict:
        if not subject_ids:
            return {}
        subjects = self.session.query(Subject).filter(Subject.id.in_(list(subject_ids))).all()
        return {subject.id: subject for subject in subjects}

    def find_subject_by_code(self, code: str) -> Optional[Subject]:
        return self.session.query(Subject).filter_by(code=code).first()

    def faculty_subjects(self, faculty_id: int, include_inactive: bool = False) -> List[Subject]:
        query = self.session.query(Subject).filter(Subject.faculty_id == faculty_id)
        if not include_inactive:
            query = query.filter(Subject.is_active.is_(True))
        return query.order_by(Subject.code).all()

    def active_subjects(self) -> List[Subject]:
        return self.session.query(Subject).filter(Subject.is_active.is_(True)).order_by(Subject.code).all()

    def find_attendance(self, student_id: int, session_id: int) -> Optional[AttendanceRecord]:
        return self.session.query(AttendanceRecord).filter_by(
            student_id=student_id,
            session_id=session_id
        ).first()

    # =================== ENROLLMENT ===================

    def _enrolled_query(self, class_name: str, section: str):
        return self.session.query(User).filter(
            User.role == UserRole.STUDENT,
            User.class_name == class_name,
            User.section == section,
            User.is_active.is_(True)
        )

    def count_enrolled(self, class_name: str, section: str) -> int:
        return self._enrolled_query(class_name, section).count()

    def list_enrolled(self, class_name: str, section: str) -> List[User]:
        return self._enrolled_query(class_name, section).order_by(User.roll_number, User.id).all()

    def list_students(self, class_name: Optional[str] = None, section: Optional[str] = None) -> List[User]:
        """Active students, narrowed to one class and/or section when given."""
        if class_name and section:
            return self.list_enrolled(class_name, section)

        query = self.session.query(User).filter(
            User.role == UserRole.STUDENT,
            User.is_active.is_(True)
        )
        if class_name:
            query = query.filter(User.class_name == class_name)
        if section:
            query = query.filter(User.section == section)
        return query.order_by(User.class_name, User.section, User.roll_number, User.id).all()

    # =================== WRITES ===================

    def add_session(self, attendance_session: AttendanceSession) -> AttendanceSession:
        self.session.add(attendance_session)
        self.session.flush()
        return attendance_session

    def add_subject(self, subject: Subject) -> Subject:
        self.session.add(subject)
        self.session.flush()
        return subject

    def insert_attendance(self, record: AttendanceRecord) -> AttendanceRecord:
        """Insert a record; the (student, session) unique constraint is the final word on duplicates.

        Callers commit after each record, so a rejected insert only rolls back
        its own unit of work.
        """
        student_id, session_id = record.student_id, record.session_id
        self.session.add(record)
        try:
            self.session.flush()
        except IntegrityError:
            self.session.rollback()
            if self.find_attendance(student_id, session_id) is None:
                raise
            logger.info('Unique constraint rejected attendance for student %s in session %s',
                        student_id, session_id)
            raise DuplicateError()
        return record

    def increment_attended(self, session_id: int, by: int = 1) -> None:
        """Add to the attended counter and refresh the percentage in one UPDATE."""
        attended = AttendanceSession.attended_students + by
        total = AttendanceSession.total_students
        self.session.query(AttendanceSession).filter(
            AttendanceSession.id == session_id
        ).update({
            AttendanceSession.attended_students: attended,
            AttendanceSession.attendance_percentage: case(
                (total == 0, 0),
                (attended >= total, 100),
                else_=(attended * 200 + total) // (total * 2)
            )
        }, synchronize_session=False)

    def delete_all_attendance(self) -> int:
        return self.session.query(AttendanceRecord).delete(synchronize_session=False)

    def delete_all_sessions(self) -> int:
        return self.session.query(AttendanceSession).delete(synchronize_session=False)

    def reset_session_counters(self) -> int:
        return self.session.query(AttendanceSession).update({
            AttendanceSession.attended_students: 0,
            AttendanceSession.attendance_percentage: 0
        }, synchronize_session=False)

    # =================== LISTINGS ===================

    def faculty_sessions(self, faculty_id: int, now: datetime, status: Optional[str] = None,
                         subject_id: Optional[int] = None):
        query = self.session.query(AttendanceSession).filter(AttendanceSession.faculty_id == faculty_id)

        if status == 'active':
            query = query.filter(AttendanceSession.is_active.is_(True),
                                 AttendanceSession.expiry_time >= now)
        elif status == 'expired':
            query = query.filter(AttendanceSession.expiry_time < now)

        if subject_id:
            query = query.filter(AttendanceSession.subject_id == subject_id)

        return query.order_by(AttendanceSession.created_at.desc(), AttendanceSession.id.desc())

    def class_sessions(self, class_name: str, section: str, start: Optional[datetime] = None,
                       end: Optional[datetime] = None):
        query = self.session.query(AttendanceSession).filter(
            AttendanceSession.class_name == class_name,
            AttendanceSession.section == section
        )
        if start is not None and end is not None:
            query = query.filter(AttendanceSession.start_time >= start,
                                 AttendanceSession.start_time < end)
        return query.order_by(AttendanceSession.created_at.desc(), AttendanceSession.id.desc())

    def session_records(self, session_id: int) -> List[AttendanceRecord]:
        return self.session.query(AttendanceRecord).filter_by(
            session_id=session_id
        ).order_by(AttendanceRecord.marked_at.asc(), AttendanceRecord.id.asc()).all()

    def _filter_records(self, query, subject_id: Optional[int] = None,
                        start_date: Optional[date] = None, end_date: Optional[date] = None):
        if subject_id:
            query = query.filter(AttendanceRecord.subject_id == subject_id)
        if start_date:
            query = query.filter(AttendanceRecord.attendance_date >= start_date)
        if end_date:
            query = query.filter(AttendanceRecord.attendance_date <= end_date)
        return query

    def student_records(self, student_id: int, subject_id: Optional[int] = None,
                        start_date: Optional[date] = None, end_date: Optional[date] = None):
        query = self.session.query(AttendanceRecord).filter(AttendanceRecord.student_id == student_id)
        query = self._filter_records(query, subject_id, start_date, end_date)
        return query.order_by(AttendanceRecord.attendance_date.desc(), AttendanceRecord.marked_at.desc())

    # =================== AGGREGATES ===================

    def _status_count(self, *statuses: AttendanceStatus):
        return func.coalesce(func.sum(case((AttendanceRecord.status.in_(statuses), 1), else_=0)), 0)

    def student_status_counts(self, student_id: int, subject_id: Optional[int] = None,
                              start_date: Optional[date] = None, end_date: Optional[date] = None):
        """Rows of (subject_id, total, attended, late) for one student."""
        query = self.session.query(
            AttendanceRecord.subject_id,
            func.count(AttendanceRecord.id),
            self._status_count(AttendanceStatus.PRESENT, AttendanceStatus.LATE),
            self._status_count(AttendanceStatus.LATE)
        ).filter(AttendanceRecord.student_id == student_id)
        query = self._filter_records(query, subject_id, start_date, end_date)
        return query.group_by(AttendanceRecord.subject_id).order_by(AttendanceRecord.subject_id).all()

    def faculty_status_counts(self, faculty_id: int, subject_id: Optional[int] = None,
                              class_name: Optional[str] = None, section: Optional[str] = None,
                              start_date: Optional[date] = None, end_date: Optional[date] = None):
        """Rows of (subject_id, total, present, late, absent) for one faculty member."""
        query = self.session.query(
            AttendanceRecord.subject_id,
            func.count(AttendanceRecord.id),
            self._status_count(AttendanceStatus.PRESENT),
            self._status_count(AttendanceStatus.LATE),
            self._status_count(AttendanceStatus.ABSENT)
        ).filter(AttendanceRecord.faculty_id == faculty_id)
        if class_name:
            query = query.filter(AttendanceRecord.class_name == class_name)
        if section:
            query = query.filter(AttendanceRecord.section == section)
        query = self._filter_records(query, subject_id, start_date, end_date)
        return query.group_by(AttendanceRecord.subject_id).order_by(AttendanceRecord.subject_id).all()
