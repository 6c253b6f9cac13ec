"""Attendance statistics and session rosters."""
from datetime import date
from typing import Dict, Optional

from attendance_tracker.models.attendance import AttendanceStatus
from attendance_tracker.services.repository import AttendanceRepository
from attendance_tracker.utils.errors import AuthorizationError, NotFoundError
from attendance_tracker.utils.validators import Actor


def attendance_rate(attended: int, total: int) -> float:
    """Percentage rounded to two decimals, 0 when there is nothing to count."""
    if not total:
        return 0
    return round(min(attended, total) / total * 100, 2)


class StatsService:
    """Read-only summaries over attendance records.

    Absence is never stored for scanned sessions: a student without a record
    for a session is absent, derived at query time.
    """

    def __init__(self, repository: AttendanceRepository):
        self.repository = repository

    def student_subject_stats(self, student_id: int, subject_id: Optional[int] = None,
                              start_date: Optional[date] = None,
                              end_date: Optional[date] = None) -> Dict:
        rows = self.repository.student_status_counts(student_id, subject_id, start_date, end_date)
        total = sum(row[1] for row in rows)
        attended = sum(int(row[2]) for row in rows)
        late = sum(int(row[3]) for row in rows)
        return self._summary(total, attended, late)

    def student_stats(self, student_id: int, subject_id: Optional[int] = None,
                      start_date: Optional[date] = None, end_date: Optional[date] = None) -> Dict:
        """Overall figures plus a per-subject breakdown."""
        rows = self.repository.student_status_counts(student_id, subject_id, start_date, end_date)
        subjects = self.repository.get_subjects({row[0] for row in rows})

        breakdown = []
        for row_subject_id, total, attended, late in rows:
            subject = subjects.get(row_subject_id)
            entry = {'subject': subject.summary() if subject else {'id': row_subject_id}}
            entry.update(self._summary(total, int(attended), int(late)))
            breakdown.append(entry)

        overall = self._summary(
            sum(entry['total_classes'] for entry in breakdown),
            sum(entry['present_classes'] for entry in breakdown),
            sum(entry['late_classes'] for entry in breakdown)
        )
        return {'overall': overall, 'subjects': breakdown}

    def session_roster(self, actor: Actor, session_id: int) -> Dict:
        """Present records and derived absentees for one of the actor's sessions."""
        session = self.repository.get_session(session_id)
        if session is None:
            raise NotFoundError('Session not found')
        if session.faculty_id != actor.id:
            raise AuthorizationError()

        records = self.repository.session_records(session.id)
        enrolled = self.repository.list_enrolled(session.class_name, session.section)

        recorded_ids = {record.student_id for record in records}
        absent = [student for student in enrolled if student.id not in recorded_ids]
        late = [record for record in records if record.status == AttendanceStatus.LATE]

        return {
            'session': session.to_dict(),
            'attendance': {
                'present': [self._roster_entry(record) for record in records],
                'absent': [
                    {'id': s.id, 'name': s.name, 'roll_number': s.roll_number} for s in absent
                ]
            },
            'summary': {
                'total': len(enrolled),
                'present': len(records),
                'absent': len(absent),
                'late': len(late),
                'percentage': session.attendance_percentage
            }
        }

    def faculty_summary(self, actor: Actor, subject_id: Optional[int] = None,
                        class_name: Optional[str] = None, section: Optional[str] = None,
                        start_date: Optional[date] = None, end_date: Optional[date] = None) -> Dict:
        rows = self.repository.faculty_status_counts(
            actor.id, subject_id, class_name, section, start_date, end_date
        )
        subjects = self.repository.get_subjects({row[0] for row in rows})

        summary = []
        for row_subject_id, total, present, late, absent in rows:
            subject = subjects.get(row_subject_id)
            summary.append({
                'subject': subject.summary() if subject else {'id': row_subject_id},
                'total': total,
                'present': int(present),
                'late': int(late),
                'absent': int(absent),
                'percentage': attendance_rate(int(present) + int(late), total)
            })

        return {'count': sum(entry['total'] for entry in summary), 'summary': summary}

    @staticmethod
    def _summary(total: int, attended: int, late: int) -> Dict:
        return {
            'total_classes': total,
            'present_classes': attended,
            'late_classes': late,
            'absent_classes': total - attended,
            'percentage': attendance_rate(attended, total)
        }

    @staticmethod
    def _roster_entry(record) -> Dict:
        entry = record.to_dict()
        student = record.student
        entry['student'] = {
            'id': student.id,
            'name': student.name,
            'roll_number': student.roll_number
        } if student else None
        return entry
