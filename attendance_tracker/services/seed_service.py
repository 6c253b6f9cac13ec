"""Database seeding service for demo data."""
import logging

from attendance_tracker import db
from attendance_tracker.models.user import User, UserRole, ClassName, Section
from attendance_tracker.models.subject import Subject

logger = logging.getLogger(__name__)

FACULTY_DATA = [
    ('Dr. Anitha Rao', 'anitha.rao', 'FAC001'),
    ('Dr. Suresh Kumar', 'suresh.kumar', 'FAC002'),
]

SUBJECT_DATA = [
    # code, name, faculty index, class/section assignments
    ('CS301', 'Data Structures', 0, [(ClassName.III_I, Section.A), (ClassName.III_I, Section.B)]),
    ('CS302', 'Database Systems', 0, [(ClassName.III_I, Section.A)]),
    ('CS303', 'Computer Networks', 1, [(ClassName.III_I, Section.B), (ClassName.III_I, Section.CSE_A)]),
]

STUDENT_SECTIONS = [Section.A, Section.B, Section.CSE_A]
STUDENTS_PER_SECTION = 5


class SeedService:
    """Service to seed the database with demo faculty, students and subjects.

    Rows are looked up by their natural keys first, so running the seed
    twice does not create duplicates.
    """

    @staticmethod
    def seed_all() -> dict:
        """Seed all demo data and return how many rows of each kind were created."""
        faculty, faculty_created = SeedService.seed_faculty()
        students_created = SeedService.seed_students()
        subjects_created = SeedService.seed_subjects(faculty)

        db.session.commit()

        summary = {
            'faculty': faculty_created,
            'students': students_created,
            'subjects': subjects_created
        }
        logger.info('Seeded demo data: %s', summary)
        return summary

    @staticmethod
    def seed_faculty():
        faculty = []
        created = 0

        for name, username, employee_id in FACULTY_DATA:
            member = User.query.filter_by(email=f'{username}@college.edu').first()
            if member is None:
                member = User(
                    email=f'{username}@college.edu',
                    name=name,
                    role=UserRole.FACULTY,
                    employee_id=employee_id
                )
                db.session.add(member)
                created += 1
            faculty.append(member)

        db.session.flush()
        return faculty, created

    @staticmethod
    def seed_students() -> int:
        """Seed students of class III-I across a few sections."""
        created = 0

        for section in STUDENT_SECTIONS:
            prefix = section.value.replace('-', '')
            for number in range(1, STUDENTS_PER_SECTION + 1):
                roll_number = f'21{prefix}{number:03d}'
                if User.query.filter_by(roll_number=roll_number).first() is not None:
                    continue

                db.session.add(User(
                    email=f'{roll_number.lower()}@student.college.edu',
                    name=f'Student {section.value} {number}',
                    role=UserRole.STUDENT,
                    roll_number=roll_number,
                    class_name=ClassName.III_I.value,
                    section=section.value
                ))
                created += 1

        db.session.flush()
        return created

    @staticmethod
    def seed_subjects(faculty) -> int:
        created = 0

        for code, name, faculty_index, assignments in SUBJECT_DATA:
            if Subject.query.filter_by(code=code).first() is not None:
                continue

            db.session.add(Subject(
                code=code,
                name=name,
                faculty_id=faculty[faculty_index].id,
                classes=[
                    {'class': class_name.value, 'section': section.value}
                    for class_name, section in assignments
                ]
            ))
            created += 1

        db.session.flush()
        return created
