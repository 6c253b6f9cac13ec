"""User model: the identities sessions and attendance records refer to."""
from enum import Enum
from attendance_tracker import db
from attendance_tracker.models.base import BaseModel


class UserRole(Enum):
    """User roles enumeration."""
    STUDENT = 'student'
    FACULTY = 'faculty'
    ADMIN = 'admin'


class ClassName(Enum):
    """Academic year/semester labels."""
    I_I = 'I-I'
    II_I = 'II-I'
    III_I = 'III-I'
    IV_I = 'IV-I'


class Section(Enum):
    """Class sections enumeration."""
    A = 'A'
    B = 'B'
    CSE_DS_A = 'CSE-DS-A'
    CSE_A = 'CSE-A'
    CSE_B = 'CSE-B'
    IT_A = 'IT-A'
    IT_B = 'IT-B'


class User(BaseModel):
    """User model for students, faculty and administrators.

    Credentials live with the external auth service; this table only holds
    what attendance rules need: role, enrollment and the active flag.
    """

    __tablename__ = 'users'

    # Basic Information
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    role = db.Column(db.Enum(UserRole), nullable=False, default=UserRole.STUDENT)
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    # Students
    roll_number = db.Column(db.String(50), unique=True, nullable=True, index=True)
    class_name = db.Column(db.String(10), nullable=True)
    section = db.Column(db.String(20), nullable=True)

    # Faculty
    employee_id = db.Column(db.String(50), unique=True, nullable=True)

    __table_args__ = (
        db.Index('ix_users_role_class_section', 'role', 'class_name', 'section'),
    )

    def is_student(self) -> bool:
        """Check if user is a student."""
        return self.role == UserRole.STUDENT

    def to_dict(self, exclude: list = None) -> dict:
        result = super().to_dict(exclude=exclude)
        result['role'] = self.role.value if self.role else None
        return result

    def __repr__(self) -> str:
        return f'<User {self.email}>'
