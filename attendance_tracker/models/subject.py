"""Subject model with its class/section assignments."""
from attendance_tracker import db
from attendance_tracker.models.base import BaseModel


class Subject(BaseModel):
    """Subject taught by one faculty member to one or more class/sections."""

    __tablename__ = 'subjects'

    code = db.Column(db.String(10), unique=True, nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    faculty_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    classes = db.Column(db.JSON, nullable=False, default=list)  # [{"class": "III-I", "section": "A"}]
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    # Relationships
    faculty = db.relationship('User', backref=db.backref('subjects', lazy='dynamic'))

    def __init__(self, **kwargs):
        if kwargs.get('code'):
            kwargs['code'] = kwargs['code'].strip().upper()
        super().__init__(**kwargs)

    def is_assigned_to(self, class_name: str, section: str) -> bool:
        """Check whether the subject is scheduled for a class/section."""
        return any(
            assignment.get('class') == class_name and assignment.get('section') == section
            for assignment in (self.classes or [])
        )

    def to_dict(self, exclude: list = None) -> dict:
        result = super().to_dict(exclude=exclude)
        if self.faculty is not None:
            result['faculty'] = {
                'id': self.faculty.id,
                'name': self.faculty.name,
                'email': self.faculty.email,
                'employee_id': self.faculty.employee_id
            }
        return result

    def summary(self) -> dict:
        return {'id': self.id, 'code': self.code, 'name': self.name}

    def __repr__(self):
        return f'<Subject {self.code}>'
