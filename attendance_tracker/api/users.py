"""User directory endpoints."""
from flask import Blueprint, request
from flask_jwt_extended import jwt_required
from attendance_tracker.services import get_repository
from attendance_tracker.utils.decorators import faculty_required
from attendance_tracker.utils.helpers import success_response
from attendance_tracker.utils.validators import Validator

users_bp = Blueprint('users', __name__)

STUDENT_FIELDS = ('id', 'name', 'email', 'roll_number', 'class_name', 'section')


@users_bp.route('/students', methods=['GET'])
@jwt_required()
@faculty_required
def list_students():
    """Active students, optionally for one class and section (used for manual marking)."""
    class_name = request.args.get('class') or None
    section = request.args.get('section') or None
    if class_name and section:
        Validator.validate_class_section(class_name, section)

    students = get_repository().list_students(class_name, section)
    return success_response(data={
        'count': len(students),
        'students': [
            {key: value for key, value in student.to_dict().items() if key in STUDENT_FIELDS}
            for student in students
        ]
    })
