"""Subject API endpoints."""
from flask import Blueprint, g, request
from flask_jwt_extended import jwt_required
from attendance_tracker.services import get_subject_service
from attendance_tracker.utils.decorators import faculty_required, login_required
from attendance_tracker.utils.helpers import success_response
from attendance_tracker.utils.validators import Validator

subjects_bp = Blueprint('subjects', __name__)


@subjects_bp.route('', methods=['GET'])
@jwt_required()
@login_required
def list_subjects():
    """Faculty get their own subjects; students the ones taught to their class."""
    include_inactive = request.args.get('include_inactive', 'false').lower() == 'true'
    subjects = get_subject_service().list_subjects(g.actor, include_inactive=include_inactive)

    return success_response(data={
        'count': len(subjects),
        'subjects': [subject.to_dict() for subject in subjects]
    })


@subjects_bp.route('/<int:subject_id>', methods=['GET'])
@jwt_required()
@login_required
def get_subject(subject_id):
    subject = get_subject_service().get_subject(g.actor, subject_id)
    return success_response(data=subject.to_dict())


@subjects_bp.route('', methods=['POST'])
@jwt_required()
@faculty_required
def create_subject():
    subject_request = Validator.parse_subject(request.get_json(silent=True))
    subject = get_subject_service().create_subject(g.actor, subject_request)

    return success_response(
        data=subject.to_dict(),
        message='Subject created successfully',
        status_code=201
    )


@subjects_bp.route('/<int:subject_id>', methods=['PUT'])
@jwt_required()
@faculty_required
def update_subject(subject_id):
    subject_request = Validator.parse_subject(request.get_json(silent=True), partial=True)
    subject = get_subject_service().update_subject(g.actor, subject_id, subject_request)
    return success_response(data=subject.to_dict(), message='Subject updated successfully')


@subjects_bp.route('/<int:subject_id>', methods=['DELETE'])
@jwt_required()
@faculty_required
def delete_subject(subject_id):
    get_subject_service().delete_subject(g.actor, subject_id)
    return success_response(message='Subject deleted successfully')
