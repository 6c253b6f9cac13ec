"""Attendance API endpoints."""
from flask import Blueprint, current_app, g, request
from flask_jwt_extended import jwt_required
from attendance_tracker import limiter
from attendance_tracker.services import (
    get_attendance_service, get_repository, get_stats_service
)
from attendance_tracker.utils.decorators import faculty_required, student_required
from attendance_tracker.utils.helpers import pagination_meta, success_response
from attendance_tracker.utils.validators import Validator

attendance_bp = Blueprint('attendance', __name__)


def _mark_rate_limit():
    return current_app.config['ATTENDANCE_MARK_RATE_LIMIT']


@attendance_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return success_response(message='Attendance service is running')


@attendance_bp.route('/mark', methods=['POST'])
@jwt_required()
@student_required
@limiter.limit(_mark_rate_limit)
def mark_attendance():
    """Mark attendance from a scanned QR payload or session token."""
    mark_request = Validator.parse_mark_attendance(
        request.get_json(silent=True),
        user_agent=request.headers.get('User-Agent'),
        ip_address=request.remote_addr
    )
    result = get_attendance_service().mark_attendance(g.actor, mark_request)

    return success_response(
        data={'attendance': result.to_dict()},
        message=f"Attendance marked successfully{' (Late)' if result.is_late else ''}",
        status_code=201
    )


@attendance_bp.route('/manual', methods=['POST'])
@jwt_required()
@faculty_required
def mark_manual_attendance():
    """Faculty marks several students at once."""
    manual_request = Validator.parse_manual_attendance(request.get_json(silent=True))
    result = get_attendance_service().mark_manual_attendance(g.actor, manual_request)

    return success_response(
        data=result.to_dict(),
        message=f'Manual attendance marked for {len(result.successful)} students'
    )


@attendance_bp.route('/student/my', methods=['GET'])
@jwt_required()
@student_required
def my_attendance():
    """Get the student's own attendance records."""
    page = max(request.args.get('page', 1, type=int) or 1, 1)
    limit = request.args.get('limit', current_app.config['DEFAULT_PAGE_SIZE'], type=int)
    limit = min(max(limit or 1, 1), current_app.config['MAX_PAGE_SIZE'])

    query = get_repository().student_records(
        g.actor.id,
        subject_id=request.args.get('subject', type=int),
        start_date=Validator.to_date(request.args.get('start_date'), 'start_date'),
        end_date=Validator.to_date(request.args.get('end_date'), 'end_date')
    )
    pagination = query.paginate(page=page, per_page=limit, error_out=False)

    return success_response(data={
        'records': [record.to_dict() for record in pagination.items],
        'pagination': pagination_meta(pagination)
    })


@attendance_bp.route('/student/stats', methods=['GET'])
@jwt_required()
@student_required
def my_stats():
    stats = get_stats_service().student_stats(
        g.actor.id,
        subject_id=request.args.get('subject', type=int),
        start_date=Validator.to_date(request.args.get('start_date'), 'start_date'),
        end_date=Validator.to_date(request.args.get('end_date'), 'end_date')
    )
    return success_response(data=stats)


@attendance_bp.route('/faculty/sessions/<int:session_id>', methods=['GET'])
@jwt_required()
@faculty_required
def session_attendance(session_id):
    """Roster for one session: who scanned, who is absent."""
    return success_response(data=get_stats_service().session_roster(g.actor, session_id))


@attendance_bp.route('/faculty/reports', methods=['GET'])
@jwt_required()
@faculty_required
def faculty_reports():
    report = get_stats_service().faculty_summary(
        g.actor,
        subject_id=request.args.get('subject', type=int),
        class_name=request.args.get('class') or None,
        section=request.args.get('section') or None,
        start_date=Validator.to_date(request.args.get('start_date'), 'start_date'),
        end_date=Validator.to_date(request.args.get('end_date'), 'end_date')
    )
    return success_response(data=report)
