"""Session API endpoints."""
from flask import Blueprint, current_app, g, request
from flask_jwt_extended import jwt_required
from attendance_tracker import limiter
from attendance_tracker.services import get_session_service
from attendance_tracker.services.qr_service import QRService
from attendance_tracker.utils.decorators import faculty_required, login_required, student_required
from attendance_tracker.utils.helpers import pagination_meta, success_response
from attendance_tracker.utils.validators import Validator

sessions_bp = Blueprint('sessions', __name__)


def _page_args():
    page = max(request.args.get('page', 1, type=int) or 1, 1)
    limit = request.args.get('limit', current_app.config['DEFAULT_PAGE_SIZE'], type=int)
    limit = min(max(limit or 1, 1), current_app.config['MAX_PAGE_SIZE'])
    return page, limit


@sessions_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return success_response(message='Session service is running')


@sessions_bp.route('', methods=['POST'])
@jwt_required()
@faculty_required
@limiter.limit("30 per hour")
def create_session():
    """Create a session and return its QR payload and image."""
    create_request = Validator.parse_create_session(request.get_json(silent=True))
    session, qr_data = get_session_service().create_session(g.actor, create_request)

    qr_image = QRService.render_qr_image(
        qr_data,
        box_size=current_app.config['QR_IMAGE_BOX_SIZE'],
        border=current_app.config['QR_IMAGE_BORDER']
    )

    return success_response(
        data={
            'session': session.to_dict(),
            'qr_data': qr_data,
            'qr_code': qr_image
        },
        message='Session created successfully',
        status_code=201
    )


@sessions_bp.route('/faculty/my', methods=['GET'])
@jwt_required()
@faculty_required
def faculty_sessions():
    page, limit = _page_args()
    pagination = get_session_service().list_faculty_sessions(
        g.actor,
        status=request.args.get('status') or None,
        subject_id=request.args.get('subject', type=int),
        page=page,
        per_page=limit
    )
    return success_response(data={
        'sessions': [s.to_dict() for s in pagination.items],
        'pagination': pagination_meta(pagination)
    })


@sessions_bp.route('/student/my', methods=['GET'])
@jwt_required()
@student_required
def student_sessions():
    page, limit = _page_args()
    pagination = get_session_service().list_student_sessions(
        g.actor,
        on_date=Validator.to_date(request.args.get('date'), 'date'),
        page=page,
        per_page=limit
    )
    return success_response(data={
        'sessions': [s.to_dict() for s in pagination.items],
        'pagination': pagination_meta(pagination)
    })


@sessions_bp.route('/active', methods=['GET'])
@jwt_required()
@faculty_required
def current_active_session():
    session = get_session_service().get_current_active_session(g.actor)
    return success_response(data=session.to_dict())


@sessions_bp.route('/active/<string:session_token>', methods=['GET'])
@jwt_required()
@login_required
def active_session(session_token):
    """Preview an open session by its public token (used by scanners)."""
    session = get_session_service().get_active_session(session_token)
    return success_response(data=session.to_dict())


@sessions_bp.route('/<int:session_id>', methods=['GET'])
@jwt_required()
@login_required
def get_session(session_id):
    session = get_session_service().get_session(g.actor, session_id)
    return success_response(data=session.to_dict())


@sessions_bp.route('/<int:session_id>/end', methods=['PUT'])
@jwt_required()
@faculty_required
def end_session(session_id):
    session = get_session_service().end_session(g.actor, session_id)
    return success_response(data=session.to_dict(), message='Session ended successfully')


@sessions_bp.route('/<int:session_id>/extend', methods=['PUT'])
@jwt_required()
@faculty_required
def extend_session(session_id):
    data = request.get_json(silent=True) or {}
    minutes = Validator.to_int(data.get('minutes', 5), 'minutes')

    session = get_session_service().extend_session(g.actor, session_id, minutes)
    return success_response(
        data={'expiry_time': session.expiry_time.isoformat()},
        message=f'Session extended by {minutes} minutes'
    )
