"""Custom decorators for authorization."""
from functools import wraps
from flask import g
from flask_jwt_extended import get_jwt_identity
from attendance_tracker import db
from attendance_tracker.models.user import User, UserRole
from attendance_tracker.utils.helpers import error_response
from attendance_tracker.utils.validators import Actor


def _load_actor():
    """Resolve the JWT subject to an active user and stash it on ``g``."""
    try:
        user_id = int(get_jwt_identity())
    except (TypeError, ValueError):
        return None
    user = db.session.get(User, user_id)
    if user is None or not user.is_active:
        return None
    g.actor = Actor.from_user(user)
    return g.actor


def login_required(f):
    """Decorator to require any active user."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if _load_actor() is None:
            return error_response("User not found", 404)

        return f(*args, **kwargs)
    return decorated_function


def faculty_required(f):
    """Decorator to require faculty role."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        actor = _load_actor()
        if actor is None:
            return error_response("User not found", 404)

        if actor.role != UserRole.FACULTY:
            return error_response("Faculty access required", 403)

        return f(*args, **kwargs)
    return decorated_function


def student_required(f):
    """Decorator to require student role."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        actor = _load_actor()
        if actor is None:
            return error_response("User not found", 404)

        if actor.role != UserRole.STUDENT:
            return error_response("Student access required", 403)

        return f(*args, **kwargs)
    return decorated_function
