"""Helper functions for the application."""
import re
from datetime import datetime, timezone
from typing import Any, Optional

from flask import jsonify


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the form stored in the database."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def detect_device_type(user_agent: Optional[str]) -> str:
    """Classify a client from its User-Agent header."""
    user_agent = user_agent or ''
    if re.search(r'Mobile|Android|iPhone|iPad', user_agent):
        if 'iPad' in user_agent:
            return 'tablet'
        return 'mobile'
    if 'Desktop' in user_agent or re.search(r'Windows NT|Macintosh|X11', user_agent):
        return 'desktop'
    return 'unknown'


def handle_error(error, status_code: int):
    """Handle application errors with consistent format."""
    return jsonify({
        'error': True,
        'message': getattr(error, 'description', None) or str(error),
        'status_code': status_code
    }), status_code


def success_response(data: Any = None, message: str = "Success", status_code: int = 200):
    """Return consistent success response."""
    response = {
        'error': False,
        'message': message
    }

    if data is not None:
        response['data'] = data

    return jsonify(response), status_code


def error_response(message: str, status_code: int = 400):
    """Return consistent error response."""
    return jsonify({
        'error': True,
        'message': message,
        'status_code': status_code
    }), status_code


def pagination_meta(pagination) -> dict:
    """Pagination block for list responses."""
    return {
        'page': pagination.page,
        'limit': pagination.per_page,
        'total': pagination.total,
        'pages': pagination.pages
    }
