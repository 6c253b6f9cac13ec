"""QR payload encoding/decoding and image rendering."""
import base64
import io
import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import qrcode

from attendance_tracker.utils.errors import DecodeError
from attendance_tracker.utils.helpers import isoformat

PAYLOAD_TYPE = 'attendance'
PAYLOAD_VERSION = '1.0'
SUPPORTED_MAJOR_VERSIONS = ('1',)


@dataclass
class ParsedPayload:
    """Decoded QR payload. Everything except the token is display data."""
    session_token: str
    faculty_id: Any = None
    subject: Optional[str] = None
    period: Optional[str] = None
    class_name: Optional[str] = None
    section: Optional[str] = None
    timestamp: Optional[str] = None
    expiry_time: Optional[str] = None
    geofence: Dict = field(default_factory=dict)
    version: Optional[str] = None


class QRService:
    """Service for QR code operations."""

    @staticmethod
    def encode_payload(session, subject_code: str) -> str:
        """Build the compact JSON string shown to students as a QR code."""
        qr_data = {
            'type': PAYLOAD_TYPE,
            'sessionId': session.session_token,
            'facultyId': session.faculty_id,
            'subject': subject_code,
            'period': session.period,
            'class': session.class_name,
            'section': session.section,
            'timestamp': isoformat(session.start_time),
            'expiryTime': isoformat(session.expiry_time),
            'geofence': session.geofence,
            'version': PAYLOAD_VERSION
        }
        return json.dumps(qr_data, separators=(',', ':'))

    @staticmethod
    def decode_payload(qr_data_string: str) -> ParsedPayload:
        """
        Parse a scanned payload.

        Only structure is checked here; expiry and geofence are decided
        against the live session by the attendance service.
        """
        if qr_data_string is None:
            raise DecodeError('QR code is empty')
        if not isinstance(qr_data_string, str):
            raise DecodeError('Invalid QR code format')
        if not qr_data_string.strip():
            raise DecodeError('QR code is empty')

        try:
            qr_data = json.loads(qr_data_string)
        except json.JSONDecodeError:
            raise DecodeError('Invalid QR code format')

        if not isinstance(qr_data, dict):
            raise DecodeError('Invalid QR code format')

        if qr_data.get('type') != PAYLOAD_TYPE:
            raise DecodeError('Not an attendance QR code')

        session_token = qr_data.get('sessionId')
        if not isinstance(session_token, str) or not session_token.strip():
            raise DecodeError('QR code does not contain a session')

        version = qr_data.get('version')
        if version is not None and str(version).split('.')[0] not in SUPPORTED_MAJOR_VERSIONS:
            raise DecodeError(f'Unsupported QR code version: {version}')

        geofence = qr_data.get('geofence')
        return ParsedPayload(
            session_token=session_token.strip(),
            faculty_id=qr_data.get('facultyId'),
            subject=qr_data.get('subject'),
            period=qr_data.get('period'),
            class_name=qr_data.get('class'),
            section=qr_data.get('section'),
            timestamp=qr_data.get('timestamp'),
            expiry_time=qr_data.get('expiryTime'),
            geofence=geofence if isinstance(geofence, dict) else {},
            version=None if version is None else str(version)
        )

    @staticmethod
    def render_qr_image(qr_string: str, box_size: int = 10, border: int = 2) -> str:
        """Render a payload as a PNG data URL."""
        qr = qrcode.QRCode(
            version=None,  # Auto-determine size
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=box_size,
            border=border,
        )
        qr.add_data(qr_string)
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")

        buffered = io.BytesIO()
        img.save(buffered, format="PNG")
        img_str = base64.b64encode(buffered.getvalue()).decode()

        return f"data:image/png;base64,{img_str}"
