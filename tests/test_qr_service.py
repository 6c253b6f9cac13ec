"""Tests for the QR payload codec."""
import base64
import json

import pytest

from attendance_tracker.services.qr_service import PAYLOAD_VERSION, QRService
from attendance_tracker.utils.errors import DecodeError


def payload(**overrides):
    data = {
        'type': 'attendance',
        'sessionId': 'tok-123',
        'facultyId': 7,
        'subject': 'CS301',
        'period': '2',
        'class': 'III-I',
        'section': 'A',
        'timestamp': '2024-09-02T09:00:00',
        'expiryTime': '2024-09-02T09:05:00',
        'geofence': {'latitude': 17.4065, 'longitude': 78.4772, 'radius': 50},
        'version': '1.0'
    }
    data.update(overrides)
    return json.dumps(data)


def test_encode_payload_fields(open_session):
    session, qr_data = open_session
    data = json.loads(qr_data)

    assert data == {
        'type': 'attendance',
        'sessionId': session.session_token,
        'facultyId': session.faculty_id,
        'subject': 'CS301',
        'period': '1',
        'class': 'III-I',
        'section': 'A',
        'timestamp': '2024-09-02T09:00:00',
        'expiryTime': '2024-09-02T09:05:00',
        'geofence': {'latitude': 17.4065, 'longitude': 78.4772, 'radius': 50.0},
        'version': PAYLOAD_VERSION
    }


def test_encode_payload_is_compact(open_session):
    _, qr_data = open_session
    assert ' ' not in qr_data


def test_encoded_payload_decodes_to_session(open_session):
    session, qr_data = open_session
    parsed = QRService.decode_payload(qr_data)

    assert parsed.session_token == session.session_token
    assert parsed.class_name == 'III-I'
    assert parsed.section == 'A'
    assert parsed.version == '1.0'


def test_decode_payload_fields():
    parsed = QRService.decode_payload(payload())

    assert parsed.session_token == 'tok-123'
    assert parsed.faculty_id == 7
    assert parsed.subject == 'CS301'
    assert parsed.period == '2'
    assert parsed.expiry_time == '2024-09-02T09:05:00'
    assert parsed.geofence['radius'] == 50


def test_decode_strips_session_id():
    assert QRService.decode_payload(payload(sessionId='  tok-123 ')).session_token == 'tok-123'


def test_decode_tolerates_missing_version_and_extra_keys():
    data = json.loads(payload(extra='ignored'))
    del data['version']
    parsed = QRService.decode_payload(json.dumps(data))

    assert parsed.session_token == 'tok-123'
    assert parsed.version is None


def test_decode_accepts_minor_version_bump():
    assert QRService.decode_payload(payload(version='1.3')).version == '1.3'


@pytest.mark.parametrize('text,message', [
    ('', 'QR code is empty'),
    ('   ', 'QR code is empty'),
    (None, 'QR code is empty'),
    ({'sessionId': 'tok-123'}, 'Invalid QR code format'),
    (42, 'Invalid QR code format'),
    ('not json', 'Invalid QR code format'),
    ('[1, 2, 3]', 'Invalid QR code format'),
    ('"attendance"', 'Invalid QR code format'),
    (payload(type='payment'), 'Not an attendance QR code'),
    (payload(sessionId=''), 'QR code does not contain a session'),
    (payload(sessionId=42), 'QR code does not contain a session'),
    (payload(version='2.0'), 'Unsupported QR code version: 2.0'),
])
def test_decode_rejects(text, message):
    with pytest.raises(DecodeError) as excinfo:
        QRService.decode_payload(text)
    assert excinfo.value.message == message
    assert excinfo.value.kind == 'decode_error'


def test_render_qr_image_returns_png_data_url():
    image = QRService.render_qr_image(payload(), box_size=4, border=1)

    assert image.startswith('data:image/png;base64,')
    raw = base64.b64decode(image.split(',', 1)[1])
    assert raw[:8] == b'\x89PNG\r\n\x1a\n'
