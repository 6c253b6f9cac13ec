"""Test the HTTP endpoints."""
import json

import pytest

from attendance_tracker import db
from attendance_tracker.models import User
from tests.conftest import CLASSROOM, auth_headers

IPHONE = 'Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) Mobile/15E148'


def create_payload(subject, **overrides):
    data = {
        'subject': subject.id,
        'class': 'III-I',
        'section': 'A',
        'period': '3',
        'geofence': dict(CLASSROOM)
    }
    data.update(overrides)
    return data


def inside_location():
    return {'latitude': CLASSROOM['latitude'], 'longitude': CLASSROOM['longitude'], 'accuracy': 4}


@pytest.fixture
def created(client, faculty, subject, students):
    """Session created through the API; returns the response data."""
    response = client.post('/api/sessions', json=create_payload(subject), headers=auth_headers(faculty))
    assert response.status_code == 201
    return json.loads(response.data)['data']


def test_health_check(client):
    response = client.get('/health')
    assert response.status_code == 200
    assert json.loads(response.data)['status'] == 'healthy'

    response = client.get('/api/sessions/health')
    assert json.loads(response.data)['message'] == 'Session service is running'

    response = client.get('/api/attendance/health')
    assert json.loads(response.data)['message'] == 'Attendance service is running'


def test_missing_token(client):
    response = client.post('/api/sessions', json={})
    assert response.status_code == 401
    assert json.loads(response.data)['message'] == 'Authorization token required'


def test_invalid_token(client):
    response = client.get('/api/sessions/active', headers={'Authorization': 'Bearer nonsense'})
    assert response.status_code == 401


def test_inactive_user_is_rejected(client, faculty):
    headers = auth_headers(faculty)
    faculty.is_active = False
    db.session.commit()

    response = client.get('/api/sessions/active', headers=headers)
    assert response.status_code == 404
    assert json.loads(response.data)['message'] == 'User not found'


def test_create_session(created, subject):
    session = created['session']

    assert session['subject']['code'] == 'CS301'
    assert session['class'] == 'III-I'
    assert session['is_active'] is True
    assert session['accepting_attendance'] is True
    assert session['total_students'] == 3
    assert json.loads(created['qr_data'])['sessionId'] == session['session_id']
    assert created['qr_code'].startswith('data:image/png;base64,')


def test_create_session_requires_faculty(client, subject, students):
    response = client.post('/api/sessions', json=create_payload(subject),
                           headers=auth_headers(students[0]))
    assert response.status_code == 403
    assert json.loads(response.data)['message'] == 'Faculty access required'


@pytest.mark.parametrize('overrides,message', [
    ({'period': None}, 'Missing required field: period'),
    ({'class': 'V-I'}, 'Invalid class: V-I'),
    ({'section': 'Z'}, 'Invalid section: Z'),
    ({'geofence': None}, 'Geofence configuration is required'),
    ({'geofence': {'latitude': 17.4, 'longitude': 78.4, 'radius': 0}},
     'Radius must be between 1 and 1000 meters'),
])
def test_create_session_validation(client, faculty, subject, overrides, message):
    response = client.post('/api/sessions', json=create_payload(subject, **overrides),
                           headers=auth_headers(faculty))
    data = json.loads(response.data)

    assert response.status_code == 400
    assert data['kind'] == 'validation_error'
    assert data['message'] == message


def test_create_session_conflict(client, created, faculty, subject):
    response = client.post('/api/sessions', json=create_payload(subject), headers=auth_headers(faculty))
    assert response.status_code == 409
    assert json.loads(response.data)['kind'] == 'conflict'


def test_active_session_endpoints(client, created, faculty, students):
    token = created['session']['session_id']

    response = client.get('/api/sessions/active', headers=auth_headers(faculty))
    assert json.loads(response.data)['data']['session_id'] == token

    response = client.get(f'/api/sessions/active/{token}', headers=auth_headers(students[0]))
    assert response.status_code == 200

    response = client.get('/api/sessions/active/unknown', headers=auth_headers(students[0]))
    assert response.status_code == 404


def test_get_session_visibility(client, created, students):
    session_id = created['session']['id']

    assert client.get(f'/api/sessions/{session_id}', headers=auth_headers(students[0])).status_code == 200
    response = client.get(f'/api/sessions/{session_id}', headers=auth_headers(students[3]))
    assert response.status_code == 403
    assert json.loads(response.data)['kind'] == 'authorization_error'


def test_mark_attendance(client, created, students):
    response = client.post(
        '/api/attendance/mark',
        json={'qr_data': created['qr_data'], 'location': inside_location()},
        headers={**auth_headers(students[0]), 'User-Agent': IPHONE}
    )
    data = json.loads(response.data)

    assert response.status_code == 201
    assert data['message'] == 'Attendance marked successfully'
    attendance = data['data']['attendance']
    assert attendance['status'] == 'present'
    assert attendance['marked_by'] == 'qr_scan'
    assert attendance['device_type'] == 'mobile'
    assert attendance['accuracy_level'] == 'excellent'


def test_mark_attendance_by_session_id(client, created, students):
    response = client.post(
        '/api/attendance/mark',
        json={'sessionId': created['session']['session_id']},
        headers=auth_headers(students[1])
    )
    assert response.status_code == 201


def test_mark_attendance_rejections(client, created, faculty, students):
    token = created['session']['session_id']
    body = {'session_id': token, 'location': inside_location()}

    client.post('/api/attendance/mark', json=body, headers=auth_headers(students[0]))
    response = client.post('/api/attendance/mark', json=body, headers=auth_headers(students[0]))
    assert response.status_code == 409
    assert json.loads(response.data)['kind'] == 'duplicate'

    response = client.post('/api/attendance/mark', json=body, headers=auth_headers(students[3]))
    assert response.status_code == 403
    assert json.loads(response.data)['kind'] == 'enrollment_mismatch'

    far = {'session_id': token, 'location': {'latitude': 17.5, 'longitude': 78.5}}
    response = client.post('/api/attendance/mark', json=far, headers=auth_headers(students[1]))
    assert response.status_code == 400
    assert json.loads(response.data)['kind'] == 'out_of_range'

    response = client.post('/api/attendance/mark', json={'qr_data': 'garbage'},
                           headers=auth_headers(students[1]))
    assert json.loads(response.data)['kind'] == 'decode_error'

    response = client.post('/api/attendance/mark', json={}, headers=auth_headers(students[1]))
    assert json.loads(response.data)['kind'] == 'validation_error'

    response = client.post('/api/attendance/mark', json=body, headers=auth_headers(faculty))
    assert response.status_code == 403


def test_end_and_extend_session(client, created, faculty, students):
    session_id = created['session']['id']
    headers = auth_headers(faculty)

    response = client.put(f'/api/sessions/{session_id}/extend', json={'minutes': 10}, headers=headers)
    assert response.status_code == 200
    assert json.loads(response.data)['message'] == 'Session extended by 10 minutes'

    response = client.put(f'/api/sessions/{session_id}/extend', json={'minutes': 'ten'}, headers=headers)
    assert response.status_code == 400

    response = client.put(f'/api/sessions/{session_id}/end', headers=headers)
    assert response.status_code == 200
    assert json.loads(response.data)['data']['is_active'] is False

    response = client.put(f'/api/sessions/{session_id}/end', headers=headers)
    assert json.loads(response.data)['kind'] == 'invalid_state'

    response = client.post(
        '/api/attendance/mark',
        json={'session_id': created['session']['session_id']},
        headers=auth_headers(students[0])
    )
    assert json.loads(response.data)['kind'] == 'expired'


def test_session_listings(client, created, faculty, students):
    response = client.get('/api/sessions/faculty/my?status=active&limit=5', headers=auth_headers(faculty))
    data = json.loads(response.data)['data']
    assert [s['id'] for s in data['sessions']] == [created['session']['id']]
    assert data['pagination'] == {'page': 1, 'limit': 5, 'total': 1, 'pages': 1}

    response = client.get('/api/sessions/faculty/my?status=closed', headers=auth_headers(faculty))
    assert response.status_code == 400

    response = client.get('/api/sessions/student/my', headers=auth_headers(students[0]))
    assert json.loads(response.data)['data']['pagination']['total'] == 1

    response = client.get('/api/sessions/student/my?date=yesterday', headers=auth_headers(students[0]))
    assert response.status_code == 400


def test_manual_attendance_and_roster(client, created, faculty, students):
    session_id = created['session']['id']
    headers = auth_headers(faculty)

    response = client.post('/api/attendance/manual', headers=headers, json={
        'session_id': session_id,
        'students': [students[0].id, students[1].id, 12345],
        'status': 'present'
    })
    data = json.loads(response.data)['data']
    assert response.status_code == 200
    assert data['summary'] == {'total': 3, 'successful': 2, 'failed': 1}

    response = client.get(f'/api/attendance/faculty/sessions/{session_id}', headers=headers)
    roster = json.loads(response.data)['data']
    assert roster['summary']['present'] == 2
    assert [s['roll_number'] for s in roster['attendance']['absent']] == ['21A003']
    assert roster['summary']['percentage'] == 67

    response = client.get('/api/attendance/faculty/reports', headers=headers)
    report = json.loads(response.data)['data']
    assert report['count'] == 2
    assert report['summary'][0]['percentage'] == 100.0


def test_manual_attendance_validation(client, created, faculty):
    response = client.post('/api/attendance/manual', headers=auth_headers(faculty), json={
        'session_id': created['session']['id'],
        'students': 'everyone'
    })
    assert response.status_code == 400


def test_student_history_and_stats(client, created, students):
    headers = auth_headers(students[0])
    client.post('/api/attendance/mark', json={'session_id': created['session']['session_id']},
                headers=headers)

    response = client.get('/api/attendance/student/my', headers=headers)
    data = json.loads(response.data)['data']
    assert len(data['records']) == 1
    assert data['records'][0]['session_id'] == created['session']['id']

    response = client.get('/api/attendance/student/stats', headers=headers)
    stats = json.loads(response.data)['data']
    assert stats['overall']['total_classes'] == 1
    assert stats['subjects'][0]['subject']['code'] == 'CS301'

    response = client.get('/api/attendance/student/my?start_date=2024-13-01', headers=headers)
    assert response.status_code == 400


def test_unknown_route_uses_error_envelope(client):
    response = client.get('/api/nowhere')
    data = json.loads(response.data)
    assert response.status_code == 404
    assert data['error'] is True


def test_user_dict_serializes_role(app, faculty):
    assert db.session.get(User, faculty.id).to_dict()['role'] == 'faculty'


def test_qr_data_object_is_rejected(client, created, students):
    response = client.post('/api/attendance/mark', json={'qr_data': {'sessionId': 'x'}},
                           headers=auth_headers(students[0]))
    data = json.loads(response.data)
    assert response.status_code == 400
    assert data['kind'] == 'decode_error'
    assert data['message'] == 'Invalid QR code format'


def subject_payload(**overrides):
    data = {
        'code': 'cs305',
        'name': 'Operating Systems',
        'classes': [{'class': 'III-I', 'section': 'A'}, {'class': 'III-I', 'section': 'A'}]
    }
    data.update(overrides)
    return data


def test_create_subject(client, faculty):
    response = client.post('/api/subjects', json=subject_payload(), headers=auth_headers(faculty))
    data = json.loads(response.data)['data']

    assert response.status_code == 201
    assert data['code'] == 'CS305'
    assert data['classes'] == [{'class': 'III-I', 'section': 'A'}]
    assert data['faculty']['employee_id'] == 'FAC001'
    assert data['is_active'] is True


@pytest.mark.parametrize('overrides', [
    {'code': 'C'},
    {'code': 'CS-305'},
    {'name': ''},
    {'classes': []},
    {'classes': [{'class': 'III-I', 'section': 'Z'}]},
])
def test_create_subject_validation(client, faculty, overrides):
    response = client.post('/api/subjects', json=subject_payload(**overrides), headers=auth_headers(faculty))
    assert response.status_code == 400
    assert json.loads(response.data)['kind'] == 'validation_error'


def test_create_subject_duplicate_code(client, faculty, subject):
    response = client.post('/api/subjects', json=subject_payload(code='CS301'), headers=auth_headers(faculty))
    assert response.status_code == 409


def test_create_subject_requires_faculty(client, students):
    response = client.post('/api/subjects', json=subject_payload(), headers=auth_headers(students[0]))
    assert response.status_code == 403


def test_list_subjects_by_role(client, faculty, other_faculty, subject, students):
    client.post('/api/subjects', headers=auth_headers(other_faculty),
                json=subject_payload(classes=[{'class': 'III-I', 'section': 'B'}]))

    response = client.get('/api/subjects', headers=auth_headers(faculty))
    data = json.loads(response.data)['data']
    assert [s['code'] for s in data['subjects']] == ['CS301']

    response = client.get('/api/subjects', headers=auth_headers(students[3]))
    data = json.loads(response.data)['data']
    assert sorted(s['code'] for s in data['subjects']) == ['CS301', 'CS305']

    response = client.get('/api/subjects', headers=auth_headers(students[0]))
    assert json.loads(response.data)['data']['count'] == 1


def test_get_subject_access(client, faculty, other_faculty, subject, students):
    assert client.get(f'/api/subjects/{subject.id}', headers=auth_headers(faculty)).status_code == 200
    assert client.get(f'/api/subjects/{subject.id}', headers=auth_headers(students[0])).status_code == 200
    assert client.get(f'/api/subjects/{subject.id}', headers=auth_headers(other_faculty)).status_code == 403
    assert client.get('/api/subjects/999', headers=auth_headers(faculty)).status_code == 404


def test_update_subject(client, faculty, other_faculty, subject):
    response = client.put(f'/api/subjects/{subject.id}', headers=auth_headers(faculty), json={
        'name': 'Advanced Data Structures',
        'classes': [{'class': 'IV-I', 'section': 'CSE-A'}]
    })
    data = json.loads(response.data)['data']

    assert response.status_code == 200
    assert data['code'] == 'CS301'
    assert data['name'] == 'Advanced Data Structures'
    assert data['classes'] == [{'class': 'IV-I', 'section': 'CSE-A'}]

    response = client.put(f'/api/subjects/{subject.id}', headers=auth_headers(other_faculty),
                          json={'name': 'Hijacked'})
    assert response.status_code == 403


def test_delete_subject_is_soft(client, faculty, subject, students):
    headers = auth_headers(faculty)

    response = client.delete(f'/api/subjects/{subject.id}', headers=headers)
    assert response.status_code == 200

    listed = json.loads(client.get('/api/subjects', headers=headers).data)['data']
    assert listed['count'] == 0
    listed = json.loads(client.get('/api/subjects?include_inactive=true', headers=headers).data)['data']
    assert listed['subjects'][0]['is_active'] is False

    response = client.post('/api/sessions', json=create_payload(subject), headers=headers)
    assert response.status_code == 404

    response = client.delete(f'/api/subjects/{subject.id}', headers=headers)
    assert response.status_code == 404


def test_list_students(client, faculty, students):
    headers = auth_headers(faculty)

    response = client.get('/api/users/students?class=III-I&section=A', headers=headers)
    data = json.loads(response.data)['data']
    assert [s['roll_number'] for s in data['students']] == ['21A001', '21A002', '21A003']
    assert set(data['students'][0]) == {'id', 'name', 'email', 'roll_number', 'class_name', 'section'}

    response = client.get('/api/users/students', headers=headers)
    assert json.loads(response.data)['data']['count'] == 4

    response = client.get('/api/users/students?class=III-I&section=Z', headers=headers)
    assert response.status_code == 400

    response = client.get('/api/users/students', headers=auth_headers(students[0]))
    assert response.status_code == 403
