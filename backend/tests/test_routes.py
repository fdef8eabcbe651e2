"""Tests for the /api/blood-pressure HTTP surface."""
from datetime import timedelta

from bp_tracker.models import BloodPressureReading
from bp_tracker.utils.auth import generate_owner_token
from bp_tracker.utils.dates import utcnow

from conftest import add_reading, bearer

BASE = '/api/blood-pressure'


class TestAuth:
    def test_missing_token(self, client):
        response = client.get(BASE)
        assert response.status_code == 401
        assert response.get_json()['error'] == 'Missing authorization header'

    def test_malformed_header(self, client):
        response = client.get(BASE, headers={'Authorization': 'Token abc'})
        assert response.status_code == 401

    def test_garbage_token(self, client):
        response = client.get(BASE, headers={'Authorization': 'Bearer not-a-jwt'})
        assert response.status_code == 401

    def test_expired_token(self, client, owner):
        token = generate_owner_token(owner.id, expires_in=-10)
        response = client.get(BASE, headers={'Authorization': f'Bearer {token}'})
        assert response.status_code == 401

    def test_unknown_owner(self, client, app):
        token = generate_owner_token(424242)
        response = client.get(BASE, headers={'Authorization': f'Bearer {token}'})
        assert response.status_code == 401

    def test_health_is_public(self, client):
        assert client.get('/health').get_json() == {'status': 'healthy'}


class TestCreate:
    def test_created(self, client, auth_headers, owner):
        response = client.post(BASE, json={
            'systolic': 128, 'diastolic': 82, 'pulse': 70,
            'notes': 'after walk', 'tags': ['evening', 'exercise'],
            'recordedAt': '2026-10-17T19:00:00Z',
        }, headers=auth_headers)
        assert response.status_code == 201
        body = response.get_json()
        assert body['id'] is not None
        assert body['ownerId'] == owner.id
        assert body['recordedAt'] == '2026-10-17T19:00:00'
        assert body['tags'] == ['evening', 'exercise']
        assert body['createdAt']

    def test_validation_failure_has_field_details(self, client, auth_headers):
        response = client.post(BASE, json={'systolic': 400, 'diastolic': 80},
                               headers=auth_headers)
        assert response.status_code == 400
        body = response.get_json()
        assert body['error'] == 'Validation failed'
        assert 'systolic' in body['details']

    def test_business_rule_has_specific_message(self, client, auth_headers, owner):
        response = client.post(BASE, json={'systolic': 80, 'diastolic': 120},
                               headers=auth_headers)
        assert response.status_code == 400
        assert response.get_json() == {
            'error': 'Systolic must be higher than diastolic',
            'rule': 'systolic_gt_diastolic',
        }
        assert BloodPressureReading.list_for_owner(owner.id) == []

    def test_empty_body(self, client, auth_headers):
        response = client.post(BASE, json={}, headers=auth_headers)
        assert response.status_code == 400

    def test_requires_json_content_type(self, client, auth_headers):
        response = client.post(BASE, data='systolic=120', headers=auth_headers,
                               content_type='application/x-www-form-urlencoded')
        assert response.status_code == 415

    def test_round_trip_with_latest(self, client, auth_headers):
        payload = {
            'systolic': 135, 'diastolic': 88, 'pulse': 75,
            'notes': 'stressful day', 'tags': ['work', 'evening', 'work'],
            'recordedAt': '2026-10-18T08:15:00',
        }
        created = client.post(BASE, json=payload, headers=auth_headers).get_json()
        latest = client.get(f'{BASE}/latest', headers=auth_headers).get_json()
        assert latest == created
        for field in ('systolic', 'diastolic', 'pulse', 'notes', 'tags', 'recordedAt'):
            assert latest[field] == payload[field]


class TestRead:
    def test_latest_without_readings(self, client, auth_headers):
        response = client.get(f'{BASE}/latest', headers=auth_headers)
        assert response.status_code == 404
        assert response.get_json()['error'] == 'No readings found'

    def test_list_default_and_limit(self, client, auth_headers, owner):
        for i in range(60):
            add_reading(owner.id, 100 + i % 40, 70, days_ago=i)
        assert len(client.get(BASE, headers=auth_headers).get_json()) == 50
        limited = client.get(f'{BASE}?limit=3', headers=auth_headers).get_json()
        assert [r['systolic'] for r in limited] == [100, 101, 102]

    def test_list_rejects_bad_limit(self, client, auth_headers):
        assert client.get(f'{BASE}?limit=0', headers=auth_headers).status_code == 400
        assert client.get(f'{BASE}?limit=abc', headers=auth_headers).status_code == 400

    def test_get_single_reading_scoped(self, client, owner, other_owner):
        reading = add_reading(owner.id, 120, 80)
        assert client.get(f'{BASE}/{reading.id}', headers=bearer(owner)).status_code == 200
        assert client.get(f'{BASE}/{reading.id}', headers=bearer(other_owner)).status_code == 404

    def test_range(self, client, auth_headers, owner):
        for systolic, recorded in [(110, '2026-10-01T09:00:00'), (120, '2026-10-05T09:00:00'),
                                   (130, '2026-10-05T21:00:00'), (140, '2026-10-09T09:00:00')]:
            client.post(BASE, json={'systolic': systolic, 'diastolic': 70, 'recordedAt': recorded},
                        headers=auth_headers)
        response = client.get(f'{BASE}/range?startDate=2026-10-01T09:00:00&endDate=2026-10-05',
                              headers=auth_headers)
        assert response.status_code == 200
        assert [r['systolic'] for r in response.get_json()] == [130, 120, 110]

    def test_range_start_after_end_is_empty(self, client, auth_headers, owner):
        add_reading(owner.id, 120, 80)
        response = client.get(f'{BASE}/range?startDate=2026-10-10&endDate=2026-10-01',
                              headers=auth_headers)
        assert response.status_code == 200
        assert response.get_json() == []

    def test_range_requires_both_dates(self, client, auth_headers):
        response = client.get(f'{BASE}/range?startDate=2026-10-01', headers=auth_headers)
        assert response.status_code == 400
        assert response.get_json()['error'] == 'startDate and endDate are required'

    def test_range_invalid_date(self, client, auth_headers):
        response = client.get(f'{BASE}/range?startDate=nope&endDate=2026-10-01',
                              headers=auth_headers)
        assert response.status_code == 400
        assert response.get_json()['error'] == 'Invalid date format'

    def test_search_notes_and_tags(self, client, auth_headers, owner):
        add_reading(owner.id, 120, 80, notes='After Coffee')
        add_reading(owner.id, 125, 80, tags=['coffee-free'], days_ago=1)
        add_reading(owner.id, 130, 85, notes='rested', days_ago=2)
        found = client.get(f'{BASE}/search?q=coffee', headers=auth_headers).get_json()
        assert [r['systolic'] for r in found] == [120, 125]


class TestDelete:
    def test_delete(self, client, auth_headers, owner):
        reading = add_reading(owner.id, 120, 80)
        assert client.delete(f'{BASE}/{reading.id}', headers=auth_headers).status_code == 204
        assert client.delete(f'{BASE}/{reading.id}', headers=auth_headers).status_code == 404

    def test_cannot_delete_other_owners_reading(self, client, owner, other_owner):
        reading = add_reading(owner.id, 120, 80)
        response = client.delete(f'{BASE}/{reading.id}', headers=bearer(other_owner))
        assert response.status_code == 404
        assert BloodPressureReading.get_for_owner(reading.id, owner.id) is not None


class TestStats:
    def test_empty(self, client, auth_headers):
        body = client.get(f'{BASE}/stats', headers=auth_headers).get_json()
        assert body == {
            'totalReadings': 0,
            'averageSystolic': 0,
            'averageDiastolic': 0,
            'lastWeekAverage': None,
            'trend': None,
            'latestDelta': None,
        }

    def test_snapshot(self, client, auth_headers, owner):
        add_reading(owner.id, 110, 70, days_ago=1)
        add_reading(owner.id, 130, 85, days_ago=0)
        body = client.get(f'{BASE}/stats', headers=auth_headers).get_json()
        assert body['totalReadings'] == 2
        assert body['averageSystolic'] == 120
        assert body['averageDiastolic'] == 78
        assert body['lastWeekAverage'] == {'systolic': 120, 'diastolic': 78}
        assert body['trend'] == 'increasing'
        assert body['latestDelta'] == {'systolic': 10, 'diastolic': 7}

    def test_window_is_bounded_to_100(self, client, auth_headers, owner):
        for i in range(105):
            add_reading(owner.id, 120, 80, days_ago=i * 0.01)
        body = client.get(f'{BASE}/stats', headers=auth_headers).get_json()
        assert body['totalReadings'] == 100

    def test_old_readings_have_no_weekly_average(self, client, auth_headers, owner):
        add_reading(owner.id, 120, 80, days_ago=30)
        add_reading(owner.id, 140, 90, days_ago=31)
        body = client.get(f'{BASE}/stats', headers=auth_headers).get_json()
        assert body['lastWeekAverage'] is None
        assert body['trend'] is None

    def test_distribution(self, client, auth_headers, owner):
        add_reading(owner.id, 110, 70)
        add_reading(owner.id, 125, 75, days_ago=1)
        add_reading(owner.id, 150, 95, days_ago=2)
        add_reading(owner.id, 112, 72, days_ago=3)
        body = client.get(f'{BASE}/distribution', headers=auth_headers).get_json()
        assert body['windowSize'] == 4
        counts = {d['category']: d['count'] for d in body['distribution']}
        assert counts['Normal'] == 2
        assert counts['Elevated'] == 1
        assert counts['Stage 2'] == 1

    def test_chart(self, client, auth_headers, owner):
        now = utcnow()
        for i in range(10):
            systolic = 130 if i < 5 else 120
            BloodPressureReading.create_for_owner(owner.id, {
                'systolic': systolic, 'diastolic': 80,
                'recorded_at': now - timedelta(hours=i),
            })
        body = client.get(f'{BASE}/chart', headers=auth_headers).get_json()
        assert body['trend'] == 'increasing'
        assert [r['systolic'] for r in body['readings']] == [120] * 5 + [130] * 5
        assert body['readings'][-1]['category'] == 'Stage 1'
        assert body['extents']['systolic'] == {'min': 120, 'max': 130}


class TestPreview:
    def test_preview_does_not_store(self, client, auth_headers, owner):
        response = client.post(f'{BASE}/preview', json={'systolic': 60, 'diastolic': 45},
                               headers=auth_headers)
        body = response.get_json()
        assert response.status_code == 200
        assert body['valid'] is True
        assert body['warnings']
        assert body['category']['category'] == 'Normal'
        assert BloodPressureReading.list_for_owner(owner.id) == []

    def test_preview_reports_rule_violation(self, client, auth_headers):
        body = client.post(f'{BASE}/preview', json={'systolic': 80, 'diastolic': 90},
                           headers=auth_headers).get_json()
        assert body['valid'] is False
        assert body['ruleViolation'] == 'Systolic must be higher than diastolic'


class TestExport:
    def test_csv(self, client, auth_headers, owner):
        add_reading(owner.id, 120, 80, pulse=70, notes='ok', tags=['a', 'b'])
        response = client.get(f'{BASE}/export.csv', headers=auth_headers)
        assert response.status_code == 200
        assert response.mimetype == 'text/csv'
        lines = response.get_data(as_text=True).splitlines()
        assert lines[0] == 'Date,Time,Systolic,Diastolic,Pulse,Category,Notes,Tags'
        assert lines[1].endswith(',120,80,70,Stage 1,ok,a;b')

    def test_pdf(self, client, auth_headers, owner):
        add_reading(owner.id, 120, 80)
        response = client.get(f'{BASE}/export.pdf', headers=auth_headers)
        assert response.status_code == 200
        assert response.mimetype == 'application/pdf'
        assert response.get_data().startswith(b'%PDF')
