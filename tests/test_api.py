from unittest import mock

import pytest
from django.contrib.auth.models import User
from django.db import OperationalError
from rest_framework.test import APIClient

from apps.core.models import MealLog, Settings, StaffToken

API = '/api/v1'


@pytest.fixture
def client(staff_token):
    _, token = staff_token
    api = APIClient()
    api.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
    return api


def test_requires_staff_token(db):
    response = APIClient().post(f'{API}/verify/short-id', {'short_id': 101}, format='json')
    assert response.status_code == 401


def test_rejects_unknown_token(db):
    api = APIClient()
    api.credentials(HTTP_AUTHORIZATION='Bearer nope')
    assert api.get(f'{API}/meal-logs').status_code == 401


def test_rejects_revoked_token(staff_token):
    token, raw = staff_token
    StaffToken.objects.filter(pk=token.pk).update(active=False)
    api = APIClient()
    api.credentials(HTTP_AUTHORIZATION=f'Bearer {raw}')
    assert api.get(f'{API}/meal-logs').status_code == 401


def test_owner_session_is_allowed(db):
    owner = User.objects.create_user('owner', password='pw', is_staff=True)
    api = APIClient()
    api.force_authenticate(user=owner)
    assert api.get(f'{API}/meal-logs').status_code == 200


def test_verify_short_id_then_duplicate(client, student):
    first = client.post(f'{API}/verify/short-id', {'short_id': 101, 'device_info': 'tablet'}, format='json')
    second = client.post(f'{API}/verify/short-id', {'short_id': 101}, format='json')

    assert first.status_code == 200
    assert first.data['result'] == 'SUCCESS'
    assert first.data['meal'] in ('LUNCH', 'DINNER')
    assert first.data['student_snapshot']['short_id'] == 101
    assert first.data['meal_log']['access_method'] == 'SELF_ID'

    assert second.status_code == 200
    assert second.data['result'] == 'ALREADY_RECORDED'
    assert second.data['reason'] == f"{first.data['meal']} already logged for Asha today"


def test_verify_inactive_student(client, inactive_student):
    response = client.post(f'{API}/verify/short-id', {'short_id': 102}, format='json')

    assert response.data['result'] == 'SUBSCRIPTION_INACTIVE'
    assert response.data['student_snapshot']['is_active'] is False
    assert not MealLog.objects.exists()


def test_verify_rejects_bad_input(client, db):
    assert client.post(f'{API}/verify/short-id', {'short_id': 'abc'}, format='json').status_code == 400
    assert client.post(f'{API}/verify/code', {'code': '12'}, format='json').status_code == 400
    assert client.post(f'{API}/verify/code', {'code': '1234567'}, format='json').status_code == 400


def test_code_length_follows_mess_config(client, db, settings):
    settings.MESS_CONFIG = {**settings.MESS_CONFIG, 'code_length': 8}

    assert client.post(f'{API}/verify/code', {'code': '123456'}, format='json').status_code == 400
    response = client.post(f'{API}/verify/code', {'code': '12345678'}, format='json')
    assert response.status_code == 200
    assert response.data['result'] == 'CODE_NOT_FOUND'


def test_store_outage_returns_503(client, student):
    with mock.patch('apps.redemption.verification.current_config', side_effect=OperationalError('down')):
        response = client.post(f'{API}/verify/short-id', {'short_id': 101}, format='json')

    assert response.status_code == 503
    assert response.data['result'] == 'STORE_UNAVAILABLE'


def test_issue_and_redeem_pickup_code(client, student):
    issued = client.post(f'{API}/students/101/codes')
    assert issued.status_code == 201
    assert issued.data['status'] == 'ACTIVE'

    redeemed = client.post(f'{API}/verify/code', {'code': issued.data['code']}, format='json')
    assert redeemed.data['result'] == 'SUCCESS'
    assert redeemed.data['access_method'] == 'DELEGATED_CODE'

    again = client.post(f'{API}/verify/code', {'code': issued.data['code']}, format='json')
    assert again.data['result'] == 'CODE_NOT_FOUND'

    history = client.get(f'{API}/students/101/codes')
    assert [row['status'] for row in history.data] == ['USED']


def test_inactive_student_cannot_get_code(client, inactive_student):
    assert client.post(f'{API}/students/102/codes').status_code == 409


def test_verify_qr(client, student):
    from apps.utils.qr_utils import generate_qr_payload

    payload = generate_qr_payload(student.id, student.qr_nonce)
    response = client.post(f'{API}/verify/qr', {'qr_data': payload}, format='json')

    assert response.data['result'] == 'SUCCESS'


def test_feed_lists_attempts_newest_first(client, student, inactive_student):
    client.post(f'{API}/verify/short-id', {'short_id': 101}, format='json')
    client.post(f'{API}/verify/short-id', {'short_id': 102}, format='json')

    feed = client.get(f'{API}/verifications/feed').data
    assert [row['result'] for row in feed] == ['SUBSCRIPTION_INACTIVE', 'SUCCESS']
    assert feed[0]['student_name'] == 'Ravi'

    newer = client.get(f'{API}/verifications/feed', {'since': feed[0]['id']}).data
    assert newer == []
    assert client.get(f'{API}/verifications/feed', {'since': 'x'}).status_code == 400


def test_feed_handles_unknown_students(client, db):
    client.post(f'{API}/verify/short-id', {'short_id': 999}, format='json')

    row = client.get(f'{API}/verifications/feed').data[0]
    assert row['result'] == 'NOT_FOUND'
    assert row['student_name'] is None


def test_meal_logs_for_today(client, student):
    client.post(f'{API}/verify/short-id', {'short_id': 101}, format='json')

    response = client.get(f'{API}/meal-logs')
    assert response.data['count'] == 1
    assert response.data['logs'][0]['student_short_id'] == 101

    assert client.get(f'{API}/meal-logs', {'date': '2020-01-01'}).data['count'] == 0
    assert client.get(f'{API}/meal-logs', {'date': 'yesterday'}).status_code == 400


def test_meal_logs_default_to_the_mess_date(client, student, at):
    app_settings = Settings.get_settings()
    app_settings.timezone = 'America/New_York'
    app_settings.save()

    with mock.patch('django.utils.timezone.now', return_value=at(8)):
        client.post(f'{API}/verify/short-id', {'short_id': 101}, format='json')
        response = client.get(f'{API}/meal-logs')

    assert response.data['date'] == '2026-10-18'
    assert response.data['count'] == 1


def test_student_snapshot(client, student):
    response = client.get(f'{API}/students/101/snapshot')

    assert response.data['full_name'] == 'Asha'
    assert response.data['meals_today'] == []
    assert client.get(f'{API}/students/999/snapshot').status_code == 404


def test_meal_windows(client, db):
    data = client.get(f'{API}/settings/meal-windows').data

    assert data['slot_policy'] == 'CUTOFF'
    assert data['cutoff_hour'] == 16
    assert data['meals']['LUNCH'] == {'start': '12:00', 'end': '14:00', 'price': '50.00'}
