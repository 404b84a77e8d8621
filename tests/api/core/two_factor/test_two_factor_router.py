import time
from unittest.mock import patch

import pyotp
import pytest
from fastapi import status
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from huis.core.role import RoleEnum
from huis.core.two_factor.models import TwoFactorAttempt

PREFIX = '/api/two-factor'


def _current_code(secret: str, offset_seconds: int = 0) -> str:
    return pyotp.TOTP(secret).at(int(time.time()) + offset_seconds)


def _setup(client: TestClient, headers) -> dict:
    response = client.post(f'{PREFIX}/setup', headers=headers)
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()


class TestAuthentication:
    def test_missing_token(self, client):
        response = client.get(f'{PREFIX}/status')

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()['detail'] == 'Not authenticated'

    def test_garbage_token(self, client):
        response = client.get(f'{PREFIX}/status', headers={'Authorization': 'Bearer not-a-jwt'})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()['detail'] == 'Invalid access token'


class TestStudentJourney:
    """
    Enroll, confirm, recover with a backup code, then switch it off again
    """

    @pytest.fixture
    def headers(self, auth_headers, assign_role):
        assign_role('user-student', RoleEnum.STUDENT)
        return auth_headers('user-student', email='sara@huis.nl')

    def test_full_journey(self, client, headers):
        setup = _setup(client, headers)
        assert set(setup) == {'secret', 'provisioningUri', 'backupCodes', 'qrCode'}
        assert setup['provisioningUri'].startswith('otpauth://totp/Huis%20van%20het%20Arabisch:sara@huis.nl?')
        assert len(setup['backupCodes']) == 10

        response = client.get(f'{PREFIX}/status', headers=headers)
        assert response.json() == {
            'isEnabled': False,
            'isRequired': False,
            'method': 'totp',
            'backupCodesRemaining': 10,
            'state': 'pending',
        }

        response = client.post(f'{PREFIX}/verify', json={'code': _current_code(setup['secret'])}, headers=headers)
        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {'verified': True}
        assert client.get(f'{PREFIX}/status', headers=headers).json()['state'] == 'enabled'

        backup_code = setup['backupCodes'][0].lower()
        response = client.post(f'{PREFIX}/backup-code', json={'code': backup_code}, headers=headers)
        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {'verified': True, 'remainingBackupCodes': 9}

        response = client.post(f'{PREFIX}/backup-code', json={'code': backup_code}, headers=headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()['error_type'] == 'INVALID_CODE'

        # Next time step, the verify code would be a replay
        response = client.post(
            f'{PREFIX}/disable', json={'code': _current_code(setup['secret'], 30)}, headers=headers
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {'disabled': True}

        response = client.get(f'{PREFIX}/status', headers=headers)
        assert response.json()['state'] == 'none'
        assert not response.json()['isEnabled']

        attempts = client.get(f'{PREFIX}/attempts', headers=headers).json()
        assert len(attempts) == 4
        assert sorted((attempt['method'], attempt['success']) for attempt in attempts) == [
            ('backup_code', False),
            ('backup_code', True),
            ('totp', True),
            ('totp', True),
        ]

    def test_wrong_code_is_logged_even_though_the_request_fails(self, client, headers):
        setup = _setup(client, headers)

        response = client.post(
            f'{PREFIX}/verify', json={'code': _current_code(setup['secret'], -120)}, headers=headers
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {'detail': 'Invalid verification code.', 'error_type': 'INVALID_CODE'}
        assert client.get(f'{PREFIX}/status', headers=headers).json()['state'] == 'pending'

        attempts = client.get(f'{PREFIX}/attempts', headers=headers).json()
        assert [attempt['success'] for attempt in attempts] == [False]
        assert set(attempts[0]) == {'method', 'success', 'attemptedAt'}

    def test_attempt_log_timeout_is_service_unavailable(self, client, headers):
        error = OperationalError('SELECT', {}, Exception('canceling statement due to statement timeout'))
        with patch.object(TwoFactorAttempt, 'list', side_effect=error):
            response = client.get(f'{PREFIX}/attempts', headers=headers)

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert response.json() == {'detail': 'Two factor storage unavailable.', 'error_type': 'STORE_UNAVAILABLE'}

    def test_verify_before_setup(self, client, headers):
        response = client.post(f'{PREFIX}/verify', json={'code': '123456'}, headers=headers)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()['error_type'] == 'NOT_SET_UP'

    def test_setup_twice_replaces_the_secret(self, client, headers):
        first = _setup(client, headers)
        second = _setup(client, headers)

        assert first['secret'] != second['secret']
        response = client.post(f'{PREFIX}/verify', json={'code': _current_code(second['secret'])}, headers=headers)
        assert response.status_code == status.HTTP_200_OK

    @pytest.mark.parametrize('payload', [{}, {'code': ''}, {'code': 'x' * 65}, {'code': '123456', 'extra': 1}])
    def test_malformed_payload(self, client, headers, payload):
        response = client.post(f'{PREFIX}/verify', json=payload, headers=headers)

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


class TestTeacherJourney:
    @pytest.fixture
    def headers(self, auth_headers, assign_role):
        assign_role('user-teacher', RoleEnum.TEACHER)
        return auth_headers('user-teacher')

    def test_required_and_cannot_be_disabled(self, client, headers):
        response = client.get(f'{PREFIX}/status', headers=headers)
        assert response.json()['isRequired']
        assert response.json()['state'] == 'none'

        setup = _setup(client, headers)
        assert ':user-teacher?' in setup['provisioningUri']
        client.post(f'{PREFIX}/verify', json={'code': _current_code(setup['secret'])}, headers=headers)

        response = client.post(
            f'{PREFIX}/disable', json={'code': _current_code(setup['secret'], 30)}, headers=headers
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()['error_type'] == 'POLICY_VIOLATION'
        assert client.get(f'{PREFIX}/status', headers=headers).json()['isEnabled']
