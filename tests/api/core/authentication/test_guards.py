import uuid
from datetime import datetime, timedelta, timezone

import jwt
from fastapi import status

from huis import settings


def _token(**overrides) -> str:
    now = datetime.now(tz=timezone.utc)
    payload = dict(jti=str(uuid.uuid4()), sub='user-1', exp=now + timedelta(minutes=5), nbf=now - timedelta(seconds=1))
    payload.update(overrides)
    payload = {key: value for key, value in payload.items() if value is not None}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm='HS256')


def test_expired_token(client):
    token = _token(exp=datetime.now(tz=timezone.utc) - timedelta(minutes=1))

    response = client.get('/api/two-factor/status', headers={'Authorization': f'Bearer {token}'})

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()['detail'] == 'Expired access token'


def test_token_signed_with_another_key(client):
    token = jwt.encode({'sub': 'user-1', 'jti': 'x', 'exp': 9999999999}, 'some-other-signing-key-for-access-tokens', algorithm='HS256')

    response = client.get('/api/two-factor/status', headers={'Authorization': f'Bearer {token}'})

    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_token_without_subject(client):
    token = _token(sub=None)

    response = client.get('/api/two-factor/status', headers={'Authorization': f'Bearer {token}'})

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()['detail'] == 'Invalid access token'


def test_valid_token(client, auth_headers):
    response = client.get('/api/two-factor/status', headers=auth_headers('user-1'))

    assert response.status_code == status.HTTP_200_OK
    assert response.json()['state'] == 'none'
