import uuid
from datetime import datetime, timezone

import jwt

from huis import settings
from huis.common.exceptions import InternalException
from huis.common.nanoid import NanoIdType
from huis.core.authentication.domains import Token, TokenContent


class AuthException(InternalException): ...


class AuthTokenInvalid(AuthException): ...


class AuthTokenExpired(AuthException): ...


class AuthenticationService:
    """
    Issues and checks the access tokens minted by the identity provider.
    Sign in itself happens upstream of this backend.
    """

    _JWT_SIGNING_ALGORITHM = 'HS256'

    @classmethod
    def factory(cls) -> 'AuthenticationService':
        return cls()

    def create_access_token(self, user_id: NanoIdType, ip_address: str = '', email: str | None = None) -> Token:
        return Token(
            access_token=self._create_token(
                user_id=user_id,
                ip_address=ip_address,
                email=email,
                lifetime=settings.AUTH_SETTINGS['ACCESS_TOKEN_LIFETIME'],
            )
        )

    def verify_jwt_token(self, token: str) -> TokenContent:
        try:
            payload = jwt.decode(
                token,
                settings.SECRET_KEY,
                algorithms=[self._JWT_SIGNING_ALGORITHM],
                options={'require': ['exp', 'sub', 'jti']},
            )
        except jwt.ExpiredSignatureError:
            raise AuthTokenExpired('Token has expired')
        except jwt.InvalidTokenError:
            raise AuthTokenInvalid('Invalid token')

        return TokenContent(**payload)

    def _create_token(self, user_id: NanoIdType, ip_address: str, email: str | None, lifetime) -> str:
        now = datetime.now(tz=timezone.utc)
        payload = dict(
            jti=str(uuid.uuid4()),
            exp=now + lifetime,
            nbf=now,
            sub=user_id,
            ip=ip_address,
        )
        if email:
            payload['email'] = email
        return jwt.encode(payload, settings.SECRET_KEY, algorithm=self._JWT_SIGNING_ALGORITHM)
