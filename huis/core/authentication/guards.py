from typing import Optional

from fastapi import Depends, Request, status
from fastapi.security import OAuth2PasswordBearer
from fastapi.security.utils import get_authorization_scheme_param

from huis.common import context
from huis.common.exceptions import APIException
from huis.core.authentication.domains import AuthenticatedUser
from huis.core.authentication.services.authentication_service import (
    AuthenticationService,
    AuthTokenExpired,
    AuthTokenInvalid,
)


class OAuth2Token(OAuth2PasswordBearer):
    async def __call__(self, request: Request) -> Optional[str]:
        authorization = request.headers.get('Authorization')
        scheme, token = get_authorization_scheme_param(authorization)
        if not authorization or scheme.lower() != 'bearer':
            if self.auto_error:
                raise APIException(
                    code=status.HTTP_403_FORBIDDEN,
                    message='Not authenticated',
                )
            else:
                return None
        return token


oauth = OAuth2Token(
    scheme_name='bearer-authentication',
    tokenUrl='auth/token',
    description='Access token issued by the identity provider',
)


def authenticate_user(
    token: str = Depends(oauth),
    authn_service: AuthenticationService = Depends(AuthenticationService.factory),
) -> AuthenticatedUser:
    try:
        token_content = authn_service.verify_jwt_token(token)
    except AuthTokenExpired:
        raise APIException(
            code=status.HTTP_401_UNAUTHORIZED,
            message='Expired access token',
        )
    except AuthTokenInvalid:
        raise APIException(
            code=status.HTTP_401_UNAUTHORIZED,
            message='Invalid access token',
        )

    context.set_user(
        user_type=context.AppContextUserType.USER,
        user_id=token_content.sub,
    )

    return AuthenticatedUser(
        id=token_content.sub,
        token=token_content,
    )

