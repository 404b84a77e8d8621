from huis.core.authentication.domains import AuthenticatedUser, Token, TokenContent
from huis.core.authentication.guards import authenticate_user, oauth
from huis.core.authentication.services.authentication_service import (
    AuthenticationService,
    AuthException,
    AuthTokenExpired,
    AuthTokenInvalid,
)

__all__ = [
    'AuthenticatedUser',
    'AuthenticationService',
    'AuthException',
    'AuthTokenExpired',
    'AuthTokenInvalid',
    'Token',
    'TokenContent',
    'authenticate_user',
    'oauth',
]
