from datetime import datetime
from typing import Optional

from huis.common.domain import BaseDomain
from huis.common.nanoid import NanoIdType


class TokenContent(BaseDomain):
    jti: str
    sub: NanoIdType
    exp: datetime
    nbf: datetime
    ip: str = ''
    email: Optional[str] = None


class Token(BaseDomain):
    access_token: str
    token_type: str = 'bearer'


class AuthenticatedUser(BaseDomain):
    id: NanoIdType
    token: TokenContent

    @property
    def account_label(self) -> str:
        """Label shown in authenticator apps, the email when the token carries one"""
        return self.token.email or self.id
