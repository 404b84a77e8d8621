"""Fernet encryption for values stored at rest, such as TOTP shared secrets."""

import base64
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from huis import settings
from huis.common.exceptions import InternalException


class DecryptionFailed(InternalException):
    """
    Stored ciphertext could not be decrypted with the configured key
    """

    ...


class EncryptionService:
    _instance: Optional['EncryptionService'] = None
    _fernet: Optional[Fernet] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if self._fernet is None:
            self._fernet = self._get_fernet()

    @staticmethod
    def _get_fernet() -> Fernet:
        """
        Derives a Fernet key from DB_ENCRYPTION_KEY using PBKDF2 and a fixed salt
        """
        if not settings.DB_ENCRYPTION_KEY:
            raise ValueError(
                'DB_ENCRYPTION_KEY must be set in environment variables. '
                'Generate one with: python -c "import secrets; print(secrets.token_urlsafe(32))"'
            )

        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=32,
            salt=settings.DB_ENCRYPTION_SALT.encode('utf-8'),
            iterations=100000,
        )
        key = base64.urlsafe_b64encode(kdf.derive(settings.DB_ENCRYPTION_KEY.encode()))

        return Fernet(key)

    def encrypt(self, plaintext: str) -> str:
        if not plaintext:
            return plaintext

        return self._fernet.encrypt(plaintext.encode()).decode('utf-8')

    def decrypt(self, ciphertext: str) -> str:
        if not ciphertext:
            return ciphertext

        try:
            return self._fernet.decrypt(ciphertext.encode()).decode('utf-8')
        except InvalidToken:
            # A secret we cannot read must never be treated as a usable value
            raise DecryptionFailed('Unable to decrypt stored value')


def encrypt(plaintext: str) -> str:
    return EncryptionService().encrypt(plaintext)


def decrypt(ciphertext: str) -> str:
    return EncryptionService().decrypt(ciphertext)
