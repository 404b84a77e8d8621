import base64
from io import BytesIO
from typing import List
from urllib.parse import quote

import qrcode
from loguru import logger

from huis import settings
from huis.core.two_factor.constants import (
    BACKUP_CODE_ALPHABET,
    BACKUP_CODE_COUNT,
    BACKUP_CODE_LENGTH,
    CODE_DIGITS,
    DIGEST,
    SECRET_BYTES,
    TIME_STEP,
)
from huis.core.two_factor.domains import ProvisionedSecret
from huis.core.two_factor.exceptions import RngUnavailable
from huis.core.two_factor.randomness import RandomSource, SystemRandomSource


class SecretProvisioner:
    """
    Generates candidate secrets and backup codes. Nothing here is persisted.
    """

    def __init__(self, random_source: RandomSource, issuer: str):
        self.random_source = random_source
        self.issuer = issuer

    @classmethod
    def factory(cls) -> 'SecretProvisioner':
        return cls(random_source=SystemRandomSource(), issuer=settings.TWO_FACTOR_ISSUER)

    def provision(self, account_label: str) -> ProvisionedSecret:
        secret = self.generate_secret()
        backup_codes = self.generate_backup_codes()
        return ProvisionedSecret(
            secret=secret,
            backup_codes=backup_codes,
            provisioning_uri=self.build_provisioning_uri(secret=secret, account_label=account_label),
        )

    def generate_secret(self) -> str:
        """
        160 random bits, base32 without padding as authenticator apps expect
        """
        raw = self.random_source.random_bytes(SECRET_BYTES)
        if len(raw) != SECRET_BYTES:
            raise RngUnavailable(f'Expected {SECRET_BYTES} random bytes, received {len(raw)}')
        return base64.b32encode(raw).decode('ascii').rstrip('=')

    def generate_backup_codes(self) -> List[str]:
        alphabet_size = len(BACKUP_CODE_ALPHABET)
        return [
            ''.join(
                BACKUP_CODE_ALPHABET[self.random_source.random_below(alphabet_size)]
                for _ in range(BACKUP_CODE_LENGTH)
            )
            for _ in range(BACKUP_CODE_COUNT)
        ]

    def build_provisioning_uri(self, secret: str, account_label: str) -> str:
        issuer = quote(self.issuer, safe='')
        label = quote(account_label, safe='@')
        return (
            f'otpauth://totp/{issuer}:{label}'
            f'?secret={secret}&issuer={issuer}&algorithm={DIGEST}&digits={CODE_DIGITS}&period={TIME_STEP}'
        )

    @staticmethod
    def render_qr_code(provisioning_uri: str) -> str:
        """
        Base64 encoded PNG of the provisioning uri
        """
        qr = qrcode.QRCode(
            version=1,
            error_correction=qrcode.constants.ERROR_CORRECT_L,
            box_size=10,
            border=4,
        )
        qr.add_data(provisioning_uri)
        qr.make(fit=True)

        img = qr.make_image(fill_color='black', back_color='white')
        buffer = BytesIO()
        img.save(buffer, format='PNG')
        logger.debug('rendered provisioning qr code')
        return base64.b64encode(buffer.getvalue()).decode()
