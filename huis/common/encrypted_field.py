"""SQLAlchemy custom type for transparent encryption/decryption of sensitive fields."""

from typing import Optional

from sqlalchemy import String, TypeDecorator
from sqlalchemy.engine import Dialect

from huis.common.encryption import decrypt, encrypt


class EncryptedString(TypeDecorator):
    """
    Encrypted on the way into the database, decrypted on the way out.

        class TwoFactorRecord(BaseModel):
            shared_secret: Mapped[str] = mapped_column(EncryptedString)

        record.shared_secret = 'JBSWY3DPEHPK3PXP'  # stored as a Fernet token
    """

    impl = String
    cache_ok = True

    def process_bind_param(self, value: Optional[str], dialect: Dialect) -> Optional[str]:
        if value is None:
            return None

        return encrypt(value)

    def process_result_value(self, value: Optional[str], dialect: Dialect) -> Optional[str]:
        if value is None:
            return None

        return decrypt(value)

    @property
    def python_type(self):
        return str
