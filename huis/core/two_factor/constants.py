import string

from huis.common.enum import BaseEnum


class TwoFactorMethodEnum(BaseEnum):
    TOTP = 'totp'


class AttemptMethodEnum(BaseEnum):
    TOTP = 'totp'
    BACKUP_CODE = 'backup_code'


class TwoFactorStateEnum(BaseEnum):
    NONE = 'none'
    PENDING = 'pending'
    ENABLED = 'enabled'


class TwoFactorActionEnum(BaseEnum):
    VERIFY = 'verify'
    DISABLE = 'disable'
    USE_BACKUP = 'use_backup'


CODE_DIGITS = 6
TIME_STEP = 30  # seconds
DIGEST = 'SHA1'
SECRET_BYTES = 20  # 160 bits, RFC 4226 recommendation

BACKUP_CODE_COUNT = 10
BACKUP_CODE_LENGTH = 8
BACKUP_CODE_ALPHABET = string.ascii_uppercase + string.digits
