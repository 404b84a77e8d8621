from huis.core.two_factor.constants import AttemptMethodEnum, TwoFactorMethodEnum, TwoFactorStateEnum
from huis.core.two_factor.domains import (
    BackupCodeResponse,
    DisableResponse,
    SetupResponse,
    TwoFactorRecordRead,
    TwoFactorStatus,
    VerifyResponse,
)
from huis.core.two_factor.exceptions import (
    InvalidCode,
    InvalidSecret,
    NotSetUp,
    PolicyViolation,
    RngUnavailable,
    TwoFactorException,
    TwoFactorStoreUnavailable,
)
from huis.core.two_factor.models import TwoFactorAttempt, TwoFactorRecord
from huis.core.two_factor.service import TwoFactorService

__all__ = [
    # Constants
    'AttemptMethodEnum',
    'TwoFactorMethodEnum',
    'TwoFactorStateEnum',
    # Domains
    'BackupCodeResponse',
    'DisableResponse',
    'SetupResponse',
    'TwoFactorRecordRead',
    'TwoFactorStatus',
    'VerifyResponse',
    # Exceptions
    'InvalidCode',
    'InvalidSecret',
    'NotSetUp',
    'PolicyViolation',
    'RngUnavailable',
    'TwoFactorException',
    'TwoFactorStoreUnavailable',
    # Models
    'TwoFactorAttempt',
    'TwoFactorRecord',
    # Services
    'TwoFactorService',
]
