from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator

from huis.common.domain import BaseDomain
from huis.common.nanoid import NanoIdType
from huis.core.two_factor.constants import (
    AttemptMethodEnum,
    TwoFactorMethodEnum,
    TwoFactorStateEnum,
)


class TwoFactorRecordCreate(BaseDomain):
    user_id: NanoIdType
    shared_secret: str
    backup_codes: List[str]
    is_enabled: bool = False
    method: TwoFactorMethodEnum = TwoFactorMethodEnum.TOTP


class TwoFactorRecordRead(TwoFactorRecordCreate):
    id: NanoIdType
    last_used_at: Optional[datetime] = None
    last_verified_step: Optional[int] = None
    version: int
    created_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None

    @property
    def state(self) -> TwoFactorStateEnum:
        return TwoFactorStateEnum.ENABLED if self.is_enabled else TwoFactorStateEnum.PENDING


class TwoFactorAttemptCreate(BaseDomain):
    user_id: NanoIdType
    method: AttemptMethodEnum
    success: bool
    attempted_at: datetime
    origin_context: Dict[str, Any] = Field(default_factory=dict)


class TwoFactorAttemptRead(TwoFactorAttemptCreate):
    id: NanoIdType


class ProvisionedSecret(BaseDomain):
    secret: str
    backup_codes: List[str]
    provisioning_uri: str


class TotpValidation(BaseDomain):
    verified: bool
    # Matched offset within the window, in steps
    drift: Optional[int] = None
    time_step: Optional[int] = None


class CodePayload(BaseDomain):
    code: str = Field(min_length=1, max_length=64)

    @field_validator('code')
    @classmethod
    def strip_code(cls, value: str) -> str:
        return value.strip()


class SetupResponse(BaseDomain):
    secret: str
    provisioning_uri: str
    backup_codes: List[str]
    qr_code: str


class VerifyResponse(BaseDomain):
    verified: bool


class DisableResponse(BaseDomain):
    disabled: bool


class BackupCodeResponse(BaseDomain):
    verified: bool
    remaining_backup_codes: int


class TwoFactorStatus(BaseDomain):
    is_enabled: bool
    is_required: bool
    method: Optional[TwoFactorMethodEnum] = None
    backup_codes_remaining: int = 0
    state: TwoFactorStateEnum = TwoFactorStateEnum.NONE


class AttemptLogEntry(BaseDomain):
    method: AttemptMethodEnum
    success: bool
    attempted_at: datetime
