from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from loguru import logger

from huis import settings
from huis.common.nanoid import NanoIdType
from huis.core.role import RoleLookupFailed, RoleService
from huis.core.two_factor import recovery_vault
from huis.core.two_factor.auditor import AttemptAuditor
from huis.core.two_factor.constants import AttemptMethodEnum, TwoFactorStateEnum
from huis.core.two_factor.domains import (
    BackupCodeResponse,
    DisableResponse,
    SetupResponse,
    TwoFactorAttemptRead,
    TwoFactorRecordRead,
    TwoFactorStatus,
    VerifyResponse,
)
from huis.core.two_factor.exceptions import (
    InvalidCode,
    NotSetUp,
    PolicyViolation,
    TwoFactorStoreUnavailable,
)
from huis.core.two_factor.policy import EnforcementPolicy
from huis.core.two_factor.provisioner import SecretProvisioner
from huis.core.two_factor.store import TwoFactorStateStore
from huis.core.two_factor.totp_engine import TotpEngine

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    # Stored naive, always UTC
    return datetime.now(tz=timezone.utc).replace(tzinfo=None)


class TwoFactorService:
    """
    State machine over the per user record:

        NONE --setup--> PENDING --verify--> ENABLED --disable--> NONE

    setup from any state restarts enrollment. Verify and backup code use
    write exactly one audit entry per call, whatever the outcome.
    """

    def __init__(
        self,
        store: TwoFactorStateStore,
        provisioner: SecretProvisioner,
        engine: TotpEngine,
        auditor: AttemptAuditor,
        policy: EnforcementPolicy,
        role_service: RoleService,
        clock: Clock = utc_now,
        valid_window: int = 1,
        cas_retries: int = 3,
    ):
        self.store = store
        self.provisioner = provisioner
        self.engine = engine
        self.auditor = auditor
        self.policy = policy
        self.role_service = role_service
        self.clock = clock
        self.valid_window = valid_window
        self.cas_retries = cas_retries

    @classmethod
    def factory(cls) -> 'TwoFactorService':
        return cls(
            store=TwoFactorStateStore.factory(),
            provisioner=SecretProvisioner.factory(),
            engine=TotpEngine(),
            auditor=AttemptAuditor.factory(),
            policy=EnforcementPolicy(),
            role_service=RoleService.factory(),
            valid_window=settings.TWO_FACTOR_VALID_WINDOW,
            cas_retries=settings.TWO_FACTOR_CAS_RETRIES,
        )

    def setup(self, user_id: NanoIdType, account_label: Optional[str] = None) -> SetupResponse:
        provisioned = self.provisioner.provision(account_label=account_label or user_id)
        record = self.store.provision(
            user_id=user_id,
            secret=provisioned.secret,
            backup_codes=provisioned.backup_codes,
            now=self.clock(),
        )
        logger.info(f'two factor enrollment started for {user_id} (version {record.version})')

        return SetupResponse(
            secret=provisioned.secret,
            provisioning_uri=provisioned.provisioning_uri,
            backup_codes=provisioned.backup_codes,
            qr_code=self.provisioner.render_qr_code(provisioned.provisioning_uri),
        )

    def verify(
        self, user_id: NanoIdType, code: str, origin_context: Dict[str, Any] | None = None
    ) -> VerifyResponse:
        now = self.clock()
        success = False
        try:
            self._verify_totp(user_id=user_id, code=code, now=now)
            success = True
        finally:
            self.auditor.record(
                user_id=user_id,
                method=AttemptMethodEnum.TOTP,
                success=success,
                attempted_at=now,
                origin_context=origin_context,
            )
        return VerifyResponse(verified=True)

    def disable(
        self, user_id: NanoIdType, code: str, origin_context: Dict[str, Any] | None = None
    ) -> DisableResponse:
        now = self.clock()
        record = self._get_record(user_id)

        # Checked before the code so a privileged account learns nothing from it
        if self._is_privileged(user_id):
            logger.warning(f'two factor disable refused for privileged user {user_id}')
            raise PolicyViolation(context={'user_id': user_id})

        success = False
        try:
            for _ in range(self.cas_retries + 1):
                self._match_totp(record, code=code, now=now)
                if self.store.delete(record):
                    success = True
                    break
                record = self._get_record(user_id)
            else:
                raise TwoFactorStoreUnavailable('Two factor record kept changing during disable')
        finally:
            self.auditor.record(
                user_id=user_id,
                method=AttemptMethodEnum.TOTP,
                success=success,
                attempted_at=now,
                origin_context=origin_context,
            )

        logger.info(f'two factor disabled for {user_id}')
        return DisableResponse(disabled=True)

    def use_backup_code(
        self, user_id: NanoIdType, code: str, origin_context: Dict[str, Any] | None = None
    ) -> BackupCodeResponse:
        now = self.clock()
        success = False
        try:
            response = self._consume_backup_code(user_id=user_id, code=code, now=now)
            success = True
        finally:
            self.auditor.record(
                user_id=user_id,
                method=AttemptMethodEnum.BACKUP_CODE,
                success=success,
                attempted_at=now,
                origin_context=origin_context,
            )
        return response

    def get_status(self, user_id: NanoIdType) -> TwoFactorStatus:
        record = self.store.get(user_id)
        is_required = self._is_privileged(user_id)
        if record is None:
            return TwoFactorStatus(is_enabled=False, is_required=is_required, state=TwoFactorStateEnum.NONE)

        return TwoFactorStatus(
            is_enabled=record.is_enabled,
            is_required=is_required,
            method=record.method,
            backup_codes_remaining=recovery_vault.remaining(record.backup_codes),
            state=record.state,
        )

    def list_attempts(self, user_id: NanoIdType) -> List[TwoFactorAttemptRead]:
        return self.auditor.list_for_user(user_id)

    def _verify_totp(self, user_id: NanoIdType, code: str, now: datetime) -> None:
        record = self._get_record(user_id)
        for _ in range(self.cas_retries + 1):
            time_step = self._match_totp(record, code=code, now=now)
            updates: Dict[str, Any] = dict(last_used_at=now, last_verified_step=time_step)
            if not record.is_enabled:
                updates['is_enabled'] = True

            if self.store.compare_and_swap(record, now=now, **updates):
                if 'is_enabled' in updates:
                    logger.info(f'two factor enabled for {user_id}')
                return
            # Lost a race, the reread record decides, including replay of this very code
            record = self._get_record(user_id)

        raise TwoFactorStoreUnavailable('Two factor record kept changing during verify')

    def _consume_backup_code(self, user_id: NanoIdType, code: str, now: datetime) -> BackupCodeResponse:
        for _ in range(self.cas_retries + 1):
            record = self._get_record(user_id)
            remaining_codes, consumed = recovery_vault.consume(record.backup_codes, code)
            if not consumed:
                logger.info(f'backup code rejected for {user_id}')
                raise InvalidCode()

            if self.store.compare_and_swap(record, now=now, backup_codes=remaining_codes, last_used_at=now):
                logger.info(f'backup code used by {user_id}, {len(remaining_codes)} remaining')
                return BackupCodeResponse(verified=True, remaining_backup_codes=len(remaining_codes))

        raise TwoFactorStoreUnavailable('Two factor record kept changing during backup code use')

    def _match_totp(self, record: TwoFactorRecordRead, code: str, now: datetime) -> int:
        """
        Time step of the matching code, InvalidCode for a wrong or replayed one
        """
        validation = self.engine.validate(record.shared_secret, code, now, window=self.valid_window)
        if not validation.verified or validation.time_step is None:
            logger.info(f'two factor code rejected for {record.user_id}')
            raise InvalidCode()

        if record.last_verified_step is not None and validation.time_step <= record.last_verified_step:
            logger.info(f'two factor code replay rejected for {record.user_id}')
            raise InvalidCode()

        return validation.time_step

    def _get_record(self, user_id: NanoIdType) -> TwoFactorRecordRead:
        record = self.store.get(user_id)
        if record is None:
            raise NotSetUp(context={'user_id': user_id})
        return record

    def _is_privileged(self, user_id: NanoIdType) -> bool:
        try:
            role = self.role_service.get_role_for_user(user_id)
        except RoleLookupFailed:
            # Unknown role, fail closed
            return True
        return self.policy.is_privileged(role)
