from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterator, List

from loguru import logger
from sqlalchemy.exc import OperationalError

from huis.common.nanoid import NanoIdType
from huis.core.two_factor.constants import TwoFactorMethodEnum
from huis.core.two_factor.domains import TwoFactorRecordRead
from huis.core.two_factor.exceptions import TwoFactorStoreUnavailable
from huis.core.two_factor.models import TwoFactorRecord


@contextmanager
def _store_errors(user_id: NanoIdType) -> Iterator[None]:
    try:
        yield
    except (OperationalError, TimeoutError) as e:
        logger.error(f'two factor store unavailable for {user_id}: {e}')
        raise TwoFactorStoreUnavailable(context={'user_id': user_id})


class TwoFactorStateStore:
    """
    Persistence for the per user record. Writes after provisioning are
    compare-and-swap on the version column.
    """

    @classmethod
    def factory(cls) -> 'TwoFactorStateStore':
        return cls()

    def get(self, user_id: NanoIdType) -> TwoFactorRecordRead | None:
        with _store_errors(user_id):
            return TwoFactorRecord.get_or_none(TwoFactorRecord.user_id == user_id)

    def provision(
        self,
        user_id: NanoIdType,
        secret: str,
        backup_codes: List[str],
        now: datetime,
    ) -> TwoFactorRecordRead:
        """
        Creates the record or restarts enrollment on an existing one, in one statement.
        """
        values = dict(
            user_id=user_id,
            shared_secret=secret,
            backup_codes=list(backup_codes),
            is_enabled=False,
            method=TwoFactorMethodEnum.TOTP.value,
            last_used_at=None,
            last_verified_step=None,
            version=1,
        )
        with _store_errors(user_id):
            return TwoFactorRecord.upsert(
                values,
                index_elements=['user_id'],
                update_columns=[
                    'shared_secret',
                    'backup_codes',
                    'is_enabled',
                    'method',
                    'last_used_at',
                    'last_verified_step',
                ],
                extra_updates={'version': TwoFactorRecord.version + 1, 'modified_at': now},
            )

    def compare_and_swap(self, record: TwoFactorRecordRead, now: datetime, **updates: Any) -> bool:
        """
        Applies updates only if nobody wrote the record since it was read.
        """
        updates = dict(updates, version=record.version + 1, modified_at=now)
        with _store_errors(record.user_id):
            count = TwoFactorRecord.conditional_update(
                clauses=[TwoFactorRecord.id == record.id, TwoFactorRecord.version == record.version],
                updates=updates,
            )
        if count == 0:
            logger.debug(f'two factor record {record.id} changed since version {record.version}')
        return count == 1

    def delete(self, record: TwoFactorRecordRead) -> bool:
        with _store_errors(record.user_id):
            count = TwoFactorRecord.conditional_delete(
                clauses=[TwoFactorRecord.id == record.id, TwoFactorRecord.version == record.version],
            )
        return count == 1
