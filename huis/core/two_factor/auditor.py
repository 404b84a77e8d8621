from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterator, List

from loguru import logger
from sqlalchemy.exc import OperationalError

from huis.common.nanoid import NanoIdType
from huis.core.two_factor.constants import AttemptMethodEnum
from huis.core.two_factor.domains import TwoFactorAttemptCreate, TwoFactorAttemptRead
from huis.core.two_factor.exceptions import TwoFactorStoreUnavailable
from huis.core.two_factor.models import TwoFactorAttempt
from huis.network.database import session as database_session


@contextmanager
def _log_errors(user_id: NanoIdType, action: str) -> Iterator[None]:
    try:
        yield
    except (OperationalError, TimeoutError) as e:
        logger.error(f'unable to {action} two factor attempts for {user_id}: {e}')
        raise TwoFactorStoreUnavailable(f'Unable to {action} two factor attempts')


class AttemptAuditor:
    """
    Append only log of verification attempts. Entries are committed in their
    own session so they outlive a rolled back request.
    """

    @classmethod
    def factory(cls) -> 'AttemptAuditor':
        return cls()

    def record(
        self,
        user_id: NanoIdType,
        method: AttemptMethodEnum,
        success: bool,
        attempted_at: datetime,
        origin_context: Dict[str, Any] | None = None,
    ) -> TwoFactorAttemptRead:
        attempt = TwoFactorAttemptCreate(
            user_id=user_id,
            method=method,
            success=success,
            attempted_at=attempted_at,
            origin_context=origin_context or {},
        )
        with _log_errors(user_id, 'record'):
            with database_session.IsolatedSession(commit_on_success=True):
                entry = TwoFactorAttempt.create(attempt)

        logger.info(f'two factor attempt user={user_id} method={method} success={success}')
        return entry

    def list_for_user(self, user_id: NanoIdType, limit: int | None = 50) -> List[TwoFactorAttemptRead]:
        with _log_errors(user_id, 'list'):
            return TwoFactorAttempt.list(
                TwoFactorAttempt.user_id == user_id,
                ordering=['-attempted_at'],
                limit=limit,
            )

    def count_recent_failures(self, user_id: NanoIdType, since: datetime) -> int:
        with _log_errors(user_id, 'count'):
            return TwoFactorAttempt.count(
                TwoFactorAttempt.user_id == user_id,
                TwoFactorAttempt.success == False,  # noqa: E712
                TwoFactorAttempt.attempted_at >= since,
            )
