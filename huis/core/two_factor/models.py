from datetime import datetime
from typing import Any, Dict, List

from sqlalchemy import JSON, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from huis.common.encrypted_field import EncryptedString
from huis.common.model import BaseModel
from huis.common.nanoid import NanoIdType
from huis.core.two_factor.constants import AttemptMethodEnum, TwoFactorMethodEnum
from huis.core.two_factor.domains import (
    TwoFactorAttemptCreate,
    TwoFactorAttemptRead,
    TwoFactorRecordCreate,
    TwoFactorRecordRead,
)
from huis.network.database.repository.exceptions import AppendOnlyModel


class TwoFactorRecord(BaseModel[TwoFactorRecordRead, TwoFactorRecordCreate]):
    """One per user, present from setup until disable"""

    user_id: Mapped[NanoIdType] = mapped_column(String(length=50), unique=True, nullable=False)
    shared_secret: Mapped[str] = mapped_column(EncryptedString, nullable=False)
    backup_codes: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    is_enabled: Mapped[bool] = mapped_column(default=False, nullable=False)
    method: Mapped[TwoFactorMethodEnum] = mapped_column(
        String(length=20), default=TwoFactorMethodEnum.TOTP.value, nullable=False
    )
    last_used_at: Mapped[datetime | None] = mapped_column(nullable=True)
    # TOTP counter of the last accepted code, older or equal steps are replays
    last_verified_step: Mapped[int | None] = mapped_column(nullable=True)
    version: Mapped[int] = mapped_column(default=1, nullable=False)

    __pk_abbrev__ = 'tfar'
    __read_domain__ = TwoFactorRecordRead
    __create_domain__ = TwoFactorRecordCreate


class TwoFactorAttempt(BaseModel[TwoFactorAttemptRead, TwoFactorAttemptCreate]):
    """Append only, nothing updates or deletes these rows"""

    user_id: Mapped[NanoIdType] = mapped_column(String(length=50), nullable=False)
    method: Mapped[AttemptMethodEnum] = mapped_column(String(length=20), nullable=False)
    success: Mapped[bool] = mapped_column(nullable=False)
    attempted_at: Mapped[datetime] = mapped_column(nullable=False)
    origin_context: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    __table_args__ = (Index('ix_twofactorattempt_user_id_attempted_at', 'user_id', 'attempted_at'),)

    __pk_abbrev__ = 'tfat'
    __read_domain__ = TwoFactorAttemptRead
    __create_domain__ = TwoFactorAttemptCreate

    @classmethod
    def update(cls, id: str, **updates: Any) -> TwoFactorAttemptRead:
        raise AppendOnlyModel(f'{cls.__name__} rows cannot be updated')

    @classmethod
    def conditional_update(cls, clauses: List[Any], updates: Dict[str, Any]) -> int:
        raise AppendOnlyModel(f'{cls.__name__} rows cannot be updated')

    @classmethod
    def delete(cls, *clauses: Any, **specification: Any) -> int:
        raise AppendOnlyModel(f'{cls.__name__} rows cannot be deleted')

    @classmethod
    def conditional_delete(cls, clauses: List[Any]) -> int:
        raise AppendOnlyModel(f'{cls.__name__} rows cannot be deleted')
