from datetime import datetime
from typing import Optional

from huis.common.domain import BaseDomain
from huis.common.nanoid import NanoIdType
from huis.core.role.constants import RoleEnum


class UserRoleCreate(BaseDomain):
    user_id: NanoIdType
    role: RoleEnum


class UserRoleRead(UserRoleCreate):
    id: NanoIdType
    created_at: Optional[datetime] = None
