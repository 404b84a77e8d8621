from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from huis.common.model import BaseModel
from huis.common.nanoid import NanoIdType
from huis.core.role.constants import RoleEnum
from huis.core.role.domains import UserRoleCreate, UserRoleRead


class UserRole(BaseModel[UserRoleRead, UserRoleCreate]):
    """Role directory, owned by the identity side of the platform"""

    user_id: Mapped[NanoIdType] = mapped_column(String(length=50), unique=True, nullable=False)
    role: Mapped[RoleEnum] = mapped_column(String(length=20), nullable=False)

    __pk_abbrev__ = 'rol'
    __read_domain__ = UserRoleRead
    __create_domain__ = UserRoleCreate
