from loguru import logger
from sqlalchemy.exc import OperationalError

from huis.common.nanoid import NanoIdType
from huis.core.role.constants import RoleEnum
from huis.core.role.domains import UserRoleCreate, UserRoleRead
from huis.core.role.exceptions import RoleLookupFailed
from huis.core.role.models import UserRole


class RoleService:
    @classmethod
    def factory(cls) -> 'RoleService':
        return cls()

    def get_role_for_user(self, user_id: NanoIdType) -> RoleEnum | None:
        """
        None when the user has no role on record.
        """
        try:
            user_role = UserRole.get_or_none(UserRole.user_id == user_id)
        except (OperationalError, TimeoutError) as e:
            logger.warning(f'role lookup failed for {user_id}: {e}')
            raise RoleLookupFailed(f'Unable to resolve role for {user_id}')

        if user_role is None:
            return None
        return RoleEnum(user_role.role)

    def assign_role(self, user_id: NanoIdType, role: RoleEnum) -> UserRoleRead:
        existing = UserRole.get_or_none(UserRole.user_id == user_id)
        if existing is not None:
            return UserRole.update(existing.id, role=role)
        return UserRole.create(UserRoleCreate(user_id=user_id, role=role))
