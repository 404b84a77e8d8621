from huis.core.role.constants import RoleEnum
from huis.core.role.domains import UserRoleCreate, UserRoleRead
from huis.core.role.exceptions import RoleLookupFailed
from huis.core.role.models import UserRole
from huis.core.role.service import RoleService

__all__ = [
    'RoleEnum',
    'RoleLookupFailed',
    'RoleService',
    'UserRole',
    'UserRoleCreate',
    'UserRoleRead',
]
