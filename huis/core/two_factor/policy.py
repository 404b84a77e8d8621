from huis.core.role.constants import RoleEnum

PRIVILEGED_ROLES = frozenset({RoleEnum.ADMIN, RoleEnum.TEACHER})


class EnforcementPolicy:
    """
    Privileged accounts must keep two factor authentication on.
    """

    privileged_roles = PRIVILEGED_ROLES

    def is_privileged(self, role: RoleEnum | str | None) -> bool:
        if role is None:
            return False
        return RoleEnum(role) in self.privileged_roles

    def can_disable(self, role: RoleEnum | str | None) -> bool:
        return not self.is_privileged(role)

    def is_required(self, role: RoleEnum | str | None) -> bool:
        return self.is_privileged(role)
