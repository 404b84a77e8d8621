from polyfactory import Use
from polyfactory.factories.pydantic_factory import ModelFactory
from polyfactory.pytest_plugin import register_fixture

from huis.common.nanoid import NanoId
from huis.core.role import RoleEnum, UserRoleCreate


@register_fixture(scope='session', autouse=True, name='user_role_factory')
class UserRoleFactory(ModelFactory[UserRoleCreate]):
    __model__ = UserRoleCreate

    user_id = Use(NanoId.gen, 'user')
    role = Use(lambda: RoleEnum.STUDENT)
