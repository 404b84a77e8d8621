from typing import Callable, Dict

import pytest
from fastapi.testclient import TestClient

from huis.common import context
from huis.common.model import BaseModel
from huis.core.authentication import AuthenticationService
from huis.core.role import RoleEnum, RoleService
from huis.network.database.session import db as session_manager


@pytest.fixture(autouse=True)
def patch_isolated_session():
    """
    Requests run through the real session middleware here, attempt logging
    keeps its own committed session like it does in production.
    """
    yield


@pytest.fixture(scope='function', autouse=True)
def db():
    """
    Each request commits or rolls back on its own, so tables are emptied
    after every test instead of rolling back one shared transaction.
    """
    context.initialize(
        user_type=context.AppContextUserType.SYSTEM,
        user_id='user-system',
        breadcrumb='testing',
    )
    yield

    with session_manager(commit_on_success=True):
        for table in reversed(BaseModel.metadata.sorted_tables):
            session_manager.session.execute(table.delete())


@pytest.fixture(scope='module')
def client() -> TestClient:
    from huis.network.http.server import server

    with TestClient(server) as c:
        yield c


@pytest.fixture(scope='function')
def auth_headers() -> Callable[..., Dict[str, str]]:
    """
    Bearer headers for a user, as issued by the identity provider
    """

    def _auth_headers(user_id: str, email: str | None = None) -> Dict[str, str]:
        token = AuthenticationService.factory().create_access_token(
            user_id=user_id, ip_address='127.0.0.1', email=email
        )
        return {'Authorization': f'Bearer {token.access_token}'}

    return _auth_headers


@pytest.fixture(scope='function')
def assign_role() -> Callable[[str, RoleEnum], None]:
    def _assign_role(user_id: str, role: RoleEnum) -> None:
        with session_manager(commit_on_success=True):
            RoleService.factory().assign_role(user_id, role)

    return _assign_role
