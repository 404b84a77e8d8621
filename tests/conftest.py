import os

from sqlalchemy.orm import Session

# Test Environment Overrides will override .env files
# THESE MUST BE SET BEFORE ANY huis IMPORT
EXPECTED_SECRET_KEY = 'test-signing-key-for-access-tokens-only'
os.environ.setdefault('SECRET_KEY', EXPECTED_SECRET_KEY)
os.environ.setdefault('ENVIRONMENT', 'testing')
os.environ.setdefault('DATABASE_URL', 'sqlite+pysqlite:///:memory:')
os.environ.setdefault('DB_ENCRYPTION_KEY', 'test-encryption-key')
os.environ.setdefault('DB_ENCRYPTION_SALT', 'test-salt')
os.environ.setdefault('ATOMIC_REQUESTS', 'True')
os.environ.setdefault('ENABLE_HSTS', 'False')
os.environ.setdefault('TWO_FACTOR_ISSUER', 'Huis van het Arabisch')
os.environ.setdefault('USE_MOCK_SENTRY_CLIENT', 'True')

from huis import setup  # noqa: E402

setup.run()

import pytest  # noqa: E402

from huis import settings  # noqa: E402
from huis.common import context  # noqa: E402
from huis.common.model import BaseModel  # noqa: E402
from huis.network.database.session import db as session_manager  # noqa: E402
from huis.network.database.session import get_engine  # noqa: E402

# Add fixtures here
pytest_plugins = [
    'tests.factories.core.role',
    'tests.factories.core.two_factor',
]

# When huis files are imported before the above patching, tests will use
# incorrect database settings as well as non mocked services.
if settings.SECRET_KEY != EXPECTED_SECRET_KEY:
    raise ValueError(
        'Patching of environment variables failed.\n'
        'This will cause unexpected test failures. '
        'Check all huis imports are delayed until after patching.\n'
    )

# In memory database shared through a single connection
BaseModel.metadata.create_all(get_engine())


@pytest.fixture(autouse=True)
def patch_isolated_session(monkeypatch):
    """
    Isolated sessions commit on their own, route them through the test
    session so everything rolls back together.
    """
    from huis.network.database.session import PatchedIsolatedSession

    monkeypatch.setattr('huis.network.database.session.IsolatedSession', PatchedIsolatedSession)


@pytest.fixture(scope='function', autouse=True)
def db() -> Session:
    # This needs to be set first for fixtures to be able to create
    context.initialize(
        user_type=context.AppContextUserType.SYSTEM,
        user_id='user-system',
        breadcrumb='testing',
    )

    with session_manager(commit_on_success=False):
        session = session_manager.session

        # Production code may commit, in tests that only flushes
        # so everything stays in the rolled back transaction
        def no_op_commit():
            session.flush()

        session.commit = no_op_commit

        yield session

        session.rollback()
