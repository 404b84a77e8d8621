import time
from contextvars import ContextVar
from typing import Any, Dict, Optional

from loguru import logger
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import URL, make_url
from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.session import Session as SqlAlchemySession
from sqlalchemy.pool import NullPool, StaticPool

from huis import settings


def get_database_url() -> URL:
    if settings.DATABASE_URL:
        return make_url(settings.DATABASE_URL)

    return URL.create(
        drivername='postgresql',
        username=settings.DB_USER,
        password=settings.DB_PASSWORD,
        host=settings.DB_HOST,
        port=settings.DB_PORT,
        database=settings.DB_NAME,
    )


def create_db_engine(url: URL) -> Engine:
    if url.get_backend_name() == 'sqlite':
        # One shared connection so every session sees the same in-memory database
        return create_engine(
            url,
            poolclass=StaticPool,
            connect_args={'check_same_thread': False},
        )

    return create_engine(
        url,
        poolclass=NullPool,
        connect_args={
            'options': f'-c timezone=utc -c statement_timeout={settings.DB_STATEMENT_TIMEOUT_MS}',
            'connect_timeout': settings.DB_CONNECT_TIMEOUT,
        },
        pool_pre_ping=True,
    )


_rw_engine = create_db_engine(get_database_url())
_rw_session_maker = sessionmaker(autocommit=False, autoflush=False, bind=_rw_engine)

if settings.DB_LOG_STATEMENTS:

    @event.listens_for(Engine, 'before_cursor_execute')
    def before_cursor_execute(
        conn: Any, cursor: Any, statement: str, parameters: Any, context: Any, executemany: bool
    ) -> None:
        conn.info.setdefault('query_start_time', []).append(time.time())
        # Parameters are left out, they can hold secrets
        logger.info(f'Start Query: {statement}')

    @event.listens_for(Engine, 'after_cursor_execute')
    def after_cursor_execute(
        conn: Any, cursor: Any, statement: str, parameters: Any, context: Any, executemany: bool
    ) -> None:
        total = time.time() - conn.info['query_start_time'].pop(-1)
        logger.info(f'Query Time: {total}')


# Should be thread safe as well as coroutine safe!
_session_storage: ContextVar[SqlAlchemySession | None] = ContextVar('_session_storage', default=None)


def get_engine() -> Engine:
    return _rw_engine


class SessionNotAvailable(Exception):
    def __init__(self) -> None:
        msg = """
        Either you are not currently in a request context, or you need to manually
        create a session context by using a `db` instance as a context manager e.g.:
        with db():
            db.session.execute(select(TwoFactorRecord))
        """
        super().__init__(msg)


class SessionManagerMeta(type):
    """
    Access session as a property on context manager
    without having to init
    """

    @property
    def session(self) -> SqlAlchemySession:
        session = _session_storage.get()
        if session is None:
            raise SessionNotAvailable

        return session


class SessionManager(metaclass=SessionManagerMeta):
    def __init__(
        self,
        session_kwargs: Dict[str, Any] | None = None,
        commit_on_success: bool = False,
    ):
        self.session_token: Optional[Any] = None
        self.session_kwargs = session_kwargs or {}
        self.commit_on_success = commit_on_success

    def enter(self) -> Any:
        # Nested managers share the outer session, only the owner closes it
        if _session_storage.get() is None:
            session = _rw_session_maker(**self.session_kwargs)
            self.session_token = _session_storage.set(session)

        return type(self)

    def cleanup(self) -> None:
        if self.session_token:
            session = _session_storage.get()
            if session is not None:
                session.close()
            _session_storage.reset(self.session_token)
            self.session_token = None

    def __enter__(self) -> Any:
        return self.enter()

    def __exit__(self, exc_type: Any, exc_value: Any, traceback: Any) -> None:
        session = _session_storage.get()
        is_success = exc_type is None

        if session is not None and self.session_token:
            if self.commit_on_success and is_success:
                session.commit()
            else:
                session.rollback()

        self.cleanup()


# This is what external callers should access!
db: SessionManagerMeta = SessionManager


class IsolatedSession(SessionManager):
    """
    Provides a session isolated from the request one, committed on its own.
    The original session is put back afterwards.
    Use:
    with IsolatedSession(commit_on_success=True):
       # Writes here survive a rollback of the request session
       ...
    """

    def __init__(self, session_kwargs: Dict[str, Any] | None = None, commit_on_success: bool = False) -> None:
        super().__init__(session_kwargs=session_kwargs, commit_on_success=commit_on_success)
        self.current_session: Optional[SqlAlchemySession] = None

    def enter(self) -> Any:
        self.current_session = _session_storage.get()
        new_session = _rw_session_maker(**self.session_kwargs)
        self.session_token = _session_storage.set(new_session)

        return new_session

    def cleanup(self) -> None:
        super().cleanup()
        _session_storage.set(self.current_session)


class PatchedIsolatedSession(IsolatedSession):
    """
    For tests and shell behavior, isolated sessions should not be used. This ensures
    the session being used in code, is the same as the global session and rolls back
    accordingly.
    """

    def enter(self) -> Any:
        return _session_storage.get()

    def __exit__(self, exc_type: Any, exc_value: Any, traceback: Any) -> None:
        # The outer test transaction owns this session
        pass

    def cleanup(self) -> None:
        pass
