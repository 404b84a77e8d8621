from typing import TYPE_CHECKING, Any, Dict, Generic, List, Optional, Sequence, Type, TypeVar, Union

from loguru import logger
from sqlalchemy import delete, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, MultipleResultsFound, NoResultFound
from sqlalchemy.orm import Query, Session
from sqlalchemy.sql.elements import BinaryExpression, ColumnElement, UnaryExpression

from huis.common.domain import BaseDomain
from huis.network.database.repository.exceptions import (
    MultipleRepositoryObjectsFound,
    PreventingModelTruncation,
    RepositoryObjectNotFound,
)
from huis.network.database.session import db

if TYPE_CHECKING:
    from huis.common.model import BaseModel


class BaseQueryManager:
    def __init__(self, model: Type['BaseModel']) -> None:  # type: ignore[type-arg]
        self.model = model

    def get_query(self, *clauses: Any, **specification: Any) -> 'Query[BaseModel]':  # type: ignore[type-arg]
        query = self.model._get_session().query(self.model)
        for clause in clauses:
            query = query.where(clause)
        for key, value in specification.items():
            query = query.where(getattr(self.model, key) == value)
        return query


ReadDomainType = TypeVar('ReadDomainType', bound=BaseDomain)
CreateDomainType = TypeVar('CreateDomainType', bound=BaseDomain)


class RepositoryMixin(Generic[ReadDomainType, CreateDomainType]):
    """
    Database access layer. All interaction with the database should be routed
    through this layer. all public interfaces accept domains subclasses from the
    pydantic base class with from_attributes for simple domain -> orm mapping
    """

    __create_domain__: Type[CreateDomainType] = NotImplemented
    __read_domain__: Type[ReadDomainType] = NotImplemented
    query_manager: Type[BaseQueryManager] | None = BaseQueryManager

    @classmethod
    def _get_session(cls) -> Session:
        return db.session

    @classmethod
    def get_query(cls, *clauses: Any, **specification: Any) -> 'Query[BaseModel]':  # type: ignore[type-arg]
        if cls.query_manager is None:
            raise ValueError(f'query_manager not set for {cls.__name__}')
        return cls.query_manager(cls).get_query(*clauses, **specification)  # type: ignore[arg-type]

    @classmethod
    def get(cls, *clauses: Union[BinaryExpression[Any], ColumnElement[bool]], **specification: Any) -> ReadDomainType:
        instance = cls._get(*clauses, **specification)

        return cls._to_domain(instance)

    @classmethod
    def get_or_none(cls, *clauses: Any, **specification: Any) -> ReadDomainType | None:
        try:
            instance = cls._get(*clauses, **specification)
        except RepositoryObjectNotFound:
            return None

        return cls._to_domain(instance)

    @classmethod
    def _get(cls, *clauses: Any, **specification: Any) -> 'BaseModel[Any, Any]':
        try:
            return cls.get_query(*clauses, **specification).one()
        except MultipleResultsFound:
            raise MultipleRepositoryObjectsFound(f'Multiple results found for {cls.__name__}: {specification}!')
        except NoResultFound:
            raise RepositoryObjectNotFound(f'{cls.__name__}: {specification} not found!')

    @classmethod
    def list(
        cls,
        *clauses: Any,
        ordering: Optional[List[Union[str, UnaryExpression]]] = None,
        limit: int | None = None,
        **specification: Any,
    ) -> List[ReadDomainType]:
        query = cls.get_query(*clauses, **specification)
        if ordering:
            query = query.order_by(*cls._parse_ordering(ordering))
        if limit:
            query = query.limit(limit)
        return [cls._to_domain(obj) for obj in query]

    @classmethod
    def count(cls, *clauses: Any, **specification: Any) -> int:
        return int(cls.get_query(*clauses, **specification).count())

    @classmethod
    def create(cls, domain_obj: CreateDomainType) -> ReadDomainType:
        model_instance = cls._create(**domain_obj.to_dict())
        return cls._to_domain(model_instance)

    @classmethod
    def upsert(
        cls,
        values: Dict[str, Any],
        index_elements: Sequence[str],
        update_columns: Sequence[str],
        extra_updates: Dict[str, Any] | None = None,
    ) -> ReadDomainType:
        """
        Single statement insert or update keyed on a unique index. Concurrent
        callers never observe a half written row.
        extra_updates only apply on conflict, e.g. {'version': Model.version + 1}
        """
        session = cls._get_session()
        dialect_insert = cls._dialect_insert(session)
        values = dict(values)
        values.setdefault('id', cls.generate_id())  # type: ignore[attr-defined]
        statement = dialect_insert(cls).values(**values)
        set_ = {column: statement.excluded[column] for column in update_columns}
        set_.update(extra_updates or {})
        statement = statement.on_conflict_do_update(
            index_elements=list(index_elements),
            set_=set_,
        )
        try:
            session.execute(statement)
        except IntegrityError:
            session.rollback()
            raise

        # The statement bypassed the identity map
        session.expire_all()
        specification = {column: values[column] for column in index_elements}
        return cls.get(**specification)

    @classmethod
    def conditional_update(cls, clauses: List[Any], updates: Dict[str, Any]) -> int:
        """
        UPDATE ... WHERE <clauses>, returning the matched row count. A zero count
        means another writer changed the row first.
        """
        if not clauses:
            raise PreventingModelTruncation(f'Must pass clauses to avoid updating every {cls.__name__}')

        session = cls._get_session()
        statement = update(cls).where(*clauses).values(**updates).execution_options(synchronize_session=False)
        try:
            result = session.execute(statement)
        except IntegrityError:
            session.rollback()
            raise
        session.expire_all()
        return int(result.rowcount)

    @classmethod
    def conditional_delete(cls, clauses: List[Any]) -> int:
        if not clauses:
            raise PreventingModelTruncation(f'Must pass clauses to avoid truncating {cls.__name__}')

        session = cls._get_session()
        statement = delete(cls).where(*clauses).execution_options(synchronize_session=False)
        result = session.execute(statement)
        session.expire_all()
        return int(result.rowcount)

    @classmethod
    def delete(cls, *clauses: Union[BinaryExpression[Any], ColumnElement[bool]], **specification: Any) -> int:
        if specification:
            logger.warning(f'specification kwargs for {cls.__name__}.delete is deprecated please dont use!')

        if not clauses and not specification:
            raise PreventingModelTruncation(f'Must pass clauses to avoid truncating {cls.__name__}')

        try:
            return cls.get_query(*clauses, **specification).delete()
        except IntegrityError:
            cls._get_session().rollback()
            raise

    @classmethod
    def update(cls, id: str, **updates: Any) -> ReadDomainType:
        model_instance = cls.get_query(id=id).one()
        for key, value in updates.items():
            if not hasattr(model_instance, key):
                raise ValueError(f"The key '{key}' is not a valid attribute for this model.")
            setattr(model_instance, key, value)

        try:
            cls._get_session().flush([model_instance])
        except IntegrityError:
            cls._get_session().rollback()
            raise

        return cls.get(cls.id == id)  # type: ignore[attr-defined]

    @classmethod
    def _create(cls, **attributes: Any) -> 'BaseModel[Any, Any]':
        model_instance = cls(**attributes)
        cls._get_session().add(model_instance)
        try:
            cls._get_session().flush([model_instance])
        except IntegrityError:
            cls._get_session().rollback()
            raise

        return model_instance  # type: ignore[return-value]

    @classmethod
    def _dialect_insert(cls, session: Session) -> Any:
        dialect_name = session.get_bind().dialect.name
        if dialect_name == 'postgresql':
            return postgresql.insert
        if dialect_name == 'sqlite':
            return sqlite.insert
        raise NotImplementedError(f'upsert is not supported for {dialect_name}')

    @classmethod
    def _parse_ordering(
        cls, ordering: List[Union[str, 'UnaryExpression[Any]']] | None = None
    ) -> List['UnaryExpression[Any]']:
        """
        Parses str references for a field like:
        ['-attempted_at', 'user_id']
        """
        order_expressions = []
        for order in ordering or []:
            if isinstance(order, str):
                if order[0] == '-':
                    order_expressions.append(getattr(cls, order[1:]).desc())
                else:
                    order_expressions.append(getattr(cls, order).asc())
            else:
                # Assume already an expression
                order_expressions.append(order)

        return order_expressions

    @classmethod
    def _to_domain(cls, model_instance: 'BaseModel[Any, Any]') -> ReadDomainType:
        return cls.__read_domain__.model_validate(model_instance)  # type: ignore[no-any-return]
