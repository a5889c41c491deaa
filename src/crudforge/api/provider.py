# src/crudforge/api/provider.py
"""Data access for one model type over one SQLAlchemy session."""

from typing import Any, Dict, Generic, List, Optional, Sequence, TypeVar

from rich.markup import escape
from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, with_parent
from sqlalchemy.sql import Select

from ..core.errors import NotDeletable, NotFound, ParseError, StoreError
from ..core.logging import log
from ..core.query import FindConditions, FilterSet
from ..db.models import SOFT_DELETE_COLUMN, DeletionPolicy, ModelDescriptor, utcnow

T = TypeVar("T")

DEFAULT_BATCH_SIZE = 100


class ResourceProvider(Generic[T]):
    """
    CRUD operations for a single model.

    Reads never raise for an empty result except `find_one`, which raises
    NotFound. Any SQLAlchemy failure is rolled back and re-raised as
    StoreError. Writes are committed one statement at a time; sequences such
    as check-then-delete are not atomic against concurrent writers.
    """

    def __init__(
        self,
        descriptor: ModelDescriptor[T],
        db: Session,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ):
        self.descriptor = descriptor
        self.db = db
        self.batch_size = batch_size

    # ? Store access -------------------------------------------------------------------------

    def get_db(self) -> Session:
        return self.db

    def model(self) -> Select:
        """Base select for the model, hiding soft-deleted rows."""
        return self.descriptor.not_deleted(select(self.descriptor.model))

    def migrate(self) -> None:
        self.descriptor.table.create(bind=self.db.get_bind(), checkfirst=True)

    def _fail(self, action: str, error: SQLAlchemyError) -> StoreError:
        self.db.rollback()
        log.error(escape(f"{action} {self.descriptor.name} failed: {error}"))
        return StoreError(str(error))

    def _scalars(self, action: str, stmt: Select) -> List[T]:
        try:
            return list(self.db.scalars(stmt).unique().all())
        except SQLAlchemyError as e:
            raise self._fail(action, e)

    def _scalar(self, action: str, stmt: Select) -> Any:
        try:
            return self.db.scalar(stmt)
        except SQLAlchemyError as e:
            raise self._fail(action, e)

    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._fail(action, e)

    # ? Reads --------------------------------------------------------------------------------

    def find_one(self, id: Any) -> T:
        """Fetch by primary key with the model's declared preloads."""
        stmt = self.model().where(self.descriptor.pk_column == id)
        stmt = self.descriptor.eager_load(stmt, self.descriptor.preloads)
        rows = self._scalars("find", stmt)
        if not rows:
            raise NotFound(f"{self.descriptor.name} {id} not found")
        return rows[0]

    def find(self, conditions: FindConditions) -> List[T]:
        stmt = conditions.apply(self.model(), self.descriptor)
        stmt = self.descriptor.eager_load(stmt, self.descriptor.preloads)
        return self._scalars("find", stmt)

    def _assoc_select(self, parent: ModelDescriptor, parent_id: Any, relation: str) -> Select:
        instance = parent.new_with_id(parent_id)
        return self.model().where(with_parent(instance, parent.relation(relation)))

    def find_assoc(
        self,
        parent: ModelDescriptor,
        parent_id: Any,
        relation: str,
        conditions: FindConditions,
    ) -> List[T]:
        """Rows of `relation` belonging to one parent, addressed by id only."""
        stmt = self._assoc_select(parent, parent_id, relation)
        stmt = conditions.apply(stmt, self.descriptor)
        stmt = self.descriptor.eager_load(stmt, self.descriptor.preloads)
        return self._scalars("find", stmt)

    def count(self, filters: Optional[FilterSet] = None) -> int:
        conditions = FindConditions(filters=filters or FilterSet())
        stmt = conditions.apply_filters(self.model(), self.descriptor)
        return self._scalar("count", select(func.count()).select_from(stmt.subquery()))

    def count_assoc(
        self,
        parent: ModelDescriptor,
        parent_id: Any,
        relation: str,
        filters: Optional[FilterSet] = None,
    ) -> int:
        conditions = FindConditions(filters=filters or FilterSet())
        stmt = conditions.apply_filters(self._assoc_select(parent, parent_id, relation), self.descriptor)
        return self._scalar("count", select(func.count()).select_from(stmt.subquery()))

    # ? Writes -------------------------------------------------------------------------------

    def insert(self, value: T) -> T:
        self.db.add(value)
        self._commit("insert")
        self.db.refresh(value)
        return value

    def insert_many(self, values: Sequence[T]) -> List[T]:
        return self.insert_batch(values, self.batch_size)

    def insert_batch(self, values: Sequence[T], batch_size: int = DEFAULT_BATCH_SIZE) -> List[T]:
        """Insert in chunks of `batch_size` rows, one commit per chunk."""
        if batch_size <= 0:
            batch_size = DEFAULT_BATCH_SIZE
        values = list(values)
        for start in range(0, len(values), batch_size):
            self.db.add_all(values[start: start + batch_size])
            self._commit("insert")
        return values

    def update(self, id: Any, value: T) -> int:
        """
        Write every non-null column of `value` onto row `id`.

        Returns the matched row count (0 or 1). A zero count does not raise;
        callers that need the row re-read it with `find_one`.
        """
        return self._update_values(id, self.descriptor.values_of(value))

    def update_fields(self, id: Any, fields: Dict[str, Any]) -> T:
        for name in fields:
            if name not in self.descriptor.column_names:
                raise ParseError(f"unknown field: {name}")
            if name == self.descriptor.pk_name:
                raise ParseError(f"{name} cannot be updated")
        self._update_values(id, dict(fields))
        return self.find_one(id)

    def _update_values(self, id: Any, values: Dict[str, Any]) -> int:
        if not values:
            return 0
        if "updated_at" in self.descriptor.column_names and "updated_at" not in values:
            values["updated_at"] = utcnow()
        stmt = self.descriptor.not_deleted(
            update(self.descriptor.model).where(self.descriptor.pk_column == id)
        ).values(**values).execution_options(synchronize_session=False)
        try:
            result = self.db.execute(stmt)
        except SQLAlchemyError as e:
            raise self._fail("update", e)
        self._commit("update")
        self.db.expire_all()
        return min(result.rowcount, 1)

    def delete(self, id: Any) -> None:
        row = self.find_one(id)
        if not self.descriptor.is_deletable(row, self.db):
            raise NotDeletable(f"{self.descriptor.name} {id} cannot be deleted")
        self._delete_ids([id])

    def delete_many(self, ids: Sequence[Any]) -> int:
        ids = list(dict.fromkeys(ids))
        if not ids:
            return 0
        rows = self._scalars("find", self.model().where(self.descriptor.pk_column.in_(ids)))
        for row in rows:
            if not self.descriptor.is_deletable(row, self.db):
                raise NotDeletable(
                    f"{self.descriptor.name} {self.descriptor.get_id(row)} cannot be deleted"
                )
        return self._delete_ids([self.descriptor.get_id(row) for row in rows])

    def _delete_ids(self, ids: List[Any]) -> int:
        if not ids:
            return 0
        model, pk = self.descriptor.model, self.descriptor.pk_column
        if self.descriptor.deletion_policy is DeletionPolicy.SOFT:
            now = utcnow()
            values = {SOFT_DELETE_COLUMN: now}
            if "updated_at" in self.descriptor.column_names:
                values["updated_at"] = now
            stmt = update(model).where(pk.in_(ids)).values(values)
        else:
            stmt = delete(model).where(pk.in_(ids))
        try:
            result = self.db.execute(stmt.execution_options(synchronize_session=False))
        except SQLAlchemyError as e:
            raise self._fail("delete", e)
        self._commit("delete")
        self.db.expire_all()
        return min(result.rowcount, len(ids))
