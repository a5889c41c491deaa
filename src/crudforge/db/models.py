# src/crudforge/db/models.py
"""Model descriptors, capabilities and base model mixins."""

from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Generic, Iterable, Mapping, Optional, Tuple, Type, TypeVar

from sqlalchemy import BigInteger, DateTime, Integer, inspect as sa_inspect
from sqlalchemy.exc import NoInspectionAvailable
from sqlalchemy.orm import Mapped, Session, mapped_column, selectinload
from sqlalchemy.sql import Select

from ..core.errors import ParseError

T = TypeVar("T")


class Capability(str, Enum):
    """Optional behaviours a model class may declare."""

    PRELOADABLE = "preloadable"  # classmethod preloads() -> list of relation names
    FULL_TEXT_INDEXED = "full_text_indexed"  # classmethod full_text_columns() -> {field: index column}
    DELETABLE_CHECK = "deletable_check"  # method deletable(session) -> bool
    ID_CONSTRUCTIBLE = "id_constructible"  # classmethod new_with_id(id) -> instance


class DeletionPolicy(str, Enum):
    SOFT = "soft"
    HARD = "hard"
    PERMANENT = "permanent"


# Capability -> attribute that must be callable on the model class
_CAPABILITY_HOOKS = MappingProxyType({
    Capability.PRELOADABLE: "preloads",
    Capability.FULL_TEXT_INDEXED: "full_text_columns",
    Capability.DELETABLE_CHECK: "deletable",
    Capability.ID_CONSTRUCTIBLE: "new_with_id",
})

SOFT_DELETE_COLUMN = "deleted_at"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ? Base mixins ----------------------------------------------------------------------------------


class HardDeleteModel:
    """Integer id plus timestamps. Deleting removes the row."""

    __deletion_policy__ = DeletionPolicy.HARD

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )


class SoftDeleteModel(HardDeleteModel):
    """Deleting stamps deleted_at; stamped rows are invisible to reads."""

    __deletion_policy__ = DeletionPolicy.SOFT

    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), index=True, default=None
    )


class PermanentModel(HardDeleteModel):
    """Rows that can never be deleted."""

    __deletion_policy__ = DeletionPolicy.PERMANENT


# ? Descriptor -----------------------------------------------------------------------------------


class ModelDescriptor(Generic[T]):
    """
    Static description of a mapped model class.

    Built once when a resource is registered. Everything the query compiler
    and the provider need to know about the model (primary key, columns,
    relations, capabilities, deletion policy) is resolved here so requests
    never probe the class again.
    """

    def __init__(self, model: Type[T]):
        try:
            mapper = sa_inspect(model)
        except NoInspectionAvailable:
            raise TypeError(f"{model!r} is not a mapped SQLAlchemy model")

        primary_key = mapper.primary_key
        if len(primary_key) != 1:
            raise TypeError(f"{model.__name__} must have exactly one primary key column")

        self.model = model
        self.name = model.__name__
        self.table = mapper.local_table
        self.pk_name = mapper.get_property_by_column(primary_key[0]).key
        self.column_names: Tuple[str, ...] = tuple(attr.key for attr in mapper.column_attrs)
        self.relations = MappingProxyType({rel.key: rel for rel in mapper.relationships})
        self.capabilities: FrozenSet[Capability] = frozenset(
            cap for cap, hook in _CAPABILITY_HOOKS.items()
            if callable(getattr(model, hook, None))
        )
        self.deletion_policy: DeletionPolicy = getattr(
            model, "__deletion_policy__", DeletionPolicy.HARD
        )
        if self.deletion_policy is DeletionPolicy.SOFT and SOFT_DELETE_COLUMN not in self.column_names:
            raise TypeError(f"{model.__name__} uses soft delete but has no {SOFT_DELETE_COLUMN} column")

        self.preloads: Tuple[str, ...] = ()
        if Capability.PRELOADABLE in self.capabilities:
            self.preloads = tuple(model.preloads())
            for name in self.preloads:
                if name not in self.relations:
                    raise TypeError(f"{model.__name__}.preloads() names unknown relation {name!r}")

        self.full_text_columns: Mapping[str, str] = MappingProxyType({})
        if Capability.FULL_TEXT_INDEXED in self.capabilities:
            self.full_text_columns = MappingProxyType(dict(model.full_text_columns()))

    def __repr__(self) -> str:
        caps = ", ".join(sorted(c.value for c in self.capabilities))
        return f"<ModelDescriptor {self.name} [{caps}]>"

    def has(self, capability: Capability) -> bool:
        return capability in self.capabilities

    @property
    def pk_column(self):
        return getattr(self.model, self.pk_name)

    def column(self, name: str):
        """Resolve a column by attribute name, falling back to raw table columns."""
        if name in self.column_names:
            return getattr(self.model, name)
        if name in self.table.c:
            return self.table.c[name]
        raise ParseError(f"unknown field: {name}")

    def full_text_column(self, field: str) -> str:
        return self.full_text_columns.get(field, field)

    def relation(self, name: str):
        if name not in self.relations:
            raise ParseError(f"unknown relation: {name}")
        return getattr(self.model, name)

    def eager_load(self, stmt: Select, names: Iterable[str]) -> Select:
        seen = []
        for name in names:
            if name not in seen:
                seen.append(name)
        if not seen:
            return stmt
        return stmt.options(*[selectinload(self.relation(name)) for name in seen])

    def new_with_id(self, id: Any) -> T:
        """Build an instance that carries only its primary key."""
        if Capability.ID_CONSTRUCTIBLE in self.capabilities:
            return self.model.new_with_id(id)
        instance = self.model()
        setattr(instance, self.pk_name, id)
        return instance

    def get_id(self, instance: T) -> Any:
        return getattr(instance, self.pk_name)

    def is_deletable(self, instance: T, session: Session) -> bool:
        if self.deletion_policy is DeletionPolicy.PERMANENT:
            return False
        if Capability.DELETABLE_CHECK in self.capabilities:
            return bool(instance.deletable(session))
        return True

    def not_deleted(self, stmt: Select) -> Select:
        if self.deletion_policy is DeletionPolicy.SOFT:
            return stmt.where(getattr(self.model, SOFT_DELETE_COLUMN).is_(None))
        return stmt

    def values_of(self, instance: T, skip_none: bool = True) -> Dict[str, Any]:
        """Column values of an instance, without the primary key."""
        values = {}
        for name in self.column_names:
            if name == self.pk_name:
                continue
            value = getattr(instance, name, None)
            if value is None and skip_none:
                continue
            values[name] = value
        return values


_descriptors: Dict[type, ModelDescriptor] = {}


def describe(model: Type[T]) -> ModelDescriptor[T]:
    """Return the descriptor of a model class, building it on first use."""
    descriptor = _descriptors.get(model)
    if descriptor is None:
        descriptor = _descriptors[model] = ModelDescriptor(model)
    return descriptor
