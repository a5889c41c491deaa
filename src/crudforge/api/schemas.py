# src/crudforge/api/schemas.py
"""Pydantic schemas derived from mapped models, and record serialization."""

from typing import Any, Dict, Iterable, Optional, Type

from pydantic import BaseModel, ConfigDict, create_model
from sqlalchemy import inspect as sa_inspect

from ..db.models import ModelDescriptor

# Columns maintained by the store, never bound from request bodies.
MANAGED_COLUMNS = frozenset({"created_at", "updated_at", "deleted_at"})


def _python_type(column) -> Any:
    try:
        return column.type.python_type
    except NotImplementedError:
        return Any


def create_input_model(descriptor: ModelDescriptor) -> Type[BaseModel]:
    """Request body model: every writable column of the table."""
    fields: Dict[str, Any] = {}
    for column in descriptor.table.columns:
        name = column.key
        if column.primary_key or name in MANAGED_COLUMNS or name not in descriptor.column_names:
            continue
        python_type = _python_type(column)
        required = not column.nullable and column.default is None and column.server_default is None
        if required:
            fields[name] = (python_type, ...)
        else:
            fields[name] = (Optional[python_type], None)

    return create_model(
        f"{descriptor.name}Input",
        **fields,
        __config__=ConfigDict(extra="ignore"),
    )


def create_output_model(descriptor: ModelDescriptor) -> Type[BaseModel]:
    """Response model used for the OpenAPI schema of single records."""
    fields: Dict[str, Any] = {}
    for column in descriptor.table.columns:
        if column.key not in descriptor.column_names:
            continue
        python_type = _python_type(column)
        if column.nullable:
            fields[column.key] = (Optional[python_type], None)
        else:
            fields[column.key] = (python_type, ...)

    return create_model(
        f"{descriptor.name}Model",
        **fields,
        __config__=ConfigDict(from_attributes=True),
    )


def _columns_of(record: Any) -> Dict[str, Any]:
    mapper = sa_inspect(record).mapper
    return {attr.key: getattr(record, attr.key) for attr in mapper.column_attrs}


def record_to_dict(record: Any, relations: Iterable[str] = ()) -> Dict[str, Any]:
    """
    Column values of a record plus any of `relations` already loaded.

    Relations that were not eager-loaded are skipped rather than lazily
    fetched.
    """
    result = _columns_of(record)
    unloaded = sa_inspect(record).unloaded
    for name in relations:
        if name in unloaded or name in result:
            continue
        value = getattr(record, name)
        if value is None:
            result[name] = None
        elif isinstance(value, (list, tuple, set)):
            result[name] = [_columns_of(item) for item in value]
        else:
            result[name] = _columns_of(value)
    return result
