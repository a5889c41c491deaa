# src/crudforge/core/query/operators.py
"""Immutable verb tables shared by the parser and the compiler."""

from types import MappingProxyType
from typing import Callable, Sequence

from sqlalchemy import func, not_, or_
from sqlalchemy.sql.elements import ColumnElement

# Filter slots, in the order their clauses are emitted for one field.
SLOTS = (
    "eq", "ne", "gt", "gte", "lt", "lte",
    "like", "not_like", "inc_any",
    "between", "not_between",
    "in_", "not_in",
    "regex", "ts", "is_null",
)

# Maps `?field[verb]=value` tokens to filter slots.
# For example, `?age[gte]=18` fills the `gte` slot of the `age` filter.
BRACKET_VERBS = MappingProxyType({
    "eq": "eq",
    "ne": "ne",
    "neq": "ne",
    "gt": "gt",
    "gte": "gte",
    "lt": "lt",
    "lte": "lte",
    "like": "like",
    "nlike": "not_like",
    "notlike": "not_like",
    "incany": "inc_any",
    "between": "between",
    "nbetween": "not_between",
    "notbetween": "not_between",
    "in": "in_",
    "nin": "not_in",
    "notin": "not_in",
    "regex": "regex",
    "ts": "ts",
    "q": "ts",
    "isnull": "is_null",
})

# Maps `{"field_suffix": value}` keys of the JSON filter parameter to slots.
SUFFIX_VERBS = MappingProxyType({
    "_eq": "eq",
    "_eq_any": "in_",
    "_neq": "ne",
    "_neq_any": "not_in",
    "_gt": "gt",
    "_gte": "gte",
    "_lt": "lt",
    "_lte": "lte",
    "_inc_any": "inc_any",
    "_like": "inc_any",
    "_is_null": "is_null",
    "_regex": "regex",
    "_between": "between",
    "_not_between": "not_between",
    "_q": "ts",
})

# Longest first so `_not_between` wins over `_between`.
SUFFIXES_BY_LENGTH = tuple(sorted(SUFFIX_VERBS, key=len, reverse=True))

# Slots whose bracket-form values may be comma-separated lists.
LIST_SLOTS = frozenset({"in_", "not_in", "between", "not_between", "inc_any"})

# Slots whose operands are matched as text and never coerced to the column type.
TEXT_SLOTS = frozenset({"like", "not_like", "inc_any", "regex", "ts"})


def _pattern(value) -> str:
    return f"%{value}%"


def _inc_any(col, values: Sequence) -> ColumnElement:
    return or_(*[col.like(_pattern(v)) for v in values])


# Slot -> expression builder taking the resolved column and the clause operands.
EXPRESSIONS: "MappingProxyType[str, Callable[..., ColumnElement]]" = MappingProxyType({
    "eq": lambda col, v: col == v[0],
    "ne": lambda col, v: col != v[0],
    "gt": lambda col, v: col > v[0],
    "gte": lambda col, v: col >= v[0],
    "lt": lambda col, v: col < v[0],
    "lte": lambda col, v: col <= v[0],
    "like": lambda col, v: col.like(_pattern(v[0])),
    "not_like": lambda col, v: col.not_like(_pattern(v[0])),
    "inc_any": _inc_any,
    "between": lambda col, v: col.between(v[0], v[1]),
    "not_between": lambda col, v: not_(col.between(v[0], v[1])),
    "in_": lambda col, v: col.in_(list(v)),
    "not_in": lambda col, v: col.not_in(list(v)),
    # inline flag, SQLite drops the flags argument
    "regex": lambda col, v: col.regexp_match(f"(?i){v[0]}"),
    "ts": lambda col, v: col.op("@@")(func.to_tsquery(v[0])),
    "is_null": lambda col, v: col.is_(None),
})


def split_suffix(key: str) -> tuple:
    """Split `field_verb` into (field, slot); unknown suffixes mean equals on the whole key."""
    for suffix in SUFFIXES_BY_LENGTH:
        if key.endswith(suffix) and len(key) > len(suffix):
            return key[: -len(suffix)], SUFFIX_VERBS[suffix]
    return key, "eq"
