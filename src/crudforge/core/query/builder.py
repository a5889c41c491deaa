# src/crudforge/core/query/builder.py
"""Compiles parsed filters into composable SQLAlchemy clauses."""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Iterator, List, Tuple

from sqlalchemy.sql import Select
from sqlalchemy.sql.elements import ColumnElement

from ..errors import ParseError
from .filters import Filter, FilterSet
from .operators import EXPRESSIONS, TEXT_SLOTS

TRUE_VALUES = {"1", "true", "yes", "y", "on"}
FALSE_VALUES = {"0", "false", "no", "n", "off"}


def _bad_value(column_key: str, kind: str) -> ParseError:
    return ParseError(f'invalid filter value for field "{column_key}" ({kind})')


def _python_type(column):
    try:
        return column.type.python_type
    except (AttributeError, NotImplementedError):
        return None


def coerce_operand(column, value: str) -> Any:
    """Convert a query-string operand to the Python type of its column."""
    python_type = _python_type(column)
    key = getattr(column, "key", str(column))
    text = value.strip()
    if python_type is bool:
        if text.lower() in TRUE_VALUES:
            return True
        if text.lower() in FALSE_VALUES:
            return False
        raise _bad_value(key, "boolean")
    if python_type in (int, float, Decimal):
        try:
            if python_type is int:
                return int(text)
            if python_type is float:
                return float(text.replace(",", "."))
            return Decimal(text.replace(",", "."))
        except (ValueError, InvalidOperation):
            raise _bad_value(key, "number")
    if python_type is datetime:
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            raise _bad_value(key, "datetime")
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    if python_type is date:
        try:
            if "T" in text or " " in text:
                return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
            return date.fromisoformat(text)
        except ValueError:
            raise _bad_value(key, "date")
    return value


@dataclass(frozen=True)
class Clause:
    """
    One predicate on one column.

    A clause is self-contained: `apply` adds it to any select statement, so
    a list of clauses can be applied in any order and combines with AND.
    """

    field: str
    verb: str
    operands: Tuple[str, ...] = ()
    column: str = ""
    descriptor: Any = field(default=None, compare=False, repr=False)

    def expression(self) -> ColumnElement:
        col = self.descriptor.column(self.column or self.field)
        operands = self.operands
        if self.verb not in TEXT_SLOTS:
            operands = tuple(coerce_operand(col, v) for v in operands)
        return EXPRESSIONS[self.verb](col, operands)

    def apply(self, stmt: Select) -> Select:
        return stmt.where(self.expression())


class ConditionCompiler:
    """Turns filters into clauses for one model."""

    def __init__(self, descriptor):
        self.descriptor = descriptor

    def compile(self, filters: FilterSet) -> Tuple[Clause, ...]:
        clauses: List[Clause] = []
        for name, flt in filters.items():
            clauses.extend(self.compile_filter(name, flt))
        return tuple(clauses)

    def compile_filter(self, name: str, flt: Filter) -> Iterator[Clause]:
        for verb, operands in flt.slots():
            for chunk in self._operand_groups(verb, operands):
                yield Clause(
                    field=name,
                    verb=verb,
                    operands=chunk,
                    column=self._column_for(name, verb),
                    descriptor=self.descriptor,
                )

    def apply(self, stmt: Select, filters: FilterSet) -> Select:
        for clause in self.compile(filters):
            stmt = clause.apply(stmt)
        return stmt

    def _column_for(self, name: str, verb: str) -> str:
        if verb == "ts":
            return self.descriptor.full_text_column(name)
        return name

    @staticmethod
    def _operand_groups(verb: str, operands: Tuple[str, ...]) -> Iterator[Tuple[str, ...]]:
        if verb in ("between", "not_between"):
            # consecutive pairs; an odd trailing operand is dropped
            for i in range(0, len(operands) - 1, 2):
                yield operands[i: i + 2]
        elif verb in ("in_", "not_in", "inc_any"):
            yield operands
        elif verb == "is_null":
            yield ()
        else:
            # single-operand verbs only ever look at the first value
            yield operands[:1]
