# src/crudforge/core/query/filters.py
"""Per-field filter value objects."""

from dataclasses import dataclass, fields
from typing import Dict, Iterator, Mapping, Sequence, Tuple

from ..errors import ParseError
from .operators import SLOTS

Operands = Tuple[str, ...]


@dataclass(frozen=True)
class Filter:
    """
    Verb slots for a single field.

    Each slot holds zero or more string operands; an empty slot contributes
    nothing when the filter is compiled.
    """

    eq: Operands = ()
    ne: Operands = ()
    gt: Operands = ()
    gte: Operands = ()
    lt: Operands = ()
    lte: Operands = ()
    like: Operands = ()
    not_like: Operands = ()
    inc_any: Operands = ()
    between: Operands = ()
    not_between: Operands = ()
    in_: Operands = ()
    not_in: Operands = ()
    regex: Operands = ()
    ts: Operands = ()
    is_null: Operands = ()

    @classmethod
    def from_slots(cls, slots: Mapping[str, Sequence[str]]) -> "Filter":
        """Build a filter from a slot name -> operands mapping."""
        values: Dict[str, Operands] = {}
        for slot, operands in slots.items():
            if slot not in SLOTS:
                raise ParseError(f"unknown filter verb: {slot}")
            values[slot] = values.get(slot, ()) + tuple(operands)
        return cls(**values)

    def slots(self) -> Iterator[Tuple[str, Operands]]:
        """Yield the non-empty slots in emission order."""
        for f in fields(self):
            operands = getattr(self, f.name)
            if operands:
                yield f.name, operands

    def is_empty(self) -> bool:
        return next(self.slots(), None) is None


class FilterSet(Mapping[str, Filter]):
    """Read-only mapping of field name to Filter."""

    def __init__(self, filters: Mapping[str, Filter] | None = None):
        self._filters: Dict[str, Filter] = dict(filters or {})

    def __getitem__(self, field: str) -> Filter:
        return self._filters[field]

    def __iter__(self):
        return iter(self._filters)

    def __len__(self) -> int:
        return len(self._filters)

    def __repr__(self) -> str:
        return f"FilterSet({self._filters!r})"

    @classmethod
    def from_slots(cls, by_field: Mapping[str, Mapping[str, Sequence[str]]]) -> "FilterSet":
        return cls({field: Filter.from_slots(slots) for field, slots in by_field.items()})
