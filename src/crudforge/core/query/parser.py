# src/crudforge/core/query/parser.py
"""
Query-string parsing.

Two conventions are supported, selected per deployment:

* SIMPLE:  ?sort=["title","ASC"]&range=[0, 24]&filter={"title_like":"bar"}&embed=["tags"]
* BRACKET: ?page=2&limit=10&order=title&desc=true&title[like]=bar&id[in]=1,2
"""

import json
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from rich.markup import escape

from ..config import QueryProfile
from ..errors import ParseError
from ..logging import log
from .conditions import FindConditions
from .filters import FilterSet
from .operators import BRACKET_VERBS, LIST_SLOTS, split_suffix
from .ordering import DEFAULT_ORDERS, Order
from .pagination import Page, Pagination, Range

RANGE_PATTERN = re.compile(r"^\[(\d+)[-,]\s*(\d+)]$")
FILTER_KEY_PATTERN = re.compile(r"^([a-zA-Z]\w*)(\[(\w+)\])?$")

RESERVED_PARAMS = frozenset({"page", "limit", "range", "sort", "order", "desc", "embed", "filter"})
DEFAULT_RANGE = Range(0, 25)
INT32_MAX = 2 ** 31 - 1

MultiMap = Dict[str, List[str]]


def to_multimap(params: Any) -> MultiMap:
    """Normalize Starlette QueryParams, dicts of lists or pair sequences."""
    if hasattr(params, "multi_items"):
        items: Iterable[Tuple[str, Any]] = params.multi_items()
    elif isinstance(params, Mapping):
        items = [
            (key, value)
            for key, values in params.items()
            for value in (values if isinstance(values, (list, tuple)) else [values])
        ]
    else:
        items = params
    result: MultiMap = {}
    for key, value in items:
        result.setdefault(key, []).append(str(value))
    return result


def _first(params: MultiMap, key: str) -> Optional[str]:
    values = params.get(key)
    return values[0] if values else None


def _parse_int(name: str, raw: str, upper: int = INT32_MAX) -> int:
    try:
        value = int(raw.strip())
    except ValueError:
        raise ParseError(f"{name} must be an integer, got {raw!r}")
    if abs(value) > upper:
        raise ParseError(f"{name} out of range: {raw}")
    return value


def _parse_bool(name: str, raw: str) -> bool:
    text = raw.strip().lower()
    if text in ("1", "true", "yes", "y"):
        return True
    if text in ("0", "false", "no", "n", ""):
        return False
    raise ParseError(f"{name} must be a boolean, got {raw!r}")


def _loads(name: str, raw: str) -> Any:
    try:
        return json.loads(raw)
    except ValueError as e:
        raise ParseError(f"{name}: invalid JSON ({e})")


def _as_operands(value: Any) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, (list, tuple)):
        return tuple(op for item in value for op in _as_operands(item))
    if isinstance(value, bool):
        return ("true" if value else "false",)
    if isinstance(value, dict):
        return (json.dumps(value),)
    return (str(value),)


# ? Shared parameters ------------------------------------------------------------------------------


def parse_embed(raw: Optional[str]) -> Tuple[str, ...]:
    if not raw:
        return ()
    embed = _loads("embed", raw)
    if not isinstance(embed, list) or not all(isinstance(e, str) for e in embed):
        raise ParseError("embed must be a JSON array of relation names")
    return tuple(embed)


def parse_range(raw: Optional[str]) -> Optional[Range]:
    """`[start-end]` or `[start,end]`; None when absent or malformed."""
    match = RANGE_PATTERN.match((raw or "").strip())
    if not match:
        return None
    return Range(_parse_int("range start", match.group(1)), _parse_int("range end", match.group(2)))


def parse_sort(raw: Optional[str]) -> Tuple[Order, ...]:
    if not raw:
        return DEFAULT_ORDERS
    sort = _loads("sort", raw)
    if not isinstance(sort, list) or not all(isinstance(s, str) for s in sort):
        raise ParseError("sort must be a JSON array of strings")
    if len(sort) % 2 != 0:
        raise ParseError("sort must be pairs")
    return tuple(
        Order(column=sort[i], desc=sort[i + 1].lower() == "desc")
        for i in range(0, len(sort), 2)
    )


def parse_order_pairs(order: List[str], desc: List[str]) -> Tuple[Order, ...]:
    if desc and len(desc) != len(order):
        raise ParseError(f"desc count ({len(desc)}) must match order count ({len(order)})")
    if not order:
        return DEFAULT_ORDERS
    flags = [_parse_bool("desc", d) for d in desc] or [False] * len(order)
    return tuple(Order(column=col, desc=flag) for col, flag in zip(order, flags))


def parse_filter_json(raw: Optional[str]) -> FilterSet:
    """
    Suffix-convention filter object, e.g. {"age_gt": 18, "name_like": ["a", "b"]}.

    Malformed JSON yields no filters instead of an error; a warning is logged
    so the dropped filter is not silent.
    """
    if not raw:
        return FilterSet()
    try:
        data = json.loads(raw)
    except ValueError as e:
        log.warn(escape(f"ignoring malformed filter parameter {raw!r}: {e}"))
        return FilterSet()
    if not isinstance(data, dict):
        log.warn(escape(f"ignoring filter parameter that is not a JSON object: {raw!r}"))
        return FilterSet()

    by_field: Dict[str, Dict[str, Tuple[str, ...]]] = {}
    for key, value in data.items():
        name, slot = split_suffix(key)
        operands = _as_operands(value)
        if value is None and slot == "eq":
            slot = "is_null"
        if slot == "is_null":
            # the value is irrelevant, the key alone asks for IS NULL
            operands = ("true",)
        slots = by_field.setdefault(name, {})
        slots[slot] = slots.get(slot, ()) + operands
    return FilterSet.from_slots(by_field)


def parse_bracket_filters(params: MultiMap) -> FilterSet:
    by_field: Dict[str, Dict[str, Tuple[str, ...]]] = {}
    for key, values in params.items():
        if key in RESERVED_PARAMS:
            continue
        match = FILTER_KEY_PATTERN.match(key)
        if not match:
            continue
        name, verb = match.group(1), (match.group(3) or "eq").lower()
        slot = BRACKET_VERBS.get(verb)
        if slot is None:
            raise ParseError(f"unknown filter verb: {verb}")
        operands = tuple(values)
        if slot in LIST_SLOTS:
            operands = tuple(part for v in values for part in v.split(",") if part != "")
        slots = by_field.setdefault(name, {})
        slots[slot] = slots.get(slot, ()) + operands
    return FilterSet.from_slots(by_field)


def parse_page(params: MultiMap) -> Pagination:
    page, limit = _first(params, "page"), _first(params, "limit")
    if page is None and limit is None:
        window = parse_range(_first(params, "range"))
        if window is not None:
            return window
    return Page(
        page=_parse_int("page", page) if page is not None else 0,
        size=_parse_int("limit", limit) if limit is not None else 0,
    )


# ? Profiles -------------------------------------------------------------------------------------


def parse_simple(params: Any) -> FindConditions:
    mm = to_multimap(params)
    return FindConditions(
        filters=parse_filter_json(_first(mm, "filter")),
        orders=parse_sort(_first(mm, "sort")),
        pagination=parse_range(_first(mm, "range")) or DEFAULT_RANGE,
        preloads=parse_embed(_first(mm, "embed")),
    )


def parse_bracket(params: Any) -> FindConditions:
    mm = to_multimap(params)
    return FindConditions(
        filters=parse_bracket_filters(mm),
        orders=parse_order_pairs(mm.get("order", []), mm.get("desc", [])),
        pagination=parse_page(mm),
        preloads=parse_embed(_first(mm, "embed")),
    )


_PROFILE_PARSERS = {
    QueryProfile.SIMPLE: parse_simple,
    QueryProfile.BRACKET: parse_bracket,
}


def parse_query(params: Any, profile: QueryProfile = QueryProfile.SIMPLE) -> FindConditions:
    """Parse raw query parameters into FindConditions for the given profile."""
    return _PROFILE_PARSERS[QueryProfile(profile)](params)
