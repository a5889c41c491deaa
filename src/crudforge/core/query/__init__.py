"""Query-string parsing and condition compilation."""

from .builder import Clause, ConditionCompiler
from .conditions import FindConditions
from .filters import Filter, FilterSet
from .ordering import Order
from .pagination import Page, Pagination, Range, pagination_header
from .parser import parse_bracket, parse_query, parse_simple

__all__ = [
    "Clause",
    "ConditionCompiler",
    "FindConditions",
    "Filter",
    "FilterSet",
    "Order",
    "Page",
    "Pagination",
    "Range",
    "pagination_header",
    "parse_bracket",
    "parse_query",
    "parse_simple",
]
