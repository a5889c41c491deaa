# src/crudforge/core/query/conditions.py
from dataclasses import dataclass, field
from typing import Tuple

from sqlalchemy.sql import Select

from .builder import ConditionCompiler
from .filters import FilterSet
from .ordering import DEFAULT_ORDERS, Order
from .pagination import Pagination, Range


@dataclass(frozen=True)
class FindConditions:
    """Everything one list request asks for: filters, sort, window, embeds."""

    filters: FilterSet = field(default_factory=FilterSet)
    orders: Tuple[Order, ...] = DEFAULT_ORDERS
    pagination: Pagination = field(default_factory=lambda: Range(0, 25))
    preloads: Tuple[str, ...] = ()

    def apply_filters(self, stmt: Select, descriptor) -> Select:
        return ConditionCompiler(descriptor).apply(stmt, self.filters)

    def apply(self, stmt: Select, descriptor) -> Select:
        """Filters, then orders, then pagination, then eager loads."""
        stmt = self.apply_filters(stmt, descriptor)
        for order in self.orders:
            stmt = order.apply(stmt, descriptor)
        stmt = self.pagination.apply(stmt)
        return descriptor.eager_load(stmt, self.preloads)
