# src/crudforge/core/query/ordering.py
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.sql import Select


@dataclass(frozen=True)
class Order:
    """Sort key; a column of None sorts by the model's primary key."""

    column: Optional[str]
    desc: bool = False

    def apply(self, stmt: Select, descriptor) -> Select:
        if self.column is None:
            col = descriptor.pk_column
        else:
            col = descriptor.column(self.column)
        return stmt.order_by(col.desc() if self.desc else col.asc())


DEFAULT_ORDERS = (Order(None),)
