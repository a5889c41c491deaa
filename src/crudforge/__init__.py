"""
crudforge: REST resources for SQLAlchemy models on FastAPI.
"""

from .api import ResourceController, ResourceProvider
from .core import ForgeConfig, QueryProfile, log
from .core.errors import NotDeletable, NotFound, ParseError, RestError, StoreError
from .core.query import FindConditions, parse_query
from .db import (
    Capability,
    DbClient,
    DeletionPolicy,
    HardDeleteModel,
    ModelDescriptor,
    PermanentModel,
    SoftDeleteModel,
    describe,
)
from .forge import ApiForge

__version__ = "0.1.0"

__all__ = [
    "ApiForge",
    "Capability",
    "DbClient",
    "DeletionPolicy",
    "FindConditions",
    "ForgeConfig",
    "HardDeleteModel",
    "ModelDescriptor",
    "NotDeletable",
    "NotFound",
    "ParseError",
    "PermanentModel",
    "QueryProfile",
    "ResourceController",
    "ResourceProvider",
    "RestError",
    "SoftDeleteModel",
    "StoreError",
    "describe",
    "log",
    "parse_query",
]
