"""Database interaction components."""

from .client import DbClient
from .models import (
    Capability,
    DeletionPolicy,
    HardDeleteModel,
    ModelDescriptor,
    PermanentModel,
    SoftDeleteModel,
    describe,
)

__all__ = [
    "DbClient",
    "Capability",
    "DeletionPolicy",
    "HardDeleteModel",
    "ModelDescriptor",
    "PermanentModel",
    "SoftDeleteModel",
    "describe",
]
