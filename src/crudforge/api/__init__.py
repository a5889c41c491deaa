"""API generation components."""

from .middleware import LogHook
from .provider import ResourceProvider
from .routers import ResourceController
from .schemas import create_input_model, create_output_model, record_to_dict

__all__ = [
    "LogHook",
    "ResourceProvider",
    "ResourceController",
    "create_input_model",
    "create_output_model",
    "record_to_dict",
]
