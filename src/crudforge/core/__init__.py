"""Core utilities: configuration, logging, errors and the query compiler."""

from .config import ForgeConfig, QueryProfile
from .errors import NotDeletable, NotFound, ParseError, RestError, StoreError
from .logging import Logger, color_palette, log

__all__ = [
    "ForgeConfig",
    "QueryProfile",
    "NotDeletable",
    "NotFound",
    "ParseError",
    "RestError",
    "StoreError",
    "Logger",
    "color_palette",
    "log",
]
