# src/crudforge/core/config.py
"""Configuration for the generated API."""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class QueryProfile(str, Enum):
    """Query-string convention understood by the list endpoints."""

    # ?sort=["title","ASC"]&range=[0, 24]&filter={"title":"bar"}
    SIMPLE = "simple"
    # ?page=2&limit=10&order=title&desc=true&title[like]=bar
    BRACKET = "bracket"


class ForgeConfig(BaseModel):
    """Project level settings for ApiForge."""

    project_name: str = "crudforge"
    version: str = "0.1.0"
    description: str = ""
    author: Optional[str] = None
    email: Optional[str] = None
    license_info: Optional[Dict[str, str]] = None
    debug_mode: bool = False
    query_profile: QueryProfile = QueryProfile.SIMPLE
    batch_size: int = Field(default=100, ge=1)
    log_skip_paths: List[str] = Field(default_factory=list)
