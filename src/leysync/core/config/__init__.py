"""
Configuration models and loading.

This module provides Pydantic models for leysync configuration
with multi-layer merging: defaults < user < project < env vars.
"""

from .loader import (
    get_project_config_path,
    get_user_config_path,
    get_xdg_config_home,
    load_config,
)
from .models import (
    CacheConfig,
    ContributeConfig,
    FeatureToggles,
    IgnoreFileConfig,
    LeySyncConfig,
    RepoConfig,
    RepositoryConfig,
    UpdateConfig,
)

__all__ = [
    # Models
    "CacheConfig",
    "ContributeConfig",
    "FeatureToggles",
    "IgnoreFileConfig",
    "LeySyncConfig",
    "RepoConfig",
    "RepositoryConfig",
    "UpdateConfig",
    # Loader functions
    "get_project_config_path",
    "get_user_config_path",
    "get_xdg_config_home",
    "load_config",
]
