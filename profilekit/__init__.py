"""Profile resolution and connector pooling for configuration-driven factories."""

from __future__ import annotations

__version__ = "0.1.0"

from .compiler import ProfileCompiler
from .errors import (
    AliasTargetNotFoundError,
    ConnectorError,
    InvalidProfileNameError,
    PluginResolutionError,
    ProfileError,
    ProfileNotFoundError,
    SourceError,
)
from .plugins import CategoryPlugin, PluginResolver, ProfileInstancePlugin, ProfilePlugin
from .registry import ProfileRegistry

__all__ = [
    "AliasTargetNotFoundError",
    "CategoryPlugin",
    "ConnectorError",
    "InvalidProfileNameError",
    "PluginResolutionError",
    "PluginResolver",
    "ProfileCompiler",
    "ProfileError",
    "ProfileInstancePlugin",
    "ProfileNotFoundError",
    "ProfilePlugin",
    "ProfileRegistry",
    "SourceError",
    "__version__",
]
