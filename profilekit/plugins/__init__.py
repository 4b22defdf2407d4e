"""Category plugin exports."""

from .base import CategoryPlugin
from .resolver import ENTRY_POINT_GROUP, PluginResolver
from .types import (
    ALIASES_KEY,
    COMMON_KEY,
    NAME_KEY,
    ConsolidatedProfiles,
    Profile,
    ProfileInstancePlugin,
    ProfilePlugin,
)

__all__ = [
    "ALIASES_KEY",
    "COMMON_KEY",
    "CategoryPlugin",
    "ConsolidatedProfiles",
    "ENTRY_POINT_GROUP",
    "NAME_KEY",
    "PluginResolver",
    "Profile",
    "ProfileInstancePlugin",
    "ProfilePlugin",
]
