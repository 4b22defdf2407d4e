"""Contracts implemented by category plugins."""

from __future__ import annotations

from typing import Any, Mapping, MutableMapping, Protocol, runtime_checkable

NAME_KEY = "_name"
"""Reserved profile key holding the resolved profile name."""

ALIASES_KEY = ""
"""Reserved key of a category slot holding its alias map."""

COMMON_KEY = "__common__"
"""Reserved key of a category slot (and raw section name) holding the common set."""

RESERVED_KEYS = frozenset({ALIASES_KEY, COMMON_KEY})

Profile = dict[str, Any]
CategoryProfiles = dict[str, Any]
ConsolidatedProfiles = MutableMapping[str, CategoryProfiles]


@runtime_checkable
class ProfilePlugin(Protocol):
    """Accumulates raw sections of one category and emits normalized profiles."""

    def set_aliases(self, aliases: Mapping[str, str]) -> None: ...

    def set_common(self, common: Mapping[str, Any]) -> None: ...

    def add_profile(self, name: str, profile: Mapping[str, Any]) -> None: ...

    def add_profiles(self, profiles: Mapping[str, Mapping[str, Any]]) -> None: ...

    def get_profiles(self, profiles: ConsolidatedProfiles) -> None:
        """Write the category's normalized profiles into ``profiles``."""


@runtime_checkable
class ProfileInstancePlugin(Protocol):
    """Optional capability: build and tear down pooled connectors."""

    def get_instance_for_pool(self, name: str, profile: Profile) -> Any | None:
        """Return a connector for the profile, or ``None`` if unsupported."""

    def close_instance_for_pool(self, name: str, instance: Any) -> None:
        """Release resources held by a connector built by this plugin."""


__all__ = [
    "ALIASES_KEY",
    "COMMON_KEY",
    "CategoryProfiles",
    "ConsolidatedProfiles",
    "NAME_KEY",
    "Profile",
    "ProfileInstancePlugin",
    "ProfilePlugin",
    "RESERVED_KEYS",
]
