"""Default category plugin."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from .types import ALIASES_KEY, COMMON_KEY, NAME_KEY, ConsolidatedProfiles, Profile

LOG = logging.getLogger(__name__)


class CategoryPlugin:
    """Pass-through plugin merging the common set into every profile.

    Subclasses customise normalization by overriding :meth:`consolidate`.
    A plugin accumulates one compilation pass at a time: :meth:`get_profiles`
    emits the category and then forgets what it accumulated.
    """

    def __init__(self, category: str) -> None:
        self.category = category
        self._aliases: dict[str, str] = {}
        self._common: dict[str, Any] = {}
        self._profiles: dict[str, dict[str, Any]] = {}

    def set_aliases(self, aliases: Mapping[str, str]) -> None:
        self._aliases = {str(alias): str(target) for alias, target in aliases.items()}

    def set_common(self, common: Mapping[str, Any]) -> None:
        self._common = dict(common)

    def add_profile(self, name: str, profile: Mapping[str, Any]) -> None:
        self._profiles[name] = dict(profile)

    def add_profiles(self, profiles: Mapping[str, Mapping[str, Any]]) -> None:
        for name, profile in profiles.items():
            self.add_profile(name, profile)

    def get_profiles(self, profiles: ConsolidatedProfiles) -> None:
        slot: dict[str, Any] = {}
        for name, params in self._profiles.items():
            merged = {**self._common, **params}
            merged.pop(NAME_KEY, None)
            normalized = self.consolidate(merged)
            normalized[NAME_KEY] = name
            slot[name] = normalized
        for alias, target in self._aliases.items():
            target = self._follow(target)
            if target not in slot:
                LOG.debug(
                    "Dropping alias with unknown target",
                    extra={"category": self.category, "alias": alias, "target": target},
                )
                continue
            slot[alias] = dict(slot[target])
        if self._aliases:
            slot[ALIASES_KEY] = dict(self._aliases)
        if self._common:
            slot[COMMON_KEY] = dict(self._common)
        profiles[self.category] = slot
        self._reset()

    def consolidate(self, profile: Profile) -> Profile:
        """Normalize one profile after the common set has been merged in."""

        return profile

    def _follow(self, target: str) -> str:
        # Alias chains end at a real profile name; cycles end where they loop.
        seen: set[str] = set()
        while target not in self._profiles and target in self._aliases and target not in seen:
            seen.add(target)
            target = self._aliases[target]
        return target

    def _reset(self) -> None:
        self._aliases = {}
        self._common = {}
        self._profiles = {}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.category!r})"


__all__ = ["CategoryPlugin"]
