"""Compilation of raw declarative sections into consolidated profiles."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping

from .plugins.resolver import PluginResolver
from .plugins.types import COMMON_KEY, ProfilePlugin
from .registry import ProfileRegistry
from .sources import load_source, read_cache, write_cache

LOG = logging.getLogger(__name__)

SEPARATOR = ":"


class ProfileCompiler:
    """Drives category plugins over raw sections.

    Raw sections are keyed ``category`` (alias map), ``category:__common__``
    (parameters shared by the category) or ``category:profile``.
    """

    def __init__(self, plugins: PluginResolver | None = None) -> None:
        self._plugins = plugins or PluginResolver()

    @property
    def plugins(self) -> PluginResolver:
        return self._plugins

    def compile(self, sources: Mapping[str, Any]) -> dict[str, dict[str, Any]]:
        """Return ``category -> profile name -> normalized profile``."""

        touched: dict[int, ProfilePlugin] = {}
        for key in sorted(sources, key=_section_order):
            section = sources[key]
            if not isinstance(section, Mapping):
                LOG.debug("Skipping non-section entry", extra={"section": key})
                continue
            if SEPARATOR not in key:
                plugin = self._plugins.resolve(key)
                plugin.set_aliases(section)
            else:
                category, name = key.split(SEPARATOR, 1)
                if not name:
                    LOG.debug("Skipping section without profile name", extra={"section": key})
                    continue
                plugin = self._plugins.resolve(category)
                if name == COMMON_KEY:
                    plugin.set_common(section)
                else:
                    plugin.add_profile(name, section)
            touched.setdefault(id(plugin), plugin)

        profiles: dict[str, dict[str, Any]] = {}
        for plugin in touched.values():
            plugin.get_profiles(profiles)
        LOG.info("Compiled profiles", extra={"categories": sorted(profiles)})
        return profiles

    def read_from_mapping(self, sources: Mapping[str, Any]) -> ProfileRegistry:
        """Compile ``sources`` and wrap the result in a registry."""

        return ProfileRegistry(self.compile(sources), self._plugins)

    def read_from_file(self, source: Path | str, cache: Path | str | None = None) -> ProfileRegistry:
        """Build a registry from a profiles file, going through ``cache`` when fresh.

        The cache is used when it is at least as recent as the source file;
        otherwise the source is recompiled and the cache rewritten.
        """

        source_path = Path(source)
        cache_path = Path(cache) if cache is not None else None
        if cache_path is not None and _is_fresh(cache_path, source_path):
            LOG.debug("Loading profiles from cache", extra={"path": str(cache_path)})
            profiles = read_cache(cache_path)
        else:
            profiles = self.compile(load_source(source_path))
            if cache_path is not None:
                write_cache(cache_path, profiles)
        return ProfileRegistry(profiles, self._plugins)


def _section_order(key: str) -> tuple[str, int, str]:
    # Alias sections, then common sections, then profiles, per category.
    if SEPARATOR not in key:
        return key, 0, ""
    category, name = key.split(SEPARATOR, 1)
    return category, 1 if name == COMMON_KEY else 2, name


def _is_fresh(cache: Path, source: Path) -> bool:
    if not cache.exists():
        return False
    try:
        return source.stat().st_mtime <= cache.stat().st_mtime
    except OSError:
        return False


__all__ = ["ProfileCompiler", "SEPARATOR"]
