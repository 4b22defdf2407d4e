"""Category plugin resolution."""

from __future__ import annotations

import importlib.metadata as metadata
import inspect
import logging
from typing import Any, Callable, Mapping

from ..errors import PluginResolutionError
from .base import CategoryPlugin
from .types import ProfilePlugin

LOG = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "profilekit.plugins"

PluginSpec = ProfilePlugin | type | str
PluginFactory = Callable[[str], ProfilePlugin]


class PluginResolver:
    """Maps category names to plugin instances.

    ``plugins`` is either a mapping of category to a plugin instance, a plugin
    class (instantiated with the category name) or a ``"module:attr"`` import
    string, or a callable taking the category name and returning a plugin.
    Categories that are not mapped are looked up among the entry points of
    ``entry_point_group`` (entry point name = category) and otherwise get a
    :class:`CategoryPlugin`. Each category resolves once per resolver.
    """

    def __init__(
        self,
        plugins: Mapping[str, PluginSpec] | PluginFactory | None = None,
        *,
        entry_point_group: str | None = ENTRY_POINT_GROUP,
    ) -> None:
        self._factory: PluginFactory | None = None
        self._specs: dict[str, PluginSpec] = {}
        if callable(plugins) and not isinstance(plugins, Mapping):
            self._factory = plugins
        elif plugins is not None:
            self._specs = dict(plugins)
        self._entry_point_group = entry_point_group
        self._resolved: dict[str, ProfilePlugin] = {}

    def resolve(self, category: str) -> ProfilePlugin:
        """Return the plugin handling ``category``."""

        plugin = self._resolved.get(category)
        if plugin is None:
            plugin = self._build(category)
            self._resolved[category] = plugin
        return plugin

    __call__ = resolve

    @property
    def resolved(self) -> Mapping[str, ProfilePlugin]:
        """Plugins resolved so far, by category."""

        return dict(self._resolved)

    def _build(self, category: str) -> ProfilePlugin:
        if self._factory is not None:
            return self._ensure_plugin(category, self._factory(category))
        spec = self._specs.get(category)
        if spec is None:
            spec = self._discover(category)
        if spec is None:
            return CategoryPlugin(category)
        if isinstance(spec, str):
            spec = self._import(category, spec)
        return self._ensure_plugin(category, self._instantiate(category, spec))

    def _discover(self, category: str) -> Any | None:
        if not self._entry_point_group:
            return None
        eps = metadata.entry_points()
        for entry_point in eps.select(group=self._entry_point_group, name=category):
            LOG.debug(
                "Loading category plugin from entry point",
                extra={"category": category, "entry_point": entry_point.value},
            )
            return self._load(category, entry_point)
        return None

    def _import(self, category: str, value: str) -> Any:
        entry_point = metadata.EntryPoint(
            name=category,
            value=value,
            group=self._entry_point_group or ENTRY_POINT_GROUP,
        )
        return self._load(category, entry_point)

    def _load(self, category: str, entry_point: metadata.EntryPoint) -> Any:
        try:
            return entry_point.load()
        except (ImportError, AttributeError, ValueError) as exc:
            LOG.exception("Plugin import failed", extra={"category": category})
            raise PluginResolutionError(
                f"Failed to load plugin '{entry_point.value}' for category '{category}'"
            ) from exc

    @staticmethod
    def _instantiate(category: str, spec: Any) -> Any:
        if inspect.isclass(spec):
            return spec(category)
        return spec

    @staticmethod
    def _ensure_plugin(category: str, plugin: Any) -> ProfilePlugin:
        if not isinstance(plugin, ProfilePlugin):
            raise PluginResolutionError(
                f"Plugin for category '{category}' does not implement the profile plugin contract"
            )
        return plugin


__all__ = ["ENTRY_POINT_GROUP", "PluginResolver"]
