"""Profile registry: resolution of named profiles and the connector pool."""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

from .errors import AliasTargetNotFoundError, InvalidProfileNameError, ProfileNotFoundError
from .plugins.resolver import PluginResolver
from .plugins.types import (
    ALIASES_KEY,
    COMMON_KEY,
    NAME_KEY,
    RESERVED_KEYS,
    Profile,
    ProfileInstancePlugin,
)

LOG = logging.getLogger(__name__)

DEFAULT_PROFILE = "default"

ConnectorFactory = Callable[[Profile], Any]


class ProfileRegistry:
    """Resolves profiles by category and name, and pools their connectors.

    ``profiles`` is the consolidated mapping produced by
    :meth:`profilekit.compiler.ProfileCompiler.compile`. Connectors are pooled
    per ``(category, resolved name)``; the resolved name is the ``_name`` of a
    profile, so an alias and its target share one connector.

    The registry is not thread-safe; guard it with a single lock if it has to
    be shared.
    """

    def __init__(
        self,
        profiles: Mapping[str, Mapping[str, Any]] | None = None,
        plugins: PluginResolver | None = None,
    ) -> None:
        self._profiles: dict[str, dict[str, Any]] = {
            category: dict(slot)
            for category, slot in (profiles or {}).items()
            if isinstance(slot, Mapping)
        }
        self._plugins = plugins or PluginResolver()
        self._pool: dict[str, dict[str, Any]] = {}

    @property
    def plugins(self) -> PluginResolver:
        return self._plugins

    @property
    def profiles(self) -> dict[str, dict[str, Any]]:
        """Copy of the consolidated mapping, suitable for caching."""

        return {
            category: {key: dict(value) for key, value in slot.items()}
            for category, slot in self._profiles.items()
        }

    def categories(self) -> tuple[str, ...]:
        return tuple(sorted(self._profiles))

    def profile_names(self, category: str) -> tuple[str, ...]:
        """Names resolvable in ``category``, aliases included."""

        slot = self._profiles.get(category, {})
        return tuple(sorted(key for key in slot if key not in RESERVED_KEYS))

    def has_profile(self, category: str, name: str) -> bool:
        return self._lookup(category, name or DEFAULT_PROFILE) is not None

    def __contains__(self, category: object) -> bool:
        return category in self._profiles

    def get(self, category: str, name: str = "", require_exact_match: bool = False) -> Profile:
        """Return the profile ``name`` of ``category``.

        An empty name means ``"default"``. Unknown names fall back to the
        default profile unless ``require_exact_match`` is set.

        Raises:
            ProfileNotFoundError: no such profile and no usable default.
        """

        if not name:
            name = DEFAULT_PROFILE
        found = self._lookup(category, name)
        if found is None and not require_exact_match:
            found = self._lookup(category, DEFAULT_PROFILE)
        if found is None:
            raise ProfileNotFoundError(category, name)
        key, profile = found
        resolved = dict(profile)
        resolved.setdefault(NAME_KEY, key)
        return resolved

    def create_virtual_profile(
        self,
        category: str,
        name: str,
        params: Mapping[str, Any] | str,
    ) -> None:
        """Define a profile at runtime.

        ``params`` is either the parameters of the new profile or the name of
        an existing profile of the category, in which case ``name`` becomes an
        alias of it. A connector already pooled under ``name`` is closed.

        Raises:
            InvalidProfileNameError: ``name`` is empty.
            AliasTargetNotFoundError: ``params`` names an unknown profile.
        """

        if not name:
            raise InvalidProfileNameError(category)

        if isinstance(params, str):
            found = self._lookup(category, params)
            if found is None:
                raise AliasTargetNotFoundError(category, params)
            key, target = found
            real_name = str(target.get(NAME_KEY, key))
            self._evict(category, name)
            slot = self._profiles.setdefault(category, {})
            aliases = dict(slot.get(ALIASES_KEY) or {})
            # Aliases resolving through ``name`` follow it to its new target.
            for alias, alias_target in aliases.items():
                if alias_target == name and alias != name:
                    aliases[alias] = real_name
                    slot[alias] = dict(target)
            aliases[name] = real_name
            slot[name] = dict(target)
            slot[ALIASES_KEY] = aliases
        else:
            self._evict(category, name)
            self._recompile_category(category, name, params)
        LOG.debug("Defined virtual profile", extra={"category": category, "profile": name})

    def clear(self) -> None:
        """Close every pooled connector and forget all profiles.

        Teardown failures are logged and do not prevent other connectors from
        being closed; the first one is re-raised once the registry is empty.
        """

        errors: list[Exception] = []
        closed = 0
        for category, entries in self._pool.items():
            for name, connector in entries.items():
                try:
                    self._close(category, name, connector)
                except Exception as exc:
                    LOG.warning(
                        "Connector teardown failed",
                        exc_info=True,
                        extra={"category": category, "profile": name},
                    )
                    errors.append(exc)
                closed += 1
        self._pool = {}
        self._profiles = {}
        LOG.info("Cleared profile registry", extra={"connectors": closed})
        if errors:
            raise errors[0]

    def store_connector(self, category: str, name: str, connector: Any) -> None:
        """Pool ``connector`` under the resolved profile name ``name``."""

        self._pool.setdefault(category, {})[name] = connector

    def get_connector(self, category: str, name: str) -> Any | None:
        """Return the connector pooled under the resolved name, if any."""

        return self._pool.get(category, {}).get(name)

    def remove_connector(self, category: str, name: str) -> bool:
        """Close and evict the connector pooled under ``name``."""

        return self._evict(category, name)

    def get_connector_or_create(
        self,
        category: str,
        name: str,
        factory: ConnectorFactory,
        require_exact_match: bool = False,
    ) -> Any | None:
        """Return the pooled connector for a profile, building it with ``factory``.

        Whatever the factory returns is pooled, ``None`` included, so a profile
        gets at most one construction attempt until it is evicted. Exceptions
        raised by the factory propagate and leave the pool untouched.
        """

        profile = self.get(category, name, require_exact_match)
        key = profile[NAME_KEY]
        entries = self._pool.get(category, {})
        if key in entries:
            return entries[key]
        connector = factory(profile)
        self.store_connector(category, key, connector)
        return connector

    def get_connector_via_plugin(
        self,
        category: str,
        name: str,
        require_exact_match: bool = False,
    ) -> Any | None:
        """Return the pooled connector for a profile, built by the category plugin.

        A plugin without connector support yields ``None``, which is pooled
        like any other result.
        """

        profile = self.get(category, name, require_exact_match)
        key = profile[NAME_KEY]
        entries = self._pool.get(category, {})
        if key in entries:
            return entries[key]
        plugin = self._plugins.resolve(category)
        connector: Any | None = None
        if isinstance(plugin, ProfileInstancePlugin):
            connector = plugin.get_instance_for_pool(key, profile)
        else:
            LOG.debug(
                "Plugin does not build connectors",
                extra={"category": category, "plugin": type(plugin).__name__},
            )
        self.store_connector(category, key, connector)
        return connector

    def _lookup(self, category: str, name: str) -> tuple[str, Mapping[str, Any]] | None:
        if name in RESERVED_KEYS:
            return None
        profile = self._profiles.get(category, {}).get(name)
        if not isinstance(profile, Mapping):
            return None
        return name, profile

    def _recompile_category(self, category: str, name: str, params: Mapping[str, Any]) -> None:
        # Seed the plugin with what the category already holds so the new
        # profile is normalized alongside the compiled ones.
        slot = self._profiles.get(category, {})
        plugin = self._plugins.resolve(category)
        aliases, profiles = _split_slot(slot)
        aliases.pop(name, None)
        profiles.pop(name, None)
        if aliases:
            plugin.set_aliases(aliases)
        common = slot.get(COMMON_KEY)
        if common:
            plugin.set_common(common)
        plugin.add_profiles(profiles)
        plugin.add_profile(name, params)
        compiled: dict[str, dict[str, Any]] = {}
        plugin.get_profiles(compiled)
        self._profiles.update(compiled)

    def _evict(self, category: str, name: str) -> bool:
        entries = self._pool.get(category)
        if not entries or name not in entries:
            return False
        connector = entries.pop(name)
        if not entries:
            del self._pool[category]
        self._close(category, name, connector)
        return True

    def _close(self, category: str, name: str, connector: Any) -> None:
        if connector is None:
            return
        plugin = self._plugins.resolve(category)
        if isinstance(plugin, ProfileInstancePlugin):
            plugin.close_instance_for_pool(name, connector)


def _split_slot(slot: Mapping[str, Any]) -> tuple[dict[str, str], dict[str, Mapping[str, Any]]]:
    """Separate a category slot into its alias map and its real profiles.

    An entry is an alias when the alias map lists it or when its ``_name``
    names another profile; entries without ``_name`` are real profiles.
    Alias targets are resolved to the real profile names.
    """

    aliases = {str(alias): str(target) for alias, target in (slot.get(ALIASES_KEY) or {}).items()}
    profiles: dict[str, Mapping[str, Any]] = {}
    for key, profile in slot.items():
        if key in RESERVED_KEYS or not isinstance(profile, Mapping):
            continue
        resolved = profile.get(NAME_KEY)
        if resolved is None:
            if key not in aliases:
                profiles[key] = profile
        elif resolved == key:
            profiles[key] = profile
            aliases.pop(key, None)
        else:
            aliases[key] = str(resolved)
    return aliases, profiles


__all__ = ["ConnectorFactory", "DEFAULT_PROFILE", "ProfileRegistry"]
