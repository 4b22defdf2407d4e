"""Settings loading helpers."""

from __future__ import annotations

import logging
from pathlib import Path

import tomllib

from pydantic import BaseModel, Field, ValidationError

from .compiler import ProfileCompiler
from .plugins.resolver import ENTRY_POINT_GROUP, PluginResolver
from .registry import ProfileRegistry

LOG = logging.getLogger(__name__)

CONFIG_FILE = Path.home() / ".config" / "profilekit" / "config.toml"


class ProfilesConfig(BaseModel):
    """Shape of the settings file."""

    source: Path | None = None
    cache: Path | None = None
    plugins: dict[str, str] = Field(default_factory=dict)
    entry_point_group: str | None = ENTRY_POINT_GROUP

    def with_plugin(self, category: str, target: str) -> ProfilesConfig:
        """Return a copy mapping ``category`` to the ``module:attr`` plugin."""

        plugins = dict(self.plugins)
        plugins[category] = target
        return self.model_copy(update={"plugins": plugins})

    def resolver(self) -> PluginResolver:
        """Plugin resolver wired from the configured plugin mapping."""

        return PluginResolver(dict(self.plugins), entry_point_group=self.entry_point_group)


def load_config(path: Path | None = None) -> ProfilesConfig:
    """Load settings from disk; fall back to defaults if missing or malformed."""

    config_path = path or CONFIG_FILE
    try:
        with config_path.open("rb") as handle:
            raw = tomllib.load(handle)
    except FileNotFoundError:
        return ProfilesConfig()
    except (tomllib.TOMLDecodeError, OSError):
        LOG.warning("Ignoring unreadable settings file", extra={"path": str(config_path)})
        return ProfilesConfig()

    section = raw.get("profilekit", raw)
    if not isinstance(section, dict):
        return ProfilesConfig()
    data: dict[str, object] = {}
    for key in ("source", "cache"):
        value = section.get(key)
        if isinstance(value, str) and value:
            data[key] = _relative_to(config_path, Path(value))
    plugins = section.get("plugins")
    if isinstance(plugins, dict):
        data["plugins"] = {str(category): str(target) for category, target in plugins.items()}
    group = section.get("entry_point_group")
    if isinstance(group, str):
        data["entry_point_group"] = group or None
    try:
        return ProfilesConfig(**data)
    except ValidationError:
        LOG.warning("Ignoring invalid settings file", extra={"path": str(config_path)})
        return ProfilesConfig()


def build_registry(config: ProfilesConfig | None = None) -> ProfileRegistry:
    """Create a registry from the configured profiles file."""

    config = config or load_config()
    compiler = ProfileCompiler(config.resolver())
    if config.source is None:
        return ProfileRegistry({}, compiler.plugins)
    return compiler.read_from_file(config.source, config.cache)


def _relative_to(config_path: Path, value: Path) -> Path:
    value = value.expanduser()
    if value.is_absolute():
        return value
    return config_path.parent / value


__all__ = ["CONFIG_FILE", "ProfilesConfig", "build_registry", "load_config"]
