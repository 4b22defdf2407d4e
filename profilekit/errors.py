"""Exception types raised by the profile registry and its collaborators."""

from __future__ import annotations


class ProfileError(RuntimeError):
    """Base error for profile resolution failures."""


class InvalidProfileNameError(ProfileError, ValueError):
    """Raised when a virtual profile is created without a name."""

    def __init__(self, category: str) -> None:
        super().__init__(f'The name of a virtual profile for "{category}" is empty')
        self.category = category


class ProfileNotFoundError(ProfileError, LookupError):
    """Raised when a profile name cannot be resolved within a category."""

    def __init__(self, category: str, name: str) -> None:
        if name == "default":
            message = f'No default profile for "{category}"'
        else:
            message = f'Unknown profile "{name}" for "{category}"'
        super().__init__(message)
        self.category = category
        self.name = name


class AliasTargetNotFoundError(ProfileNotFoundError):
    """Raised when a virtual alias points at a profile that does not exist."""


class PluginResolutionError(ProfileError):
    """Raised when a category plugin cannot be loaded."""


class SourceError(ProfileError):
    """Raised when a declarative source or cache file cannot be read."""


class ConnectorError(ProfileError):
    """Raised when a bundled connector cannot reach its backend."""


__all__ = [
    "AliasTargetNotFoundError",
    "ConnectorError",
    "InvalidProfileNameError",
    "PluginResolutionError",
    "ProfileError",
    "ProfileNotFoundError",
    "SourceError",
]
