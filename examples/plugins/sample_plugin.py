"""Sample category plugin implementing both plugin contracts for tests."""

from __future__ import annotations

from typing import Any

from profilekit.plugins import CategoryPlugin, Profile


class SampleConnector:
    """Connector recording the parameters it was built from."""

    def __init__(self, parameters: Profile) -> None:
        self.parameters = dict(parameters)
        self.closed = False

    def close(self) -> None:
        self.closed = True


class SamplePlugin(CategoryPlugin):
    """Rewrites ``changeme`` and builds :class:`SampleConnector` objects."""

    def __init__(self, category: str) -> None:
        super().__init__(category)
        self.created: list[str] = []
        self.closed: list[str] = []

    def consolidate(self, profile: Profile) -> Profile:
        if "changeme" in profile:
            profile["changeme"] = "cool"
        return profile

    def get_instance_for_pool(self, name: str, profile: Profile) -> SampleConnector | None:
        if profile.get("unsupported"):
            return None
        self.created.append(name)
        return SampleConnector(profile)

    def close_instance_for_pool(self, name: str, instance: Any) -> None:
        self.closed.append(name)
        if instance is not None:
            instance.close()
