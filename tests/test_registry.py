"""Tests for profile resolution and virtual profiles."""

from __future__ import annotations

import pytest

from profilekit import (
    AliasTargetNotFoundError,
    InvalidProfileNameError,
    PluginResolver,
    ProfileCompiler,
    ProfileNotFoundError,
    ProfileRegistry,
)

BOOKS = {"wsdl": "books.wsdl", "option": "foo"}


def _registry(sources: dict[str, object], plugins: PluginResolver | None = None) -> ProfileRegistry:
    return ProfileCompiler(plugins or PluginResolver(entry_point_group=None)).read_from_mapping(sources)


def _aliased() -> ProfileRegistry:
    return _registry(
        {
            "foo": {"default": "server1", "myserver": "server1"},
            "foo:server1": dict(BOOKS),
        }
    )


def test_default_profile_is_returned_for_empty_name() -> None:
    registry = _registry({"foo": {}, "foo:default": dict(BOOKS)})
    expected = {"wsdl": "books.wsdl", "option": "foo", "_name": "default"}

    assert registry.get("foo") == expected
    assert registry.get("foo", "") == expected
    assert registry.get("foo", "default") == expected
    assert registry.get("foo", "toto") == expected


def test_unknown_name_with_exact_match_fails() -> None:
    registry = _registry({"foo": {}, "foo:default": dict(BOOKS)})

    with pytest.raises(ProfileNotFoundError) as excinfo:
        registry.get("foo", "toto", require_exact_match=True)

    assert str(excinfo.value) == 'Unknown profile "toto" for "foo"'
    assert excinfo.value.category == "foo"
    assert excinfo.value.name == "toto"


def test_missing_default_has_dedicated_message() -> None:
    registry = _registry({"foo:other": {"a": 1}})

    with pytest.raises(ProfileNotFoundError) as excinfo:
        registry.get("foo", "default", require_exact_match=True)

    assert str(excinfo.value) == 'No default profile for "foo"'


def test_missing_category_fails_without_default() -> None:
    registry = _registry({})

    with pytest.raises(ProfileNotFoundError, match='No default profile for "foo"'):
        registry.get("foo")
    with pytest.raises(ProfileNotFoundError, match='Unknown profile "bar" for "foo"'):
        registry.get("foo", "bar")


def test_aliases_resolve_to_target_profile() -> None:
    registry = _aliased()
    expected = {"wsdl": "books.wsdl", "option": "foo", "_name": "server1"}

    for name in ("", "default", "server1", "myserver", "anything"):
        assert registry.get("foo", name) == expected


def test_get_is_idempotent_and_returns_copies() -> None:
    registry = _aliased()

    first = registry.get("foo", "server1")
    first["wsdl"] = "mutated"

    assert registry.get("foo", "server1") == registry.get("foo", "server1")
    assert registry.get("foo", "server1")["wsdl"] == "books.wsdl"


def test_reserved_keys_are_not_profiles() -> None:
    registry = _registry({"foo": {"main": "server1"}, "foo:__common__": {"x": 1}, "foo:server1": {}})

    with pytest.raises(ProfileNotFoundError):
        registry.get("foo", "__common__", require_exact_match=True)
    assert registry.profile_names("foo") == ("main", "server1")
    assert registry.has_profile("foo", "main")
    assert not registry.has_profile("foo", "__common__")


def test_virtual_alias_shares_target_name() -> None:
    registry = _aliased()

    registry.create_virtual_profile("foo", "myalias", "server1")

    alias = registry.get("foo", "myalias")
    target = registry.get("foo", "server1")
    assert alias == target
    assert alias["_name"] == "server1"


def test_virtual_alias_of_alias_points_at_real_profile() -> None:
    registry = _aliased()

    registry.create_virtual_profile("foo", "second", "myserver")

    assert registry.get("foo", "second", require_exact_match=True)["_name"] == "server1"


def test_virtual_alias_to_unknown_target_fails() -> None:
    registry = _aliased()

    with pytest.raises(AliasTargetNotFoundError) as excinfo:
        registry.create_virtual_profile("foo", "broken", "nowhere")

    assert isinstance(excinfo.value, ProfileNotFoundError)
    assert str(excinfo.value) == 'Unknown profile "nowhere" for "foo"'
    assert not registry.has_profile("foo", "broken")


def test_virtual_profile_requires_a_name() -> None:
    registry = _aliased()

    with pytest.raises(InvalidProfileNameError, match='virtual profile for "foo" is empty'):
        registry.create_virtual_profile("foo", "", {"a": 1})


def test_virtual_profile_with_params_keeps_existing_profiles() -> None:
    registry = _aliased()
    registry.create_virtual_profile("foo", "myalias", "server1")
    expected = {"wsdl": "books.wsdl", "option": "foo", "_name": "server1"}

    registry.create_virtual_profile("foo", "new", {"bla": "ok"})

    assert registry.get("foo", "new") == {"bla": "ok", "_name": "new"}
    for name in ("server1", "myalias", "default", "myserver"):
        assert registry.get("foo", name) == expected


def test_virtual_profile_merges_common_set() -> None:
    registry = _registry({"db:__common__": {"driver": "pgsql", "port": 5432}, "db:main": {"host": "a"}})

    registry.create_virtual_profile("db", "extra", {"host": "b", "port": 6543})

    assert registry.get("db", "extra") == {"driver": "pgsql", "port": 6543, "host": "b", "_name": "extra"}
    assert registry.get("db", "main") == {"driver": "pgsql", "port": 5432, "host": "a", "_name": "main"}


def test_virtual_profile_in_new_category() -> None:
    registry = _registry({})

    registry.create_virtual_profile("foo", "new", {"bla": "ok"})

    assert "foo" in registry
    assert registry.get("foo", "new", require_exact_match=True) == {"bla": "ok", "_name": "new"}


def test_virtual_profile_replaces_alias_with_same_name() -> None:
    registry = _aliased()

    registry.create_virtual_profile("foo", "myserver", {"host": "other"})

    assert registry.get("foo", "myserver") == {"host": "other", "_name": "myserver"}
    assert registry.get("foo", "default")["_name"] == "server1"


def test_virtual_profile_uses_category_plugin() -> None:
    from examples.plugins.sample_plugin import SamplePlugin

    registry = _registry({"foo:default": {"a": 1}}, PluginResolver({"foo": SamplePlugin}, entry_point_group=None))

    registry.create_virtual_profile("foo", "new", {"changeme": "not changed"})

    assert registry.get("foo", "new") == {"changeme": "cool", "_name": "new"}
    assert registry.get("foo") == {"a": 1, "_name": "default"}


def test_clear_discards_profiles() -> None:
    registry = _aliased()

    registry.clear()

    assert registry.categories() == ()
    with pytest.raises(ProfileNotFoundError):
        registry.get("foo", "server1")


def test_virtual_profile_after_clear_does_not_resurrect_profiles() -> None:
    registry = _aliased()
    registry.clear()

    registry.create_virtual_profile("foo", "new", {"bla": "ok"})

    assert registry.profile_names("foo") == ("new",)


def test_registry_accepts_precompiled_mapping() -> None:
    registry = ProfileRegistry({"foo": {"main": {"a": 1, "_name": "main"}}})

    assert registry.get("foo", "main") == {"a": 1, "_name": "main"}
    assert registry.profiles == {"foo": {"main": {"a": 1, "_name": "main"}}}


def test_virtual_profile_keeps_precompiled_profiles_without_name() -> None:
    registry = ProfileRegistry(
        {"foo": {"default": {"wsdl": "books.wsdl"}}},
        PluginResolver(entry_point_group=None),
    )

    registry.create_virtual_profile("foo", "new", {"bla": "ok"})

    assert registry.get("foo", "default", True) == {"wsdl": "books.wsdl", "_name": "default"}
    assert registry.get("foo", "new", True) == {"bla": "ok", "_name": "new"}


def test_virtual_profile_keeps_every_prior_name() -> None:
    registry = _aliased()
    registry.create_virtual_profile("foo", "copy", "myserver")
    before = registry.profile_names("foo")

    registry.create_virtual_profile("foo", "other", {"a": 3})

    assert registry.profile_names("foo") == tuple(sorted((*before, "other")))
    for name in before:
        assert registry.get("foo", name, True)["_name"] == "server1"


def test_retargeted_alias_survives_later_redefinition() -> None:
    registry = _registry(
        {
            "foo": {"default": "server1"},
            "foo:server1": {"host": "one"},
            "foo:server2": {"host": "two"},
        }
    )

    registry.create_virtual_profile("foo", "server1", "server2")

    assert registry.get("foo", "default", True) == {"host": "two", "_name": "server2"}
    assert registry.get("foo", "server1", True) == {"host": "two", "_name": "server2"}

    registry.create_virtual_profile("foo", "other", {"a": 3})

    assert registry.get("foo", "default", True) == {"host": "two", "_name": "server2"}
    assert registry.get("foo", "server1", True) == {"host": "two", "_name": "server2"}
    assert registry.get("foo", "other", True) == {"a": 3, "_name": "other"}
