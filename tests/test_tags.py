"""Tests for host tag conversion."""

from __future__ import annotations

from typing import Any

import pytest

from otelbridge._internal.tags import convert_tags, tags_to_attributes


class HostDictionary:
    """Dict-like host container that is not a Mapping."""

    def __init__(self, **values: Any) -> None:
        self._values = dict(values)

    def keys(self) -> list[str]:
        return list(self._values)

    def __getitem__(self, key: str) -> Any:
        return self._values[key]


class TestConvertTags:
    """Tests for convert_tags."""

    def test_none_is_empty(self) -> None:
        """Test that missing tags convert to no pairs."""
        assert convert_tags(None) == ()

    def test_mapping_keeps_insertion_order(self) -> None:
        """Test that dict order is preserved."""
        pairs = convert_tags({"zone": "hub", "players": 12, "pvp": False})
        assert pairs == (("zone", "hub"), ("players", 12), ("pvp", False))

    def test_keys_are_coerced_to_str(self) -> None:
        """Test that non-string keys become strings."""
        assert convert_tags({1: "a", 2.5: "b"}) == (("1", "a"), ("2.5", "b"))

    def test_dict_like_host_container(self) -> None:
        """Test that objects exposing keys() and [] are accepted."""
        pairs = convert_tags(HostDictionary(peer=7, channel="voice"))  # type: ignore[arg-type]
        assert pairs == (("peer", 7), ("channel", "voice"))

    def test_iterable_of_pairs(self) -> None:
        """Test that a list of pairs is accepted."""
        assert convert_tags([("a", 1), ("b", 2)]) == (("a", 1), ("b", 2))

    def test_empty_mapping(self) -> None:
        """Test that an empty dict converts to no pairs."""
        assert convert_tags({}) == ()

    @pytest.mark.parametrize("tags", [5, "zone=hub", b"zone"])
    def test_unsupported_container_raises(self, tags: object) -> None:
        """Test that scalars and strings are rejected."""
        with pytest.raises(TypeError):
            convert_tags(tags)  # type: ignore[arg-type]


class TestTagsToAttributes:
    """Tests for tags_to_attributes."""

    def test_builds_dict(self) -> None:
        """Test that pairs become an attribute dict."""
        assert tags_to_attributes((("zone", "hub"), ("players", 12))) == {"zone": "hub", "players": 12}

    def test_repeated_key_last_value_wins(self) -> None:
        """Test that a repeated key keeps its position and takes its last value."""
        attributes = tags_to_attributes((("a", 1), ("b", 2), ("a", 3)))
        assert attributes == {"a": 3, "b": 2}
        assert list(attributes) == ["a", "b"]

    def test_empty(self) -> None:
        """Test that no pairs give an empty dict."""
        assert tags_to_attributes(()) == {}
