"""
Unit Tests for the Cache Key Codec

Keys must be deterministic, order-independent and free of absent values.
"""

import itertools

import pytest

from channel_cache.infrastructure.cache import generate_key, normalize_params


@pytest.mark.unit
class TestGenerateKey:
    def test_format_sorts_names(self):
        key = generate_key("channels", {"page": 1, "category": "tech", "limit": 20})

        assert key == "channels:category:tech:limit:20:page:1"

    def test_every_permutation_yields_same_key(self):
        pairs = [("page", 2), ("language", "en"), ("minSubscribers", 100), ("activity", "high")]

        keys = {generate_key("channels", dict(order)) for order in itertools.permutations(pairs)}

        assert len(keys) == 1

    def test_absent_values_are_excluded(self):
        with_none = generate_key("channels", {"page": 1, "category": None, "language": ""})
        without = generate_key("channels", {"page": 1})

        assert with_none == without == "channels:page:1"
        assert "None" not in with_none

    def test_blank_string_treated_as_absent(self):
        assert generate_key("search", {"q": "cats", "category": "   "}) == "search:q:cats"

    def test_zero_is_a_real_value(self):
        assert generate_key("channels", {"minSubscribers": 0}) == "channels:minSubscribers:0"

    def test_booleans_render_lowercase(self):
        assert generate_key("x", {"flag": True}) == "x:flag:true"

    def test_empty_params(self):
        assert generate_key("channels", {}) == "channels:"
        assert generate_key("channels") == "channels:"

    def test_distinct_params_give_distinct_keys(self):
        assert generate_key("channels", {"page": 1}) != generate_key("channels", {"page": 2})
        assert generate_key("channels", {"page": 1}) != generate_key("search", {"page": 1})


@pytest.mark.unit
class TestNormalizeParams:
    def test_strips_none_and_blank(self):
        assert normalize_params({"a": None, "b": "", "c": " ", "d": "x", "e": 0, "f": False}) == {
            "d": "x",
            "e": 0,
            "f": False,
        }
