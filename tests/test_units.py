"""Tests for unit normalization."""

import pytest

from anise.ingredients.units import normalize_unit


class TestNormalizeUnit:

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("cups", "cup"),
            ("Cup", "cup"),
            ("tablespoons", "tbsp"),
            ("Tbsp.", "tbsp"),
            ("teaspoons", "tsp"),
            ("cloves", "clove"),
            ("lbs", "lb"),
            ("pounds", "lb"),
            ("fluid ounces", "fl oz"),
            ("grams", "g"),
        ],
    )
    def test_aliases(self, raw, expected):
        assert normalize_unit(raw) == expected

    def test_capital_t_is_tablespoon(self):
        assert normalize_unit("T") == "tbsp"

    def test_lowercase_t_is_teaspoon(self):
        assert normalize_unit("t") == "tsp"

    def test_blank_is_none(self):
        assert normalize_unit(None) is None
        assert normalize_unit("") is None
        assert normalize_unit("   ") is None

    def test_unknown_unit_lowercased(self):
        assert normalize_unit("Handful") == "handful"
