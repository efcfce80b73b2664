"""Tests for average damage estimation."""

from __future__ import annotations

import pytest

from tactician.engine.damage import average_damage, normalize_damage_expression


class TestNormalize:
    """Tests for damage text normalization."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("1d6+4", "1d6+4"),
            ("1d6+4 slashing", "1d6+4"),
            ("2d8+4 piercing plus Grab", "2d8+4"),
            ("1d8+3 slashing plus 1d6 fire", "1d8+3+1d6"),
        ],
    )
    def test_normalize(self, text: str, expected: str) -> None:
        """Test damage types and riders are dropped."""
        assert normalize_damage_expression(text) == expected


class TestAverageDamage:
    """Tests for average_damage."""

    @pytest.mark.parametrize(
        ("expression", "expected"),
        [
            ("1d6+4", 7.5),
            ("2d8+4 piercing plus Grab", 13.0),
            ("1d6+4 slashing plus 1d6 fire", 11.0),
            ("2d6", 7.0),
            ("5", 5.0),
        ],
    )
    def test_average(self, expression: str, expected: float) -> None:
        """Test expected values."""
        assert average_damage(expression) == pytest.approx(expected)

    @pytest.mark.parametrize("expression", [None, "", "Grab"])
    def test_unusable(self, expression: str | None) -> None:
        """Test missing and unparseable expressions score zero."""
        assert average_damage(expression) == 0.0
