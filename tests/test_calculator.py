"""Tests for the single-transaction arbitrage calculator."""

import dataclasses
from decimal import Decimal

import pytest

from fxcompass.rate_engine.calculator import calculate
from fxcompass.rate_engine.errors import InvalidAmount, InvalidInput, InvalidRate

TOLERANCE = Decimal("1e-20")


def _close(actual: Decimal, expected: str) -> bool:
    return abs(actual - Decimal(expected)) < TOLERANCE


class TestCalculate:

    def test_worked_example(self):
        """100 at 1500 sold / 1480 bought, reference 1."""
        result = calculate(100, 1500, 1480, 1)

        assert result.usdt_equivalent.quantize(Decimal("0.0001")) == Decimal("0.0667")
        assert _close(result.total_received, "100")
        assert result.total_cost.quantize(Decimal("0.001")) == Decimal("98.667")
        assert result.profit.quantize(Decimal("0.001")) == Decimal("1.333")

    def test_profit_is_received_minus_cost(self):
        result = calculate(Decimal("2500"), Decimal("1.08"), Decimal("1.05"), Decimal("1530"))
        assert result.profit == result.total_received - result.total_cost

    def test_reference_rate_scales_ngn_totals(self):
        result = calculate(Decimal("150"), Decimal("1.5"), Decimal("1.4"), Decimal("1600"))
        assert result.usdt_equivalent == Decimal("100")
        assert result.total_received == Decimal("240000")
        assert result.total_cost == Decimal("224000")
        assert result.profit == Decimal("16000")

    def test_zero_amount(self):
        result = calculate(0, 1500, 1480, 1)
        assert result.usdt_equivalent == 0
        assert result.total_received == 0
        assert result.total_cost == 0
        assert result.profit == 0
        assert result.margin_percentage == 0

    def test_bought_above_sold_is_a_loss(self):
        result = calculate(Decimal("100"), Decimal("1.0"), Decimal("1.1"), Decimal("1500"))
        assert result.profit < 0

    def test_deterministic(self):
        assert calculate(100, 1500, 1480, 1) == calculate(100, 1500, 1480, 1)

    def test_result_is_immutable(self):
        result = calculate(100, 1500, 1480, 1)
        with pytest.raises(dataclasses.FrozenInstanceError):
            result.profit = Decimal("0")

    def test_accepts_numeric_strings(self):
        assert calculate("100", "1500", "1480", "1") == calculate(100, 1500, 1480, 1)


class TestCalculateValidation:

    @pytest.mark.parametrize("rate_sold", [0, -1500])
    def test_non_positive_rate_sold(self, rate_sold):
        with pytest.raises(InvalidRate, match="rate_sold"):
            calculate(100, rate_sold, 1480, 1)

    def test_negative_amount(self):
        with pytest.raises(InvalidAmount):
            calculate(-100, 1500, 1480, 1)

    def test_non_numeric_amount(self):
        with pytest.raises(InvalidAmount):
            calculate("lots", 1500, 1480, 1)

    def test_negative_rate_bought(self):
        with pytest.raises(InvalidRate, match="rate_bought"):
            calculate(100, 1500, -1, 1)

    @pytest.mark.parametrize("reference", [0, -1])
    def test_non_positive_reference_rate(self, reference):
        with pytest.raises(InvalidRate, match="reference_rate"):
            calculate(100, 1500, 1480, reference)

    def test_rate_sold_checked_before_amount(self):
        with pytest.raises(InvalidRate):
            calculate(-100, 0, 1480, 1)

    def test_errors_are_value_errors(self):
        with pytest.raises(ValueError):
            calculate(100, 0, 1480, 1)
        assert issubclass(InvalidAmount, InvalidInput)
