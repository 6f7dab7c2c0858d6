"""Tests for the TWR calculator module."""

import os
import sys
from dataclasses import replace
from decimal import Decimal

import pytest

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
sys.path.insert(0, PROJECT_ROOT)

import twr_calculator as twr
from config_loader import ExplicitReturn, resolve_parameters
from projection import calculate, initial_row, step_month


class TestCalculatePeriodReturn:
    """Tests for single sub-period returns."""

    def test_return_formula(self):
        """Test TWR formula: r = (end - contribution) / start - 1."""
        result = twr.calculate_period_return(Decimal(1000), Decimal(1150), Decimal(100))
        assert result == Decimal(5)

    def test_no_contribution(self):
        """Test the subtraction is a no-op without contributions."""
        result = twr.calculate_period_return(Decimal(100), Decimal(99), Decimal(0))
        assert result == Decimal(-1)

    def test_zero_start_value(self):
        """Test a sub-period with nothing invested contributes no return."""
        assert twr.calculate_period_return(Decimal(0), Decimal(99), Decimal(100)) == 0


class TestLinkPeriodReturns:
    """Tests for geometric linking."""

    def test_geometric_linking(self):
        """Test that sub-periods are geometrically linked."""
        result = twr.link_period_returns([Decimal(10), Decimal(-10)])
        assert result == Decimal(-1)

    def test_empty(self):
        assert twr.link_period_returns([]) == 0

    def test_twelve_months_of_one_percent(self):
        """Test compounding of 1% for 12 months."""
        result = twr.link_period_returns([Decimal(1)] * 12)
        assert float(result) == pytest.approx(12.6825, abs=1e-4)


class TestCalculateTimeWeightedReturn:
    """Tests for TWR over a projection."""

    def test_month_zero(self, returns_only_config):
        """Test the identity row has no TWR."""
        rows = [initial_row(returns_only_config)]
        step = step_month(returns_only_config, resolve_parameters(returns_only_config), rows[0], 1)
        step = replace(step, month=0)
        assert twr.calculate_time_weighted_return(rows, step, Decimal(0)) == 0

    def test_matches_total_return_without_contributions(self, returns_only_config):
        """Test TWR equals total net return when nothing is added."""
        rows = calculate(returns_only_config)
        for row in rows:
            assert row.time_weighted_return == pytest.approx(row.total_net_return_rate, abs=Decimal('1e-12'))

    def test_first_month_with_contribution(self, config_factory):
        """Test the contribution is stripped from the current month's return."""
        config = config_factory(
            starting_principal='1000',
            monthly_contribution='100',
            annual_return='0.12',
        )
        rows = calculate(config)
        expected = ((Decimal(1100) * Decimal('1.01') * Decimal('0.99') - 100) / 1000 - 1) * 100
        assert rows[1].time_weighted_return == pytest.approx(expected)

    def test_links_committed_months(self, contribution_config):
        """Test later months link the committed sub-period returns."""
        rows = calculate(contribution_config)
        period_returns = twr.calculate_sub_period_returns(rows[:4], Decimal(1000))
        assert rows[3].time_weighted_return == pytest.approx(twr.link_period_returns(period_returns))

    def test_override_month_uses_applied_rate(self, config_factory):
        """Test the current month's replay uses the override, not the default rate."""
        config = config_factory(
            annual_return='0.12',
            annual_fees=(),
            monthly_returns={2: ExplicitReturn(percent=Decimal(5))},
        )
        rows = calculate(config)
        assert rows[2].time_weighted_return == pytest.approx(rows[2].total_net_return_rate)
        assert float(rows[2].time_weighted_return) == pytest.approx(6.05)
