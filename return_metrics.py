"""
Simple return metrics for one projected month.

All rates are percentages (1.5 means 1.5%). None of these iterate over the
projection; each reads only the current step and the previous ending balance.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

HUNDRED = Decimal(100)


def safe_ratio(numerator: Decimal, denominator: Decimal) -> Decimal:
    """numerator / denominator, or 0 when there is no base to divide by."""
    if denominator == 0:
        logging.debug(f"Zero denominator for ratio with numerator {numerator}, using 0")
        return Decimal(0)
    return numerator / denominator


def percent_change(current: Decimal, base: Decimal) -> Decimal:
    """(current / base - 1) * 100, or 0 when base is zero."""
    if base == 0:
        logging.debug(f"Zero base for percent change to {current}, using 0")
        return Decimal(0)
    return (current / base - 1) * HUNDRED


def fees_percentage(fee: Decimal, starting_principal: Decimal) -> Decimal:
    return safe_ratio(fee, starting_principal) * HUNDRED


@dataclass(frozen=True)
class ReturnMetrics:
    fees_percentage: Decimal
    mom_gross_return_rate: Decimal
    total_gross_return_rate: Decimal
    mom_net_return_rate: Decimal
    mom_net_excl_contrib_return_rate: Decimal
    total_net_return_rate: Decimal


def calculate_return_metrics(step, previous_ending_principal: Decimal) -> ReturnMetrics:
    """
    Derive the percentage metrics for a month from its step values.

    Args:
        step: The month's step values (see projection.MonthStep)
        previous_ending_principal: Ending principal of the prior month

    Returns:
        ReturnMetrics for the month
    """
    return ReturnMetrics(
        fees_percentage=fees_percentage(step.fees, step.starting_principal),
        mom_gross_return_rate=step.return_rate * HUNDRED,
        total_gross_return_rate=percent_change(step.value_without_fees, step.cumulative_contributions),
        # starting_principal already includes this month's contribution
        mom_net_return_rate=percent_change(step.ending_principal, step.starting_principal),
        mom_net_excl_contrib_return_rate=percent_change(step.ending_principal, previous_ending_principal),
        total_net_return_rate=percent_change(step.ending_principal, step.cumulative_contributions),
    )
