"""
Time-weighted return for a projected investment.

Each month is a sub-period. Its return has the month's contribution taken
out before comparing against the prior ending balance, so the result does not
depend on how much was contributed or when. Sub-period returns are then
geometrically linked: (1+r1) x (1+r2) x ... x (1+rn) - 1.
"""

import logging
from decimal import Decimal
from typing import Iterable, List, Sequence

HUNDRED = Decimal(100)


def calculate_period_return(start_value: Decimal, end_value: Decimal, contribution: Decimal) -> Decimal:
    """
    Return for a single sub-period, adjusted for the contribution made in it.

    Formula: r = (end - contribution) / start - 1

    Args:
        start_value: Ending principal of the previous month
        end_value: Ending principal of this month
        contribution: Cash added at the start of this month (0 if none)

    Returns:
        Sub-period return as a percentage, 0 if there was no starting value
    """
    if start_value == 0:
        logging.debug("Zero starting value for sub-period, treating its return as 0")
        return Decimal(0)
    return ((end_value - contribution) / start_value - 1) * HUNDRED


def link_period_returns(period_returns: Iterable[Decimal]) -> Decimal:
    """Geometrically link percentage returns into one cumulative percentage."""
    cumulative = Decimal(1)
    for r in period_returns:
        cumulative *= 1 + r / HUNDRED
    return (cumulative - 1) * HUNDRED


def calculate_sub_period_returns(rows: Sequence, contribution: Decimal) -> List[Decimal]:
    """Sub-period returns for every month already committed after month 0."""
    returns = []
    for i in range(1, len(rows)):
        returns.append(calculate_period_return(
            rows[i - 1].ending_principal,
            rows[i].ending_principal,
            contribution,
        ))
    return returns


def calculate_time_weighted_return(rows: Sequence, step, monthly_contribution: Decimal) -> Decimal:
    """
    Time-weighted return from month 0 through the month being built.

    Args:
        rows: Committed rows for months 0..m-1
        step: Step values for month m, not yet committed
        monthly_contribution: Configured contribution per month

    Returns:
        Cumulative TWR as a percentage
    """
    if step.month == 0:
        return Decimal(0)

    contribution = monthly_contribution if monthly_contribution > 0 else Decimal(0)

    period_returns = calculate_sub_period_returns(rows, contribution)
    period_returns.append(calculate_period_return(
        rows[-1].ending_principal,
        step.ending_principal,
        contribution,
    ))

    return link_period_returns(period_returns)
