"""
Money-weighted return (IRR) for a projected investment.

Cash flows are dated: the starting principal and each contribution go in as
outflows, the month's ending principal comes out as the final inflow. The
rate r solving sum(CF_i * (1 + r)^(-t_i)) = 0, with t_i in years from the
first flow, is found by Newton-Raphson. This is the only place the engine
works in binary floats; every input has already been computed in Decimal.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import List, Sequence, Tuple

import numpy as np
import numpy_financial as npf

from config_loader import GlobalParameters
from return_metrics import percent_change
from utils import add_months

DAYS_PER_YEAR = 365.25
INITIAL_GUESS = 0.1
MAX_ITERATIONS = 100
PRECISION = 1e-7
MIN_RATE = -0.99
MAX_RATE = 100.0


@dataclass(frozen=True)
class IrrResult:
    """Outcome of the Newton-Raphson search; `converged` is False for a best-effort estimate."""
    rate: float
    converged: bool
    iterations: int


def build_cash_flow_schedule(
    global_params: GlobalParameters,
    month: int,
    final_value: Decimal
) -> Tuple[List[float], List[date]]:
    """
    Build the dated cash flows for the projection up to `month`.

    Args:
        global_params: Projection parameters (principal, contribution, start date)
        month: Month being evaluated
        final_value: Ending principal for that month

    Returns:
        Tuple of (cash_flows, dates), outflows negative
    """
    start = global_params.start_date
    cash_flows = [-float(global_params.starting_principal)]
    dates = [start]

    contribution = global_params.monthly_contribution
    if contribution != 0:
        for i in range(1, month + 1):
            cash_flows.append(-float(contribution))
            dates.append(add_months(start, i))

    cash_flows.append(float(final_value))
    dates.append(add_months(start, month))

    return cash_flows, dates


def dates_to_year_fractions(dates: Sequence[date]) -> np.ndarray:
    """Fractional years from the first date, using 365.25-day years."""
    if len(dates) == 0:
        return np.array([], dtype=float)
    first = dates[0]
    return np.array([(d - first).days / DAYS_PER_YEAR for d in dates], dtype=float)


def calculate_npv_and_derivative(
    cash_flows: Sequence[float],
    year_fractions: Sequence[float],
    rate: float
) -> Tuple[float, float]:
    """
    NPV and dNPV/dr at `rate`.

    The derivative skips flows at t=0, which have no discounting to differentiate.

    Raises:
        ValueError: If cash_flows and year_fractions differ in length
    """
    if len(cash_flows) != len(year_fractions):
        raise ValueError("Cash flows and dates arrays must have the same length")

    cf = np.asarray(cash_flows, dtype=float)
    t = np.asarray(year_fractions, dtype=float)
    discount = np.power(1 + rate, -t)

    npv = float(np.sum(cf * discount))
    derivative = float(np.sum(np.where(t != 0, -t * cf * discount / (1 + rate), 0.0)))
    return npv, derivative


def calculate_npv(cash_flows: Sequence[float], year_fractions: Sequence[float], rate: float) -> float:
    return calculate_npv_and_derivative(cash_flows, year_fractions, rate)[0]


def solve_irr(
    cash_flows: Sequence[float],
    dates: Sequence[date],
    guess: float = INITIAL_GUESS,
    max_iterations: int = MAX_ITERATIONS,
    precision: float = PRECISION
) -> IrrResult:
    """
    Find the date-weighted IRR with Newton-Raphson.

    Stops when |NPV| or the rate step drops below `precision`. A near-zero
    derivative or an exhausted iteration budget returns the last rate with
    converged=False rather than raising.

    Args:
        cash_flows: Flows, outflows negative
        dates: Date of each flow
        guess: Starting rate
        max_iterations: Iteration budget
        precision: Convergence tolerance

    Returns:
        IrrResult

    Raises:
        ValueError: If cash_flows and dates differ in length
    """
    if len(cash_flows) != len(dates):
        raise ValueError("Cash flows and dates arrays must have the same length")

    year_fractions = dates_to_year_fractions(dates)
    rate = guess

    for iteration in range(1, max_iterations + 1):
        npv, derivative = calculate_npv_and_derivative(cash_flows, year_fractions, rate)

        if abs(npv) < precision:
            return IrrResult(rate=rate, converged=True, iterations=iteration)

        if abs(derivative) < precision:
            logging.warning(f"IRR derivative vanished at rate {rate:.6f} after {iteration} iterations")
            return IrrResult(rate=rate, converged=False, iterations=iteration)

        new_rate = rate - npv / derivative

        if abs(new_rate - rate) < precision:
            return IrrResult(rate=new_rate, converged=True, iterations=iteration)

        rate = min(max(new_rate, MIN_RATE), MAX_RATE)

    logging.warning(f"IRR did not converge in {max_iterations} iterations, using {rate:.6f}")
    return IrrResult(rate=rate, converged=False, iterations=max_iterations)


def calculate_periodic_irr(cash_flows: Sequence[float]) -> float:
    """
    IRR per period for equally spaced cash flows, via numpy_financial.

    Returns:
        Rate per period as decimal, NaN when no solution exists
    """
    return float(npf.irr(np.asarray(cash_flows, dtype=float)))


def calculate_money_weighted_return(global_params: GlobalParameters, step) -> Tuple[Decimal, bool]:
    """
    Money-weighted return from the start through the month being built.

    With no contributions there is a single inflow and outflow, so the MWRR
    is simply the total net return on the starting principal.

    Args:
        global_params: Projection parameters
        step: Step values for the month being built

    Returns:
        Tuple of (MWRR as a percentage, whether the solver converged)
    """
    if step.month == 0:
        return Decimal(0), True

    if global_params.monthly_contribution == 0:
        return percent_change(step.ending_principal, global_params.starting_principal), True

    cash_flows, dates = build_cash_flow_schedule(global_params, step.month, step.ending_principal)
    result = solve_irr(cash_flows, dates)
    return Decimal(str(result.rate)) * 100, result.converged
