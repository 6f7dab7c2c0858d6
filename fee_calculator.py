"""
Fee calculator for the investment projection engine.

Fees are quoted as a rate per `quote_time_unit` and split evenly into
`applied_time_unit` steps (12 turns an annual rate into a monthly one).
Each step's fee is charged on the principal after that step's return, and
multiple fees are summed rather than compounded against each other.
"""

from decimal import Decimal
from typing import Iterable

from config_loader import Fee


def per_step_rate(value: Decimal, applied_time_unit: Decimal) -> Decimal:
    """
    Convert a quoted rate to the rate charged per step.

    This is a simple division, not the geometric (1 + r)^(1/n) - 1
    conversion: 12% annual is exactly 1% monthly.

    Args:
        value: Quoted rate as decimal (e.g., 0.12 for 12%)
        applied_time_unit: Number of steps the quoted rate is divided into

    Returns:
        Per-step rate as decimal
    """
    return value / applied_time_unit


def calculate_fee(principal: Decimal, fee: Fee) -> Decimal:
    return principal * per_step_rate(fee.value, fee.applied_time_unit)


def calculate_monthly_fees(principal_after_returns: Decimal, fees: Iterable[Fee]) -> Decimal:
    """
    Total fee for one step, summed over all configured fees.

    Args:
        principal_after_returns: Principal once this step's return is applied
        fees: Configured fees

    Returns:
        Sum of each fee charged on the same base
    """
    total = Decimal(0)
    for fee in fees:
        total += calculate_fee(principal_after_returns, fee)
    return total
