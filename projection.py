"""
Month-by-month investment projection.

Each month runs in a fixed order: the contribution is added at the start,
the month's return is applied to the result, and fees are charged at the end
on the principal after returns. A fee-free shadow balance runs alongside for
gross return metrics.

A month is built in two phases. The step values are computed into a
transient MonthStep, then the return metrics, TWR and MWRR are derived from
the committed rows plus that step, and the final Row is constructed once and
appended. Committed rows are never modified.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, localcontext
from typing import List, Sequence, Tuple

from config_loader import (
    InvestmentConfig,
    SimulationParameters,
    check_config,
    resolve_parameters,
    validate_config,
)
from fee_calculator import calculate_monthly_fees
from mwrr_solver import calculate_money_weighted_return
from return_metrics import ReturnMetrics, calculate_return_metrics
from twr_calculator import calculate_time_weighted_return
from utils import add_months

DECIMAL_PRECISION = 28


@dataclass(frozen=True)
class MonthStep:
    """Step values for one month before any derived metrics."""
    month: int
    date: date
    return_rate: Decimal
    starting_principal: Decimal
    ending_principal: Decimal
    returns: Decimal
    fees: Decimal
    value_without_fees: Decimal
    cumulative_fees: Decimal
    cumulative_contributions: Decimal


@dataclass(frozen=True)
class Row:
    """One projected month. Rates are percentages."""
    month: int
    date: date
    starting_principal: Decimal
    ending_principal: Decimal
    returns: Decimal
    fees: Decimal
    value_without_fees: Decimal
    cumulative_fees: Decimal
    cumulative_contributions: Decimal
    fees_percentage: Decimal
    mom_gross_return_rate: Decimal
    total_gross_return_rate: Decimal
    mom_net_return_rate: Decimal
    mom_net_excl_contrib_return_rate: Decimal
    total_net_return_rate: Decimal
    time_weighted_return: Decimal
    money_weighted_return: Decimal
    mwrr_converged: bool = True


def resolve_return_rate(config: InvestmentConfig, params: SimulationParameters, month: int) -> Decimal:
    """Override rate for the month if one is configured, else the default monthly rate."""
    override = config.monthly_returns.get(month)
    if override is not None:
        return override.rate
    return params.default_monthly_rate


def initial_row(config: InvestmentConfig) -> Row:
    g = config.global_params
    zero = Decimal(0)
    return Row(
        month=0,
        date=g.start_date,
        starting_principal=g.starting_principal,
        ending_principal=g.starting_principal,
        returns=zero,
        fees=zero,
        value_without_fees=g.starting_principal,
        cumulative_fees=zero,
        cumulative_contributions=g.starting_principal,
        fees_percentage=zero,
        mom_gross_return_rate=zero,
        total_gross_return_rate=zero,
        mom_net_return_rate=zero,
        mom_net_excl_contrib_return_rate=zero,
        total_net_return_rate=zero,
        time_weighted_return=zero,
        money_weighted_return=zero,
    )


def step_month(config: InvestmentConfig, params: SimulationParameters, prev_row: Row, month: int) -> MonthStep:
    """
    Advance the projection from `prev_row` by one month.

    Args:
        config: Projection configuration
        params: Resolved simulation parameters
        prev_row: Committed row for month - 1
        month: Month being built (1-based)

    Returns:
        MonthStep holding the month's balances and flows
    """
    g = config.global_params
    contribution = g.monthly_contribution if g.monthly_contribution > 0 else Decimal(0)

    starting_principal = prev_row.ending_principal + contribution
    cumulative_contributions = prev_row.cumulative_contributions + contribution

    rate = resolve_return_rate(config, params, month)
    monthly_return = starting_principal * rate
    principal_after_returns = starting_principal + monthly_return

    monthly_fee = calculate_monthly_fees(principal_after_returns, config.fees)
    ending_principal = principal_after_returns - monthly_fee

    shadow_start = prev_row.value_without_fees + contribution
    value_without_fees = shadow_start + shadow_start * rate

    return MonthStep(
        month=month,
        date=add_months(g.start_date, month),
        return_rate=rate,
        starting_principal=starting_principal,
        ending_principal=ending_principal,
        returns=monthly_return,
        fees=monthly_fee,
        value_without_fees=value_without_fees,
        cumulative_fees=prev_row.cumulative_fees + monthly_fee,
        cumulative_contributions=cumulative_contributions,
    )


def build_row(
    step: MonthStep,
    metrics: ReturnMetrics,
    time_weighted_return: Decimal,
    money_weighted_return: Decimal,
    mwrr_converged: bool
) -> Row:
    return Row(
        month=step.month,
        date=step.date,
        starting_principal=step.starting_principal,
        ending_principal=step.ending_principal,
        returns=step.returns,
        fees=step.fees,
        value_without_fees=step.value_without_fees,
        cumulative_fees=step.cumulative_fees,
        cumulative_contributions=step.cumulative_contributions,
        fees_percentage=metrics.fees_percentage,
        mom_gross_return_rate=metrics.mom_gross_return_rate,
        total_gross_return_rate=metrics.total_gross_return_rate,
        mom_net_return_rate=metrics.mom_net_return_rate,
        mom_net_excl_contrib_return_rate=metrics.mom_net_excl_contrib_return_rate,
        total_net_return_rate=metrics.total_net_return_rate,
        time_weighted_return=time_weighted_return,
        money_weighted_return=money_weighted_return,
        mwrr_converged=mwrr_converged,
    )


def calculate_month(config: InvestmentConfig, params: SimulationParameters, rows: Sequence[Row], month: int) -> Row:
    """Build the final row for `month` from the committed rows 0..month-1."""
    prev_row = rows[month - 1]
    step = step_month(config, params, prev_row, month)

    metrics = calculate_return_metrics(step, prev_row.ending_principal)
    twr = calculate_time_weighted_return(rows, step, config.global_params.monthly_contribution)
    mwrr, converged = calculate_money_weighted_return(config.global_params, step)

    return build_row(step, metrics, twr, mwrr, converged)


def calculate(config: InvestmentConfig) -> Tuple[Row, ...]:
    """
    Project the investment month by month.

    Args:
        config: Projection configuration

    Returns:
        Rows for months 0 through the resolved month count

    Raises:
        ConfigurationError: If the configuration cannot be projected
    """
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION

        check_config(config)
        for issue in validate_config(config):
            logging.warning(issue)

        params = resolve_parameters(config)
        logging.info(
            f"Projecting {max(params.month_count, 0)} months at a default monthly rate of "
            f"{params.default_monthly_rate} with {len(config.fees)} fee(s)"
        )

        rows: List[Row] = [initial_row(config)]
        for month in range(1, params.month_count + 1):
            rows.append(calculate_month(config, params, rows, month))

        unconverged = sum(1 for r in rows if not r.mwrr_converged)
        if unconverged:
            logging.warning(f"{unconverged} month(s) have an unconverged money-weighted return")

        logging.info(f"Calculated {len(rows)} rows")
        return tuple(rows)
