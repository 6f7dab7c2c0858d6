"""
Hand-off helpers for consumers of a projection.

Turns the row sequence into a pandas DataFrame and a summary dictionary.
Rows keep their Decimal values unless a float frame is requested.
"""

import logging
from dataclasses import asdict, fields
from decimal import Decimal
from typing import Dict, Sequence

import numpy as np
import pandas as pd

from projection import Row

ROW_COLUMNS = [f.name for f in fields(Row)]


def rows_to_dataframe(rows: Sequence[Row], as_float: bool = False) -> pd.DataFrame:
    """
    Build a DataFrame with one line per projected month.

    Args:
        rows: Projection rows
        as_float: Convert Decimal columns to float64 (for charting)

    Returns:
        DataFrame indexed by month
    """
    if not rows:
        return pd.DataFrame(columns=ROW_COLUMNS).set_index('month')

    df = pd.DataFrame([asdict(r) for r in rows], columns=ROW_COLUMNS)
    df['date'] = pd.to_datetime(df['date'])

    if as_float:
        for col in ROW_COLUMNS:
            if col in ('month', 'date', 'mwrr_converged'):
                continue
            df[col] = df[col].astype(float)

    return df.set_index('month')


def annualize_return(total_return_pct: Decimal, months: int) -> float:
    """
    Annualize a cumulative percentage return over `months` months.

    Returns:
        Annualized return as a percentage
    """
    if months <= 0:
        return 0.0
    growth = 1 + float(total_return_pct) / 100
    if growth <= 0:
        return -100.0
    return float((growth ** (12 / months) - 1) * 100)


def summarize_projection(rows: Sequence[Row]) -> Dict:
    """
    Summary statistics for the final month of a projection.

    Returns:
        Dictionary with final balances, totals, and return rates (percentages)
    """
    if not rows:
        logging.warning("No rows to summarize")
        return {}

    last = rows[-1]
    months = last.month
    twr = np.array([float(r.time_weighted_return) for r in rows])

    summary = {
        'months': months,
        'start_date': rows[0].date,
        'end_date': last.date,
        'starting_principal': rows[0].starting_principal,
        'ending_principal': last.ending_principal,
        'value_without_fees': last.value_without_fees,
        'cumulative_contributions': last.cumulative_contributions,
        'cumulative_fees': last.cumulative_fees,
        'fee_drag': last.value_without_fees - last.ending_principal,
        'total_net_return_rate': last.total_net_return_rate,
        'total_gross_return_rate': last.total_gross_return_rate,
        'time_weighted_return': last.time_weighted_return,
        'annualized_time_weighted_return': annualize_return(last.time_weighted_return, months),
        'worst_time_weighted_return': float(twr.min()),
        'money_weighted_return': last.money_weighted_return,
        'mwrr_converged': all(r.mwrr_converged for r in rows),
    }

    logging.info(
        f"Projection summary: {months} months, ending principal {last.ending_principal:,.2f}, "
        f"TWR {float(last.time_weighted_return):.2f}%, MWRR {float(last.money_weighted_return):.2f}%"
    )
    return summary
