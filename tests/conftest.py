import os
import sys
from datetime import date
from decimal import Decimal

import pytest

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
sys.path.insert(0, PROJECT_ROOT)

from config_loader import Fee, GlobalParameters, InvestmentConfig, Returns


def make_config(
    starting_principal='100',
    monthly_contribution='0',
    annual_return='0',
    annual_fees=('0.12',),
    num_months=12,
    start_date=date(2024, 1, 1),
    end_date=date(2025, 1, 1),
    monthly_returns=None,
):
    """Build a projection config; rates are annual and applied monthly."""
    return InvestmentConfig(
        global_params=GlobalParameters(
            starting_principal=Decimal(starting_principal),
            monthly_contribution=Decimal(monthly_contribution),
            start_date=start_date,
            end_date=end_date,
            num_months=num_months,
        ),
        returns=Returns(value=Decimal(annual_return)),
        fees=[
            Fee(name=f'fee_{i}', value=Decimal(v))
            for i, v in enumerate(annual_fees)
        ],
        monthly_returns=dict(monthly_returns or {}),
    )


@pytest.fixture
def config_factory():
    return make_config


@pytest.fixture
def fee_only_config():
    """100 starting principal, 0% return, 12% annual fee."""
    return make_config()


@pytest.fixture
def returns_only_config():
    """100 starting principal, 12% annual return, no fee."""
    return make_config(annual_return='0.12', annual_fees=())


@pytest.fixture
def contribution_config():
    """1 starting principal, 1000 a month, 0% return, 12% annual fee."""
    return make_config(starting_principal='1', monthly_contribution='1000')
