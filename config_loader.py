"""
Configuration loader for the investment projection engine.

Loads and validates configuration from a YAML file and resolves it into
the parameters the month stepper runs on (month count, default monthly rate).
"""

import os
import yaml
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Union


class ConfigurationError(ValueError):
    """Raised when a configuration cannot be projected."""


def to_decimal(value) -> Decimal:
    """Coerce a number to Decimal without inheriting binary float error."""
    if isinstance(value, Decimal):
        return value
    if value is None:
        return Decimal(0)
    return Decimal(str(value))


def to_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


@dataclass
class Fee:
    """A recurring fee, quoted per `quote_time_unit` and split into `applied_time_unit` steps."""
    name: str = ''
    description: str = ''
    type: str = 'simple_rate'
    value: Decimal = Decimal(0)
    quote_time_unit: str = 'year'
    applied_time_unit: Decimal = Decimal(12)

    def __post_init__(self):
        self.value = to_decimal(self.value)
        self.applied_time_unit = to_decimal(self.applied_time_unit)


@dataclass
class Returns:
    """Default growth rate applied when a month has no override."""
    type: str = 'simple_rate'
    value: Decimal = Decimal(0)
    quote_time_unit: str = 'year'
    applied_time_unit: Decimal = Decimal(12)

    def __post_init__(self):
        self.value = to_decimal(self.value)
        self.applied_time_unit = to_decimal(self.applied_time_unit)


@dataclass(frozen=True)
class ExplicitReturn:
    """Month override with an explicit rate, stored as a percentage."""
    percent: Decimal

    @property
    def rate(self) -> Decimal:
        return to_decimal(self.percent) / 100


@dataclass(frozen=True)
class ForceZero:
    """Month override forcing a zero return regardless of the default rate."""

    @property
    def rate(self) -> Decimal:
        return Decimal(0)


MonthlyReturnOverride = Union[ExplicitReturn, ForceZero]


@dataclass
class GlobalParameters:
    starting_principal: Decimal = Decimal(0)
    monthly_contribution: Decimal = Decimal(0)
    start_date: date = date(2024, 1, 1)
    end_date: date = date(2025, 1, 1)
    num_months: int = 0
    quote_currency: str = 'GBP'
    time_unit: str = 'month'

    def __post_init__(self):
        self.starting_principal = to_decimal(self.starting_principal)
        self.monthly_contribution = to_decimal(self.monthly_contribution)
        self.start_date = to_date(self.start_date)
        self.end_date = to_date(self.end_date)
        self.num_months = int(self.num_months or 0)


@dataclass
class InvestmentConfig:
    """Main configuration class."""
    global_params: GlobalParameters
    returns: Returns
    fees: List[Fee] = field(default_factory=list)
    monthly_returns: Dict[int, MonthlyReturnOverride] = field(default_factory=dict)


@dataclass(frozen=True)
class SimulationParameters:
    """Resolved values the month stepper runs on."""
    month_count: int
    default_monthly_rate: Decimal


def default_config() -> InvestmentConfig:
    """Return a fresh default configuration; callers may modify it freely."""
    return InvestmentConfig(
        global_params=GlobalParameters(
            starting_principal=Decimal(10000),
            monthly_contribution=Decimal(1000),
            start_date=date(2024, 1, 1),
            end_date=date(2025, 1, 1),
            num_months=240,
            quote_currency='GBP',
        ),
        returns=Returns(value=Decimal('0.12')),
        fees=[
            Fee(
                name='annual_advisor_fee',
                description='prorata',
                value=Decimal('0.03'),
            )
        ],
    )


def load_config(config_path: str = 'config.yaml') -> InvestmentConfig:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to the configuration file

    Returns:
        InvestmentConfig built from the file, or the defaults when it is missing

    Raises:
        ConfigurationError: If an override entry is malformed
    """
    if not os.path.exists(config_path):
        logging.warning(f"Config file {config_path} not found, using defaults")
        return default_config()

    with open(config_path, 'r') as f:
        raw_config = yaml.safe_load(f) or {}

    return _parse_config(raw_config)


def _parse_override(entry: dict) -> MonthlyReturnOverride:
    if entry.get('empty', False):
        return ForceZero()
    if entry.get('value') is None:
        raise ConfigurationError(f"Monthly return for month {entry.get('month')} has no value")
    return ExplicitReturn(percent=to_decimal(entry['value']))


def _parse_config(raw: dict) -> InvestmentConfig:
    """Parse raw YAML dict into InvestmentConfig object."""
    defaults = GlobalParameters()
    global_raw = raw.get('global', {})
    global_params = GlobalParameters(
        starting_principal=global_raw.get('starting_principal', 0),
        monthly_contribution=global_raw.get('monthly_contribution', 0),
        start_date=global_raw.get('start_date', defaults.start_date),
        end_date=global_raw.get('end_date', defaults.end_date),
        num_months=global_raw.get('num_months', 0),
        quote_currency=global_raw.get('quote_currency', 'GBP'),
        time_unit=global_raw.get('time_unit', 'month'),
    )

    returns_raw = raw.get('returns', {})
    returns = Returns(
        type=returns_raw.get('type', 'simple_rate'),
        value=returns_raw.get('value', 0),
        quote_time_unit=returns_raw.get('quote_time_unit', 'year'),
        applied_time_unit=returns_raw.get('applied_time_unit', 12),
    )

    fees = []
    for f in raw.get('fees', []) or []:
        fees.append(Fee(
            name=f.get('name', ''),
            description=f.get('description', ''),
            type=f.get('type', 'simple_rate'),
            value=f.get('value', 0),
            quote_time_unit=f.get('quote_time_unit', 'year'),
            applied_time_unit=f.get('applied_time_unit', 12),
        ))

    monthly_returns = {}
    for entry in raw.get('monthly_returns', []) or []:
        if 'month' not in entry:
            raise ConfigurationError(f"Monthly return entry missing month: {entry}")
        month = int(entry['month'])
        if month in monthly_returns:
            logging.warning(f"Duplicate monthly return for month {month}, keeping the last one")
        monthly_returns[month] = _parse_override(entry)

    return InvestmentConfig(
        global_params=global_params,
        returns=returns,
        fees=fees,
        monthly_returns=monthly_returns,
    )


def calculate_month_count(global_params: GlobalParameters) -> int:
    """Explicit num_months wins; otherwise the calendar-month span between the dates."""
    if global_params.num_months > 0:
        return global_params.num_months
    start, end = global_params.start_date, global_params.end_date
    return (end.year - start.year) * 12 + (end.month - start.month)


def default_monthly_return_rate(returns: Returns) -> Decimal:
    return returns.value / returns.applied_time_unit


def resolve_parameters(config: InvestmentConfig) -> SimulationParameters:
    return SimulationParameters(
        month_count=calculate_month_count(config.global_params),
        default_monthly_rate=default_monthly_return_rate(config.returns),
    )


def check_config(config: InvestmentConfig) -> None:
    """
    Reject configurations the projection cannot run on.

    Raises:
        ConfigurationError: listing every fatal problem found
    """
    errors = []
    g = config.global_params

    if g.starting_principal < 0:
        errors.append(f"Starting principal must not be negative, got {g.starting_principal}")
    if g.monthly_contribution < 0:
        errors.append(f"Monthly contribution must not be negative, got {g.monthly_contribution}")
    if config.returns.applied_time_unit <= 0:
        errors.append(f"Returns applied_time_unit must be positive, got {config.returns.applied_time_unit}")

    for fee in config.fees:
        if fee.value < 0:
            errors.append(f"Fee {fee.name or '<unnamed>'} must not be negative, got {fee.value}")
        if fee.applied_time_unit <= 0:
            errors.append(f"Fee {fee.name or '<unnamed>'} applied_time_unit must be positive, got {fee.applied_time_unit}")

    if g.starting_principal == 0 and g.monthly_contribution == 0 and calculate_month_count(g) > 0:
        errors.append("Starting principal and monthly contribution are both zero; nothing to project")

    if errors:
        raise ConfigurationError('; '.join(errors))


def validate_config(config: InvestmentConfig) -> List[str]:
    """
    Validate configuration and return list of warnings.

    Args:
        config: Configuration to validate

    Returns:
        List of warning messages (empty if nothing looks unusual)
    """
    issues = []
    g = config.global_params

    if config.returns.value < -1 or config.returns.value > 1:
        issues.append(f"Return rate {config.returns.value} seems unusual (expected -100% to 100%)")

    for fee in config.fees:
        if fee.value > Decimal('0.20'):
            issues.append(f"Fee {fee.name} rate {fee.value} seems unusual (expected 0-20%)")
        if fee.quote_time_unit != config.returns.quote_time_unit:
            issues.append(
                f"Fee {fee.name} is quoted per {fee.quote_time_unit} but returns per {config.returns.quote_time_unit}"
            )

    span = (g.end_date.year - g.start_date.year) * 12 + (g.end_date.month - g.start_date.month)
    if g.num_months > 0 and span > 0 and span != g.num_months:
        issues.append(f"num_months ({g.num_months}) overrides the {span} month date range")
    elif g.num_months <= 0 and g.end_date < g.start_date:
        issues.append(f"End date {g.end_date} is before start date {g.start_date}")

    month_count = calculate_month_count(g)
    for month, override in config.monthly_returns.items():
        if month < 1 or month > month_count:
            issues.append(f"Monthly return for month {month} is outside the projection (1-{month_count})")
        elif isinstance(override, ExplicitReturn) and abs(override.percent) > 100:
            issues.append(f"Monthly return {override.percent}% for month {month} seems unusual")

    return issues
