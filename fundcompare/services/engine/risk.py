# fundcompare/services/engine/risk.py
"""
Risk calculation functions for the Return Calculation Engine.

This module contains pure functions for estimating risk:
- Volatility: Sample standard deviation of daily returns, annualized
- Max Drawdown: Largest peak-to-trough decline
- Risk Score: Volatility banded onto a 1-10 scale, adjusted per category
- Portfolio aggregation: Capital-weighted score and volatility
- Sharpe Ratio: Risk-adjusted return

Instruments are scored through a proxy: every category maps to a benchmark
index whose trailing volatility stands in for the instrument's own.

Formulas:
    Volatility (annualized %) = std(daily_returns) × √252 × 100

    Daily return = P_t / P_(t-1) - 1

    Portfolio volatility = sqrt(Σ (w_i × σ_i)²)
        (uncorrelated simplification, w_i = capital weight)

    Sharpe Ratio = (R_p - R_f) / σ_p   (all in percent)

Missing or unreachable benchmark data never produces an invented number:
the lookup error is raised as RiskDataUnavailableError.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Iterable

from fundcompare.services.constants import (
    CALENDAR_DAYS_PER_YEAR,
    CATEGORY_BENCHMARKS,
    CATEGORY_RISK_ADJUSTMENTS,
    MAX_RISK_SCORE,
    MIN_DAYS_FOR_ANNUALIZATION,
    MIN_OBSERVATIONS_FOR_VOLATILITY,
    MIN_RISK_SCORE,
    ONE_HUNDRED,
    RATE_PRECISION,
    RISK_LEVEL_HIGH_MAX,
    RISK_LEVEL_LOW_MAX,
    RISK_LEVEL_MODERATE_MAX,
    TRADING_DAYS_PER_YEAR,
    UNBENCHMARKED_RISK_SCORE,
    VOLATILITY_SCORE_BANDS,
    ZERO,
)
from fundcompare.services.engine.returns import calculate_cagr
from fundcompare.services.engine.types import (
    BenchmarkStats,
    InstrumentRiskProfile,
    PriceSeries,
    RiskLevel,
    RiskMetrics,
)
from fundcompare.services.exceptions import (
    InsufficientDataError,
    RiskDataUnavailableError,
    ServiceError,
)

logger = logging.getLogger(__name__)

# Benchmark key -> annualized volatility percent
VolatilityLookup = Callable[[str], Decimal]


# =============================================================================
# DAILY RETURNS & VOLATILITY
# =============================================================================

def calculate_daily_returns(series: PriceSeries) -> list[Decimal]:
    """
    Calculate simple returns between consecutive observations.

    Args:
        series: Ascending price series

    Returns:
        List of returns as decimals (one less than input length)
    """
    return [
        current.price / previous.price - Decimal("1")
        for previous, current in zip(series, series[1:])
    ]


def _decimal_stdev(values: list[Decimal]) -> Decimal | None:
    """
    Sample standard deviation in pure Decimal arithmetic.

    Formula: σ = sqrt(Σ(x - μ)² / (n - 1))

    Returns:
        Standard deviation, or None with fewer than two values
    """
    if len(values) < 2:
        return None

    n = Decimal(len(values))
    mean_val = sum(values, ZERO) / n
    sum_squared_diffs = sum(((x - mean_val) ** 2 for x in values), ZERO)
    variance = sum_squared_diffs / (n - Decimal("1"))

    return variance.sqrt()


def calculate_volatility(
        daily_returns: list[Decimal],
        annualize: bool = True,
) -> Decimal | None:
    """
    Calculate volatility as a percentage.

    Args:
        daily_returns: Daily simple returns
        annualize: If True, multiply by √252

    Returns:
        Volatility in percent (18.5 = 18.5%) at 1e-8 precision, or None if
        insufficient data
    """
    vol = _decimal_stdev(daily_returns)

    if vol is None:
        return None

    if annualize:
        vol = vol * Decimal(TRADING_DAYS_PER_YEAR).sqrt()

    return (vol * ONE_HUNDRED).quantize(RATE_PRECISION, rounding=ROUND_HALF_UP)


def calculate_max_drawdown(series: PriceSeries) -> Decimal:
    """
    Largest peak-to-trough decline as a positive percentage.

    Returns 0 for a series that never falls below a prior peak.
    """
    if not series:
        return ZERO

    peak = series[0].price
    max_drawdown = ZERO

    for point in series:
        if point.price > peak:
            peak = point.price
            continue
        drawdown = (peak - point.price) / peak
        if drawdown > max_drawdown:
            max_drawdown = drawdown

    return max_drawdown * ONE_HUNDRED


def calculate_benchmark_stats(key: str, period: str, series: PriceSeries) -> BenchmarkStats:
    """
    Derive benchmark statistics from an index series.

    Args:
        key: Benchmark key the series belongs to
        period: Trailing period label the series covers
        series: Ascending index levels

    Returns:
        BenchmarkStats

    Raises:
        InsufficientDataError: With fewer than three observations
    """
    if len(series) < MIN_OBSERVATIONS_FOR_VOLATILITY:
        raise InsufficientDataError(
            f"Benchmark '{key}' has {len(series)} observation(s) for period {period}; "
            f"at least {MIN_OBSERVATIONS_FOR_VOLATILITY} are required",
            instrument_id=key,
        )

    first, last = series[0], series[-1]
    volatility = calculate_volatility(calculate_daily_returns(series))

    elapsed_days = (last.date - first.date).days
    annualized = None
    if elapsed_days >= MIN_DAYS_FOR_ANNUALIZATION:
        annualized = calculate_cagr(
            first.price,
            last.price,
            Decimal(elapsed_days) / Decimal(CALENDAR_DAYS_PER_YEAR),
        )

    stats = BenchmarkStats(
        key=key,
        period=period,
        annualized_volatility_pct=volatility,
        annualized_return_pct=annualized,
        total_return_pct=(last.price / first.price - Decimal("1")) * ONE_HUNDRED,
        max_drawdown_pct=calculate_max_drawdown(series),
        data_points=len(series),
        start_date=first.date,
        end_date=last.date,
    )

    logger.debug(
        f"Benchmark stats for {key} ({period}): vol={volatility:.2f}%, "
        f"points={len(series)}"
    )
    return stats


# =============================================================================
# RISK SCORING
# =============================================================================

def volatility_to_risk_score(volatility_pct: Decimal) -> Decimal:
    """
    Map annualized volatility onto the 1-10 risk scale.

    Piecewise linear, continuous and non-decreasing:
        <10%   -> 1..2
        10-20% -> 2..4
        20-30% -> 4..6
        >30%   -> 6..10 (capped)

    Args:
        volatility_pct: Annualized volatility in percent

    Returns:
        Unadjusted score in [1, 10]
    """
    vol = max(volatility_pct, ZERO)

    lower, base, slope = VOLATILITY_SCORE_BANDS[0]
    for band in VOLATILITY_SCORE_BANDS:
        if vol >= band[0]:
            lower, base, slope = band

    score = base + (vol - lower) * slope
    return min(score, MAX_RISK_SCORE)


def apply_category_adjustment(score: Decimal, category: str) -> Decimal:
    """Apply the fixed category adjustment and clamp to [1, 10]."""
    adjusted = score + CATEGORY_RISK_ADJUSTMENTS.get(category, ZERO)
    return max(MIN_RISK_SCORE, min(adjusted, MAX_RISK_SCORE))


def risk_level_for_score(score: Decimal) -> RiskLevel:
    """Band a score: <=2 Low, <=4 Moderate, <=6 High, else Very High."""
    if score <= RISK_LEVEL_LOW_MAX:
        return RiskLevel.LOW
    if score <= RISK_LEVEL_MODERATE_MAX:
        return RiskLevel.MODERATE
    if score <= RISK_LEVEL_HIGH_MAX:
        return RiskLevel.HIGH
    return RiskLevel.VERY_HIGH


def resolve_benchmark_key(category: str) -> str | None:
    """
    Return the proxy benchmark of a category.

    Raises:
        RiskDataUnavailableError: If the category is unknown
    """
    if category not in CATEGORY_BENCHMARKS:
        raise RiskDataUnavailableError(category, reason="unknown category")
    return CATEGORY_BENCHMARKS[category]


def build_risk_profile(category: str, volatility_lookup: VolatilityLookup) -> InstrumentRiskProfile:
    """
    Resolve the risk inputs of one instrument from its category.

    Categories without a benchmark (Debt) get the fixed unbenchmarked score
    and zero volatility.

    Args:
        category: Instrument category
        volatility_lookup: Returns the annualized volatility of a benchmark key

    Returns:
        InstrumentRiskProfile

    Raises:
        RiskDataUnavailableError: Unknown category, or the lookup failed
    """
    benchmark_key = resolve_benchmark_key(category)

    if benchmark_key is None:
        return InstrumentRiskProfile(
            category=category,
            benchmark_key=None,
            volatility_pct=ZERO,
            risk_score=UNBENCHMARKED_RISK_SCORE,
        )

    try:
        volatility = volatility_lookup(benchmark_key)
    except RiskDataUnavailableError:
        raise
    except ServiceError as e:
        raise RiskDataUnavailableError(category, benchmark_key, reason=e.message) from e

    score = apply_category_adjustment(volatility_to_risk_score(volatility), category)

    logger.debug(
        f"Risk profile {category}: benchmark={benchmark_key}, "
        f"vol={volatility:.2f}%, score={score}"
    )
    return InstrumentRiskProfile(
        category=category,
        benchmark_key=benchmark_key,
        volatility_pct=volatility,
        risk_score=score,
    )


# =============================================================================
# AGGREGATION & SHARPE
# =============================================================================

def _normalized_weights(weights: list[Decimal]) -> list[Decimal]:
    total = sum(weights, ZERO)
    if total <= ZERO:
        raise InsufficientDataError("No invested capital to weight risk by")
    return [w / total for w in weights]


def aggregate_risk_score(weighted_scores: Iterable[tuple[Decimal, Decimal]]) -> Decimal:
    """
    Capital-weighted mean of per-instrument scores.

    Args:
        weighted_scores: (capital, score) pairs

    Returns:
        Aggregate score in [1, 10]
    """
    pairs = list(weighted_scores)
    weights = _normalized_weights([capital for capital, _ in pairs])
    return sum((w * score for w, (_, score) in zip(weights, pairs)), ZERO)


def portfolio_volatility(weighted_volatilities: Iterable[tuple[Decimal, Decimal]]) -> Decimal:
    """
    Combine instrument volatilities assuming zero correlation.

    Formula: sqrt(Σ (w_i × σ_i)²)

    Args:
        weighted_volatilities: (capital, volatility_pct) pairs

    Returns:
        Portfolio volatility in percent
    """
    pairs = list(weighted_volatilities)
    weights = _normalized_weights([capital for capital, _ in pairs])
    variance = sum(((w * vol) ** 2 for w, (_, vol) in zip(weights, pairs)), ZERO)
    return variance.sqrt()


def calculate_sharpe_ratio(
        annualized_return_pct: Decimal | None,
        volatility_pct: Decimal,
        risk_free_rate_pct: Decimal,
) -> Decimal | None:
    """
    Calculate Sharpe Ratio.

    Formula: Sharpe = (R_p - R_f) / σ_p

    Args:
        annualized_return_pct: Annualized return in percent
        volatility_pct: Annualized volatility in percent
        risk_free_rate_pct: Annualized risk-free rate in percent

    Returns:
        Sharpe ratio, or None if volatility is zero or the return is unknown
    """
    if annualized_return_pct is None or volatility_pct is None or volatility_pct == ZERO:
        return None

    return (annualized_return_pct - risk_free_rate_pct) / volatility_pct


# =============================================================================
# COMBINED RISK CALCULATOR
# =============================================================================

class RiskCalculator:
    """
    Builds RiskMetrics for single instruments and capital-weighted portfolios.
    """

    @staticmethod
    def for_instrument(
            profile: InstrumentRiskProfile,
            annualized_return_pct: Decimal | None,
            risk_free_rate_pct: Decimal,
    ) -> RiskMetrics:
        """Risk figures of one instrument from its resolved profile."""
        return RiskMetrics(
            risk_score=profile.risk_score,
            risk_level=risk_level_for_score(profile.risk_score),
            volatility_pct=profile.volatility_pct,
            sharpe_ratio=calculate_sharpe_ratio(
                annualized_return_pct, profile.volatility_pct, risk_free_rate_pct
            ),
            risk_free_rate_pct=risk_free_rate_pct,
        )

    @staticmethod
    def for_portfolio(
            holdings: list[tuple[Decimal, InstrumentRiskProfile]],
            annualized_return_pct: Decimal | None,
            risk_free_rate_pct: Decimal,
    ) -> RiskMetrics:
        """
        Aggregate risk figures over several holdings.

        Args:
            holdings: (capital, profile) pairs
            annualized_return_pct: Portfolio annualized return in percent
            risk_free_rate_pct: Risk-free rate in percent

        Returns:
            RiskMetrics for the portfolio
        """
        score = aggregate_risk_score((capital, p.risk_score) for capital, p in holdings)
        volatility = portfolio_volatility((capital, p.volatility_pct) for capital, p in holdings)

        return RiskMetrics(
            risk_score=score,
            risk_level=risk_level_for_score(score),
            volatility_pct=volatility,
            sharpe_ratio=calculate_sharpe_ratio(annualized_return_pct, volatility, risk_free_rate_pct),
            risk_free_rate_pct=risk_free_rate_pct,
        )
