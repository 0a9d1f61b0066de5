# fundcompare/services/engine/comparator.py
"""
Scenario comparison for the Return Calculation Engine.

Runs the same InvestmentRequest against the current instrument, the
comparison instrument and (optionally) a benchmark index, then reconciles
the outcomes:

    difference            = comparison value - current value
    percentage_difference = difference / invested × 100
    best_performer        = largest final value
                            (ties: current, then comparison, then benchmark)

Chart data holds one point per month present in BOTH primary trajectories;
the benchmark value is attached when the benchmark has that month. Only the
most recent chart_max_points points are kept.

A primary scenario without usable data fails the whole comparison. A
benchmark without usable data is dropped with a warning.
"""

import logging
from datetime import date
from decimal import Decimal

from fundcompare.services.constants import CHART_MAX_POINTS, ONE_HUNDRED, ZERO
from fundcompare.services.engine.returns import ReturnsCalculator
from fundcompare.services.engine.risk import RiskCalculator
from fundcompare.services.engine.simulator import simulate, validate_request
from fundcompare.services.engine.types import (
    ChartPoint,
    ComparisonResult,
    InstrumentRiskProfile,
    InvestmentMode,
    InvestmentRequest,
    PriceSeries,
    ScenarioResult,
)
from fundcompare.services.exceptions import InsufficientDataError
from fundcompare.utils.date_utils import format_year_month

logger = logging.getLogger(__name__)

# Tie-break order for best_performer
PARTICIPANT_ORDER = ("current", "comparison", "benchmark")


def run_scenario(
        label: str,
        instrument_id: str,
        series: PriceSeries,
        request: InvestmentRequest,
        as_of: date,
        risk_profile: InstrumentRiskProfile | None = None,
        risk_free_rate_pct: Decimal | None = None,
) -> ScenarioResult:
    """
    Simulate one participant and compute its returns (and risk).

    Args:
        label: "current", "comparison" or "benchmark"
        instrument_id: Instrument or benchmark key
        series: Its price series
        request: Shared investment request
        as_of: Valuation date ("now")
        risk_profile: Resolved category risk inputs, if any
        risk_free_rate_pct: Needed with risk_profile for the Sharpe ratio

    Returns:
        ScenarioResult
    """
    simulation = simulate(series, request, as_of)
    returns = ReturnsCalculator.calculate_all(simulation, as_of)

    risk = None
    if risk_profile is not None:
        risk = RiskCalculator.for_instrument(
            risk_profile,
            returns.annualized_return_pct,
            risk_free_rate_pct if risk_free_rate_pct is not None else ZERO,
        )

    return ScenarioResult(
        label=label,
        instrument_id=instrument_id,
        simulation=simulation,
        returns=returns,
        risk=risk,
    )


def pick_best_performer(scenarios: list[ScenarioResult]) -> str:
    """
    Label of the scenario with the largest current value.

    Ties go to the earlier participant in current, comparison, benchmark order.
    """
    ordered = sorted(scenarios, key=lambda s: PARTICIPANT_ORDER.index(s.label))
    best = ordered[0]
    for scenario in ordered[1:]:
        if scenario.current_value > best.current_value:
            best = scenario
    return best.label


def build_chart_data(
        current: ScenarioResult,
        comparison: ScenarioResult,
        benchmark: ScenarioResult | None = None,
        max_points: int = CHART_MAX_POINTS,
) -> list[ChartPoint]:
    """
    Merge participant trajectories into chart points.

    Args:
        current: Current scenario
        comparison: Comparison scenario
        benchmark: Optional benchmark scenario
        max_points: Most recent points to keep

    Returns:
        Chart points in chronological order
    """
    comparison_by_period = {p.period: p for p in comparison.simulation.trajectory}
    benchmark_by_period = (
        {p.period: p for p in benchmark.simulation.trajectory} if benchmark else {}
    )

    points: list[ChartPoint] = []
    for value_point in current.simulation.trajectory:
        other = comparison_by_period.get(value_point.period)
        if other is None:
            continue

        bench = benchmark_by_period.get(value_point.period)
        points.append(
            ChartPoint(
                period=value_point.period,
                invested=value_point.invested,
                current=value_point.value,
                comparison=other.value,
                benchmark=bench.value if bench else None,
            )
        )

    if max_points > 0:
        return points[-max_points:]
    return points


def compare_scenarios(
        current_series: PriceSeries,
        comparison_series: PriceSeries,
        request: InvestmentRequest,
        as_of: date,
        benchmark_series: PriceSeries | None = None,
        current_id: str = "current",
        comparison_id: str = "comparison",
        benchmark_id: str | None = None,
        current_profile: InstrumentRiskProfile | None = None,
        comparison_profile: InstrumentRiskProfile | None = None,
        risk_free_rate_pct: Decimal | None = None,
        chart_max_points: int = CHART_MAX_POINTS,
) -> ComparisonResult:
    """
    Compare current vs comparison (vs benchmark) over the same request.

    Args:
        current_series: Price series of the instrument held
        comparison_series: Price series of the alternative
        request: Investment request applied to every participant
        as_of: Valuation date ("now")
        benchmark_series: Optional benchmark index series
        current_id: Identifier reported for the current instrument
        comparison_id: Identifier reported for the comparison instrument
        benchmark_id: Identifier reported for the benchmark
        current_profile: Risk inputs for the current instrument
        comparison_profile: Risk inputs for the comparison instrument
        risk_free_rate_pct: Risk-free rate for Sharpe ratios
        chart_max_points: Most recent chart points to keep

    Returns:
        ComparisonResult

    Raises:
        InvalidRequestError: If the request is malformed
        InsufficientDataError: If either primary series cannot be simulated
    """
    mode = validate_request(request, as_of)

    current = run_scenario(
        "current", current_id, current_series, request, as_of,
        current_profile, risk_free_rate_pct,
    )
    comparison = run_scenario(
        "comparison", comparison_id, comparison_series, request, as_of,
        comparison_profile, risk_free_rate_pct,
    )

    warnings: list[str] = []
    benchmark = None
    if benchmark_series is not None:
        try:
            benchmark = run_scenario(
                "benchmark", benchmark_id or "benchmark", benchmark_series, request, as_of,
            )
        except InsufficientDataError as e:
            logger.warning(f"Benchmark {benchmark_id} dropped from comparison: {e.message}")
            warnings.append(f"Benchmark '{benchmark_id}' unavailable: {e.message}")

    for scenario in (current, comparison, benchmark):
        if scenario is not None and scenario.simulation.skipped_months:
            skipped = ", ".join(format_year_month(p) for p in scenario.simulation.skipped_months)
            warnings.append(f"{scenario.label} skipped months without price data: {skipped}")
        if scenario is not None and scenario.returns.approximate:
            warnings.append(f"{scenario.label} annualized return is approximate")

    difference = comparison.current_value - current.current_value
    invested = current.invested
    percentage_difference = difference / invested * ONE_HUNDRED if invested > ZERO else ZERO

    participants = [s for s in (current, comparison, benchmark) if s is not None]

    result = ComparisonResult(
        mode=mode,
        start_date=request.start_date,
        end_date=request.end_date if mode == InvestmentMode.SIP else as_of,
        as_of=as_of,
        current=current,
        comparison=comparison,
        benchmark=benchmark,
        difference=difference,
        percentage_difference=percentage_difference,
        best_performer=pick_best_performer(participants),
        chart_data=build_chart_data(current, comparison, benchmark, chart_max_points),
        warnings=warnings,
    )

    logger.debug(
        f"Compared {current_id} vs {comparison_id}: difference={difference:.2f}, "
        f"best={result.best_performer}"
    )
    return result
