# fundcompare/routers/mappers.py
"""
Engine result -> response schema mapping shared by the routers.

Decimals are quantized before serialization so responses never carry
exponent notation ("1.5E+3") or solver noise.
"""

from decimal import ROUND_HALF_UP, Decimal

from fundcompare.schemas.comparison import (
    BenchmarkStatsResponse,
    ChartPointResponse,
    ComparisonResponse,
    RiskResponse,
    ScenarioResponse,
)
from fundcompare.schemas.funds import (
    BenchmarkInfoResponse,
    BenchmarkListResponse,
    FundDetailsResponse,
)
from fundcompare.schemas.portfolio import FundResultResponse, PortfolioResponse
from fundcompare.services.constants import (
    CURRENCY_PRECISION,
    PERCENTAGE_PRECISION,
    UNIT_PRECISION,
)
from fundcompare.services.engine.types import (
    BenchmarkInfo,
    BenchmarkStats,
    ComparisonResult,
    FundDetails,
    PortfolioResult,
    RiskMetrics,
    ScenarioResult,
)
from fundcompare.utils.date_utils import format_year_month


def decimal_to_str(value: Decimal | None, precision: Decimal = CURRENCY_PRECISION) -> str | None:
    """Convert Decimal to string for JSON response at a fixed precision."""
    if value is None:
        return None
    if isinstance(value, int):
        value = Decimal(value)
    return str(value.quantize(precision, rounding=ROUND_HALF_UP))


def pct_to_str(value: Decimal | None) -> str | None:
    return decimal_to_str(value, PERCENTAGE_PRECISION)


def map_risk(risk: RiskMetrics | None) -> RiskResponse | None:
    if risk is None:
        return None
    return RiskResponse(
        risk_score=decimal_to_str(risk.risk_score, PERCENTAGE_PRECISION),
        risk_level=risk.risk_level.value,
        volatility_pct=pct_to_str(risk.volatility_pct),
        sharpe_ratio=decimal_to_str(risk.sharpe_ratio, PERCENTAGE_PRECISION),
        risk_free_rate_pct=pct_to_str(risk.risk_free_rate_pct),
    )


def map_scenario(scenario: ScenarioResult | None) -> ScenarioResponse | None:
    if scenario is None:
        return None
    sim = scenario.simulation
    returns = scenario.returns
    return ScenarioResponse(
        label=scenario.label,
        instrument_id=scenario.instrument_id,
        invested=decimal_to_str(sim.total_contributed),
        current_value=decimal_to_str(sim.current_value),
        units=decimal_to_str(sim.units_held, UNIT_PRECISION),
        valuation_price=decimal_to_str(sim.valuation_price, UNIT_PRECISION),
        valuation_date=sim.valuation_date,
        absolute_return=decimal_to_str(returns.absolute_return),
        absolute_return_pct=pct_to_str(returns.absolute_return_pct),
        annualized_return_pct=pct_to_str(returns.annualized_return_pct),
        annualized_method=returns.annualized_method,
        approximate=returns.approximate,
        contributions=len(sim.contributions),
        skipped_months=[format_year_month(p) for p in sim.skipped_months],
        risk=map_risk(scenario.risk),
    )


def map_comparison(result: ComparisonResult) -> ComparisonResponse:
    """Map ComparisonResult to its response schema."""
    return ComparisonResponse(
        mode=result.mode.value,
        start_date=result.start_date,
        end_date=result.end_date,
        as_of=result.as_of,
        current=map_scenario(result.current),
        comparison=map_scenario(result.comparison),
        benchmark=map_scenario(result.benchmark),
        difference=decimal_to_str(result.difference),
        percentage_difference=pct_to_str(result.percentage_difference),
        best_performer=result.best_performer,
        chart_data=[
            ChartPointResponse(
                period=point.label,
                invested=decimal_to_str(point.invested),
                current=decimal_to_str(point.current),
                comparison=decimal_to_str(point.comparison),
                benchmark=decimal_to_str(point.benchmark),
            )
            for point in result.chart_data
        ],
        warnings=list(result.warnings),
    )


def map_portfolio(result: PortfolioResult) -> PortfolioResponse:
    """Map PortfolioResult to its response schema."""
    return PortfolioResponse(
        total_invested=decimal_to_str(result.total_invested),
        current_value=decimal_to_str(result.current_value),
        absolute_return=decimal_to_str(result.absolute_return),
        absolute_return_pct=pct_to_str(result.absolute_return_pct),
        annualized_return_pct=pct_to_str(result.annualized_return_pct),
        approximate=result.approximate,
        risk=map_risk(result.risk),
        funds=[
            FundResultResponse(
                instrument_id=fund.instrument_id,
                category=fund.category,
                allocation=pct_to_str(fund.allocation),
                monthly_amount=decimal_to_str(fund.monthly_amount),
                invested=decimal_to_str(fund.scenario.invested),
                current_value=decimal_to_str(fund.scenario.current_value),
                units=decimal_to_str(fund.scenario.simulation.units_held, UNIT_PRECISION),
                absolute_return_pct=pct_to_str(fund.scenario.returns.absolute_return_pct),
                annualized_return_pct=pct_to_str(fund.scenario.returns.annualized_return_pct),
                risk=map_risk(fund.scenario.risk),
            )
            for fund in result.funds
        ],
        category_breakdown={
            category: pct_to_str(weight)
            for category, weight in result.category_breakdown.items()
        },
        recommendations=list(result.recommendations),
    )


def map_benchmark_stats(stats: BenchmarkStats) -> BenchmarkStatsResponse:
    """Map BenchmarkStats to its response schema."""
    return BenchmarkStatsResponse(
        key=stats.key,
        period=stats.period,
        annualized_volatility_pct=pct_to_str(stats.annualized_volatility_pct),
        annualized_return_pct=pct_to_str(stats.annualized_return_pct),
        total_return_pct=pct_to_str(stats.total_return_pct),
        max_drawdown_pct=pct_to_str(stats.max_drawdown_pct),
        data_points=stats.data_points,
        start_date=stats.start_date,
        end_date=stats.end_date,
    )


def map_fund_details(details: FundDetails) -> FundDetailsResponse:
    """Map FundDetails to its response schema."""
    return FundDetailsResponse(
        instrument_id=details.instrument_id,
        name=details.name,
        category=details.category,
        latest_price=decimal_to_str(details.latest_price, UNIT_PRECISION),
        latest_date=details.latest_date,
        observations=details.observations,
    )


def map_benchmark_list(benchmarks: list[BenchmarkInfo]) -> BenchmarkListResponse:
    return BenchmarkListResponse(
        benchmarks=[
            BenchmarkInfoResponse(
                key=b.key,
                name=b.name,
                available=b.available,
                proxy_for=list(b.proxy_for),
            )
            for b in benchmarks
        ]
    )
