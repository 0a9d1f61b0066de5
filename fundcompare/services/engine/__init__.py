# fundcompare/services/engine/__init__.py
"""
Return Calculation Engine Package.

Pure, synchronous calculations over already-fetched price series:
- Normalization (price on or before a date, one price per month)
- Investment simulation (lump sum, monthly SIP)
- Returns (absolute, CAGR, XIRR)
- Risk (benchmark volatility proxy, risk score, Sharpe)
- Scenario comparison and multi-fund SIP analysis

Architecture:
    engine/
    ├── __init__.py              # This file - package exports
    ├── types.py                 # Data classes for inputs and results
    ├── normalizer.py            # Series alignment
    ├── simulator.py             # Lump sum / SIP replay
    ├── returns.py               # CAGR, XIRR
    ├── risk.py                  # Volatility, risk score, Sharpe
    ├── comparator.py            # Current vs comparison vs benchmark
    └── portfolio.py             # Multi-fund SIP

Usage:
    from fundcompare.services.engine import compare_scenarios, InvestmentRequest

    result = compare_scenarios(
        current_series,
        comparison_series,
        InvestmentRequest(InvestmentMode.SIP, Decimal("5000"), date(2020, 1, 1), date(2023, 12, 31)),
        as_of=date.today(),
    )
    print(result.best_performer, result.difference)

Data Flow:
    PriceSeries ──► Normalizer ──► Simulator ──► Return Solver ──┐
                                                  Risk Estimator ─┼─► Comparator
                                                                  ┘
"""

from fundcompare.services.engine.comparator import (
    build_chart_data,
    compare_scenarios,
    pick_best_performer,
    run_scenario,
)
from fundcompare.services.engine.normalizer import (
    latest_price,
    monthly_representative,
    price_on_or_before,
    validate_series,
)
from fundcompare.services.engine.portfolio import (
    analyze_sip_portfolio,
    build_recommendations,
    categorize_scheme,
)
from fundcompare.services.engine.returns import (
    ReturnsCalculator,
    calculate_absolute_return,
    calculate_cagr,
    calculate_xirr,
)
from fundcompare.services.engine.risk import (
    RiskCalculator,
    aggregate_risk_score,
    build_risk_profile,
    calculate_benchmark_stats,
    calculate_sharpe_ratio,
    calculate_volatility,
    portfolio_volatility,
    risk_level_for_score,
    volatility_to_risk_score,
)
from fundcompare.services.engine.simulator import (
    simulate,
    simulate_lump_sum,
    simulate_sip,
    validate_request,
)
from fundcompare.services.engine.types import (
    # Input types
    PricePoint,
    PriceSeries,
    InvestmentMode,
    InvestmentRequest,
    CashFlow,
    FundAllocation,
    # Result types
    SimulationResult,
    XirrResult,
    ReturnMetrics,
    RiskLevel,
    RiskMetrics,
    BenchmarkStats,
    BenchmarkInfo,
    FundDetails,
    InstrumentRiskProfile,
    ScenarioResult,
    ChartPoint,
    ComparisonResult,
    FundSipResult,
    PortfolioResult,
)

__all__ = [
    # Input types
    "PricePoint",
    "PriceSeries",
    "InvestmentMode",
    "InvestmentRequest",
    "CashFlow",
    "FundAllocation",

    # Result types
    "SimulationResult",
    "XirrResult",
    "ReturnMetrics",
    "RiskLevel",
    "RiskMetrics",
    "BenchmarkStats",
    "BenchmarkInfo",
    "FundDetails",
    "InstrumentRiskProfile",
    "ScenarioResult",
    "ChartPoint",
    "ComparisonResult",
    "FundSipResult",
    "PortfolioResult",

    # Calculators
    "ReturnsCalculator",
    "RiskCalculator",

    # Normalizer
    "validate_series",
    "price_on_or_before",
    "monthly_representative",
    "latest_price",

    # Simulator
    "simulate",
    "simulate_lump_sum",
    "simulate_sip",
    "validate_request",

    # Returns
    "calculate_absolute_return",
    "calculate_cagr",
    "calculate_xirr",

    # Risk
    "calculate_volatility",
    "calculate_benchmark_stats",
    "calculate_sharpe_ratio",
    "volatility_to_risk_score",
    "risk_level_for_score",
    "build_risk_profile",
    "aggregate_risk_score",
    "portfolio_volatility",

    # Comparison
    "run_scenario",
    "compare_scenarios",
    "pick_best_performer",
    "build_chart_data",

    # Portfolio
    "categorize_scheme",
    "analyze_sip_portfolio",
    "build_recommendations",
]
