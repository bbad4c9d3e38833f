"""
signalbt -- Deterministic backtesting of crossing strategies.

Replays a single-instrument price series (real or model-forecasted)
through a rule-based strategy and reports what trades would have occurred
and how profitable they were.

Pipeline:
  - indicators.py: MACD (fast/slow EMA, signal line) and percent change
  - crossing.py: crossing events against a constant or a second series
  - signals.py: strategy registry (zero cross, filter rule, signal-line cross)
  - rules.py: signals to order intents, at most one open position
  - simulator.py: same-bar market fills, FLAT/LONG position, trade pairing
  - ledger.py: cash and per-bar equity curve
  - statistics.py: net / average P/L, transactions, largest win, ...

Quick start::

    from signalbt import Engine, StrategyConfig, load_bars_csv

    bars = load_bars_csv("AAPL_daily.csv", ticker="AAPL")
    config = StrategyConfig(kind="filter_rule", threshold=0.07, quantity=100)
    result = Engine().run(bars, config)
    print(generate_report(result))
"""

from signalbt.models import (
    PriceBar,
    Instrument,
    Signal,
    SignalKind,
    OrderIntent,
    OrderSide,
    OrderType,
    Position,
    PositionState,
    Fill,
    Trade,
)
from signalbt.errors import (
    BacktestError,
    ConfigError,
    UnknownStrategyError,
    InsufficientDataError,
    StrategyApplicationError,
)
from signalbt.config import IndicatorParams, StrategyConfig, load_strategy_config
from signalbt.indicators import compute_indicator, ema, macd, percent_change
from signalbt.crossing import Relationship, detect_crossing
from signalbt.signals import STRATEGY_BUILDERS, build_strategy
from signalbt.rules import derive_order_intents
from signalbt.simulator import ExecutionSimulator
from signalbt.ledger import PortfolioLedger, PortfolioState
from signalbt.statistics import TradeStatistics, summarize
from signalbt.engine import (
    BacktestJob,
    BacktestSession,
    Engine,
    RunResult,
    forecast_jobs,
    price_field_jobs,
    run_batch,
    split_jobs,
    threshold_jobs,
)
from signalbt.forecast import LagRegressionForecaster
from signalbt.data import (
    bars_from_dicts,
    bars_from_prices,
    load_bars_csv,
    split_series,
    validate_series,
)
from signalbt.report import generate_report, summary_table

__all__ = [
    "PriceBar",
    "Instrument",
    "Signal",
    "SignalKind",
    "OrderIntent",
    "OrderSide",
    "OrderType",
    "Position",
    "PositionState",
    "Fill",
    "Trade",
    "BacktestError",
    "ConfigError",
    "UnknownStrategyError",
    "InsufficientDataError",
    "StrategyApplicationError",
    "IndicatorParams",
    "StrategyConfig",
    "load_strategy_config",
    "compute_indicator",
    "ema",
    "macd",
    "percent_change",
    "Relationship",
    "detect_crossing",
    "STRATEGY_BUILDERS",
    "build_strategy",
    "derive_order_intents",
    "ExecutionSimulator",
    "PortfolioLedger",
    "PortfolioState",
    "TradeStatistics",
    "summarize",
    "BacktestJob",
    "BacktestSession",
    "Engine",
    "RunResult",
    "forecast_jobs",
    "price_field_jobs",
    "run_batch",
    "split_jobs",
    "threshold_jobs",
    "LagRegressionForecaster",
    "bars_from_dicts",
    "bars_from_prices",
    "load_bars_csv",
    "split_series",
    "validate_series",
    "generate_report",
    "summary_table",
]
