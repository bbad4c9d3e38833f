"""
signalbt -- Backtesting engine.

Runs one strategy over one price series and returns a :class:`RunResult`.

Usage::

    from signalbt import Engine, StrategyConfig, load_bars_csv

    bars = load_bars_csv("AAPL_daily.csv", ticker="AAPL")
    result = Engine().run(bars, StrategyConfig(kind="zero_cross"))
    print(result.statistics.net_pnl)

Each run:
  1. Validates the config and resolves the strategy from the registry.
  2. Computes indicators and signals in one forward pass.
  3. Converts signals to order intents (at most one open position).
  4. Replays the bars through a fresh simulator and ledger.
  5. Summarises the trade log into :class:`TradeStatistics`.

A run never raises.  Invalid configs and unexpected failures produce a
``failed`` result with empty logs; a series too short for the indicator
produces an ``ok`` result with zero signals and a warning.  Batches of
independent runs go through :func:`run_batch`, which carries on past
failed runs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from numbers import Real
from typing import Dict, Iterable, List, Optional, Sequence

from signalbt.config import StrategyConfig
from signalbt.data import split_series, validate_series
from signalbt.errors import (
    ConfigError,
    InsufficientDataError,
    StrategyApplicationError,
)
from signalbt.forecast import LagRegressionForecaster
from signalbt.ledger import PortfolioLedger
from signalbt.models import (
    Fill,
    Instrument,
    OrderIntent,
    Position,
    PriceBar,
    Signal,
    Trade,
)
from signalbt.rules import derive_order_intents
from signalbt.signals import build_strategy
from signalbt.simulator import ExecutionSimulator
from signalbt.statistics import TradeStatistics, summarize
from signalbt.utils import generate_run_id, log_run_event

logger = logging.getLogger(__name__)

STATUS_OK = "ok"
STATUS_FAILED = "failed"


@dataclass
class RunResult:
    """Outcome of a single backtest run.

    ``status`` is ``"ok"`` or ``"failed"``; a failed run carries the error
    message and degenerate (all-zero) statistics.
    """
    name: str
    config: StrategyConfig
    status: str = STATUS_OK
    error: Optional[str] = None
    warnings: List[str] = field(default_factory=list)
    signals: List[Signal] = field(default_factory=list)
    intents: List[OrderIntent] = field(default_factory=list)
    fills: List[Fill] = field(default_factory=list)
    trades: List[Trade] = field(default_factory=list)
    equity_curve: List[Dict[str, float]] = field(default_factory=list)
    final_position: Optional[Position] = None
    statistics: TradeStatistics = field(default_factory=TradeStatistics)
    bars_processed: int = 0
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    run_id: str = ""

    @property
    def ok(self) -> bool:
        return self.status == STATUS_OK


class BacktestSession:
    """Mutable state of one run: simulator (and its position), ledger, logs.

    A new session is constructed for every run; sessions never share state.
    """

    def __init__(self, config: StrategyConfig, instrument: Instrument) -> None:
        self.config = config
        self.instrument = instrument
        self.simulator = ExecutionSimulator(instrument, price_field=config.price_field)
        self.ledger = PortfolioLedger(config.initial_equity, multiplier=instrument.multiplier)
        self.signals: List[Signal] = []
        self.intents: List[OrderIntent] = []
        self.warnings: List[str] = []

    @property
    def position(self) -> Position:
        return self.simulator.position

    @property
    def fills(self) -> List[Fill]:
        return self.simulator.fills

    @property
    def trades(self) -> List[Trade]:
        return self.simulator.trades


class Engine:
    """Main backtesting engine.

    Args:
        instrument: Descriptor of the traded instrument.  Defaults to one
            built from the first bar's ticker.
    """

    def __init__(self, instrument: Optional[Instrument] = None) -> None:
        self.instrument = instrument

    def run(
        self,
        bars: Sequence[PriceBar],
        config: StrategyConfig,
        name: str = "",
    ) -> RunResult:
        """Execute the backtest.

        Args:
            bars: Price series sorted by timestamp.
            config: Strategy configuration.
            name: Run label; defaults to ``config.name``.

        Returns:
            A :class:`RunResult`; check :attr:`RunResult.ok`.
        """
        run_id = generate_run_id()
        initial_equity = config.initial_equity if isinstance(config.initial_equity, Real) else 0.0
        result = RunResult(
            name=name or str(config.kind),
            config=config,
            bars_processed=len(bars),
            start_time=bars[0].timestamp if bars else None,
            end_time=bars[-1].timestamp if bars else None,
            run_id=run_id,
            statistics=TradeStatistics(
                initial_equity=initial_equity,
                final_equity=initial_equity,
            ),
        )

        try:
            result.name = name or config.name
            config.validate()
            strategy = build_strategy(config)
        except ConfigError as e:
            log_run_event(logger, logging.WARNING, run_id, result.name,
                          "Invalid configuration", error=e)
            return self._failed(result, e)
        except Exception as e:
            logger.exception("[%s] Could not build strategy for %s", run_id, result.name)
            return self._failed(result, StrategyApplicationError(f"{type(e).__name__}: {e}"))

        try:
            session = self._run_session(bars, config, strategy, run_id, result.name)
        except Exception as e:
            logger.exception("[%s] Strategy application failed for %s", run_id, result.name)
            if isinstance(e, StrategyApplicationError):
                return self._failed(result, e)
            return self._failed(result, StrategyApplicationError(f"{type(e).__name__}: {e}"))

        result.warnings = session.warnings
        result.signals = session.signals
        result.intents = session.intents
        result.fills = list(session.fills)
        result.trades = list(session.trades)
        result.equity_curve = session.ledger.equity_curve
        result.final_position = session.position
        result.statistics = summarize(
            result.trades,
            fills=result.fills,
            equity_curve=result.equity_curve,
            initial_equity=config.initial_equity,
        )

        log_run_event(
            logger, logging.INFO, run_id, result.name, "Run finished",
            bars=len(bars), signals=len(result.signals),
            trades=len(result.trades), net_pnl=result.statistics.net_pnl,
        )
        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _run_session(self, bars, config, strategy, run_id, run_name) -> BacktestSession:
        validate_series(bars)
        instrument = self.instrument or Instrument(symbol=bars[0].ticker if bars else "")
        session = BacktestSession(config, instrument)

        try:
            session.signals = strategy.generate_signals(bars)
        except InsufficientDataError as e:
            log_run_event(logger, logging.WARNING, run_id, run_name,
                          "Insufficient data, no signals", error=e)
            session.warnings.append(str(e))
            session.signals = []

        session.intents = derive_order_intents(session.signals, config.quantity)
        session.simulator.run(bars, session.intents, ledger=session.ledger)

        if not session.position.is_flat:
            session.warnings.append(
                f"Position of {session.position.quantity} still open at end of series"
            )
        return session

    @staticmethod
    def _failed(result: RunResult, error: Exception) -> RunResult:
        result.status = STATUS_FAILED
        result.error = str(error)
        return result


# ---------------------------------------------------------------------------
# Batches of independent runs
# ---------------------------------------------------------------------------

@dataclass
class BacktestJob:
    """One entry of a batch: a named series/config pair."""
    name: str
    bars: Sequence[PriceBar]
    config: StrategyConfig
    instrument: Optional[Instrument] = None


def run_batch(jobs: Iterable[BacktestJob]) -> List[RunResult]:
    """Run every job, in order, each with its own engine and session.

    A failed job shows up as a failed :class:`RunResult`; the remaining
    jobs are unaffected.
    """
    results: List[RunResult] = []
    for job in jobs:
        result = Engine(instrument=job.instrument).run(job.bars, job.config, name=job.name)
        if not result.ok:
            logger.warning("Run %s failed: %s", job.name, result.error)
        results.append(result)

    failed = sum(1 for r in results if not r.ok)
    logger.info("Batch finished: %d runs, %d failed", len(results), failed)
    return results


def threshold_jobs(
    bars: Sequence[PriceBar],
    config: StrategyConfig,
    thresholds: Iterable[float],
    instrument: Optional[Instrument] = None,
) -> List[BacktestJob]:
    """Jobs differing only in the percent threshold."""
    jobs = []
    for threshold in thresholds:
        variant = config.with_overrides(threshold=threshold)
        name = f"{config.label}[{threshold:g}]" if config.label else variant.name
        jobs.append(BacktestJob(name, bars, variant, instrument))
    return jobs


def price_field_jobs(
    bars: Sequence[PriceBar],
    config: StrategyConfig,
    fields: Iterable[str] = ("open", "close"),
    instrument: Optional[Instrument] = None,
) -> List[BacktestJob]:
    """Jobs differing only in the price field (open vs close)."""
    jobs = []
    for price_field in fields:
        variant = config.with_overrides(price_field=price_field)
        name = f"{config.label}[{price_field}]" if config.label else variant.name
        jobs.append(BacktestJob(name, bars, variant, instrument))
    return jobs


def _variant_name(config: StrategyConfig, suffix: str) -> str:
    return f"{config.name}[{suffix}]"


def split_jobs(
    bars: Sequence[PriceBar],
    config: StrategyConfig,
    train_fraction: float = 0.8,
    instrument: Optional[Instrument] = None,
) -> List[BacktestJob]:
    """Train and test jobs over a chronological split of *bars*."""
    train, test = split_series(bars, train_fraction)
    return [
        BacktestJob(_variant_name(config, "train"), train, config, instrument),
        BacktestJob(_variant_name(config, "test"), test, config, instrument),
    ]


def forecast_jobs(
    bars: Sequence[PriceBar],
    config: StrategyConfig,
    forecaster: LagRegressionForecaster,
    train_fraction: float = 0.8,
    instrument: Optional[Instrument] = None,
) -> List[BacktestJob]:
    """Real-vs-forecast jobs over the test part of a chronological split.

    *forecaster* is fitted on the train part; its predictions replace the
    test prices in the ``forecast`` job.  The ``test`` job runs the real
    prices over the same bars the forecast covers, so the two are directly
    comparable.

    Raises:
        InsufficientDataError: If the train part is too short to fit on.
    """
    train, test = split_series(bars, train_fraction)
    predicted = forecaster.fit(train).forecast_bars(test)
    real = list(test[len(test) - len(predicted):]) if predicted else []
    logger.info(
        "Forecast %d of %d test bars for %s", len(predicted), len(test), config.name,
    )
    return [
        BacktestJob(_variant_name(config, "test"), real, config, instrument),
        BacktestJob(_variant_name(config, "forecast"), predicted, config, instrument),
    ]
