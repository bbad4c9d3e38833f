"""
signalbt -- Signal generator and strategy registry.

Each registered strategy kind maps to a builder that turns a
:class:`~signalbt.config.StrategyConfig` into an immutable strategy object.
The lookup happens once, in :func:`build_strategy`; after that the
strategy is an ordinary value with a :meth:`generate_signals` method.

Registered kinds:

  - ``zero_cross``: MACD line crossing zero.
  - ``filter_rule``: bar-over-bar percent change crossing +/- threshold.
  - ``signal_line_cross``: MACD line crossing its signal line.

Add new strategies by extending :data:`STRATEGY_BUILDERS`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Sequence

from signalbt.config import StrategyConfig
from signalbt.crossing import Reference, Relationship, detect_crossing
from signalbt.errors import ConfigError, UnknownStrategyError
from signalbt.indicators import IndicatorSeries, compute_indicator, price_series
from signalbt.models import PriceBar, Signal, SignalKind

logger = logging.getLogger(__name__)


def _signals_from_crossings(
    bars: Sequence[PriceBar],
    source: IndicatorSeries,
    bullish_ref: Reference,
    bearish_ref: Reference,
    label: str,
    price_field: str,
) -> List[Signal]:
    """Turn the up/down crossings of *source* into signals in bar order."""
    bullish = detect_crossing(source, bullish_ref, Relationship.GT)
    bearish = detect_crossing(source, bearish_ref, Relationship.LT)
    prices = price_series(bars, price_field)

    signals: List[Signal] = []
    for i, bar in enumerate(bars):
        if bullish[i]:
            signals.append(Signal(bar.timestamp, SignalKind.BULLISH, label, i, prices[i]))
        if bearish[i]:
            signals.append(Signal(bar.timestamp, SignalKind.BEARISH, label, i, prices[i]))
    return signals


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ZeroCrossStrategy:
    """Bullish when the MACD line crosses above zero, bearish below."""

    config: StrategyConfig

    @property
    def required_bars(self) -> int:
        params = self.config.indicator
        return params.slow_period + params.signal_period

    def generate_signals(self, bars: Sequence[PriceBar]) -> List[Signal]:
        series = compute_indicator(
            bars, "macd", self.config.indicator, self.config.price_field,
        )
        return _signals_from_crossings(
            bars, series["macd"], 0.0, 0.0,
            self.config.name, self.config.price_field,
        )


@dataclass(frozen=True)
class SignalLineCrossStrategy:
    """Bullish when the MACD line crosses above its signal line, bearish below."""

    config: StrategyConfig

    @property
    def required_bars(self) -> int:
        params = self.config.indicator
        return params.slow_period + params.signal_period

    def generate_signals(self, bars: Sequence[PriceBar]) -> List[Signal]:
        series = compute_indicator(
            bars, "macd", self.config.indicator, self.config.price_field,
        )
        return _signals_from_crossings(
            bars, series["macd"], series["signal"], series["signal"],
            self.config.name, self.config.price_field,
        )


@dataclass(frozen=True)
class FilterRuleStrategy:
    """Bullish when the percent change crosses above ``+threshold``,
    bearish when it crosses below ``-threshold``.

    A threshold larger than every observed move simply yields no signals.
    """

    config: StrategyConfig

    @property
    def threshold(self) -> float:
        return self.config.threshold

    @property
    def required_bars(self) -> int:
        return 2

    def generate_signals(self, bars: Sequence[PriceBar]) -> List[Signal]:
        series = compute_indicator(
            bars, "percent_change", self.config.indicator, self.config.price_field,
        )
        signals = _signals_from_crossings(
            bars, series["percent_change"], self.threshold, -self.threshold,
            self.config.name, self.config.price_field,
        )
        if not signals:
            logger.debug(
                "No percent move beyond +/-%.4f in %d bars", self.threshold, len(bars),
            )
        return signals


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

def _build_zero_cross(config: StrategyConfig) -> ZeroCrossStrategy:
    config.indicator.validate()
    return ZeroCrossStrategy(config)


def _build_signal_line_cross(config: StrategyConfig) -> SignalLineCrossStrategy:
    config.indicator.validate()
    return SignalLineCrossStrategy(config)


def _build_filter_rule(config: StrategyConfig) -> FilterRuleStrategy:
    if config.threshold is None or config.threshold <= 0:
        raise ConfigError(
            f"filter_rule requires a positive threshold, got {config.threshold!r}"
        )
    return FilterRuleStrategy(config)


STRATEGY_BUILDERS: Dict[str, Callable[[StrategyConfig], object]] = {
    "zero_cross": _build_zero_cross,
    "filter_rule": _build_filter_rule,
    "signal_line_cross": _build_signal_line_cross,
}


def build_strategy(config: StrategyConfig):
    """Resolve *config.kind* in the registry and build the strategy.

    Raises:
        UnknownStrategyError: If the kind is not registered.
        ConfigError: If the config is invalid for that kind.
    """
    builder = STRATEGY_BUILDERS.get(config.kind)
    if builder is None:
        known = ", ".join(sorted(STRATEGY_BUILDERS.keys()))
        raise UnknownStrategyError(
            f"Unknown strategy '{config.kind}'. Registered strategies: {known}"
        )
    return builder(config)
