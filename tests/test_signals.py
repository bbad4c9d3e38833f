"""
Tests for the strategy registry and signal generation.
"""

import pytest

from signalbt.config import IndicatorParams, StrategyConfig
from signalbt.data import bars_from_prices
from signalbt.errors import ConfigError, InsufficientDataError, UnknownStrategyError
from signalbt.models import SignalKind
from signalbt.signals import (
    STRATEGY_BUILDERS,
    FilterRuleStrategy,
    SignalLineCrossStrategy,
    ZeroCrossStrategy,
    build_strategy,
)


SCENARIO = [10, 10, 10, 11, 12, 14, 13, 12, 11, 10]
SMALL_MACD = IndicatorParams(fast_period=2, slow_period=3, signal_period=2)


def _kinds(signals):
    return [(s.bar_index, s.kind) for s in signals]


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class TestRegistry:
    def test_registered_kinds(self):
        assert set(STRATEGY_BUILDERS) == {"zero_cross", "filter_rule", "signal_line_cross"}

    def test_builds_value_objects(self):
        assert isinstance(build_strategy(StrategyConfig(kind="zero_cross")), ZeroCrossStrategy)
        assert isinstance(
            build_strategy(StrategyConfig(kind="signal_line_cross")), SignalLineCrossStrategy,
        )
        assert isinstance(
            build_strategy(StrategyConfig(kind="filter_rule", threshold=0.05)), FilterRuleStrategy,
        )

    def test_unknown_kind(self):
        with pytest.raises(UnknownStrategyError, match="Registered strategies"):
            build_strategy(StrategyConfig(kind="bollinger"))

    def test_unknown_kind_is_config_error(self):
        with pytest.raises(ConfigError):
            build_strategy(StrategyConfig(kind="bollinger"))

    def test_filter_rule_requires_threshold(self):
        with pytest.raises(ConfigError, match="threshold"):
            build_strategy(StrategyConfig(kind="filter_rule"))

    def test_invalid_periods_rejected_at_build(self):
        cfg = StrategyConfig(indicator=IndicatorParams(26, 12, 9))
        with pytest.raises(ConfigError):
            build_strategy(cfg)

    def test_strategies_are_immutable(self):
        strategy = build_strategy(StrategyConfig())
        with pytest.raises(AttributeError):
            strategy.config = StrategyConfig(kind="filter_rule")


# ---------------------------------------------------------------------------
# Zero cross
# ---------------------------------------------------------------------------

class TestZeroCross:
    def test_scenario(self):
        bars = bars_from_prices(SCENARIO)
        strategy = build_strategy(StrategyConfig(kind="zero_cross", indicator=SMALL_MACD))
        signals = strategy.generate_signals(bars)
        assert _kinds(signals) == [(3, SignalKind.BULLISH), (7, SignalKind.BEARISH)]
        assert signals[0].timestamp == bars[3].timestamp
        assert signals[0].price == 11
        assert signals[1].price == 12

    def test_signals_carry_label(self):
        cfg = StrategyConfig(kind="zero_cross", indicator=SMALL_MACD, label="macd-close")
        signals = build_strategy(cfg).generate_signals(bars_from_prices(SCENARIO))
        assert {s.source for s in signals} == {"macd-close"}

    def test_required_bars(self):
        strategy = build_strategy(StrategyConfig(indicator=SMALL_MACD))
        assert strategy.required_bars == 5

    def test_short_series_raises_insufficient(self):
        strategy = build_strategy(StrategyConfig(indicator=SMALL_MACD))
        with pytest.raises(InsufficientDataError):
            strategy.generate_signals(bars_from_prices([10, 11, 12]))

    def test_flat_series_no_signals(self):
        strategy = build_strategy(StrategyConfig(indicator=SMALL_MACD))
        assert strategy.generate_signals(bars_from_prices([50] * 20)) == []


# ---------------------------------------------------------------------------
# Signal line cross
# ---------------------------------------------------------------------------

class TestSignalLineCross:
    def test_scenario(self):
        cfg = StrategyConfig(kind="signal_line_cross", indicator=SMALL_MACD)
        signals = build_strategy(cfg).generate_signals(bars_from_prices(SCENARIO))
        assert _kinds(signals) == [(6, SignalKind.BEARISH)]


# ---------------------------------------------------------------------------
# Filter rule
# ---------------------------------------------------------------------------

class TestFilterRule:
    def test_scenario(self):
        cfg = StrategyConfig(kind="filter_rule", threshold=0.07)
        signals = build_strategy(cfg).generate_signals(bars_from_prices(SCENARIO))
        assert _kinds(signals) == [(3, SignalKind.BULLISH), (6, SignalKind.BEARISH)]

    def test_threshold_above_every_move(self):
        cfg = StrategyConfig(kind="filter_rule", threshold=0.5)
        assert build_strategy(cfg).generate_signals(bars_from_prices(SCENARIO)) == []

    def test_symmetric_thresholds(self):
        prices = [100, 100, 95, 95, 100.5]
        cfg = StrategyConfig(kind="filter_rule", threshold=0.04)
        signals = build_strategy(cfg).generate_signals(bars_from_prices(prices))
        assert _kinds(signals) == [(2, SignalKind.BEARISH), (4, SignalKind.BULLISH)]

    def test_no_signal_on_first_change(self):
        cfg = StrategyConfig(kind="filter_rule", threshold=0.05)
        signals = build_strategy(cfg).generate_signals(bars_from_prices([100, 120, 120]))
        assert signals == []
