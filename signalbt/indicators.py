"""
signalbt -- Indicator engine.

Computes derived series from a price series in a single forward pass.
Every output is a list aligned 1:1 with the input bars; positions inside
the warm-up region hold ``None`` (undefined), never ``0.0``, so that the
crossing detector cannot mistake missing history for a zero value.

Supported kinds:

  - ``"macd"``: fast EMA - slow EMA, its signal line and histogram.
  - ``"percent_change"``: bar-over-bar percent change of price.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence

from signalbt.config import IndicatorParams, PRICE_FIELDS
from signalbt.errors import ConfigError, InsufficientDataError
from signalbt.models import PriceBar

IndicatorSeries = List[Optional[float]]


def price_series(bars: Sequence[PriceBar], price_field: str = "close") -> List[float]:
    """Extract the ``open`` or ``close`` prices of *bars*."""
    if price_field not in PRICE_FIELDS:
        raise ConfigError(
            f"price_field must be one of {PRICE_FIELDS}, got {price_field!r}"
        )
    return [getattr(bar, price_field) for bar in bars]


def ema(values: Sequence[Optional[float]], period: int) -> IndicatorSeries:
    """Exponential moving average with ``alpha = 2 / (period + 1)``.

    Leading ``None`` values are skipped; the average is seeded with the
    simple mean of the first *period* defined values and is undefined before
    that point.  Values after the first defined one must all be defined.
    """
    if period <= 0:
        raise ConfigError(f"EMA period must be positive, got {period}")

    out: IndicatorSeries = [None] * len(values)
    start = next((i for i, v in enumerate(values) if v is not None), None)
    if start is None or len(values) - start < period:
        return out

    seed_end = start + period
    window = values[start:seed_end]
    if any(v is None for v in window):
        raise ValueError("EMA input has a gap after its first defined value")

    alpha = 2.0 / (period + 1)
    current = sum(window) / period
    out[seed_end - 1] = current
    for i in range(seed_end, len(values)):
        value = values[i]
        if value is None:
            raise ValueError(f"EMA input undefined at index {i}")
        current = current + alpha * (value - current)
        out[i] = current
    return out


def _subtract(a: IndicatorSeries, b: IndicatorSeries) -> IndicatorSeries:
    return [
        x - y if x is not None and y is not None else None
        for x, y in zip(a, b)
    ]


def macd(
    prices: Sequence[float],
    params: IndicatorParams,
) -> Dict[str, IndicatorSeries]:
    """Moving-average convergence/divergence.

    Returns a dict with ``"macd"``, ``"signal"`` and ``"histogram"`` series.
    ``macd`` is defined from index ``slow_period - 1``; ``signal`` once
    ``macd`` has ``signal_period`` defined values.

    Raises:
        ConfigError: On invalid periods.
        InsufficientDataError: If fewer than ``slow_period + signal_period``
            prices are supplied.
    """
    params.validate()
    required = params.slow_period + params.signal_period
    if len(prices) < required:
        raise InsufficientDataError(
            f"MACD({params.fast_period},{params.slow_period},{params.signal_period}) "
            f"needs at least {required} bars, got {len(prices)}"
        )

    fast = ema(prices, params.fast_period)
    slow = ema(prices, params.slow_period)
    macd_line = _subtract(fast, slow)
    signal_line = ema(macd_line, params.signal_period)
    return {
        "macd": macd_line,
        "signal": signal_line,
        "histogram": _subtract(macd_line, signal_line),
    }


def percent_change(prices: Sequence[float]) -> IndicatorSeries:
    """``pc[i] = price[i] / price[i-1] - 1``; undefined at index 0.

    A zero previous price leaves the value undefined.

    Raises:
        InsufficientDataError: If fewer than two prices are supplied.
    """
    if len(prices) < 2:
        raise InsufficientDataError(
            f"percent change needs at least 2 bars, got {len(prices)}"
        )
    out: IndicatorSeries = [None]
    for prev, curr in zip(prices, prices[1:]):
        out.append(curr / prev - 1.0 if prev != 0 else None)
    return out


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

def _compute_macd(prices: Sequence[float], params: IndicatorParams) -> Dict[str, IndicatorSeries]:
    return macd(prices, params)


def _compute_percent_change(prices: Sequence[float], params: IndicatorParams) -> Dict[str, IndicatorSeries]:
    return {"percent_change": percent_change(prices)}


INDICATORS: Dict[str, Callable[[Sequence[float], IndicatorParams], Dict[str, IndicatorSeries]]] = {
    "macd": _compute_macd,
    "percent_change": _compute_percent_change,
}


def compute_indicator(
    bars: Sequence[PriceBar],
    kind: str,
    params: Optional[IndicatorParams] = None,
    price_field: str = "close",
) -> Dict[str, IndicatorSeries]:
    """Compute indicator *kind* over *bars*.

    Args:
        bars: The price series, oldest first.
        kind: ``"macd"`` or ``"percent_change"``.
        params: Indicator periods (defaults to 12/26/9).
        price_field: ``"open"`` or ``"close"``.

    Returns:
        Named series, each aligned 1:1 with *bars*.

    Raises:
        ConfigError: Unknown kind, price field or invalid periods.
        InsufficientDataError: Series shorter than the indicator's lookback.
    """
    compute = INDICATORS.get(kind)
    if compute is None:
        known = ", ".join(sorted(INDICATORS))
        raise ConfigError(f"Unknown indicator '{kind}'. Known indicators: {known}")
    return compute(price_series(bars, price_field), params or IndicatorParams())
