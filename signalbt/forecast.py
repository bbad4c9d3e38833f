"""
signalbt -- Reference price forecaster.

The engine does not care where prices come from; a forecasting model only
has to emit a price series of the same schema, aligned in time with the
real one.  :class:`LagRegressionForecaster` is a small reference model
doing exactly that: an ordinary least-squares regression of the next price
on the previous *lags* prices, fitted with numpy.

Usage::

    model = LagRegressionForecaster(lags=5).fit(train_bars)
    predicted = model.forecast_bars(test_bars)
    result = Engine().run(predicted, config)

``forecast_bars`` returns one-step-ahead predictions for every bar that has
*lags* bars of history, timestamped with the bar being predicted.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import numpy as np

from signalbt.errors import InsufficientDataError
from signalbt.indicators import price_series
from signalbt.models import PriceBar

logger = logging.getLogger(__name__)


def _lagged_design(prices: np.ndarray, lags: int) -> np.ndarray:
    """Rows ``[1, p[t-lags], ..., p[t-1]]`` for every predictable ``t``."""
    n = len(prices) - lags
    windows = np.lib.stride_tricks.sliding_window_view(prices[:-1], lags)[:n]
    return np.hstack([np.ones((n, 1)), windows])


class LagRegressionForecaster:
    """Linear autoregressive forecaster of a single price field.

    Args:
        lags: Number of past prices used as regressors.
        price_field: ``"open"`` or ``"close"``.
    """

    def __init__(self, lags: int = 5, price_field: str = "close") -> None:
        if lags <= 0:
            raise ValueError(f"lags must be positive, got {lags}")
        self.lags = lags
        self.price_field = price_field
        self.coef_: Optional[np.ndarray] = None

    @property
    def is_fitted(self) -> bool:
        return self.coef_ is not None

    def fit(self, bars: Sequence[PriceBar]) -> "LagRegressionForecaster":
        """Fit the regression on *bars*.

        Raises:
            InsufficientDataError: Fewer than ``lags + 2`` bars.
        """
        prices = np.asarray(price_series(bars, self.price_field), dtype=float)
        if len(prices) < self.lags + 2:
            raise InsufficientDataError(
                f"forecaster with {self.lags} lags needs at least {self.lags + 2} bars, "
                f"got {len(prices)}"
            )
        design = _lagged_design(prices, self.lags)
        target = prices[self.lags:]
        self.coef_, *_ = np.linalg.lstsq(design, target, rcond=None)
        logger.debug("Fitted %d-lag forecaster on %d bars", self.lags, len(prices))
        return self

    def predict(self, bars: Sequence[PriceBar]) -> np.ndarray:
        """One-step-ahead predictions for ``bars[lags:]``."""
        if self.coef_ is None:
            raise RuntimeError("Forecaster is not fitted; call fit() first.")
        prices = np.asarray(price_series(bars, self.price_field), dtype=float)
        if len(prices) <= self.lags:
            return np.empty(0)
        return _lagged_design(prices, self.lags) @ self.coef_

    def forecast_bars(self, bars: Sequence[PriceBar]) -> List[PriceBar]:
        """Predicted series aligned with ``bars[lags:]``.

        Each predicted bar carries the prediction in every price field so
        strategies reading ``open`` or ``close`` see the same value.
        """
        predictions = self.predict(bars)
        out: List[PriceBar] = []
        for bar, value in zip(bars[self.lags:], predictions):
            price = float(value)
            out.append(PriceBar(
                timestamp=bar.timestamp,
                open=price, high=price, low=price, close=price,
                ticker=bar.ticker,
            ))
        return out
