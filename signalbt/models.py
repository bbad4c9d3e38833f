"""
signalbt -- Backtesting data models.

Immutable records (bars, signals, intents, fills, trades) plus the single
mutable :class:`Position` owned by the execution simulator.  Everything a
run produces is append-only: once a record is created it is never revised.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class SignalKind(Enum):
    """Direction of a crossing signal."""
    BULLISH = "bullish"
    BEARISH = "bearish"


class OrderSide(Enum):
    """Supported order intents (long-only)."""
    ENTER_LONG = "enter_long"
    EXIT_LONG = "exit_long"


class OrderType(Enum):
    """Simulated order types.  Only market orders are modelled."""
    MARKET = "market"


class PositionState(Enum):
    """The two states of the per-asset position machine."""
    FLAT = "flat"
    LONG = "long"


# ---------------------------------------------------------------------------
# Market data
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PriceBar:
    """A single OHLC price bar.

    Attributes:
        timestamp: Bar time.  Strictly increasing within a series.
        open: Opening price.
        high: High price.
        low: Low price.
        close: Closing price.
        volume: Bar volume (informational only).
        ticker: Instrument symbol (e.g. ``"AAPL"``).
    """
    timestamp: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0
    ticker: str = ""


@dataclass(frozen=True)
class Instrument:
    """Descriptor of the traded instrument.

    Attributes:
        symbol: Instrument symbol.
        currency: Quote currency.
        multiplier: Contract multiplier applied to cash flows and P/L.
    """
    symbol: str
    currency: str = "USD"
    multiplier: float = 1.0


# ---------------------------------------------------------------------------
# Signals & order intents
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Signal:
    """A directional signal emitted at the bar where a crossing occurred.

    Attributes:
        timestamp: Timestamp of the crossing bar.
        kind: Bullish or bearish.
        source: Label of the strategy that produced it.
        bar_index: Position of the crossing bar in the series.
        price: Price of the crossing bar (strategy's price field).
    """
    timestamp: datetime
    kind: SignalKind
    source: str = ""
    bar_index: int = -1
    price: float = 0.0


@dataclass(frozen=True)
class OrderIntent:
    """An order the rule engine wants executed.

    ``quantity`` is ``None`` for "close the whole open position".
    """
    timestamp: datetime
    side: OrderSide
    quantity: Optional[int] = None
    order_type: OrderType = OrderType.MARKET
    bar_index: int = -1

    @property
    def closes_all(self) -> bool:
        return self.quantity is None


# ---------------------------------------------------------------------------
# Fills, positions & trades
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Fill:
    """A realised execution."""
    timestamp: datetime
    side: OrderSide
    quantity: int
    price: float
    bar_index: int = -1

    @property
    def notional(self) -> float:
        return self.price * self.quantity


@dataclass
class Position:
    """The single position held for an asset during a run.

    ``state`` is derived from ``quantity`` so that ``quantity > 0`` holds
    exactly when the position is LONG.

    Attributes:
        asset: Instrument symbol.
        quantity: Units held (0 when flat).
        avg_price: Average entry price of the open quantity.
    """
    asset: str = ""
    quantity: int = 0
    avg_price: float = 0.0

    @property
    def state(self) -> PositionState:
        return PositionState.LONG if self.quantity > 0 else PositionState.FLAT

    @property
    def is_flat(self) -> bool:
        return self.quantity == 0


@dataclass(frozen=True)
class Trade:
    """A matched round trip: one entry fill and the exit fill closing it."""
    entry: Fill
    exit: Fill
    multiplier: float = 1.0

    @property
    def quantity(self) -> int:
        return self.exit.quantity

    @property
    def pnl(self) -> float:
        """Realised P/L: ``(exit - entry) * quantity * multiplier``."""
        return (self.exit.price - self.entry.price) * self.quantity * self.multiplier

    @property
    def pnl_pct(self) -> float:
        """Percentage P/L relative to the entry price (0 for a zero entry)."""
        if self.entry.price == 0:
            return 0.0
        return (self.exit.price - self.entry.price) / self.entry.price * 100

    @property
    def holding_bars(self) -> int:
        return self.exit.bar_index - self.entry.bar_index
