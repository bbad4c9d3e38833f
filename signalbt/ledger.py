"""
signalbt -- Portfolio ledger.

Tracks cash, realised P/L and the equity curve of one run.  Fills are
applied as the simulator produces them; the equity curve gains exactly one
point per processed bar, whether or not anything filled on it.

Equity curve points are plain dicts so they can be handed straight to
reporting or plotting code::

    {"timestamp": "2024-01-02T00:00:00", "equity": 100012.5,
     "cash": 98912.5, "position_qty": 100}
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from signalbt.errors import ConfigError
from signalbt.models import Fill, OrderSide, Position, PriceBar, Trade

logger = logging.getLogger(__name__)


@dataclass
class PortfolioState:
    """Cash and equity of a run.  ``initial_equity`` never changes."""
    initial_equity: float
    cash: float
    realized_pnl: float = 0.0
    equity_curve: List[Dict[str, float]] = field(default_factory=list)

    @property
    def equity(self) -> float:
        """Latest marked equity (initial equity before the first bar)."""
        if not self.equity_curve:
            return self.initial_equity
        return self.equity_curve[-1]["equity"]


class PortfolioLedger:
    """Applies fills to cash and marks the open position to market.

    Args:
        initial_equity: Starting cash.
        multiplier: Instrument multiplier applied to every cash flow.
    """

    def __init__(self, initial_equity: float, multiplier: float = 1.0) -> None:
        if initial_equity <= 0:
            raise ConfigError(f"initial_equity must be positive, got {initial_equity}")
        self.multiplier = multiplier
        self.state = PortfolioState(initial_equity=initial_equity, cash=initial_equity)

    @property
    def cash(self) -> float:
        return self.state.cash

    @property
    def equity_curve(self) -> List[Dict[str, float]]:
        return self.state.equity_curve

    def apply(self, fill: Fill, trade: Optional[Trade] = None) -> PortfolioState:
        """Book *fill*; *trade* is the round trip an exit fill closed."""
        amount = fill.price * fill.quantity * self.multiplier
        if fill.side == OrderSide.ENTER_LONG:
            self.state.cash -= amount
        else:
            self.state.cash += amount
            if trade is not None:
                self.state.realized_pnl += trade.pnl

        logger.debug(
            "Ledger %s %d @ %.4f (cash=%.2f, realised=%.2f)",
            fill.side.value, fill.quantity, fill.price,
            self.state.cash, self.state.realized_pnl,
        )
        return self.state

    def mark_to_market(self, bar: PriceBar, position: Position) -> float:
        """Append the equity point for *bar*; returns the equity value."""
        equity = self.state.cash + position.quantity * bar.close * self.multiplier
        self.state.equity_curve.append({
            "timestamp": bar.timestamp.isoformat(),
            "equity": equity,
            "cash": self.state.cash,
            "position_qty": position.quantity,
        })
        return equity
