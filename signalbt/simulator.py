"""
signalbt -- Execution simulator.

A per-asset FLAT/LONG state machine that consumes order intents in time
order and fills them against the price series.

Fill policy
-----------

Market intents fill on the **same bar** as the signal that triggered them,
at that bar's price field (``close`` by default, ``open`` when the strategy
reads opens).  No next-bar delay is modelled.  Intents sharing a timestamp
fill in submission order.

Position rules
--------------

  - ``enter_long`` while FLAT opens the position at the fill price.
  - ``exit_long`` while LONG closes the whole position and realises a
    :class:`~signalbt.models.Trade` against the single open entry fill.
  - ``enter_long`` while LONG or ``exit_long`` while FLAT is skipped with
    a warning (the rule engine never produces either).
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from signalbt.config import PRICE_FIELDS
from signalbt.errors import ConfigError, StrategyApplicationError
from signalbt.ledger import PortfolioLedger
from signalbt.models import (
    Fill,
    Instrument,
    OrderIntent,
    OrderSide,
    Position,
    PriceBar,
    Trade,
)

logger = logging.getLogger(__name__)


class ExecutionSimulator:
    """Simulated execution for one instrument.

    Owns the run's :class:`Position` and the append-only fill and trade
    logs.  Build a new simulator for every run.

    Args:
        instrument: Instrument descriptor (symbol, currency, multiplier).
        price_field: Bar field used as the fill price.
    """

    def __init__(self, instrument: Instrument, price_field: str = "close") -> None:
        if price_field not in PRICE_FIELDS:
            raise ConfigError(
                f"price_field must be one of {PRICE_FIELDS}, got {price_field!r}"
            )
        self.instrument = instrument
        self.price_field = price_field
        self.position = Position(asset=instrument.symbol)
        self.fills: List[Fill] = []
        self.trades: List[Trade] = []
        self.skipped_intents: List[OrderIntent] = []
        self._open_entry: Optional[Fill] = None

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    def run(
        self,
        bars: Sequence[PriceBar],
        intents: Sequence[OrderIntent],
        ledger: Optional[PortfolioLedger] = None,
    ) -> Tuple[List[Fill], Position]:
        """Replay *bars*, filling *intents* on their bars.

        Args:
            bars: Price series, oldest first.
            intents: Order intents from the rule engine.
            ledger: When given, receives every fill and one mark-to-market
                per bar.

        Returns:
            ``(fills, final_position)``.

        Raises:
            StrategyApplicationError: If an intent's timestamp matches no bar.
        """
        by_timestamp: Dict[datetime, List[OrderIntent]] = {}
        for intent in sorted(intents, key=lambda it: it.timestamp):
            by_timestamp.setdefault(intent.timestamp, []).append(intent)

        known = {bar.timestamp for bar in bars}
        orphans = [ts for ts in by_timestamp if ts not in known]
        if orphans:
            raise StrategyApplicationError(
                f"{len(orphans)} order intent(s) do not match any bar "
                f"(first at {min(orphans)})"
            )

        for index, bar in enumerate(bars):
            for intent in by_timestamp.get(bar.timestamp, []):
                fill, trade = self.execute(intent, bar, index)
                if fill is not None and ledger is not None:
                    ledger.apply(fill, trade)
            if ledger is not None:
                ledger.mark_to_market(bar, self.position)

        return self.fills, self.position

    # ------------------------------------------------------------------
    # Single intent
    # ------------------------------------------------------------------

    def execute(
        self, intent: OrderIntent, bar: PriceBar, bar_index: int,
    ) -> Tuple[Optional[Fill], Optional[Trade]]:
        """Fill *intent* on *bar*.  Returns ``(fill, trade)``; either may be None."""
        price = getattr(bar, self.price_field)

        if intent.side == OrderSide.ENTER_LONG:
            if not self.position.is_flat:
                return self._skip(intent, "already long")
            fill = Fill(bar.timestamp, OrderSide.ENTER_LONG, intent.quantity, price, bar_index)
            self.position.quantity = fill.quantity
            self.position.avg_price = fill.price
            self._open_entry = fill
            self.fills.append(fill)
            logger.debug(
                "Entry filled: %s %d @ %.4f on %s",
                self.instrument.symbol, fill.quantity, fill.price, bar.timestamp,
            )
            return fill, None

        if self.position.is_flat or self._open_entry is None:
            return self._skip(intent, "no open position")

        qty = self.position.quantity if intent.closes_all else min(
            intent.quantity, self.position.quantity,
        )
        if qty != self.position.quantity:
            return self._skip(intent, "partial exits are not supported")

        fill = Fill(bar.timestamp, OrderSide.EXIT_LONG, qty, price, bar_index)
        trade = Trade(entry=self._open_entry, exit=fill, multiplier=self.instrument.multiplier)
        self.fills.append(fill)
        self.trades.append(trade)
        self.position.quantity = 0
        self.position.avg_price = 0.0
        self._open_entry = None
        logger.debug(
            "Exit filled: %s %d @ %.4f on %s (pnl=%.4f)",
            self.instrument.symbol, fill.quantity, fill.price, bar.timestamp, trade.pnl,
        )
        return fill, trade

    def _skip(self, intent: OrderIntent, reason: str) -> Tuple[None, None]:
        logger.warning(
            "Skipping %s intent at %s for %s: %s",
            intent.side.value, intent.timestamp, self.instrument.symbol, reason,
        )
        self.skipped_intents.append(intent)
        return None, None
