"""
signalbt -- Order rule engine.

Maps signals to order intents with a two-state (FLAT/LONG) tracker:

  - bullish while FLAT  -> ``enter_long`` for the fixed quantity, go LONG
  - bearish while LONG  -> ``exit_long`` for the whole position, go FLAT
  - anything else       -> discarded (no pyramiding, no shorting)

The tracker flips as soon as an intent is emitted, so intents and the
fills the simulator later produces stay consistent.
"""

from __future__ import annotations

import logging
from typing import Iterable, List

from signalbt.errors import ConfigError
from signalbt.models import (
    OrderIntent,
    OrderSide,
    PositionState,
    Signal,
    SignalKind,
)

logger = logging.getLogger(__name__)


def derive_order_intents(signals: Iterable[Signal], quantity: int) -> List[OrderIntent]:
    """Convert *signals* into order intents.

    Args:
        signals: Signals, processed in timestamp order (stable for ties).
        quantity: Units bought on each entry.

    Returns:
        Intents in time order; never two consecutive ``enter_long``.

    Raises:
        ConfigError: If *quantity* is not a positive integer.
    """
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ConfigError(f"quantity must be a positive integer, got {quantity!r}")

    state = PositionState.FLAT
    intents: List[OrderIntent] = []

    for sig in sorted(signals, key=lambda s: s.timestamp):
        if sig.kind == SignalKind.BULLISH and state == PositionState.FLAT:
            intents.append(OrderIntent(
                timestamp=sig.timestamp,
                side=OrderSide.ENTER_LONG,
                quantity=quantity,
                bar_index=sig.bar_index,
            ))
            state = PositionState.LONG
        elif sig.kind == SignalKind.BEARISH and state == PositionState.LONG:
            intents.append(OrderIntent(
                timestamp=sig.timestamp,
                side=OrderSide.EXIT_LONG,
                quantity=None,
                bar_index=sig.bar_index,
            ))
            state = PositionState.FLAT
        else:
            logger.debug("Discarding %s signal at %s (state=%s)",
                         sig.kind.value, sig.timestamp, state.value)

    return intents
