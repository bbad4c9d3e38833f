"""
signalbt -- Trade statistics.

Aggregates a completed trade log (and, optionally, the fills and equity
curve of the run) into a read-only :class:`TradeStatistics`:

  - **Net P/L** (sum of realised trade P/Ls) and average P/L per trade
  - **Number of transactions** (fills; a round trip counts as two)
  - **Win / loss counts**, win rate, largest win and loss, profit factor
  - **Final equity**, total return, maximum drawdown and Sharpe ratio

An empty trade log is not an error: every aggregate comes back as zero.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Dict, List, Optional, Sequence

from signalbt.models import Fill, Trade


TRADING_DAYS_PER_YEAR = 252


@dataclass(frozen=True)
class TradeStatistics:
    """Summary metrics of one run.  Never mutated after computation."""
    # Trades
    net_pnl: float = 0.0
    avg_pnl: float = 0.0
    num_transactions: int = 0
    num_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    win_rate: float = 0.0
    largest_win: float = 0.0
    largest_loss: float = 0.0
    gross_profit: float = 0.0
    gross_loss: float = 0.0
    profit_factor: float = 0.0

    # Equity
    initial_equity: float = 0.0
    final_equity: float = 0.0
    total_return_pct: float = 0.0
    max_drawdown_pct: float = 0.0
    sharpe_ratio: float = 0.0

    def as_record(self) -> Dict[str, float]:
        """Flat dict suitable for tabular rendering."""
        return asdict(self)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _bar_returns(equity_curve: Sequence[Dict[str, float]]) -> List[float]:
    """Bar-over-bar fractional returns of the equity curve."""
    returns = []
    for prev_point, point in zip(equity_curve, equity_curve[1:]):
        prev = prev_point["equity"]
        returns.append((point["equity"] - prev) / prev if prev > 0 else 0.0)
    return returns


def _max_drawdown_pct(equity_curve: Sequence[Dict[str, float]]) -> float:
    """Largest peak-to-trough decline of the equity curve, in percent."""
    if not equity_curve:
        return 0.0
    peak = equity_curve[0]["equity"]
    max_dd = 0.0
    for point in equity_curve:
        equity = point["equity"]
        if equity > peak:
            peak = equity
        if peak > 0:
            max_dd = max(max_dd, (peak - equity) / peak * 100)
    return max_dd


def _sharpe_ratio(returns: Sequence[float]) -> float:
    """Annualised Sharpe ratio (zero risk-free rate)."""
    if len(returns) < 2:
        return 0.0
    mean = sum(returns) / len(returns)
    variance = sum((r - mean) ** 2 for r in returns) / (len(returns) - 1)
    std = math.sqrt(variance) if variance > 0 else 0.0
    if std == 0:
        return 0.0
    return (mean / std) * math.sqrt(TRADING_DAYS_PER_YEAR)


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def summarize(
    trades: Sequence[Trade],
    fills: Optional[Sequence[Fill]] = None,
    equity_curve: Optional[Sequence[Dict[str, float]]] = None,
    initial_equity: float = 0.0,
) -> TradeStatistics:
    """Compute :class:`TradeStatistics` from a finished run.

    Args:
        trades: Completed round trips, in time order.
        fills: All fills of the run, including an entry still open at the
            end.  When omitted, each trade counts as two transactions.
        equity_curve: Per-bar equity points from the ledger.
        initial_equity: Starting equity of the run.

    Returns:
        The summary; zeros for an empty trade log.
    """
    pnls = [t.pnl for t in trades]
    wins = [p for p in pnls if p > 0]
    losses = [p for p in pnls if p < 0]

    gross_profit = sum(wins)
    gross_loss = abs(sum(losses))
    num_trades = len(pnls)

    if gross_loss > 0:
        profit_factor = gross_profit / gross_loss
    elif gross_profit > 0:
        profit_factor = float("inf")
    else:
        profit_factor = 0.0

    curve = list(equity_curve or [])
    final_equity = curve[-1]["equity"] if curve else initial_equity
    if initial_equity > 0:
        total_return_pct = (final_equity - initial_equity) / initial_equity * 100
    else:
        total_return_pct = 0.0

    return TradeStatistics(
        net_pnl=sum(pnls),
        avg_pnl=sum(pnls) / num_trades if num_trades else 0.0,
        num_transactions=len(fills) if fills is not None else 2 * num_trades,
        num_trades=num_trades,
        winning_trades=len(wins),
        losing_trades=len(losses),
        win_rate=len(wins) / num_trades * 100 if num_trades else 0.0,
        largest_win=max(wins) if wins else 0.0,
        largest_loss=min(losses) if losses else 0.0,
        gross_profit=gross_profit,
        gross_loss=gross_loss,
        profit_factor=profit_factor,
        initial_equity=initial_equity,
        final_equity=final_equity,
        total_return_pct=total_return_pct,
        max_drawdown_pct=_max_drawdown_pct(curve),
        sharpe_ratio=_sharpe_ratio(_bar_returns(curve)),
    )
