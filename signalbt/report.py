"""
signalbt -- Backtest report generation.

Produces a human-readable text report for one run and a fixed-width
summary table for a batch.  Designed for terminal output; can also be
written to a file.
"""

from __future__ import annotations

from typing import List, Sequence

from signalbt.engine import RunResult


def _fmt_pf(value: float) -> str:
    return f"{value:.2f}" if value != float("inf") else "inf"


def generate_report(result: RunResult, max_trades: int = 20) -> str:
    """Generate a text summary report of a run.

    Args:
        result: A :class:`RunResult` (ok or failed).
        max_trades: Trade log rows to list; the rest are elided.

    Returns:
        A formatted multi-line string.
    """
    stats = result.statistics
    lines: List[str] = []
    w = 60

    lines.append("=" * w)
    lines.append(f"BACKTEST REPORT -- {result.name}")
    lines.append("=" * w)
    lines.append(f"Status:           {result.status}")
    if result.error:
        lines.append(f"Error:            {result.error}")
    if result.start_time and result.end_time:
        lines.append(f"Period:           {result.start_time:%Y-%m-%d} to {result.end_time:%Y-%m-%d}")
    lines.append(f"Bars processed:   {result.bars_processed:,}")
    lines.append(f"Signals:          {len(result.signals):>6}")
    lines.append(f"Order intents:    {len(result.intents):>6}")
    for warning in result.warnings:
        lines.append(f"Warning:          {warning}")
    lines.append("")

    lines.append("-" * w)
    lines.append("RETURNS")
    lines.append("-" * w)
    lines.append(f"Initial equity:   ${stats.initial_equity:>14,.2f}")
    lines.append(f"Final equity:     ${stats.final_equity:>14,.2f}")
    lines.append(f"Net trading P/L:  ${stats.net_pnl:>14,.2f}")
    lines.append(f"Total return:     {stats.total_return_pct:>14.2f}%")
    lines.append(f"Max drawdown:     {stats.max_drawdown_pct:>13.2f}%")
    lines.append(f"Sharpe ratio:     {stats.sharpe_ratio:>14.3f}")
    lines.append("")

    lines.append("-" * w)
    lines.append("TRADE STATISTICS")
    lines.append("-" * w)
    lines.append(f"Transactions:     {stats.num_transactions:>14}")
    lines.append(f"Round trips:      {stats.num_trades:>14}")
    lines.append(f"Winning trades:   {stats.winning_trades:>14}")
    lines.append(f"Losing trades:    {stats.losing_trades:>14}")
    lines.append(f"Win rate:         {stats.win_rate:>13.1f}%")
    lines.append(f"Profit factor:    {_fmt_pf(stats.profit_factor):>14}")
    lines.append(f"Avg P/L/trade:    ${stats.avg_pnl:>14,.2f}")
    lines.append(f"Largest win:      ${stats.largest_win:>14,.2f}")
    lines.append(f"Largest loss:     ${stats.largest_loss:>14,.2f}")
    lines.append("")

    if result.trades:
        lines.append("-" * w)
        lines.append(f"TRADE LOG ({len(result.trades)})")
        lines.append("-" * w)
        for trade in result.trades[:max_trades]:
            lines.append(
                f"  {trade.entry.timestamp:%Y-%m-%d} -> {trade.exit.timestamp:%Y-%m-%d} "
                f"qty={trade.quantity} {trade.entry.price:.2f} -> {trade.exit.price:.2f} "
                f"pnl={trade.pnl:,.2f}"
            )
        if len(result.trades) > max_trades:
            lines.append(f"  ... {len(result.trades) - max_trades} more")
        lines.append("")

    position = result.final_position
    if position is not None and not position.is_flat:
        lines.append("-" * w)
        lines.append("OPEN POSITION AT END")
        lines.append("-" * w)
        lines.append(f"  {position.asset:<8} qty={position.quantity} entry=${position.avg_price:.2f}")
        lines.append("")

    lines.append("=" * w)
    lines.append("END OF REPORT")
    lines.append("=" * w)

    return "\n".join(lines)


def summary_table(results: Sequence[RunResult]) -> str:
    """One row per run: status, transactions, net P/L, avg P/L, largest win."""
    header = (
        f"{'run':<40} {'status':<7} {'txns':>5} {'net P/L':>12} "
        f"{'avg P/L':>10} {'largest win':>12}"
    )
    lines = [header, "-" * len(header)]
    for r in results:
        s = r.statistics
        lines.append(
            f"{r.name[:40]:<40} {r.status:<7} {s.num_transactions:>5} "
            f"{s.net_pnl:>12,.2f} {s.avg_pnl:>10,.2f} {s.largest_win:>12,.2f}"
        )
    return "\n".join(lines)
