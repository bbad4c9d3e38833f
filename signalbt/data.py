"""
signalbt -- Price series loading and validation.

Reads OHLC bars from CSV files or in-memory records and checks that a
series is fit for a backtest (strictly increasing timestamps, no
duplicates).

Expected CSV format (one row per bar)::

    timestamp,open,high,low,close,volume
    2024-01-02,150.00,151.25,149.80,150.50,1234567

  - ``timestamp`` is parsed flexibly (ISO-8601 or common US formats).
  - ``volume`` and ``ticker`` columns are optional; when ``ticker`` is
    absent it is taken from the *ticker* argument.
  - Header names are matched case-insensitively (``Date`` is accepted for
    ``timestamp``, ``Close`` for ``close``...).
"""

import csv
from datetime import datetime, timedelta
from pathlib import Path
from typing import Dict, List, Sequence, Tuple, Union

from signalbt.models import PriceBar


# ---------------------------------------------------------------------------
# Timestamp parsing
# ---------------------------------------------------------------------------

_TIMESTAMP_FORMATS = [
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M:%SZ",
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%d %H:%M:%S%z",
    "%Y-%m-%d",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y",
]

_TIMESTAMP_ALIASES = ("timestamp", "date", "datetime", "time")


def _parse_timestamp(value: str) -> datetime:
    """Try multiple common timestamp formats and return the first match."""
    value = value.strip()
    for fmt in _TIMESTAMP_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    raise ValueError(f"Cannot parse timestamp: '{value}'")


def _normalise_row(row: Dict[str, str]) -> Dict[str, str]:
    out = {(k or "").strip().lower(): v for k, v in row.items()}
    if "timestamp" not in out:
        for alias in _TIMESTAMP_ALIASES:
            if alias in out:
                out["timestamp"] = out[alias]
                break
    return out


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def validate_series(bars: Sequence[PriceBar]) -> None:
    """Check that timestamps are strictly increasing.

    Raises:
        ValueError: On a duplicate or out-of-order timestamp.
    """
    for i in range(1, len(bars)):
        prev, curr = bars[i - 1].timestamp, bars[i].timestamp
        if curr == prev:
            raise ValueError(f"Duplicate timestamp at bar {i}: {curr}")
        if curr < prev:
            raise ValueError(f"Timestamps not increasing at bar {i}: {prev} -> {curr}")


# ---------------------------------------------------------------------------
# Bar loading
# ---------------------------------------------------------------------------

def load_bars_csv(
    path: Union[str, Path],
    ticker: str = "",
) -> List[PriceBar]:
    """Load OHLC bars from a CSV file.

    Args:
        path: Path to the CSV file.
        ticker: Default ticker symbol.  Overridden by a ``ticker`` column
            in the CSV if present.

    Returns:
        A list of :class:`PriceBar` sorted by timestamp (ascending).

    Raises:
        FileNotFoundError: If *path* does not exist.
        ValueError: On malformed rows or duplicate timestamps.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Bars CSV not found: {path}")

    bars: List[PriceBar] = []

    with open(path, "r", newline="") as f:
        reader = csv.DictReader(f)
        for row_num, raw in enumerate(reader, start=2):
            row = _normalise_row(raw)
            try:
                bars.append(PriceBar(
                    timestamp=_parse_timestamp(row["timestamp"]),
                    open=float(row["open"]),
                    high=float(row["high"]),
                    low=float(row["low"]),
                    close=float(row["close"]),
                    volume=float(row.get("volume") or 0),
                    ticker=row.get("ticker") or ticker,
                ))
            except (KeyError, TypeError, ValueError) as e:
                raise ValueError(f"Error on row {row_num}: {e}") from e

    bars.sort(key=lambda b: b.timestamp)
    validate_series(bars)
    return bars


def bars_from_dicts(records: List[Dict], ticker: str = "") -> List[PriceBar]:
    """Build :class:`PriceBar` objects from a list of dicts (useful for tests).

    Each dict should have keys ``timestamp``, ``open``, ``high``, ``low``,
    ``close`` and optionally ``volume`` and ``ticker``.  String timestamps
    are parsed; :class:`datetime` values are used as-is.
    """
    bars: List[PriceBar] = []
    for rec in records:
        ts = rec["timestamp"]
        if isinstance(ts, str):
            ts = _parse_timestamp(ts)
        bars.append(PriceBar(
            timestamp=ts,
            open=float(rec["open"]),
            high=float(rec["high"]),
            low=float(rec["low"]),
            close=float(rec["close"]),
            volume=float(rec.get("volume", 0)),
            ticker=rec.get("ticker", ticker),
        ))
    bars.sort(key=lambda b: b.timestamp)
    return bars


def bars_from_prices(
    prices: Sequence[float],
    start: datetime = datetime(2024, 1, 1),
    ticker: str = "",
    step: timedelta = timedelta(days=1),
) -> List[PriceBar]:
    """Build one flat bar per price (open = high = low = close).

    Handy for model forecasts, which only produce a single value per
    period, and for tests.
    """
    return [
        PriceBar(
            timestamp=start + i * step,
            open=float(p), high=float(p), low=float(p), close=float(p),
            ticker=ticker,
        )
        for i, p in enumerate(prices)
    ]


def split_series(
    bars: Sequence[PriceBar],
    train_fraction: float = 0.8,
) -> Tuple[List[PriceBar], List[PriceBar]]:
    """Split a series chronologically into ``(train, test)`` parts.

    Raises:
        ValueError: If *train_fraction* is not strictly between 0 and 1.
    """
    if not 0 < train_fraction < 1:
        raise ValueError(f"train_fraction must be in (0, 1), got {train_fraction}")
    cut = int(len(bars) * train_fraction)
    return list(bars[:cut]), list(bars[cut:])
