"""
signalbt -- Yahoo Finance price series fetcher.

Downloads daily, weekly or monthly OHLC bars from Yahoo Finance's chart
API and returns them as a :class:`~signalbt.models.PriceBar` series ready
for the engine.  Only bar-per-period intervals are offered; the engine
does not simulate intraday data.

Usage::

    from signalbt.yahoo_fetch import fetch_bars

    bars = fetch_bars("AAPL", start="2020-01-01", end="2024-12-31")
    result = Engine().run(bars, StrategyConfig(kind="zero_cross"))
"""

from __future__ import annotations

import logging
import time
from datetime import date, datetime, timezone
from typing import Dict, List, Optional

import requests

from signalbt.models import PriceBar

logger = logging.getLogger(__name__)

CHART_URL = "https://query1.finance.yahoo.com/v8/finance/chart/{ticker}"

USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)

VALID_INTERVALS = {"1d", "1wk", "1mo"}

RETRYABLE_STATUS = (429, 500, 502, 503, 504)


class YahooFetchError(Exception):
    """Raised when a price series cannot be fetched."""


class ChartClient:
    """Minimal chart API client with retry and exponential backoff.

    Args:
        retry_count: Attempts per request.
        backoff_base: Seconds base for ``backoff_base ** attempt`` waits.
        timeout: Per-request timeout in seconds.
    """

    def __init__(self, retry_count: int = 3, backoff_base: int = 2, timeout: int = 20):
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": USER_AGENT})
        self.retry_count = retry_count
        self.backoff_base = backoff_base
        self.timeout = timeout

    def get_chart(self, ticker: str, params: Dict[str, object]) -> dict:
        """Return the decoded chart payload for *ticker*."""
        url = CHART_URL.format(ticker=ticker)
        status: Optional[int] = None

        for attempt in range(self.retry_count):
            try:
                r = self.session.get(url, params=params, timeout=self.timeout)
            except requests.RequestException as e:
                logger.warning("Yahoo chart request error (attempt %d): %s", attempt, e)
                time.sleep(self.backoff_base ** attempt)
                continue

            status = r.status_code
            if status in RETRYABLE_STATUS:
                wait = self.backoff_base ** attempt
                logger.warning(
                    "Yahoo chart API %d, backing off %ds (attempt %d)",
                    status, wait, attempt,
                )
                time.sleep(wait)
                continue

            r.raise_for_status()
            return r.json()

        raise YahooFetchError(
            f"Yahoo chart request for {ticker} failed after {self.retry_count} "
            f"attempts (last status={status})"
        )


def _to_datetime(value: str | date | datetime) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d")
    except ValueError as e:
        raise ValueError(f"Cannot parse date: '{value}' (expected YYYY-MM-DD)") from e


def parse_chart(payload: dict, ticker: str) -> List[PriceBar]:
    """Convert a chart API payload into bars, dropping incomplete rows.

    Raises:
        YahooFetchError: If the payload reports an error or holds no data.
    """
    chart = payload.get("chart", {})
    if chart.get("error"):
        raise YahooFetchError(f"Yahoo chart error: {chart['error']}")

    results = chart.get("result")
    if not results:
        raise YahooFetchError(f"No chart data returned for {ticker}.")

    result = results[0]
    timestamps = result.get("timestamp") or []
    quote = ((result.get("indicators") or {}).get("quote") or [{}])[0]
    columns = [quote.get(k) or [] for k in ("open", "high", "low", "close", "volume")]

    bars: List[PriceBar] = []
    for i, ts in enumerate(timestamps):
        o, h, lo, c, v = (col[i] if i < len(col) else None for col in columns)
        if o is None or h is None or lo is None or c is None:
            continue
        day = datetime.fromtimestamp(ts, tz=timezone.utc).date()
        bars.append(PriceBar(
            timestamp=datetime(day.year, day.month, day.day),
            open=float(o), high=float(h), low=float(lo), close=float(c),
            volume=float(v or 0), ticker=ticker,
        ))

    # Keep the last bar of any day reported twice
    unique: Dict[datetime, PriceBar] = {b.timestamp: b for b in bars}
    return [unique[ts] for ts in sorted(unique)]


def fetch_bars(
    ticker: str,
    start: str | date | datetime,
    end: str | date | datetime | None = None,
    interval: str = "1d",
    client: Optional[ChartClient] = None,
) -> List[PriceBar]:
    """Fetch an OHLC series from Yahoo Finance.

    Args:
        ticker: Symbol (e.g. ``"AAPL"``).
        start: First date, ``"YYYY-MM-DD"`` or a date/datetime.
        end: Last date; defaults to now.
        interval: ``"1d"``, ``"1wk"`` or ``"1mo"``.
        client: Client to use; a fresh :class:`ChartClient` by default.

    Returns:
        Bars sorted by timestamp, one per period.

    Raises:
        ValueError: Empty ticker, bad interval or dates.
        YahooFetchError: If the data cannot be fetched.
    """
    ticker = ticker.strip().upper()
    if not ticker:
        raise ValueError("Ticker must not be empty.")
    if interval not in VALID_INTERVALS:
        raise ValueError(
            f"Invalid interval '{interval}'. Must be one of: {sorted(VALID_INTERVALS)}"
        )

    start_dt = _to_datetime(start)
    end_dt = _to_datetime(end) if end else datetime.now()
    if start_dt >= end_dt:
        raise ValueError(
            f"Start date ({start_dt.date()}) must be before end date ({end_dt.date()})."
        )

    payload = (client or ChartClient()).get_chart(ticker, {
        "period1": int(start_dt.replace(tzinfo=timezone.utc).timestamp()),
        "period2": int(end_dt.replace(tzinfo=timezone.utc).timestamp()),
        "interval": interval,
        "includePrePost": "false",
        "events": "",
    })
    bars = parse_chart(payload, ticker)
    if not bars:
        raise YahooFetchError(f"No price data returned for {ticker} in the given range.")

    logger.info(
        "Fetched %d bars for %s (%s to %s, interval=%s)",
        len(bars), ticker, start_dt.date(), end_dt.date(), interval,
    )
    return bars
