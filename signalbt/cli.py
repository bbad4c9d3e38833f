"""
signalbt -- Command-line batch driver.

Runs one strategy over a price series for every combination of price
field and threshold, prints a report per run and a summary table::

    python -m signalbt --csv AAPL.csv --kind filter_rule --threshold 0.06 0.07
    python -m signalbt --ticker AAPL --start 2020-01-01 --kind zero_cross --fields open close
    python -m signalbt --csv AAPL.csv --kind zero_cross --forecast-lags 5 --train-fraction 0.7

Settings not given on the command line come from ``SIGNALBT_*``
environment variables (see :func:`signalbt.config.load_strategy_config`).
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from typing import List, Optional

from signalbt.config import load_strategy_config
from signalbt.data import load_bars_csv
from signalbt.engine import BacktestJob, forecast_jobs, run_batch, split_jobs
from signalbt.errors import ConfigError, InsufficientDataError
from signalbt.forecast import LagRegressionForecaster
from signalbt.models import Instrument
from signalbt.report import generate_report, summary_table
from signalbt.yahoo_fetch import YahooFetchError, fetch_bars

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="signalbt", description="Backtest crossing strategies.")
    src = ap.add_mutually_exclusive_group(required=True)
    src.add_argument("--csv", help="OHLC CSV file")
    src.add_argument("--ticker", help="fetch daily bars from Yahoo Finance")
    ap.add_argument("--symbol", default="", help="symbol for CSV data")
    ap.add_argument("--start", default="2020-01-01")
    ap.add_argument("--end", default=None)
    ap.add_argument("--env-file", default=None, help=".env file with SIGNALBT_* settings")
    ap.add_argument("--kind", default=None, help="zero_cross | filter_rule | signal_line_cross")
    ap.add_argument("--fields", nargs="+", default=None, choices=["open", "close"])
    ap.add_argument("--threshold", nargs="+", type=float, default=None)
    ap.add_argument("--fast", type=int, default=None)
    ap.add_argument("--slow", type=int, default=None)
    ap.add_argument("--signal", type=int, default=None)
    ap.add_argument("--quantity", type=int, default=None)
    ap.add_argument("--initial-equity", type=float, default=None)
    ap.add_argument("--multiplier", type=float, default=1.0)
    ap.add_argument("--train-fraction", type=float, default=None,
                    help="also run train and test halves of a chronological split")
    ap.add_argument("--forecast-lags", type=int, default=None,
                    help="compare real test prices with a lag-regression forecast")
    ap.add_argument("--quiet", action="store_true", help="only print the summary table")
    ap.add_argument("-v", "--verbose", action="store_true")
    return ap


def _variant_jobs(args, bars, config, instrument) -> List[BacktestJob]:
    fraction = args.train_fraction if args.train_fraction is not None else 0.8
    if args.forecast_lags is not None:
        model = LagRegressionForecaster(lags=args.forecast_lags, price_field=config.price_field)
        return forecast_jobs(bars, config, model, fraction, instrument)
    if args.train_fraction is not None:
        return split_jobs(bars, config, fraction, instrument)
    return []


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    )

    try:
        base = load_strategy_config(env_file=args.env_file)
    except ConfigError as e:
        logger.error("Invalid environment configuration: %s", e)
        return 2

    overrides = {}
    if args.kind:
        overrides["kind"] = args.kind
    if args.quantity is not None:
        overrides["quantity"] = args.quantity
    if args.initial_equity is not None:
        overrides["initial_equity"] = args.initial_equity
    periods = {
        "fast_period": args.fast,
        "slow_period": args.slow,
        "signal_period": args.signal,
    }
    periods = {k: v for k, v in periods.items() if v is not None}
    if periods:
        overrides["indicator"] = replace(base.indicator, **periods)
    base = base.with_overrides(**overrides)

    try:
        if args.csv:
            bars = load_bars_csv(args.csv, ticker=args.symbol)
        else:
            bars = fetch_bars(args.ticker, start=args.start, end=args.end)
    except (OSError, ValueError, YahooFetchError) as e:
        logger.error("Could not load price data: %s", e)
        return 1

    symbol = args.ticker or args.symbol or (bars[0].ticker if bars else "")
    instrument = Instrument(symbol=symbol.upper(), multiplier=args.multiplier)
    fields = args.fields or [base.price_field]
    thresholds = args.threshold or [base.threshold]

    jobs = []
    for price_field in fields:
        for threshold in thresholds:
            config = base.with_overrides(price_field=price_field, threshold=threshold)
            jobs.append(BacktestJob(config.name, bars, config, instrument))
            try:
                jobs.extend(_variant_jobs(args, bars, config, instrument))
            except (ValueError, InsufficientDataError) as e:
                logger.error("Cannot build variants of %s: %s", config.name, e)
                return 1

    results = run_batch(jobs)
    if not args.quiet:
        for result in results:
            print(generate_report(result))
            print()
    print(summary_table(results))
    return 0 if all(r.ok for r in results) else 1


if __name__ == "__main__":
    sys.exit(main())
