"""
Tests for price series loading and validation.
"""

from datetime import datetime, timedelta

import pytest

from signalbt.data import (
    _parse_timestamp,
    bars_from_dicts,
    bars_from_prices,
    load_bars_csv,
    split_series,
    validate_series,
)


# ---------------------------------------------------------------------------
# Timestamp parsing
# ---------------------------------------------------------------------------

class TestParseTimestamp:
    def test_iso_datetime(self):
        ts = _parse_timestamp("2024-01-02 09:30:00")
        assert ts == datetime(2024, 1, 2, 9, 30, 0)

    def test_iso_t_separator(self):
        ts = _parse_timestamp("2024-01-02T09:30:00")
        assert ts == datetime(2024, 1, 2, 9, 30, 0)

    def test_date_only(self):
        assert _parse_timestamp("2024-01-02") == datetime(2024, 1, 2)

    def test_us_format(self):
        assert _parse_timestamp("01/02/2024") == datetime(2024, 1, 2)

    def test_invalid(self):
        with pytest.raises(ValueError, match="Cannot parse"):
            _parse_timestamp("not-a-date")

    def test_whitespace_stripped(self):
        assert _parse_timestamp("  2024-01-02  ") == datetime(2024, 1, 2)


# ---------------------------------------------------------------------------
# Bars CSV
# ---------------------------------------------------------------------------

class TestLoadBarsCSV:
    def test_basic_load(self, tmp_path):
        csv_file = tmp_path / "bars.csv"
        csv_file.write_text(
            "timestamp,open,high,low,close,volume\n"
            "2024-01-02,150.00,151.25,149.80,150.50,1000000\n"
            "2024-01-03,150.50,152.00,150.00,151.75,500000\n"
        )
        bars = load_bars_csv(csv_file, ticker="AAPL")
        assert len(bars) == 2
        assert bars[0].open == 150.0
        assert bars[0].ticker == "AAPL"
        assert bars[1].close == 151.75

    def test_yahoo_style_headers(self, tmp_path):
        csv_file = tmp_path / "bars.csv"
        csv_file.write_text(
            "Date,Open,High,Low,Close,Volume\n"
            "2024-01-02,100,101,99,100.5,1000\n"
        )
        bars = load_bars_csv(csv_file)
        assert bars[0].timestamp == datetime(2024, 1, 2)
        assert bars[0].close == 100.5

    def test_with_ticker_column(self, tmp_path):
        csv_file = tmp_path / "bars.csv"
        csv_file.write_text(
            "timestamp,open,high,low,close,volume,ticker\n"
            "2024-01-02,100,101,99,100.5,1000,MSFT\n"
        )
        assert load_bars_csv(csv_file, ticker="AAPL")[0].ticker == "MSFT"

    def test_sorted_by_timestamp(self, tmp_path):
        csv_file = tmp_path / "bars.csv"
        csv_file.write_text(
            "timestamp,open,high,low,close,volume\n"
            "2024-01-03,102,103,101,102.5,1000\n"
            "2024-01-02,100,101,99,100.5,1000\n"
        )
        bars = load_bars_csv(csv_file)
        assert bars[0].timestamp < bars[1].timestamp

    def test_duplicate_timestamp_rejected(self, tmp_path):
        csv_file = tmp_path / "bars.csv"
        csv_file.write_text(
            "timestamp,open,high,low,close\n"
            "2024-01-02,100,101,99,100.5\n"
            "2024-01-02,101,102,100,101.5\n"
        )
        with pytest.raises(ValueError, match="Duplicate timestamp"):
            load_bars_csv(csv_file)

    def test_file_not_found(self):
        with pytest.raises(FileNotFoundError):
            load_bars_csv("/nonexistent/path.csv")

    def test_malformed_row(self, tmp_path):
        csv_file = tmp_path / "bars.csv"
        csv_file.write_text(
            "timestamp,open,high,low,close,volume\n"
            "2024-01-02,not_a_number,101,99,100.5,1000\n"
        )
        with pytest.raises(ValueError, match="row 2"):
            load_bars_csv(csv_file)

    def test_missing_column(self, tmp_path):
        csv_file = tmp_path / "bars.csv"
        csv_file.write_text("timestamp,open,high,low\n2024-01-02,100,101,99\n")
        with pytest.raises(ValueError, match="row 2"):
            load_bars_csv(csv_file)

    def test_missing_volume(self, tmp_path):
        csv_file = tmp_path / "bars.csv"
        csv_file.write_text(
            "timestamp,open,high,low,close\n"
            "2024-01-02,100,101,99,100.5\n"
        )
        assert load_bars_csv(csv_file)[0].volume == 0.0


# ---------------------------------------------------------------------------
# In-memory construction
# ---------------------------------------------------------------------------

class TestBarsFromDicts:
    def test_basic(self):
        records = [
            {"timestamp": "2024-01-02", "open": 100, "high": 101, "low": 99, "close": 100.5},
            {"timestamp": "2024-01-03", "open": 101, "high": 102, "low": 100, "close": 101.5},
        ]
        bars = bars_from_dicts(records, ticker="AAPL")
        assert len(bars) == 2
        assert bars[0].ticker == "AAPL"

    def test_datetime_objects(self):
        records = [
            {"timestamp": datetime(2024, 1, 2), "open": 100, "high": 101, "low": 99, "close": 100.5},
        ]
        assert bars_from_dicts(records)[0].timestamp == datetime(2024, 1, 2)

    def test_sorted(self):
        records = [
            {"timestamp": "2024-01-05", "open": 105, "high": 106, "low": 104, "close": 105.5},
            {"timestamp": "2024-01-02", "open": 100, "high": 101, "low": 99, "close": 100.5},
        ]
        bars = bars_from_dicts(records)
        assert bars[0].timestamp < bars[1].timestamp


class TestBarsFromPrices:
    def test_flat_bars(self):
        bars = bars_from_prices([1.5, 2.5], ticker="X")
        assert bars[1].open == bars[1].high == bars[1].low == bars[1].close == 2.5
        assert bars[0].ticker == "X"

    def test_step(self):
        bars = bars_from_prices([1, 2, 3], start=datetime(2024, 3, 1), step=timedelta(weeks=1))
        assert bars[2].timestamp == datetime(2024, 3, 15)


# ---------------------------------------------------------------------------
# Validation & splitting
# ---------------------------------------------------------------------------

class TestValidateSeries:
    def test_valid(self):
        validate_series(bars_from_prices([1, 2, 3]))

    def test_empty(self):
        validate_series([])

    def test_out_of_order(self):
        bars = bars_from_prices([1, 2, 3])
        with pytest.raises(ValueError, match="not increasing"):
            validate_series([bars[1], bars[0], bars[2]])


class TestSplitSeries:
    def test_chronological_split(self):
        bars = bars_from_prices(range(10))
        train, test = split_series(bars, 0.7)
        assert len(train) == 7
        assert len(test) == 3
        assert train[-1].timestamp < test[0].timestamp

    @pytest.mark.parametrize("fraction", [0, 1, 1.5, -0.2])
    def test_invalid_fraction(self, fraction):
        with pytest.raises(ValueError, match="train_fraction"):
            split_series(bars_from_prices([1, 2]), fraction)
