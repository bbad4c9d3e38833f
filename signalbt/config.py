"""
signalbt -- Strategy configuration.

A :class:`StrategyConfig` is an immutable value object describing one run:
which strategy kind to apply, which price field it reads, the indicator
periods, the optional percent threshold, the fixed position size and the
starting equity.

Configs can be built in code or loaded from environment variables (and an
optional ``.env`` file) with :func:`load_strategy_config`::

    SIGNALBT_KIND=filter_rule
    SIGNALBT_THRESHOLD=0.07
    SIGNALBT_QUANTITY=100

Every field has a default so that tuning does not require code changes.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from numbers import Real
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv

from signalbt.errors import ConfigError


PRICE_FIELDS = ("open", "close")


def _is_number(value) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class IndicatorParams:
    """Periods of the moving-average-convergence indicator."""

    fast_period: int = 12
    slow_period: int = 26
    signal_period: int = 9

    def validate(self) -> None:
        """Raise :class:`ConfigError` unless all periods are positive ints
        and ``fast_period < slow_period``."""
        for name in ("fast_period", "slow_period", "signal_period"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigError(f"{name} must be an integer, got {value!r}")
            if value <= 0:
                raise ConfigError(f"{name} must be positive, got {value}")
        if self.fast_period >= self.slow_period:
            raise ConfigError(
                f"fast_period ({self.fast_period}) must be smaller than "
                f"slow_period ({self.slow_period})"
            )


@dataclass(frozen=True)
class StrategyConfig:
    """Immutable configuration for a single backtest run.

    Attributes:
        kind: Strategy kind, a key of
            :data:`signalbt.signals.STRATEGY_BUILDERS`.
        price_field: ``"open"`` or ``"close"``; read by indicators and used
            as the fill price.
        indicator: MACD periods.
        threshold: Percent-change threshold as a fraction (``0.07`` = 7 %).
            ``None`` means no threshold; required by ``filter_rule``.
        quantity: Fixed number of units bought on every entry.
        initial_equity: Starting cash.
        label: Free-form name used on signals and in reports.
    """

    kind: str = "zero_cross"
    price_field: str = "close"
    indicator: IndicatorParams = field(default_factory=IndicatorParams)
    threshold: Optional[float] = None
    quantity: int = 1
    initial_equity: float = 100_000.0
    label: str = ""

    @property
    def name(self) -> str:
        """Label if set, otherwise a name derived from the settings."""
        if self.label:
            return self.label
        if isinstance(self.threshold, Real):
            return f"{self.kind}[{self.price_field},{self.threshold:g}]"
        if self.threshold is not None:
            return f"{self.kind}[{self.price_field},{self.threshold!r}]"
        return f"{self.kind}[{self.price_field}]"

    def validate(self) -> None:
        """Check the whole config.  Raises :class:`ConfigError`."""
        if not isinstance(self.kind, str):
            raise ConfigError(f"kind must be a string, got {self.kind!r}")
        if self.price_field not in PRICE_FIELDS:
            raise ConfigError(
                f"price_field must be one of {PRICE_FIELDS}, got {self.price_field!r}"
            )
        self.indicator.validate()
        if self.threshold is not None:
            if not _is_number(self.threshold):
                raise ConfigError(f"threshold must be a number, got {self.threshold!r}")
            if self.threshold <= 0:
                raise ConfigError(f"threshold must be positive, got {self.threshold}")
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int) \
                or self.quantity <= 0:
            raise ConfigError(f"quantity must be a positive integer, got {self.quantity!r}")
        if not _is_number(self.initial_equity):
            raise ConfigError(
                f"initial_equity must be a number, got {self.initial_equity!r}"
            )
        if self.initial_equity <= 0:
            raise ConfigError(
                f"initial_equity must be positive, got {self.initial_equity}"
            )

    def with_overrides(self, **changes) -> "StrategyConfig":
        """Return a copy with *changes* applied (used to build run variants)."""
        return replace(self, **changes)


# ---------------------------------------------------------------------------
# Environment loading
# ---------------------------------------------------------------------------

def _env_str(key: str, default: str) -> str:
    return os.environ.get(key, default).strip()


def _env_int(key: str, default: str) -> int:
    """Read an int from an environment variable with a fallback default."""
    raw = _env_str(key, default)
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigError(f"{key} must be an integer, got {raw!r}") from e


def _env_float(key: str, default: str) -> float:
    """Read a float from an environment variable with a fallback default."""
    raw = _env_str(key, default)
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigError(f"{key} must be a number, got {raw!r}") from e


def _env_optional_float(key: str) -> Optional[float]:
    raw = _env_str(key, "")
    if raw == "" or raw.lower() == "none":
        return None
    return _env_float(key, raw)


def load_strategy_config(
    prefix: str = "SIGNALBT_",
    env_file: Union[str, Path, None] = None,
) -> StrategyConfig:
    """Build a :class:`StrategyConfig` from environment variables.

    Recognised keys (shown with the default prefix)::

        SIGNALBT_KIND            zero_cross
        SIGNALBT_PRICE_FIELD     close
        SIGNALBT_FAST_PERIOD     12
        SIGNALBT_SLOW_PERIOD     26
        SIGNALBT_SIGNAL_PERIOD   9
        SIGNALBT_THRESHOLD       (unset)
        SIGNALBT_QUANTITY        1
        SIGNALBT_INITIAL_EQUITY  100000
        SIGNALBT_LABEL           (unset)

    Args:
        prefix: Prefix shared by all keys.
        env_file: Optional ``.env`` file loaded first.  Variables already
            set in the process environment take precedence.

    Returns:
        A validated :class:`StrategyConfig`.

    Raises:
        ConfigError: On malformed or invalid values.
    """
    if env_file is not None:
        load_dotenv(env_file, override=False)

    config = StrategyConfig(
        kind=_env_str(f"{prefix}KIND", "zero_cross").lower(),
        price_field=_env_str(f"{prefix}PRICE_FIELD", "close").lower(),
        indicator=IndicatorParams(
            fast_period=_env_int(f"{prefix}FAST_PERIOD", "12"),
            slow_period=_env_int(f"{prefix}SLOW_PERIOD", "26"),
            signal_period=_env_int(f"{prefix}SIGNAL_PERIOD", "9"),
        ),
        threshold=_env_optional_float(f"{prefix}THRESHOLD"),
        quantity=_env_int(f"{prefix}QUANTITY", "1"),
        initial_equity=_env_float(f"{prefix}INITIAL_EQUITY", "100000"),
        label=_env_str(f"{prefix}LABEL", ""),
    )
    config.validate()
    return config
