"""
signalbt -- Error taxonomy.

  - :class:`ConfigError` is fatal to a single run (bad indicator periods,
    unknown strategy kind, non-positive quantity or equity).
  - :class:`InsufficientDataError` degrades a run: it completes with zero
    signals and zero trades instead of aborting.
  - :class:`StrategyApplicationError` wraps any other failure raised while a
    strategy is applied to one series.  The engine turns it into a failed
    :class:`~signalbt.engine.RunResult` so a batch can carry on.
"""


class BacktestError(Exception):
    """Base class for all signalbt errors."""


class ConfigError(BacktestError):
    """Raised for invalid strategy or indicator configuration."""


class UnknownStrategyError(ConfigError):
    """Raised when a config references a strategy kind not in the registry."""


class InsufficientDataError(BacktestError):
    """Raised when a price series is shorter than an indicator's lookback."""


class StrategyApplicationError(BacktestError):
    """Raised when applying a strategy to a series fails unexpectedly."""
