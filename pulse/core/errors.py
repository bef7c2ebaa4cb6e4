"""Error taxonomy for the metrics engine.

Infrastructure adapters translate driver exceptions into these classes so the
read paths can degrade and the rollup can abort without knowing which store
or cache is behind them.
"""


class PulseError(Exception):
    """Base class for engine errors."""


class DataUnavailable(PulseError):
    """The event or summary store could not be read or written."""


class InvalidScope(PulseError):
    """Unknown metric id / context, or an entity reference that does not exist."""


class CacheBackendFailure(PulseError):
    """The cache backend failed; callers treat this as a miss."""
