"""Exceptions raised by the simulator.

Two tiers exist: configuration errors are detected before any access is
simulated, trace errors abort a run part way through. Both are fatal for
the run; the CLI turns them into a diagnostic and a nonzero exit status.
"""


class CacheSimError(Exception):
    """Base class for every error the simulator raises on purpose."""


class ConfigError(CacheSimError, ValueError):
    """Invalid cache or hierarchy configuration."""


class TraceError(CacheSimError, ValueError):
    """A trace line parsed but carries an unknown access kind."""

    def __init__(self, message: str, lineno: int = 0, kind: str = ""):
        super().__init__(message)
        self.lineno = lineno
        self.kind = kind


__all__ = ["CacheSimError", "ConfigError", "TraceError"]
