"""
Exceptions raised by the interaction and metrics engine.

Tracking loss, insufficient history and degenerate statistics are expected
conditions and are never raised.
"""


class MotionPlayError(Exception):
    """Base class for motionplay errors."""


class ConfigError(MotionPlayError, ValueError):
    """Configuration file is missing a key or holds an invalid value."""


class SessionFinalizedError(MotionPlayError, RuntimeError):
    """Metrics were mutated or finalized after the session was finalized."""


class SessionNotStartedError(MotionPlayError, RuntimeError):
    """A session was ticked or finished before start() was called."""
