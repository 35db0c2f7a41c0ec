"""
Explicit per-session state handed to every component call.
"""
from dataclasses import dataclass
from typing import Optional

from .metrics import SessionMetricsAccumulator


@dataclass
class SessionContext:
    """Session identity, the metrics accumulator and the current clock reading."""
    game: str
    player_id: str
    level: str
    metrics: SessionMetricsAccumulator
    now: float = 0.0
    started_at: Optional[float] = None

    @property
    def elapsed(self) -> float:
        if self.started_at is None:
            return 0.0
        return max(0.0, self.now - self.started_at)
