"""
Cross-session consistency score from recent completion times.
"""
import logging
from typing import Optional, Sequence

import numpy as np

from .types import HistoryStore

logger = logging.getLogger(__name__)

DEFAULT_WINDOW = 5


class ConsistencyEstimator:
    """
    Scores how steady a player's completion times are.

    score = clamp(100 - cv, 0, 100) where cv = 100 * std / mean over the most
    recent `window` durations (population standard deviation). Fewer samples
    than the window means the score is undetermined (None), which callers
    must show as empty rather than 0.
    """

    def __init__(self, window: int = DEFAULT_WINDOW):
        if window < 1:
            raise ValueError(f"window must be at least 1, got {window}")
        self.window = window

    def estimate(self, durations: Sequence[float]) -> Optional[float]:
        """
        Compute the consistency score.

        Args:
            durations: Elapsed seconds of past sessions, newest first

        Returns:
            Score in [0, 100] rounded to 2 decimals, or None with insufficient history
        """
        if len(durations) < self.window:
            logger.debug(f"Not enough games for consistency calculation (need {self.window}, have {len(durations)})")
            return None

        sample = np.asarray(durations[:self.window], dtype=float)
        mean = float(sample.mean())
        std = float(sample.std())
        cv = (std / mean) * 100 if mean > 0 else 0.0

        score = max(0.0, min(100.0, 100.0 - cv))
        return round(score * 100) / 100

    def estimate_for(self, history: HistoryStore, game: str, player_id: str, level: str) -> Optional[float]:
        """Query the most recent sessions of a player at a level and score them."""
        durations = history.recent_durations(game, player_id, level, limit=self.window)
        return self.estimate(durations)
