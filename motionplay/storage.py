"""
Persisted session records and the stores that keep them.
"""
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionRecord(BaseModel):
    """One finished game session, as handed to the result sink."""
    game: str
    player_id: str
    level: str
    elapsed_seconds: float = Field(ge=0)
    total_distance: float = Field(ge=0)
    attempts: int = Field(ge=0)
    score: int = Field(ge=0)
    consistency: Optional[float] = Field(default=None, ge=0, le=100)
    boundary_hits: int = Field(default=0, ge=0)
    losses: int = Field(default=0, ge=0)
    ratios: Dict[str, float] = Field(default_factory=dict)
    details: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=_utcnow)


class InMemoryResultStore:
    """Append-only record list; sink and history in one."""

    def __init__(self, records: Optional[List[SessionRecord]] = None):
        self.records: List[SessionRecord] = list(records or [])

    def save(self, record: SessionRecord) -> None:
        self.records.append(record)
        logger.info(f"💾 Saved {record.game} session for {record.player_id}")

    def recent_durations(self, game: str, player_id: str, level: str, limit: int = 5) -> List[float]:
        matching = [r for r in reversed(self.records)
                    if r.game == game and r.player_id == player_id and r.level == level]
        return [r.elapsed_seconds for r in matching[:limit]]


class JsonlResultStore:
    """
    Append-only JSON-lines file of session records.

    Each line is one SessionRecord; file order is recency order.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def save(self, record: SessionRecord) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, 'a', encoding='utf-8') as f:
            f.write(record.model_dump_json() + "\n")
        logger.info(f"💾 Saved {record.game} session for {record.player_id} to {self.path}")

    def load(self) -> List[SessionRecord]:
        """Read every record in the file, oldest first."""
        if not self.path.exists():
            return []

        records = []
        with open(self.path, 'r', encoding='utf-8') as f:
            for line_no, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    records.append(SessionRecord.model_validate(json.loads(line)))
                except ValueError as e:
                    logger.warning(f"⚠️ Skipping unreadable record at {self.path}:{line_no}: {e}")
        return records

    def recent_durations(self, game: str, player_id: str, level: str, limit: int = 5) -> List[float]:
        matching = [r for r in reversed(self.load())
                    if r.game == game and r.player_id == player_id and r.level == level]
        return [r.elapsed_seconds for r in matching[:limit]]
