"""Persistent high-score table.

Keeps the best distances (whole meters) in descending order, capped at
``capacity`` entries, and saves them to a small JSON file.
"""

import json
import logging
import time
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)


class HighScoreTable:
    """Top-N distance scores backed by a JSON file.

    Usage:
        table = HighScoreTable("data/highscores.json")
        if table.record(distance_m):
            print("New high score!")
        table.save()

    A missing file starts an empty table. A file that cannot be parsed is
    reported and ignored; it is overwritten on the next save.
    """

    def __init__(self, path: Optional[str] = "data/highscores.json", capacity: int = 10):
        self.path = Path(path) if path is not None else None
        self.capacity = capacity
        self._scores: List[int] = []
        self.load()

    @property
    def scores(self) -> List[int]:
        return list(self._scores)

    @property
    def best(self) -> int:
        return self._scores[0] if self._scores else 0

    def __len__(self) -> int:
        return len(self._scores)

    def load(self) -> List[int]:
        """Read scores from disk, replacing the in-memory table."""
        self._scores = []
        if self.path is None or not self.path.exists():
            return self.scores
        try:
            with open(self.path) as f:
                data = json.load(f)
            raw = data.get("scores", []) if isinstance(data, dict) else data
            self._scores = self._normalize(int(s) for s in raw)
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.warning("Ignoring unreadable high-score file %s: %s", self.path, e)
            self._scores = []
        return self.scores

    def qualifies(self, distance: int) -> bool:
        if distance < 0:
            return False
        return len(self._scores) < self.capacity or distance > self._scores[-1]

    def record(self, distance: int) -> bool:
        """Insert a score if it makes the table.

        Returns:
            True if the score was kept
        """
        distance = int(distance)
        if not self.qualifies(distance):
            return False
        self._scores = self._normalize(self._scores + [distance])
        kept = distance in self._scores
        if kept:
            logger.info("High score recorded: %d m", distance)
        return kept

    def save(self) -> None:
        """Write the table to disk. OSError propagates to the caller."""
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = {
            "version": 1,
            "saved_at": time.time(),
            "scores": self._scores,
        }
        with open(self.path, "w") as f:
            json.dump(data, f, indent=2)

    def clear(self) -> None:
        self._scores = []

    def _normalize(self, scores) -> List[int]:
        return sorted(scores, reverse=True)[:self.capacity]
