"""Adaptive difficulty from play statistics.

Three rates are folded into a skill score in [0, 1]:

- survival:    meters walked per death
- collection:  items collected per minute
- exploration: quests completed per minute

Each rate is normalized and capped at 1, the three are averaged equally, and
the skill score is mapped through piecewise-linear tables (np.interp) to the
multipliers consumed by world generation, enemy AI and stamina drain.
"""

from dataclasses import dataclass, asdict
from typing import Dict, Optional, Tuple

import numpy as np

from .config import DifficultyConfig


@dataclass
class PlayStats:
    deaths: int = 0
    distance: float = 0.0  # meters, running maximum
    items: int = 0
    time_played: float = 0.0  # seconds
    quests: int = 0
    sprints: int = 0


@dataclass
class DifficultyMultipliers:
    enemy_speed: float = 1.0
    spawn_frequency: float = 1.0
    object_frequency: float = 1.0
    stamina_drain: float = 1.0

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


# Gameplay event -> stat it bumps
_EVENT_STATS = {
    "collect_note": "items",
    "collect_record": "items",
    "collect_rare": "items",
    "use_sprint": "sprints",
}


class AdaptiveDifficulty:
    """Aggregates play statistics and derives difficulty multipliers."""

    def __init__(self, config: Optional[DifficultyConfig] = None):
        self.config = config or DifficultyConfig()
        self.stats = PlayStats()
        self.multipliers = DifficultyMultipliers()
        self.skill = 0.0

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    def record_event(self, event_type: str, amount: float = 1, counting: bool = True) -> None:
        """Fold a gameplay event into the statistics (unknown events are ignored).

        Item pickups only count when ``counting`` is set (normal mode).
        """
        if event_type == "distance":
            self.record_distance(amount)
            return
        stat = _EVENT_STATS.get(event_type)
        if stat == "items" and not counting:
            return
        if stat is not None:
            setattr(self.stats, stat, getattr(self.stats, stat) + 1)

    def record_death(self) -> None:
        self.stats.deaths += 1

    def record_distance(self, meters: float) -> None:
        self.stats.distance = max(self.stats.distance, float(meters))

    def record_quest(self) -> None:
        self.stats.quests += 1

    # ------------------------------------------------------------------
    # Skill score
    # ------------------------------------------------------------------

    def rates(self) -> Tuple[float, float, float]:
        """(survival, collection, exploration) rates from the current stats."""
        s = self.stats
        survival = s.distance / max(s.deaths, 1)
        if s.time_played > 0:
            minutes = s.time_played / 60.0
            collection = s.items / minutes
            exploration = s.quests / minutes
        else:
            collection = exploration = 0.0
        return survival, collection, exploration

    def compute_skill(self) -> float:
        c = self.config
        survival, collection, exploration = self.rates()
        scores = np.array([
            survival / c.survival_norm,
            collection / c.collection_norm,
            exploration / c.exploration_norm,
        ])
        return float(np.clip(scores, 0.0, 1.0).mean())

    def update(self, dt: float) -> DifficultyMultipliers:
        """Fold elapsed time in and recompute the multipliers."""
        self.stats.time_played += dt
        self.skill = self.compute_skill()
        c = self.config
        self.multipliers = DifficultyMultipliers(
            enemy_speed=_lookup(c.enemy_speed_table, self.skill),
            spawn_frequency=_lookup(c.spawn_frequency_table, self.skill),
            object_frequency=_lookup(c.object_frequency_table, self.skill),
            stamina_drain=_lookup(c.stamina_drain_table, self.skill),
        )
        return self.multipliers

    @property
    def description(self) -> str:
        low, high = self.config.tier_thresholds
        if self.skill < low:
            return "Easy"
        if self.skill < high:
            return "Normal"
        return "Hard"

    def reset(self) -> None:
        """Forget all statistics (they normally persist across restarts)."""
        self.stats = PlayStats()
        self.multipliers = DifficultyMultipliers()
        self.skill = 0.0


def _lookup(table: Tuple[Tuple[float, ...], Tuple[float, ...]], skill: float) -> float:
    xs, ys = table
    return float(np.interp(skill, xs, ys))
