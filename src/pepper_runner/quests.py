"""Scripted quests driven by gameplay events.

Exactly one quest is active at a time: the lowest-index incomplete one.
Gameplay code emits events (``collect_note``, ``enter_house`` ...); the
tracker routes each event to the active quest if the quest's type accepts it.
Completing a quest does not advance the pointer immediately: the simulation
schedules ``advance()`` after a delay so the completion message stays visible.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Hashable, List, Optional, Set

from .config import QuestConfig

logger = logging.getLogger(__name__)


# Event type -> quest types it feeds
EVENT_ROUTES: Dict[str, FrozenSet[str]] = {
    "collect_note": frozenset({"collect_notes", "collect_total"}),
    "collect_record": frozenset({"collect_total"}),
    "collect_rare": frozenset({"collect_total"}),
    "enter_house": frozenset({"enter_houses"}),
    "visit_building": frozenset({"visit_buildings"}),
    "use_sprint": frozenset({"use_sprint"}),
    "defeat_enemy": frozenset({"defeat_enemies"}),
    "distance": frozenset({"distance"}),
}

# Quest types whose progress is a running maximum rather than a sum
MAX_PROGRESS_TYPES = frozenset({"distance"})


@dataclass
class Reward:
    """What completing a quest grants.

    kind is one of ``message``, ``stamina_boost`` (amount added to the stamina
    fill) or ``speed_boost`` (amount multiplies move speed for ``duration`` s).
    """
    kind: str = "message"
    amount: float = 0.0
    duration: float = 0.0
    text: str = ""


@dataclass
class Quest:
    id: str
    title: str
    description: str
    type: str
    target: int
    reward: Reward = field(default_factory=Reward)
    progress: int = 0
    completed: bool = False

    @property
    def fraction(self) -> float:
        return min(1.0, self.progress / self.target) if self.target else 1.0


def default_quests() -> List[Quest]:
    """Fresh copy of the built-in quest line."""
    return [
        Quest("welcome", "Welcome!", "Collect 5 notes", "collect_notes", 5,
              Reward("message", text="You're a natural collector!")),
        Quest("explorer", "Explorer", "Enter 3 different houses", "enter_houses", 3,
              Reward("stamina_boost", 0.5, text="Stamina +50%")),
        Quest("sprinter", "Sprinter", "Sprint 10 times", "use_sprint", 10,
              Reward("speed_boost", 1.2, 10.0, text="Speed x1.2 for 10s")),
        Quest("hero", "Neighborhood Hero", "Defeat 3 enemies", "defeat_enemies", 3,
              Reward("stamina_boost", 1.0, text="Stamina fully restored")),
        Quest("tourist", "Tourist", "Visit 2 kinds of special buildings", "visit_buildings", 2,
              Reward("speed_boost", 1.3, 8.0, text="Speed x1.3 for 8s")),
        Quest("survivor", "Survivor", "Walk 2000 meters", "distance", 2000,
              Reward("message", text="What a journey!")),
        Quest("collector", "Collector", "Collect 20 items", "collect_total", 20,
              Reward("stamina_boost", 1.0, text="Stamina fully restored")),
    ]


class QuestTracker:
    """Tracks progress on the active quest and the on-screen notification."""

    def __init__(self, quests: Optional[List[Quest]] = None, config: Optional[QuestConfig] = None):
        self.config = config or QuestConfig()
        self._template = quests
        self.quests: List[Quest] = []
        self.current_index = 0
        self.notification: Optional[str] = None
        self.notification_timer = 0.0
        self._seen_keys: Dict[str, Set[Hashable]] = {}
        self.reset()

    @property
    def active(self) -> Optional[Quest]:
        if self.current_index < len(self.quests):
            return self.quests[self.current_index]
        return None

    @property
    def all_complete(self) -> bool:
        return self.active is None

    @property
    def awaiting_advance(self) -> bool:
        """Active quest is complete but the pointer has not moved yet."""
        quest = self.active
        return quest is not None and quest.completed

    def update_progress(
        self,
        event_type: str,
        amount: float = 1,
        key: Optional[Hashable] = None,
    ) -> Optional[Quest]:
        """Route an event to the active quest.

        Args:
            event_type: Gameplay event name (see EVENT_ROUTES). Unknown names are ignored.
            amount: Increment, or the candidate maximum for max-progress quest types.
            key: Optional identity; an event with a key counts once per key.

        Returns:
            The quest if this event completed it, else None
        """
        quest = self.active
        if quest is None or quest.completed:
            return None
        if quest.type not in EVENT_ROUTES.get(event_type, ()):
            return None

        if key is not None:
            seen = self._seen_keys.setdefault(event_type, set())
            if key in seen:
                return None
            seen.add(key)

        if quest.type in MAX_PROGRESS_TYPES:
            quest.progress = max(quest.progress, int(amount))
        else:
            quest.progress += int(amount)

        if quest.progress >= quest.target:
            quest.progress = max(quest.progress, quest.target)
            quest.completed = True
            message = f"Quest complete: {quest.title}!"
            if quest.reward.text:
                message += f" {quest.reward.text}"
            self.notify(message)
            logger.info("Quest %r completed", quest.id)
            return quest
        return None

    def advance(self) -> Optional[Quest]:
        """Move past a completed active quest and announce the next one."""
        quest = self.active
        if quest is None or not quest.completed:
            return quest
        self.current_index += 1
        nxt = self.active
        if nxt is None:
            self.notify("All quests complete!")
        else:
            self.notify(f"New quest: {nxt.title} - {nxt.description}")
        return nxt

    def notify(self, text: str) -> None:
        self.notification = text
        self.notification_timer = self.config.notification_duration

    def update(self, dt: float) -> None:
        """Count down the notification display time."""
        if self.notification is None:
            return
        self.notification_timer -= dt
        if self.notification_timer <= 0:
            self.notification = None
            self.notification_timer = 0.0

    def quest_text(self) -> str:
        quest = self.active
        if quest is None:
            return "All quests complete"
        return f"{quest.title}: {quest.description} ({min(quest.progress, quest.target)}/{quest.target})"

    def reset(self) -> None:
        self.quests = [
            Quest(q.id, q.title, q.description, q.type, q.target, q.reward)
            for q in self._template
        ] if self._template is not None else default_quests()
        self.current_index = 0
        self.notification = None
        self.notification_timer = 0.0
        self._seen_keys = {}
