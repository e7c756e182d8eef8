"""Deferred and temporary effects driven by the simulation clock.

Speed buffs, pad cooldowns and the delayed quest advance all schedule an
action to run once the simulation clock passes their expiry time. The list is
processed once per tick by the simulation, so nothing mutates game state
between ticks, and ``clear()`` on reset drops every pending action.
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class TimedEffect:
    expires_at: float
    action: Callable[[], None]
    tag: str = ""
    generation: int = 0


class TimedEffects:
    """Ordered list of pending actions keyed by expiry time.

    Each ``clear()`` bumps a generation counter; an action scheduled before
    the bump never runs, even if a clear happens while due actions are being
    executed.
    """

    def __init__(self):
        self.now = 0.0
        self.generation = 0
        self._entries: List[TimedEffect] = []

    def __len__(self) -> int:
        return len(self._entries)

    def schedule(self, delay: float, action: Callable[[], None], tag: str = "") -> TimedEffect:
        """Run ``action`` once ``delay`` seconds of simulation time have passed."""
        entry = TimedEffect(
            expires_at=self.now + max(0.0, delay),
            action=action,
            tag=tag,
            generation=self.generation,
        )
        self._entries.append(entry)
        return entry

    def apply(
        self,
        apply: Callable[[], None],
        revert: Callable[[], None],
        duration: float,
        tag: str = "",
    ) -> TimedEffect:
        """Apply an effect now and schedule its revert."""
        apply()
        return self.schedule(duration, revert, tag)

    def advance(self, dt: float) -> int:
        """Advance the clock and run every due action in expiry order.

        Returns:
            Number of actions executed
        """
        self.now += dt
        due = [e for e in self._entries if e.expires_at <= self.now]
        if not due:
            return 0
        self._entries = [e for e in self._entries if e.expires_at > self.now]
        due.sort(key=lambda e: e.expires_at)

        generation = self.generation
        ran = 0
        for entry in due:
            if entry.generation != generation or self.generation != generation:
                break
            entry.action()
            ran += 1
        return ran

    def cancel(self, tag: str) -> int:
        """Drop pending actions with the given tag without running them."""
        before = len(self._entries)
        self._entries = [e for e in self._entries if e.tag != tag]
        return before - len(self._entries)

    def pending(self, tag: Optional[str] = None) -> int:
        if tag is None:
            return len(self._entries)
        return sum(1 for e in self._entries if e.tag == tag)

    def clear(self) -> None:
        """Forget all pending actions (their reverts never run)."""
        if self._entries:
            logger.debug("Dropping %d pending timed effects", len(self._entries))
        self._entries = []
        self.generation += 1
        self.now = 0.0
