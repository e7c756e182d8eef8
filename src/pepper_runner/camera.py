"""Horizontal camera following the player."""

from dataclasses import dataclass
from typing import Tuple


@dataclass
class Camera:
    """Viewport window into the world. Scrolls horizontally only."""
    width: float
    height: float
    scroll_x: float = 0.0

    @property
    def left(self) -> float:
        return self.scroll_x

    @property
    def right(self) -> float:
        return self.scroll_x + self.width

    def follow(self, player) -> float:
        """Center the player horizontally, never scrolling past the left world edge."""
        self.scroll_x = max(0.0, player.x + player.width / 2 - self.width / 2)
        return self.scroll_x

    def world_to_screen(self, x: float, y: float, parallax: float = 1.0) -> Tuple[int, int]:
        """World to screen coordinates. ``parallax`` < 1 scrolls slower (background)."""
        return int(x - self.scroll_x * parallax), int(y)

    def reset(self) -> None:
        self.scroll_x = 0.0
