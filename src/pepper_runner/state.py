"""Explicit game state owned by the simulation.

Everything that changes during play hangs off one GameState instance; the
update functions in dynamics, interactions, enemy_ai and level_gen receive it
(or pieces of it) explicitly.
"""

import random
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Hashable, List, Optional, Tuple

from .camera import Camera
from .config import GameConfig
from .difficulty import AdaptiveDifficulty
from .effects import TimedEffects
from .entities import Collectible, Enemy, Player, PowerBar, StaminaMeter, Structure
from .level_gen import WorldGenerator, WorldStreamer
from .quests import QuestTracker


class GamePhase(Enum):
    MENU = auto()
    PLAYING = auto()
    GAME_OVER = auto()


class DifficultyMode(Enum):
    NORMAL = "normal"
    EASY = "easy"

    @classmethod
    def parse(cls, value) -> "DifficultyMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(f"Unknown difficulty mode: {value!r}") from None


@dataclass(frozen=True)
class InputIntent:
    """Normalized input for one tick.

    ``analog_speed_factor`` scales horizontal speed when an analog source
    (stick, tilt) is active; None means full speed.
    """
    left: bool = False
    right: bool = False
    jump: bool = False
    crouch: bool = False
    analog_speed_factor: Optional[float] = None

    @property
    def speed_factor(self) -> float:
        if self.analog_speed_factor is None:
            return 1.0
        return min(1.0, max(0.0, float(self.analog_speed_factor)))


@dataclass
class GameEvent:
    """A gameplay event consumed by the quest tracker and adaptive difficulty."""
    type: str
    amount: float = 1
    key: Optional[Hashable] = None


@dataclass
class Interior:
    """The building the player is inside, and where to put them back."""
    structure: Structure
    return_x: float
    return_y: float
    floor_y: float
    door: Tuple[float, float, float, float]  # (x, y, width, height), viewport coords
    items: List[Collectible] = field(default_factory=list)

    @property
    def door_center_x(self) -> float:
        return self.door[0] + self.door[2] / 2


@dataclass
class GameState:
    config: GameConfig
    rng: random.Random
    player: Player
    camera: Camera
    world: WorldStreamer
    quests: QuestTracker
    difficulty: AdaptiveDifficulty
    effects: TimedEffects
    mode: DifficultyMode = DifficultyMode.NORMAL
    phase: GamePhase = GamePhase.MENU

    enemies: List[Enemy] = field(default_factory=list)
    stamina: StaminaMeter = field(default_factory=StaminaMeter)
    power_bar: PowerBar = field(default_factory=PowerBar)
    events: List[GameEvent] = field(default_factory=list)

    inside: Optional[Interior] = None
    door_latch: bool = False  # crouch must be released before the next door transition

    note_count: int = 0
    record_count: int = 0
    enemies_defeated: int = 0
    spawn_x: float = 0.0
    max_x: float = 0.0
    distance_m: int = 0
    time: float = 0.0
    tick: int = 0
    death_cause: Optional[str] = None

    @classmethod
    def create(cls, config: GameConfig, seed: Optional[int] = None,
               mode: Optional[DifficultyMode] = None) -> "GameState":
        """Fresh state at spawn defaults."""
        rng = random.Random(seed if seed is not None else config.seed)
        player = Player.spawn(config)
        return cls(
            config=config,
            rng=rng,
            player=player,
            camera=Camera(config.screen_width, config.screen_height),
            world=WorldStreamer(config, WorldGenerator(config, rng)),
            quests=QuestTracker(config=config.quests),
            difficulty=AdaptiveDifficulty(config.difficulty),
            effects=TimedEffects(),
            mode=mode or DifficultyMode.parse(config.mode),
            spawn_x=player.x,
            max_x=player.x,
        )

    @property
    def counting(self) -> bool:
        """Whether distance and item counters accumulate (not in easy mode)."""
        return self.mode is DifficultyMode.NORMAL

    @property
    def is_inside(self) -> bool:
        return self.inside is not None

    def emit(self, event_type: str, amount: float = 1, key: Optional[Hashable] = None) -> None:
        self.events.append(GameEvent(event_type, amount, key))
