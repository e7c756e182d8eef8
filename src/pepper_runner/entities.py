"""Game entities: player, enemies and the world-object variants.

Entities are data records. Behavior lives in dynamics (integration),
interactions (collisions and pickups) and enemy_ai (enemy behaviors).

World objects form a closed sum type: every variant is a dataclass deriving
from WorldObject and declares its ``kind`` as an ObjectKind class attribute,
which is what dispatch tables key on.
"""

import itertools
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import ClassVar, Dict, List, Optional, Tuple

import pymunk

from .config import GameConfig
from .physics import box, inset


Color = Tuple[int, int, int]

_UIDS = itertools.count(1)


def _next_uid() -> int:
    return next(_UIDS)


class Facing(Enum):
    LEFT = -1
    RIGHT = 1


class Layer(Enum):
    """Render layer; background objects scroll with parallax and never collide."""
    FOREGROUND = auto()
    BACKGROUND = auto()


class ObjectKind(Enum):
    STRUCTURE = auto()
    TREE = auto()
    STREETLIGHT = auto()
    FENCE = auto()
    BUSH = auto()
    POLE = auto()
    SPEED_PAD = auto()
    CRATE = auto()
    COLLECTIBLE = auto()


class BuildingType(Enum):
    HOUSE = "house"
    HOSPITAL = "hospital"
    FIRE_STATION = "fire_station"
    STORE = "store"
    SUPERMARKET = "supermarket"


class ItemType(Enum):
    NOTE = "note"
    RECORD = "record"
    GOLDEN_NOTE = "golden_note"
    ENERGY_CRYSTAL = "energy_crystal"
    SPEED_BOOST = "speed_boost"
    MYSTERY_BOX = "mystery_box"

    @property
    def rare(self) -> bool:
        return self not in (ItemType.NOTE, ItemType.RECORD)


class EnemyKind(Enum):
    SLIME = "slime"
    BAT = "bat"
    SPIDER = "spider"
    GHOST = "ghost"
    SNAKE = "snake"
    WOLF = "wolf"


class Behavior(Enum):
    """Enemy movement behaviors (see enemy_ai)."""
    PATROL = auto()
    FLY = auto()
    WEB = auto()
    FLOAT = auto()
    SLITHER = auto()
    CHASE = auto()


# Behavior assigned to each enemy kind at spawn time
ENEMY_BEHAVIORS: Dict[EnemyKind, Behavior] = {
    EnemyKind.SLIME: Behavior.PATROL,
    EnemyKind.BAT: Behavior.FLY,
    EnemyKind.SPIDER: Behavior.WEB,
    EnemyKind.GHOST: Behavior.FLOAT,
    EnemyKind.SNAKE: Behavior.SLITHER,
    EnemyKind.WOLF: Behavior.CHASE,
}


# ---------------------------------------------------------------------------
# World objects
# ---------------------------------------------------------------------------


@dataclass(eq=False)
class WorldObject:
    """Common fields of every world object.

    Position is the top-left corner in world coordinates. Identity-hashed so
    objects can key the spatial index.
    """
    x: float
    y: float
    width: float
    height: float
    layer: Layer = Layer.FOREGROUND
    collidable: bool = False  # blocks movement (push-out)
    walkable: bool = False  # top edge can be stood on
    color: Color = (128, 128, 128)
    uid: int = field(default_factory=_next_uid)

    kind: ClassVar[ObjectKind]

    @property
    def bounds(self) -> pymunk.BB:
        return box(self.x, self.y, self.width, self.height)

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def walkable_surface_y(self) -> Optional[float]:
        return self.y if self.walkable else None

    @property
    def active(self) -> bool:
        """Whether the object still takes part in collisions and rendering."""
        return True

    def signature(self) -> Tuple:
        """Geometry and kind, without identity (for comparing generated worlds)."""
        return (self.kind.name, round(self.x, 6), round(self.y, 6),
                round(self.width, 6), round(self.height, 6))


@dataclass(eq=False)
class Furniture:
    """A piece of house furniture, in interior (viewport) coordinates."""
    name: str
    x: float
    y: float
    width: float
    height: float
    color: Color = (150, 110, 70)

    @property
    def bounds(self) -> pymunk.BB:
        return box(self.x, self.y, self.width, self.height)


@dataclass(eq=False)
class Structure(WorldObject):
    """A building. Foreground buildings have walkable roofs."""
    building: BuildingType = BuildingType.HOUSE
    door: Optional[Tuple[float, float, float, float]] = None  # (x, y, width, height), world coords
    has_window: bool = False
    furniture: Optional[List[Furniture]] = None  # generated on first entry
    effect_used: bool = False

    kind: ClassVar[ObjectKind] = ObjectKind.STRUCTURE

    @property
    def door_bounds(self) -> Optional[pymunk.BB]:
        if self.door is None:
            return None
        return box(*self.door)


@dataclass(eq=False)
class Tree(WorldObject):
    trunk_height: float = 100.0
    canopy_radius: float = 60.0

    kind: ClassVar[ObjectKind] = ObjectKind.TREE


@dataclass(eq=False)
class Streetlight(WorldObject):
    kind: ClassVar[ObjectKind] = ObjectKind.STREETLIGHT


@dataclass(eq=False)
class Fence(WorldObject):
    kind: ClassVar[ObjectKind] = ObjectKind.FENCE


@dataclass(eq=False)
class Bush(WorldObject):
    kind: ClassVar[ObjectKind] = ObjectKind.BUSH


@dataclass(eq=False)
class Pole(WorldObject):
    kind: ClassVar[ObjectKind] = ObjectKind.POLE


@dataclass(eq=False)
class SpeedPad(WorldObject):
    """Multiplies the player's horizontal speed once, then rearms after a cooldown."""
    activated: bool = False

    kind: ClassVar[ObjectKind] = ObjectKind.SPEED_PAD


@dataclass(eq=False)
class Crate(WorldObject):
    """Solid until broken by landing on it."""
    broken: bool = False

    kind: ClassVar[ObjectKind] = ObjectKind.CRATE

    @property
    def active(self) -> bool:
        return not self.broken


@dataclass(eq=False)
class Collectible(WorldObject):
    """A pickup. ``collected`` only ever goes from False to True."""
    item: ItemType = ItemType.NOTE
    collected: bool = False
    spawned_inside: bool = False

    kind: ClassVar[ObjectKind] = ObjectKind.COLLECTIBLE

    @property
    def active(self) -> bool:
        return not self.collected

    def signature(self) -> Tuple:
        return super().signature() + (self.item.value,)


# ---------------------------------------------------------------------------
# Enemies
# ---------------------------------------------------------------------------


@dataclass(eq=False)
class Enemy:
    """A live enemy. Behavior-specific fields are only read by that behavior."""
    kind: EnemyKind
    behavior: Behavior
    x: float
    y: float
    width: float = 40.0
    height: float = 40.0
    vx: float = 0.0
    vy: float = 0.0
    speed: float = 100.0  # current speed, difficulty-scaled
    nominal_speed: float = 100.0  # speed before difficulty scaling
    hitbox_offset: float = 10.0
    health: int = 1
    dead: bool = False
    death_timer: float = 0.0
    on_ground: bool = False
    stomp_contact: bool = False  # player has overlapped it continuously since its last stomp

    # Behavior state
    origin_x: float = 0.0
    origin_y: float = 0.0
    direction: int = -1
    phase: float = 0.0  # elapsed behavior time (fly/float/slither)
    triggered: bool = False  # spider has dropped
    chasing: bool = False
    jump_cooldown: float = 0.0

    anim_frame: int = 0
    anim_timer: float = 0.0
    uid: int = field(default_factory=_next_uid)

    @property
    def bounds(self) -> pymunk.BB:
        return box(self.x, self.y, self.width, self.height)

    @property
    def hitbox(self) -> pymunk.BB:
        return inset(self.bounds, self.hitbox_offset)

    @property
    def center(self) -> Tuple[float, float]:
        return self.x + self.width / 2, self.y + self.height / 2

    @property
    def facing(self) -> Facing:
        return Facing.RIGHT if self.direction > 0 else Facing.LEFT


# ---------------------------------------------------------------------------
# Player
# ---------------------------------------------------------------------------


@dataclass(eq=False)
class Player:
    """The player character.

    Height toggles between the standing and crouch constants; the feet stay
    put when it changes.
    """
    x: float
    y: float
    width: float = 50.0
    height: float = 60.0
    vx: float = 0.0
    vy: float = 0.0
    facing: Facing = Facing.RIGHT
    on_ground: bool = True
    base_move_speed: float = 200.0

    # Jump state
    jump_active: bool = False  # variable-height window still open
    jump_timer: float = 0.0
    jump_input_prev: bool = False
    accelerated_jump: bool = False
    accel_factor: float = 1.0

    # Wall state; wall_direction is +1 for a wall on the right, -1 on the left
    wall_sliding: bool = False
    wall_direction: int = 0
    wall_jump_lock: float = 0.0

    crouching: bool = False
    sprinting: bool = False

    anim: str = "idle"
    anim_frame: int = 0
    anim_timer: float = 0.0

    @classmethod
    def spawn(cls, config: GameConfig) -> "Player":
        """Player standing on the ground near the viewport center."""
        p = config.player
        return cls(
            x=config.screen_width / 2 - p.initial_x_offset,
            y=config.ground_y - p.standing_height,
            width=p.width,
            height=p.standing_height,
            base_move_speed=p.base_move_speed,
        )

    @property
    def bounds(self) -> pymunk.BB:
        return box(self.x, self.y, self.width, self.height)

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Tuple[float, float]:
        return self.x + self.width / 2, self.y + self.height / 2

    @property
    def position(self) -> Tuple[float, float]:
        return self.x, self.y

    @property
    def velocity(self) -> Tuple[float, float]:
        return self.vx, self.vy


@dataclass
class StaminaMeter:
    fill: float = 1.0

    def restore(self, amount: float = 1.0) -> None:
        self.fill = min(1.0, max(0.0, self.fill + amount))


@dataclass
class PowerBar:
    """Oscillating timing bar; jumping while it is red grants the accelerated jump."""
    fill: float = 0.0
    direction: int = 1
    visible: bool = False
    red: bool = False
