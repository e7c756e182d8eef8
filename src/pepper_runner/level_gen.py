"""Procedural world generation and streaming.

WorldGenerator turns an x-range into world objects and enemies. It is a pure
function of (range, random source, multipliers): all randomness comes from
the injected ``random.Random``, so a seeded generator reproduces the same
world.

WorldStreamer owns the live object set. It keeps content generated up to a
frontier that stays at least one generation buffer ahead of the camera's
right edge, and prunes what falls more than one view range behind the
camera's left edge. The frontier only moves forward, so no range is ever
generated twice.

Generation walks forward in steps of ``segment_width + jitter``. At each step
it draws one object category from a cumulative probability table, then
independently rolls for an enemy and for a collectible.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from .config import GameConfig
from .enemy_ai import spawn_enemy
from .entities import (
    BuildingType, Bush, Collectible, Crate, Enemy, EnemyKind, Fence, Furniture,
    ItemType, Layer, Pole, SpeedPad, Streetlight, Structure, Tree, WorldObject,
)
from .physics import SpatialIndex, box, inset, overlaps

logger = logging.getLogger(__name__)


# Palettes per category
_HOUSE_COLORS = [(198, 120, 93), (222, 184, 135), (160, 82, 45), (205, 133, 63), (176, 196, 222)]
_BUILDING_COLORS = {
    BuildingType.HOSPITAL: (235, 235, 240),
    BuildingType.FIRE_STATION: (190, 50, 45),
    BuildingType.STORE: (90, 160, 200),
    BuildingType.SUPERMARKET: (110, 180, 110),
}
_TREE_COLORS = [(34, 139, 34), (46, 125, 50), (85, 107, 47)]
_ITEM_COLORS = {
    ItemType.NOTE: (255, 215, 0),
    ItemType.RECORD: (60, 60, 60),
    ItemType.GOLDEN_NOTE: (255, 190, 0),
    ItemType.ENERGY_CRYSTAL: (120, 220, 255),
    ItemType.SPEED_BOOST: (255, 120, 40),
    ItemType.MYSTERY_BOX: (170, 90, 220),
}

# name -> ((min_w, max_w), (min_h, max_h), color, raised above floor)
FURNITURE_TYPES: Dict[str, Tuple[Tuple[float, float], Tuple[float, float], Tuple[int, int, int], float]] = {
    "refrigerator": ((60, 80), (140, 180), (220, 220, 225), 0.0),
    "cabinet": ((80, 120), (80, 120), (139, 90, 43), 0.0),
    "table": ((100, 150), (60, 80), (160, 110, 60), 0.0),
    "television": ((80, 120), (50, 70), (30, 30, 35), 60.0),
    "sofa": ((150, 200), (70, 90), (120, 60, 60), 0.0),
    "plant": ((40, 60), (80, 120), (60, 140, 60), 0.0),
    "painting": ((60, 100), (40, 70), (200, 170, 90), 120.0),
    "bookshelf": ((80, 120), (150, 200), (110, 70, 40), 0.0),
    "chair": ((40, 60), (70, 90), (150, 100, 50), 0.0),
}


@dataclass
class Segment:
    """Result of one generation call."""
    start_x: float
    end_x: float  # where the generation cursor stopped (>= requested end)
    objects: List[WorldObject] = field(default_factory=list)
    enemies: List[Enemy] = field(default_factory=list)


class WorldGenerator:
    """Generates world content for an x-range from an injected random source."""

    def __init__(self, config: GameConfig, rng: Optional[random.Random] = None,
                 seed: Optional[int] = None):
        self.config = config
        self.gen = config.generation
        self.ground_y = config.ground_y
        self.rng = rng if rng is not None else random.Random(seed)

        self._builders: Dict[str, Callable[[float], List[WorldObject]]] = {
            "house": lambda x: [self._make_structure(x, BuildingType.HOUSE)],
            "hospital": lambda x: [self._make_structure(x, BuildingType.HOSPITAL)],
            "fire_station": lambda x: [self._make_structure(x, BuildingType.FIRE_STATION)],
            "store": lambda x: [self._make_structure(x, BuildingType.STORE)],
            "supermarket": lambda x: [self._make_structure(x, BuildingType.SUPERMARKET)],
            "tree": lambda x: [self._make_tree(x)],
            "streetlight": lambda x: [self._make_streetlight(x)],
            "fence": lambda x: [self._make_fence(x)],
            "bush": lambda x: [self._make_bush(x)],
            "small": lambda x: [self._make_small(x)],
        }

    @classmethod
    def from_config(cls, config: GameConfig, seed: Optional[int] = None) -> "WorldGenerator":
        return cls(config, seed=config.seed if seed is None else seed)

    def generate(
        self,
        start_x: float,
        end_x: float,
        distance_m: float = 0.0,
        object_frequency: float = 1.0,
        spawn_frequency: float = 1.0,
    ) -> Segment:
        """Generate content for [start_x, end_x).

        Args:
            start_x: First x position of the walk
            end_x: The walk stops at the first step at or beyond this x
            distance_m: Meters walked so far; raises the enemy spawn chance
            object_frequency: Difficulty multiplier on collectible chance
            spawn_frequency: Difficulty multiplier on enemy spawn chance

        Returns:
            Segment with objects sorted by x
        """
        segment = Segment(start_x=start_x, end_x=start_x)
        x = start_x
        while x < end_x:
            category = self._pick_category()
            if category is not None:
                segment.objects.extend(self._builders[category](x))

            enemy = self._maybe_enemy(x, distance_m, spawn_frequency)
            if enemy is not None:
                segment.enemies.append(enemy)

            item = self._maybe_collectible(x, object_frequency)
            if item is not None:
                segment.objects.append(item)

            x += self.gen.segment_width + self.rng.random() * self.gen.segment_jitter

        segment.end_x = x
        segment.objects.sort(key=lambda o: o.x)
        logger.debug("Generated [%.0f, %.0f): %d objects, %d enemies",
                     start_x, x, len(segment.objects), len(segment.enemies))
        return segment

    def _pick_category(self) -> Optional[str]:
        r = self.rng.random()
        cumulative = 0.0
        for name, p in self.gen.category_probabilities.items():
            cumulative += p
            if r < cumulative:
                return name
        return None

    # ------------------------------------------------------------------
    # Builders
    # ------------------------------------------------------------------

    def _make_structure(self, x: float, building: BuildingType) -> Structure:
        g = self.gen
        rng = self.rng
        if building is BuildingType.HOUSE:
            width = rng.uniform(*g.house_width)
            height = rng.uniform(*g.house_height)
            color = rng.choice(_HOUSE_COLORS)
            background = rng.random() < g.background_probability
        else:
            width = rng.uniform(*g.building_width)
            height = rng.uniform(*g.building_height)
            color = _BUILDING_COLORS[building]
            background = False

        if background:
            scale = rng.uniform(*g.background_scale)
            width *= scale
            height *= scale
            return Structure(
                x=x, y=self.ground_y - height, width=width, height=height,
                layer=Layer.BACKGROUND, color=color, building=building,
            )

        has_window = rng.random() < g.window_probability
        has_door = building is not BuildingType.HOUSE or rng.random() < g.door_probability
        structure = Structure(
            x=x, y=self.ground_y - height, width=width, height=height,
            walkable=True, color=color, building=building, has_window=has_window,
        )
        if has_door:
            door_w = width / 4
            door_h = height / 2
            if has_window:
                door_x = x + width - door_w - width / 8
            else:
                door_x = x + (width - door_w) / 2
            structure.door = (door_x, self.ground_y - door_h, door_w, door_h)
        return structure

    def _make_tree(self, x: float) -> Tree:
        trunk = self.rng.uniform(*self.gen.tree_trunk_height)
        radius = self.rng.uniform(*self.gen.tree_canopy_radius)
        height = trunk + radius
        return Tree(
            x=x, y=self.ground_y - height, width=radius * 2, height=height,
            color=self.rng.choice(_TREE_COLORS), trunk_height=trunk, canopy_radius=radius,
        )

    def _make_streetlight(self, x: float) -> Streetlight:
        height = self.rng.uniform(*self.gen.streetlight_height)
        return Streetlight(x=x, y=self.ground_y - height, width=10.0, height=height,
                           color=(70, 70, 80))

    def _make_fence(self, x: float) -> Fence:
        width = self.rng.uniform(*self.gen.fence_width)
        height = self.gen.fence_height
        return Fence(x=x, y=self.ground_y - height, width=width, height=height,
                     walkable=True, color=(230, 230, 220))

    def _make_bush(self, x: float) -> Bush:
        size = self.rng.uniform(*self.gen.bush_size)
        return Bush(x=x, y=self.ground_y - size, width=size, height=size,
                    color=(50, 150, 60))

    def _make_small(self, x: float) -> WorldObject:
        """Pole, speed pad or breakable crate."""
        g = self.gen
        r = self.rng.random()
        if r < g.pole_probability:
            height = self.rng.uniform(*g.pole_height)
            return Pole(x=x, y=self.ground_y - height, width=g.pole_width, height=height,
                        collidable=True, color=(90, 90, 100))
        if r < g.pole_probability + g.speed_pad_probability:
            w, h = g.speed_pad_size
            return SpeedPad(x=x, y=self.ground_y - h, width=w, height=h,
                            walkable=True, color=(255, 140, 0))
        w, h = g.crate_size
        return Crate(x=x, y=self.ground_y - h, width=w, height=h,
                     collidable=True, color=(150, 100, 50))

    # ------------------------------------------------------------------
    # Enemies and collectibles
    # ------------------------------------------------------------------

    def spawn_probability(self, distance_m: float, spawn_frequency: float = 1.0) -> float:
        e = self.config.enemies
        p = min(e.max_spawn_probability, e.spawn_probability + e.spawn_probability_per_meter * distance_m)
        return min(1.0, p * spawn_frequency)

    def _maybe_enemy(self, x: float, distance_m: float, spawn_frequency: float) -> Optional[Enemy]:
        roll = self.rng.random()
        if x < self.gen.enemy_safe_zone:
            return None
        if roll >= self.spawn_probability(distance_m, spawn_frequency):
            return None
        weights = self.config.enemies.spawn_weights
        kinds = [EnemyKind(name) for name in weights]
        kind = self.rng.choices(kinds, weights=list(weights.values()))[0]
        return spawn_enemy(kind, x, self.config)

    def _maybe_collectible(self, x: float, object_frequency: float) -> Optional[Collectible]:
        g = self.gen
        if self.rng.random() >= min(1.0, g.collectible_probability * object_frequency):
            return None
        item = self.pick_item()
        size = g.collectible_size
        cx = x + self.rng.random() * g.collectible_x_jitter
        cy = self.ground_y - size - self.rng.random() * g.collectible_y_jitter
        return make_collectible(cx, cy, item, size)

    def pick_item(self, allow_rare: bool = True) -> ItemType:
        """Common tier (note/record) or, rarely, one of the rare items."""
        g = self.gen
        if allow_rare and self.rng.random() < g.rare_probability:
            names = list(g.rare_weights)
            name = self.rng.choices(names, weights=[g.rare_weights[n] for n in names])[0]
            return ItemType(name)
        return ItemType.NOTE if self.rng.random() < g.note_probability else ItemType.RECORD

    # ------------------------------------------------------------------
    # Interiors
    # ------------------------------------------------------------------

    def interior_door(self) -> Tuple[float, float, float, float]:
        """Exit door rectangle, centered on the interior floor (viewport coords)."""
        w, h = self.gen.interior_door_size
        floor_y = self.config.screen_height / 2
        return ((self.config.screen_width - w) / 2, floor_y - h, w, h)

    def generate_furniture(self) -> List[Furniture]:
        """3-6 non-overlapping pieces that keep clear of the exit door."""
        g = self.gen
        rng = self.rng
        room_w = self.config.screen_width
        floor_y = self.config.screen_height / 2
        door = inset(box(*self.interior_door()), -g.interior_door_padding)

        placed: List[Furniture] = []
        count = rng.randint(*g.furniture_count)
        names = list(FURNITURE_TYPES)
        for _ in range(count):
            name = rng.choice(names)
            (min_w, max_w), (min_h, max_h), color, raised = FURNITURE_TYPES[name]
            width = rng.uniform(min_w, max_w)
            height = rng.uniform(min_h, max_h)
            for _attempt in range(g.furniture_attempts):
                fx = rng.uniform(0, max(0.0, room_w - width))
                piece = Furniture(name, fx, floor_y - height - raised, width, height, color)
                if overlaps(piece.bounds, door):
                    continue
                if any(overlaps(piece.bounds, other.bounds) for other in placed):
                    continue
                placed.append(piece)
                break
        return placed

    def interior_items(self, count: int, rare_last: bool = False) -> List[Collectible]:
        """Collectibles spread evenly along the interior floor."""
        size = self.gen.collectible_size
        room_w = self.config.screen_width
        floor_y = self.config.screen_height / 2
        items = []
        for i in range(count):
            if rare_last and i == count - 1:
                item = self.pick_item(allow_rare=True)
            else:
                item = self.pick_item(allow_rare=False)
            x = (i + 1) * room_w / (count + 1) - size / 2
            c = make_collectible(x, floor_y - size - 10.0, item, size)
            c.spawned_inside = True
            items.append(c)
        return items


def make_collectible(x: float, y: float, item: ItemType, size: float = 24.0) -> Collectible:
    return Collectible(x=x, y=y, width=size, height=size, item=item,
                       color=_ITEM_COLORS.get(item, (255, 255, 255)))


class WorldStreamer:
    """Live world objects with a forward-only generation frontier."""

    def __init__(self, config: GameConfig, generator: WorldGenerator):
        self.config = config
        self.generator = generator
        self.objects: List[WorldObject] = []
        self.index = SpatialIndex()
        self.frontier = 0.0

    @property
    def view_range(self) -> float:
        return self.config.view_range

    @property
    def buffer(self) -> float:
        return self.config.generation_buffer

    def needs_segment(self, camera) -> bool:
        return camera.right + self.buffer > self.frontier

    def stream(
        self,
        camera,
        distance_m: float = 0.0,
        object_frequency: float = 1.0,
        spawn_frequency: float = 1.0,
    ) -> List[Enemy]:
        """Extend the world past the camera if needed.

        Returns:
            Newly spawned enemies (empty when nothing was generated)
        """
        if not self.needs_segment(camera):
            return []
        end_x = camera.right + self.buffer + self.config.screen_width
        segment = self.generator.generate(
            self.frontier, end_x,
            distance_m=distance_m,
            object_frequency=object_frequency,
            spawn_frequency=spawn_frequency,
        )
        self.frontier = segment.end_x
        self.add_many(segment.objects)
        return segment.enemies

    def add(self, obj: WorldObject) -> None:
        self.add_many([obj])

    def add_many(self, objects: List[WorldObject]) -> None:
        if not objects:
            return
        self.objects.extend(objects)
        self.objects.sort(key=lambda o: o.x)
        self.index.insert_many(objects)

    def prune(self, camera) -> int:
        """Drop objects entirely behind the retention window, and collected items.

        Returns:
            Number of objects removed
        """
        cutoff = camera.left - self.view_range
        kept = []
        removed = 0
        for obj in self.objects:
            if obj.right <= cutoff or (isinstance(obj, Collectible) and obj.collected):
                self.index.remove(obj)
                removed += 1
            else:
                kept.append(obj)
        self.objects = kept
        return removed

    def query(self, left: float, right: float) -> List[WorldObject]:
        """Objects overlapping the x-range, via the spatial index."""
        return self.index.query(left, right)

    def reset(self) -> None:
        self.index.clear()
        self.objects = []
        self.frontier = 0.0
