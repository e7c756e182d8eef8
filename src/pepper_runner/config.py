"""Configuration system for the side-scroller simulation.

Every tunable constant of the simulation lives in one of the dataclasses below.
They are plain data: no behavior beyond (de)serialization and validation.

Coordinates are screen-style: x grows to the right, y grows downward, and
positive vertical velocity means falling.
"""

from dataclasses import dataclass, field, fields, asdict
from typing import Tuple, Dict, Any, ClassVar, List, Optional


def _from_dict(cls, d: Dict[str, Any]):
    """Build a flat config dataclass from a dict, ignoring unknown keys."""
    names = {f.name for f in fields(cls)}
    kwargs = {}
    for k, v in d.items():
        if k not in names:
            continue
        kwargs[k] = tuple(v) if isinstance(v, list) else v
    return cls(**kwargs)


@dataclass
class PhysicsConfig:
    """World physics constants shared by the player and ground-bound enemies."""

    gravity: float = 1200.0  # px/s^2, positive = down
    jump_impulse: float = 520.0  # magnitude of the upward launch velocity (px/s)
    terminal_velocity: float = 700.0  # max downward speed (px/s)
    ground_tolerance: float = 1.0  # feet snap band around a surface (px)

    # Variable jump height
    jump_cut_factor: float = 0.5  # vy multiplier when jump is released early
    jump_cut_window: float = 0.25  # s after launch during which a release cuts vy
    jump_hold_window: float = 0.12  # s after launch during which holding adds lift
    jump_hold_force: float = 700.0  # extra upward acceleration while held (px/s^2)

    # Drag and friction, applied as base ** (dt * 60) so they are frame-rate independent
    drag_threshold: float = 600.0  # total speed above which drag kicks in (px/s)
    drag_base: float = 0.99
    ground_friction_base: float = 0.8
    stop_speed: float = 1.0  # |vx| below this snaps to zero on the ground

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "PhysicsConfig":
        return _from_dict(cls, d)


@dataclass
class PlayerConfig:
    """Player dimensions, movement and animation constants."""

    width: float = 50.0
    standing_height: float = 60.0
    crouch_height: float = 30.0
    base_move_speed: float = 200.0  # px/s
    initial_x_offset: float = 25.0  # spawn at viewport center minus this
    collision_view_range: float = 100.0  # half-width of the interaction scan window (px)

    # Sprint: right + crouch while already moving right on the ground
    sprint_multiplier: float = 2.0
    sprint_stamina_threshold: float = 0.1

    # Accelerated jump (power bar in its red zone at jump time)
    accelerated_jump_factor: float = 1.8
    accelerated_jump_decay_rate: float = 0.8  # factor units per second
    accelerated_jump_vertical_boost: float = 1.0  # 1.0 leaves jump height untouched

    # Wall slide / wall jump
    wall_slide_max_speed: float = 120.0
    wall_slide_friction_base: float = 0.9
    wall_jump_vertical: float = 480.0
    wall_jump_horizontal: float = 260.0
    wall_jump_lock_time: float = 0.15  # s of ignored horizontal input after a wall jump

    # Animation
    animation_period: float = 0.15  # s per frame
    jump_decelerating_band: Tuple[float, float] = (200.0, 400.0)  # vy band shown as "decelerating"
    animation_frames: Dict[str, int] = field(default_factory=lambda: {
        "idle": 1,
        "walk": 4,
        "jump": 3,
        "crouch": 3,
        "wall_slide": 1,
    })

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "PlayerConfig":
        return _from_dict(cls, d)


@dataclass
class StaminaConfig:
    """Stamina drain/recovery rates (fill units per second)."""

    drain_speed: float = 0.2
    recover_speed: float = 0.2
    sprint_drain_multiplier: float = 2.0
    idle_recover_multiplier: float = 2.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "StaminaConfig":
        return _from_dict(cls, d)


@dataclass
class PowerBarConfig:
    """Oscillating timing bar shown while walking."""

    speed: float = 2.0  # fill units per second
    red_threshold: float = 0.9

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "PowerBarConfig":
        return _from_dict(cls, d)


@dataclass
class EnemyConfig:
    """Enemy sizes, per-behavior constants and lifecycle thresholds."""

    width: float = 40.0
    height: float = 40.0
    hitbox_offset: float = 10.0  # hitbox inset on every side (px)
    speed_scale: float = 1.0  # global multiplier on speed_by_kind
    speed_by_kind: Dict[str, float] = field(default_factory=lambda: {
        "slime": 60.0,
        "bat": 150.0,
        "spider": 150.0,
        "ghost": 100.0,
        "snake": 80.0,
        "wolf": 150.0,
    })
    health_by_kind: Dict[str, int] = field(default_factory=lambda: {
        "slime": 1,
        "bat": 1,
        "spider": 1,
        "ghost": 2,
        "snake": 1,
        "wolf": 2,
    })
    spawn_weights: Dict[str, float] = field(default_factory=lambda: {
        "slime": 0.3,
        "bat": 0.15,
        "spider": 0.1,
        "ghost": 0.1,
        "snake": 0.2,
        "wolf": 0.15,
    })

    # Lifecycle
    cull_distance: float = 2500.0  # px from the player; must exceed the generation reach
    death_delay: float = 0.5  # s a dead enemy stays visible
    stomp_bounce: float = 350.0  # upward player velocity after a stomp
    stomp_tolerance: float = 12.0  # px the feet may sink into the hitbox and still count as a stomp
    animation_period: float = 0.2
    animation_frames: int = 2

    # Spawn probability per generation step, scaled with distance walked
    spawn_probability: float = 0.1
    spawn_probability_per_meter: float = 0.0002
    max_spawn_probability: float = 0.4

    # patrol (slime)
    patrol_distance: float = 120.0

    # fly (bat)
    fly_altitude: float = 150.0  # px above the ground line
    fly_amplitude: Tuple[float, float] = (80.0, 30.0)
    fly_frequency: float = 1.5  # rad/s of the horizontal sweep

    # web (spider)
    web_altitude: float = 220.0
    web_trigger_radius: float = 150.0
    web_drop_speed: float = 250.0
    web_homing_factor: float = 0.4

    # float (ghost)
    float_baseline: float = 120.0  # px above the ground line
    float_amplitude: Tuple[float, float] = (50.0, 40.0)
    float_frequency: float = 0.9

    # slither (snake)
    slither_amplitude: float = 4.0
    slither_frequency: float = 6.0

    # chase (wolf)
    chase_distance: float = 400.0
    chase_min_distance: float = 20.0
    chase_speed_multiplier: float = 1.4
    chase_jump_rate: float = 1.0  # expected jumps per second while chasing
    chase_jump_cooldown: float = 1.5
    chase_jump_impulse: float = 450.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "EnemyConfig":
        return _from_dict(cls, d)


@dataclass
class GenerationConfig:
    """Procedural world generation constants.

    ``category_probabilities`` is walked cumulatively in insertion order; whatever
    probability mass is left over means "no object" for that step.
    """

    view_range_factor: float = 1.5  # x viewport width kept behind the camera
    buffer_factor: float = 0.5  # x viewport width generated past the camera
    segment_width: float = 200.0
    segment_jitter: float = 100.0

    category_probabilities: Dict[str, float] = field(default_factory=lambda: {
        "house": 0.3,
        "hospital": 0.03,
        "fire_station": 0.03,
        "store": 0.02,
        "supermarket": 0.02,
        "tree": 0.25,
        "streetlight": 0.1,
        "fence": 0.1,
        "bush": 0.05,
        "small": 0.05,
    })
    # Split of the "small" category
    pole_probability: float = 0.7
    speed_pad_probability: float = 0.15  # crate takes the rest

    # Structures
    background_probability: float = 0.3
    background_scale: Tuple[float, float] = (0.6, 0.8)
    door_probability: float = 0.8
    window_probability: float = 0.5
    house_width: Tuple[float, float] = (150.0, 250.0)
    house_height: Tuple[float, float] = (100.0, 200.0)
    building_width: Tuple[float, float] = (220.0, 320.0)
    building_height: Tuple[float, float] = (180.0, 260.0)

    # Scenery
    tree_trunk_height: Tuple[float, float] = (80.0, 150.0)
    tree_canopy_radius: Tuple[float, float] = (50.0, 100.0)
    streetlight_height: Tuple[float, float] = (150.0, 200.0)
    fence_width: Tuple[float, float] = (80.0, 120.0)
    fence_height: float = 40.0
    bush_size: Tuple[float, float] = (30.0, 50.0)
    pole_height: Tuple[float, float] = (40.0, 60.0)
    pole_width: float = 10.0

    # Speed pad
    speed_pad_size: Tuple[float, float] = (60.0, 20.0)
    speed_pad_boost: float = 1.5
    speed_pad_cooldown: float = 2.0

    # Breakable crate
    crate_size: Tuple[float, float] = (30.0, 40.0)
    crate_bounce: float = 200.0
    crate_drop_probability: float = 0.3

    # Enemies never spawn left of this x
    enemy_safe_zone: float = 800.0

    # Collectibles
    collectible_probability: float = 0.2
    collectible_size: float = 24.0
    collectible_x_jitter: float = 50.0
    collectible_y_jitter: float = 30.0
    rare_probability: float = 0.1
    note_probability: float = 0.5  # common tier: note vs record
    rare_weights: Dict[str, float] = field(default_factory=lambda: {
        "golden_note": 0.35,
        "energy_crystal": 0.25,
        "speed_boost": 0.25,
        "mystery_box": 0.15,
    })

    # Interiors
    furniture_count: Tuple[int, int] = (3, 6)
    furniture_attempts: int = 20
    interior_door_size: Tuple[float, float] = (60.0, 100.0)
    interior_door_padding: float = 20.0
    store_item_count: int = 5
    supermarket_item_count: int = 8

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "GenerationConfig":
        return _from_dict(cls, d)


@dataclass
class EffectConfig:
    """Magnitudes and durations of item and building effects."""

    golden_note_value: int = 5
    speed_item_factor: float = 1.5
    speed_item_duration: float = 5.0
    fire_station_factor: float = 1.3
    fire_station_duration: float = 8.0
    mystery_note_bonus: int = 3
    door_tolerance: float = 30.0  # px around the interior door center

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "EffectConfig":
        return _from_dict(cls, d)


@dataclass
class QuestConfig:
    """Quest pacing."""

    advance_delay: float = 3.0  # s between completion and the next quest
    notification_duration: float = 3.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "QuestConfig":
        return _from_dict(cls, d)


@dataclass
class DifficultyConfig:
    """Adaptive difficulty normalization and multiplier tables.

    Multiplier tables are (skill breakpoints, values) pairs evaluated with
    piecewise-linear interpolation.
    """

    survival_norm: float = 500.0  # meters per death for a full survival score
    collection_norm: float = 2.0  # items per minute for a full collection score
    exploration_norm: float = 0.5  # quests per minute for a full exploration score

    enemy_speed_table: Tuple[Tuple[float, ...], Tuple[float, ...]] = (
        (0.0, 0.25, 0.35, 0.55, 0.65, 1.0),
        (0.7, 0.7, 1.0, 1.0, 1.3, 1.3),
    )
    spawn_frequency_table: Tuple[Tuple[float, ...], Tuple[float, ...]] = (
        (0.0, 0.25, 0.35, 0.55, 0.65, 1.0),
        (0.7, 0.7, 1.0, 1.0, 1.3, 1.3),
    )
    object_frequency_table: Tuple[Tuple[float, ...], Tuple[float, ...]] = (
        (0.0, 0.35, 0.45, 0.65, 0.75, 1.0),
        (1.5, 1.5, 1.0, 1.0, 0.7, 0.7),
    )
    stamina_drain_table: Tuple[Tuple[float, ...], Tuple[float, ...]] = (
        (0.0, 0.45, 0.55, 1.0),
        (0.8, 0.8, 1.0, 1.0),
    )
    tier_thresholds: Tuple[float, float] = (0.3, 0.7)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DifficultyConfig":
        return _from_dict(cls, d)


@dataclass
class GameConfig:
    """Complete game configuration combining all parameter groups."""

    physics: PhysicsConfig = field(default_factory=PhysicsConfig)
    player: PlayerConfig = field(default_factory=PlayerConfig)
    stamina: StaminaConfig = field(default_factory=StaminaConfig)
    power_bar: PowerBarConfig = field(default_factory=PowerBarConfig)
    enemies: EnemyConfig = field(default_factory=EnemyConfig)
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    effects: EffectConfig = field(default_factory=EffectConfig)
    quests: QuestConfig = field(default_factory=QuestConfig)
    difficulty: DifficultyConfig = field(default_factory=DifficultyConfig)

    # Display settings
    screen_width: int = 800
    screen_height: int = 600
    fps: int = 60
    ground_height: float = 50.0  # px of ground strip at the bottom of the viewport

    mode: str = "normal"  # normal or easy
    seed: Optional[int] = None  # None = non-deterministic world
    highscore_path: str = "data/highscores.json"

    MODES: ClassVar[Tuple[str, ...]] = ("normal", "easy")

    _SECTIONS: ClassVar[Dict[str, type]] = {
        "physics": PhysicsConfig,
        "player": PlayerConfig,
        "stamina": StaminaConfig,
        "power_bar": PowerBarConfig,
        "enemies": EnemyConfig,
        "generation": GenerationConfig,
        "effects": EffectConfig,
        "quests": QuestConfig,
        "difficulty": DifficultyConfig,
    }

    @property
    def ground_y(self) -> float:
        """Screen-space y of the ground plane surface."""
        return self.screen_height - self.ground_height

    @property
    def view_range(self) -> float:
        return self.screen_width * self.generation.view_range_factor

    @property
    def generation_buffer(self) -> float:
        return self.screen_width * self.generation.buffer_factor

    def validate(self) -> List[str]:
        """Return a list of human-readable problems (empty when valid)."""
        errors = []
        if self.mode not in self.MODES:
            errors.append(f"unknown mode {self.mode!r}, expected one of {self.MODES}")
        if self.screen_width <= 0 or self.screen_height <= 0:
            errors.append("viewport must have a positive size")
        if not 0 < self.ground_height < self.screen_height:
            errors.append("ground_height must lie inside the viewport")
        if self.fps <= 0:
            errors.append("fps must be positive")
        if self.physics.gravity <= 0:
            errors.append("gravity must be positive (y grows downward)")
        if self.physics.terminal_velocity <= 0:
            errors.append("terminal_velocity must be positive")
        if self.player.crouch_height > self.player.standing_height:
            errors.append("crouch_height must not exceed standing_height")
        if sum(self.generation.category_probabilities.values()) > 1.0 + 1e-9:
            errors.append("category probabilities sum above 1")
        if self.generation.segment_width <= 0:
            errors.append("segment_width must be positive")
        g = self.generation
        reach = self.screen_width * (1.5 + g.buffer_factor) + g.segment_width + g.segment_jitter
        if self.enemies.cull_distance <= reach:
            errors.append(f"cull_distance must exceed the generation reach ({reach:.0f} px)")
        for name, (xs, ys) in (
            ("enemy_speed_table", self.difficulty.enemy_speed_table),
            ("spawn_frequency_table", self.difficulty.spawn_frequency_table),
            ("object_frequency_table", self.difficulty.object_frequency_table),
            ("stamina_drain_table", self.difficulty.stamina_drain_table),
        ):
            if len(xs) != len(ys):
                errors.append(f"{name} breakpoints and values differ in length")
            elif list(xs) != sorted(xs):
                errors.append(f"{name} breakpoints must be increasing")
        return errors

    def check(self) -> "GameConfig":
        """Raise ValueError if the configuration is invalid, else return self."""
        errors = self.validate()
        if errors:
            raise ValueError(f"Invalid game config: {errors}")
        return self

    def to_dict(self) -> Dict[str, Any]:
        """Convert to nested dictionary."""
        d = {name: getattr(self, name).to_dict() for name in self._SECTIONS}
        d.update({
            "screen_width": self.screen_width,
            "screen_height": self.screen_height,
            "fps": self.fps,
            "ground_height": self.ground_height,
            "mode": self.mode,
            "seed": self.seed,
            "highscore_path": self.highscore_path,
        })
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "GameConfig":
        """Create from a nested dictionary; missing sections keep defaults."""
        kwargs = {}
        for name, section_cls in cls._SECTIONS.items():
            if name in d:
                kwargs[name] = section_cls.from_dict(d[name])
        for key in ("screen_width", "screen_height", "fps", "ground_height",
                    "mode", "seed", "highscore_path"):
            if key in d:
                kwargs[key] = d[key]
        return cls(**kwargs).check()


# Predefined configurations for testing/demo
CONFIGS = {
    # Default balanced feel
    "default": GameConfig(),

    # Harmless enemies, no scoring
    "easy": GameConfig(mode="easy"),

    # Low gravity, long hang time
    "floaty": GameConfig(physics=PhysicsConfig(
        gravity=800.0,
        jump_impulse=460.0,
        terminal_velocity=500.0,
    )),

    # More enemies, faster enemies, thinner rewards
    "hard": GameConfig(
        enemies=EnemyConfig(
            spawn_probability=0.2,
            max_spawn_probability=0.6,
            speed_scale=1.25,
        ),
        generation=GenerationConfig(collectible_probability=0.12),
    ),

    # Reproducible world for demos and regression tests
    "seeded": GameConfig(seed=1234),
}
