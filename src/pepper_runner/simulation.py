"""The per-tick simulation loop.

Simulation owns a GameState and advances it one tick at a time from a
normalized InputIntent. Every tick runs in a fixed order:

1. timed effects due at the new clock time
2. outdoors: physics step, stamina and power bar, object interactions,
   enemy AI and enemy contacts, distance, camera, world streaming and pruning;
   indoors: physics step on the interior floor, item pickups, exit door
3. gameplay events folded into quests and adaptive difficulty
4. difficulty multipliers re-applied to live enemies
5. quest notification timer

Each tick returns a RenderSnapshot: a read-only description of what to draw,
consumed by the pygame host and the Gymnasium adapter alike.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .config import GameConfig
from .dynamics import step_player, update_power_bar, update_stamina
from .enemy_ai import apply_speed_multiplier, nearest_enemy_distance, update_enemies
from .entities import Collectible, Facing, Layer, Structure
from .interactions import (
    apply_speed_buff, resolve_enemy_contacts, resolve_interactions, resolve_interior,
)
from .quests import Quest
from .scores import HighScoreTable
from .state import DifficultyMode, GamePhase, GameState, InputIntent

logger = logging.getLogger(__name__)


Color = Tuple[int, int, int]


@dataclass(frozen=True)
class Drawable:
    """One thing to draw, in screen-independent world (or interior) coordinates.

    ``kind`` is the entity kind (``player``, ``enemy``, ``structure``,
    ``collectible``, ``furniture``, ``door`` ...); ``variant`` narrows it
    (enemy kind, item type, building type, animation tag, furniture name).
    """
    kind: str
    x: float
    y: float
    width: float
    height: float
    variant: str = ""
    frame: int = 0
    facing: Facing = Facing.RIGHT
    layer: Layer = Layer.FOREGROUND
    color: Color = (255, 255, 255)


@dataclass
class RenderSnapshot:
    """Everything a renderer needs for one frame."""
    drawables: List[Drawable] = field(default_factory=list)
    scroll_x: float = 0.0
    viewport: Tuple[int, int] = (800, 600)
    ground_y: float = 550.0
    phase: GamePhase = GamePhase.MENU
    mode: DifficultyMode = DifficultyMode.NORMAL
    inside: bool = False

    # HUD
    stamina: float = 1.0
    distance_m: int = 0
    note_count: int = 0
    record_count: int = 0
    quest_text: str = ""
    notification: Optional[str] = None
    power_bar_fill: float = 0.0
    power_bar_visible: bool = False
    power_bar_red: bool = False
    warning_level: float = 0.0
    difficulty: str = "Easy"
    best_score: int = 0


class Simulation:
    """Deterministic game core driven one tick at a time.

    Usage:
        sim = Simulation(GameConfig(seed=7))
        sim.start(DifficultyMode.NORMAL)
        snapshot = sim.tick(InputIntent(right=True), 1 / 60)
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        highscores: Optional[HighScoreTable] = None,
        seed: Optional[int] = None,
    ):
        """Initialize the simulation in the menu phase.

        Args:
            config: Game configuration. Uses defaults if None.
            highscores: Table that records distances on death (normal mode only).
            seed: World seed; overrides config.seed when given.
        """
        self.config = (config or GameConfig()).check()
        self.highscores = highscores
        self.seed = seed
        self.state: Optional[GameState] = None
        self.snapshot = RenderSnapshot()
        self._prev_jump = False
        self.reset()

    # ------------------------------------------------------------------
    # Lifecycle commands
    # ------------------------------------------------------------------

    def reset(self, mode: Optional[DifficultyMode] = None) -> GameState:
        """Reinitialize all core state to spawn defaults.

        Pending timed effects are dropped. Adaptive-difficulty statistics
        carry over from the previous run.
        """
        old = self.state
        if old is not None:
            old.effects.clear()
            if mode is None:
                mode = old.mode

        state = GameState.create(self.config, seed=self.seed, mode=mode)
        if old is not None:
            state.difficulty = old.difficulty
        self.state = state

        state.camera.follow(state.player)
        self._stream()
        self.snapshot = self.build_snapshot()
        logger.info("Game reset (mode=%s, seed=%s)", state.mode.value,
                    self.seed if self.seed is not None else self.config.seed)
        return state

    def start(self, mode=None) -> GameState:
        """Reset and enter the playing phase."""
        state = self.reset(DifficultyMode.parse(mode) if mode is not None else None)
        state.phase = GamePhase.PLAYING
        self.snapshot = self.build_snapshot()
        logger.info("Game started in %s mode", state.mode.value)
        return state

    @property
    def phase(self) -> GamePhase:
        return self.state.phase

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def tick(self, intent: Optional[InputIntent] = None, dt: Optional[float] = None) -> RenderSnapshot:
        """Advance one tick and return the new render snapshot.

        Args:
            intent: Input for this tick; no input when None.
            dt: Measured tick length in seconds; 1/fps when None.
        """
        intent = intent or InputIntent()
        if dt is None:
            dt = 1.0 / self.config.fps
        state = self.state

        if state.phase is GamePhase.PLAYING:
            self._step(intent, dt)
        elif state.phase is GamePhase.GAME_OVER:
            if intent.jump and not self._prev_jump:
                state.phase = GamePhase.MENU
                logger.info("Back to menu")
        self._prev_jump = intent.jump

        self.snapshot = self.build_snapshot()
        return self.snapshot

    def _step(self, intent: InputIntent, dt: float) -> None:
        state = self.state
        state.time += dt
        state.tick += 1

        state.effects.advance(dt)
        if not intent.crouch:
            state.door_latch = False

        if state.inside is None:
            died = self._step_outside(intent, dt)
        else:
            self._step_inside(intent, dt)
            died = False

        self._process_events()

        multipliers = state.difficulty.update(dt)
        apply_speed_multiplier(state.enemies, multipliers.enemy_speed)
        state.quests.update(dt)

        if died:
            self._on_death()

    def _step_outside(self, intent: InputIntent, dt: float) -> bool:
        """One outdoor tick. Returns True if the player died."""
        state = self.state
        cfg = self.config
        player = state.player

        window = cfg.player.collision_view_range
        candidates = state.world.query(player.x - window, player.right + window)
        contacts = step_player(
            player, intent, cfg, dt,
            surfaces=candidates,
            stamina=state.stamina.fill,
            power_bar_red=state.power_bar.red,
        )
        update_stamina(state.stamina, player, cfg.stamina, dt,
                       drain_multiplier=state.difficulty.multipliers.stamina_drain)
        if contacts.sprint_started:
            state.emit("use_sprint")
        update_power_bar(state.power_bar, player.anim == "walk", cfg.power_bar, dt)

        resolve_interactions(state, intent, candidates, contacts)
        if state.inside is not None:
            return False

        state.enemies = update_enemies(state.enemies, player.center, cfg, dt, state.rng)
        died = resolve_enemy_contacts(state, contacts.prev_bottom, dt)

        self._update_distance()
        state.camera.follow(player)
        self._stream()
        return died

    def _step_inside(self, intent: InputIntent, dt: float) -> None:
        state = self.state
        cfg = self.config
        player = state.player

        contacts = step_player(
            player, intent, cfg, dt,
            floor_y=state.inside.floor_y,
            stamina=state.stamina.fill,
            left_bound=0.0,
            right_bound=float(cfg.screen_width),
        )
        update_stamina(state.stamina, player, cfg.stamina, dt, inside=True)
        if contacts.sprint_started:
            state.emit("use_sprint")
        update_power_bar(state.power_bar, False, cfg.power_bar, dt)

        if resolve_interior(state, intent):
            state.camera.follow(player)
            self._stream()

    def _stream(self) -> None:
        """Extend the world ahead of the camera and prune what fell behind."""
        state = self.state
        m = state.difficulty.multipliers
        spawned = state.world.stream(
            state.camera,
            distance_m=state.distance_m,
            object_frequency=m.object_frequency,
            spawn_frequency=m.spawn_frequency,
        )
        if spawned:
            apply_speed_multiplier(spawned, m.enemy_speed)
            state.enemies.extend(spawned)
        state.world.prune(state.camera)

    def _update_distance(self) -> None:
        state = self.state
        if not state.counting:
            return
        state.max_x = max(state.max_x, state.player.x)
        meters = int((state.max_x - state.spawn_x) // 10)
        if meters > state.distance_m:
            state.distance_m = meters
            state.emit("distance", meters)

    # ------------------------------------------------------------------
    # Events, quests, death
    # ------------------------------------------------------------------

    def _process_events(self) -> None:
        state = self.state
        for event in state.events:
            state.difficulty.record_event(event.type, event.amount, counting=state.counting)
            completed = state.quests.update_progress(event.type, event.amount, event.key)
            if completed is not None:
                self._on_quest_complete(completed)
        state.events.clear()

    def _on_quest_complete(self, quest: Quest) -> None:
        state = self.state
        state.difficulty.record_quest()
        reward = quest.reward
        if reward.kind == "stamina_boost":
            state.stamina.restore(reward.amount)
        elif reward.kind == "speed_boost":
            apply_speed_buff(state, reward.amount, reward.duration, tag="quest_reward")
        state.effects.schedule(self.config.quests.advance_delay, state.quests.advance,
                               tag="quest_advance")

    def _on_death(self) -> None:
        state = self.state
        state.phase = GamePhase.GAME_OVER
        state.difficulty.record_death()
        state.difficulty.record_distance(state.distance_m)
        logger.info("Player died (%s) at %d m", state.death_cause, state.distance_m)
        if state.mode is DifficultyMode.NORMAL and self.highscores is not None:
            self.highscores.record(state.distance_m)

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def warning_level(self) -> float:
        """Proximity of the nearest live enemy, 0 (none near) to 1 (on top of it)."""
        state = self.state
        if state.inside is not None or not state.enemies:
            return 0.0
        d = nearest_enemy_distance(state.enemies, state.player.center[0])
        return 1.0 - min(1.0, d / (self.config.screen_width / 2))

    def build_snapshot(self) -> RenderSnapshot:
        state = self.state
        cfg = self.config
        if state.inside is not None:
            drawables = self._interior_drawables()
            scroll_x = 0.0
        else:
            drawables = self._world_drawables()
            scroll_x = state.camera.scroll_x

        player = state.player
        drawables.append(Drawable(
            "player", player.x, player.y, player.width, player.height,
            variant=player.anim, frame=player.anim_frame, facing=player.facing,
            color=(97, 175, 239),
        ))

        return RenderSnapshot(
            drawables=drawables,
            scroll_x=scroll_x,
            viewport=(cfg.screen_width, cfg.screen_height),
            ground_y=state.inside.floor_y if state.inside is not None else cfg.ground_y,
            phase=state.phase,
            mode=state.mode,
            inside=state.inside is not None,
            stamina=state.stamina.fill,
            distance_m=state.distance_m,
            note_count=state.note_count,
            record_count=state.record_count,
            quest_text=state.quests.quest_text(),
            notification=state.quests.notification,
            power_bar_fill=state.power_bar.fill,
            power_bar_visible=state.power_bar.visible,
            power_bar_red=state.power_bar.red,
            warning_level=self.warning_level(),
            difficulty=state.difficulty.description,
            best_score=self.highscores.best if self.highscores is not None else 0,
        )

    def _world_drawables(self) -> List[Drawable]:
        state = self.state
        background = []
        foreground = []
        for obj in state.world.objects:
            if not obj.active:
                continue
            if isinstance(obj, Collectible):
                variant = obj.item.value
            elif isinstance(obj, Structure):
                variant = obj.building.value
            else:
                variant = ""
            d = Drawable(obj.kind.name.lower(), obj.x, obj.y, obj.width, obj.height,
                         variant=variant, layer=obj.layer, color=obj.color)
            (background if obj.layer is Layer.BACKGROUND else foreground).append(d)
            if isinstance(obj, Structure) and obj.door is not None and obj.layer is Layer.FOREGROUND:
                foreground.append(Drawable("door", *obj.door, color=(101, 67, 33)))

        enemies = [
            Drawable("enemy", e.x, e.y, e.width, e.height, variant=e.kind.value,
                     frame=e.anim_frame, facing=e.facing,
                     color=(120, 120, 120) if e.dead else (224, 108, 117))
            for e in state.enemies
        ]
        return background + foreground + enemies

    def _interior_drawables(self) -> List[Drawable]:
        interior = self.state.inside
        drawables = [Drawable("furniture", f.x, f.y, f.width, f.height,
                              variant=f.name, color=f.color)
                     for f in interior.structure.furniture or []]
        drawables.append(Drawable("door", *interior.door, color=(101, 67, 33)))
        drawables.extend(
            Drawable("collectible", i.x, i.y, i.width, i.height,
                     variant=i.item.value, color=i.color)
            for i in interior.items if i.active
        )
        return drawables

    def get_state(self) -> Dict[str, Any]:
        """Current game state as a flat dict for logging and observation info."""
        state = self.state
        player = state.player
        return {
            "phase": state.phase.name.lower(),
            "mode": state.mode.value,
            "tick": state.tick,
            "time": state.time,
            "player_position": player.position,
            "player_velocity": player.velocity,
            "player_grounded": player.on_ground,
            "inside": state.inside is not None,
            "stamina": state.stamina.fill,
            "distance_m": state.distance_m,
            "note_count": state.note_count,
            "record_count": state.record_count,
            "enemies": len(state.enemies),
            "enemies_defeated": state.enemies_defeated,
            "world_objects": len(state.world.objects),
            "frontier": state.world.frontier,
            "quest_index": state.quests.current_index,
            "skill": state.difficulty.skill,
            "death_cause": state.death_cause,
        }
