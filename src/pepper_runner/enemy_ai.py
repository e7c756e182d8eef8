"""Enemy behaviors and lifecycle.

Each Behavior maps to one function in a dispatch table. A behavior reads the
enemy's own phase/timer fields and the player's center and returns the
enemy's next position and velocity as a Motion; it never touches other
enemies. The behavior is chosen from the enemy kind at spawn time.

Ground-bound behaviors (patrol, chase, and web once the spider has dropped)
then go through the same gravity integration and ground snapping the player
uses, without wall interactions.
"""

import logging
import math
import random
from typing import Callable, Dict, List, NamedTuple, Tuple

from .config import EnemyConfig, GameConfig
from .dynamics import integrate_enemy_gravity
from .entities import ENEMY_BEHAVIORS, Behavior, Enemy, EnemyKind

logger = logging.getLogger(__name__)


class Motion(NamedTuple):
    x: float
    y: float
    vx: float
    vy: float


BehaviorFn = Callable[[Enemy, float, Tuple[float, float], EnemyConfig, random.Random], Motion]


def _speed_ratio(enemy: Enemy) -> float:
    """How much faster than nominal the enemy currently is (difficulty scaling)."""
    if enemy.nominal_speed <= 0:
        return 1.0
    return enemy.speed / enemy.nominal_speed


def _patrol(enemy: Enemy, dt: float, target: Tuple[float, float],
            cfg: EnemyConfig, rng: random.Random) -> Motion:
    """Back and forth between origin_x +/- patrol_distance."""
    vx = enemy.direction * enemy.speed
    x = enemy.x + vx * dt
    low = enemy.origin_x - cfg.patrol_distance
    high = enemy.origin_x + cfg.patrol_distance
    if x <= low:
        x = low
        enemy.direction = 1
    elif x >= high:
        x = high
        enemy.direction = -1
    return Motion(x, enemy.y, enemy.direction * enemy.speed, enemy.vy)


def _fly(enemy: Enemy, dt: float, target: Tuple[float, float],
         cfg: EnemyConfig, rng: random.Random) -> Motion:
    """Horizontal sweep plus a vertical bob at twice the frequency.

    Position is a closed-form function of the flight time; velocity is its
    derivative, not integrated.
    """
    rate = _speed_ratio(enemy)
    enemy.phase += dt * rate
    w = cfg.fly_frequency
    ax, ay = cfg.fly_amplitude
    t = enemy.phase
    x = enemy.origin_x + ax * math.sin(w * t)
    y = enemy.origin_y + ay * math.sin(2 * w * t)
    vx = ax * w * math.cos(w * t) * rate
    vy = 2 * ay * w * math.cos(2 * w * t) * rate
    enemy.direction = 1 if vx >= 0 else -1
    return Motion(x, y, vx, vy)


def _web(enemy: Enemy, dt: float, target: Tuple[float, float],
         cfg: EnemyConfig, rng: random.Random) -> Motion:
    """Hang still until the player comes within range, then drop and home in."""
    cx, _ = enemy.center
    dx = target[0] - cx
    if not enemy.triggered:
        if abs(dx) >= cfg.web_trigger_radius:
            return Motion(enemy.x, enemy.y, 0.0, 0.0)
        enemy.triggered = True
        enemy.vy = cfg.web_drop_speed
    direction = (dx > 0) - (dx < 0)
    if direction:
        enemy.direction = direction
    vx = direction * enemy.speed * cfg.web_homing_factor
    return Motion(enemy.x + vx * dt, enemy.y, vx, enemy.vy)


def _float(enemy: Enemy, dt: float, target: Tuple[float, float],
           cfg: EnemyConfig, rng: random.Random) -> Motion:
    """Slow looping drift around a baseline above the ground."""
    rate = _speed_ratio(enemy)
    enemy.phase += dt * rate
    w = cfg.float_frequency
    ax, ay = cfg.float_amplitude
    t = enemy.phase
    x = enemy.origin_x + ax * math.sin(w * t)
    y = enemy.origin_y + ay * math.cos(w * t)
    vx = ax * w * math.cos(w * t) * rate
    vy = -ay * w * math.sin(w * t) * rate
    enemy.direction = 1 if vx >= 0 else -1
    return Motion(x, y, vx, vy)


def _slither(enemy: Enemy, dt: float, target: Tuple[float, float],
             cfg: EnemyConfig, rng: random.Random) -> Motion:
    """Constant advance with a small vertical wave riding on the ground line."""
    enemy.phase += dt
    vx = enemy.direction * enemy.speed
    f = cfg.slither_frequency
    a = cfg.slither_amplitude
    wave = 0.5 + 0.5 * math.sin(f * enemy.phase)
    y = enemy.origin_y - a * wave
    vy = -a * 0.5 * f * math.cos(f * enemy.phase)
    return Motion(enemy.x + vx * dt, y, vx, vy)


def _chase(enemy: Enemy, dt: float, target: Tuple[float, float],
           cfg: EnemyConfig, rng: random.Random) -> Motion:
    """Pursue the player inside chase range, with the odd hop; patrol otherwise."""
    enemy.jump_cooldown = max(0.0, enemy.jump_cooldown - dt)
    cx, _ = enemy.center
    dx = target[0] - cx
    distance = abs(dx)

    if distance >= cfg.chase_distance:
        if enemy.chasing:
            # Patrol around wherever the chase ended
            enemy.chasing = False
            enemy.origin_x = enemy.x
        return _patrol(enemy, dt, target, cfg, rng)

    enemy.chasing = True
    vy = enemy.vy
    if distance <= cfg.chase_min_distance:
        vx = 0.0
    else:
        enemy.direction = 1 if dx > 0 else -1
        vx = enemy.direction * enemy.speed * cfg.chase_speed_multiplier
        if (enemy.on_ground and enemy.jump_cooldown <= 0
                and rng.random() < cfg.chase_jump_rate * dt):
            vy = -cfg.chase_jump_impulse
            enemy.on_ground = False
            enemy.jump_cooldown = cfg.chase_jump_cooldown
    return Motion(enemy.x + vx * dt, enemy.y, vx, vy)


_BEHAVIOR_DISPATCH: Dict[Behavior, BehaviorFn] = {
    Behavior.PATROL: _patrol,
    Behavior.FLY: _fly,
    Behavior.WEB: _web,
    Behavior.FLOAT: _float,
    Behavior.SLITHER: _slither,
    Behavior.CHASE: _chase,
}


def is_ground_bound(enemy: Enemy) -> bool:
    if enemy.behavior is Behavior.WEB:
        return enemy.triggered
    return enemy.behavior in (Behavior.PATROL, Behavior.CHASE)


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


def spawn_enemy(
    kind: EnemyKind,
    x: float,
    config: GameConfig,
    speed_multiplier: float = 1.0,
) -> Enemy:
    """Create an enemy of ``kind`` at world x, placed for its behavior."""
    cfg = config.enemies
    behavior = ENEMY_BEHAVIORS[kind]
    ground = config.ground_y
    altitude = {
        Behavior.FLY: cfg.fly_altitude,
        Behavior.WEB: cfg.web_altitude,
        Behavior.FLOAT: cfg.float_baseline,
    }.get(behavior, 0.0)
    y = ground - cfg.height - altitude
    nominal = cfg.speed_by_kind.get(kind.value, 100.0) * cfg.speed_scale
    return Enemy(
        kind=kind,
        behavior=behavior,
        x=x,
        y=y,
        width=cfg.width,
        height=cfg.height,
        speed=nominal * speed_multiplier,
        nominal_speed=nominal,
        hitbox_offset=cfg.hitbox_offset,
        health=max(1, int(cfg.health_by_kind.get(kind.value, 1))),
        on_ground=altitude == 0.0,
        origin_x=x,
        origin_y=y,
    )


def advance_enemy(
    enemy: Enemy,
    dt: float,
    target: Tuple[float, float],
    config: GameConfig,
    rng: random.Random,
) -> None:
    """Run the enemy's behavior for one tick (no-op for dead enemies)."""
    if enemy.dead:
        return
    behavior = _BEHAVIOR_DISPATCH[enemy.behavior]
    motion = behavior(enemy, dt, target, config.enemies, rng)
    enemy.x, enemy.y, enemy.vx, enemy.vy = motion
    if is_ground_bound(enemy):
        integrate_enemy_gravity(enemy, config.physics, config.ground_y, dt)


def damage_enemy(enemy: Enemy, config: GameConfig, amount: int = 1) -> bool:
    """Apply damage. Returns True only on the call that kills the enemy."""
    if enemy.dead:
        return False
    enemy.health = max(0, enemy.health - amount)
    if enemy.health > 0:
        return False
    enemy.dead = True
    enemy.death_timer = config.enemies.death_delay
    enemy.vx = enemy.vy = 0.0
    logger.debug("%s defeated at x=%.0f", enemy.kind.value, enemy.x)
    return True


def apply_speed_multiplier(enemies: List[Enemy], multiplier: float) -> None:
    for enemy in enemies:
        enemy.speed = enemy.nominal_speed * multiplier


def _animate(enemy: Enemy, cfg: EnemyConfig, dt: float) -> None:
    if enemy.dead:
        enemy.anim_frame = cfg.animation_frames  # death frame follows the walk cycle
        return
    enemy.anim_timer += dt
    if enemy.anim_timer >= cfg.animation_period:
        enemy.anim_timer = 0.0
        enemy.anim_frame = (enemy.anim_frame + 1) % cfg.animation_frames


def update_enemies(
    enemies: List[Enemy],
    player_center: Tuple[float, float],
    config: GameConfig,
    dt: float,
    rng: random.Random,
) -> List[Enemy]:
    """Advance every enemy and drop expired or distant ones.

    Returns:
        The surviving enemies, in their original order
    """
    cfg = config.enemies
    for enemy in enemies:
        if enemy.dead:
            enemy.death_timer -= dt
        else:
            advance_enemy(enemy, dt, player_center, config, rng)
        _animate(enemy, cfg, dt)

    px = player_center[0]
    survivors = []
    for enemy in enemies:
        if enemy.dead and enemy.death_timer <= 0:
            continue
        if abs(enemy.center[0] - px) > cfg.cull_distance:
            continue
        survivors.append(enemy)
    if len(survivors) != len(enemies):
        logger.debug("Removed %d enemies", len(enemies) - len(survivors))
    return survivors


def nearest_enemy_distance(enemies: List[Enemy], x: float) -> float:
    """Horizontal distance to the closest live enemy (inf when none)."""
    live = [abs(e.center[0] - x) for e in enemies if not e.dead]
    return min(live) if live else math.inf
