"""Equations of motion for the player and ground-bound enemies.

Horizontal motion is input-driven (instant target speed); vertical motion
integrates gravity. Every per-tick factor is frame-rate independent:
friction and drag use ``base ** (dt * 60)``, everything else scales by dt.

Order within one player step:

1. crouch height, sprint eligibility, accelerated-jump decay
2. horizontal target speed (or wall-jump lock)
3. gravity, jump / wall jump / variable jump height
4. drag, terminal velocity, wall-slide limit
5. position integration and world-edge clamp
6. surface resolution (ground plane, walkable tops, solid push-out)
7. facing and animation
"""

import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from .config import GameConfig, PhysicsConfig, PlayerConfig, PowerBarConfig, StaminaConfig
from .entities import Enemy, Facing, Layer, Player, PowerBar, StaminaMeter, WorldObject
from .physics import overlaps, penetration, touching


@dataclass
class StepContacts:
    """What the player touched during one physics step."""
    landed_on: List[WorldObject] = field(default_factory=list)  # supports landed on from above
    wall: Optional[WorldObject] = None
    wall_direction: int = 0
    landed: bool = False  # airborne -> grounded this step
    jumped: bool = False
    wall_jumped: bool = False
    sprint_started: bool = False
    driving: bool = False  # horizontal input applied this step
    prev_bottom: Optional[float] = None  # feet y before this step's integration


def step_player(
    player: Player,
    intent,
    config: GameConfig,
    dt: float,
    surfaces: Sequence[WorldObject] = (),
    floor_y: Optional[float] = None,
    stamina: float = 1.0,
    power_bar_red: bool = False,
    left_bound: float = 0.0,
    right_bound: Optional[float] = None,
) -> StepContacts:
    """Advance the player one tick.

    Args:
        player: Player to mutate
        intent: InputIntent for this tick
        config: Game configuration
        dt: Tick length in seconds
        surfaces: World objects near the player (walkable tops and solids)
        floor_y: Ground plane y; defaults to the outdoor ground line
        stamina: Current stamina fill, gates sprinting
        power_bar_red: Whether a jump now starts an accelerated jump
        left_bound: Minimum x (world edge or interior wall)
        right_bound: Maximum x of the player's right edge, None for unbounded

    Returns:
        StepContacts describing landings, walls and jump/sprint edges
    """
    pc = config.physics
    ph = config.player
    if floor_y is None:
        floor_y = config.ground_y
    contacts = StepContacts()

    _apply_crouch(player, intent.crouch, ph)

    was_sprinting = player.sprinting
    player.sprinting = (
        intent.right and intent.crouch and player.vx > 0
        and player.on_ground and stamina > ph.sprint_stamina_threshold
    )
    contacts.sprint_started = player.sprinting and not was_sprinting

    if player.accelerated_jump:
        player.accel_factor = max(1.0, player.accel_factor - ph.accelerated_jump_decay_rate * dt)
        if player.accel_factor <= 1.0:
            player.accelerated_jump = False

    contacts.driving = _apply_horizontal(player, intent, ph, dt)

    # Vertical
    if not player.on_ground:
        player.vy += pc.gravity * dt

    jump_pressed = intent.jump and not player.jump_input_prev
    if jump_pressed and player.on_ground:
        _launch(player, pc, ph, power_bar_red)
        contacts.jumped = True
    elif jump_pressed and player.wall_sliding:
        _wall_jump(player, ph)
        contacts.wall_jumped = True
    else:
        _apply_variable_jump(player, intent.jump, pc, dt)
    player.jump_input_prev = intent.jump

    apply_drag(player, pc, dt)
    player.vy = min(player.vy, pc.terminal_velocity)

    if player.wall_sliding and player.vy > 0:
        player.vy = min(player.vy * ph.wall_slide_friction_base ** (dt * 60), ph.wall_slide_max_speed)

    # Integrate
    prev_bottom = player.bottom
    contacts.prev_bottom = prev_bottom
    player.x += player.vx * dt
    player.y += player.vy * dt

    if player.x < left_bound:
        player.x = left_bound
        player.vx = max(0.0, player.vx)
    if right_bound is not None and player.right > right_bound:
        player.x = right_bound - player.width
        player.vx = min(0.0, player.vx)

    resolve_surfaces(player, surfaces, floor_y, prev_bottom, pc, contacts, dt)

    if player.vx > 0:
        player.facing = Facing.RIGHT
    elif player.vx < 0:
        player.facing = Facing.LEFT

    update_animation(player, intent, ph, dt)
    return contacts


def _apply_crouch(player: Player, crouch: bool, ph: PlayerConfig) -> None:
    target = ph.crouch_height if crouch else ph.standing_height
    if player.height != target:
        bottom = player.bottom
        player.height = target
        player.y = bottom - target
    player.crouching = crouch


def _apply_horizontal(player: Player, intent, ph: PlayerConfig, dt: float) -> bool:
    """Set vx from input. Returns True if input drove the player this step."""
    if player.wall_jump_lock > 0:
        player.wall_jump_lock = max(0.0, player.wall_jump_lock - dt)
        return False

    direction = int(bool(intent.right)) - int(bool(intent.left))
    if intent.crouch and not player.sprinting:
        direction = 0
    if direction == 0:
        return False

    speed = player.base_move_speed * intent.speed_factor * player.accel_factor
    if player.sprinting:
        speed *= ph.sprint_multiplier
    player.vx = direction * speed
    return True


def _launch(player: Player, pc: PhysicsConfig, ph: PlayerConfig, power_bar_red: bool) -> None:
    if power_bar_red:
        player.accelerated_jump = True
        player.accel_factor = ph.accelerated_jump_factor
    impulse = abs(pc.jump_impulse)
    if player.accelerated_jump:
        impulse *= ph.accelerated_jump_vertical_boost
    player.vy = -impulse
    player.on_ground = False
    player.jump_active = True
    player.jump_timer = 0.0


def _wall_jump(player: Player, ph: PlayerConfig) -> None:
    away = -player.wall_direction
    player.vy = -abs(ph.wall_jump_vertical)
    player.vx = away * ph.wall_jump_horizontal
    player.wall_sliding = False
    player.wall_direction = 0
    player.wall_jump_lock = ph.wall_jump_lock_time
    player.jump_active = True
    player.jump_timer = 0.0


def _apply_variable_jump(player: Player, held: bool, pc: PhysicsConfig, dt: float) -> None:
    """Extra lift while jump is held early, a vy cut when it is released early."""
    if not player.jump_active:
        return
    player.jump_timer += dt
    if player.vy >= 0:
        player.jump_active = False
        return
    if held:
        if player.jump_timer <= pc.jump_hold_window:
            player.vy -= pc.jump_hold_force * dt
    else:
        if player.jump_timer <= pc.jump_cut_window:
            player.vy *= pc.jump_cut_factor
        player.jump_active = False


def apply_drag(body, pc: PhysicsConfig, dt: float) -> None:
    """Scale the velocity vector down while total speed exceeds the drag threshold."""
    speed = math.hypot(body.vx, body.vy)
    if speed > pc.drag_threshold:
        scale = pc.drag_base ** (dt * 60)
        body.vx *= scale
        body.vy *= scale


def resolve_surfaces(
    player: Player,
    surfaces: Sequence[WorldObject],
    floor_y: float,
    prev_bottom: float,
    pc: PhysicsConfig,
    contacts: StepContacts,
    dt: float,
) -> None:
    """Ground plane, walkable tops and solid push-out for one step."""
    tol = pc.ground_tolerance
    was_grounded = player.on_ground
    player.on_ground = False

    # Landing on top surfaces (walkable objects and the tops of solids)
    if player.vy >= 0:
        support = None
        for obj in surfaces:
            if not obj.active or obj.layer is Layer.BACKGROUND:
                continue
            if not (obj.walkable or obj.collidable):
                continue
            if player.right <= obj.x or player.x >= obj.right:
                continue
            top = obj.y
            if prev_bottom <= top + tol and player.bottom >= top - tol:
                if support is None or top < support.y:
                    support = obj
        if support is not None:
            _land(player, support.y)
            contacts.landed_on.append(support)

    if player.bottom > floor_y or (player.vy >= 0 and player.bottom >= floor_y - tol):
        _land(player, floor_y)

    # Solid push-out along the axis of least penetration
    for obj in surfaces:
        if not obj.collidable or obj.walkable or not obj.active:
            continue
        pb = player.bounds
        ob = obj.bounds
        if not overlaps(pb, ob):
            continue
        dx, dy = penetration(pb, ob)
        if dx < dy:
            if player.x + player.width / 2 < obj.x + obj.width / 2:
                player.x -= dx
                player.vx = min(0.0, player.vx)
            else:
                player.x += dx
                player.vx = max(0.0, player.vx)
        elif player.y + player.height / 2 < obj.y + obj.height / 2:
            player.y -= dy
            player.vy = min(0.0, player.vy)
            player.on_ground = True
            contacts.landed_on.append(obj)
        else:
            player.y += dy
            player.vy = max(0.0, player.vy)

    # Wall contact: touching a solid side while airborne
    contacts.wall, contacts.wall_direction = _find_wall(player, surfaces, tol)
    if contacts.wall is not None and not player.on_ground and player.vy > 0:
        player.wall_sliding = True
        player.wall_direction = contacts.wall_direction
    elif contacts.wall is None or player.on_ground:
        player.wall_sliding = False
        player.wall_direction = 0

    if player.on_ground:
        if not contacts.driving:
            player.vx *= pc.ground_friction_base ** (dt * 60)
            if abs(player.vx) < pc.stop_speed:
                player.vx = 0.0
        if not was_grounded:
            contacts.landed = True
            player.accelerated_jump = False
            player.accel_factor = 1.0
        player.jump_active = False


def _land(player: Player, surface_y: float) -> None:
    player.y = surface_y - player.height
    player.vy = 0.0
    player.on_ground = True


def _find_wall(player: Player, surfaces: Sequence[WorldObject], tol: float) -> Tuple[Optional[WorldObject], int]:
    pb = player.bounds
    for obj in surfaces:
        if not obj.collidable or obj.walkable or not obj.active:
            continue
        ob = obj.bounds
        # Vertical overlap required; touching only the top or bottom is not a wall
        if not (pb.bottom < ob.top and pb.top > ob.bottom):
            continue
        if touching(pb, ob, tol) and not overlaps(pb, ob):
            side = 1 if player.x + player.width / 2 < obj.x + obj.width / 2 else -1
            return obj, side
    return None, 0


# ---------------------------------------------------------------------------
# Animation, power bar, stamina
# ---------------------------------------------------------------------------


def update_animation(player: Player, intent, ph: PlayerConfig, dt: float) -> None:
    """Pick the animation tag and advance its frame."""
    if player.wall_sliding:
        tag = "wall_slide"
    elif player.on_ground:
        if intent.crouch and not player.sprinting:
            tag = "crouch"
        elif player.vx != 0 and (intent.left or intent.right or player.sprinting):
            tag = "walk"
        else:
            tag = "idle"
    else:
        tag = "jump"

    if tag != player.anim:
        player.anim = tag
        player.anim_frame = 0
        player.anim_timer = 0.0

    frames = ph.animation_frames.get(tag, 1)
    if tag == "jump":
        low, high = ph.jump_decelerating_band
        if player.vy < 0:
            player.anim_frame = 0
        elif low <= player.vy <= high:
            player.anim_frame = 1
        else:
            player.anim_frame = 2
        return

    player.anim_timer += dt
    if player.anim_timer < ph.animation_period:
        return
    player.anim_timer = 0.0
    if tag == "crouch":
        # Holds on the last frame
        player.anim_frame = min(player.anim_frame + 1, frames - 1)
    elif tag == "walk":
        player.anim_frame = (player.anim_frame + 1) % frames
    else:
        player.anim_frame = 0


def update_power_bar(bar: PowerBar, visible: bool, cfg: PowerBarConfig, dt: float) -> None:
    """Ping-pong the bar while visible; it restarts empty each time it appears."""
    if visible and not bar.visible:
        bar.fill = 0.0
        bar.direction = 1
    bar.visible = visible
    if not visible:
        bar.red = False
        return
    bar.fill += bar.direction * cfg.speed * dt
    if bar.fill > 1.0:
        bar.fill = 1.0
        bar.direction = -1
    elif bar.fill < 0.0:
        bar.fill = 0.0
        bar.direction = 1
    bar.red = bar.fill > cfg.red_threshold


def update_stamina(
    meter: StaminaMeter,
    player: Player,
    cfg: StaminaConfig,
    dt: float,
    drain_multiplier: float = 1.0,
    inside: bool = False,
) -> None:
    """Drain while sprinting outdoors, otherwise recover (faster when idle or crouching)."""
    if player.sprinting and not inside:
        meter.fill -= cfg.drain_speed * cfg.sprint_drain_multiplier * drain_multiplier * dt
    else:
        rate = cfg.recover_speed
        if player.vx == 0 or player.crouching:
            rate *= cfg.idle_recover_multiplier
        meter.fill += rate * dt
    meter.fill = min(1.0, max(0.0, meter.fill))


# ---------------------------------------------------------------------------
# Enemies
# ---------------------------------------------------------------------------


def integrate_enemy_gravity(enemy: Enemy, pc: PhysicsConfig, floor_y: float, dt: float) -> None:
    """Gravity, terminal velocity and ground snapping for ground-bound enemies."""
    enemy.vy = min(enemy.vy + pc.gravity * dt, pc.terminal_velocity)
    enemy.y += enemy.vy * dt
    if enemy.y + enemy.height >= floor_y - pc.ground_tolerance and enemy.vy >= 0:
        enemy.y = floor_y - enemy.height
        enemy.vy = 0.0
        enemy.on_ground = True
    else:
        enemy.on_ground = False
