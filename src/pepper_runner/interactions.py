"""Collision and interaction resolution between the player and the world.

Each tick the simulation hands in the world objects inside a window around
the player (never the whole world). Every object kind has one handler in
``_HANDLERS``; kinds without a handler (scenery) only matter to the physics
step as surfaces.

Building interiors live here too: entering switches the state into interior
mode, where the floor sits at half the viewport height and the only exit is
the door in the middle of the room.
"""

import logging
from typing import Callable, Dict, Optional, Sequence

from .dynamics import StepContacts
from .enemy_ai import damage_enemy
from .entities import (
    BuildingType, Collectible, Crate, ItemType, Layer, ObjectKind, SpeedPad,
    Structure, WorldObject,
)
from .level_gen import make_collectible
from .physics import overlaps
from .state import GameState, InputIntent, Interior

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Items
# ---------------------------------------------------------------------------


def apply_speed_buff(state: GameState, factor: float, duration: float, tag: str = "speed_buff") -> None:
    """Multiply the player's move speed for ``duration`` seconds of simulation time."""
    player = state.player

    def apply():
        player.base_move_speed *= factor

    def revert():
        player.base_move_speed /= factor

    state.effects.apply(apply, revert, duration, tag)


def _collect_note(state: GameState, item: Collectible) -> None:
    if state.counting:
        state.note_count += 1
    state.emit("collect_note")


def _collect_record(state: GameState, item: Collectible) -> None:
    if state.counting:
        state.record_count += 1
    state.emit("collect_record")


def _collect_golden(state: GameState, item: Collectible) -> None:
    if state.counting:
        state.note_count += state.config.effects.golden_note_value
    state.emit("collect_rare")


def _collect_crystal(state: GameState, item: Collectible) -> None:
    state.stamina.restore()
    state.emit("collect_rare")


def _collect_speed(state: GameState, item: Collectible) -> None:
    e = state.config.effects
    apply_speed_buff(state, e.speed_item_factor, e.speed_item_duration)
    state.emit("collect_rare")


def _collect_mystery(state: GameState, item: Collectible) -> None:
    """One of the other rare effects, picked at random."""
    e = state.config.effects
    roll = state.rng.randrange(3)
    if roll == 0:
        if state.counting:
            state.note_count += e.mystery_note_bonus
    elif roll == 1:
        state.stamina.restore()
    else:
        apply_speed_buff(state, e.speed_item_factor, e.speed_item_duration)
    state.emit("collect_rare")


_ITEM_EFFECTS: Dict[ItemType, Callable[[GameState, Collectible], None]] = {
    ItemType.NOTE: _collect_note,
    ItemType.RECORD: _collect_record,
    ItemType.GOLDEN_NOTE: _collect_golden,
    ItemType.ENERGY_CRYSTAL: _collect_crystal,
    ItemType.SPEED_BOOST: _collect_speed,
    ItemType.MYSTERY_BOX: _collect_mystery,
}


def collect_item(state: GameState, item: Collectible) -> bool:
    """Mark an item collected and apply its effect.

    Returns:
        False if the item had already been collected (no effect)
    """
    if item.collected:
        return False
    item.collected = True
    _ITEM_EFFECTS[item.item](state, item)
    return True


# ---------------------------------------------------------------------------
# Per-kind handlers
# ---------------------------------------------------------------------------


def _handle_collectible(state: GameState, obj: Collectible, intent: InputIntent,
                        contacts: StepContacts) -> None:
    if obj.active and overlaps(state.player.bounds, obj.bounds):
        collect_item(state, obj)


def _handle_speed_pad(state: GameState, pad: SpeedPad, intent: InputIntent,
                      contacts: StepContacts) -> None:
    if pad.activated:
        return
    if pad not in contacts.landed_on and not overlaps(state.player.bounds, pad.bounds):
        return
    g = state.config.generation
    state.player.vx *= g.speed_pad_boost
    pad.activated = True

    def rearm():
        pad.activated = False

    state.effects.schedule(g.speed_pad_cooldown, rearm, tag="speed_pad")


def _handle_crate(state: GameState, crate: Crate, intent: InputIntent,
                  contacts: StepContacts) -> None:
    if crate.broken or crate not in contacts.landed_on:
        return
    g = state.config.generation
    crate.broken = True
    crate.collidable = False
    player = state.player
    player.vy = -g.crate_bounce
    player.on_ground = False
    if state.rng.random() < g.crate_drop_probability:
        size = g.collectible_size
        item = state.world.generator.pick_item()
        drop = make_collectible(crate.x + (crate.width - size) / 2, crate.y - size, item, size)
        state.world.add(drop)
    logger.debug("Crate broken at x=%.0f", crate.x)


def _handle_structure(state: GameState, structure: Structure, intent: InputIntent,
                      contacts: StepContacts) -> None:
    if structure.door is None or structure.layer is Layer.BACKGROUND:
        return
    if not intent.crouch or state.door_latch or state.is_inside:
        return
    if overlaps(state.player.bounds, structure.door_bounds):
        enter_building(state, structure)


_HANDLERS: Dict[ObjectKind, Callable[[GameState, WorldObject, InputIntent, StepContacts], None]] = {
    ObjectKind.COLLECTIBLE: _handle_collectible,
    ObjectKind.SPEED_PAD: _handle_speed_pad,
    ObjectKind.CRATE: _handle_crate,
    ObjectKind.STRUCTURE: _handle_structure,
}


def resolve_interactions(
    state: GameState,
    intent: InputIntent,
    candidates: Sequence[WorldObject],
    contacts: StepContacts,
) -> None:
    """Resolve every interaction of the player with nearby objects, once each."""
    for obj in candidates:
        handler = _HANDLERS.get(obj.kind)
        if handler is not None:
            handler(state, obj, intent, contacts)
        if state.is_inside:
            # Entering a building ends the outdoor scan
            break


# ---------------------------------------------------------------------------
# Buildings
# ---------------------------------------------------------------------------


def _enter_house(state: GameState, interior: Interior) -> None:
    structure = interior.structure
    if structure.furniture is None:
        structure.furniture = state.world.generator.generate_furniture()
    state.emit("enter_house", key=structure.uid)


def _enter_hospital(state: GameState, interior: Interior) -> None:
    if not interior.structure.effect_used:
        state.stamina.restore()


def _enter_fire_station(state: GameState, interior: Interior) -> None:
    if not interior.structure.effect_used:
        e = state.config.effects
        apply_speed_buff(state, e.fire_station_factor, e.fire_station_duration, tag="fire_station")


def _enter_shop(count: int) -> Callable[[GameState, Interior], None]:
    def enter(state: GameState, interior: Interior) -> None:
        if not interior.structure.effect_used:
            interior.items = state.world.generator.interior_items(count, rare_last=True)
    return enter


def _building_entries(state: GameState) -> Dict[BuildingType, Callable[[GameState, Interior], None]]:
    g = state.config.generation
    return {
        BuildingType.HOUSE: _enter_house,
        BuildingType.HOSPITAL: _enter_hospital,
        BuildingType.FIRE_STATION: _enter_fire_station,
        BuildingType.STORE: _enter_shop(g.store_item_count),
        BuildingType.SUPERMARKET: _enter_shop(g.supermarket_item_count),
    }


def enter_building(state: GameState, structure: Structure) -> Interior:
    """Switch to interior mode for ``structure``.

    The outdoor position is remembered at the door so the player comes back
    out where they went in.
    """
    config = state.config
    player = state.player
    generator = state.world.generator
    door = generator.interior_door()
    interior = Interior(
        structure=structure,
        return_x=structure.door[0] + (structure.door[2] - player.width) / 2,
        return_y=player.y,
        floor_y=config.screen_height / 2,
        door=door,
    )
    state.inside = interior
    state.door_latch = True

    _building_entries(state)[structure.building](state, interior)
    if structure.building is not BuildingType.HOUSE:
        state.emit("visit_building", key=structure.building.value)
    structure.effect_used = True

    player.x = interior.door_center_x - player.width / 2
    player.y = interior.floor_y - player.height
    player.vx = player.vy = 0.0
    player.on_ground = True
    player.wall_sliding = False
    player.jump_active = False
    logger.info("Entered %s at x=%.0f", structure.building.value, structure.x)
    return interior


def exit_building(state: GameState) -> None:
    """Back outside at the entrance door; items spawned inside are dropped."""
    interior = state.inside
    if interior is None:
        return
    player = state.player
    purged = sum(1 for item in interior.items if not item.collected)
    interior.items = []
    state.inside = None
    state.door_latch = True

    player.x = interior.return_x
    player.y = state.config.ground_y - player.height
    player.vx = player.vy = 0.0
    player.on_ground = True
    logger.info("Left %s (%d uncollected items purged)", interior.structure.building.value, purged)


def resolve_interior(state: GameState, intent: InputIntent) -> bool:
    """Item pickups and the exit door while inside.

    Returns:
        True if the player left the building this tick
    """
    interior = state.inside
    if interior is None:
        return False
    player = state.player
    pb = player.bounds
    for item in interior.items:
        if item.active and overlaps(pb, item.bounds):
            collect_item(state, item)

    tolerance = state.config.effects.door_tolerance
    near_door = abs(player.center[0] - interior.door_center_x) <= tolerance
    if intent.crouch and not state.door_latch and near_door:
        exit_building(state)
        return True
    return False


# ---------------------------------------------------------------------------
# Enemies
# ---------------------------------------------------------------------------


def resolve_enemy_contacts(state: GameState, prev_bottom: Optional[float] = None, dt: float = 0.0) -> bool:
    """Stomps and other contacts between the player and live enemies.

    A contact comes from above when the player's feet were at or above the
    hitbox top (plus the stomp tolerance) before this tick's movement. The
    test uses positions from before the move, so it holds for any frame time.
    A descending contact from above damages the enemy and bounces the player;
    the enemy stays harmless until the player stops overlapping it. Every
    other overlap is fatal in normal mode and harmless in easy mode.

    Args:
        state: Game state to mutate
        prev_bottom: Player feet y before this tick's integration; the
            current feet y when None
        dt: Tick length, used to recover where each enemy was before it moved

    Returns:
        True if the player died
    """
    player = state.player
    cfg = state.config.enemies
    if prev_bottom is None:
        prev_bottom = player.bottom
    for enemy in state.enemies:
        if enemy.dead:
            continue
        hb = enemy.hitbox
        if not overlaps(player.bounds, hb):
            enemy.stomp_contact = False
            continue
        if enemy.stomp_contact:
            continue
        # hb.bottom is the visual top edge (y grows downward)
        top = max(hb.bottom, hb.bottom - enemy.vy * dt)
        from_above = prev_bottom <= top + cfg.stomp_tolerance
        descending = player.vy > 0 or player.bottom > prev_bottom
        if from_above and descending:
            if damage_enemy(enemy, state.config):
                state.enemies_defeated += 1
                state.emit("defeat_enemy")
            enemy.stomp_contact = True
            player.vy = -cfg.stomp_bounce
            player.on_ground = False
            continue
        if state.counting:
            state.death_cause = enemy.kind.value
            return True
    return False
