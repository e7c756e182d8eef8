"""Tests for enemy behaviors and lifecycle."""

import math
import random

import pytest

from pepper_runner.config import GameConfig
from pepper_runner.enemy_ai import (
    advance_enemy, apply_speed_multiplier, damage_enemy, is_ground_bound,
    nearest_enemy_distance, spawn_enemy, update_enemies,
)
from pepper_runner.entities import Behavior, EnemyKind


DT = 1 / 60


@pytest.fixture
def config():
    return GameConfig()


def _run(enemy, config, target, ticks, rng=None):
    rng = rng or random.Random(0)
    for _ in range(ticks):
        advance_enemy(enemy, DT, target, config, rng)


class TestSpawn:
    def test_ground_kinds_stand_on_ground(self, config):
        slime = spawn_enemy(EnemyKind.SLIME, 1000.0, config)
        assert slime.behavior is Behavior.PATROL
        assert slime.y + slime.height == pytest.approx(config.ground_y)
        assert slime.on_ground

    def test_flying_kinds_spawn_at_altitude(self, config):
        bat = spawn_enemy(EnemyKind.BAT, 1000.0, config)
        assert bat.behavior is Behavior.FLY
        assert bat.y + bat.height == pytest.approx(config.ground_y - config.enemies.fly_altitude)
        assert not bat.on_ground

    def test_health_by_kind(self, config):
        assert spawn_enemy(EnemyKind.GHOST, 0.0, config).health == 2
        assert spawn_enemy(EnemyKind.SNAKE, 0.0, config).health == 1

    def test_speed_multiplier_keeps_nominal(self, config):
        wolf = spawn_enemy(EnemyKind.WOLF, 0.0, config, speed_multiplier=1.3)
        assert wolf.nominal_speed == pytest.approx(150.0)
        assert wolf.speed == pytest.approx(195.0)

    def test_behavior_per_kind(self, config):
        expected = {
            EnemyKind.SLIME: Behavior.PATROL,
            EnemyKind.BAT: Behavior.FLY,
            EnemyKind.SPIDER: Behavior.WEB,
            EnemyKind.GHOST: Behavior.FLOAT,
            EnemyKind.SNAKE: Behavior.SLITHER,
            EnemyKind.WOLF: Behavior.CHASE,
        }
        for kind, behavior in expected.items():
            assert spawn_enemy(kind, 0.0, config).behavior is behavior


class TestBehaviors:
    def test_patrol_stays_in_range_and_turns(self, config):
        slime = spawn_enemy(EnemyKind.SLIME, 1000.0, config)
        far = (5000.0, 0.0)
        directions = set()
        for _ in range(600):
            advance_enemy(slime, DT, far, config, random.Random(0))
            directions.add(slime.direction)
            assert 1000.0 - 120.0 <= slime.x <= 1000.0 + 120.0
        assert directions == {-1, 1}
        assert slime.on_ground

    def test_fly_follows_closed_form(self, config):
        bat = spawn_enemy(EnemyKind.BAT, 1000.0, config)
        ax, ay = config.enemies.fly_amplitude
        _run(bat, config, (0.0, 0.0), 90)
        t = bat.phase
        w = config.enemies.fly_frequency
        assert bat.x == pytest.approx(1000.0 + ax * math.sin(w * t))
        assert bat.y == pytest.approx(bat.origin_y + ay * math.sin(2 * w * t))
        assert not is_ground_bound(bat)

    def test_fly_phase_scales_with_speed(self, config):
        slow = spawn_enemy(EnemyKind.BAT, 0.0, config)
        fast = spawn_enemy(EnemyKind.BAT, 0.0, config, speed_multiplier=2.0)
        _run(slow, config, (0.0, 0.0), 30)
        _run(fast, config, (0.0, 0.0), 30)
        assert fast.phase == pytest.approx(2 * slow.phase)

    def test_web_waits_then_drops(self, config):
        spider = spawn_enemy(EnemyKind.SPIDER, 1000.0, config)
        start_y = spider.y
        _run(spider, config, (2000.0, 0.0), 30)
        assert not spider.triggered
        assert spider.y == start_y

        _run(spider, config, (spider.center[0] + 50.0, 0.0), 300)
        assert spider.triggered
        assert is_ground_bound(spider)
        assert spider.on_ground
        assert spider.y + spider.height == pytest.approx(config.ground_y)

    def test_web_homes_toward_player(self, config):
        spider = spawn_enemy(EnemyKind.SPIDER, 1000.0, config)
        start_x = spider.x
        _run(spider, config, (spider.center[0] + 100.0, 0.0), 10)
        assert spider.x > start_x

    def test_float_loops_around_baseline(self, config):
        ghost = spawn_enemy(EnemyKind.GHOST, 1000.0, config)
        ax, ay = config.enemies.float_amplitude
        for _ in range(400):
            advance_enemy(ghost, DT, (0.0, 0.0), config, random.Random(0))
            assert abs(ghost.x - ghost.origin_x) <= ax + 1e-9
            assert abs(ghost.y - ghost.origin_y) <= ay + 1e-9

    def test_slither_advances_with_small_wave(self, config):
        snake = spawn_enemy(EnemyKind.SNAKE, 1000.0, config)
        amplitude = config.enemies.slither_amplitude
        for _ in range(120):
            advance_enemy(snake, DT, (0.0, 0.0), config, random.Random(0))
            assert snake.origin_y - amplitude - 1e-9 <= snake.y <= snake.origin_y + 1e-9
        assert snake.x == pytest.approx(1000.0 - 80.0 * 2.0)

    def test_chase_pursues_player_in_range(self, config):
        wolf = spawn_enemy(EnemyKind.WOLF, 1000.0, config)
        target = (wolf.center[0] + 200.0, 0.0)
        advance_enemy(wolf, DT, target, config, random.Random(0))
        assert wolf.chasing
        assert wolf.direction == 1
        assert wolf.vx == pytest.approx(150.0 * config.enemies.chase_speed_multiplier)

    def test_chase_stops_close_to_player(self, config):
        wolf = spawn_enemy(EnemyKind.WOLF, 1000.0, config)
        x = wolf.x
        advance_enemy(wolf, DT, (wolf.center[0] + 5.0, 0.0), config, random.Random(0))
        assert wolf.vx == 0.0
        assert wolf.x == x

    def test_chase_falls_back_to_patrol(self, config):
        wolf = spawn_enemy(EnemyKind.WOLF, 1000.0, config)
        advance_enemy(wolf, DT, (wolf.center[0] + 200.0, 0.0), config, random.Random(0))
        advance_enemy(wolf, DT, (wolf.center[0] + 3000.0, 0.0), config, random.Random(0))
        assert not wolf.chasing
        assert wolf.origin_x == pytest.approx(wolf.x - wolf.vx * DT)

    def test_chase_jumps_are_rate_limited(self, config):
        config.enemies.chase_jump_rate = 60.0  # certain jump whenever allowed
        wolf = spawn_enemy(EnemyKind.WOLF, 1000.0, config)
        jumps = 0
        rng = random.Random(3)
        for _ in range(60):
            was_grounded = wolf.on_ground
            advance_enemy(wolf, DT, (wolf.center[0] + 200.0, 0.0), config, rng)
            if was_grounded and not wolf.on_ground:
                jumps += 1
        assert 1 <= jumps <= 1 + int(1.0 / config.enemies.chase_jump_cooldown)


class TestLifecycle:
    def test_damage_kills_once(self, config):
        ghost = spawn_enemy(EnemyKind.GHOST, 0.0, config)
        assert not damage_enemy(ghost, config)
        assert damage_enemy(ghost, config)
        assert ghost.dead
        assert ghost.death_timer == pytest.approx(config.enemies.death_delay)
        assert not damage_enemy(ghost, config)

    def test_dead_enemy_removed_after_delay(self, config):
        slime = spawn_enemy(EnemyKind.SLIME, 100.0, config)
        damage_enemy(slime, config)
        enemies = [slime]
        center = (100.0, 0.0)
        enemies = update_enemies(enemies, center, config, DT, random.Random(0))
        assert enemies == [slime]
        for _ in range(40):
            enemies = update_enemies(enemies, center, config, DT, random.Random(0))
        assert enemies == []

    def test_dead_enemy_does_not_move(self, config):
        slime = spawn_enemy(EnemyKind.SLIME, 100.0, config)
        damage_enemy(slime, config)
        x = slime.x
        update_enemies([slime], (100.0, 0.0), config, DT, random.Random(0))
        assert slime.x == x

    def test_distant_enemies_culled(self, config):
        near = spawn_enemy(EnemyKind.SLIME, 500.0, config)
        far = spawn_enemy(EnemyKind.SLIME, 5000.0, config)
        survivors = update_enemies([near, far], (400.0, 0.0), config, DT, random.Random(0))
        assert survivors == [near]

    def test_apply_speed_multiplier(self, config):
        enemies = [spawn_enemy(kind, 0.0, config) for kind in EnemyKind]
        apply_speed_multiplier(enemies, 0.7)
        for enemy in enemies:
            assert enemy.speed == pytest.approx(enemy.nominal_speed * 0.7)
        apply_speed_multiplier(enemies, 1.0)
        for enemy in enemies:
            assert enemy.speed == pytest.approx(enemy.nominal_speed)

    def test_nearest_enemy_distance(self, config):
        a = spawn_enemy(EnemyKind.SLIME, 100.0, config)
        b = spawn_enemy(EnemyKind.SLIME, 400.0, config)
        b.dead = True
        assert nearest_enemy_distance([a, b], 420.0) == pytest.approx(300.0)
        assert nearest_enemy_distance([], 0.0) == math.inf
