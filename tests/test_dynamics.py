"""Tests for player and enemy equations of motion."""

import pytest

from pepper_runner.config import GameConfig, PowerBarConfig, StaminaConfig
from pepper_runner.dynamics import (
    apply_drag, integrate_enemy_gravity, step_player, update_power_bar, update_stamina,
)
from pepper_runner.entities import (
    Behavior, Crate, Enemy, EnemyKind, Facing, Layer, Player, Pole, PowerBar,
    StaminaMeter, Structure,
)
from pepper_runner.state import InputIntent


DT = 1 / 60


@pytest.fixture
def config():
    return GameConfig()


@pytest.fixture
def player(config):
    return Player.spawn(config)


def _airborne(config, x=300.0, y=200.0, vy=0.0):
    p = Player.spawn(config)
    p.x, p.y, p.vy = x, y, vy
    p.on_ground = False
    return p


class TestJump:
    def test_jump_from_rest_sets_impulse(self, config, player):
        """Grounded at x=0 with a single jump tick launches at -520."""
        player.x = 0.0
        player.vx = 0.0
        contacts = step_player(player, InputIntent(jump=True), config, DT)
        assert player.vy == pytest.approx(-520.0)
        assert not player.on_ground
        assert contacts.jumped
        assert player.x == 0.0

    def test_jump_requires_fresh_press(self, config, player):
        step_player(player, InputIntent(jump=True), config, DT)
        # Land again while still holding jump
        player.y = config.ground_y - player.height
        player.vy = 0.0
        player.on_ground = True
        player.jump_active = False
        contacts = step_player(player, InputIntent(jump=True), config, DT)
        assert not contacts.jumped
        assert player.on_ground

    def test_early_release_cuts_ascent(self, config, player):
        step_player(player, InputIntent(jump=True), config, DT)
        step_player(player, InputIntent(), config, DT)
        # (-520 + g*dt) * cut factor
        assert player.vy == pytest.approx((-520.0 + 1200.0 * DT) * 0.5)

    def test_holding_adds_lift(self, config, player):
        step_player(player, InputIntent(jump=True), config, DT)
        step_player(player, InputIntent(jump=True), config, DT)
        assert player.vy == pytest.approx(-520.0 + 1200.0 * DT - 700.0 * DT)

    def test_accelerated_jump_when_bar_red(self, config, player):
        step_player(player, InputIntent(jump=True, right=True), config, DT, power_bar_red=True)
        assert player.accelerated_jump
        assert player.accel_factor == pytest.approx(config.player.accelerated_jump_factor)
        step_player(player, InputIntent(jump=True, right=True), config, DT)
        assert 1.0 < player.accel_factor < config.player.accelerated_jump_factor
        assert player.vx > config.player.base_move_speed

    def test_landing_clears_accelerated_jump(self, config, player):
        step_player(player, InputIntent(jump=True), config, DT, power_bar_red=True)
        for _ in range(120):
            step_player(player, InputIntent(), config, DT)
            if player.on_ground:
                break
        assert player.on_ground
        assert not player.accelerated_jump
        assert player.accel_factor == 1.0


class TestVertical:
    def test_terminal_velocity_clamp(self, config):
        """Falling at 1000 px/s for one tick clamps to 700."""
        p = _airborne(config, vy=1000.0)
        step_player(p, InputIntent(), config, DT)
        assert p.vy == pytest.approx(700.0)

    def test_vy_never_exceeds_terminal(self, config):
        p = _airborne(config, y=-2000.0)
        for _ in range(600):
            step_player(p, InputIntent(), config, DT)
            assert p.vy <= config.physics.terminal_velocity
        assert p.on_ground

    def test_no_gravity_when_grounded(self, config, player):
        step_player(player, InputIntent(), config, DT)
        assert player.vy == 0.0
        assert player.on_ground
        assert player.bottom == pytest.approx(config.ground_y)

    def test_drag_only_above_threshold(self, config):
        class Body:
            vx, vy = 300.0, 0.0
        slow = Body()
        apply_drag(slow, config.physics, DT)
        assert slow.vx == 300.0

        fast = Body()
        fast.vx = 800.0
        apply_drag(fast, config.physics, DT)
        assert fast.vx == pytest.approx(800.0 * 0.99)

    def test_lands_on_walkable_roof(self, config):
        roof = Structure(x=250.0, y=400.0, width=200.0, height=150.0, walkable=True)
        p = _airborne(config, y=400.0 - 60.0 - 5.0, vy=600.0)
        contacts = step_player(p, InputIntent(), config, DT, surfaces=[roof])
        assert p.on_ground
        assert p.bottom == pytest.approx(400.0)
        assert contacts.landed_on == [roof]
        assert contacts.landed

    def test_background_objects_are_not_surfaces(self, config):
        roof = Structure(x=250.0, y=400.0, width=200.0, height=150.0, walkable=True,
                         layer=Layer.BACKGROUND)
        p = _airborne(config, y=400.0 - 60.0 - 5.0, vy=600.0)
        step_player(p, InputIntent(), config, DT, surfaces=[roof])
        assert not p.on_ground

    def test_rests_on_crate_top(self, config):
        crate = Crate(x=280.0, y=config.ground_y - 40.0, width=30.0, height=40.0, collidable=True)
        p = _airborne(config, y=crate.y - 60.0 - 2.0, vy=100.0)
        for _ in range(10):
            contacts = step_player(p, InputIntent(), config, DT, surfaces=[crate])
        assert p.on_ground
        assert p.bottom == pytest.approx(crate.y)
        assert crate in contacts.landed_on


class TestHorizontal:
    def test_instant_target_speed(self, config, player):
        step_player(player, InputIntent(right=True), config, DT)
        assert player.vx == pytest.approx(200.0)
        assert player.facing is Facing.RIGHT

    def test_analog_speed_factor(self, config, player):
        step_player(player, InputIntent(left=True, analog_speed_factor=0.5), config, DT)
        assert player.vx == pytest.approx(-100.0)
        assert player.facing is Facing.LEFT

    def test_ground_friction_when_no_input(self, config, player):
        player.vx = 100.0
        step_player(player, InputIntent(), config, DT)
        assert player.vx == pytest.approx(100.0 * 0.8)

    def test_friction_stops_small_speeds(self, config, player):
        player.vx = 1.0
        step_player(player, InputIntent(), config, DT)
        assert player.vx == 0.0

    def test_x_never_below_zero(self, config, player):
        player.x = 5.0
        for _ in range(60):
            step_player(player, InputIntent(left=True), config, DT)
            assert player.x >= 0.0
        assert player.x == 0.0

    def test_solid_pushes_player_out(self, config, player):
        pole = Pole(x=player.right + 1.0, y=config.ground_y - 50.0, width=10.0, height=50.0,
                    collidable=True)
        for _ in range(10):
            step_player(player, InputIntent(), config, DT, surfaces=[pole])
        assert player.right <= pole.x + 1e-6

    def test_interior_bounds(self, config, player):
        player.x = 790.0
        step_player(player, InputIntent(right=True), config, DT, right_bound=800.0)
        assert player.right == pytest.approx(800.0)


class TestCrouchAndSprint:
    def test_crouch_changes_height_keeps_feet(self, config, player):
        bottom = player.bottom
        step_player(player, InputIntent(crouch=True), config, DT)
        assert player.height == config.player.crouch_height
        assert player.bottom == pytest.approx(bottom)
        step_player(player, InputIntent(), config, DT)
        assert player.height == config.player.standing_height
        assert player.bottom == pytest.approx(bottom)

    def test_crouch_suppresses_movement(self, config, player):
        step_player(player, InputIntent(left=True, crouch=True), config, DT)
        assert player.vx == 0.0

    def test_sprint_requires_motion(self, config, player):
        contacts = step_player(player, InputIntent(right=True, crouch=True), config, DT)
        assert not player.sprinting
        assert not contacts.sprint_started

    def test_sprint_doubles_speed(self, config, player):
        step_player(player, InputIntent(right=True), config, DT)
        contacts = step_player(player, InputIntent(right=True, crouch=True), config, DT)
        assert player.sprinting
        assert contacts.sprint_started
        assert player.vx == pytest.approx(400.0)

    def test_sprint_started_only_on_rising_edge(self, config, player):
        step_player(player, InputIntent(right=True), config, DT)
        step_player(player, InputIntent(right=True, crouch=True), config, DT)
        contacts = step_player(player, InputIntent(right=True, crouch=True), config, DT)
        assert player.sprinting
        assert not contacts.sprint_started

    def test_no_sprint_without_stamina(self, config, player):
        step_player(player, InputIntent(right=True), config, DT)
        step_player(player, InputIntent(right=True, crouch=True), config, DT, stamina=0.05)
        assert not player.sprinting


class TestWall:
    def _setup(self, config):
        pole = Pole(x=100.0, y=config.ground_y - 300.0, width=10.0, height=300.0, collidable=True)
        p = _airborne(config, x=50.0, y=config.ground_y - 250.0, vy=100.0)
        return pole, p

    def test_wall_slide_when_falling_against_solid(self, config):
        pole, p = self._setup(config)
        contacts = step_player(p, InputIntent(), config, DT, surfaces=[pole])
        assert contacts.wall is pole
        assert p.wall_sliding
        assert p.wall_direction == 1

    def test_wall_slide_limits_fall_speed(self, config):
        pole, p = self._setup(config)
        for _ in range(10):
            step_player(p, InputIntent(), config, DT, surfaces=[pole])
        assert p.vy <= config.player.wall_slide_max_speed

    def test_wall_jump_pushes_away(self, config):
        pole, p = self._setup(config)
        step_player(p, InputIntent(), config, DT, surfaces=[pole])
        contacts = step_player(p, InputIntent(right=True, jump=True), config, DT, surfaces=[pole])
        assert contacts.wall_jumped
        assert p.vx == pytest.approx(-260.0)
        assert p.vy == pytest.approx(-480.0)
        assert not p.wall_sliding

    def test_wall_jump_lock_ignores_input(self, config):
        pole, p = self._setup(config)
        step_player(p, InputIntent(), config, DT, surfaces=[pole])
        step_player(p, InputIntent(right=True, jump=True), config, DT, surfaces=[pole])
        step_player(p, InputIntent(right=True, jump=True), config, DT, surfaces=[pole])
        assert p.vx < 0


class TestAnimation:
    def test_walk_cycles(self, config, player):
        frames = set()
        for _ in range(60):
            step_player(player, InputIntent(right=True), config, DT)
            frames.add(player.anim_frame)
        assert player.anim == "walk"
        assert frames == set(range(config.player.animation_frames["walk"]))

    def test_crouch_holds_last_frame(self, config, player):
        for _ in range(120):
            step_player(player, InputIntent(crouch=True), config, DT)
        assert player.anim == "crouch"
        assert player.anim_frame == config.player.animation_frames["crouch"] - 1

    def test_jump_frame_follows_vy(self, config):
        p = _airborne(config, vy=-100.0)
        step_player(p, InputIntent(), config, DT)
        assert p.anim == "jump" and p.anim_frame == 0
        p.vy = 280.0
        step_player(p, InputIntent(), config, DT)
        assert p.anim_frame == 1
        p.vy = 600.0
        step_player(p, InputIntent(), config, DT)
        assert p.anim_frame == 2


class TestStaminaAndPowerBar:
    def test_stamina_stays_in_bounds(self, config, player):
        meter = StaminaMeter()
        cfg = StaminaConfig()
        player.sprinting = True
        for _ in range(1000):
            update_stamina(meter, player, cfg, DT, drain_multiplier=3.0)
            assert 0.0 <= meter.fill <= 1.0
        assert meter.fill == 0.0
        player.sprinting = False
        for _ in range(1000):
            update_stamina(meter, player, cfg, DT)
            assert 0.0 <= meter.fill <= 1.0
        assert meter.fill == 1.0

    def test_no_drain_inside(self, config, player):
        meter = StaminaMeter(fill=0.5)
        player.sprinting = True
        update_stamina(meter, player, StaminaConfig(), DT, inside=True)
        assert meter.fill > 0.5

    def test_idle_recovers_faster(self, config, player):
        cfg = StaminaConfig()
        idle = StaminaMeter(fill=0.5)
        player.vx = 0.0
        update_stamina(idle, player, cfg, DT)
        moving = StaminaMeter(fill=0.5)
        player.vx = 200.0
        update_stamina(moving, player, cfg, DT)
        assert idle.fill - 0.5 == pytest.approx(2 * (moving.fill - 0.5))

    def test_power_bar_ping_pongs(self):
        bar = PowerBar()
        cfg = PowerBarConfig(speed=2.0)
        for _ in range(30):
            update_power_bar(bar, True, cfg, DT)
        assert bar.fill == pytest.approx(1.0)
        assert bar.red
        for _ in range(3):
            update_power_bar(bar, True, cfg, DT)
        assert bar.direction == -1
        assert bar.fill < 1.0

    def test_power_bar_restarts_when_shown(self):
        bar = PowerBar(fill=0.7, visible=False)
        update_power_bar(bar, True, PowerBarConfig(), DT)
        assert bar.fill < 0.1
        update_power_bar(bar, False, PowerBarConfig(), DT)
        assert not bar.visible
        assert not bar.red


class TestEnemyGravity:
    def test_enemy_falls_and_snaps_to_ground(self, config):
        enemy = Enemy(kind=EnemyKind.SPIDER, behavior=Behavior.WEB, x=0.0, y=100.0)
        for _ in range(300):
            integrate_enemy_gravity(enemy, config.physics, config.ground_y, DT)
        assert enemy.on_ground
        assert enemy.y + enemy.height == pytest.approx(config.ground_y)
        assert enemy.vy == 0.0
