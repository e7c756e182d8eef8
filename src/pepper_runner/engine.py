"""Pygame host: window, input, rendering and the game loop.

The host is thin glue around Simulation. It samples keyboard and gamepad
into an InputIntent, ticks the simulation with the measured frame time and
draws the returned RenderSnapshot with plain rectangles.
"""

import argparse
import logging
from typing import Any, Dict, List, Optional

import pygame

from .config import CONFIGS, GameConfig
from .entities import Layer
from .scores import HighScoreTable
from .simulation import RenderSnapshot, Simulation
from .state import DifficultyMode, GamePhase, InputIntent

logger = logging.getLogger(__name__)


# Colors (RGB)
COLOR_SKY = (135, 206, 235)
COLOR_INTERIOR = (245, 235, 215)
COLOR_GROUND = (96, 160, 72)
COLOR_FLOOR = (170, 130, 90)
COLOR_TEXT = (30, 30, 30)
COLOR_STAMINA = (80, 200, 120)
COLOR_STAMINA_BG = (60, 60, 60)
COLOR_POWER = (255, 200, 100)
COLOR_POWER_RED = (224, 108, 117)
COLOR_WARNING = (224, 108, 117)
COLOR_NOTIFICATION = (229, 192, 123)

# Background objects scroll at this fraction of the camera speed
BACKGROUND_PARALLAX = 0.5

# Gamepad mapping
STICK_DEADZONE = 0.2
PAD_JUMP_BUTTON = 0
PAD_CROUCH_BUTTON = 1

# Longest frame time fed to the simulation (s)
MAX_FRAME_TIME = 0.05


class SnapshotRenderer:
    """Draws a RenderSnapshot onto a pygame surface."""

    def __init__(self, surface: pygame.Surface):
        self.surface = surface
        self._fonts: Dict[int, pygame.font.Font] = {}

    def font(self, size: int) -> pygame.font.Font:
        if size not in self._fonts:
            if not pygame.font.get_init():
                pygame.font.init()
            self._fonts[size] = pygame.font.Font(None, size)
        return self._fonts[size]

    def draw(self, snapshot: RenderSnapshot, hud: bool = True) -> None:
        """Draw the scene, then optionally the HUD and phase overlays."""
        width, height = snapshot.viewport
        if snapshot.inside:
            self.surface.fill(COLOR_INTERIOR)
            pygame.draw.rect(self.surface, COLOR_FLOOR,
                             (0, int(snapshot.ground_y), width, height - int(snapshot.ground_y)))
        else:
            self.surface.fill(COLOR_SKY)
            pygame.draw.rect(self.surface, COLOR_GROUND,
                             (0, int(snapshot.ground_y), width, height - int(snapshot.ground_y)))

        for d in snapshot.drawables:
            parallax = BACKGROUND_PARALLAX if d.layer is Layer.BACKGROUND else 1.0
            sx = int(d.x - snapshot.scroll_x * parallax)
            if sx + d.width < 0 or sx > width:
                continue
            pygame.draw.rect(self.surface, d.color, (sx, int(d.y), int(d.width), int(d.height)))

        if hud:
            self.draw_hud(snapshot)
            self.draw_overlay(snapshot)

    def draw_hud(self, snapshot: RenderSnapshot) -> None:
        width, _ = snapshot.viewport
        font = self.font(24)

        # Stamina bar
        pygame.draw.rect(self.surface, COLOR_STAMINA_BG, (10, 10, 150, 12))
        pygame.draw.rect(self.surface, COLOR_STAMINA, (10, 10, int(150 * snapshot.stamina), 12))

        lines = [
            f"{snapshot.distance_m} m   Notes: {snapshot.note_count}   Records: {snapshot.record_count}",
            snapshot.quest_text,
            f"Difficulty: {snapshot.difficulty}   Best: {snapshot.best_score} m",
        ]
        y = 28
        for line in lines:
            self.surface.blit(font.render(line, True, COLOR_TEXT), (10, y))
            y += 20

        if snapshot.power_bar_visible:
            color = COLOR_POWER_RED if snapshot.power_bar_red else COLOR_POWER
            pygame.draw.rect(self.surface, COLOR_STAMINA_BG, (width - 40, 10, 12, 100))
            filled = int(100 * snapshot.power_bar_fill)
            pygame.draw.rect(self.surface, color, (width - 40, 110 - filled, 12, filled))

        if snapshot.warning_level > 0:
            pygame.draw.rect(self.surface, COLOR_WARNING,
                             (0, 0, width, 4 + int(6 * snapshot.warning_level)))

        if snapshot.notification:
            surface = self.font(28).render(snapshot.notification, True, COLOR_NOTIFICATION)
            self.surface.blit(surface, surface.get_rect(center=(width // 2, 90)))

    def draw_overlay(self, snapshot: RenderSnapshot) -> None:
        if snapshot.phase is GamePhase.MENU:
            self._draw_centered(["PEPPER RUNNER", "N = Normal    E = Easy    Esc = Quit"], snapshot)
        elif snapshot.phase is GamePhase.GAME_OVER:
            self._draw_centered([f"GAME OVER  {snapshot.distance_m} m", "Jump for menu    R = Restart"],
                                snapshot)

    def _draw_centered(self, lines: List[str], snapshot: RenderSnapshot) -> None:
        width, height = snapshot.viewport
        overlay = pygame.Surface((width, height), pygame.SRCALPHA)
        overlay.fill((0, 0, 0, 140))
        self.surface.blit(overlay, (0, 0))
        y = height // 2 - 20
        for i, line in enumerate(lines):
            font = self.font(48 if i == 0 else 28)
            surface = font.render(line, True, (255, 255, 255))
            self.surface.blit(surface, surface.get_rect(center=(width // 2, y)))
            y += 45


class PepperRunnerEngine:
    """Interactive host coordinating input, simulation and rendering.

    Handles:
    - Game loop with measured frame time
    - Keyboard and gamepad input
    - Menu / game-over transitions
    - High-score persistence
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        highscores: Optional[HighScoreTable] = None,
        seed: Optional[int] = None,
    ):
        """Initialize the window and the simulation.

        Args:
            config: Game configuration. Uses defaults if None.
            highscores: High-score table; loaded from config.highscore_path if None.
            seed: World seed, overrides config.seed.
        """
        self.config = config or GameConfig()

        pygame.init()
        self.screen = pygame.display.set_mode(
            (self.config.screen_width, self.config.screen_height)
        )
        pygame.display.set_caption("Pepper Runner")
        self.clock = pygame.time.Clock()

        if highscores is None:
            highscores = HighScoreTable(self.config.highscore_path)
        self.highscores = highscores
        self.sim = Simulation(self.config, highscores=highscores, seed=seed)
        self.renderer = SnapshotRenderer(self.screen)

        self.running = False
        self._keys_pressed: Dict[int, bool] = {}
        self.gamepads: List[Any] = []
        self._refresh_gamepads()

    def _refresh_gamepads(self) -> None:
        """Open every connected gamepad; any failure leaves keyboard-only input."""
        self.gamepads = []
        try:
            pygame.joystick.init()
            count = pygame.joystick.get_count()
        except pygame.error as e:
            logger.warning("Gamepad support unavailable: %s", e)
            return
        for index in range(count):
            try:
                joystick = pygame.joystick.Joystick(index)
                joystick.init()
            except pygame.error as e:
                logger.warning("Failed to init gamepad %d: %s", index, e)
                continue
            self.gamepads.append(joystick)

    @property
    def phase(self) -> GamePhase:
        return self.sim.phase

    def start(self, mode: DifficultyMode) -> None:
        self.sim.start(mode)
        print(f"NEW GAME: {mode.value} mode")

    def handle_events(self) -> None:
        """Process pygame events."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
            elif event.type == pygame.KEYDOWN:
                self._keys_pressed[event.key] = True
                self._handle_key(event.key)
            elif event.type == pygame.KEYUP:
                self._keys_pressed[event.key] = False
            elif event.type in (pygame.JOYDEVICEADDED, pygame.JOYDEVICEREMOVED):
                self._refresh_gamepads()

    def _handle_key(self, key: int) -> None:
        if key == pygame.K_ESCAPE:
            self.running = False
        elif self.phase is GamePhase.MENU:
            if key in (pygame.K_n, pygame.K_1, pygame.K_RETURN):
                self.start(DifficultyMode.NORMAL)
            elif key in (pygame.K_e, pygame.K_2):
                self.start(DifficultyMode.EASY)
        elif key == pygame.K_r:
            self.start(self.sim.state.mode)

    def read_intent(self) -> InputIntent:
        """Current keyboard and gamepad state as an InputIntent."""
        keys = self._keys_pressed
        left = bool(keys.get(pygame.K_LEFT) or keys.get(pygame.K_a))
        right = bool(keys.get(pygame.K_RIGHT) or keys.get(pygame.K_d))
        jump = bool(keys.get(pygame.K_SPACE) or keys.get(pygame.K_w) or keys.get(pygame.K_UP))
        crouch = bool(keys.get(pygame.K_DOWN) or keys.get(pygame.K_s))
        analog = None

        if self.gamepads:
            pad = self.gamepads[0]
            try:
                axis = pad.get_axis(0) if pad.get_numaxes() > 0 else 0.0
                if abs(axis) >= STICK_DEADZONE and not (left or right):
                    left, right = axis < 0, axis > 0
                    analog = abs(axis)
                buttons = pad.get_numbuttons()
                if buttons > PAD_JUMP_BUTTON:
                    jump = jump or bool(pad.get_button(PAD_JUMP_BUTTON))
                if buttons > PAD_CROUCH_BUTTON:
                    crouch = crouch or bool(pad.get_button(PAD_CROUCH_BUTTON))
            except pygame.error as e:
                logger.warning("Gamepad read failed, dropping it: %s", e)
                self.gamepads = []

        return InputIntent(left=left, right=right, jump=jump, crouch=crouch,
                           analog_speed_factor=analog)

    def update(self, dt: float) -> RenderSnapshot:
        """Tick the simulation; saves high scores when a run ends."""
        before = self.phase
        snapshot = self.sim.tick(self.read_intent(), min(dt, MAX_FRAME_TIME))
        if before is GamePhase.PLAYING and self.phase is GamePhase.GAME_OVER:
            state = self.sim.state
            print(f"GAME OVER: {state.distance_m} m ({state.death_cause})")
            self._save_scores()
        return snapshot

    def _save_scores(self) -> None:
        try:
            self.highscores.save()
        except OSError as e:
            logger.error("Could not save high scores to %s: %s", self.highscores.path, e)

    def render(self) -> None:
        """Render the latest snapshot."""
        self.renderer.draw(self.sim.snapshot)
        pygame.display.flip()

    def run(self) -> None:
        """Main game loop."""
        self.running = True
        dt = 1.0 / self.config.fps
        while self.running:
            self.handle_events()
            self.update(dt)
            self.render()
            dt = self.clock.tick(self.config.fps) / 1000.0
        pygame.quit()

    def get_state(self) -> Dict[str, Any]:
        """Get current game state for observation/logging."""
        return self.sim.get_state()


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="pepper-runner", description="Side-scrolling neighborhood runner")
    parser.add_argument("--config", choices=sorted(CONFIGS), default="default", help="Named config preset")
    parser.add_argument("--mode", choices=GameConfig.MODES, default=None,
                        help="Start immediately in this difficulty mode (skips the menu)")
    parser.add_argument("--seed", type=int, default=None, help="World seed for a reproducible run")
    parser.add_argument("--highscores", default=None, help="High-score file path")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Logging level")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    config = GameConfig.from_dict(CONFIGS[args.config].to_dict())
    if args.highscores:
        config.highscore_path = args.highscores

    engine = PepperRunnerEngine(config, seed=args.seed)
    if args.mode is not None:
        engine.start(DifficultyMode.parse(args.mode))
    engine.run()


if __name__ == "__main__":
    main()
