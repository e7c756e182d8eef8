"""Gymnasium adapter over the headless simulation.

Each env step feeds one InputIntent to Simulation.tick at the configured
fps. Observations pair an off-screen frame (no HUD) with a compact state
vector read straight from GameState.
"""

from typing import Any, Dict, Optional, Tuple

import gymnasium
import numpy as np
import pygame
from gymnasium import spaces

from .config import GameConfig
from .engine import SnapshotRenderer
from .enemy_ai import nearest_enemy_distance
from .simulation import Simulation
from .state import DifficultyMode, GamePhase, InputIntent


STATE_SIZE = 16

# Raw reward signals and their default weights
DEFAULT_REWARD_WEIGHTS: Dict[str, float] = {
    "progress": 1.0,  # meters gained this step
    "collect": 5.0,  # notes + records gained this step
    "death": -50.0,  # 1.0 on the step the player dies
    "step": -0.01,  # 1.0 every step
}


class PepperRunnerEnv(gymnasium.Env):
    """Headless runner environment.

    Observation space (Dict):
        'rgb':   uint8 (H, W, 3) frame, blank unless render_mode is set
        'state': float32 (16,) vector:
            0-3   player x, y, vx, vy
            4-6   on ground, crouching, sprinting (0/1)
            7     stamina fill
            8-10  distance (m), notes, records
            11    inside a building (0/1)
            12    enemy warning level
            13    signed x offset to the nearest live enemy, clipped to
                  the viewport width (viewport width when there is none)
            14    active quest index
            15    game over (0/1)

    Action space: MultiBinary(4) = [left, right, jump, crouch]

    The reward is the weighted sum of DEFAULT_REWARD_WEIGHTS signals (or
    ``reward_weights``); the raw signals are returned in
    ``info['reward_signals']``.
    """

    metadata = {"render_modes": ["human", "rgb_array"], "render_fps": 60}

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        render_mode: Optional[str] = None,
        obs_resolution: Tuple[int, int] = (256, 256),
        max_episode_steps: int = 1000,
        reward_weights: Optional[Dict[str, float]] = None,
        mode: str = "normal",
    ):
        """Create the environment.

        Args:
            config: Game configuration. Uses defaults if None.
            render_mode: None, "rgb_array" or "human".
            obs_resolution: (height, width) of the 'rgb' observation.
            max_episode_steps: Steps before the episode is truncated.
            reward_weights: Replaces DEFAULT_REWARD_WEIGHTS when given.
            mode: Difficulty mode name ("normal" or "easy").
        """
        super().__init__()
        self.config = (config or GameConfig()).check()
        self.render_mode = render_mode
        self.frame_shape = (obs_resolution[0], obs_resolution[1], 3)
        self.max_episode_steps = max_episode_steps
        self.mode = DifficultyMode.parse(mode)
        if reward_weights is None:
            reward_weights = DEFAULT_REWARD_WEIGHTS
        self.reward_weights = dict(reward_weights)

        self.action_space = spaces.MultiBinary(4)
        self.observation_space = spaces.Dict({
            "rgb": spaces.Box(0, 255, shape=self.frame_shape, dtype=np.uint8),
            "state": spaces.Box(-np.inf, np.inf, shape=(STATE_SIZE,), dtype=np.float32),
        })

        # SDL_VIDEODRIVER=dummy must be set by the caller for headless runs
        if not pygame.get_init():
            pygame.init()
        native = (self.config.screen_width, self.config.screen_height)
        self._renderer = SnapshotRenderer(pygame.Surface(native))
        self._window = None
        if render_mode == "human":
            self._window = pygame.display.set_mode(native)
            pygame.display.set_caption("PepperRunnerEnv")

        self._sim: Optional[Simulation] = None
        self._world_seed = 0
        self._steps = 0
        self._last_distance = 0
        self._last_items = 0

    # ------------------------------------------------------------------
    # Gym API
    # ------------------------------------------------------------------

    def reset(self, *, seed=None, options=None):
        super().reset(seed=seed)
        # World seed drawn from the env RNG so reset(seed=...) is reproducible
        self._world_seed = int(self.np_random.integers(0, 2**31))
        self._sim = Simulation(self.config, seed=self._world_seed)
        self._sim.start(self.mode)
        self._steps = 0
        self._last_distance = 0
        self._last_items = 0
        return self._observe(), self._info()

    def step(self, action):
        assert self._sim is not None, "Must call reset() before step()"
        self._sim.tick(self.action_to_intent(action), 1.0 / self.config.fps)
        self._steps += 1

        signals = self._reward_signals()
        reward = float(sum(w * signals.get(name, 0.0) for name, w in self.reward_weights.items()))
        terminated = self._sim.phase is GamePhase.GAME_OVER
        truncated = self._steps >= self.max_episode_steps

        info = self._info()
        info["reward_signals"] = signals
        obs = self._observe()
        if self.render_mode == "human":
            self.render()
        return obs, reward, terminated, truncated, info

    def render(self):
        if self.render_mode == "rgb_array":
            return self._frame()
        if self.render_mode == "human" and self._window is not None:
            self._renderer.draw(self._sim.snapshot, hud=True)
            self._window.blit(self._renderer.surface, (0, 0))
            pygame.display.flip()
        return None

    def close(self):
        if self._window is not None:
            pygame.display.quit()
            self._window = None

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def action_to_intent(action) -> InputIntent:
        """MultiBinary [left, right, jump, crouch] to an InputIntent."""
        left, right, jump, crouch = (bool(v) for v in np.asarray(action).reshape(-1)[:4])
        return InputIntent(left=left, right=right, jump=jump, crouch=crouch)

    def _reward_signals(self) -> Dict[str, float]:
        s = self._sim.state
        items = s.note_count + s.record_count
        signals = {
            "progress": float(s.distance_m - self._last_distance),
            "collect": float(items - self._last_items),
            "death": float(s.phase is GamePhase.GAME_OVER),
            "step": 1.0,
        }
        self._last_distance = s.distance_m
        self._last_items = items
        return signals

    def _observe(self) -> Dict[str, np.ndarray]:
        if self.render_mode is None:
            rgb = np.zeros(self.frame_shape, dtype=np.uint8)
        else:
            rgb = self._frame()
        return {"rgb": rgb, "state": self.state_vector()}

    def state_vector(self) -> np.ndarray:
        s = self._sim.state
        p = s.player
        width = float(self.config.screen_width)

        offset = width
        live = [e for e in s.enemies if not e.dead]
        if live and s.inside is None:
            px = p.center[0]
            nearest = min(live, key=lambda e: abs(e.center[0] - px))
            offset = float(np.clip(nearest.center[0] - px, -width, width))

        return np.array([
            p.x, p.y, p.vx, p.vy,
            p.on_ground, p.crouching, p.sprinting,
            s.stamina.fill,
            s.distance_m, s.note_count, s.record_count,
            s.inside is not None,
            self._sim.snapshot.warning_level,
            offset,
            s.quests.current_index,
            s.phase is GamePhase.GAME_OVER,
        ], dtype=np.float32)

    def _frame(self) -> np.ndarray:
        """Current scene (no HUD) scaled to the observation size."""
        self._renderer.draw(self._sim.snapshot, hud=False)
        height, width, _ = self.frame_shape
        scaled = pygame.transform.scale(self._renderer.surface, (width, height))
        # surfarray is (W, H, 3)
        return pygame.surfarray.array3d(scaled).swapaxes(0, 1).astype(np.uint8)

    def _info(self) -> Dict[str, Any]:
        info = self._sim.get_state()
        info.update(
            episode_steps=self._steps,
            world_seed=self._world_seed,
            nearest_enemy=nearest_enemy_distance(self._sim.state.enemies, self._sim.state.player.center[0]),
        )
        return info
