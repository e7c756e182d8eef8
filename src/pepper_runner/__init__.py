"""pepper-runner: endless side-scrolling neighborhood runner.

The player walks, jumps, crouches and sprints through a procedurally streamed
street of houses, shops and scenery, collects notes and records, stomps
enemies, enters buildings and works through a quest line while an adaptive
difficulty layer tunes enemy speed, spawn rates and stamina drain. The
simulation core is deterministic given a seed and runs headless; a pygame host
and a Gymnasium environment sit on top of it.
"""

from .config import (
    PhysicsConfig, PlayerConfig, StaminaConfig, PowerBarConfig, EnemyConfig,
    GenerationConfig, EffectConfig, QuestConfig, DifficultyConfig, GameConfig, CONFIGS,
)
from .physics import SpatialIndex
from .entities import Player, Enemy, EnemyKind, ItemType, BuildingType, WorldObject, Structure, Collectible
from .level_gen import WorldGenerator, WorldStreamer, Segment
from .quests import Quest, QuestTracker
from .difficulty import AdaptiveDifficulty, DifficultyMultipliers
from .state import GameState, GamePhase, DifficultyMode, InputIntent
from .simulation import Simulation, RenderSnapshot, Drawable
from .scores import HighScoreTable

__all__ = [
    "PhysicsConfig",
    "PlayerConfig",
    "StaminaConfig",
    "PowerBarConfig",
    "EnemyConfig",
    "GenerationConfig",
    "EffectConfig",
    "QuestConfig",
    "DifficultyConfig",
    "GameConfig",
    "CONFIGS",
    "SpatialIndex",
    "Player",
    "Enemy",
    "EnemyKind",
    "ItemType",
    "BuildingType",
    "WorldObject",
    "Structure",
    "Collectible",
    "WorldGenerator",
    "WorldStreamer",
    "Segment",
    "Quest",
    "QuestTracker",
    "AdaptiveDifficulty",
    "DifficultyMultipliers",
    "GameState",
    "GamePhase",
    "DifficultyMode",
    "InputIntent",
    "Simulation",
    "RenderSnapshot",
    "Drawable",
    "HighScoreTable",
]
