"""Pytest configuration and shared fixtures."""

import os

# Ensure headless pygame for all tests
os.environ['SDL_VIDEODRIVER'] = 'dummy'

import random

import pytest

from pepper_runner.config import GameConfig
from pepper_runner.physics import SpatialIndex
from pepper_runner.simulation import Simulation
from pepper_runner.state import DifficultyMode, GameState


DT = 1 / 60


@pytest.fixture
def game_config():
    """Default game configuration."""
    return GameConfig()


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def index():
    """Empty spatial index."""
    return SpatialIndex()


@pytest.fixture
def state(game_config):
    """Fresh seeded game state, no world streamed yet."""
    return GameState.create(game_config, seed=7)


@pytest.fixture
def sim(game_config):
    """Seeded simulation in the playing phase (normal mode)."""
    simulation = Simulation(game_config, seed=7)
    simulation.start(DifficultyMode.NORMAL)
    return simulation


@pytest.fixture
def empty_sim():
    """Playing simulation with no scenery, enemies or collectibles generated."""
    config = GameConfig()
    config.generation.category_probabilities = {}
    config.generation.collectible_probability = 0.0
    config.enemies.spawn_probability = 0.0
    config.enemies.max_spawn_probability = 0.0
    simulation = Simulation(config, seed=7)
    simulation.start(DifficultyMode.NORMAL)
    return simulation
