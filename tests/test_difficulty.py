"""Tests for adaptive difficulty."""

import pytest

from pepper_runner.config import DifficultyConfig
from pepper_runner.difficulty import AdaptiveDifficulty, PlayStats


@pytest.fixture
def difficulty():
    return AdaptiveDifficulty()


class TestStats:
    def test_event_routing(self, difficulty):
        for event in ("collect_note", "collect_record", "collect_rare"):
            difficulty.record_event(event)
        difficulty.record_event("use_sprint")
        difficulty.record_event("enter_house")
        assert difficulty.stats.items == 3
        assert difficulty.stats.sprints == 1

    def test_distance_is_running_maximum(self, difficulty):
        difficulty.record_event("distance", 300)
        difficulty.record_event("distance", 100)
        assert difficulty.stats.distance == 300

    def test_items_not_counted_in_easy_mode(self, difficulty):
        difficulty.record_event("collect_note", counting=False)
        difficulty.record_event("use_sprint", counting=False)
        assert difficulty.stats.items == 0
        assert difficulty.stats.sprints == 1

    def test_deaths_and_quests(self, difficulty):
        difficulty.record_death()
        difficulty.record_quest()
        difficulty.record_quest()
        assert difficulty.stats.deaths == 1
        assert difficulty.stats.quests == 2


class TestSkill:
    def test_rates_without_time(self, difficulty):
        difficulty.stats.distance = 250
        assert difficulty.rates() == (250.0, 0.0, 0.0)

    def test_survival_divides_by_at_least_one_death(self, difficulty):
        difficulty.stats = PlayStats(deaths=0, distance=400)
        assert difficulty.rates()[0] == 400
        difficulty.stats.deaths = 4
        assert difficulty.rates()[0] == 100

    def test_per_minute_rates(self, difficulty):
        difficulty.stats = PlayStats(items=6, quests=1, time_played=120.0)
        _, collection, exploration = difficulty.rates()
        assert collection == pytest.approx(3.0)
        assert exploration == pytest.approx(0.5)

    def test_skill_is_capped_average(self, difficulty):
        difficulty.stats = PlayStats(distance=5000, items=100, quests=50, time_played=60.0)
        assert difficulty.compute_skill() == pytest.approx(1.0)
        difficulty.stats = PlayStats(distance=250, time_played=60.0)
        assert difficulty.compute_skill() == pytest.approx(0.5 / 3)

    def test_new_player_is_easy(self, difficulty):
        m = difficulty.update(1 / 60)
        assert difficulty.skill == 0.0
        assert difficulty.description == "Easy"
        assert m.enemy_speed == pytest.approx(0.7)
        assert m.spawn_frequency == pytest.approx(0.7)
        assert m.object_frequency == pytest.approx(1.5)
        assert m.stamina_drain == pytest.approx(0.8)

    def test_skilled_player_is_hard(self, difficulty):
        difficulty.stats = PlayStats(distance=5000, items=100, quests=50, time_played=60.0)
        m = difficulty.update(1 / 60)
        assert difficulty.description == "Hard"
        assert m.enemy_speed == pytest.approx(1.3)
        assert m.object_frequency == pytest.approx(0.7)
        assert m.stamina_drain == pytest.approx(1.0)

    def test_tables_interpolate(self):
        config = DifficultyConfig(enemy_speed_table=((0.0, 1.0), (1.0, 2.0)))
        difficulty = AdaptiveDifficulty(config)
        difficulty.stats = PlayStats(distance=250, time_played=60.0)
        m = difficulty.update(0.0)
        assert m.enemy_speed == pytest.approx(1.0 + 0.5 / 3)

    def test_update_accumulates_time(self, difficulty):
        for _ in range(60):
            difficulty.update(1 / 60)
        assert difficulty.stats.time_played == pytest.approx(1.0)

    def test_reset(self, difficulty):
        difficulty.stats = PlayStats(distance=5000, items=100, quests=50, time_played=60.0)
        difficulty.update(1 / 60)
        difficulty.reset()
        assert difficulty.stats == PlayStats()
        assert difficulty.skill == 0.0
        assert difficulty.multipliers.to_dict() == {
            "enemy_speed": 1.0,
            "spawn_frequency": 1.0,
            "object_frequency": 1.0,
            "stamina_drain": 1.0,
        }
