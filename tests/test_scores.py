"""Tests for the persistent high-score table."""

import json

import pytest

from pepper_runner.scores import HighScoreTable


@pytest.fixture
def path(tmp_path):
    return tmp_path / "scores" / "highscores.json"


class TestHighScoreTable:
    def test_missing_file_starts_empty(self, path):
        table = HighScoreTable(str(path))
        assert table.scores == []
        assert table.best == 0

    def test_record_keeps_descending_order(self, path):
        table = HighScoreTable(str(path))
        for d in (120, 450, 300):
            assert table.record(d)
        assert table.scores == [450, 300, 120]
        assert table.best == 450

    def test_zero_distance_recorded_while_table_has_room(self, path):
        table = HighScoreTable(str(path), capacity=2)
        assert table.record(0)
        assert table.scores == [0]
        table.record(30)
        assert not table.record(0)
        assert table.scores == [30, 0]

    def test_negative_distance_rejected(self, path):
        table = HighScoreTable(str(path))
        assert not table.record(-5)
        assert len(table) == 0

    def test_capacity(self, path):
        table = HighScoreTable(str(path), capacity=3)
        for d in (10, 20, 30, 40):
            table.record(d)
        assert table.scores == [40, 30, 20]
        assert not table.qualifies(5)
        assert not table.record(15)
        assert table.record(25)
        assert table.scores == [40, 30, 25]

    def test_save_and_load(self, path):
        table = HighScoreTable(str(path))
        table.record(321)
        table.record(123)
        table.save()

        data = json.loads(path.read_text())
        assert data["version"] == 1
        assert data["scores"] == [321, 123]

        assert HighScoreTable(str(path)).scores == [321, 123]

    def test_plain_list_file(self, path):
        path.parent.mkdir(parents=True)
        path.write_text("[5, 50, 20]")
        assert HighScoreTable(str(path)).scores == [50, 20, 5]

    def test_corrupt_file_is_ignored(self, path, caplog):
        path.parent.mkdir(parents=True)
        path.write_text("{not json")
        with caplog.at_level("WARNING"):
            table = HighScoreTable(str(path))
        assert table.scores == []
        assert "unreadable" in caplog.text

        table.record(42)
        table.save()
        assert HighScoreTable(str(path)).scores == [42]

    def test_wrong_shape_is_ignored(self, path):
        path.parent.mkdir(parents=True)
        path.write_text('{"scores": ["a", "b"]}')
        assert HighScoreTable(str(path)).scores == []

    def test_in_memory_table(self):
        table = HighScoreTable(None)
        table.record(10)
        table.save()
        assert table.load() == []

    def test_clear(self, path):
        table = HighScoreTable(str(path))
        table.record(10)
        table.clear()
        assert table.scores == []
