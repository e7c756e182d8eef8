"""Tests for timed effects on the simulation clock."""

import pytest

from pepper_runner.effects import TimedEffects


@pytest.fixture
def effects():
    return TimedEffects()


class TestTimedEffects:
    def test_action_runs_at_expiry(self, effects):
        calls = []
        effects.schedule(1.0, lambda: calls.append("done"))
        assert effects.advance(0.5) == 0
        assert calls == []
        assert effects.advance(0.5) == 1
        assert calls == ["done"]
        assert len(effects) == 0

    def test_actions_run_in_expiry_order(self, effects):
        calls = []
        effects.schedule(2.0, lambda: calls.append("late"))
        effects.schedule(1.0, lambda: calls.append("early"))
        effects.advance(5.0)
        assert calls == ["early", "late"]

    def test_apply_and_revert(self, effects):
        value = {"speed": 100.0}

        def apply():
            value["speed"] *= 2

        def revert():
            value["speed"] /= 2

        effects.apply(apply, revert, 3.0, tag="buff")
        assert value["speed"] == 200.0
        assert effects.pending("buff") == 1
        effects.advance(3.0)
        assert value["speed"] == 100.0
        assert effects.pending("buff") == 0

    def test_negative_delay_is_immediate(self, effects):
        calls = []
        effects.schedule(-1.0, lambda: calls.append(1))
        effects.advance(0.0)
        assert calls == [1]

    def test_cancel_by_tag(self, effects):
        calls = []
        effects.schedule(1.0, lambda: calls.append("a"), tag="a")
        effects.schedule(1.0, lambda: calls.append("b"), tag="b")
        assert effects.cancel("a") == 1
        effects.advance(1.0)
        assert calls == ["b"]

    def test_clear_drops_pending(self, effects):
        calls = []
        effects.schedule(1.0, lambda: calls.append(1))
        effects.advance(0.5)
        effects.clear()
        assert effects.now == 0.0
        assert effects.generation == 1
        effects.advance(10.0)
        assert calls == []

    def test_clear_during_due_actions_stops_the_rest(self, effects):
        calls = []
        effects.schedule(1.0, lambda: (calls.append("first"), effects.clear()))
        effects.schedule(2.0, lambda: calls.append("second"))
        effects.advance(5.0)
        assert calls == ["first"]

    def test_action_may_schedule_more(self, effects):
        calls = []

        def chain():
            calls.append("chain")
            effects.schedule(1.0, lambda: calls.append("next"))

        effects.schedule(1.0, chain)
        effects.advance(1.0)
        assert calls == ["chain"]
        effects.advance(1.0)
        assert calls == ["chain", "next"]
