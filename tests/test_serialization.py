"""Tests for snapshot serialization."""

from __future__ import annotations

import json
from datetime import date

import pytest

from fithouse.models import AppState, LogItem, Settings, default_state
from fithouse.serialization import (
    SnapshotError,
    dumps_state,
    loads_state,
    state_from_dict,
    state_to_dict,
)


class TestStateToDict:
    """Tests for the snapshot layout."""

    def test_default_layout(self) -> None:
        data = state_to_dict(default_state())

        assert data["profile"] == {
            "age": 30,
            "height": 175,
            "baseWeight": 88.0,
            "currentWeight": 88.0,
            "targetWeight": 80.0,
            "startDate": "2026-01-15",
            "targetDate": "2026-05-31",
            "gender": "male",
        }
        assert data["logs"] == []
        assert data["settings"] == {
            "useColorCoding": True,
            "deficitGreen": 500,
            "deficitYellow": 300,
            "deficitOrange": 0,
        }
        assert data["currentDay"] == {"items": [], "weight": None}

    def test_log_layout(self, plan_state) -> None:
        data = state_to_dict(plan_state)
        assert data["logs"][0] == {
            "id": 1,
            "date": "2026-01-03",
            "weight": 87.5,
            "items": [
                {"name": "Breakfast", "points": 5},
                {"name": "Dinner", "points": 10},
            ],
            "totalPoints": 15,
        }

    def test_dumps_is_json(self, plan_state) -> None:
        assert json.loads(dumps_state(plan_state, indent=2)) == state_to_dict(plan_state)


class TestStateFromDict:
    """Tests for loading snapshots over defaults."""

    def test_roundtrip(self, plan_state) -> None:
        plan_state.current_day.items.append(LogItem("Snack", 2))
        plan_state.current_day.weight = 86.9
        plan_state.settings.deficit_green = 650

        restored = state_from_dict(state_to_dict(plan_state))

        assert restored == plan_state

    def test_empty_snapshot_is_defaults(self) -> None:
        assert state_from_dict({}) == default_state()

    def test_settings_merged_key_by_key(self) -> None:
        """Settings missing from an older snapshot keep their defaults."""
        restored = state_from_dict({"settings": {"useColorCoding": False}})
        assert restored.settings == Settings(use_color_coding=False)

    def test_settings_merge_respects_given_defaults(self) -> None:
        defaults = AppState(settings=Settings(deficit_orange=-100))
        restored = state_from_dict({"settings": {"deficitGreen": 900}}, defaults)
        assert restored.settings.deficit_green == 900
        assert restored.settings.deficit_orange == -100

    def test_defaults_not_mutated(self) -> None:
        defaults = default_state()
        state_from_dict({"settings": {"deficitGreen": 900}}, defaults)
        assert defaults.settings.deficit_green == 500

    def test_profile_replaced_wholesale(self) -> None:
        data = state_to_dict(default_state())
        del data["profile"]["gender"]
        with pytest.raises(SnapshotError, match="gender"):
            state_from_dict(data)

    def test_missing_sections_fall_back(self) -> None:
        restored = state_from_dict({"logs": []})
        assert restored.profile == default_state().profile
        assert restored.current_day.items == []

    def test_numbers_coerced(self) -> None:
        data = state_to_dict(default_state())
        data["profile"]["age"] = "41"
        data["logs"] = [
            {"id": 5, "date": "2026-02-01", "weight": "85.5",
             "items": [{"name": "Manual Entry", "points": 12.7}], "totalPoints": 12.7},
        ]
        restored = state_from_dict(data)
        assert restored.profile.age == 41
        assert restored.logs[0].weight == 85.5
        assert restored.logs[0].total_points == 12
        assert restored.logs[0].date == date(2026, 2, 1)

    def test_missing_total_points_summed_from_items(self) -> None:
        restored = state_from_dict({
            "logs": [{"id": 1, "date": "2026-02-01", "weight": None,
                      "items": [{"name": "a", "points": 3}, {"name": "b", "points": 4}]}],
        })
        assert restored.logs[0].total_points == 7

    @pytest.mark.parametrize(
        "data",
        [
            [],
            "state",
            {"logs": {"a": 1}},
            {"logs": [{"id": 1, "date": "yesterday", "weight": 80, "totalPoints": 1}]},
            {"logs": [{"id": "x", "date": "2026-01-01", "weight": 80, "totalPoints": 1}]},
            {"currentDay": {"items": [{"name": "x", "points": "lots"}]}},
            {"currentDay": {"items": ["x"]}},
            {"settings": {"deficitGreen": "high"}},
        ],
    )
    def test_invalid_snapshots_raise(self, data) -> None:
        with pytest.raises(SnapshotError):
            state_from_dict(data)


class TestLoadsState:
    """Tests for loads_state."""

    def test_invalid_json(self) -> None:
        with pytest.raises(SnapshotError, match="invalid JSON"):
            loads_state("{not json")

    def test_valid_json(self, plan_state) -> None:
        assert loads_state(dumps_state(plan_state)) == plan_state

    def test_integer_past_digit_limit(self) -> None:
        """Over-long integer literals fail as a snapshot error, not a crash."""
        with pytest.raises(SnapshotError):
            loads_state('{"currentDay": {"items": [], "weight": %s}}' % ("9" * 5000))
