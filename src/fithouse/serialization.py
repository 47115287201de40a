"""Snapshot serialization for AppState.

The snapshot format uses camelCase keys and ISO dates:

    {"profile": {...}, "logs": [...], "settings": {...}, "currentDay": {...}}

``state_from_dict`` merges a snapshot over defaults: top-level sections
present in the snapshot replace the default section wholesale, except
``settings``, which is merged key by key so that settings added after the
snapshot was written keep their default values.
"""

from __future__ import annotations

import json
from dataclasses import replace
from typing import Any, Optional

from fithouse.models import (
    AppState,
    CurrentDay,
    DailyLog,
    LogItem,
    Profile,
    Settings,
    default_state,
)
from fithouse.parsing import ParseResult, parse_bool, parse_date, parse_float, parse_int

_SETTINGS_KEYS = {
    "useColorCoding": "use_color_coding",
    "deficitGreen": "deficit_green",
    "deficitYellow": "deficit_yellow",
    "deficitOrange": "deficit_orange",
}


class SnapshotError(ValueError):
    """Raised when a snapshot cannot be turned into an AppState."""


def _require(result: ParseResult, field_name: str) -> Any:
    if not result.ok:
        raise SnapshotError(f"{field_name}: {result.error}")
    return result.value


def _optional_float(raw: Any, field_name: str) -> Optional[float]:
    if raw is None:
        return None
    return _require(parse_float(raw), field_name)


# ---------------------------------------------------------------------------
# To dict
# ---------------------------------------------------------------------------


def item_to_dict(item: LogItem) -> dict[str, Any]:
    return {"name": item.name, "points": item.points}


def log_to_dict(log: DailyLog) -> dict[str, Any]:
    return {
        "id": log.id,
        "date": log.date.isoformat(),
        "weight": log.weight,
        "items": [item_to_dict(item) for item in log.items],
        "totalPoints": log.total_points,
    }


def profile_to_dict(profile: Profile) -> dict[str, Any]:
    return {
        "age": profile.age,
        "height": profile.height,
        "baseWeight": profile.base_weight,
        "currentWeight": profile.current_weight,
        "targetWeight": profile.target_weight,
        "startDate": profile.start_date.isoformat(),
        "targetDate": profile.target_date.isoformat(),
        "gender": profile.gender,
    }


def settings_to_dict(settings: Settings) -> dict[str, Any]:
    return {key: getattr(settings, attr) for key, attr in _SETTINGS_KEYS.items()}


def state_to_dict(state: AppState) -> dict[str, Any]:
    """Convert AppState to a JSON-serializable dict."""
    return {
        "profile": profile_to_dict(state.profile),
        "logs": [log_to_dict(log) for log in state.logs],
        "settings": settings_to_dict(state.settings),
        "currentDay": {
            "items": [item_to_dict(item) for item in state.current_day.items],
            "weight": state.current_day.weight,
        },
    }


def dumps_state(state: AppState, indent: Optional[int] = None) -> str:
    return json.dumps(state_to_dict(state), indent=indent, allow_nan=False)


# ---------------------------------------------------------------------------
# From dict
# ---------------------------------------------------------------------------


def item_from_dict(data: dict[str, Any]) -> LogItem:
    if not isinstance(data, dict):
        raise SnapshotError(f"item must be an object, got {type(data).__name__}")
    return LogItem(
        name=str(data.get("name", "")),
        points=_require(parse_int(data.get("points")), "item.points"),
    )


def log_from_dict(data: dict[str, Any]) -> DailyLog:
    if not isinstance(data, dict):
        raise SnapshotError(f"log entry must be an object, got {type(data).__name__}")
    items = [item_from_dict(item) for item in data.get("items") or []]
    if "totalPoints" in data:
        total_points = _require(parse_int(data["totalPoints"]), "log.totalPoints")
    else:
        total_points = sum(item.points for item in items)
    return DailyLog(
        id=_require(parse_int(data.get("id")), "log.id"),
        date=_require(parse_date(data.get("date")), "log.date"),
        weight=_optional_float(data.get("weight"), "log.weight"),
        items=items,
        total_points=total_points,
    )


def profile_from_dict(data: dict[str, Any]) -> Profile:
    """Build a Profile; every field must be present (no key-level merge)."""
    if not isinstance(data, dict):
        raise SnapshotError("profile must be an object")
    try:
        return Profile(
            age=_require(parse_int(data["age"]), "profile.age"),
            height=_require(parse_int(data["height"]), "profile.height"),
            base_weight=_require(parse_float(data["baseWeight"]), "profile.baseWeight"),
            current_weight=_require(
                parse_float(data["currentWeight"]), "profile.currentWeight"
            ),
            target_weight=_require(
                parse_float(data["targetWeight"]), "profile.targetWeight"
            ),
            start_date=_require(parse_date(data["startDate"]), "profile.startDate"),
            target_date=_require(parse_date(data["targetDate"]), "profile.targetDate"),
            gender=str(data["gender"]),
        )
    except KeyError as e:
        raise SnapshotError(f"profile is missing {e.args[0]!r}") from e


def settings_from_dict(data: dict[str, Any], defaults: Settings) -> Settings:
    """Merge persisted settings key by key over ``defaults``."""
    if not isinstance(data, dict):
        raise SnapshotError("settings must be an object")
    settings = replace(defaults)
    for key, attr in _SETTINGS_KEYS.items():
        if key not in data:
            continue
        if attr == "use_color_coding":
            value = _require(parse_bool(data[key]), f"settings.{key}")
        else:
            value = _require(parse_int(data[key]), f"settings.{key}")
        setattr(settings, attr, value)
    return settings


def current_day_from_dict(data: dict[str, Any]) -> CurrentDay:
    if not isinstance(data, dict):
        raise SnapshotError("currentDay must be an object")
    return CurrentDay(
        items=[item_from_dict(item) for item in data.get("items") or []],
        weight=_optional_float(data.get("weight"), "currentDay.weight"),
    )


def state_from_dict(
    data: dict[str, Any],
    defaults: Optional[AppState] = None,
) -> AppState:
    """Convert a snapshot dict back into an AppState, merged over defaults.

    Args:
        data: Parsed snapshot
        defaults: State supplying missing sections (fresh defaults if None)

    Returns:
        New AppState

    Raises:
        SnapshotError: If the snapshot is not an object or a field cannot be
            coerced to its type
    """
    if not isinstance(data, dict):
        raise SnapshotError(f"snapshot must be an object, got {type(data).__name__}")
    base = defaults.clone() if defaults is not None else default_state()

    if "profile" in data:
        base.profile = profile_from_dict(data["profile"])
    if "logs" in data:
        if not isinstance(data["logs"], list):
            raise SnapshotError("logs must be a list")
        base.logs = [log_from_dict(log) for log in data["logs"]]
    if data.get("settings") is not None:
        base.settings = settings_from_dict(data["settings"], base.settings)
    if "currentDay" in data:
        base.current_day = current_day_from_dict(data["currentDay"])
    return base


def loads_state(text: str, defaults: Optional[AppState] = None) -> AppState:
    """Parse snapshot JSON text.

    Raises:
        SnapshotError: On invalid JSON or an invalid snapshot
    """
    try:
        data = json.loads(text)
    except ValueError as e:
        # JSONDecodeError, or an integer literal past the digit limit
        raise SnapshotError(f"invalid JSON: {e}") from e
    return state_from_dict(data, defaults)
