"""Data models for the profile, daily logs and application state."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

# One point is 100 kcal of intake (negative points = activity)
POINT_CALORIES = 100

# Name of the synthetic item carried by manually entered historical logs
MANUAL_ENTRY_NAME = "Manual Entry"

VALID_GENDERS = ("male", "female")


@dataclass
class Profile:
    """User profile driving TDEE and the goal line."""

    age: int = 30
    height: int = 175  # cm
    base_weight: float = 88.0  # kg, weight at plan start
    current_weight: float = 88.0  # kg, most recently known weight
    target_weight: float = 80.0  # kg
    start_date: date = date(2026, 1, 15)
    target_date: date = date(2026, 5, 31)
    gender: str = "male"  # 'male' or 'female'


@dataclass
class LogItem:
    """A single food or activity entry, measured in points."""

    name: str
    points: int

    @property
    def calories(self) -> int:
        return self.points * POINT_CALORIES


@dataclass
class DailyLog:
    """A finalized day.

    ``total_points`` is cached when the log is built and always equals the
    sum of ``items[].points`` at that moment.
    """

    id: int
    date: date
    weight: Optional[float]
    items: list[LogItem] = field(default_factory=list)
    total_points: int = 0

    @property
    def total_calories(self) -> int:
        return self.total_points * POINT_CALORIES


@dataclass
class CurrentDay:
    """Staging area for the day in progress."""

    items: list[LogItem] = field(default_factory=list)
    weight: Optional[float] = None

    @property
    def total_points(self) -> int:
        return sum(item.points for item in self.items)


@dataclass
class Settings:
    """Display settings.

    Deficit thresholds are in kcal and descending:
    green >= yellow >= orange, anything below orange is red.
    """

    use_color_coding: bool = True
    deficit_green: int = 500
    deficit_yellow: int = 300
    deficit_orange: int = 0


@dataclass
class AppState:
    """Aggregate root owned by the store."""

    profile: Profile = field(default_factory=Profile)
    logs: list[DailyLog] = field(default_factory=list)
    settings: Settings = field(default_factory=Settings)
    current_day: CurrentDay = field(default_factory=CurrentDay)

    def find_log(self, log_date: date) -> Optional[int]:
        """Return the storage index of the log for ``log_date``, if any."""
        for index, log in enumerate(self.logs):
            if log.date == log_date:
                return index
        return None

    def clone(self) -> AppState:
        return copy.deepcopy(self)


def default_state() -> AppState:
    """Return a fresh default state."""
    return AppState()
