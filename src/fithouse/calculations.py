"""Energy-balance calculations.

Calorie need comes from the Mifflin-St Jeor equation for BMR with a fixed
sedentary activity factor. Weight change is converted from calorie balance
with the 7700 kcal per kg approximation.

All functions here are pure: they only read their arguments.
"""

from __future__ import annotations

import math
from datetime import date, datetime, timezone
from enum import Enum
from typing import Union

from fithouse.models import Settings

# Sedentary activity factor; not configurable
SEDENTARY_MULTIPLIER = 1.2

# 7700 kcal of deficit is roughly 1 kg of body mass
KCAL_PER_KG = 7700

# Mifflin-St Jeor sex constants
MALE_CONSTANT = 5
FEMALE_CONSTANT = -161

DateLike = Union[date, datetime]


class DeficitBand(Enum):
    """Colour band of a daily deficit."""

    GREEN = "green"  # Excellent
    YELLOW = "yellow"  # Good
    ORANGE = "orange"  # Fair
    RED = "red"  # Surplus

    @property
    def label(self) -> str:
        return _BAND_LABELS[self]


_BAND_LABELS = {
    DeficitBand.GREEN: "Excellent",
    DeficitBand.YELLOW: "Good",
    DeficitBand.ORANGE: "Fair",
    DeficitBand.RED: "Surplus",
}


def calculate_bmr(weight: float, height: float, age: float, gender: str) -> float:
    """Calculate Basal Metabolic Rate using Mifflin-St Jeor.

    Only ``"female"`` selects the female constant; every other value uses
    the male one.

    Args:
        weight: Weight in kg
        height: Height in cm
        age: Age in years
        gender: "male" or "female"

    Returns:
        BMR in kcal per day
    """
    constant = FEMALE_CONSTANT if gender == "female" else MALE_CONSTANT
    return (10 * weight) + (6.25 * height) - (5 * age) + constant


def calculate_tdee(
    weight: float,
    height: float,
    age: float,
    gender: str = "male",
) -> int:
    """Calculate sedentary TDEE, rounded half up to whole kcal."""
    bmr = calculate_bmr(weight, height, age, gender)
    return math.floor(bmr * SEDENTARY_MULTIPLIER + 0.5)


def calculate_daily_deficit(tdee: float, consumed_calories: float) -> float:
    """Return TDEE minus intake; positive is a deficit, negative a surplus."""
    return tdee - consumed_calories


def calculate_projected_weight(
    current_weight: float,
    daily_deficit: float,
    days: float,
) -> float:
    """Project weight after ``days`` at a constant daily deficit.

    Example:
        >>> round(calculate_projected_weight(88, 456, 30), 3)
        86.223
    """
    total_deficit = daily_deficit * days
    return current_weight - total_deficit / KCAL_PER_KG


def _timestamp(value: DateLike) -> float:
    # Calendar dates count from their UTC midnight; naive datetimes are UTC too
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.timestamp()
    return datetime(value.year, value.month, value.day, tzinfo=timezone.utc).timestamp()


def get_linear_goal_weight(
    start_date: DateLike,
    start_weight: float,
    target_date: DateLike,
    target_weight: float,
    query_date: DateLike,
) -> float:
    """Weight on the straight line from start to target at ``query_date``.

    Clamps to ``start_weight`` on or before the start and to
    ``target_weight`` on or after the target.
    """
    start = _timestamp(start_date)
    end = _timestamp(target_date)
    query = _timestamp(query_date)

    if query <= start:
        return start_weight
    if query >= end:
        return target_weight

    progress = (query - start) / (end - start)
    total_drop = start_weight - target_weight
    return start_weight - total_drop * progress


def classify_deficit(deficit: float, settings: Settings) -> DeficitBand:
    """Place a deficit in its colour band using the configured thresholds."""
    if deficit >= settings.deficit_green:
        return DeficitBand.GREEN
    if deficit >= settings.deficit_yellow:
        return DeficitBand.YELLOW
    if deficit >= settings.deficit_orange:
        return DeficitBand.ORANGE
    return DeficitBand.RED
