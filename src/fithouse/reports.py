"""Derived figures for display: the day gauge and per-log breakdowns."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fithouse.calculations import (
    DeficitBand,
    calculate_daily_deficit,
    calculate_tdee,
    classify_deficit,
)
from fithouse.models import POINT_CALORIES, AppState, DailyLog, Profile, Settings


@dataclass
class DaySummary:
    """Gauge for the day in progress."""

    total_points: int
    total_calories: int
    tdee: int
    deficit: float
    band: Optional[DeficitBand]  # None when colour coding is off


@dataclass
class LogBreakdown:
    """Calories, TDEE and deficit for one finalized log."""

    log: DailyLog
    calories: int
    tdee: int
    deficit: float
    band: DeficitBand


def summarize_day(state: AppState) -> DaySummary:
    """Summarize the current day against TDEE at the profile's current weight."""
    profile = state.profile
    total_points = state.current_day.total_points
    total_calories = total_points * POINT_CALORIES
    tdee = calculate_tdee(
        profile.current_weight, profile.height, profile.age, profile.gender
    )
    deficit = calculate_daily_deficit(tdee, total_calories)
    band = classify_deficit(deficit, state.settings) if state.settings.use_color_coding else None
    return DaySummary(
        total_points=total_points,
        total_calories=total_calories,
        tdee=tdee,
        deficit=deficit,
        band=band,
    )


def describe_log(log: DailyLog, profile: Profile, settings: Settings) -> LogBreakdown:
    """Break a log down into calories, TDEE and deficit.

    TDEE uses the weight recorded on the log, falling back to the profile's
    current weight for logs without one.
    """
    weight = log.weight if log.weight is not None else profile.current_weight
    tdee = calculate_tdee(weight, profile.height, profile.age, profile.gender)
    calories = log.total_points * POINT_CALORIES
    deficit = calculate_daily_deficit(tdee, calories)
    return LogBreakdown(
        log=log,
        calories=calories,
        tdee=tdee,
        deficit=deficit,
        band=classify_deficit(deficit, settings),
    )


def sorted_logs(logs: list[DailyLog], newest_first: bool = True) -> list[DailyLog]:
    return sorted(logs, key=lambda log: log.date, reverse=newest_first)
