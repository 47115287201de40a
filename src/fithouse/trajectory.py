"""Weight trajectory: goal line, logged weights and deficit-based projection.

The series cover every calendar day from the profile start date to the
target date inclusive. Missing logs stay ``None`` rather than being
interpolated, and the projection only starts at the most recent log.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Optional

from fithouse.calculations import (
    calculate_projected_weight,
    calculate_tdee,
    get_linear_goal_weight,
)
from fithouse.models import POINT_CALORIES, AppState, DailyLog, Profile

SECONDS_PER_DAY = 24 * 60 * 60


@dataclass
class TrajectoryPoint:
    """One day of the trajectory."""

    date: date
    goal: float
    actual: Optional[float]
    projected: Optional[float]


@dataclass
class Trajectory:
    """Day-by-day series plus the figures the projection was built from."""

    points: list[TrajectoryPoint] = field(default_factory=list)
    average_deficit: float = 0.0  # kcal/day since start
    anchor_date: Optional[date] = None  # projection origin
    anchor_weight: Optional[float] = None

    @property
    def dates(self) -> list[date]:
        return [p.date for p in self.points]

    @property
    def goal_series(self) -> list[float]:
        return [p.goal for p in self.points]

    @property
    def actual_series(self) -> list[Optional[float]]:
        return [p.actual for p in self.points]

    @property
    def projected_series(self) -> list[Optional[float]]:
        return [p.projected for p in self.points]


def date_range(start: date, end: date) -> list[date]:
    """Every calendar day from ``start`` to ``end`` inclusive."""
    days = (end - start).days
    return [start + timedelta(days=offset) for offset in range(days + 1)]


def average_daily_deficit(
    logs: list[DailyLog],
    profile: Profile,
    now: datetime,
) -> float:
    """
    Average daily deficit since the plan start.

    Each log on or after the start date contributes TDEE (at the profile's
    current weight) minus its logged calories. The sum is spread over the
    wall-clock days elapsed since start-date midnight, not over the number
    of logs, so unlogged days count as zero deficit.

    Args:
        logs: All daily logs
        profile: Profile providing start date and TDEE inputs
        now: Current instant

    Returns:
        Average deficit in kcal/day (0 if the plan has not started)
    """
    tdee = calculate_tdee(
        profile.current_weight, profile.height, profile.age, profile.gender
    )
    total_deficit = sum(
        tdee - log.total_points * POINT_CALORIES
        for log in logs
        if log.date >= profile.start_date
    )

    start = datetime(
        profile.start_date.year, profile.start_date.month, profile.start_date.day,
        tzinfo=now.tzinfo,
    )
    days_elapsed = (now - start).total_seconds() / SECONDS_PER_DAY
    return total_deficit / days_elapsed if days_elapsed > 0 else 0.0


def build_trajectory(state: AppState, now: datetime) -> Trajectory:
    """Build the goal, actual and projected series for the profile's plan.

    Args:
        state: Application state snapshot (not modified)
        now: Current instant, used for the elapsed-days average

    Returns:
        Trajectory with one point per day; empty when the target date
        precedes the start date
    """
    profile = state.profile
    days = date_range(profile.start_date, profile.target_date)

    weights_by_date: dict[date, Optional[float]] = {}
    for log in state.logs:
        weights_by_date.setdefault(log.date, log.weight)

    valid_logs = [log for log in state.logs if log.date >= profile.start_date]
    average_deficit = average_daily_deficit(state.logs, profile, now)

    if valid_logs:
        last_log = max(valid_logs, key=lambda log: log.date)
        anchor_date = last_log.date
        anchor_weight = (
            last_log.weight if last_log.weight is not None else profile.base_weight
        )
    else:
        anchor_date = profile.start_date
        anchor_weight = profile.base_weight

    points = []
    for day in days:
        goal = get_linear_goal_weight(
            profile.start_date, profile.base_weight,
            profile.target_date, profile.target_weight,
            day,
        )
        offset = (day - anchor_date).days
        projected = (
            calculate_projected_weight(anchor_weight, average_deficit, offset)
            if offset >= 0
            else None
        )
        points.append(
            TrajectoryPoint(
                date=day,
                goal=goal,
                actual=weights_by_date.get(day),
                projected=projected,
            )
        )

    return Trajectory(
        points=points,
        average_deficit=average_deficit,
        anchor_date=anchor_date,
        anchor_weight=anchor_weight,
    )
