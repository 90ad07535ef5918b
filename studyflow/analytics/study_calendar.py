"""
Study calendar — the grass calendar (one cell per day, shaded by study
minutes), month-level totals, study streaks and single-day detail.

A day counts as a study day only when it has more than 0 study minutes.
The same rule drives study_days, streaks and best_day.
"""

from __future__ import annotations

import calendar
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, Dict, List, Optional, Sequence

from ..config import config
from ..errors import ContractViolationError
from .history import HistoryAssembler, Period
from .records import ActivityRecord, ActivityType
from .stats import DailyMinutes, compute_daily_breakdown

Clock = Callable[[], datetime]

GRASS_LEVELS = (0, 1, 2, 3)


@dataclass
class GrassDay:
    date: str                        # "YYYY-MM-DD"
    total_minutes: int = 0
    level: int = 0
    time_tracking_minutes: int = 0
    pomodoro_minutes: int = 0
    session_count: int = 0
    focus_sessions: int = 0


@dataclass
class GrassStats:
    total_days: int
    study_days: int
    study_rate: float                # % of days in the range with study
    total_study_time: int
    average_daily_time: float
    level_distribution: Dict[str, int]
    longest_streak: int
    current_streak: int


@dataclass
class GrassData:
    period: Period
    data: List[GrassDay]
    stats: GrassStats


@dataclass
class MonthlyStats:
    year: int
    month: int
    total_study_time: int
    study_days: int
    average_daily_time: float
    best_day: Optional[GrassDay]
    grass_level_distribution: Dict[str, int]
    longest_streak: int
    current_streak: int


@dataclass
class DayDetail:
    date: str
    summary: Optional[DailyMinutes]
    records: List[ActivityRecord]


class StudyCalendar:

    def __init__(self, history: HistoryAssembler, clock: Clock = datetime.now):
        self._history = history
        self._clock = clock

    def get_grass_data(
        self,
        user_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> GrassData:
        """
        One GrassDay for every date from start to end inclusive, zero-filled.

        Defaults to the year ending today. A range longer than
        `grass_max_range_days` is a ContractViolationError.
        """
        end_date = end_date or self._clock().date()
        start_date = start_date or end_date - timedelta(days=config.grass_default_range_days)
        period = Period(start_date, end_date)
        if (end_date - start_date).days > config.grass_max_range_days:
            raise ContractViolationError(
                f"date range cannot exceed {config.grass_max_range_days} days"
            )
        days = self._grass_days(user_id, period)
        return GrassData(period=period, data=days, stats=grass_stats(days))

    def get_monthly_stats(self, user_id: int, year: int, month: int) -> MonthlyStats:
        first = date(year, month, 1)
        last = date(year, month, calendar.monthrange(year, month)[1])
        days = self._grass_days(user_id, Period(first, last))
        minutes = [d.total_minutes for d in days]
        total = sum(minutes)
        study_days = sum(1 for m in minutes if m > 0)
        return MonthlyStats(
            year=year,
            month=month,
            total_study_time=total,
            study_days=study_days,
            average_daily_time=round(total / study_days, 1) if study_days else 0.0,
            best_day=max(
                (d for d in days if d.total_minutes > 0),
                key=lambda d: d.total_minutes,
                default=None,
            ),
            grass_level_distribution=level_distribution(days),
            longest_streak=longest_streak(minutes),
            current_streak=current_streak(minutes),
        )

    def get_day_detail(self, user_id: int, day: date) -> DayDetail:
        records = self._history.merged_records(user_id, Period(day, day))
        daily = [
            d for d in compute_daily_breakdown([r for r in records if r.counts_as_study])
            if d.minutes > 0
        ]
        return DayDetail(
            date=day.isoformat(),
            summary=daily[0] if daily else None,
            records=sort_oldest_first(records),
        )

    def _grass_days(self, user_id: int, period: Period) -> List[GrassDay]:
        records = self._history.merged_records(user_id, period)
        return build_grass_days(records, period.start_date, period.end_date)


# ---------------------------------------------------------------------------
# Grass helpers
# ---------------------------------------------------------------------------

def grass_level(minutes: int) -> int:
    if minutes <= 0:
        return 0
    if minutes <= config.grass_level1_max_minutes:
        return 1
    if minutes <= config.grass_level2_max_minutes:
        return 2
    return 3


def build_grass_days(records: Sequence[ActivityRecord], first: date, last: date) -> List[GrassDay]:
    by_date: Dict[date, GrassDay] = {}
    for r in records:
        if not r.counts_as_study:
            continue
        day = r.started_at.date()
        cell = by_date.setdefault(day, GrassDay(day.isoformat()))
        cell.total_minutes += r.duration_minutes
        cell.session_count += 1
        if r.type == ActivityType.TIME_TRACKING:
            cell.time_tracking_minutes += r.duration_minutes
        else:
            cell.pomodoro_minutes += r.duration_minutes
            cell.focus_sessions += 1

    days = []
    for i in range((last - first).days + 1):
        day = first + timedelta(days=i)
        cell = by_date.get(day) or GrassDay(day.isoformat())
        cell.level = grass_level(cell.total_minutes)
        days.append(cell)
    return days


def level_distribution(days: Sequence[GrassDay]) -> Dict[str, int]:
    counts = Counter(d.level for d in days)
    return {f"level_{level}": counts.get(level, 0) for level in GRASS_LEVELS}


def grass_stats(days: Sequence[GrassDay]) -> GrassStats:
    minutes = [d.total_minutes for d in days]
    total = sum(minutes)
    study_days = sum(1 for m in minutes if m > 0)
    return GrassStats(
        total_days=len(days),
        study_days=study_days,
        study_rate=round(study_days / len(days) * 100, 1) if days else 0.0,
        total_study_time=total,
        average_daily_time=round(total / study_days, 1) if study_days else 0.0,
        level_distribution=level_distribution(days),
        longest_streak=longest_streak(minutes),
        current_streak=current_streak(minutes),
    )


# ---------------------------------------------------------------------------
# Streaks and ordering
# ---------------------------------------------------------------------------

def longest_streak(minutes: Sequence[int]) -> int:
    """Longest run of consecutive days with study, over a dense day list."""
    best = run = 0
    for m in minutes:
        run = run + 1 if m > 0 else 0
        best = max(best, run)
    return best


def current_streak(minutes: Sequence[int]) -> int:
    """Run of study days ending on the last day of the list."""
    streak = 0
    for m in reversed(minutes):
        if m <= 0:
            break
        streak += 1
    return streak


def sort_oldest_first(records: Sequence[ActivityRecord]) -> List[ActivityRecord]:
    return sorted(records, key=lambda r: (r.started_at, r.type.value, r.id))
