"""
Insight Engine — infers a preferred study method, time-of-day habits, a
productivity trend and advisory recommendations from a user's history.

Windows are anchored on the injected clock's current date:

    recent    = the last `insight_window_days` days (today included)
    previous  = the same number of days immediately before `recent`
    broad     = the last `recommendation_window_days` days
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..config import config
from .history import HistoryAssembler, Period
from .records import ActivityRecord, ActivityType
from .rules import ADVISORY_RULES, Advisory, evaluate_advisories
from .stats import UnifiedStats, aggregate

Clock = Callable[[], datetime]

# name → (first hour, hours covered); night wraps past midnight
DAY_PERIODS: Dict[str, Tuple[int, int]] = {
    "morning": (5, 7),       # 05:00–11:59
    "afternoon": (12, 5),    # 12:00–16:59
    "evening": (17, 5),      # 17:00–21:59
    "night": (22, 7),        # 22:00–04:59
}


@dataclass
class TimeBucket:
    hours: str                       # e.g. "5-12"
    total_minutes: int
    session_count: int
    share: float                     # fraction of all minutes in the window


@dataclass
class ProductivityTrend:
    trend: str                       # improving | declining | stable
    change_percentage: float
    recent_total: int
    previous_total: int


@dataclass
class StudyInsights:
    preferred_method: Optional[str]
    best_study_times: Dict[str, TimeBucket]
    productivity_trends: ProductivityTrend
    recommendations: List[Advisory]


class InsightEngine:

    def __init__(self, history: HistoryAssembler, clock: Clock = datetime.now):
        self._history = history
        self._clock = clock

    def get_study_insights(self, user_id: int) -> StudyInsights:
        today = self._clock().date()
        recent_period = Period.trailing(config.insight_window_days, today)
        previous_period = Period.trailing(
            config.insight_window_days, today, offset=config.insight_window_days
        )
        broad_period = Period.trailing(config.recommendation_window_days, today)

        recent_records = self._history.merged_records(user_id, recent_period)
        recent = aggregate(recent_records, recent_period)
        previous = aggregate(self._history.merged_records(user_id, previous_period), previous_period)
        broad = aggregate(self._history.merged_records(user_id, broad_period), broad_period)

        return StudyInsights(
            preferred_method=preferred_method(recent),
            best_study_times=best_study_times(recent_records),
            productivity_trends=productivity_trend(recent, previous),
            recommendations=evaluate_advisories(ADVISORY_RULES, broad.overview, broad.by_method),
        )

    def preferred_method(self, user_id: int, today: Optional[date] = None) -> Optional[str]:
        today = today or self._clock().date()
        period = Period.trailing(config.insight_window_days, today)
        return preferred_method(aggregate(self._history.merged_records(user_id, period), period))


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------

def preferred_method(stats: UnifiedStats) -> Optional[str]:
    timed = stats.by_method.time_tracking.total_duration
    focus = stats.by_method.pomodoro.total_focus_time
    if timed > focus:
        return ActivityType.TIME_TRACKING.value
    if focus > timed:
        return ActivityType.POMODORO.value
    return None


def best_study_times(records: Sequence[ActivityRecord]) -> Dict[str, TimeBucket]:
    study = [r for r in records if r.counts_as_study]
    hours = np.array([r.started_at.hour for r in study], dtype=np.int64)
    minutes = np.array([r.duration_minutes for r in study], dtype=np.float64)

    minutes_by_hour = np.bincount(hours, weights=minutes, minlength=24)
    count_by_hour = np.bincount(hours, minlength=24)
    grand_total = float(minutes_by_hour.sum())

    result = {}
    for name, (start, span) in DAY_PERIODS.items():
        idx = [(start + i) % 24 for i in range(span)]
        total = float(minutes_by_hour[idx].sum())
        result[name] = TimeBucket(
            hours=f"{start}-{(start + span) % 24}",
            total_minutes=int(total),
            session_count=int(count_by_hour[idx].sum()),
            share=round(total / grand_total, 3) if grand_total else 0.0,
        )
    return result


def productivity_trend(recent: UnifiedStats, previous: UnifiedStats) -> ProductivityTrend:
    recent_total = recent.overview.total_study_time
    previous_total = previous.overview.total_study_time
    trend, change = classify_trend(recent_total, previous_total, config.trend_threshold_percent)
    return ProductivityTrend(
        trend=trend,
        change_percentage=change,
        recent_total=recent_total,
        previous_total=previous_total,
    )


def classify_trend(recent_total: int, previous_total: int, threshold: float) -> Tuple[str, float]:
    """Return (label, change %) for recent vs. previous; never unlabeled."""
    if previous_total == 0:
        # no baseline: any activity counts as a full improvement
        return ("improving", 100.0) if recent_total > 0 else ("stable", 0.0)

    change = (recent_total - previous_total) / previous_total * 100
    if change > threshold:
        label = "improving"
    elif change < -threshold:
        label = "declining"
    else:
        label = "stable"
    return label, round(change, 1)
