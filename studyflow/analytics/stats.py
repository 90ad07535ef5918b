"""
Statistics Aggregator — overview totals, per-method and per-subject
breakdowns and a daily time series over one period of merged records.

Only completed focus/timed records count as study. Pomodoro breaks and
in-progress records are visible in history but contribute nothing here, so
sum(daily minutes) == sum(subject minutes) == overview total whenever every
study record has a subject.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Sequence

from .history import HistoryAssembler, Period
from .records import ActivityRecord, ActivityType, RecordStatus
from .rules import INSIGHT_RULES, Advisory, evaluate_advisories


@dataclass
class StatsOverview:
    total_study_time: int = 0
    total_sessions: int = 0
    average_session_length: float = 0.0
    study_days: int = 0


@dataclass
class TimeTrackingStats:
    total_sessions: int = 0
    total_duration: int = 0
    average_duration: float = 0.0
    longest_session: int = 0


@dataclass
class PomodoroStats:
    total_sessions: int = 0          # focus + break
    focus_sessions: int = 0
    break_sessions: int = 0
    interrupted_sessions: int = 0    # focus sessions only
    total_focus_time: int = 0
    completion_rate: float = 0.0     # % of focus sessions not interrupted
    average_focus_duration: float = 0.0


@dataclass
class MethodBreakdown:
    time_tracking: TimeTrackingStats = field(default_factory=TimeTrackingStats)
    pomodoro: PomodoroStats = field(default_factory=PomodoroStats)


@dataclass
class SubjectStats:
    subject_name: str
    total_duration: int = 0
    session_count: int = 0
    time_tracking_duration: int = 0
    pomodoro_duration: int = 0


@dataclass
class DailyMinutes:
    date: str                        # "YYYY-MM-DD"
    minutes: int = 0
    time_tracking_minutes: int = 0
    pomodoro_minutes: int = 0


@dataclass
class UnifiedStats:
    period: Period
    overview: StatsOverview
    by_method: MethodBreakdown
    subject_breakdown: List[SubjectStats]
    daily_breakdown: List[DailyMinutes]
    insights: List[Advisory]


class StatisticsAggregator:

    def __init__(self, history: HistoryAssembler):
        self._history = history

    def get_unified_stats(
        self,
        user_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> UnifiedStats:
        period = Period(start_date, end_date)
        return self.stats_for(user_id, period)

    def stats_for(self, user_id: int, period: Period) -> UnifiedStats:
        return aggregate(self._history.merged_records(user_id, period), period)


# ---------------------------------------------------------------------------
# Pure aggregation
# ---------------------------------------------------------------------------

def aggregate(records: Sequence[ActivityRecord], period: Period = Period()) -> UnifiedStats:
    study = [r for r in records if r.counts_as_study]
    overview = compute_overview(study)
    by_method = compute_method_breakdown(records)
    return UnifiedStats(
        period=period,
        overview=overview,
        by_method=by_method,
        subject_breakdown=compute_subject_breakdown(study),
        daily_breakdown=compute_daily_breakdown(study),
        insights=evaluate_advisories(INSIGHT_RULES, overview, by_method),
    )


def compute_overview(study: Sequence[ActivityRecord]) -> StatsOverview:
    total = sum(r.duration_minutes for r in study)
    sessions = len(study)
    return StatsOverview(
        total_study_time=total,
        total_sessions=sessions,
        average_session_length=total / sessions if sessions else 0.0,
        study_days=len({r.started_at.date() for r in study}),
    )


def compute_method_breakdown(records: Sequence[ActivityRecord]) -> MethodBreakdown:
    completed = [r for r in records if r.status == RecordStatus.COMPLETED]

    timed = [r.duration_minutes for r in completed if r.type == ActivityType.TIME_TRACKING]
    time_tracking = TimeTrackingStats(
        total_sessions=len(timed),
        total_duration=sum(timed),
        average_duration=sum(timed) / len(timed) if timed else 0.0,
        longest_session=max(timed, default=0),
    )

    pomodoros = [r for r in completed if r.type == ActivityType.POMODORO]
    focus = [r for r in pomodoros if not r.is_break]
    interrupted = sum(1 for r in focus if r.was_interrupted)
    focus_time = sum(r.duration_minutes for r in focus)
    pomodoro = PomodoroStats(
        total_sessions=len(pomodoros),
        focus_sessions=len(focus),
        break_sessions=len(pomodoros) - len(focus),
        interrupted_sessions=interrupted,
        total_focus_time=focus_time,
        completion_rate=completion_rate(len(focus), interrupted),
        average_focus_duration=focus_time / len(focus) if focus else 0.0,
    )
    return MethodBreakdown(time_tracking=time_tracking, pomodoro=pomodoro)


def completion_rate(focus_count: int, interrupted_count: int) -> float:
    if focus_count == 0:
        return 0.0
    return round((focus_count - interrupted_count) / focus_count * 100, 1)


def compute_subject_breakdown(study: Sequence[ActivityRecord]) -> List[SubjectStats]:
    by_subject: Dict[str, SubjectStats] = {}
    for r in study:
        if r.subject_area_name is None:
            continue
        row = by_subject.setdefault(r.subject_area_name, SubjectStats(r.subject_area_name))
        row.total_duration += r.duration_minutes
        row.session_count += 1
        if r.type == ActivityType.TIME_TRACKING:
            row.time_tracking_duration += r.duration_minutes
        else:
            row.pomodoro_duration += r.duration_minutes

    return sorted(by_subject.values(), key=lambda s: (-s.total_duration, s.subject_name))


def compute_daily_breakdown(study: Sequence[ActivityRecord]) -> List[DailyMinutes]:
    by_date: Dict[date, DailyMinutes] = {}
    for r in study:
        day = r.started_at.date()
        row = by_date.setdefault(day, DailyMinutes(day.isoformat()))
        row.minutes += r.duration_minutes
        if r.type == ActivityType.TIME_TRACKING:
            row.time_tracking_minutes += r.duration_minutes
        else:
            row.pomodoro_minutes += r.duration_minutes

    return [by_date[d] for d in sorted(by_date)]
