"""
Pydantic schemas for the FastAPI analytics API.

Engine results are dataclasses; every *Out model reads them by attribute.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..analytics.records import ActivityType, RecordStatus


class _Out(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# ── History ────────────────────────────────────────────────────────────────

class ActivityRecordOut(_Out):
    id: int
    type: ActivityType
    subject_area_id: Optional[int]
    subject_area_name: Optional[str]
    exam_type_name: Optional[str]
    duration_minutes: int = Field(..., ge=0)
    started_at: datetime
    ended_at: Optional[datetime]
    status: RecordStatus
    was_interrupted: bool
    session_details: Dict[str, Any] = Field(default_factory=dict)


class HistoryMeta(BaseModel):
    total_count: int
    start_date: Optional[date]
    end_date: Optional[date]


class HistoryOut(BaseModel):
    data: List[ActivityRecordOut]
    meta: HistoryMeta


# ── Statistics ─────────────────────────────────────────────────────────────

class PeriodOut(_Out):
    start_date: Optional[date]
    end_date: Optional[date]


class StatsOverviewOut(_Out):
    total_study_time: int
    total_sessions: int
    average_session_length: float
    study_days: int


class TimeTrackingStatsOut(_Out):
    total_sessions: int
    total_duration: int
    average_duration: float
    longest_session: int


class PomodoroStatsOut(_Out):
    total_sessions: int
    focus_sessions: int
    break_sessions: int
    interrupted_sessions: int
    total_focus_time: int
    completion_rate: float = Field(..., ge=0.0, le=100.0)
    average_focus_duration: float


class MethodBreakdownOut(_Out):
    time_tracking: TimeTrackingStatsOut
    pomodoro: PomodoroStatsOut


class SubjectStatsOut(_Out):
    subject_name: str
    total_duration: int
    session_count: int
    time_tracking_duration: int
    pomodoro_duration: int


class DailyMinutesOut(_Out):
    date: str
    minutes: int
    time_tracking_minutes: int
    pomodoro_minutes: int


class AdvisoryOut(_Out):
    key: str
    message: str
    priority: str


class UnifiedStatsOut(_Out):
    period: PeriodOut
    overview: StatsOverviewOut
    by_method: MethodBreakdownOut
    subject_breakdown: List[SubjectStatsOut]
    daily_breakdown: List[DailyMinutesOut]
    insights: List[AdvisoryOut]


# ── Insights ───────────────────────────────────────────────────────────────

class TimeBucketOut(_Out):
    hours: str
    total_minutes: int
    session_count: int
    share: float


class ProductivityTrendOut(_Out):
    trend: str = Field(..., description="improving | declining | stable")
    change_percentage: float
    recent_total: int
    previous_total: int


class StudyInsightsOut(_Out):
    preferred_method: Optional[ActivityType]
    best_study_times: Dict[str, TimeBucketOut]
    productivity_trends: ProductivityTrendOut
    recommendations: List[AdvisoryOut]


# ── Suggestion ─────────────────────────────────────────────────────────────

class MethodCandidateOut(_Out):
    method: ActivityType
    confidence: float = Field(..., ge=0.0, le=1.0)
    reason: str


class SuggestionContextOut(_Out):
    time_of_day: int = Field(..., ge=0, le=23)
    recent_avg_duration: float
    recent_method: Optional[ActivityType]
    recent_count: int
    has_history: bool
    preferred_method: Optional[ActivityType]


class SuggestionOut(_Out):
    recommended: MethodCandidateOut
    alternatives: List[MethodCandidateOut]
    context: SuggestionContextOut


# ── Comparison ─────────────────────────────────────────────────────────────

class StatsChangesOut(_Out):
    total_study_time_change: int
    session_count_change: int
    average_session_change: float
    study_days_change: int


class ImprovementAreaOut(_Out):
    area: str
    message: str
    severity: str = Field(..., description="positive | medium | high")


class ComparisonOut(_Out):
    period1: UnifiedStatsOut
    period2: UnifiedStatsOut
    changes: StatsChangesOut
    improvement_areas: List[ImprovementAreaOut]


# ── Calendar ───────────────────────────────────────────────────────────────

class GrassDayOut(_Out):
    date: str
    total_minutes: int
    level: int = Field(..., ge=0, le=3)
    time_tracking_minutes: int
    pomodoro_minutes: int
    session_count: int
    focus_sessions: int


class GrassStatsOut(_Out):
    total_days: int
    study_days: int
    study_rate: float = Field(..., ge=0.0, le=100.0)
    total_study_time: int
    average_daily_time: float
    level_distribution: Dict[str, int]
    longest_streak: int
    current_streak: int


class GrassDataOut(_Out):
    period: PeriodOut
    data: List[GrassDayOut]
    stats: GrassStatsOut


class MonthlyStatsOut(_Out):
    year: int
    month: int
    total_study_time: int
    study_days: int
    average_daily_time: float
    best_day: Optional[GrassDayOut]
    grass_level_distribution: Dict[str, int]
    longest_streak: int
    current_streak: int


class DayDetailOut(_Out):
    date: str
    summary: Optional[DailyMinutesOut]
    records: List[ActivityRecordOut]
