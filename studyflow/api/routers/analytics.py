"""
/analytics — unified study history, statistics, insights and method
suggestions for the calling user.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, status

from ...api.schemas import (
    ActivityRecordOut,
    ComparisonOut,
    DayDetailOut,
    GrassDataOut,
    HistoryMeta,
    HistoryOut,
    MonthlyStatsOut,
    StudyInsightsOut,
    SuggestionOut,
    UnifiedStatsOut,
)
from ...config import config

router = APIRouter(prefix="/analytics", tags=["analytics"])


def _get_services(request: Request) -> dict:
    return request.app.state.services


def _user_id(x_user_id: int = Header(..., ge=1, description="Authenticated user id")) -> int:
    return x_user_id


def _check_range(start: Optional[date], end: Optional[date], label: str = "") -> None:
    if start and end and end < start:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"{label}end_date must be on or after {label}start_date",
        )


@router.get("/history", response_model=HistoryOut)
def get_history(
    start_date: Optional[date] = Query(default=None),
    end_date: Optional[date] = Query(default=None),
    limit: int = Query(default=config.history_default_limit, ge=1, le=config.history_max_limit),
    user_id: int = Depends(_user_id),
    services=Depends(_get_services),
):
    """Both session kinds merged, newest first."""
    _check_range(start_date, end_date)
    records = list(services["history"].get_unified_history(user_id, start_date, end_date, limit))
    return HistoryOut(
        data=[ActivityRecordOut.model_validate(r) for r in records],
        meta=HistoryMeta(total_count=len(records), start_date=start_date, end_date=end_date),
    )


@router.get("/stats", response_model=UnifiedStatsOut)
def get_stats(
    start_date: Optional[date] = Query(default=None),
    end_date: Optional[date] = Query(default=None),
    user_id: int = Depends(_user_id),
    services=Depends(_get_services),
):
    _check_range(start_date, end_date)
    stats = services["stats"].get_unified_stats(user_id, start_date, end_date)
    return UnifiedStatsOut.model_validate(stats)


@router.get("/insights", response_model=StudyInsightsOut)
def get_insights(user_id: int = Depends(_user_id), services=Depends(_get_services)):
    return StudyInsightsOut.model_validate(services["insights"].get_study_insights(user_id))


@router.get("/suggest", response_model=SuggestionOut)
def suggest_method(
    subject_area_id: Optional[int] = Query(default=None, ge=1),
    user_id: int = Depends(_user_id),
    services=Depends(_get_services),
):
    """Recommend time tracking or pomodoro for the next session."""
    suggestion = services["recommend"].suggest_study_method(user_id, subject_area_id)
    return SuggestionOut.model_validate(suggestion)


@router.get("/comparison", response_model=ComparisonOut)
def compare_periods(
    period1_start: date = Query(...),
    period1_end: date = Query(...),
    period2_start: date = Query(...),
    period2_end: date = Query(...),
    user_id: int = Depends(_user_id),
    services=Depends(_get_services),
):
    """Statistics for two periods and their period1 − period2 deltas."""
    _check_range(period1_start, period1_end, "period1 ")
    _check_range(period2_start, period2_end, "period2 ")
    comparison = services["compare"].compare(
        user_id, period1_start, period1_end, period2_start, period2_end
    )
    return ComparisonOut.model_validate(comparison)


@router.get("/grass-data", response_model=GrassDataOut)
def get_grass_data(
    start_date: Optional[date] = Query(default=None),
    end_date: Optional[date] = Query(default=None),
    user_id: int = Depends(_user_id),
    services=Depends(_get_services),
):
    """Dense per-day calendar shaded by study minutes; at most one year."""
    _check_range(start_date, end_date)
    return GrassDataOut.model_validate(
        services["calendar"].get_grass_data(user_id, start_date, end_date)
    )


@router.get("/monthly", response_model=MonthlyStatsOut)
def get_monthly(
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
    user_id: int = Depends(_user_id),
    services=Depends(_get_services),
):
    return MonthlyStatsOut.model_validate(
        services["calendar"].get_monthly_stats(user_id, year, month)
    )


@router.get("/day/{day}", response_model=DayDetailOut)
def get_day(day: date, user_id: int = Depends(_user_id), services=Depends(_get_services)):
    return DayDetailOut.model_validate(services["calendar"].get_day_detail(user_id, day))
