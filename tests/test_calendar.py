"""Tests for the grass calendar, monthly stats, streaks and day detail."""

from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from studyflow.analytics.records import ActivityType
from studyflow.analytics.study_calendar import (
    StudyCalendar,
    current_streak,
    grass_level,
    longest_streak,
)
from studyflow.config import config
from studyflow.errors import ContractViolationError

NOW = datetime(2024, 6, 12, 10, 0)


@pytest.fixture
def cal(history):
    return StudyCalendar(history, clock=lambda: NOW)


def _timed(store, at: datetime, minutes: int):
    return store.add_timed_session(1, started_at=at, duration_minutes=minutes,
                                   ended_at=at + timedelta(minutes=minutes))


def _focus(store, at: datetime, minutes: int = 25):
    return store.add_pomodoro_session(1, started_at=at, session_type="focus",
                                      actual_duration=minutes, is_completed=True,
                                      completed_at=at + timedelta(minutes=minutes))


# ── Grass calendar ───────────────────────────────────────────────────────────


@pytest.mark.parametrize("minutes, level", [
    (0, 0), (1, 1), (60, 1), (61, 2), (120, 2), (121, 3), (600, 3),
])
def test_grass_level_thresholds(minutes, level):
    assert grass_level(minutes) == level


def test_grass_level_thresholds_are_configurable(monkeypatch):
    monkeypatch.setattr(config, "grass_level1_max_minutes", 30)
    monkeypatch.setattr(config, "grass_level2_max_minutes", 45)
    assert [grass_level(m) for m in (30, 31, 45, 46)] == [1, 2, 2, 3]


def test_grass_data_is_dense_and_shaded(store, cal):
    _timed(store, datetime(2024, 6, 2, 9), 30)
    _timed(store, datetime(2024, 6, 3, 9), 60)
    _focus(store, datetime(2024, 6, 3, 14), 30)
    _timed(store, datetime(2024, 6, 6, 9), 150)
    _focus(store, datetime(2024, 6, 7, 9), 0)

    grass = cal.get_grass_data(1, date(2024, 6, 1), date(2024, 6, 7))
    assert [d.date for d in grass.data] == [f"2024-06-0{i}" for i in range(1, 8)]
    assert [d.level for d in grass.data] == [0, 1, 2, 0, 0, 3, 0]

    june3 = grass.data[2]
    assert june3.total_minutes == 90
    assert june3.time_tracking_minutes == 60
    assert june3.pomodoro_minutes == 30
    assert june3.session_count == 2
    assert june3.focus_sessions == 1

    s = grass.stats
    assert s.total_days == 7
    assert s.study_days == 3
    assert s.study_rate == 42.9
    assert s.total_study_time == 270
    assert s.average_daily_time == 90.0
    assert s.level_distribution == {"level_0": 4, "level_1": 1, "level_2": 1, "level_3": 1}
    assert s.longest_streak == 2
    assert s.current_streak == 0


def test_grass_data_defaults_to_the_year_ending_today(cal):
    grass = cal.get_grass_data(1)
    assert grass.period.end_date == NOW.date()
    assert grass.period.start_date == date(2023, 6, 13)
    assert grass.stats.total_days == 366
    assert grass.stats.study_rate == 0.0
    assert grass.stats.level_distribution["level_0"] == 366


def test_grass_data_excludes_breaks(store, cal):
    store.add_pomodoro_session(
        1, started_at=datetime(2024, 6, 5, 9), session_type="long_break",
        actual_duration=15, is_completed=True, completed_at=datetime(2024, 6, 5, 9, 15),
    )
    grass = cal.get_grass_data(1, date(2024, 6, 5), date(2024, 6, 5))
    assert grass.data[0].total_minutes == 0
    assert grass.data[0].level == 0


def test_grass_range_limit(cal):
    end = date(2024, 6, 12)
    assert cal.get_grass_data(1, end - timedelta(days=365), end).stats.total_days == 366
    with pytest.raises(ContractViolationError):
        cal.get_grass_data(1, end - timedelta(days=366), end)


def test_grass_reversed_range_is_a_contract_violation(cal):
    with pytest.raises(ContractViolationError):
        cal.get_grass_data(1, date(2024, 6, 7), date(2024, 6, 1))


# ── Monthly stats ────────────────────────────────────────────────────────────


def test_monthly_stats(store, cal):
    for d, minutes in [(3, 30), (4, 60), (5, 45), (10, 120), (29, 20), (30, 40)]:
        _timed(store, datetime(2024, 6, d, 9), minutes)
    _timed(store, datetime(2024, 5, 31, 9), 500)  # outside the month

    m = cal.get_monthly_stats(1, 2024, 6)
    assert (m.year, m.month) == (2024, 6)
    assert m.total_study_time == 315
    assert m.study_days == 6
    assert m.average_daily_time == 52.5
    assert m.best_day.date == "2024-06-10"
    assert m.best_day.total_minutes == 120
    assert m.best_day.level == 2
    assert m.grass_level_distribution == {
        "level_0": 24, "level_1": 5, "level_2": 1, "level_3": 0,
    }
    assert m.longest_streak == 3
    assert m.current_streak == 2


def test_empty_month(cal):
    m = cal.get_monthly_stats(1, 2024, 2)
    assert m.total_study_time == 0
    assert m.study_days == 0
    assert m.average_daily_time == 0.0
    assert m.best_day is None
    assert m.grass_level_distribution["level_0"] == 29
    assert m.longest_streak == 0
    assert m.current_streak == 0


def test_zero_minute_day_is_not_a_study_day(store, cal):
    _focus(store, datetime(2024, 6, 10, 9), 0)
    m = cal.get_monthly_stats(1, 2024, 6)
    assert m.study_days == 0
    assert m.best_day is None
    assert m.longest_streak == 0
    assert cal.get_day_detail(1, date(2024, 6, 10)).summary is None


def test_study_days_agree_with_streaks(store, cal):
    _timed(store, datetime(2024, 6, 28, 9), 30)
    _focus(store, datetime(2024, 6, 29, 9), 0)
    _timed(store, datetime(2024, 6, 30, 9), 30)
    m = cal.get_monthly_stats(1, 2024, 6)
    assert m.study_days == 2
    assert m.longest_streak == 1
    assert m.current_streak == 1


def test_breaks_do_not_extend_streaks(store, cal):
    _timed(store, datetime(2024, 6, 28, 9), 30)
    store.add_pomodoro_session(
        1, started_at=datetime(2024, 6, 29, 9), session_type="long_break",
        planned_duration=15, actual_duration=15, is_completed=True,
        completed_at=datetime(2024, 6, 29, 9, 15),
    )
    _timed(store, datetime(2024, 6, 30, 9), 30)
    m = cal.get_monthly_stats(1, 2024, 6)
    assert m.longest_streak == 1
    assert m.current_streak == 1


# ── Streak helpers ───────────────────────────────────────────────────────────


@pytest.mark.parametrize("minutes, longest, current", [
    ([], 0, 0),
    ([30, 30, 30, 0, 0, 0, 0], 3, 0),
    ([0, 0, 0, 0, 30, 30, 30], 3, 3),
    ([30, 0, 30, 30, 0, 0, 30], 2, 1),
    ([30] * 7, 7, 7),
])
def test_streaks(minutes, longest, current):
    assert longest_streak(minutes) == longest
    assert current_streak(minutes) == current


# ── Day detail ───────────────────────────────────────────────────────────────


def test_day_detail(store, cal):
    _timed(store, datetime(2024, 6, 12, 14), 60)
    _focus(store, datetime(2024, 6, 12, 9))
    store.add_pomodoro_session(
        1, started_at=datetime(2024, 6, 12, 9, 25), session_type="short_break",
        actual_duration=5, completed_at=datetime(2024, 6, 12, 9, 30), is_completed=True,
    )
    _timed(store, datetime(2024, 6, 13, 9), 90)

    detail = cal.get_day_detail(1, date(2024, 6, 12))
    assert detail.date == "2024-06-12"
    assert [r.started_at.hour for r in detail.records] == [9, 9, 14]
    assert detail.records[-1].type is ActivityType.TIME_TRACKING
    assert detail.summary.minutes == 85
    assert detail.summary.time_tracking_minutes == 60
    assert detail.summary.pomodoro_minutes == 25


def test_day_detail_ties_keep_type_then_id_order(store, cal):
    at = datetime(2024, 6, 12, 9)
    first = _timed(store, at, 30)
    second = _timed(store, at, 45)
    focus = _focus(store, at)
    records = cal.get_day_detail(1, at.date()).records
    assert [(r.type.value, r.id) for r in records] == [
        ("pomodoro", focus), ("time_tracking", first), ("time_tracking", second),
    ]


def test_day_without_study(store, cal):
    store.add_pomodoro_session(
        1, started_at=datetime(2024, 6, 12, 9), session_type="short_break",
        actual_duration=5, completed_at=datetime(2024, 6, 12, 9, 5), is_completed=True,
    )
    detail = cal.get_day_detail(1, date(2024, 6, 12))
    assert detail.summary is None
    assert len(detail.records) == 1
