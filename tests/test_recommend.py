"""Tests for the study-method recommendation engine and its rule registry."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from studyflow.analytics.insights import InsightEngine
from studyflow.analytics.recommend import RecommendationEngine, evaluate_rules, rank_candidates
from studyflow.analytics.rules import (
    DEFAULT_CANDIDATE,
    METHOD_RULES,
    MethodCandidate,
    SuggestionContext,
)
from studyflow.config import config

MORNING = datetime(2024, 6, 12, 10, 0)
AFTERNOON = datetime(2024, 6, 12, 15, 0)


def _engine(history, now: datetime) -> RecommendationEngine:
    clock = lambda: now  # noqa: E731
    return RecommendationEngine(history, InsightEngine(history, clock=clock), clock=clock)


def _long_timed_history(store, subject_area_id=None):
    for d in range(1, 4):
        start = MORNING - timedelta(days=d)
        store.add_timed_session(
            1, started_at=start, duration_minutes=120,
            ended_at=start + timedelta(minutes=120), subject_area_id=subject_area_id,
        )


def _short_focus_history(store, subject_area_id=None):
    for d in range(1, 4):
        start = MORNING - timedelta(days=d)
        store.add_pomodoro_session(
            1, started_at=start, session_type="focus", actual_duration=25,
            completed_at=start + timedelta(minutes=25), is_completed=True,
            subject_area_id=subject_area_id,
        )


# ── First-time users ─────────────────────────────────────────────────────────


@pytest.mark.parametrize("now", [MORNING, AFTERNOON])
def test_first_time_user(history, now):
    s = _engine(history, now).suggest_study_method(1)
    assert s.recommended.method in ("time_tracking", "pomodoro")
    assert "first-time" in s.recommended.reason
    assert 0.0 < s.recommended.confidence <= 1.0
    assert s.context.recent_method is None
    assert s.context.recent_avg_duration == 0.0
    assert s.context.time_of_day == now.hour
    assert not s.context.has_history


# ── History-driven rules ─────────────────────────────────────────────────────


def test_long_sessions_favor_time_tracking(store, history):
    _long_timed_history(store)
    s = _engine(history, MORNING).suggest_study_method(1)
    assert s.recommended.method == "time_tracking"
    assert "long duration" in s.recommended.reason
    assert s.context.recent_avg_duration == 120.0
    assert s.context.recent_method == "time_tracking"
    assert s.alternatives == []


def test_long_sessions_in_afternoon_keep_pomodoro_as_alternative(store, history):
    _long_timed_history(store)
    s = _engine(history, AFTERNOON).suggest_study_method(1)
    assert s.recommended.method == "time_tracking"
    [alt] = s.alternatives
    assert alt.method == "pomodoro"
    assert "afternoon" in alt.reason


def test_afternoon_favors_pomodoro(store, history):
    _short_focus_history(store)
    s = _engine(history, AFTERNOON).suggest_study_method(1)
    assert s.recommended.method == "pomodoro"
    assert "afternoon" in s.recommended.reason
    assert s.context.recent_avg_duration == 25.0
    assert s.context.recent_method == "pomodoro"
    assert s.context.time_of_day == 15


def test_morning_falls_back_to_preferred_method(store, history):
    _short_focus_history(store)
    s = _engine(history, MORNING).suggest_study_method(1)
    assert s.recommended.method == "pomodoro"
    assert s.recommended.confidence == 0.6
    assert s.context.preferred_method == "pomodoro"
    assert "most time" in s.recommended.reason
    assert s.recommended.reason != next(
        c.reason for c in evaluate_rules(METHOD_RULES, s.context) if c.confidence == 0.55
    )


def test_only_older_history_uses_preferred_method(store, history):
    start = MORNING - timedelta(days=20)
    store.add_timed_session(1, started_at=start, duration_minutes=30, ended_at=start + timedelta(minutes=30))
    s = _engine(history, MORNING).suggest_study_method(1)
    assert s.context.has_history
    assert s.context.recent_count == 0
    assert s.context.recent_method is None
    assert s.recommended.method == "time_tracking"
    assert "first-time" not in s.recommended.reason


def test_stale_history_gets_default(store, history):
    start = MORNING - timedelta(days=50)
    store.add_timed_session(1, started_at=start, duration_minutes=30, ended_at=start + timedelta(minutes=30))
    s = _engine(history, MORNING).suggest_study_method(1)
    assert s.recommended == DEFAULT_CANDIDATE
    assert s.alternatives == []


def test_subject_filter_narrows_recent_sessions(store, history):
    algebra = store.add_subject_area(1, "Algebra")
    reading = store.add_subject_area(1, "Reading")
    _long_timed_history(store, subject_area_id=algebra)
    _short_focus_history(store, subject_area_id=reading)
    s = _engine(history, MORNING).suggest_study_method(1, subject_area_id=reading)
    assert s.context.recent_avg_duration == 25.0
    assert s.context.recent_method == "pomodoro"
    assert "long duration" not in s.recommended.reason


def test_long_session_threshold_is_configurable(store, history, monkeypatch):
    monkeypatch.setattr(config, "long_session_minutes", 150)
    _long_timed_history(store)
    s = _engine(history, MORNING).suggest_study_method(1)
    assert s.recommended.method == "time_tracking"
    assert "long duration" not in s.recommended.reason


@pytest.mark.parametrize("now", [MORNING, AFTERNOON])
def test_suggestion_is_well_formed(store, history, now):
    _long_timed_history(store)
    _short_focus_history(store)
    s = _engine(history, now).suggest_study_method(1)
    candidates = [s.recommended] + s.alternatives
    methods = [c.method for c in candidates]
    assert len(methods) == len(set(methods))
    assert all(0.0 <= c.confidence <= 1.0 for c in candidates)
    confidences = [c.confidence for c in candidates]
    assert confidences == sorted(confidences, reverse=True)


# ── Rules in isolation ───────────────────────────────────────────────────────


def _context(hour: int, **kw) -> SuggestionContext:
    fields = dict(
        time_of_day=hour, recent_avg_duration=30.0, recent_method=None,
        recent_count=2, has_history=True,
    )
    fields.update(kw)
    return SuggestionContext(**fields)


@pytest.mark.parametrize("hour, expected", [(12, False), (13, True), (17, True), (18, False)])
def test_afternoon_window_is_inclusive(hour, expected):
    candidates = evaluate_rules(METHOD_RULES, _context(hour))
    assert any("afternoon" in c.reason for c in candidates) is expected


def test_first_time_rule_stops_evaluation():
    candidates = evaluate_rules(METHOD_RULES, _context(15, has_history=False, recent_count=0))
    assert {c.method for c in candidates} == {"pomodoro", "time_tracking"}
    assert all("first-time" in c.reason for c in candidates)


def test_rank_candidates_keeps_best_per_method():
    ranked = rank_candidates(
        [
            MethodCandidate("pomodoro", 0.55, "recent"),
            MethodCandidate("time_tracking", 0.6, "preferred"),
            MethodCandidate("pomodoro", 0.7, "afternoon"),
        ],
        _context(15),
    )
    assert ranked.recommended.reason == "afternoon"
    assert [a.reason for a in ranked.alternatives] == ["preferred"]


def test_rank_candidates_falls_back_to_default():
    assert rank_candidates([], _context(10)).recommended == DEFAULT_CANDIDATE
