"""
Analytics Rules — declarative heuristic definitions.

Three registries, each an ordered list of independent rules evaluated in a
single pass:

  ADVISORY_RULES / INSIGHT_RULES — statistics → advisory messages
  METHOD_RULES                   — suggestion context → method candidates
  IMPROVEMENT_RULES              — two periods' statistics → improvement areas

Thresholds are read from the config singleton at evaluation time.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, List, Optional

from ..config import config

if TYPE_CHECKING:
    from .stats import MethodBreakdown, StatsOverview, UnifiedStats


# ---------------------------------------------------------------------------
# Advisories
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Advisory:
    key: str                         # e.g. "LOW_COMPLETION_RATE"
    message: str
    priority: str                    # high | medium | low


@dataclass(frozen=True)
class AdvisoryRule:
    key: str
    priority: str
    message: str
    applies: Callable[["StatsOverview", "MethodBreakdown"], bool]

    def evaluate(self, overview: "StatsOverview", by_method: "MethodBreakdown") -> Optional[Advisory]:
        if self.applies(overview, by_method):
            return Advisory(key=self.key, message=self.message, priority=self.priority)
        return None


def _time_tracking_share(overview: "StatsOverview", by_method: "MethodBreakdown") -> float:
    return by_method.time_tracking.total_duration / max(overview.total_study_time, 1)


INSIGHT_RULES: List[AdvisoryRule] = [

    AdvisoryRule(
        key="LOW_COMPLETION_RATE",
        priority="medium",
        message="Your pomodoro completion rate is low. Try a shorter focus interval.",
        applies=lambda o, m: (
            m.pomodoro.focus_sessions > 0
            and m.pomodoro.completion_rate < config.low_completion_rate
        ),
    ),

    AdvisoryRule(
        key="HIGH_COMPLETION_RATE",
        priority="low",
        message="Excellent pomodoro completion rate. Keep it up!",
        applies=lambda o, m: (
            m.pomodoro.focus_sessions > 0
            and m.pomodoro.completion_rate > config.high_completion_rate
        ),
    ),

    AdvisoryRule(
        key="LONG_SESSIONS",
        priority="medium",
        message="You are sustaining long study sessions. Remember to take regular breaks.",
        applies=lambda o, m: m.time_tracking.average_duration > config.long_average_minutes,
    ),
]


ADVISORY_RULES: List[AdvisoryRule] = INSIGHT_RULES + [

    AdvisoryRule(
        key="INCREASE_TIME",
        priority="high",
        message="Try to study a little more. Short sessions every day add up.",
        applies=lambda o, m: o.total_study_time < config.min_period_minutes,
    ),

    AdvisoryRule(
        key="TRY_POMODORO",
        priority="medium",
        message="Most of your time is free-running. The pomodoro technique can sharpen focus.",
        applies=lambda o, m: (
            o.total_study_time > 0
            and _time_tracking_share(o, m) > config.method_share_high
        ),
    ),

    AdvisoryRule(
        key="TRY_TIME_TRACKING",
        priority="medium",
        message="For material that needs long concentration, try a free-running timed session.",
        applies=lambda o, m: (
            o.total_study_time > 0
            and _time_tracking_share(o, m) < config.method_share_low
        ),
    ),
]


def evaluate_advisories(
    rules: List[AdvisoryRule],
    overview: "StatsOverview",
    by_method: "MethodBreakdown",
) -> List[Advisory]:
    """Advisories of every matching rule, in rule declaration order."""
    found = []
    for rule in rules:
        advisory = rule.evaluate(overview, by_method)
        if advisory is not None:
            found.append(advisory)
    return found


# ---------------------------------------------------------------------------
# Method candidates
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MethodCandidate:
    method: str                      # time_tracking | pomodoro
    confidence: float                # 0 → 1
    reason: str


@dataclass(frozen=True)
class SuggestionContext:
    time_of_day: int
    recent_avg_duration: float
    recent_method: Optional[str]
    recent_count: int
    has_history: bool
    preferred_method: Optional[str] = None


@dataclass(frozen=True)
class MethodRule:
    name: str
    applies: Callable[[SuggestionContext], bool]
    build: Callable[[SuggestionContext], List[MethodCandidate]]
    terminal: bool = False           # stop evaluating further rules on match


FIRST_TIME_REASON = "first-time user: no study history yet, so start with a standard plan"

METHOD_RULES: List[MethodRule] = [

    MethodRule(
        name="first_time",
        applies=lambda c: not c.has_history,
        build=lambda c: [
            MethodCandidate("pomodoro", 0.5, FIRST_TIME_REASON),
            MethodCandidate("time_tracking", 0.4, FIRST_TIME_REASON),
        ],
        terminal=True,
    ),

    MethodRule(
        name="long_sessions",
        applies=lambda c: (
            c.recent_count > 0 and c.recent_avg_duration >= config.long_session_minutes
        ),
        build=lambda c: [MethodCandidate(
            "time_tracking", 0.8,
            "Your recent sessions have been long duration, so free-running time tracking fits best",
        )],
    ),

    MethodRule(
        name="afternoon",
        applies=lambda c: config.afternoon_start_hour <= c.time_of_day <= config.afternoon_end_hour,
        build=lambda c: [MethodCandidate(
            "pomodoro", 0.7,
            "Concentration tends to dip in the afternoon, so short pomodoro intervals help",
        )],
    ),

    MethodRule(
        name="preferred_method",
        applies=lambda c: c.preferred_method is not None,
        build=lambda c: [MethodCandidate(
            c.preferred_method,  # type: ignore[arg-type]
            0.6,
            "Based on the method you have spent the most time with this month",
        )],
    ),

    MethodRule(
        name="recent_method",
        applies=lambda c: c.recent_method is not None,
        build=lambda c: [MethodCandidate(
            c.recent_method, 0.55, "Continue with the method from your last session",  # type: ignore[arg-type]
        )],
    ),
]

DEFAULT_CANDIDATE = MethodCandidate(
    "pomodoro", 0.5, "No clear pattern yet, so a standard pomodoro is a good default",
)


# ---------------------------------------------------------------------------
# Improvement areas
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ImprovementArea:
    area: str                        # study_time | pomodoro_completion
    message: str
    severity: str                    # positive | medium | high


@dataclass(frozen=True)
class ImprovementRule:
    area: str
    severity: str
    message: str
    applies: Callable[["UnifiedStats", "UnifiedStats"], bool]


def _time_change(p1: "UnifiedStats", p2: "UnifiedStats") -> int:
    return p1.overview.total_study_time - p2.overview.total_study_time


def _rate_change(p1: "UnifiedStats", p2: "UnifiedStats") -> Optional[float]:
    r1 = p1.by_method.pomodoro.completion_rate
    r2 = p2.by_method.pomodoro.completion_rate
    if r1 > 0 and r2 > 0:
        return r1 - r2
    return None


IMPROVEMENT_RULES: List[ImprovementRule] = [

    ImprovementRule(
        area="study_time",
        severity="high",
        message="Your study time has dropped. Review your study routine.",
        applies=lambda p1, p2: _time_change(p1, p2) < -config.time_change_threshold_minutes,
    ),

    ImprovementRule(
        area="study_time",
        severity="positive",
        message="Your study time has grown. Keep going!",
        applies=lambda p1, p2: _time_change(p1, p2) > config.time_change_threshold_minutes,
    ),

    ImprovementRule(
        area="pomodoro_completion",
        severity="medium",
        message="Your pomodoro completion rate has fallen. Consider adjusting the interval length.",
        applies=lambda p1, p2: (
            (_rate_change(p1, p2) or 0.0) < -config.completion_change_threshold
        ),
    ),

    ImprovementRule(
        area="pomodoro_completion",
        severity="positive",
        message="You are finishing more of your pomodoros than before.",
        applies=lambda p1, p2: (
            (_rate_change(p1, p2) or 0.0) > config.completion_change_threshold
        ),
    ),
]
