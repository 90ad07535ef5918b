"""
Recommendation Engine — suggests time tracking or pomodoro for the user's
next study session, with a confidence score and a human-readable reason.

The current hour comes from the injected clock, so the result is fully
determined by the stored records and the clock reading.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from ..config import config
from .history import HistoryAssembler, Period
from .insights import InsightEngine
from .rules import (
    DEFAULT_CANDIDATE,
    METHOD_RULES,
    MethodCandidate,
    MethodRule,
    SuggestionContext,
)

Clock = Callable[[], datetime]


@dataclass
class Suggestion:
    recommended: MethodCandidate
    alternatives: List[MethodCandidate]
    context: SuggestionContext


class RecommendationEngine:

    def __init__(
        self,
        history: HistoryAssembler,
        insights: InsightEngine,
        clock: Clock = datetime.now,
    ):
        self._history = history
        self._insights = insights
        self._clock = clock

    def suggest_study_method(
        self,
        user_id: int,
        subject_area_id: Optional[int] = None,
    ) -> Suggestion:
        now = self._clock()
        context = self.build_context(user_id, now, subject_area_id)
        return rank_candidates(evaluate_rules(METHOD_RULES, context), context)

    def build_context(
        self,
        user_id: int,
        now: datetime,
        subject_area_id: Optional[int] = None,
    ) -> SuggestionContext:
        window = Period(
            start_date=(now - timedelta(days=config.recent_window_days)).date(),
            end_date=now.date(),
        )
        records = self._history.merged_records(user_id, window, subject_area_id)
        recent = [r for r in records if r.counts_as_study][: config.recent_sample_size]

        avg = sum(r.duration_minutes for r in recent) / len(recent) if recent else 0.0
        has_history = bool(recent) or self._history.has_activity(user_id)
        return SuggestionContext(
            time_of_day=now.hour,
            recent_avg_duration=round(avg, 1),
            recent_method=recent[0].type.value if recent else None,
            recent_count=len(recent),
            has_history=has_history,
            preferred_method=(
                self._insights.preferred_method(user_id, now.date()) if has_history else None
            ),
        )


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------

def evaluate_rules(rules: List[MethodRule], context: SuggestionContext) -> List[MethodCandidate]:
    """Candidates from every matching rule, in rule order."""
    candidates: List[MethodCandidate] = []
    for rule in rules:
        if not rule.applies(context):
            continue
        candidates.extend(rule.build(context))
        if rule.terminal:
            break
    return candidates


def rank_candidates(candidates: List[MethodCandidate], context: SuggestionContext) -> Suggestion:
    """Best candidate per method, highest confidence first; falls back to the default."""
    best: Dict[str, MethodCandidate] = {}
    for c in candidates:
        if c.method not in best or c.confidence > best[c.method].confidence:
            best[c.method] = c
    ranked = sorted(best.values(), key=lambda c: c.confidence, reverse=True)
    if not ranked:
        ranked = [DEFAULT_CANDIDATE]
    return Suggestion(recommended=ranked[0], alternatives=ranked[1:], context=context)
