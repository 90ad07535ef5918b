"""
Comparison Engine — statistics for two periods side by side with
"period1 minus period2" deltas.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import List

from .history import Period
from .rules import IMPROVEMENT_RULES, ImprovementArea
from .stats import StatisticsAggregator, UnifiedStats


@dataclass
class StatsChanges:
    total_study_time_change: int
    session_count_change: int
    average_session_change: float
    study_days_change: int


@dataclass
class Comparison:
    period1: UnifiedStats
    period2: UnifiedStats
    changes: StatsChanges
    improvement_areas: List[ImprovementArea]


class ComparisonEngine:

    def __init__(self, aggregator: StatisticsAggregator):
        self._aggregator = aggregator

    def compare(
        self,
        user_id: int,
        period1_start: date,
        period1_end: date,
        period2_start: date,
        period2_end: date,
    ) -> Comparison:
        p1 = self._aggregator.stats_for(user_id, Period(period1_start, period1_end))
        p2 = self._aggregator.stats_for(user_id, Period(period2_start, period2_end))
        return compare_stats(p1, p2)


def compare_stats(p1: UnifiedStats, p2: UnifiedStats) -> Comparison:
    o1, o2 = p1.overview, p2.overview
    return Comparison(
        period1=p1,
        period2=p2,
        changes=StatsChanges(
            total_study_time_change=o1.total_study_time - o2.total_study_time,
            session_count_change=o1.total_sessions - o2.total_sessions,
            average_session_change=o1.average_session_length - o2.average_session_length,
            study_days_change=o1.study_days - o2.study_days,
        ),
        improvement_areas=[
            ImprovementArea(area=rule.area, message=rule.message, severity=rule.severity)
            for rule in IMPROVEMENT_RULES
            if rule.applies(p1, p2)
        ],
    )
