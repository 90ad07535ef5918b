"""
History Assembler — fetches both session kinds for a user and date window,
normalizes them and merges them into a single most-recent-first stream.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from itertools import islice
from typing import Iterable, Iterator, List, Optional, Tuple

from ..config import config
from ..errors import ContractViolationError, MalformedRecordError
from ..store.sessions import SessionStore
from .records import ActivityRecord, RawSession, normalize

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Period:
    """Inclusive calendar-day window; a None bound is open on that side."""
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    def __post_init__(self):
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ContractViolationError(
                f"start date {self.start_date} is after end date {self.end_date}"
            )

    @classmethod
    def trailing(cls, days: int, today: date, offset: int = 0) -> "Period":
        """The `days` calendar days ending `offset` days before `today`."""
        end = today - timedelta(days=offset)
        return cls(start_date=end - timedelta(days=days - 1), end_date=end)

    def bounds(self) -> Tuple[Optional[datetime], Optional[datetime]]:
        since = datetime.combine(self.start_date, time.min) if self.start_date else None
        until = datetime.combine(self.end_date, time.max) if self.end_date else None
        return since, until


class HistoryAssembler:
    """Read-only view over a SessionStore; every call re-queries the store."""

    def __init__(self, store: SessionStore):
        self._store = store

    def get_unified_history(
        self,
        user_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> Iterator[ActivityRecord]:
        """
        Return the user's merged history, newest first, truncated to `limit`.

        Arguments are checked eagerly; the returned iterator is single-use.
        """
        if limit is None:
            limit = config.history_default_limit
        if not 1 <= limit <= config.history_max_limit:
            raise ContractViolationError(
                f"limit must be between 1 and {config.history_max_limit}, got {limit}"
            )
        period = Period(start_date, end_date)
        return islice(iter(self.merged_records(user_id, period)), limit)

    def merged_records(
        self,
        user_id: int,
        period: Period = Period(),
        subject_area_id: Optional[int] = None,
    ) -> List[ActivityRecord]:
        """Every record of both kinds in `period`, sorted newest first."""
        _check_user(user_id)
        since, until = period.bounds()
        timed = self._store.timed_sessions(user_id, since, until, subject_area_id)
        pomodoro = self._store.pomodoro_sessions(user_id, since, until, subject_area_id)

        records = list(_normalize_all(timed)) + list(_normalize_all(pomodoro))
        return sort_newest_first(records)

    def has_activity(self, user_id: int) -> bool:
        _check_user(user_id)
        return self._store.has_activity(user_id)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def sort_newest_first(records: Iterable[ActivityRecord]) -> List[ActivityRecord]:
    # Two stable passes: ties on started_at keep (type, id) ascending order
    ordered = sorted(records, key=lambda r: (r.type.value, r.id))
    ordered.sort(key=lambda r: r.started_at, reverse=True)
    return ordered


def _normalize_all(rows: Iterable[RawSession]) -> Iterator[ActivityRecord]:
    for row in rows:
        try:
            yield normalize(row)
        except MalformedRecordError as e:
            logger.warning("skipping malformed %s record id=%s: %s", e.kind, e.record_id, e)


def _check_user(user_id: int) -> None:
    if user_id < 1:
        raise ContractViolationError(f"invalid user id {user_id}")
