"""
Session Store — SQLite-backed storage for the two kinds of study records.

Timed sessions are free-running intervals started and stopped by the user;
pomodoro sessions are fixed-plan focus/break intervals. Every read is scoped
to a single user. The analytics engine only ever reads from this store.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass
class TimedSessionRow:
    id: int
    user_id: int
    subject_area_id: Optional[int]
    subject_area_name: Optional[str]
    exam_type_name: Optional[str]
    started_at: Optional[datetime]
    ended_at: Optional[datetime]
    duration_minutes: Optional[int]
    study_comment: Optional[str] = None
    invalid_fields: Tuple[str, ...] = ()   # timestamp columns that failed to parse


@dataclass
class PomodoroSessionRow:
    id: int
    user_id: int
    subject_area_id: Optional[int]
    subject_area_name: Optional[str]
    exam_type_name: Optional[str]
    session_type: str                # focus | short_break | long_break
    planned_duration: int
    actual_duration: Optional[int]
    started_at: Optional[datetime]
    completed_at: Optional[datetime]
    is_completed: bool
    was_interrupted: bool
    notes: Optional[str] = None
    invalid_fields: Tuple[str, ...] = ()


class SessionStore:
    """Thread-safe SQLite store; a fresh connection is opened per operation."""

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._init_db()

    # ------------------------------------------------------------------
    # Write: taxonomy
    # ------------------------------------------------------------------

    def add_exam_type(self, user_id: int, name: str) -> int:
        with self._conn() as conn:
            cur = conn.execute(
                "INSERT INTO exam_types (user_id, name) VALUES (?, ?)",
                (user_id, name),
            )
            return cur.lastrowid  # type: ignore[return-value]

    def add_subject_area(self, user_id: int, name: str, exam_type_id: Optional[int] = None) -> int:
        with self._conn() as conn:
            cur = conn.execute(
                "INSERT INTO subject_areas (user_id, exam_type_id, name) VALUES (?, ?, ?)",
                (user_id, exam_type_id, name),
            )
            return cur.lastrowid  # type: ignore[return-value]

    # ------------------------------------------------------------------
    # Write: sessions
    # ------------------------------------------------------------------

    def add_timed_session(
        self,
        user_id: int,
        started_at: Optional[datetime],
        duration_minutes: Optional[int],
        ended_at: Optional[datetime] = None,
        subject_area_id: Optional[int] = None,
        study_comment: Optional[str] = None,
    ) -> int:
        with self._conn() as conn:
            cur = conn.execute(
                """
                INSERT INTO study_sessions
                    (user_id, subject_area_id, started_at, ended_at,
                     duration_minutes, study_comment)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    user_id,
                    subject_area_id,
                    _to_db(started_at),
                    _to_db(ended_at),
                    duration_minutes,
                    study_comment,
                ),
            )
            return cur.lastrowid  # type: ignore[return-value]

    def add_pomodoro_session(
        self,
        user_id: int,
        started_at: Optional[datetime],
        session_type: str = "focus",
        planned_duration: int = 25,
        actual_duration: Optional[int] = None,
        completed_at: Optional[datetime] = None,
        is_completed: bool = False,
        was_interrupted: bool = False,
        subject_area_id: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> int:
        with self._conn() as conn:
            cur = conn.execute(
                """
                INSERT INTO pomodoro_sessions
                    (user_id, subject_area_id, session_type, planned_duration,
                     actual_duration, started_at, completed_at, is_completed,
                     was_interrupted, notes)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    user_id,
                    subject_area_id,
                    session_type,
                    planned_duration,
                    actual_duration,
                    _to_db(started_at),
                    _to_db(completed_at),
                    int(is_completed),
                    int(was_interrupted),
                    notes,
                ),
            )
            return cur.lastrowid  # type: ignore[return-value]

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def timed_sessions(
        self,
        user_id: int,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        subject_area_id: Optional[int] = None,
    ) -> List[TimedSessionRow]:
        where, params = _window_clause("s", user_id, since, until, subject_area_id)
        with self._conn() as conn:
            rows = conn.execute(
                f"""
                SELECT s.id, s.user_id, s.subject_area_id, sa.name, et.name,
                       s.started_at, s.ended_at, s.duration_minutes, s.study_comment
                FROM study_sessions s
                LEFT JOIN subject_areas sa ON sa.id = s.subject_area_id
                LEFT JOIN exam_types et ON et.id = sa.exam_type_id
                {where}
                ORDER BY s.id
                """,
                params,
            ).fetchall()

        sessions: List[TimedSessionRow] = []
        for r in rows:
            times, invalid = _parse_times(started_at=r[5], ended_at=r[6])
            sessions.append(TimedSessionRow(
                id=r[0],
                user_id=r[1],
                subject_area_id=r[2],
                subject_area_name=r[3],
                exam_type_name=r[4],
                duration_minutes=r[7],
                study_comment=r[8],
                invalid_fields=invalid,
                **times,
            ))
        return sessions

    def pomodoro_sessions(
        self,
        user_id: int,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        subject_area_id: Optional[int] = None,
    ) -> List[PomodoroSessionRow]:
        where, params = _window_clause("p", user_id, since, until, subject_area_id)
        with self._conn() as conn:
            rows = conn.execute(
                f"""
                SELECT p.id, p.user_id, p.subject_area_id, sa.name, et.name,
                       p.session_type, p.planned_duration, p.actual_duration,
                       p.started_at, p.completed_at, p.is_completed,
                       p.was_interrupted, p.notes
                FROM pomodoro_sessions p
                LEFT JOIN subject_areas sa ON sa.id = p.subject_area_id
                LEFT JOIN exam_types et ON et.id = sa.exam_type_id
                {where}
                ORDER BY p.id
                """,
                params,
            ).fetchall()

        sessions: List[PomodoroSessionRow] = []
        for r in rows:
            times, invalid = _parse_times(started_at=r[8], completed_at=r[9])
            sessions.append(PomodoroSessionRow(
                id=r[0],
                user_id=r[1],
                subject_area_id=r[2],
                subject_area_name=r[3],
                exam_type_name=r[4],
                session_type=r[5],
                planned_duration=r[6],
                actual_duration=r[7],
                is_completed=bool(r[10]),
                was_interrupted=bool(r[11]),
                notes=r[12],
                invalid_fields=invalid,
                **times,
            ))
        return sessions

    def has_activity(self, user_id: int) -> bool:
        """True when the user has ever recorded a session of either kind."""
        with self._conn() as conn:
            row = conn.execute(
                """
                SELECT EXISTS(SELECT 1 FROM study_sessions WHERE user_id = ?)
                    OR EXISTS(SELECT 1 FROM pomodoro_sessions WHERE user_id = ?)
                """,
                (user_id, user_id),
            ).fetchone()
        return bool(row[0])

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _init_db(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._conn() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS exam_types (
                    id       INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id  INTEGER NOT NULL,
                    name     TEXT    NOT NULL
                );
                CREATE TABLE IF NOT EXISTS subject_areas (
                    id            INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id       INTEGER NOT NULL,
                    exam_type_id  INTEGER REFERENCES exam_types(id),
                    name          TEXT    NOT NULL
                );
                CREATE TABLE IF NOT EXISTS study_sessions (
                    id                INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id           INTEGER NOT NULL,
                    subject_area_id   INTEGER REFERENCES subject_areas(id),
                    started_at        TEXT,
                    ended_at          TEXT,
                    duration_minutes  INTEGER,
                    study_comment     TEXT
                );
                CREATE TABLE IF NOT EXISTS pomodoro_sessions (
                    id                INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id           INTEGER NOT NULL,
                    subject_area_id   INTEGER REFERENCES subject_areas(id),
                    session_type      TEXT    NOT NULL DEFAULT 'focus',
                    planned_duration  INTEGER NOT NULL DEFAULT 25,
                    actual_duration   INTEGER,
                    started_at        TEXT,
                    completed_at      TEXT,
                    is_completed      INTEGER NOT NULL DEFAULT 0,
                    was_interrupted   INTEGER NOT NULL DEFAULT 0,
                    notes             TEXT
                );
                CREATE INDEX IF NOT EXISTS idx_study_user_started
                    ON study_sessions(user_id, started_at);
                CREATE INDEX IF NOT EXISTS idx_pomodoro_user_started
                    ON pomodoro_sessions(user_id, started_at);
                """
            )
        logger.debug("session store ready at %s", self.db_path)

    @contextmanager
    def _conn(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _to_db(value: Optional[datetime]) -> Optional[str]:
    # Fixed-width ISO text so that string comparison in SQL orders correctly
    return value.isoformat(sep=" ", timespec="microseconds") if value else None


def _from_db(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def _parse_times(**columns: Optional[str]) -> Tuple[Dict[str, Optional[datetime]], Tuple[str, ...]]:
    """Parse each timestamp column; unparseable ones come back as None and are named."""
    parsed: Dict[str, Optional[datetime]] = {}
    invalid = []
    for name, value in columns.items():
        try:
            parsed[name] = _from_db(value)
        except (TypeError, ValueError):
            logger.debug("unparseable %s value %r", name, value)
            parsed[name] = None
            invalid.append(name)
    return parsed, tuple(invalid)


def _window_clause(
    alias: str,
    user_id: int,
    since: Optional[datetime],
    until: Optional[datetime],
    subject_area_id: Optional[int],
) -> tuple[str, list]:
    clauses = [f"{alias}.user_id = ?"]
    params: list = [user_id]

    if since is not None:
        clauses.append(f"{alias}.started_at >= ?")
        params.append(_to_db(since))
    if until is not None:
        clauses.append(f"{alias}.started_at <= ?")
        params.append(_to_db(until))
    if subject_area_id is not None:
        clauses.append(f"{alias}.subject_area_id = ?")
        params.append(subject_area_id)

    return "WHERE " + " AND ".join(clauses), params
