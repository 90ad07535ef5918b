"""
Record Normalizer — converts the two stored session kinds into one
canonical ActivityRecord shape.

ActivityType is the discriminant: everything downstream of this module
branches on `record.type`, never on which fields a record happens to carry.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Union

from ..errors import MalformedRecordError
from ..store.sessions import PomodoroSessionRow, TimedSessionRow


class ActivityType(str, Enum):
    TIME_TRACKING = "time_tracking"
    POMODORO = "pomodoro"


class RecordStatus(str, Enum):
    COMPLETED = "completed"
    ACTIVE = "active"


class PomodoroKind(str, Enum):
    FOCUS = "focus"
    SHORT_BREAK = "short_break"
    LONG_BREAK = "long_break"


@dataclass(frozen=True)
class ActivityRecord:
    id: int
    type: ActivityType
    subject_area_id: Optional[int]
    subject_area_name: Optional[str]
    exam_type_name: Optional[str]
    duration_minutes: int
    started_at: datetime
    ended_at: Optional[datetime]
    status: RecordStatus
    was_interrupted: bool = False
    session_details: Dict[str, Any] = field(default_factory=dict)

    @property
    def session_type(self) -> Optional[str]:
        return self.session_details.get("session_type")

    @property
    def is_break(self) -> bool:
        return self.type == ActivityType.POMODORO and self.session_type != PomodoroKind.FOCUS.value

    @property
    def counts_as_study(self) -> bool:
        """Completed, non-break records are the ones statistics are built from."""
        return self.status == RecordStatus.COMPLETED and not self.is_break


RawSession = Union[TimedSessionRow, PomodoroSessionRow]


def normalize_timed_session(raw: TimedSessionRow) -> ActivityRecord:
    kind = ActivityType.TIME_TRACKING.value
    if raw.invalid_fields:
        raise MalformedRecordError(f"unparseable {', '.join(raw.invalid_fields)}", kind, raw.id)
    if raw.started_at is None:
        raise MalformedRecordError("timed session has no started_at", kind, raw.id)
    duration = raw.duration_minutes or 0
    if duration < 0:
        raise MalformedRecordError(f"negative duration {duration}", kind, raw.id)

    return ActivityRecord(
        id=raw.id,
        type=ActivityType.TIME_TRACKING,
        subject_area_id=raw.subject_area_id,
        subject_area_name=raw.subject_area_name,
        exam_type_name=raw.exam_type_name,
        duration_minutes=duration,
        started_at=raw.started_at,
        ended_at=raw.ended_at,
        status=RecordStatus.COMPLETED if raw.ended_at else RecordStatus.ACTIVE,
        was_interrupted=False,
        session_details={"comment": raw.study_comment},
    )


def normalize_pomodoro_session(raw: PomodoroSessionRow) -> ActivityRecord:
    kind = ActivityType.POMODORO.value
    if raw.invalid_fields:
        raise MalformedRecordError(f"unparseable {', '.join(raw.invalid_fields)}", kind, raw.id)
    if raw.started_at is None:
        raise MalformedRecordError("pomodoro session has no started_at", kind, raw.id)
    try:
        session_type = PomodoroKind(raw.session_type)
    except ValueError:
        raise MalformedRecordError(
            f"unknown session_type {raw.session_type!r}", kind, raw.id
        ) from None
    duration = raw.actual_duration if raw.actual_duration is not None else 0
    if duration < 0:
        raise MalformedRecordError(f"negative duration {duration}", kind, raw.id)

    # Breaks are not study time and never belong to a subject
    is_focus = session_type == PomodoroKind.FOCUS
    return ActivityRecord(
        id=raw.id,
        type=ActivityType.POMODORO,
        subject_area_id=raw.subject_area_id if is_focus else None,
        subject_area_name=raw.subject_area_name if is_focus else None,
        exam_type_name=raw.exam_type_name if is_focus else None,
        duration_minutes=duration,
        started_at=raw.started_at,
        ended_at=raw.completed_at,
        status=RecordStatus.COMPLETED if raw.is_completed else RecordStatus.ACTIVE,
        was_interrupted=raw.was_interrupted,
        session_details={
            "session_type": session_type.value,
            "planned_duration": raw.planned_duration,
            "actual_duration": raw.actual_duration,
            "notes": raw.notes,
        },
    )


def normalize(raw: RawSession) -> ActivityRecord:
    if isinstance(raw, TimedSessionRow):
        return normalize_timed_session(raw)
    if isinstance(raw, PomodoroSessionRow):
        return normalize_pomodoro_session(raw)
    raise TypeError(f"cannot normalize {type(raw).__name__}")
