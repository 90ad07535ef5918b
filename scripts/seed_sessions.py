"""
Session Seeder — fills a local session store with a realistic synthetic
history so the analytics endpoints have something to show.

Usage:
    python scripts/seed_sessions.py                     # 30 days for user 1
    python scripts/seed_sessions.py --days 90 --user 2
    python scripts/seed_sessions.py --profile pomodoro   # mostly focus sessions
    python scripts/seed_sessions.py --db /tmp/demo.db
"""

from __future__ import annotations

import argparse
import random
from datetime import datetime, timedelta
from pathlib import Path

from studyflow.config import config
from studyflow.store.sessions import SessionStore

SUBJECTS = ["Algebra", "Reading", "Chemistry", "Vocabulary"]

# profile → probability a study block is a pomodoro cycle
PROFILES = {
    "mixed": 0.5,
    "pomodoro": 0.85,
    "tracker": 0.15,
}


def seed_timed(store: SessionStore, user_id: int, start: datetime, subject_id: int) -> int:
    minutes = random.choice([30, 45, 60, 90, 120, 150])
    store.add_timed_session(
        user_id,
        started_at=start,
        ended_at=start + timedelta(minutes=minutes),
        duration_minutes=minutes,
        subject_area_id=subject_id,
        study_comment=random.choice([None, "past paper", "review notes", "flashcards"]),
    )
    return minutes


def seed_pomodoro_cycle(store: SessionStore, user_id: int, start: datetime, subject_id: int) -> int:
    """Four focus intervals with short breaks and a long break at the end."""
    t = start
    total = 0
    for i in range(4):
        interrupted = random.random() < 0.2
        focus = random.randint(8, 22) if interrupted else 25
        store.add_pomodoro_session(
            user_id, started_at=t, session_type="focus", planned_duration=25,
            actual_duration=focus, completed_at=t + timedelta(minutes=focus),
            is_completed=True, was_interrupted=interrupted, subject_area_id=subject_id,
        )
        t += timedelta(minutes=focus)
        total += focus
        kind, length = ("long_break", 15) if i == 3 else ("short_break", 5)
        store.add_pomodoro_session(
            user_id, started_at=t, session_type=kind, planned_duration=length,
            actual_duration=length, completed_at=t + timedelta(minutes=length),
            is_completed=True,
        )
        t += timedelta(minutes=length)
    return total


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the studyflow session store")
    parser.add_argument("--user", type=int, default=1)
    parser.add_argument("--days", type=int, default=30)
    parser.add_argument("--profile", choices=sorted(PROFILES), default="mixed")
    parser.add_argument("--db", type=Path, default=config.sessions_db_path)
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    args = parser.parse_args()

    random.seed(args.seed)
    store = SessionStore(args.db)
    exam_id = store.add_exam_type(args.user, "Entrance Exam")
    subject_ids = [store.add_subject_area(args.user, name, exam_id) for name in SUBJECTS]

    pomodoro_share = PROFILES[args.profile]
    today = datetime.now().replace(minute=0, second=0, microsecond=0)
    total = 0
    for offset in range(args.days, 0, -1):
        if random.random() < 0.2:
            continue  # rest day
        day = today - timedelta(days=offset)
        for hour in random.sample([8, 10, 14, 16, 20, 22], k=random.randint(1, 3)):
            start = day.replace(hour=hour)
            subject_id = random.choice(subject_ids)
            if random.random() < pomodoro_share:
                total += seed_pomodoro_cycle(store, args.user, start, subject_id)
            else:
                total += seed_timed(store, args.user, start, subject_id)

    print(f"Seeded {args.days} days for user {args.user} → {args.db} ({total} study minutes)")


if __name__ == "__main__":
    main()
