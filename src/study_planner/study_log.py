"""Study log storage.

Every log mutation is mirrored on the active study sequence: creating a log
adds its duration to the attributed item, updating applies the difference
(or moves the whole duration when the log changes item or subject), and
deleting subtracts it. The sum of durations attributed to an item therefore
always equals the item's accumulated time.
"""
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Optional

from loguru import logger

from study_planner.db import get_connection
from study_planner.errors import StudyLogError
from study_planner.models import StudyLogEntry
from study_planner.sequence import SequenceState
from study_planner.study import load_tracker, record_study_day, save_sequence_state

_COLUMNS = (
    "id", "subject_id", "topic_id", "date", "duration", "start_page", "end_page",
    "questions_total", "questions_correct", "source", "sequence_item_index",
)


def new_log_entry(
    subject_id: str,
    topic_id: str,
    duration: int,
    source: str = "manual",
    sequence_item_index: Optional[int] = None,
    **details,
) -> StudyLogEntry:
    """Build an entry stamped with a fresh id and the current time."""
    return StudyLogEntry(
        id=str(uuid.uuid4()),
        subject_id=subject_id,
        topic_id=topic_id,
        date=datetime.now().isoformat(),
        duration=duration,
        source=source,
        sequence_item_index=sequence_item_index,
        **details,
    )


def _validate(entry: StudyLogEntry) -> None:
    if entry.duration <= 0:
        raise StudyLogError(f"Study log duration must be positive, got {entry.duration}")


def _entry_from_row(row) -> StudyLogEntry:
    return StudyLogEntry(**{col: row[col] for col in _COLUMNS})


def get_study_log(db_path: str, log_id: str) -> Optional[StudyLogEntry]:
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM study_log WHERE id = ?", (log_id,)).fetchone()
    conn.close()
    return _entry_from_row(row) if row else None


def load_study_logs(db_path: str, limit: Optional[int] = None) -> list[StudyLogEntry]:
    """Logs, newest first."""
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT * FROM study_log ORDER BY date DESC LIMIT ?", (limit if limit is not None else -1,)
    ).fetchall()
    conn.close()
    return [_entry_from_row(r) for r in rows]


def append_study_log(db_path: str, entry: StudyLogEntry) -> SequenceState:
    """Store a log entry, credit it to the active sequence, and update the streak."""
    _validate(entry)
    conn = get_connection(db_path)
    conn.execute(
        f"INSERT INTO study_log ({', '.join(_COLUMNS)}) VALUES ({', '.join('?' * len(_COLUMNS))})",
        tuple(getattr(entry, col) for col in _COLUMNS),
    )
    conn.commit()
    conn.close()
    tracker = load_tracker(db_path)
    state = tracker.advance_on_log(entry)
    save_sequence_state(db_path, state)
    record_study_day(db_path, datetime.fromisoformat(entry.date).date())
    logger.info(f"Logged {entry.duration} min for subject {entry.subject_id} ({entry.source})")
    return state


def update_study_log(db_path: str, log_id: str, **patch) -> Optional[StudyLogEntry]:
    old = get_study_log(db_path, log_id)
    if old is None:
        return None
    unknown = set(patch) - set(_COLUMNS[1:])
    if unknown:
        raise ValueError(f"Unknown study log fields: {', '.join(sorted(unknown))}")
    new = replace(old, **patch)
    _validate(new)
    conn = get_connection(db_path)
    conn.execute(
        f"UPDATE study_log SET {', '.join(f'{col} = ?' for col in _COLUMNS[1:])} WHERE id = ?",
        (*(getattr(new, col) for col in _COLUMNS[1:]), log_id),
    )
    conn.commit()
    conn.close()
    tracker = load_tracker(db_path)
    save_sequence_state(db_path, tracker.reverse_on_log_edit(old, new))
    return new


def delete_study_log(db_path: str, log_id: str) -> bool:
    entry = get_study_log(db_path, log_id)
    if entry is None:
        return False
    conn = get_connection(db_path)
    conn.execute("DELETE FROM study_log WHERE id = ?", (log_id,))
    conn.commit()
    conn.close()
    tracker = load_tracker(db_path)
    save_sequence_state(db_path, tracker.reverse_on_log_delete(entry))
    return True
