"""Settings, streak, and study sequence persistence."""
import json
import uuid
from dataclasses import asdict
from datetime import date, datetime, timedelta
from typing import Optional

from loguru import logger

from study_planner.db import get_connection
from study_planner.fsrs import DEFAULT_PARAMETERS, FSRSParameters
from study_planner.models import PomodoroSettings, PomodoroTask, StudySequence, StudySequenceItem
from study_planner.sequence import SequenceState, StudySequenceTracker, zero_progress

DEFAULT_POMODORO_SETTINGS = PomodoroSettings(
    tasks=(
        PomodoroTask(id="task-1", name="Questions", duration=30 * 60),
        PomodoroTask(id="task-2", name="Flashcards", duration=10 * 60),
        PomodoroTask(id="task-3", name="Reading", duration=20 * 60),
    ),
    short_break_duration=5 * 60,
    long_break_duration=15 * 60,
    cycles_until_long_break=4,
)


def get_setting(db_path: str, key: str, default: Optional[str] = None) -> Optional[str]:
    conn = get_connection(db_path)
    row = conn.execute("SELECT value FROM user_settings WHERE key = ?", (key,)).fetchone()
    conn.close()
    return row["value"] if row else default


def set_setting(db_path: str, key: str, value: str) -> None:
    conn = get_connection(db_path)
    conn.execute(
        "INSERT INTO user_settings (key, value) VALUES (?, ?) ON CONFLICT(key) DO UPDATE SET value=?",
        (key, value, value),
    )
    conn.commit()
    conn.close()


# --- Pomodoro settings ---


def load_pomodoro_settings(db_path: str) -> PomodoroSettings:
    raw = get_setting(db_path, "pomodoro_settings")
    if not raw:
        return DEFAULT_POMODORO_SETTINGS
    data = json.loads(raw)
    return PomodoroSettings(
        tasks=tuple(PomodoroTask(**task) for task in data.get("tasks", [])),
        short_break_duration=data["short_break_duration"],
        long_break_duration=data["long_break_duration"],
        cycles_until_long_break=max(1, data["cycles_until_long_break"]),
    )


def save_pomodoro_settings(db_path: str, settings: PomodoroSettings) -> None:
    if settings.cycles_until_long_break < 1:
        raise ValueError("cycles_until_long_break must be at least 1")
    set_setting(db_path, "pomodoro_settings", json.dumps(asdict(settings)))


def load_fsrs_parameters(db_path: str) -> FSRSParameters:
    return FSRSParameters(
        request_retention=float(get_setting(db_path, "request_retention", str(DEFAULT_PARAMETERS.request_retention))),
        maximum_interval=int(get_setting(db_path, "maximum_interval", str(DEFAULT_PARAMETERS.maximum_interval))),
    )


# --- Streak ---


def next_streak(last_studied: Optional[str], streak: int, today: date) -> tuple[int, str]:
    """Streak after studying on ``today``. Returns (streak, last studied date)."""
    if last_studied:
        last = date.fromisoformat(last_studied[:10])
        if last == today:
            return streak, last_studied
        if last == today - timedelta(days=1):
            return streak + 1, today.isoformat()
    return 1, today.isoformat()


def get_streak(db_path: str) -> int:
    """Current streak, or 0 if the last study day is older than yesterday."""
    last = get_setting(db_path, "last_studied_date")
    if not last:
        return 0
    if date.fromisoformat(last[:10]) < date.today() - timedelta(days=1):
        return 0
    return int(get_setting(db_path, "streak", "0"))


def record_study_day(db_path: str, today: Optional[date] = None) -> int:
    today = today or date.today()
    streak, last = next_streak(
        get_setting(db_path, "last_studied_date"),
        int(get_setting(db_path, "streak", "0")),
        today,
    )
    set_setting(db_path, "streak", str(streak))
    set_setting(db_path, "last_studied_date", last)
    return streak


# --- Study sequence ---


def _sequence_from_row(row) -> StudySequence:
    items = tuple(StudySequenceItem(**item) for item in json.loads(row["items"]))
    return StudySequence(id=row["id"], name=row["name"], items=items)


def _items_json(sequence: StudySequence) -> str:
    return json.dumps([asdict(item) for item in sequence.items])


def new_sequence(name: str, subject_ids: list[str]) -> StudySequence:
    return StudySequence(
        id=str(uuid.uuid4()),
        name=name,
        items=tuple(StudySequenceItem(subject_id=sid) for sid in subject_ids),
    )


def load_sequence_state(db_path: str) -> SequenceState:
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM study_sequences WHERE is_active = 1").fetchone()
    conn.close()
    if not row:
        return SequenceState()
    index = int(get_setting(db_path, "sequence_index", "0"))
    sequence = _sequence_from_row(row)
    return SequenceState(sequence=sequence, index=max(0, min(index, len(sequence))))


def save_sequence_state(db_path: str, state: SequenceState) -> None:
    conn = get_connection(db_path)
    active_id = state.sequence.id if state.sequence is not None else None
    # Only one active sequence; inactive rows are saved templates.
    conn.execute("DELETE FROM study_sequences WHERE is_active = 1 AND id IS NOT ?", (active_id,))
    if state.sequence is not None:
        seq = state.sequence
        conn.execute(
            """INSERT INTO study_sequences (id, name, items, is_active) VALUES (?, ?, ?, 1)
            ON CONFLICT(id) DO UPDATE SET name=excluded.name, items=excluded.items, is_active=1""",
            (seq.id, seq.name, _items_json(seq)),
        )
    conn.commit()
    conn.close()
    set_setting(db_path, "sequence_index", str(state.index))


def delete_active_sequence(db_path: str) -> None:
    conn = get_connection(db_path)
    conn.execute("DELETE FROM study_sequences WHERE is_active = 1")
    conn.commit()
    conn.close()
    set_setting(db_path, "sequence_index", "0")


def get_subject_goals(db_path: str) -> dict[str, int]:
    conn = get_connection(db_path)
    rows = conn.execute("SELECT id, study_duration FROM subjects").fetchall()
    conn.close()
    return {r["id"]: r["study_duration"] or 0 for r in rows}


def load_tracker(db_path: str) -> StudySequenceTracker:
    return StudySequenceTracker(load_sequence_state(db_path), get_subject_goals(db_path))


def replace_active_sequence(db_path: str, sequence: StudySequence) -> SequenceState:
    tracker = load_tracker(db_path)
    state = tracker.replace_sequence(sequence)
    save_sequence_state(db_path, state)
    return state


def reset_sequence_progress(db_path: str) -> SequenceState:
    tracker = load_tracker(db_path)
    state = tracker.reset_progress()
    save_sequence_state(db_path, state)
    return state


def advance_sequence(db_path: str) -> SequenceState:
    tracker = load_tracker(db_path)
    state = tracker.advance()
    save_sequence_state(db_path, state)
    return state


# --- Saved sequences ---


def save_sequence_as(db_path: str, name: str, sequence: StudySequence) -> StudySequence:
    saved = StudySequence(id=str(uuid.uuid4()), name=name, items=sequence.items)
    conn = get_connection(db_path)
    conn.execute(
        "INSERT INTO study_sequences (id, name, items, is_active, saved_at) VALUES (?, ?, ?, 0, ?)",
        (saved.id, saved.name, _items_json(saved), datetime.now().isoformat()),
    )
    conn.commit()
    conn.close()
    return saved


def list_saved_sequences(db_path: str) -> list[StudySequence]:
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT * FROM study_sequences WHERE is_active = 0 ORDER BY saved_at"
    ).fetchall()
    conn.close()
    return [_sequence_from_row(r) for r in rows]


def load_saved_sequence(db_path: str, sequence_id: str) -> Optional[SequenceState]:
    """Make a saved sequence the active one, with progress reset."""
    conn = get_connection(db_path)
    row = conn.execute(
        "SELECT * FROM study_sequences WHERE id = ? AND is_active = 0", (sequence_id,)
    ).fetchone()
    conn.close()
    if not row:
        logger.debug(f"No saved sequence {sequence_id}")
        return None
    saved = _sequence_from_row(row)
    # The active copy gets its own id so the saved template stays intact.
    active = zero_progress(StudySequence(id=str(uuid.uuid4()), name=saved.name, items=saved.items))
    return replace_active_sequence(db_path, active)


def delete_saved_sequence(db_path: str, sequence_id: str) -> None:
    conn = get_connection(db_path)
    conn.execute("DELETE FROM study_sequences WHERE id = ? AND is_active = 0", (sequence_id,))
    conn.commit()
    conn.close()
