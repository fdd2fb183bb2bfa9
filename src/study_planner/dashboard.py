"""Study statistics for the dashboard."""
from datetime import date, timedelta
from typing import Optional

from study_planner.db import get_connection
from study_planner.flashcards import get_review_stats
from study_planner.study import get_streak, load_sequence_state


def get_sequence_progress(db_path: str) -> dict:
    state = load_sequence_state(db_path)
    if state.sequence is None:
        return {"name": None, "completed": 0, "total": 0, "percent": 0.0, "current_subject_id": None}
    total = len(state.sequence)
    completed = min(state.index, total)
    return {
        "name": state.sequence.name,
        "completed": completed,
        "total": total,
        "percent": round(completed / total * 100, 1) if total else 0.0,
        "current_subject_id": state.current_subject_id,
    }


def get_minutes_by_subject(db_path: str, since: Optional[date] = None) -> list[dict]:
    """Minutes studied per subject, most studied first."""
    conn = get_connection(db_path)
    rows = conn.execute(
        """SELECT s.id, s.name, s.color, COALESCE(SUM(l.duration), 0) as minutes
        FROM subjects s LEFT JOIN study_log l
            ON l.subject_id = s.id AND (? IS NULL OR l.date >= ?)
        GROUP BY s.id
        ORDER BY minutes DESC, s.name""",
        (since.isoformat() if since else None, since.isoformat() if since else None),
    ).fetchall()
    conn.close()
    return [{"subject_id": r["id"], "name": r["name"], "color": r["color"], "minutes": r["minutes"]} for r in rows]


def get_topic_completion(db_path: str) -> tuple[int, int]:
    conn = get_connection(db_path)
    row = conn.execute("SELECT COUNT(*) as t, SUM(is_completed) as c FROM topics").fetchone()
    conn.close()
    return (row["c"] or 0, row["t"])


def get_study_stats(db_path: str) -> dict:
    conn = get_connection(db_path)
    total = conn.execute("SELECT COALESCE(SUM(duration), 0) FROM study_log").fetchone()[0]
    sessions = conn.execute("SELECT COUNT(*) FROM study_log").fetchone()[0]
    pomodoros = conn.execute("SELECT COUNT(*) FROM study_log WHERE source = 'pomodoro'").fetchone()[0]
    week_start = (date.today() - timedelta(days=6)).isoformat()
    week = conn.execute(
        "SELECT COALESCE(SUM(duration), 0) FROM study_log WHERE date >= ?", (week_start,)
    ).fetchone()[0]
    conn.close()
    completed_topics, total_topics = get_topic_completion(db_path)
    reviews = get_review_stats(db_path)
    return {
        "total_minutes": total,
        "week_minutes": week,
        "sessions_logged": sessions,
        "pomodoro_sessions": pomodoros,
        "streak": get_streak(db_path),
        "topics_completed": completed_topics,
        "topics_total": total_topics,
        "due_cards": reviews["due_cards"],
        "retention": reviews["retention"],
    }
