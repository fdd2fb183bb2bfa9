"""Flashcard storage and review sessions with FSRS scheduling."""
from dataclasses import fields
from datetime import datetime
from typing import Optional

from study_planner.db import get_connection
from study_planner.fsrs import compute_next_review, create_initial_flashcard, validate_rating
from study_planner.models import Flashcard
from study_planner.study import load_fsrs_parameters

_DATE_FIELDS = ("created_at", "last_review", "next_review")
_COLUMNS = tuple(f.name for f in fields(Flashcard) if f.name != "id")


def _card_from_row(row) -> Flashcard:
    values = {col: row[col] for col in ("id", *_COLUMNS)}
    for name in _DATE_FIELDS:
        values[name] = datetime.fromisoformat(values[name])
    return Flashcard(**values)


def _row_values(card: Flashcard) -> tuple:
    return tuple(
        getattr(card, col).isoformat() if col in _DATE_FIELDS else getattr(card, col)
        for col in _COLUMNS
    )


def add_flashcard(db_path: str, question: str, answer: str, user_id: str = "local") -> Flashcard:
    card = create_initial_flashcard(user_id, question, answer, params=load_fsrs_parameters(db_path))
    conn = get_connection(db_path)
    cursor = conn.execute(
        f"INSERT INTO flashcards ({', '.join(_COLUMNS)}) VALUES ({', '.join('?' * len(_COLUMNS))})",
        _row_values(card),
    )
    card_id = cursor.lastrowid
    conn.commit()
    conn.close()
    return get_flashcard(db_path, card_id)


def get_flashcard(db_path: str, card_id: int) -> Optional[Flashcard]:
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM flashcards WHERE id = ?", (card_id,)).fetchone()
    conn.close()
    return _card_from_row(row) if row else None


def get_due_cards(db_path: str, limit: int = 15, now: Optional[datetime] = None) -> list[Flashcard]:
    now = now or datetime.now()
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT * FROM flashcards WHERE next_review <= ? ORDER BY next_review ASC, id LIMIT ?",
        (now.isoformat(), limit),
    ).fetchall()
    conn.close()
    return [_card_from_row(r) for r in rows]


def delete_flashcard(db_path: str, card_id: int) -> None:
    conn = get_connection(db_path)
    conn.execute("DELETE FROM flashcards WHERE id = ?", (card_id,))
    conn.commit()
    conn.close()


def record_flashcard_result(db_path: str, card_id: int, rating: int, now: Optional[datetime] = None) -> Optional[Flashcard]:
    """Apply a review rating and store the rescheduled card.

    Raises InvalidRatingError for a rating outside 1-4 before anything is written.
    """
    validate_rating(rating)
    card = get_flashcard(db_path, card_id)
    if card is None:
        return None
    now = now or datetime.now()
    updated = compute_next_review(card, rating, now=now, params=load_fsrs_parameters(db_path))
    conn = get_connection(db_path)
    conn.execute(
        f"UPDATE flashcards SET {', '.join(f'{col} = ?' for col in _COLUMNS)} WHERE id = ?",
        (*_row_values(updated), card_id),
    )
    conn.execute(
        "INSERT INTO flashcard_results (flashcard_id, rating, reviewed_at) VALUES (?, ?, ?)",
        (card_id, rating, now.isoformat()),
    )
    conn.commit()
    conn.close()
    return updated


def get_review_stats(db_path: str) -> dict:
    conn = get_connection(db_path)
    total_cards = conn.execute("SELECT COUNT(*) FROM flashcards").fetchone()[0]
    due = conn.execute(
        "SELECT COUNT(*) FROM flashcards WHERE next_review <= ?", (datetime.now().isoformat(),)
    ).fetchone()[0]
    row = conn.execute(
        "SELECT COUNT(*) as t, SUM(CASE WHEN rating >= 3 THEN 1 ELSE 0 END) as c FROM flashcard_results"
    ).fetchone()
    conn.close()
    retention = (row["c"] / row["t"] * 100) if row["t"] else 0.0
    return {
        "total_cards": total_cards,
        "due_cards": due,
        "reviews": row["t"],
        "retention": round(retention, 1),
    }
