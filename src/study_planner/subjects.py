"""Subject and topic management, and the revision cycle over completed topics."""
import uuid
from datetime import datetime
from typing import Optional, Union

from study_planner.db import get_connection
from study_planner.models import KnowledgeLevel, Subject, Topic

COLORS = ["#2563EB", "#10B981", "#F59E0B", "#8B5CF6", "#EF4444", "#6B7280", "#EC4899", "#3B82F6"]

# Topic orders to revisit, in sequence. Only completed topics take part.
REVISION_SEQUENCE = [
    0, 1, 0, 2, 1, 3, 2, 4, 3, 0, 5, 4, 1, 6, 5, 2, 7, 6, 3, 8, 7, 4, 0, 9, 8, 5, 1,
    10, 9, 6, 2, 11, 10, 7, 3, 12, 11, 8, 4, 13, 12, 9, 5, 14, 13, 10, 6, 15, 14, 11,
    7, 16, 15, 12, 8, 17, 16, 13, 9, 18, 17, 15, 11, 19, 18, 15, 11, 20, 19, 16, 12,
    21, 20, 17, 13, 21, 20, 17, 13, 22, 21, 18, 14, 22, 21, 18, 14, 23, 22, 19, 15,
]


def _topic_from_row(row) -> Topic:
    return Topic(
        id=row["id"],
        subject_id=row["subject_id"],
        name=row["name"],
        order=row["topic_order"],
        is_completed=bool(row["is_completed"]),
        completion_date=row["completion_date"],
    )


def _subject_from_row(row, topics: list[Topic]) -> Subject:
    return Subject(
        id=row["id"],
        name=row["name"],
        color=row["color"],
        description=row["description"] or "",
        material_url=row["material_url"],
        study_duration=row["study_duration"],
        knowledge_level=KnowledgeLevel(row["knowledge_level"]) if row["knowledge_level"] else None,
        weight=row["weight"],
        revision_progress=row["revision_progress"],
        topics=topics,
    )


def add_subject(
    db_path: str,
    name: str,
    study_duration: int = 60,
    color: Optional[str] = None,
    description: str = "",
    material_url: Optional[str] = None,
    knowledge_level: Optional[Union[KnowledgeLevel, str]] = None,
    weight: float = 1.0,
) -> Subject:
    conn = get_connection(db_path)
    if color is None:
        count = conn.execute("SELECT COUNT(*) FROM subjects").fetchone()[0]
        color = COLORS[count % len(COLORS)]
    level = KnowledgeLevel(knowledge_level) if knowledge_level else None
    subject_id = str(uuid.uuid4())
    conn.execute(
        """INSERT INTO subjects
        (id, name, color, description, material_url, study_duration, knowledge_level, weight, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (subject_id, name, color, description, material_url, study_duration,
         level.value if level else None, weight, datetime.now().isoformat()),
    )
    conn.commit()
    conn.close()
    return get_subject(db_path, subject_id)


def update_subject(db_path: str, subject_id: str, **fields) -> Optional[Subject]:
    allowed = {"name", "color", "description", "material_url", "study_duration", "knowledge_level", "weight"}
    unknown = set(fields) - allowed
    if unknown:
        raise ValueError(f"Unknown subject fields: {', '.join(sorted(unknown))}")
    if "knowledge_level" in fields and fields["knowledge_level"]:
        fields["knowledge_level"] = KnowledgeLevel(fields["knowledge_level"]).value
    if fields:
        assignments = ", ".join(f"{name} = ?" for name in fields)
        conn = get_connection(db_path)
        conn.execute(
            f"UPDATE subjects SET {assignments} WHERE id = ?",
            (*fields.values(), subject_id),
        )
        conn.commit()
        conn.close()
    return get_subject(db_path, subject_id)


def delete_subject(db_path: str, subject_id: str) -> None:
    conn = get_connection(db_path)
    conn.execute("DELETE FROM subjects WHERE id = ?", (subject_id,))
    conn.commit()
    conn.close()


def get_subject(db_path: str, subject_id: str) -> Optional[Subject]:
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM subjects WHERE id = ?", (subject_id,)).fetchone()
    if not row:
        conn.close()
        return None
    topics = conn.execute(
        "SELECT * FROM topics WHERE subject_id = ? ORDER BY topic_order", (subject_id,)
    ).fetchall()
    conn.close()
    return _subject_from_row(row, [_topic_from_row(t) for t in topics])


def load_subjects(db_path: str) -> list[Subject]:
    conn = get_connection(db_path)
    rows = conn.execute("SELECT * FROM subjects ORDER BY created_at, name").fetchall()
    topic_rows = conn.execute("SELECT * FROM topics ORDER BY topic_order").fetchall()
    conn.close()
    by_subject: dict[str, list[Topic]] = {}
    for t in topic_rows:
        by_subject.setdefault(t["subject_id"], []).append(_topic_from_row(t))
    return [_subject_from_row(r, by_subject.get(r["id"], [])) for r in rows]


def find_subject_by_name(db_path: str, name: str) -> Optional[Subject]:
    conn = get_connection(db_path)
    row = conn.execute("SELECT id FROM subjects WHERE name = ? COLLATE NOCASE", (name,)).fetchone()
    conn.close()
    return get_subject(db_path, row["id"]) if row else None


# --- Topics ---


def add_topic(db_path: str, subject_id: str, name: str) -> Topic:
    conn = get_connection(db_path)
    order = conn.execute(
        "SELECT COUNT(*) FROM topics WHERE subject_id = ?", (subject_id,)
    ).fetchone()[0]
    topic_id = str(uuid.uuid4())
    conn.execute(
        "INSERT INTO topics (id, subject_id, name, topic_order) VALUES (?, ?, ?, ?)",
        (topic_id, subject_id, name, order),
    )
    conn.commit()
    conn.close()
    return Topic(id=topic_id, subject_id=subject_id, name=name, order=order)


def get_topic(db_path: str, topic_id: str) -> Optional[Topic]:
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM topics WHERE id = ?", (topic_id,)).fetchone()
    conn.close()
    return _topic_from_row(row) if row else None


def rename_topic(db_path: str, topic_id: str, name: str) -> None:
    conn = get_connection(db_path)
    conn.execute("UPDATE topics SET name = ? WHERE id = ?", (name, topic_id))
    conn.commit()
    conn.close()


def toggle_topic_completed(db_path: str, topic_id: str) -> Optional[Topic]:
    topic = get_topic(db_path, topic_id)
    if topic is None:
        return None
    completed = not topic.is_completed
    conn = get_connection(db_path)
    conn.execute(
        "UPDATE topics SET is_completed = ?, completion_date = ? WHERE id = ?",
        (int(completed), datetime.now().isoformat() if completed else None, topic_id),
    )
    conn.commit()
    conn.close()
    return get_topic(db_path, topic_id)


def delete_topic(db_path: str, topic_id: str) -> None:
    """Delete a topic and renumber its siblings so orders stay contiguous from 0."""
    topic = get_topic(db_path, topic_id)
    if topic is None:
        return
    conn = get_connection(db_path)
    conn.execute("DELETE FROM topics WHERE id = ?", (topic_id,))
    remaining = conn.execute(
        "SELECT id FROM topics WHERE subject_id = ? ORDER BY topic_order", (topic.subject_id,)
    ).fetchall()
    for index, row in enumerate(remaining):
        conn.execute("UPDATE topics SET topic_order = ? WHERE id = ?", (index, row["id"]))
    conn.commit()
    conn.close()


# --- Revision cycle ---


def revision_steps(subject: Subject) -> list[Topic]:
    """The subject's revision cycle: REVISION_SEQUENCE restricted to completed topics."""
    completed = {t.order: t for t in subject.topics if t.is_completed}
    return [completed[order] for order in REVISION_SEQUENCE if order in completed]


def current_revision_topic(subject: Subject) -> Optional[Topic]:
    steps = revision_steps(subject)
    if subject.revision_progress < len(steps):
        return steps[subject.revision_progress]
    return None


def set_revision_progress(db_path: str, subject_id: str, progress: int) -> Optional[int]:
    """Store the number of completed revision steps, clamped to the cycle length."""
    subject = get_subject(db_path, subject_id)
    if subject is None:
        return None
    progress = max(0, min(progress, len(revision_steps(subject))))
    conn = get_connection(db_path)
    conn.execute("UPDATE subjects SET revision_progress = ? WHERE id = ?", (progress, subject_id))
    conn.commit()
    conn.close()
    return progress
