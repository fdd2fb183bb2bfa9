"""Saved schedule plans, and turning an allocation into a study sequence."""
import json
import uuid
from datetime import datetime
from typing import Optional

from loguru import logger

from study_planner.allocator import Allocation
from study_planner.db import get_connection
from study_planner.models import SchedulePlan, StudySequence, StudySequenceItem


def _plan_from_row(row) -> SchedulePlan:
    return SchedulePlan(
        id=row["id"],
        name=row["name"],
        created_at=row["created_at"],
        weekly_minutes=row["weekly_minutes"],
        session_minutes=row["session_minutes"],
        mode=row["mode"],
        allocations=json.loads(row["allocations"]),
    )


def save_schedule_plan(
    db_path: str,
    name: str,
    allocation: Allocation,
    weekly_minutes: int,
    session_minutes: Optional[int] = None,
) -> SchedulePlan:
    plan = SchedulePlan(
        id=str(uuid.uuid4()),
        name=name,
        created_at=datetime.now().isoformat(),
        weekly_minutes=weekly_minutes,
        session_minutes=session_minutes,
        mode=allocation.mode.value,
        allocations=dict(allocation.shares),
    )
    conn = get_connection(db_path)
    conn.execute(
        """INSERT INTO schedule_plans
        (id, name, created_at, weekly_minutes, session_minutes, mode, allocations)
        VALUES (?, ?, ?, ?, ?, ?, ?)""",
        (plan.id, plan.name, plan.created_at, plan.weekly_minutes, plan.session_minutes,
         plan.mode, json.dumps(plan.allocations)),
    )
    conn.commit()
    conn.close()
    logger.info(f"Saved schedule plan '{name}'")
    return plan


def list_schedule_plans(db_path: str) -> list[SchedulePlan]:
    conn = get_connection(db_path)
    rows = conn.execute("SELECT * FROM schedule_plans ORDER BY created_at").fetchall()
    conn.close()
    return [_plan_from_row(r) for r in rows]


def get_schedule_plan(db_path: str, plan_id: str) -> Optional[SchedulePlan]:
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM schedule_plans WHERE id = ?", (plan_id,)).fetchone()
    conn.close()
    return _plan_from_row(row) if row else None


def delete_schedule_plan(db_path: str, plan_id: str) -> None:
    conn = get_connection(db_path)
    conn.execute("DELETE FROM schedule_plans WHERE id = ?", (plan_id,))
    conn.commit()
    conn.close()


def session_counts(allocation: Allocation, session_minutes: Optional[float] = None) -> dict[str, int]:
    """Whole sessions per subject. Minute allocations need a session length."""
    if allocation.unit == "sessions":
        return {sid: int(count) for sid, count in allocation.shares.items()}
    if not session_minutes:
        raise ValueError("A session length is needed to turn minutes into sessions")
    return {sid: round(minutes / session_minutes) for sid, minutes in allocation.shares.items()}


def build_sequence_from_allocation(
    name: str,
    allocation: Allocation,
    subject_ids: list[str],
    session_minutes: Optional[float] = None,
) -> StudySequence:
    """One sequence item per session, interleaving subjects round-robin.

    ``subject_ids`` fixes the order within each round; subjects missing from
    the allocation get no items.
    """
    remaining = session_counts(allocation, session_minutes)
    items = []
    while any(remaining.get(sid, 0) > 0 for sid in subject_ids):
        for sid in subject_ids:
            if remaining.get(sid, 0) > 0:
                items.append(StudySequenceItem(subject_id=sid))
                remaining[sid] -= 1
    return StudySequence(id=str(uuid.uuid4()), name=name, items=tuple(items))
