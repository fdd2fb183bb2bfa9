import pytest

from study_planner.allocator import allocate
from study_planner.db import init_db
from study_planner.models import KnowledgeLevel, Subject
from study_planner.plans import (
    build_sequence_from_allocation, delete_schedule_plan, get_schedule_plan, list_schedule_plans,
    save_schedule_plan, session_counts,
)

SUBJECTS = [
    Subject(id="beg", name="Beg", knowledge_level=KnowledgeLevel.BEGINNER),
    Subject(id="adv", name="Adv", knowledge_level=KnowledgeLevel.ADVANCED),
]


def test_save_and_load_plan(tmp_db):
    init_db(tmp_db)
    allocation = allocate(600, SUBJECTS, session_minutes=60)
    plan = save_schedule_plan(tmp_db, "Exam prep", allocation, 600, 60)
    loaded = get_schedule_plan(tmp_db, plan.id)
    assert loaded == plan
    assert loaded.mode == "automatic"
    assert loaded.allocations == {"beg": 5, "adv": 5}
    assert [p.name for p in list_schedule_plans(tmp_db)] == ["Exam prep"]


def test_delete_plan(tmp_db):
    init_db(tmp_db)
    plan = save_schedule_plan(tmp_db, "Tmp", allocate(600, SUBJECTS), 600)
    delete_schedule_plan(tmp_db, plan.id)
    assert get_schedule_plan(tmp_db, plan.id) is None
    assert list_schedule_plans(tmp_db) == []


def test_sequence_interleaves_sessions():
    allocation = allocate(7 * 60, SUBJECTS, session_minutes=60)
    assert allocation.shares == {"beg": 4, "adv": 3}
    sequence = build_sequence_from_allocation("Week", allocation, ["beg", "adv"])
    assert [item.subject_id for item in sequence.items] == ["beg", "adv", "beg", "adv", "beg", "adv", "beg"]
    assert all(item.total_time_studied == 0 for item in sequence.items)
    assert sequence.name == "Week"


def test_minute_allocations_need_session_length():
    allocation = allocate(240, SUBJECTS)
    with pytest.raises(ValueError):
        session_counts(allocation)
    assert session_counts(allocation, 60) == {"beg": 2, "adv": 2}


def test_subjects_without_sessions_are_left_out():
    allocation = allocate(120, SUBJECTS, "session_count_manual", session_minutes=60, assignments={"adv": 2})
    sequence = build_sequence_from_allocation("Week", allocation, ["beg", "adv"])
    assert [item.subject_id for item in sequence.items] == ["adv", "adv"]
