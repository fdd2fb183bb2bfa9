# tests/test_integration.py
"""End-to-end test of the core workflow."""
from functools import partial

from study_planner.allocator import allocate
from study_planner.dashboard import get_sequence_progress, get_study_stats
from study_planner.db import init_db
from study_planner.flashcards import get_due_cards, record_flashcard_result
from study_planner.models import PomodoroSettings, PomodoroStatus, PomodoroTask
from study_planner.plans import build_sequence_from_allocation, save_schedule_plan
from study_planner.pomodoro import PomodoroEngine
from study_planner.seed import seed_all
from study_planner.study import load_sequence_state, replace_active_sequence
from study_planner.study_log import append_study_log, delete_study_log, load_study_logs
from study_planner.subjects import add_subject, add_topic, get_topic


def test_full_study_week_workflow(tmp_db):
    """Plan a week, study with the pomodoro engine, and check everything lines up."""
    init_db(tmp_db)
    seed_all(tmp_db)

    math = add_subject(tmp_db, "Math", study_duration=30, knowledge_level="beginner")
    history = add_subject(tmp_db, "History", study_duration=30, knowledge_level="advanced")
    algebra = add_topic(tmp_db, math.id, "Algebra")
    add_topic(tmp_db, history.id, "Rome")

    # Plan: 4 one-hour sessions, beginner first
    subjects = [math, history]
    allocation = allocate(4 * 60, subjects, session_minutes=60)
    assert allocation.shares == {math.id: 2, history.id: 2}
    save_schedule_plan(tmp_db, "Week 1", allocation, 240, 60)
    sequence = build_sequence_from_allocation("Week 1", allocation, [math.id, history.id])
    replace_active_sequence(tmp_db, sequence)
    assert load_sequence_state(tmp_db).current_subject_id == math.id

    # One full pomodoro chain on algebra: 20 + 10 minutes meets the 30 minute goal
    settings = PomodoroSettings(
        tasks=(PomodoroTask("q", "Questions", 20 * 60), PomodoroTask("r", "Reading", 10 * 60)),
    )
    engine = PomodoroEngine(
        settings,
        topic_lookup=partial(get_topic, tmp_db),
        sequence_query=partial(load_sequence_state, tmp_db),
        log_sink=partial(append_study_log, tmp_db),
    )
    engine.start_for_item(algebra.id)
    for _ in range(20 * 60):
        engine.tick()
    engine.continue_to_break()
    for _ in range(10 * 60):
        engine.tick()
    state = engine.continue_to_break()
    assert state.status == PomodoroStatus.SHORT_BREAK

    logs = load_study_logs(tmp_db)
    assert sorted(log.duration for log in logs) == [10, 20]
    assert all(log.sequence_item_index == 0 for log in logs)
    seq_state = load_sequence_state(tmp_db)
    assert seq_state.index == 1
    assert seq_state.current_subject_id == history.id
    assert seq_state.sequence.items[0].total_time_studied == 30

    # Deleting a log gives the time back but keeps the cursor
    delete_study_log(tmp_db, logs[0].id)
    seq_state = load_sequence_state(tmp_db)
    assert seq_state.index == 1
    assert seq_state.sequence.items[0].total_time_studied == 30 - logs[0].duration

    # Flashcards
    for card in get_due_cards(tmp_db, limit=3):
        record_flashcard_result(tmp_db, card.id, 3)

    stats = get_study_stats(tmp_db)
    assert stats["pomodoro_sessions"] == 1
    assert stats["streak"] == 1
    assert stats["due_cards"] == 2
    assert stats["retention"] == 100.0
    assert get_sequence_progress(tmp_db)["completed"] == 1
