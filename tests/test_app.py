import json
from unittest.mock import patch

import pytest

from study_planner.app import (
    SessionExitRequested, build_engine, cmd_import, cmd_log, cmd_plan, main, run_flashcard_session,
    run_pomodoro_session, session_int_prompt, session_prompt,
)
from study_planner.db import init_db
from study_planner.flashcards import add_flashcard, get_flashcard
from study_planner.models import PomodoroSettings, PomodoroStatus, PomodoroTask
from study_planner.pomodoro import PomodoroEngine
from study_planner.study import load_sequence_state, new_sequence, replace_active_sequence
from study_planner.study_log import load_study_logs
from study_planner.subjects import add_subject, add_topic, find_subject_by_name
from study_planner.timer import PomodoroTimer


def test_session_exit_requested_is_exception():
    with pytest.raises(SessionExitRequested):
        raise SessionExitRequested()


def test_session_prompt_raises_on_q():
    with patch("study_planner.app.Prompt.ask", return_value="q"):
        with pytest.raises(SessionExitRequested):
            session_prompt("test prompt")


def test_session_prompt_raises_on_menu():
    with patch("study_planner.app.Prompt.ask", return_value="menu"):
        with pytest.raises(SessionExitRequested):
            session_prompt("test prompt")


def test_session_prompt_returns_normal_input():
    with patch("study_planner.app.Prompt.ask", return_value="hello"):
        result = session_prompt("test prompt")
        assert result == "hello"


def test_session_int_prompt_raises_on_q():
    with patch("study_planner.app.Prompt.ask", return_value="q"):
        with pytest.raises(SessionExitRequested):
            session_int_prompt("rate", choices=["1", "2", "3", "4"])


def test_session_int_prompt_returns_normal_input():
    with patch("study_planner.app.Prompt.ask", return_value="3"):
        result = session_int_prompt("rate", choices=["1", "2", "3", "4"])
        assert result == 3


def test_run_flashcard_session_exits_on_q(tmp_db):
    """User types 'q' on the second card's reveal prompt; the first card is saved."""
    init_db(tmp_db)
    cards = [add_flashcard(tmp_db, "Q1", "A1"), add_flashcard(tmp_db, "Q2", "A2")]

    # Card 1: Enter to reveal, then rate 4. Card 2: 'q' on reveal.
    with patch("study_planner.app.Prompt.ask", side_effect=["", "4", "q"]):
        with pytest.raises(SessionExitRequested):
            run_flashcard_session(tmp_db, cards)

    assert get_flashcard(tmp_db, cards[0].id).review_count == 1
    assert get_flashcard(tmp_db, cards[1].id).review_count == 0


def test_run_flashcard_session_reviews_all(tmp_db):
    init_db(tmp_db)
    cards = [add_flashcard(tmp_db, "Q1", "A1"), add_flashcard(tmp_db, "Q2", "A2")]
    with patch("study_planner.app.Prompt.ask", side_effect=["", "3", "", "1"]):
        assert run_flashcard_session(tmp_db, cards) == 2
    assert get_flashcard(tmp_db, cards[1].id).last_rating == 1


def test_run_flashcard_session_with_no_cards(tmp_db):
    init_db(tmp_db)
    assert run_flashcard_session(tmp_db, []) == 0


def test_cmd_log_attributes_to_sequence(tmp_db):
    init_db(tmp_db)
    math = add_subject(tmp_db, "Math", study_duration=30)
    add_topic(tmp_db, math.id, "Algebra")
    replace_active_sequence(tmp_db, new_sequence("Week", [math.id]))

    # subject 1, topic 1, 30 minutes, pages 10-20, no questions
    with patch("study_planner.app.Prompt.ask", side_effect=["1", "1", "30", "10-20", ""]):
        cmd_log(tmp_db)

    logs = load_study_logs(tmp_db)
    assert len(logs) == 1
    assert logs[0].duration == 30
    assert (logs[0].start_page, logs[0].end_page) == (10, 20)
    assert logs[0].sequence_item_index == 0
    assert load_sequence_state(tmp_db).is_complete


def test_cmd_import(tmp_db, tmp_path):
    init_db(tmp_db)
    plan = tmp_path / "plan.json"
    plan.write_text(json.dumps({"subjects": [{"name": "Math", "topics": ["Algebra"]}]}))
    with patch("study_planner.app.Prompt.ask", return_value=str(plan)):
        cmd_import(tmp_db)
    assert find_subject_by_name(tmp_db, "Math") is not None


def test_cmd_plan_builds_sequence(tmp_db):
    init_db(tmp_db)
    add_subject(tmp_db, "Math")
    add_subject(tmp_db, "History")
    # 7 hours, 60-minute sessions, automatic, don't save, replace the sequence
    with patch("study_planner.app.Prompt.ask", side_effect=["7", "60", "automatic", "", "y"]):
        cmd_plan(tmp_db)
    state = load_sequence_state(tmp_db)
    assert len(state.sequence) == 7
    assert state.index == 0


def test_pomodoro_session_runs_break_and_ends(tmp_db):
    init_db(tmp_db)
    settings = PomodoroSettings(tasks=(PomodoroTask("a", "A", 2),), short_break_duration=1)
    engine = PomodoroEngine(settings)
    timer = PomodoroTimer(engine, interval=0.001)
    engine.start_for_item("t1")
    engine.advance_cycle()

    # Log the (empty) segment, let the break and the next focus run, then end.
    with patch("study_planner.app.Prompt.ask", side_effect=["log", "end"]):
        run_pomodoro_session(engine, timer)

    assert engine.state.status == PomodoroStatus.IDLE
    assert engine.state.pomodoros_completed_today == 1


def test_pomodoro_session_end_from_pause(tmp_db):
    init_db(tmp_db)
    engine = build_engine(tmp_db)
    engine.start_for_item("t1", custom_duration=600)
    engine.pause()
    with patch("study_planner.app.Prompt.ask", return_value="end"):
        run_pomodoro_session(engine, PomodoroTimer(engine))
    assert engine.state.status == PomodoroStatus.IDLE


def test_main_runs_commands_until_quit(tmp_db):
    with patch("study_planner.app.Prompt.ask", side_effect=["dashboard", "bogus", "quit"]):
        main(tmp_db)
    with patch("study_planner.app.Prompt.ask", side_effect=["sequence", "q", "quit"]):
        main(tmp_db)
