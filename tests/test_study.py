# tests/test_study.py
from datetime import date, timedelta

import pytest

from study_planner.db import init_db, get_connection
from study_planner.models import PomodoroSettings, PomodoroTask
from study_planner.sequence import SequenceState
from study_planner.study import (
    DEFAULT_POMODORO_SETTINGS, advance_sequence, delete_active_sequence, delete_saved_sequence,
    get_setting, get_streak, get_subject_goals, list_saved_sequences, load_fsrs_parameters,
    load_pomodoro_settings, load_saved_sequence, load_sequence_state, new_sequence, next_streak,
    record_study_day, replace_active_sequence, reset_sequence_progress, save_pomodoro_settings,
    save_sequence_as, save_sequence_state, set_setting,
)
from study_planner.subjects import add_subject


def test_settings_round_trip(tmp_db):
    init_db(tmp_db)
    assert get_setting(tmp_db, "missing", "fallback") == "fallback"
    set_setting(tmp_db, "k", "1")
    set_setting(tmp_db, "k", "2")
    assert get_setting(tmp_db, "k") == "2"


def test_pomodoro_settings_default_and_saved(tmp_db):
    init_db(tmp_db)
    assert load_pomodoro_settings(tmp_db) == DEFAULT_POMODORO_SETTINGS
    custom = PomodoroSettings(tasks=(PomodoroTask("x", "Drill", 900),), short_break_duration=120, cycles_until_long_break=2)
    save_pomodoro_settings(tmp_db, custom)
    assert load_pomodoro_settings(tmp_db) == custom


def test_pomodoro_settings_reject_zero_cycles(tmp_db):
    init_db(tmp_db)
    with pytest.raises(ValueError):
        save_pomodoro_settings(tmp_db, PomodoroSettings(cycles_until_long_break=0))


def test_fsrs_parameters_from_settings(tmp_db):
    init_db(tmp_db)
    assert load_fsrs_parameters(tmp_db).request_retention == 0.9
    set_setting(tmp_db, "request_retention", "0.85")
    set_setting(tmp_db, "maximum_interval", "365")
    params = load_fsrs_parameters(tmp_db)
    assert params.request_retention == 0.85
    assert params.maximum_interval == 365


def test_next_streak():
    today = date(2024, 5, 2)
    assert next_streak(None, 0, today) == (1, "2024-05-02")
    assert next_streak("2024-05-01", 3, today) == (4, "2024-05-02")
    assert next_streak("2024-05-02", 4, today) == (4, "2024-05-02")
    assert next_streak("2024-04-28", 9, today) == (1, "2024-05-02")


def test_record_study_day_builds_streak(tmp_db):
    init_db(tmp_db)
    today = date.today()
    assert get_streak(tmp_db) == 0
    record_study_day(tmp_db, today - timedelta(days=1))
    record_study_day(tmp_db, today)
    record_study_day(tmp_db, today)
    assert get_streak(tmp_db) == 2


def test_streak_lapses_after_gap(tmp_db):
    init_db(tmp_db)
    record_study_day(tmp_db, date.today() - timedelta(days=3))
    assert get_streak(tmp_db) == 0


def test_no_active_sequence(tmp_db):
    init_db(tmp_db)
    state = load_sequence_state(tmp_db)
    assert state.sequence is None
    assert state.index == 0


def test_sequence_state_round_trip(tmp_db):
    init_db(tmp_db)
    seq = new_sequence("Week", ["a", "b"])
    save_sequence_state(tmp_db, SequenceState(seq, 1))
    state = load_sequence_state(tmp_db)
    assert state.sequence == seq
    assert state.index == 1


def test_only_one_active_sequence(tmp_db):
    init_db(tmp_db)
    save_sequence_state(tmp_db, SequenceState(new_sequence("One", ["a"])))
    save_sequence_state(tmp_db, SequenceState(new_sequence("Two", ["b"])))
    conn = get_connection(tmp_db)
    rows = conn.execute("SELECT name FROM study_sequences").fetchall()
    conn.close()
    assert [r["name"] for r in rows] == ["Two"]
    assert list_saved_sequences(tmp_db) == []


def test_replace_active_sequence_zeroes_new_one(tmp_db):
    init_db(tmp_db)
    replace_active_sequence(tmp_db, new_sequence("One", ["a", "b"]))
    advance_sequence(tmp_db)
    state = replace_active_sequence(tmp_db, new_sequence("Two", ["b"]))
    assert state.index == 0
    assert load_sequence_state(tmp_db).sequence.name == "Two"


def test_advance_and_reset(tmp_db):
    init_db(tmp_db)
    replace_active_sequence(tmp_db, new_sequence("One", ["a", "b"]))
    assert advance_sequence(tmp_db).index == 1
    assert advance_sequence(tmp_db).index == 2
    assert advance_sequence(tmp_db).index == 2
    assert load_sequence_state(tmp_db).is_complete
    assert reset_sequence_progress(tmp_db).index == 0


def test_delete_active_sequence(tmp_db):
    init_db(tmp_db)
    replace_active_sequence(tmp_db, new_sequence("One", ["a"]))
    delete_active_sequence(tmp_db)
    assert load_sequence_state(tmp_db).sequence is None


def test_saved_sequences(tmp_db):
    init_db(tmp_db)
    active = replace_active_sequence(tmp_db, new_sequence("Week", ["a", "b"])).sequence
    saved = save_sequence_as(tmp_db, "Template", active)
    assert saved.id != active.id
    assert [s.name for s in list_saved_sequences(tmp_db)] == ["Template"]

    state = load_saved_sequence(tmp_db, saved.id)
    assert state.index == 0
    assert state.sequence.name == "Template"
    assert state.sequence.id != saved.id
    # Loading keeps the template and drops the old active sequence
    assert [s.id for s in list_saved_sequences(tmp_db)] == [saved.id]
    assert load_sequence_state(tmp_db).sequence.id == state.sequence.id

    delete_saved_sequence(tmp_db, saved.id)
    assert list_saved_sequences(tmp_db) == []
    assert load_sequence_state(tmp_db).sequence is not None


def test_load_missing_saved_sequence(tmp_db):
    init_db(tmp_db)
    assert load_saved_sequence(tmp_db, "nope") is None


def test_subject_goals(tmp_db):
    init_db(tmp_db)
    math = add_subject(tmp_db, "Math", study_duration=45)
    assert get_subject_goals(tmp_db) == {math.id: 45}
