import pytest

from study_planner.allocator import (
    DistributionMode, SessionCountPlan, allocate, allocate_automatic, allocate_weighted,
    clamp_weight, max_sessions, split_evenly, validate_weight,
)
from study_planner.models import KnowledgeLevel, Subject


def _subject(sid, level=None, weight=1.0):
    return Subject(id=sid, name=sid.title(), knowledge_level=level, weight=weight)


def test_automatic_cascade_by_level():
    subjects = [
        _subject("beg", KnowledgeLevel.BEGINNER),
        _subject("mid", KnowledgeLevel.INTERMEDIATE),
        _subject("adv", KnowledgeLevel.ADVANCED),
    ]
    allocation = allocate(21 * 60, subjects)
    assert allocation.unit == "minutes"
    assert allocation.shares == {"beg": 630, "mid": 441, "adv": 189}
    assert allocation.distributed_total == pytest.approx(21 * 60, abs=6)
    assert allocation.shares["beg"] >= allocation.shares["mid"] >= allocation.shares["adv"]
    assert allocation.warnings == []


def test_automatic_single_bucket_takes_everything():
    subjects = [_subject("a", KnowledgeLevel.ADVANCED), _subject("b", KnowledgeLevel.ADVANCED)]
    assert allocate_automatic(10, subjects) == {"a": 5, "b": 5}


def test_automatic_missing_level_counts_as_intermediate():
    subjects = [_subject("beg", KnowledgeLevel.BEGINNER), _subject("unset")]
    # Intermediate is the last non-empty bucket, so it takes the rest.
    assert allocate_automatic(10, subjects) == {"beg": 5, "unset": 5}


def test_automatic_sessions_with_uneven_split():
    subjects = [
        _subject("b1", KnowledgeLevel.BEGINNER),
        _subject("b2", KnowledgeLevel.BEGINNER),
        _subject("adv", KnowledgeLevel.ADVANCED),
    ]
    allocation = allocate(7 * 60, subjects, session_minutes=60)
    assert allocation.unit == "sessions"
    assert allocation.budget == 7
    # ceil(3.5) = 4 beginner sessions split 2/2, the rest to advanced.
    assert allocation.shares == {"b1": 2, "b2": 2, "adv": 3}


def test_automatic_never_negative_and_conserves_units():
    subjects = [_subject(f"s{i}", level) for i, level in enumerate(KnowledgeLevel)]
    for total in range(0, 40):
        shares = allocate_automatic(total, subjects)
        assert all(v >= 0 for v in shares.values())
        assert sum(shares.values()) == total


def test_split_evenly_gives_extra_to_first():
    subjects = [_subject("a"), _subject("b"), _subject("c")]
    assert split_evenly(subjects, 5) == {"a": 2, "b": 2, "c": 1}
    assert split_evenly(subjects, 0) == {"a": 0, "b": 0, "c": 0}


def test_manual_scales_baseline_by_weight():
    subjects = [_subject("a", weight=2.0), _subject("b", weight=0.5), _subject("c", weight=1.0)]
    hours = allocate_weighted(9, subjects)
    assert hours["a"] == pytest.approx(6)
    assert hours["b"] == pytest.approx(1.5)
    assert hours["c"] == pytest.approx(3)


def test_manual_shortfall_goes_to_subjects_at_or_above_one():
    subjects = [
        _subject("low", KnowledgeLevel.BEGINNER, weight=0.5),
        _subject("mid", KnowledgeLevel.INTERMEDIATE, weight=1.0),
        _subject("adv", KnowledgeLevel.ADVANCED, weight=1.0),
    ]
    hours = allocate_weighted(9, subjects)
    # Shortfall of 1.5 h lands on the highest-priority eligible bucket.
    assert hours["low"] == pytest.approx(1.5)
    assert hours["mid"] == pytest.approx(4.5)
    assert hours["adv"] == pytest.approx(3)
    assert sum(hours.values()) == pytest.approx(9)


def test_manual_mode_reports_minutes_rounded_to_tenth_hour():
    subjects = [_subject("a"), _subject("b"), _subject("c")]
    allocation = allocate(10 * 60, subjects, DistributionMode.MANUAL)
    assert allocation.shares == {"a": 198.0, "b": 198.0, "c": 198.0}
    assert allocation.warnings == []


def test_manual_overshoot_warns():
    subjects = [_subject("a", weight=2.0), _subject("b", weight=2.0)]
    allocation = allocate(10 * 60, subjects, "manual")
    assert allocation.distributed_total == pytest.approx(1200)
    assert allocation.exceeds_budget
    assert len(allocation.warnings) == 1


def test_manual_weight_override_validated():
    subjects = [_subject("a")]
    with pytest.raises(ValueError):
        allocate(600, subjects, "manual", weights={"a": 3.0})


def test_weight_bounds():
    assert validate_weight(0.1) == 0.1
    assert validate_weight(2.0) == 2.0
    with pytest.raises(ValueError):
        validate_weight(0.05)
    assert clamp_weight(5) == 2.0
    assert clamp_weight(0) == 0.1


def test_max_sessions_rounds():
    assert max_sessions(600, 50) == 12
    assert max_sessions(620, 50) == 12
    assert max_sessions(600, 0) == 0


def test_session_count_plan_clamps_running_total():
    plan = SessionCountPlan(600, 60)
    assert plan.max_sessions == 10
    assert plan.assign("a", 7) == 7
    assert plan.sessions_remaining == 3
    assert plan.max_for("b") == 3
    assert plan.assign("b", 5) == 3
    assert plan.assigned == 10
    assert plan.assign("a", -2) == 0
    assert plan.max_for("b") == 10


def test_session_count_manual_mode():
    subjects = [_subject("a"), _subject("b")]
    allocation = allocate(600, subjects, "session_count_manual", session_minutes=60, assignments={"a": 4, "b": 9})
    assert allocation.shares == {"a": 4, "b": 6}
    assert allocation.distributed_total <= allocation.budget


def test_session_count_manual_needs_session_length():
    with pytest.raises(ValueError):
        allocate(600, [_subject("a")], "session_count_manual")


def test_no_subjects():
    assert allocate(600, []).shares == {}
