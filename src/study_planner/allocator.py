"""Weekly time budget allocation across subjects.

Three distribution modes:

- automatic: a priority cascade by knowledge level. Beginners take half the
  budget, intermediates 70% of what is left, advanced subjects the rest.
- manual: an equal baseline per subject scaled by a per-subject multiplier,
  with any shortfall topped up on subjects whose multiplier is at least 1.
- session_count_manual: the user assigns session counts directly and the
  plan only keeps the running total within the number of available sessions.
"""
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from loguru import logger

from study_planner.models import KnowledgeLevel, Subject

MIN_WEIGHT = 0.1
MAX_WEIGHT = 2.0
ROUNDING_TOLERANCE_HOURS = 0.1

BEGINNER_SHARE = 0.5
INTERMEDIATE_SHARE = 0.7

_LEVEL_ORDER = (KnowledgeLevel.BEGINNER, KnowledgeLevel.INTERMEDIATE, KnowledgeLevel.ADVANCED)
_CASCADE_SHARE = {KnowledgeLevel.BEGINNER: BEGINNER_SHARE, KnowledgeLevel.INTERMEDIATE: INTERMEDIATE_SHARE}


class DistributionMode(str, Enum):
    AUTOMATIC = "automatic"
    MANUAL = "manual"
    SESSION_COUNT_MANUAL = "session_count_manual"


@dataclass
class Allocation:
    """Per-subject shares of a weekly budget.

    ``unit`` is "minutes" or "sessions". ``budget`` is in the same unit as
    the shares; ``tolerance`` is how far the distributed total may exceed it
    before a warning is raised.
    """

    mode: DistributionMode
    unit: str
    budget: float
    shares: dict[str, float] = field(default_factory=dict)
    tolerance: float = 0.0
    warnings: list[str] = field(default_factory=list)

    @property
    def distributed_total(self) -> float:
        return sum(self.shares.values())

    @property
    def exceeds_budget(self) -> bool:
        return self.distributed_total > self.budget + self.tolerance

    def check_budget(self) -> None:
        if self.exceeds_budget:
            message = (
                f"Distributed {self.distributed_total:g} {self.unit} exceeds the "
                f"budget of {self.budget:g} {self.unit}"
            )
            self.warnings.append(message)
            logger.warning(message)


def max_sessions(budget_minutes: float, session_minutes: float) -> int:
    if session_minutes <= 0:
        return 0
    return round(budget_minutes / session_minutes)


def validate_weight(weight: float) -> float:
    if not MIN_WEIGHT <= weight <= MAX_WEIGHT:
        raise ValueError(f"Weight must be between {MIN_WEIGHT} and {MAX_WEIGHT}, got {weight}")
    return weight


def clamp_weight(weight: float) -> float:
    return max(MIN_WEIGHT, min(MAX_WEIGHT, weight))


def split_evenly(subjects: list[Subject], units: int) -> dict[str, int]:
    """Split whole units across subjects; the first ``units % n`` get one extra."""
    if not subjects or units <= 0:
        return {s.id: 0 for s in subjects}
    base, extra = divmod(units, len(subjects))
    return {s.id: base + (1 if i < extra else 0) for i, s in enumerate(subjects)}


def _buckets(subjects: list[Subject]) -> dict[KnowledgeLevel, list[Subject]]:
    buckets = {level: [] for level in _LEVEL_ORDER}
    for subject in subjects:
        buckets[subject.level].append(subject)
    return buckets


def allocate_automatic(total_units: int, subjects: list[Subject]) -> dict[str, int]:
    """Priority cascade by knowledge level over whole units."""
    shares = {s.id: 0 for s in subjects}
    if not subjects or total_units <= 0:
        return shares

    buckets = _buckets(subjects)
    non_empty = [level for level in _LEVEL_ORDER if buckets[level]]
    remaining = total_units
    for level in non_empty:
        if remaining <= 0:
            break
        if level == non_empty[-1]:
            available = remaining
        else:
            share = _CASCADE_SHARE[level]
            base = total_units if level == KnowledgeLevel.BEGINNER else remaining
            available = min(remaining, math.ceil(base * share))
        shares.update(split_evenly(buckets[level], available))
        remaining -= available

    i = 0
    while remaining > 0:
        shares[subjects[i % len(subjects)].id] += 1
        remaining -= 1
        i += 1
    return shares


def allocate_weighted(total: float, subjects: list[Subject], weights: Optional[dict[str, float]] = None) -> dict[str, float]:
    """Baseline share scaled by each subject's multiplier, shortfall topped up."""
    if not subjects:
        return {}
    weights = weights or {}
    multipliers = {s.id: validate_weight(weights.get(s.id, s.weight)) for s in subjects}
    baseline = total / len(subjects)
    shares = {s.id: baseline * multipliers[s.id] for s in subjects}

    shortfall = total - sum(shares.values())
    if shortfall > 0:
        eligible = _buckets([s for s in subjects if multipliers[s.id] >= 1])
        for level in _LEVEL_ORDER:
            group = eligible[level]
            if group:
                for subject in group:
                    shares[subject.id] += shortfall / len(group)
                break
    return shares


class SessionCountPlan:
    """Manual session counts, kept within the number of sessions in the budget."""

    def __init__(self, budget_minutes: float, session_minutes: float, assignments: Optional[dict[str, int]] = None):
        self.budget_minutes = budget_minutes
        self.session_minutes = session_minutes
        self.max_sessions = max_sessions(budget_minutes, session_minutes)
        self.assignments: dict[str, int] = {}
        for subject_id, count in (assignments or {}).items():
            self.assign(subject_id, count)

    @property
    def assigned(self) -> int:
        return sum(self.assignments.values())

    @property
    def sessions_remaining(self) -> int:
        return max(0, self.max_sessions - self.assigned)

    def max_for(self, subject_id: str) -> int:
        return self.assignments.get(subject_id, 0) + self.sessions_remaining

    def assign(self, subject_id: str, count: int) -> int:
        """Set a subject's session count, clamped to what is still available."""
        clamped = max(0, min(int(count), self.max_for(subject_id)))
        if clamped != count:
            logger.debug(f"Clamped {subject_id} from {count} to {clamped} sessions")
        self.assignments[subject_id] = clamped
        return clamped


def allocate(
    budget_minutes: float,
    subjects: list[Subject],
    mode: DistributionMode | str = DistributionMode.AUTOMATIC,
    session_minutes: Optional[float] = None,
    weights: Optional[dict[str, float]] = None,
    assignments: Optional[dict[str, int]] = None,
) -> Allocation:
    """Distribute a weekly budget over subjects.

    Args:
        budget_minutes: Weekly study time in minutes
        subjects: Subjects in display order (ties go to earlier subjects)
        mode: automatic, manual or session_count_manual
        session_minutes: Session length. Automatic mode allocates whole
            sessions when set, whole minutes otherwise. Required for
            session_count_manual.
        weights: Multiplier overrides for manual mode (defaults to Subject.weight)
        assignments: Session counts for session_count_manual mode

    Returns:
        An Allocation whose warnings list is non-empty if the distributed
        total overshoots the budget by more than the rounding tolerance.
    """
    mode = DistributionMode(mode)
    tolerance_minutes = ROUNDING_TOLERANCE_HOURS * 60

    if mode == DistributionMode.AUTOMATIC:
        if session_minutes:
            total = max_sessions(budget_minutes, session_minutes)
            allocation = Allocation(mode, "sessions", total, tolerance=tolerance_minutes / session_minutes)
        else:
            total = round(budget_minutes)
            allocation = Allocation(mode, "minutes", total, tolerance=tolerance_minutes)
        allocation.shares = allocate_automatic(total, subjects)

    elif mode == DistributionMode.MANUAL:
        allocation = Allocation(mode, "minutes", budget_minutes, tolerance=tolerance_minutes)
        hours = allocate_weighted(budget_minutes / 60, subjects, weights)
        allocation.shares = {sid: round(round(h * 10) / 10 * 60, 1) for sid, h in hours.items()}

    else:
        if not session_minutes:
            raise ValueError("session_count_manual mode needs a session length")
        plan = SessionCountPlan(budget_minutes, session_minutes, assignments)
        allocation = Allocation(mode, "sessions", plan.max_sessions, tolerance=tolerance_minutes / session_minutes)
        allocation.shares = {s.id: plan.assignments.get(s.id, 0) for s in subjects}

    allocation.check_budget()
    return allocation
