"""Simplified FSRS spaced repetition scheduling.

This is an approximation of FSRS, not the published algorithm: the
retrievability update after a review is a linear nudge of the forgetting
curve value rather than a recomputation. Stored review dates depend on this
exact arithmetic, so keep it as is.
"""
import math
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import IntEnum
from typing import Optional

from study_planner.errors import InvalidRatingError
from study_planner.models import Flashcard


class Rating(IntEnum):
    AGAIN = 1
    HARD = 2
    GOOD = 3
    EASY = 4


DEFAULT_WEIGHTS = (
    0.5,   # w0: initial stability
    1.2,   # w1: initial difficulty
    2.0,   # w2: first-review difficulty drop per rating step
    0.5,   # w3
    0.8,   # w4
    1.4,   # w5: stability multiplier on Again
    0.1,   # w6: difficulty delta on Again
    0.7,   # w7: stability growth on Hard
    0.2,   # w8: difficulty delta on Hard
    1.0,   # w9: stability growth on Good
    0.05,  # w10: difficulty delta on Good
    1.5,   # w11: stability growth on Easy
    0.15,  # w12: difficulty delta on Easy
    0.01,  # w13: first-review stability bonus, Again
    0.05,  # w14: first-review stability bonus, Hard
    0.15,  # w15: first-review stability bonus, Good
    0.5,   # w16: first-review stability bonus, Easy
)

MIN_DIFFICULTY = 1.0
MAX_DIFFICULTY = 10.0
MIN_STABILITY = 0.1
INITIAL_RETRIEVABILITY = 0.9

_DIFFICULTY_DELTA_WEIGHT = {Rating.AGAIN: 6, Rating.HARD: 8, Rating.GOOD: 10, Rating.EASY: 12}
_STABILITY_GROWTH_WEIGHT = {Rating.HARD: 7, Rating.GOOD: 9, Rating.EASY: 11}


@dataclass(frozen=True)
class FSRSParameters:
    request_retention: float = 0.9
    maximum_interval: int = 36500
    weights: tuple[float, ...] = DEFAULT_WEIGHTS


DEFAULT_PARAMETERS = FSRSParameters()


def create_initial_flashcard(
    user_id: str,
    question: str,
    answer: str,
    now: Optional[datetime] = None,
    params: FSRSParameters = DEFAULT_PARAMETERS,
) -> Flashcard:
    """Build a new card that is due immediately."""
    now = now or datetime.now()
    return Flashcard(
        id=None,
        user_id=user_id,
        question=question,
        answer=answer,
        created_at=now,
        last_review=now,
        next_review=now,
        difficulty=params.weights[1],
        stability=params.weights[0],
        retrievability=INITIAL_RETRIEVABILITY,
        review_count=0,
        last_rating=0,
        consecutive_failures=0,
    )


def validate_rating(rating: int) -> Rating:
    try:
        return Rating(rating)
    except ValueError:
        raise InvalidRatingError(f"Rating must be between 1 and 4, got {rating!r}") from None


def next_interval_days(stability: float, params: FSRSParameters = DEFAULT_PARAMETERS) -> int:
    """Days until the next review for a given stability."""
    interval = round(stability * math.log(params.request_retention) / math.log(0.9))
    return min(interval, params.maximum_interval)


def compute_next_review(
    card: Flashcard,
    rating: int,
    now: Optional[datetime] = None,
    params: FSRSParameters = DEFAULT_PARAMETERS,
) -> Flashcard:
    """Calculate the card's state after a review.

    Args:
        card: Card being reviewed; last_review must be set.
        rating: 1=Again, 2=Hard, 3=Good, 4=Easy
        now: Review time (defaults to the current time)
        params: Scheduler weights and interval limits

    Returns:
        A new Flashcard with updated difficulty, stability, retrievability
        and next_review.
    """
    rating = validate_rating(rating)
    now = now or datetime.now()
    w = params.weights
    elapsed_days = max(0.0, (now - card.last_review).total_seconds() / 86400)
    first_review = card.review_count == 0

    # Difficulty
    if first_review:
        difficulty = w[1] - w[2] * (rating - 1)
    else:
        difficulty = card.difficulty + w[_DIFFICULTY_DELTA_WEIGHT[rating]]
    difficulty = max(MIN_DIFFICULTY, min(MAX_DIFFICULTY, difficulty))

    # Stability and retrievability
    if first_review:
        stability = w[0] + w[13 + rating - 1]
        retrievability = INITIAL_RETRIEVABILITY
    else:
        r_before = 0.9 ** (elapsed_days / card.stability)
        if rating == Rating.AGAIN:
            stability = w[5] * difficulty
        else:
            growth = w[_STABILITY_GROWTH_WEIGHT[rating]]
            stability = card.stability * (
                1 + growth * difficulty * math.sqrt(elapsed_days / card.stability)
            )
        retrievability = r_before + (rating - 3) * 0.1

    stability = max(MIN_STABILITY, stability)
    retrievability = max(0.0, min(1.0, retrievability))

    interval = next_interval_days(stability, params)
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)

    return replace(
        card,
        last_review=now,
        next_review=midnight + timedelta(days=interval),
        difficulty=difficulty,
        stability=stability,
        retrievability=retrievability,
        review_count=card.review_count + 1,
        last_rating=int(rating),
        consecutive_failures=card.consecutive_failures + 1 if rating == Rating.AGAIN else 0,
    )


def is_due(card: Flashcard, now: Optional[datetime] = None) -> bool:
    return card.next_review <= (now or datetime.now())
