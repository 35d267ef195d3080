"""
Stability and Difficulty Updates

Implements the memory-state update formulas applied on every graded review.

Key principles:
- Spaced, effortful success produces the largest stability gains
- Failures shrink stability toward a floor, never to zero
- Difficulty reflects learning efficiency and stays within [1, 10]
"""

from __future__ import annotations
import math

from wordy.srs.constants import (
    Grade,
    S_MIN,
    D_MIN,
    D_MAX,
    INITIAL_STABILITY,
    D_INITIAL_GOOD,
    D_INITIAL_STEP,
    STABILITY_GAIN,
    STABILITY_DECAY,
    RETRIEVABILITY_GAIN,
    K_FAIL,
    LAPSE_PENALTY,
    ETA,
    MEAN_REVERSION,
    BASE_GAIN,
    U_RATING,
)


def _clip_difficulty(difficulty: float) -> float:
    return max(D_MIN, min(D_MAX, difficulty))


def initial_stability(grade: Grade) -> float:
    """Stability after the first-ever review, looked up by grade."""
    return INITIAL_STABILITY[grade]


def initial_difficulty(grade: Grade) -> float:
    """
    Difficulty after the first-ever review.

    Good starts at the middle of the scale; every grade below Good adds
    D_INITIAL_STEP, Easy subtracts it.
    """
    return _clip_difficulty(D_INITIAL_GOOD + D_INITIAL_STEP * (Grade.GOOD - grade))


def update_difficulty(difficulty: float, grade: Grade) -> float:
    """
    Update difficulty based on the review outcome.

    Formula:
        D' = D + eta * u(grade)
        D_new = clip(m * D_0 + (1 - m) * D', 1, 10)

    Where:
        - u(grade) is the direction of the change (up on Again/Hard, down on Good/Easy)
        - m pulls difficulty back toward the initial Good difficulty D_0,
          so long runs of one grade cannot pin D to a bound forever

    Args:
        difficulty: Current difficulty
        grade: Review grade

    Returns:
        New difficulty value (clipped to [1, 10])
    """
    moved = difficulty + ETA * U_RATING[grade]
    reverted = MEAN_REVERSION * D_INITIAL_GOOD + (1.0 - MEAN_REVERSION) * moved
    return _clip_difficulty(reverted)


def update_stability_on_success(
    stability: float,
    retrievability: float,
    difficulty: float,
    grade: Grade
) -> float:
    """
    Update stability after a successful retrieval (Hard/Good/Easy).

    Formula:
        growth = e^g * (11 - D) * S^(-decay) * (e^(r_gain * (1 - R)) - 1) * base_gain(grade)
        S_new = S * (1 + growth)

    Where:
        - (1 - R) rewards reviews that happen late: recalling a word that was
          close to being forgotten is stronger evidence than an early review
        - (11 - D) slows learning for difficult items
        - S^(-decay) makes large stabilities grow proportionally slower

    Args:
        stability: Current stability (S)
        retrievability: Retrievability at review time (R)
        difficulty: Difficulty before this review (D)
        grade: HARD, GOOD or EASY

    Returns:
        New stability value (never below the current one)
    """
    if grade == Grade.AGAIN:
        raise ValueError("Use update_stability_on_failure for AGAIN")

    growth = (
        math.exp(STABILITY_GAIN)
        * (11.0 - difficulty)
        * math.pow(stability, -STABILITY_DECAY)
        * (math.exp(RETRIEVABILITY_GAIN * (1.0 - retrievability)) - 1.0)
        * BASE_GAIN[grade]
    )
    return max(S_MIN, stability * (1.0 + growth))


def update_stability_on_failure(
    stability: float,
    retrievability: float,
    is_lapse: bool = False
) -> float:
    """
    Update stability after a failed retrieval (Again).

    Formula:
        S_new = max(S_min, S * (1 - k_fail * R))

    Failures are penalized more strongly when recall was expected (high R).
    A lapse of a known word additionally keeps at most LAPSE_PENALTY of S.
    Repeated failures converge on S_min instead of oscillating.

    Args:
        stability: Current stability
        retrievability: Retrievability at review time
        is_lapse: True when a known word was forgotten

    Returns:
        New stability value (reduced)
    """
    new_stability = stability * (1.0 - K_FAIL * retrievability)
    if is_lapse:
        new_stability = min(new_stability, stability * LAPSE_PENALTY)
    return max(S_MIN, new_stability)


def apply_review_update(
    stability: float,
    difficulty: float,
    retrievability: float,
    grade: Grade,
    is_lapse: bool = False
) -> tuple[float, float]:
    """
    Apply the subsequent-review update rules to get new S and D.

    Stability uses the difficulty from before this review.

    Returns:
        (new_stability, new_difficulty)
    """
    if grade == Grade.AGAIN:
        new_stability = update_stability_on_failure(stability, retrievability, is_lapse)
    else:
        new_stability = update_stability_on_success(stability, retrievability, difficulty, grade)

    new_difficulty = update_difficulty(difficulty, grade)
    return new_stability, new_difficulty
