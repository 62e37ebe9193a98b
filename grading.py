"""Grade derivation for corrections.

This is the single authoritative implementation of the grade rules used by the
correction routes, the activity-parts resync and the batch recalculation:

* ``validate_value`` keeps a grade field inside the storage contract,
* ``calculate_grade`` turns per-part points, penalty and bonus into
  ``grade``/``final_grade``,
* ``calculate_percentage_grade`` rebases ``final_grade`` on the active point
  budget.

None of these functions raise; bad input degrades to 0 or None.
"""
import logging
import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional

from models import Correction, GradeResult, GradingPolicy
from part_arrays import is_disabled, to_number

logger = logging.getLogger(__name__)

DEFAULT_POLICY = GradingPolicy()

_CENT = Decimal("0.01")


def round2(value: float) -> float:
    """Round half-up to 2 decimals (1.005 -> 1.01, unlike built-in round)."""
    return float(Decimal(repr(float(value))).quantize(_CENT, rounding=ROUND_HALF_UP))


def validate_value(value: Any, field_name: str = "value",
                   policy: Optional[GradingPolicy] = None) -> float:
    policy = policy or DEFAULT_POLICY
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.warning("%s: non-numeric value %r replaced by 0", field_name, value)
        return 0.0
    if math.isnan(number):
        return 0.0
    if number < 0:
        logger.warning("%s: negative value %s clamped to 0", field_name, number)
        return 0.0
    if number > policy.max_value:
        logger.warning("%s: value %s clamped to %s", field_name, number, policy.max_value)
        return policy.max_value
    return round2(number)


def calculate_grade(activity_points: List[Any], points_earned: List[Any],
                    penalty: Any = None, bonus: Any = None,
                    disabled_parts: Optional[List[Any]] = None,
                    policy: Optional[GradingPolicy] = None) -> GradeResult:
    policy = policy or DEFAULT_POLICY
    activity_points = list(activity_points or [])
    earned = list(points_earned or [])
    if len(earned) < len(activity_points):
        earned.extend([0] * (len(activity_points) - len(earned)))

    total_earned = 0.0
    total_possible = 0.0
    # entries past the last activity part are ignored
    for i, max_points in enumerate(activity_points):
        if is_disabled(disabled_parts, i):
            continue
        total_earned += to_number(earned[i])
        total_possible += to_number(max_points)

    if total_possible == 0:
        return GradeResult(grade=0.0, final_grade=0.0)

    grade = validate_value(total_earned, "grade", policy)
    p = validate_value(penalty, "penalty", policy)
    b = validate_value(bonus, "bonus", policy)

    if grade < policy.floor:
        final_grade = max(grade + b, grade)
    else:
        final_grade = max(policy.floor, grade - p + b)

    return GradeResult(grade=grade, final_grade=validate_value(final_grade, "final_grade", policy))


def calculate_percentage_grade(final_grade: Any, activity_points: List[Any],
                               disabled_parts: Optional[List[Any]] = None) -> Optional[float]:
    if final_grade is None or isinstance(final_grade, bool):
        return None
    try:
        final_grade = float(final_grade)
    except (TypeError, ValueError):
        return None
    if math.isnan(final_grade):
        return None
    if not activity_points:
        return None

    total_active = sum(
        to_number(points)
        for i, points in enumerate(activity_points)
        if not is_disabled(disabled_parts, i)
    )
    if total_active <= 0:
        return None

    percentage = (final_grade / total_active) * 100
    return round2(min(100.0, max(0.0, percentage)))


def recompute_correction(correction: Correction, activity_points: List[float],
                         policy: Optional[GradingPolicy] = None) -> Dict[str, Optional[float]]:
    """Derive grade, final_grade and percentage_grade for *correction*."""
    result = calculate_grade(
        activity_points,
        correction.points_earned,
        correction.penalty,
        correction.bonus,
        correction.disabled_parts,
        policy,
    )
    percentage = calculate_percentage_grade(
        result.final_grade, activity_points, correction.disabled_parts
    )
    return {
        "grade": result.grade,
        "final_grade": result.final_grade,
        "percentage_grade": percentage,
    }
