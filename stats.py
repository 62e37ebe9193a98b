"""Per-activity and per-group statistics over already graded corrections.

Both reports are pure functions of the activity and its corrections, so they
give the same result whatever order the corrections arrive in. A correction
that cannot be read contributes zeros rather than failing the report.
"""
import logging
import math
from typing import Dict, Iterable, List, Optional, Tuple

from grading import DEFAULT_POLICY, round2
from models import (
    Activity,
    ActivityStats,
    Correction,
    CorrectionStatus,
    GradingPolicy,
    GroupStats,
    PartDistribution,
    StatusCounts,
)
from part_arrays import is_disabled, to_number

logger = logging.getLogger(__name__)

UNGROUPED_ID = "ungrouped"
UNGROUPED_NAME = "Sans groupe"


def _included(corrections: Iterable[Correction], include_inactive: bool) -> List[Correction]:
    if include_inactive:
        return list(corrections)
    return [c for c in corrections if c.status == CorrectionStatus.ACTIVE]


def _grade_summary(grades: List[float]) -> Tuple[float, float, float]:
    """(average, min, max) of *grades*, all 0 when empty."""
    if not grades:
        return 0.0, 0.0, 0.0
    return round2(math.fsum(grades) / len(grades)), round2(min(grades)), round2(max(grades))


def masked_points(correction: Correction, part_count: int) -> List[float]:
    """Points earned aligned to *part_count*, disabled parts set to 0."""
    earned = correction.points_earned
    return [
        0.0 if is_disabled(correction.disabled_parts, i)
        else to_number(earned[i]) if i < len(earned) else 0.0
        for i in range(part_count)
    ]


def points_distribution(all_points: List[List[float]], part_count: int) -> List[PartDistribution]:
    if not all_points:
        return []

    values_by_part: List[List[float]] = [[] for _ in range(part_count)]
    mins = [math.inf] * part_count
    maxs = [-math.inf] * part_count
    for points in all_points:
        for i, value in enumerate(points[:part_count]):
            if value is None or math.isnan(value):
                continue
            values_by_part[i].append(value)
            mins[i] = min(mins[i], value)
            maxs[i] = max(maxs[i], value)

    return [
        PartDistribution(
            average=round2(math.fsum(values_by_part[i]) / len(all_points)),
            min=mins[i] if mins[i] != math.inf else 0.0,
            max=maxs[i] if maxs[i] != -math.inf else 0.0,
        )
        for i in range(part_count)
    ]


def activity_stats(activity_id: int, activity: Optional[Activity],
                   corrections: List[Correction], include_inactive: bool = False,
                   policy: Optional[GradingPolicy] = None) -> ActivityStats:
    policy = policy or DEFAULT_POLICY
    if activity is None:
        logger.warning("Activity %s not found, part count taken from corrections", activity_id)
        part_count = max((len(c.points_earned) for c in corrections), default=0)
    else:
        part_count = len(activity.parts)

    status_counts = StatusCounts(
        deactivated=sum(1 for c in corrections if c.status == CorrectionStatus.DEACTIVATED),
        non_rendu=sum(1 for c in corrections if c.status == CorrectionStatus.NON_RENDU),
        absent=sum(1 for c in corrections if c.status == CorrectionStatus.ABSENT),
    )

    included = _included(corrections, include_inactive)
    grades = [c.final_grade for c in included if c.final_grade is not None]
    average, lowest, highest = _grade_summary(grades)
    pass_count = sum(1 for g in grades if g >= policy.pass_threshold)
    fail_count = sum(1 for g in grades if g < policy.pass_threshold)
    total = len(included)

    all_points = [masked_points(c, part_count) for c in included]

    return ActivityStats(
        activity_id=activity_id,
        total_corrections=total,
        average_grade=average,
        min_grade=lowest,
        max_grade=highest,
        pass_count=pass_count,
        fail_count=fail_count,
        pass_rate=round2(pass_count / total * 100) if total else 0.0,
        unique_students=len({c.student_id for c in included if c.student_id is not None}),
        unique_classes=len({c.class_id for c in included if c.class_id is not None}),
        status_counts=status_counts,
        all_points_earned=all_points,
        points_distribution=points_distribution(all_points, part_count),
    )


def _group_key(correction: Correction) -> Tuple[str, str]:
    if correction.group_id is not None:
        name = correction.group_name or f"Groupe {correction.group_id}"
        return f"group-{correction.group_id}", name
    if correction.class_id is not None:
        sub = correction.sub_class or ""
        name = correction.class_name or f"Classe {correction.class_id}"
        if sub:
            name = f"{name} ({sub})"
        return f"class-{correction.class_id}-{sub}" if sub else f"class-{correction.class_id}", name
    return UNGROUPED_ID, UNGROUPED_NAME


def group_stats(corrections: List[Correction], include_inactive: bool = False) -> List[GroupStats]:
    buckets: Dict[str, List[Correction]] = {}
    names: Dict[str, set] = {}
    for correction in _included(corrections, include_inactive):
        key, name = _group_key(correction)
        buckets.setdefault(key, []).append(correction)
        names.setdefault(key, set()).add(name)

    result = []
    for key in sorted(buckets):
        members = buckets[key]
        grades = [c.final_grade for c in members if c.final_grade is not None]
        average, lowest, highest = _grade_summary(grades)
        class_names = sorted({c.class_name for c in members if c.class_name})
        sub_classes = sorted({c.sub_class for c in members if c.sub_class})
        result.append(GroupStats(
            group_id=key,
            group_name=min(names[key]),
            class_name=class_names[0] if class_names else None,
            sub_class=sub_classes[0] if sub_classes else None,
            average_grade=average,
            min_grade=lowest,
            max_grade=highest,
            count=len(members),
        ))
    return result
