import logging
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel

from part_arrays import canonical_disabled, canonical_points

logger = logging.getLogger(__name__)


class CorrectionStatus(str, Enum):
    ACTIVE = "ACTIVE"
    DEACTIVATED = "DEACTIVATED"
    NON_RENDU = "NON_RENDU"
    ABSENT = "ABSENT"


class GradingPolicy(BaseModel):
    floor: float = Field(default=5.0, ge=0)            # penalties never push a grade at or above this below it
    pass_threshold: float = Field(default=10.0, ge=0)  # final_grade needed to count as a pass
    max_value: float = Field(default=99.99, gt=0, le=99.99)  # storage ceiling for grade fields


class Part(BaseModel):
    id: Optional[str] = None
    label: str
    max_points: float = Field(ge=0)


class ActivityCreate(BaseModel):
    name: str
    parts: List[Part] = []


class Activity(BaseModel):
    id: int
    name: str
    parts: List[Part] = []

    @model_validator(mode="after")
    def _assign_part_ids(self):
        taken = {p.id for p in self.parts if p.id}
        counter = 1
        for part in self.parts:
            if part.id:
                continue
            while f"p{counter}" in taken:
                counter += 1
            part.id = f"p{counter}"
            taken.add(part.id)
        return self

    @property
    def points(self) -> List[float]:
        return [p.max_points for p in self.parts]


class Correction(BaseModel):
    id: int
    activity_id: int
    student_id: Optional[int] = None
    class_id: Optional[int] = None
    class_name: Optional[str] = None
    sub_class: Optional[str] = None
    group_id: Optional[int] = None
    group_name: Optional[str] = None
    points_earned: List[float] = []
    disabled_parts: Optional[List[bool]] = None
    penalty: Optional[float] = None
    bonus: Optional[float] = None
    grade: Optional[float] = None
    final_grade: Optional[float] = None
    percentage_grade: Optional[float] = None
    status: CorrectionStatus = CorrectionStatus.ACTIVE

    @field_validator("points_earned", mode="before")
    @classmethod
    def _decode_points(cls, raw: Any) -> List[float]:
        return canonical_points(raw)

    @field_validator("disabled_parts", mode="before")
    @classmethod
    def _decode_disabled(cls, raw: Any) -> Optional[List[bool]]:
        return canonical_disabled(raw)

    def points_by_part(self, activity: Activity) -> Dict[str, float]:
        """Map each part id of *activity* to the points earned on it."""
        return {
            part.id: (self.points_earned[i] if i < len(self.points_earned) else 0.0)
            for i, part in enumerate(activity.parts)
        }


class CorrectionCreate(BaseModel):
    student_id: Optional[int] = None
    class_id: Optional[int] = None
    class_name: Optional[str] = None
    sub_class: Optional[str] = None
    group_id: Optional[int] = None
    group_name: Optional[str] = None
    points_earned: List[float] = []
    disabled_parts: Optional[List[bool]] = None
    penalty: Optional[float] = None
    bonus: Optional[float] = None


# ── Request bodies ────────────────────────────────────────────────────────────

class PartsUpdate(BaseModel):
    parts: List[Part]


class PointsUpdate(BaseModel):
    points_earned: List[float]


class PenaltyUpdate(BaseModel):
    penalty: Optional[float] = None


class BonusUpdate(BaseModel):
    bonus: Optional[float] = None


class DisabledPartsUpdate(BaseModel):
    disabled_parts: Optional[List[bool]] = None


class StatusUpdate(BaseModel):
    status: CorrectionStatus


# ── Engine results and reports ────────────────────────────────────────────────

class GradeResult(BaseModel):
    grade: float
    final_grade: float


class _Report(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PartDistribution(_Report):
    average: float = 0.0
    min: float = 0.0
    max: float = 0.0


class StatusCounts(_Report):
    deactivated: int = 0
    non_rendu: int = 0
    absent: int = 0


class ActivityStats(_Report):
    activity_id: int
    total_corrections: int = 0
    average_grade: float = 0.0
    min_grade: float = 0.0
    max_grade: float = 0.0
    pass_count: int = 0
    fail_count: int = 0
    pass_rate: float = 0.0
    unique_students: int = 0
    unique_classes: int = 0
    status_counts: StatusCounts = StatusCounts()
    all_points_earned: List[List[float]] = []
    points_distribution: List[PartDistribution] = []


class GroupStats(_Report):
    group_id: str
    group_name: str
    class_name: Optional[str] = None
    sub_class: Optional[str] = None
    average_grade: float = 0.0
    min_grade: float = 0.0
    max_grade: float = 0.0
    count: int = 0


class RecalculationSummary(_Report):
    processed: int = 0
    updated: int = 0
    skipped: int = 0
    last_id: Optional[int] = None
    completed: bool = False


def activity_from_record(raw: Optional[dict]) -> Optional[Activity]:
    """Build an Activity from a stored record, or None when it is missing or unreadable."""
    if raw is None:
        return None
    try:
        return Activity(**raw)
    except ValidationError as e:
        logger.warning("Unreadable activity %s: %s", raw.get("id"), e)
        return None
