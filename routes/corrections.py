from fastapi import APIRouter, HTTPException, Query
from models import (
    Activity,
    BonusUpdate,
    Correction,
    CorrectionCreate,
    DisabledPartsUpdate,
    PenaltyUpdate,
    PointsUpdate,
    RecalculationSummary,
    StatusUpdate,
)
from storage import load_correction, load_corrections_for_activity, save_correction, delete_correction
from grading import recompute_correction
from part_arrays import sync_to_parts
from recalculation import recalculate_percentage_grades
from routes.activities import get_activity_or_404
from routes.grading_policy import current_policy
from typing import List, Optional
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_correction_or_404(correction_id: int) -> Correction:
    data = load_correction(correction_id)
    if data is None:
        logger.warning("Correction %s not found", correction_id)
        raise HTTPException(status_code=404, detail=f"Correction {correction_id} not found")
    return Correction(**data)


def _regrade_and_save(correction: Correction, activity: Activity) -> Correction:
    derived = recompute_correction(correction, activity.points, current_policy())
    correction = correction.model_copy(update=derived)
    save_correction(correction.model_dump(mode="json"))
    logger.info("Correction %s regraded: grade=%s, final_grade=%s, percentage_grade=%s",
                correction.id, correction.grade, correction.final_grade, correction.percentage_grade)
    return correction


def _update(correction_id: int, **changes) -> Correction:
    correction = _get_correction_or_404(correction_id)
    activity = get_activity_or_404(correction.activity_id)
    correction = correction.model_copy(update=changes)
    return _regrade_and_save(correction, activity)


@router.post("/activities/{activity_id}/corrections", response_model=Correction)
def post_correction(activity_id: int, payload: CorrectionCreate):
    logger.info("POST /activities/%s/corrections: student=%s, class=%s",
                activity_id, payload.student_id, payload.class_id)
    activity = get_activity_or_404(activity_id)
    part_count = len(activity.parts)
    data = payload.model_dump()
    data["points_earned"] = sync_to_parts(data["points_earned"], part_count, 0.0)
    if data["disabled_parts"] is not None:
        data["disabled_parts"] = sync_to_parts(data["disabled_parts"], part_count, False)
    saved = save_correction({"id": None, "activity_id": activity_id, **data})
    return _regrade_and_save(Correction(**saved), activity)


@router.get("/activities/{activity_id}/corrections", response_model=List[Correction])
def get_activity_corrections(activity_id: int):
    get_activity_or_404(activity_id)
    corrections = [Correction(**c) for c in load_corrections_for_activity(activity_id)]
    logger.info("GET /activities/%s/corrections: returned %d corrections", activity_id, len(corrections))
    return sorted(corrections, key=lambda c: c.id)


@router.post("/corrections/recalculate-percentages", response_model=RecalculationSummary)
def post_recalculate_percentages(page_size: int = Query(100, ge=1), start_after: Optional[int] = None):
    logger.info("POST /corrections/recalculate-percentages: page_size=%d, start_after=%s",
                page_size, start_after)
    return recalculate_percentage_grades(page_size=page_size, start_after=start_after)


@router.get("/corrections/{correction_id}", response_model=Correction)
def get_correction(correction_id: int):
    return _get_correction_or_404(correction_id)


@router.delete("/corrections/{correction_id}")
def remove_correction(correction_id: int):
    logger.info("DELETE /corrections/%s", correction_id)
    if not delete_correction(correction_id):
        raise HTTPException(status_code=404, detail=f"Correction {correction_id} not found")
    return {"status": "ok"}


@router.put("/corrections/{correction_id}/points", response_model=Correction)
def put_points(correction_id: int, payload: PointsUpdate):
    logger.info("PUT /corrections/%s/points: %s", correction_id, payload.points_earned)
    correction = _get_correction_or_404(correction_id)
    activity = get_activity_or_404(correction.activity_id)
    points = sync_to_parts(payload.points_earned, len(activity.parts), 0.0)
    return _regrade_and_save(correction.model_copy(update={"points_earned": points}), activity)


@router.put("/corrections/{correction_id}/penalty", response_model=Correction)
def put_penalty(correction_id: int, payload: PenaltyUpdate):
    logger.info("PUT /corrections/%s/penalty: %s", correction_id, payload.penalty)
    return _update(correction_id, penalty=payload.penalty)


@router.put("/corrections/{correction_id}/bonus", response_model=Correction)
def put_bonus(correction_id: int, payload: BonusUpdate):
    logger.info("PUT /corrections/%s/bonus: %s", correction_id, payload.bonus)
    return _update(correction_id, bonus=payload.bonus)


@router.put("/corrections/{correction_id}/disabled-parts", response_model=Correction)
def put_disabled_parts(correction_id: int, payload: DisabledPartsUpdate):
    logger.info("PUT /corrections/%s/disabled-parts: %s", correction_id, payload.disabled_parts)
    correction = _get_correction_or_404(correction_id)
    activity = get_activity_or_404(correction.activity_id)
    flags = payload.disabled_parts
    if flags is not None:
        flags = sync_to_parts(flags, len(activity.parts), False)
    return _regrade_and_save(correction.model_copy(update={"disabled_parts": flags}), activity)


@router.put("/corrections/{correction_id}/status", response_model=Correction)
def put_status(correction_id: int, payload: StatusUpdate):
    logger.info("PUT /corrections/%s/status: %s", correction_id, payload.status.value)
    correction = _get_correction_or_404(correction_id)
    correction = correction.model_copy(update={"status": payload.status})
    save_correction(correction.model_dump(mode="json"))
    return correction
