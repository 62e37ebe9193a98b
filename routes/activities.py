from fastapi import APIRouter, HTTPException
from models import Activity, ActivityCreate, Correction, PartsUpdate, activity_from_record
from storage import load_activities, load_activity, save_activity, load_corrections_for_activity, save_correction
from grading import recompute_correction
from part_arrays import sync_to_parts
from routes.grading_policy import current_policy
from pydantic import ValidationError
from typing import List
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


def get_activity_or_404(activity_id: int) -> Activity:
    activity = activity_from_record(load_activity(activity_id))
    if activity is None:
        logger.warning("Activity %s not found", activity_id)
        raise HTTPException(status_code=404, detail=f"Activity {activity_id} not found")
    return activity


@router.get("/activities", response_model=List[Activity])
def get_activities():
    activities = [a for a in map(activity_from_record, load_activities().values()) if a is not None]
    logger.info("GET /activities: returned %d activities", len(activities))
    return activities


@router.post("/activities", response_model=Activity)
def post_activity(payload: ActivityCreate):
    logger.info("POST /activities: name=%s, parts=%d", payload.name, len(payload.parts))
    saved = save_activity({"id": None, **payload.model_dump()})
    activity = Activity(**saved)
    # persist the generated part ids
    save_activity(activity.model_dump())
    return activity


@router.get("/activities/{activity_id}", response_model=Activity)
def get_activity(activity_id: int):
    return get_activity_or_404(activity_id)


@router.put("/activities/{activity_id}/parts", response_model=Activity)
def put_activity_parts(activity_id: int, payload: PartsUpdate):
    activity = get_activity_or_404(activity_id)
    activity = Activity(id=activity.id, name=activity.name, parts=payload.parts)

    corrections = []
    for record in load_corrections_for_activity(activity_id):
        try:
            corrections.append(Correction(**record))
        except ValidationError as e:
            logger.warning("Correction %s left as is, unreadable: %s", record.get("id"), e)

    save_activity(activity.model_dump())
    policy = current_policy()
    part_count = len(activity.parts)
    for correction in corrections:
        correction.points_earned = sync_to_parts(correction.points_earned, part_count, 0.0)
        if correction.disabled_parts is not None:
            correction.disabled_parts = sync_to_parts(correction.disabled_parts, part_count, False)
        correction = correction.model_copy(update=recompute_correction(correction, activity.points, policy))
        save_correction(correction.model_dump(mode="json"))
    logger.info("PUT /activities/%s/parts: %d parts, %d corrections resynced",
                activity_id, part_count, len(corrections))
    return activity
