from fastapi import APIRouter
from models import ActivityStats, Correction, GroupStats, activity_from_record
from storage import load_activity, load_corrections_for_activity
from stats import activity_stats, group_stats
from routes.grading_policy import current_policy
from pydantic import ValidationError
from typing import List
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


def _load_corrections(activity_id: int) -> List[Correction]:
    corrections = []
    for record in load_corrections_for_activity(activity_id):
        try:
            corrections.append(Correction(**record))
        except ValidationError as e:
            logger.warning("Skipping unreadable correction %s: %s", record.get("id"), e)
    return corrections


@router.get("/activities/{activity_id}/stats", response_model=ActivityStats)
def get_activity_stats(activity_id: int, include_inactive: bool = False):
    logger.info("GET /activities/%s/stats: include_inactive=%s", activity_id, include_inactive)

    activity = activity_from_record(load_activity(activity_id))
    result = activity_stats(
        activity_id, activity, _load_corrections(activity_id), include_inactive, current_policy()
    )
    logger.info("GET /activities/%s/stats: %d corrections, average %.2f",
                activity_id, result.total_corrections, result.average_grade)
    return result


@router.get("/activities/{activity_id}/stats/groups", response_model=List[GroupStats])
def get_group_stats(activity_id: int, include_inactive: bool = False):
    logger.info("GET /activities/%s/stats/groups: include_inactive=%s", activity_id, include_inactive)
    groups = group_stats(_load_corrections(activity_id), include_inactive)
    logger.info("GET /activities/%s/stats/groups: returned %d groups", activity_id, len(groups))
    return groups
