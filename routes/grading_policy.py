from fastapi import APIRouter
from models import GradingPolicy
from pydantic import ValidationError
from storage import save_grading_policy, load_grading_policy
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


def current_policy() -> GradingPolicy:
    data = load_grading_policy()
    if data is None:
        return GradingPolicy()
    try:
        return GradingPolicy(**data)
    except ValidationError as e:
        logger.warning("Stored grading policy is invalid, using defaults: %s", e)
        return GradingPolicy()


@router.get("/grading-policy", response_model=GradingPolicy)
def get_grading_policy():
    return current_policy()


@router.post("/grading-policy", response_model=GradingPolicy)
def post_grading_policy(policy: GradingPolicy):
    logger.info("POST /grading-policy: floor=%s, pass_threshold=%s, max_value=%s",
                policy.floor, policy.pass_threshold, policy.max_value)
    save_grading_policy(policy.model_dump())
    return policy
