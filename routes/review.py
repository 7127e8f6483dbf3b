from fastapi import APIRouter, Depends, Query

from models.progress import Grade, StudyDirection
from models.projections import DueReviewState
from models.requests import GradeRequest, GradeResult
from routes.deps import get_services, http_error
from utils.errors import WordCoachError
from utils.services import Services
from utils.sm2 import describe_due

router = APIRouter()


@router.get("/{user_id}/due", response_model=DueReviewState)
def due_queue(
    user_id: str,
    direction: StudyDirection = Query(StudyDirection.FRONT_TO_BACK),
    services: Services = Depends(get_services),
):
    """Concepts due for review in one direction, oldest due first."""
    try:
        return services.scheduler.due_review_state(user_id, direction)
    except WordCoachError as exc:
        raise http_error(exc)


@router.post("/{user_id}/grade", response_model=GradeResult)
def grade_review(user_id: str, review: GradeRequest, services: Services = Depends(get_services)):
    """Apply the learner's self-assessed grade and log the answer in today's ledger."""
    now = services.scheduler.clock.now()
    try:
        progress = services.scheduler.grade(
            user_id, review.concept_id, review.direction, review.grade, now=now
        )
    except WordCoachError as exc:
        raise http_error(exc)
    services.daily.record_review(
        user_id,
        was_correct=review.grade is not Grade.HARD,
        elapsed_ms=review.elapsed_ms,
        now=now,
    )
    return GradeResult(progress=progress, next_review_in=describe_due(progress.due_at, now))
