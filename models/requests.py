from pydantic import BaseModel, Field

from .progress import Grade, StudyDirection, StudyProgress
from .selection import Outcome


class DecisionRequest(BaseModel):
    concept_id: int
    outcome: Outcome


class GradeRequest(BaseModel):
    concept_id: int
    direction: StudyDirection = StudyDirection.FRONT_TO_BACK
    grade: Grade
    elapsed_ms: int = Field(default=0, ge=0)


class GradeResult(BaseModel):
    progress: StudyProgress
    next_review_in: str
