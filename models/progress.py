from pydantic import BaseModel, Field
from datetime import date, datetime
from enum import Enum
from typing import Optional


class StudyDirection(str, Enum):
    FRONT_TO_BACK = "front_to_back"
    BACK_TO_FRONT = "back_to_front"


class Phase(str, Enum):
    LEARNING = "learning"
    REVIEW = "review"
    MASTERED = "mastered"


class Grade(str, Enum):
    HARD = "hard"
    MEDIUM = "medium"
    EASY = "easy"


class StudyProgress(BaseModel):
    user_id: str
    concept_id: int
    direction: StudyDirection
    phase: Phase = Phase.LEARNING
    interval_days: float = Field(default=0.0, ge=0)
    ease_factor: float = 2.5
    due_at: datetime
    lapses: int = Field(default=0, ge=0)
    review_count: int = Field(default=0, ge=0)
    last_review_at: Optional[datetime] = None
    last_review_day: Optional[date] = None
    mastered_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @property
    def successful_reviews(self) -> int:
        return self.review_count - self.lapses
