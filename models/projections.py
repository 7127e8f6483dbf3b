"""Read-only state handed to the presentation layer."""
from pydantic import BaseModel, computed_field
from typing import List, Optional

from .concept import Concept
from .progress import StudyDirection


class TriageState(BaseModel):
    package_id: Optional[str] = None
    current_concept: Optional[Concept] = None
    cursor: int = 0
    remaining: int = 0
    total_concepts: int = 0
    selected_count: int = 0
    hidden_count: int = 0
    can_undo: bool = False
    quota_remaining: int = 0
    completed: bool = False

    @computed_field
    @property
    def progress(self) -> float:
        decided = self.selected_count + self.hidden_count
        queued = decided + self.remaining
        if queued <= 0:
            return 1.0
        return decided / queued


class DueReviewState(BaseModel):
    direction: StudyDirection
    queue: List[int]
    completed_today: int = 0


class ChartPoint(BaseModel):
    day: str
    value: float


class MonthlyStats(BaseModel):
    active_days_this_month: int
    days_in_month: int
    discipline_score: int
    study_time_minutes: int = 0
    chart: List[ChartPoint]


class DailyGoalProgress(BaseModel):
    words_studied_today: int = 0
    daily_goal: int
    goal_achieved: bool = False
    total_deck_cards: int = 0
    mastered_deck_cards: int = 0
    available_deck_cards: int = 0


class ProgressSummary(BaseModel):
    streak_days: int
    daily_goal_progress: DailyGoalProgress
    monthly_stats: MonthlyStats
