from pydantic import BaseModel
import datetime


class DailyLedgerEntry(BaseModel):
    user_id: str
    date: datetime.date
    words_studied: int = 0
    correct_answers: int = 0
    total_answers: int = 0
    study_time_ms: int = 0
    streak_count: int = 1
    goal_achieved: bool = False

    class Config:
        from_attributes = True

    @property
    def accuracy(self) -> float:
        if self.total_answers <= 0:
            return 0.0
        return round(self.correct_answers / self.total_answers * 100, 1)
