from pydantic import BaseModel
from datetime import date, datetime
from enum import Enum


class SelectionStatus(str, Enum):
    SELECTED = "selected"
    HIDDEN = "hidden"
    MASTERED = "mastered"


class Outcome(str, Enum):
    KEEP = "keep"
    DISCARD = "discard"

    @property
    def status(self) -> SelectionStatus:
        return SelectionStatus.SELECTED if self is Outcome.KEEP else SelectionStatus.HIDDEN


class Selection(BaseModel):
    user_id: str
    concept_id: int
    package_id: str
    status: SelectionStatus
    decided_at: datetime
    decided_day: date

    class Config:
        from_attributes = True
