from collections import deque
from dataclasses import dataclass
from typing import Optional, Tuple

from models.selection import SelectionStatus


@dataclass(frozen=True)
class UndoRecord:
    concept_id: int
    prior_status: SelectionStatus
    created_progress: Tuple[str, ...] = ()


class UndoHistory:
    """Fixed-capacity LIFO of triage decisions.

    Pushing onto a full history drops the oldest record.
    """

    def __init__(self, capacity: int = 5):
        if capacity < 1:
            raise ValueError("undo capacity must be at least 1")
        self._records = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._records.maxlen

    def __len__(self) -> int:
        return len(self._records)

    def __bool__(self) -> bool:
        return bool(self._records)

    def push(self, record: UndoRecord) -> None:
        self._records.append(record)

    def pop(self) -> Optional[UndoRecord]:
        if not self._records:
            return None
        return self._records.pop()

    def peek(self) -> Optional[UndoRecord]:
        return self._records[-1] if self._records else None

    def clear(self) -> None:
        self._records.clear()
