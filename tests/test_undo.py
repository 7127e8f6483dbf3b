import pytest

from models.selection import SelectionStatus
from utils.undo import UndoHistory, UndoRecord


def test_undo_history_is_last_in_first_out():
    history = UndoHistory(capacity=5)
    for concept_id in (1, 2, 3):
        history.push(UndoRecord(concept_id, SelectionStatus.SELECTED))

    assert [history.pop().concept_id for _ in range(3)] == [3, 2, 1]
    assert history.pop() is None


def test_sixth_push_evicts_the_oldest_record():
    history = UndoHistory(capacity=5)
    for concept_id in range(1, 7):
        history.push(UndoRecord(concept_id, SelectionStatus.HIDDEN))

    assert len(history) == 5
    popped = [history.pop().concept_id for _ in range(5)]
    assert popped == [6, 5, 4, 3, 2]
    assert not history


def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        UndoHistory(capacity=0)
