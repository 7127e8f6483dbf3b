from __future__ import annotations

import logging
from collections import defaultdict
from typing import List, Optional

from config import SchedulerSettings
from db.store import Store
from models.progress import Grade, Phase, StudyDirection, StudyProgress
from models.projections import DueReviewState
from models.selection import Selection, SelectionStatus
from utils.clock import SystemClock, local_day
from utils.errors import ConceptNotInDeck
from utils.locks import KeyedLocks
from utils.signals import concept_mastered, emit
from utils.sm2 import initial_progress, next_state

logger = logging.getLogger(__name__)


def repair_deck(store: Store, user_id: str, now, settings: SchedulerSettings) -> int:
    """Recreate rows missing on either side of the selection/progress pair.

    Returns the number of concepts repaired.
    """
    repaired = 0
    for selection in store.list_deck_without_progress(user_id):
        with store.transaction():
            for direction in settings.directions:
                store.upsert_progress(
                    initial_progress(user_id, selection.concept_id, StudyDirection(direction), now, settings)
                )
            if selection.status is SelectionStatus.MASTERED:
                store.set_selection_status(user_id, selection.concept_id, SelectionStatus.SELECTED)
        logger.warning("Recreated study progress for concept %s of user %s", selection.concept_id, user_id)
        repaired += 1

    orphans = defaultdict(list)
    for progress in store.list_progress_without_selection(user_id):
        orphans[progress.concept_id].append(progress)
    for concept_id, rows in orphans.items():
        concept = store.get_concept(concept_id)
        if concept is None:
            continue
        mastered = any(row.phase is Phase.MASTERED for row in rows)
        decided_at = _healed_decision_time(rows, now)
        store.upsert_selection(
            Selection(
                user_id=user_id,
                concept_id=concept_id,
                package_id=concept.package_id,
                status=SelectionStatus.MASTERED if mastered else SelectionStatus.SELECTED,
                decided_at=decided_at,
                decided_day=local_day(decided_at),
            )
        )
        logger.warning("Recreated selection for concept %s of user %s", concept_id, user_id)
        repaired += 1
    return repaired


def _healed_decision_time(rows: List[StudyProgress], now):
    """Earliest trace the progress rows keep of the lost keep decision.

    Never later than ``now`` and expressed in ``now``'s offset, so a healed
    row does not count against today's quota unless it was kept today.
    """
    seen = [row.last_review_at or row.due_at for row in rows]
    earliest = min([moment for moment in seen if moment is not None] + [now])
    if now.tzinfo is not None:
        earliest = earliest.astimezone(now.tzinfo)
    return earliest


class SpacedRepetitionScheduler:
    """Applies graded reviews to study progress and answers due-queue queries."""

    def __init__(self, store: Store, settings: SchedulerSettings, clock=None):
        self.store = store
        self.settings = settings
        self.clock = clock or SystemClock()
        self._locks = KeyedLocks()

    def grade(
        self,
        user_id: str,
        concept_id: int,
        direction: StudyDirection,
        grade: Grade,
        now=None,
    ) -> StudyProgress:
        direction = StudyDirection(direction)
        grade = Grade(grade)
        now = now or self.clock.now()
        with self._locks.hold((user_id, concept_id, direction.value)):
            with self.store.transaction():
                current = self.store.get_progress(user_id, concept_id, direction)
                if current is None:
                    current = self._heal_progress(user_id, concept_id, direction, now)
                updated = next_state(current, grade, now, self.settings)
                self.store.upsert_progress(updated)
                if (updated.phase is Phase.MASTERED) != (current.phase is Phase.MASTERED):
                    self._mirror_selection(user_id, concept_id, updated)

        newly_mastered = updated.phase is Phase.MASTERED and current.phase is not Phase.MASTERED
        if newly_mastered:
            logger.info(
                "Concept %s (%s) mastered by user %s at %.1f days",
                concept_id, direction.value, user_id, updated.interval_days,
            )
            emit(
                concept_mastered,
                self,
                user_id=user_id,
                concept_id=concept_id,
                direction=direction,
                interval_days=updated.interval_days,
            )
        return updated

    def due_concepts(self, user_id: str, direction: StudyDirection, now=None) -> List[int]:
        """Concept ids due for review, oldest due first."""
        now = now or self.clock.now()
        return [row.concept_id for row in self.store.due_progress(user_id, StudyDirection(direction), now)]

    def due_review_state(self, user_id: str, direction: StudyDirection, now=None) -> DueReviewState:
        now = now or self.clock.now()
        direction = StudyDirection(direction)
        repair_deck(self.store, user_id, now, self.settings)
        return DueReviewState(
            direction=direction,
            queue=self.due_concepts(user_id, direction, now),
            completed_today=self.store.count_reviewed_on(user_id, direction, local_day(now)),
        )

    def get_progress(self, user_id: str, concept_id: int, direction: StudyDirection) -> Optional[StudyProgress]:
        return self.store.get_progress(user_id, concept_id, StudyDirection(direction))

    def _heal_progress(self, user_id: str, concept_id: int, direction: StudyDirection, now) -> StudyProgress:
        selection = self.store.get_selection(user_id, concept_id)
        if selection is None or selection.status is SelectionStatus.HIDDEN:
            raise ConceptNotInDeck(user_id, concept_id, direction.value)
        progress = initial_progress(user_id, concept_id, direction, now, self.settings)
        self.store.upsert_progress(progress)
        if selection.status is SelectionStatus.MASTERED:
            self._mirror_selection(user_id, concept_id, progress)
        logger.warning(
            "Concept %s (%s) of user %s had no study progress; recreated with defaults",
            concept_id, direction.value, user_id,
        )
        return progress

    def _mirror_selection(self, user_id: str, concept_id: int, changed: StudyProgress) -> None:
        """Selection is MASTERED while any study direction of the concept is mastered."""
        selection = self.store.get_selection(user_id, concept_id)
        if selection is None or selection.status is SelectionStatus.HIDDEN:
            return
        mastered = changed.phase is Phase.MASTERED
        if not mastered:
            for direction in self.settings.directions:
                direction = StudyDirection(direction)
                if direction is changed.direction:
                    continue
                other = self.store.get_progress(user_id, concept_id, direction)
                if other is not None and other.phase is Phase.MASTERED:
                    mastered = True
                    break
        status = SelectionStatus.MASTERED if mastered else SelectionStatus.SELECTED
        if selection.status is not status:
            self.store.set_selection_status(user_id, concept_id, status)
