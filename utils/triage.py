"""Swipe triage: turns a package's undecided concepts into a personal deck.

Each user has at most one in-memory session (queue, cursor, undo history).
Everything durable goes through the store one decision at a time, so a
dropped session never loses a committed decision.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, Dict, List, Optional

from config import Settings
from db.store import Store
from models.concept import Concept
from models.projections import TriageState
from models.selection import Outcome, Selection, SelectionStatus
from models.progress import StudyDirection
from utils.clock import SystemClock, local_day
from utils.errors import EmptyDeckError, NoActiveSession, NotQueueHead, PackageNotFound, QuotaExceeded
from utils.locks import KeyedLocks
from utils.scheduler import repair_deck
from utils.signals import emit, quota_exceeded
from utils.sm2 import initial_progress
from utils.undo import UndoHistory, UndoRecord

logger = logging.getLogger(__name__)


def never_premium(user_id: str) -> bool:
    return False


@dataclass
class TriageSession:
    package_id: str
    queue: List[Concept]
    total_concepts: int
    undo: UndoHistory
    cursor: int = 0
    selected_count: int = 0
    hidden_count: int = 0
    skipped: bool = False

    @property
    def head(self) -> Optional[Concept]:
        if self.skipped or self.cursor >= len(self.queue):
            return None
        return self.queue[self.cursor]

    @property
    def remaining(self) -> int:
        if self.skipped:
            return 0
        return len(self.queue) - self.cursor


class TriageEngine:
    def __init__(
        self,
        store: Store,
        settings: Settings,
        is_premium: Callable[[str], bool] = never_premium,
        clock=None,
    ):
        self.store = store
        self.settings = settings
        self.is_premium = is_premium
        self.clock = clock or SystemClock()
        self._sessions: Dict[str, TriageSession] = {}
        self._locks = KeyedLocks()

    def quota_for(self, user_id: str) -> int:
        if self.is_premium(user_id):
            return self.settings.triage.premium_daily_quota
        return self.settings.triage.free_daily_quota

    def quota_remaining(self, user_id: str, today: Optional[date] = None) -> int:
        today = today or local_day(self.clock.now())
        used = self.store.count_keeps_on(user_id, today)
        return max(0, self.quota_for(user_id) - used)

    def load_queue(self, user_id: str, package_id: str) -> TriageState:
        """Start a triage session over the undecided concepts of a package."""
        with self._locks.hold(user_id):
            total = self.store.count_package_concepts(package_id)
            if total == 0:
                raise PackageNotFound(package_id)
            repair_deck(self.store, user_id, self.clock.now(), self.settings.scheduler)
            queue = self.store.get_undecided_concepts(user_id, package_id)
            session = TriageSession(
                package_id=package_id,
                queue=queue,
                total_concepts=total,
                undo=UndoHistory(self.settings.triage.max_undo),
            )
            self._sessions[user_id] = session
            logger.info(
                "Triage queue for user %s, package %s: %d of %d undecided",
                user_id, package_id, len(queue), total,
            )
            return self._state(user_id, session)

    def decide(self, user_id: str, concept_id: int, outcome: Outcome) -> TriageState:
        """Record keep/discard for the concept at the head of the queue."""
        outcome = Outcome(outcome)
        with self._locks.hold(user_id):
            session = self._require_session(user_id)
            head = session.head
            if head is None or head.id != concept_id:
                raise NotQueueHead(concept_id, head.id if head else None)

            now = self.clock.now()
            today = local_day(now)
            if outcome is Outcome.KEEP:
                premium = self.is_premium(user_id)
                quota = self.quota_for(user_id)
                if self.store.count_keeps_on(user_id, today) >= quota:
                    logger.info("Quota of %d reached for user %s (premium=%s)", quota, user_id, premium)
                    emit(quota_exceeded, self, user_id=user_id, quota=quota, premium=premium)
                    raise QuotaExceeded(user_id, quota, premium)

            selection = Selection(
                user_id=user_id,
                concept_id=concept_id,
                package_id=session.package_id,
                status=outcome.status,
                decided_at=now,
                decided_day=today,
            )
            created = ()
            with self.store.transaction():
                self.store.upsert_selection(selection)
                if outcome is Outcome.KEEP:
                    for direction in self.settings.scheduler.directions:
                        self.store.upsert_progress(
                            initial_progress(
                                user_id, concept_id, StudyDirection(direction), now, self.settings.scheduler
                            )
                        )
                    created = tuple(self.settings.scheduler.directions)

            session.undo.push(UndoRecord(concept_id, outcome.status, created))
            if outcome is Outcome.KEEP:
                session.selected_count += 1
            else:
                session.hidden_count += 1
            session.cursor += 1
            logger.debug("User %s %s concept %s", user_id, outcome.value, concept_id)
            return self._state(user_id, session, today)

    def undo(self, user_id: str) -> TriageState:
        """Reverse the most recent decision still in the undo window. No-op when empty."""
        with self._locks.hold(user_id):
            session = self._sessions.get(user_id)
            if session is None or not session.undo:
                return self.state(user_id)
            record = session.undo.peek()
            previous = session.cursor - 1
            if previous < 0 or session.queue[previous].id != record.concept_id:
                raise RuntimeError(f"undo history out of step with queue for user {user_id}")
            with self.store.transaction():
                if record.created_progress:
                    self.store.delete_progress(user_id, record.concept_id)
                self.store.delete_selection(user_id, record.concept_id)
            session.undo.pop()

            session.cursor = previous
            if record.prior_status is SelectionStatus.SELECTED:
                session.selected_count -= 1
            else:
                session.hidden_count -= 1
            session.skipped = False
            logger.debug("User %s undid decision on concept %s", user_id, record.concept_id)
            return self._state(user_id, session)

    def skip_all(self, user_id: str) -> TriageState:
        """Leave the rest of the queue undecided and close the queue."""
        with self._locks.hold(user_id):
            session = self._require_session(user_id)
            session.skipped = True
            logger.info("User %s skipped %d concepts", user_id, len(session.queue) - session.cursor)
            return self._state(user_id, session)

    def finish(self, user_id: str) -> TriageState:
        """Close triage. Requires at least one concept in the user's deck."""
        with self._locks.hold(user_id):
            deck_size = self.store.count_selections(user_id, SelectionStatus.SELECTED) + self.store.count_selections(
                user_id, SelectionStatus.MASTERED
            )
            if deck_size == 0:
                raise EmptyDeckError(user_id)
            session = self._sessions.pop(user_id, None)
            if session is None:
                return self.state(user_id)
            state = self._state(user_id, session)
            logger.info(
                "User %s finished triage of %s: %d kept, %d hidden",
                user_id, session.package_id, session.selected_count, session.hidden_count,
            )
            return state.model_copy(update={"can_undo": False})

    def state(self, user_id: str) -> TriageState:
        session = self._sessions.get(user_id)
        if session is None:
            return TriageState(quota_remaining=self.quota_remaining(user_id))
        return self._state(user_id, session)

    def _require_session(self, user_id: str) -> TriageSession:
        session = self._sessions.get(user_id)
        if session is None:
            raise NoActiveSession(user_id)
        return session

    def _state(self, user_id: str, session: TriageSession, today: Optional[date] = None) -> TriageState:
        head = session.head
        return TriageState(
            package_id=session.package_id,
            current_concept=head,
            cursor=session.cursor,
            remaining=session.remaining,
            total_concepts=session.total_concepts,
            selected_count=session.selected_count,
            hidden_count=session.hidden_count,
            can_undo=bool(session.undo),
            quota_remaining=self.quota_remaining(user_id, today),
            completed=head is None,
        )
