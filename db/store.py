"""SQLite-backed store used by the triage, scheduling and ledger engines.

The engines only ever talk to the database through this class. Reads are
retried once on a transient ``sqlite3.OperationalError`` (locked database,
busy file); writes are never retried, because replaying an additive write
double counts. Both surface as ``StoreError``.
"""
from __future__ import annotations

import functools
import logging
import sqlite3
import threading
from contextlib import contextmanager
from datetime import date, datetime
from typing import Iterable, List, Optional

from models.concept import Concept, ConceptCreate, Package, PackageInfo
from models.ledger import DailyLedgerEntry
from models.progress import StudyDirection, StudyProgress
from models.selection import Selection, SelectionStatus
from utils.clock import to_storage
from utils.errors import StoreError

logger = logging.getLogger(__name__)

DECK_STATUSES = (SelectionStatus.SELECTED.value, SelectionStatus.MASTERED.value)


def read_retry(func):
    """Run a read query, retrying once when SQLite reports a transient error."""

    @functools.wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            return func(self, *args, **kwargs)
        except sqlite3.OperationalError as exc:
            logger.warning("Read %s failed (%s), retrying once", func.__name__, exc)
        except sqlite3.Error as exc:
            raise StoreError(f"{func.__name__} failed: {exc}") from exc
        try:
            return func(self, *args, **kwargs)
        except sqlite3.Error as exc:
            raise StoreError(f"{func.__name__} failed: {exc}") from exc

    return wrapper


def write_once(func):
    """Run a write; failures are surfaced immediately as StoreError."""

    @functools.wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            return func(self, *args, **kwargs)
        except sqlite3.Error as exc:
            logger.error("Write %s failed: %s", func.__name__, exc)
            raise StoreError(f"{func.__name__} failed: {exc}") from exc

    return wrapper


class Store:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        self._lock = threading.RLock()
        self._depth = 0

    def close(self) -> None:
        self.conn.close()

    def _execute(self, sql: str, params: Iterable = ()) -> sqlite3.Cursor:
        with self._lock:
            return self.conn.execute(sql, tuple(params))

    def _fetchone(self, sql: str, params: Iterable = ()) -> Optional[sqlite3.Row]:
        with self._lock:
            return self.conn.execute(sql, tuple(params)).fetchone()

    def _fetchall(self, sql: str, params: Iterable = ()) -> List[sqlite3.Row]:
        with self._lock:
            return self.conn.execute(sql, tuple(params)).fetchall()

    @contextmanager
    def transaction(self):
        """Group writes into one atomic unit. Nested calls join the outer one."""
        with self._lock:
            if self._depth:
                self._depth += 1
                try:
                    yield self
                finally:
                    self._depth -= 1
                return
            try:
                self.conn.execute("BEGIN IMMEDIATE")
            except sqlite3.Error as exc:
                raise StoreError(f"could not open transaction: {exc}") from exc
            self._depth = 1
            try:
                yield self
            except BaseException:
                self.conn.execute("ROLLBACK")
                raise
            else:
                try:
                    self.conn.execute("COMMIT")
                except sqlite3.Error as exc:
                    self.conn.execute("ROLLBACK")
                    raise StoreError(f"commit failed: {exc}") from exc
            finally:
                self._depth = 0

    # Packages and concepts

    @write_once
    def import_package(self, info: PackageInfo, words: List[ConceptCreate]) -> int:
        """Insert a package and its concepts; already known concept ids are left untouched."""
        with self.transaction():
            self._execute(
                """
                INSERT INTO packages (id, name, level) VALUES (?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET name = excluded.name, level = excluded.level
                """,
                (info.package_id, info.name or info.package_id, info.level),
            )
            row = self._fetchone(
                "SELECT COALESCE(MAX(position), 0) FROM concepts WHERE package_id = ?",
                (info.package_id,),
            )
            position = int(row[0])
            inserted = 0
            for word in words:
                position += 1
                cursor = self._execute(
                    """
                    INSERT OR IGNORE INTO concepts (
                        id, package_id, front_text, back_text, level, category,
                        example_front, example_back, pronunciation, position
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        word.id,
                        info.package_id,
                        word.front_text,
                        word.back_text,
                        word.level,
                        word.category,
                        word.example_front,
                        word.example_back,
                        word.pronunciation,
                        position,
                    ),
                )
                inserted += cursor.rowcount
        return inserted

    @read_retry
    def list_packages(self) -> List[Package]:
        rows = self._fetchall(
            """
            SELECT p.id, p.name, p.level, COUNT(c.id) AS concept_count
            FROM packages p
            LEFT JOIN concepts c ON c.package_id = p.id
            GROUP BY p.id
            ORDER BY p.level, p.id
            """
        )
        return [Package.model_validate(dict(row)) for row in rows]

    @read_retry
    def count_package_concepts(self, package_id: str) -> int:
        row = self._fetchone("SELECT COUNT(*) FROM concepts WHERE package_id = ?", (package_id,))
        return int(row[0])

    @read_retry
    def get_concept(self, concept_id: int) -> Optional[Concept]:
        row = self._fetchone("SELECT * FROM concepts WHERE id = ?", (concept_id,))
        return Concept.model_validate(dict(row)) if row else None

    @read_retry
    def get_concepts(self, package_id: str) -> List[Concept]:
        rows = self._fetchall(
            "SELECT * FROM concepts WHERE package_id = ? ORDER BY position, id",
            (package_id,),
        )
        return [Concept.model_validate(dict(row)) for row in rows]

    @read_retry
    def get_undecided_concepts(self, user_id: str, package_id: str) -> List[Concept]:
        rows = self._fetchall(
            """
            SELECT c.*
            FROM concepts c
            LEFT JOIN selections s ON s.concept_id = c.id AND s.user_id = ?
            WHERE c.package_id = ? AND s.concept_id IS NULL
            ORDER BY c.position, c.id
            """,
            (user_id, package_id),
        )
        return [Concept.model_validate(dict(row)) for row in rows]

    # Selections

    @read_retry
    def get_selection(self, user_id: str, concept_id: int) -> Optional[Selection]:
        row = self._fetchone(
            "SELECT * FROM selections WHERE user_id = ? AND concept_id = ?",
            (user_id, concept_id),
        )
        return Selection.model_validate(dict(row)) if row else None

    @write_once
    def upsert_selection(self, selection: Selection) -> None:
        self._execute(
            """
            INSERT INTO selections (user_id, concept_id, package_id, status, decided_at, decided_day)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(user_id, concept_id) DO UPDATE SET
                status = excluded.status,
                package_id = excluded.package_id,
                decided_at = excluded.decided_at,
                decided_day = excluded.decided_day
            """,
            (
                selection.user_id,
                selection.concept_id,
                selection.package_id,
                selection.status.value,
                to_storage(selection.decided_at),
                selection.decided_day.isoformat(),
            ),
        )

    @write_once
    def set_selection_status(self, user_id: str, concept_id: int, status: SelectionStatus) -> None:
        self._execute(
            "UPDATE selections SET status = ? WHERE user_id = ? AND concept_id = ?",
            (status.value, user_id, concept_id),
        )

    @write_once
    def delete_selection(self, user_id: str, concept_id: int) -> None:
        self._execute(
            "DELETE FROM selections WHERE user_id = ? AND concept_id = ?",
            (user_id, concept_id),
        )

    @read_retry
    def count_selections(
        self,
        user_id: str,
        status: Optional[SelectionStatus] = None,
        package_id: Optional[str] = None,
    ) -> int:
        filters = ["user_id = ?"]
        params: list[object] = [user_id]
        if status is not None:
            filters.append("status = ?")
            params.append(status.value)
        if package_id is not None:
            filters.append("package_id = ?")
            params.append(package_id)
        row = self._fetchone(
            f"SELECT COUNT(*) FROM selections WHERE {' AND '.join(filters)}",
            params,
        )
        return int(row[0])

    @read_retry
    def count_keeps_on(self, user_id: str, day: date) -> int:
        """Keep decisions made on ``day`` that are still live."""
        row = self._fetchone(
            """
            SELECT COUNT(*) FROM selections
            WHERE user_id = ? AND decided_day = ? AND status IN (?, ?)
            """,
            (user_id, day.isoformat(), *DECK_STATUSES),
        )
        return int(row[0])

    @read_retry
    def list_deck_without_progress(self, user_id: str) -> List[Selection]:
        rows = self._fetchall(
            """
            SELECT s.*
            FROM selections s
            WHERE s.user_id = ? AND s.status IN (?, ?)
              AND NOT EXISTS (
                SELECT 1 FROM study_progress p
                WHERE p.user_id = s.user_id AND p.concept_id = s.concept_id
              )
            ORDER BY s.concept_id
            """,
            (user_id, *DECK_STATUSES),
        )
        return [Selection.model_validate(dict(row)) for row in rows]

    @read_retry
    def list_progress_without_selection(self, user_id: str) -> List[StudyProgress]:
        rows = self._fetchall(
            """
            SELECT p.*
            FROM study_progress p
            WHERE p.user_id = ?
              AND NOT EXISTS (
                SELECT 1 FROM selections s
                WHERE s.user_id = p.user_id AND s.concept_id = p.concept_id
              )
            ORDER BY p.concept_id, p.direction
            """,
            (user_id,),
        )
        return [StudyProgress.model_validate(dict(row)) for row in rows]

    # Study progress

    @read_retry
    def get_progress(self, user_id: str, concept_id: int, direction: StudyDirection) -> Optional[StudyProgress]:
        row = self._fetchone(
            """
            SELECT * FROM study_progress
            WHERE user_id = ? AND concept_id = ? AND direction = ?
            """,
            (user_id, concept_id, StudyDirection(direction).value),
        )
        return StudyProgress.model_validate(dict(row)) if row else None

    @write_once
    def upsert_progress(self, progress: StudyProgress) -> None:
        self._execute(
            """
            INSERT INTO study_progress (
                user_id, concept_id, direction, phase, interval_days, ease_factor,
                due_at, lapses, review_count, last_review_at, last_review_day, mastered_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(user_id, concept_id, direction) DO UPDATE SET
                phase = excluded.phase,
                interval_days = excluded.interval_days,
                ease_factor = excluded.ease_factor,
                due_at = excluded.due_at,
                lapses = excluded.lapses,
                review_count = excluded.review_count,
                last_review_at = excluded.last_review_at,
                last_review_day = excluded.last_review_day,
                mastered_at = excluded.mastered_at
            """,
            (
                progress.user_id,
                progress.concept_id,
                progress.direction.value,
                progress.phase.value,
                progress.interval_days,
                progress.ease_factor,
                to_storage(progress.due_at),
                progress.lapses,
                progress.review_count,
                to_storage(progress.last_review_at),
                progress.last_review_day.isoformat() if progress.last_review_day else None,
                to_storage(progress.mastered_at),
            ),
        )

    @write_once
    def delete_progress(self, user_id: str, concept_id: int) -> None:
        self._execute(
            "DELETE FROM study_progress WHERE user_id = ? AND concept_id = ?",
            (user_id, concept_id),
        )

    @read_retry
    def due_progress(self, user_id: str, direction: StudyDirection, now: datetime) -> List[StudyProgress]:
        rows = self._fetchall(
            """
            SELECT * FROM study_progress
            WHERE user_id = ? AND direction = ? AND due_at <= ? AND phase != 'mastered'
            ORDER BY due_at ASC, concept_id ASC
            """,
            (user_id, StudyDirection(direction).value, to_storage(now)),
        )
        return [StudyProgress.model_validate(dict(row)) for row in rows]

    @read_retry
    def count_reviewed_on(self, user_id: str, direction: StudyDirection, day: date) -> int:
        row = self._fetchone(
            """
            SELECT COUNT(*) FROM study_progress
            WHERE user_id = ? AND direction = ? AND last_review_day = ?
            """,
            (user_id, StudyDirection(direction).value, day.isoformat()),
        )
        return int(row[0])

    # Daily ledger

    @read_retry
    def get_ledger_entry(self, user_id: str, day: date) -> Optional[DailyLedgerEntry]:
        row = self._fetchone(
            "SELECT * FROM daily_ledger WHERE user_id = ? AND date = ?",
            (user_id, day.isoformat()),
        )
        return DailyLedgerEntry.model_validate(dict(row)) if row else None

    @write_once
    def insert_ledger_entry_if_absent(self, entry: DailyLedgerEntry) -> bool:
        """Conditional insert keyed by (user, date). Returns True when a row was created."""
        cursor = self._execute(
            """
            INSERT OR IGNORE INTO daily_ledger (
                user_id, date, words_studied, correct_answers, total_answers,
                study_time_ms, streak_count, goal_achieved
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                entry.user_id,
                entry.date.isoformat(),
                entry.words_studied,
                entry.correct_answers,
                entry.total_answers,
                entry.study_time_ms,
                entry.streak_count,
                int(entry.goal_achieved),
            ),
        )
        return cursor.rowcount == 1

    @write_once
    def increment_ledger_entry(
        self,
        user_id: str,
        day: date,
        *,
        words_studied: int = 0,
        correct_answers: int = 0,
        total_answers: int = 0,
        study_time_ms: int = 0,
    ) -> None:
        self._execute(
            """
            UPDATE daily_ledger
            SET words_studied = words_studied + ?,
                correct_answers = correct_answers + ?,
                total_answers = total_answers + ?,
                study_time_ms = study_time_ms + ?
            WHERE user_id = ? AND date = ?
            """,
            (words_studied, correct_answers, total_answers, study_time_ms, user_id, day.isoformat()),
        )

    @write_once
    def set_goal_achieved(self, user_id: str, day: date, achieved: bool) -> None:
        self._execute(
            "UPDATE daily_ledger SET goal_achieved = ? WHERE user_id = ? AND date = ?",
            (int(achieved), user_id, day.isoformat()),
        )

    @read_retry
    def list_ledger_entries(self, user_id: str, start: date, end: date) -> List[DailyLedgerEntry]:
        rows = self._fetchall(
            """
            SELECT * FROM daily_ledger
            WHERE user_id = ? AND date >= ? AND date <= ?
            ORDER BY date ASC
            """,
            (user_id, start.isoformat(), end.isoformat()),
        )
        return [DailyLedgerEntry.model_validate(dict(row)) for row in rows]

    @read_retry
    def sum_words_studied(self, user_id: str) -> int:
        row = self._fetchone(
            "SELECT COALESCE(SUM(words_studied), 0) FROM daily_ledger WHERE user_id = ?",
            (user_id,),
        )
        return int(row[0])
