"""Daily activity ledger: streaks, daily goal and monthly discipline.

Ledger writes are best effort for the caller. A failed write is logged and
reported as ``None``; it is never retried, since replaying an additive
update would double count.
"""
from __future__ import annotations

import calendar
import logging
import math
from datetime import date, datetime, timedelta
from typing import Optional

from config import DailySettings
from db.store import Store
from models.ledger import DailyLedgerEntry
from models.projections import ChartPoint, DailyGoalProgress, MonthlyStats, ProgressSummary
from models.selection import SelectionStatus
from utils.clock import SystemClock, local_day
from utils.errors import StoreError
from utils.signals import daily_goal_completed, emit

logger = logging.getLogger(__name__)

CHART_DAYS = 7


def discipline_score(active_days: int, days_in_month: int) -> int:
    if days_in_month <= 0:
        return 0
    return math.floor(active_days / days_in_month * 100 + 0.5)


class DailyProgressAggregator:
    def __init__(self, store: Store, settings: DailySettings, clock=None):
        self.store = store
        self.settings = settings
        self.clock = clock or SystemClock()

    def record_app_open(self, user_id: str, now: Optional[datetime] = None) -> Optional[DailyLedgerEntry]:
        """Open today's ledger entry once; later calls the same day are no-ops."""
        now = now or self.clock.now()
        try:
            return self._open_day(user_id, local_day(now))
        except StoreError:
            logger.exception("Could not record app open for user %s", user_id)
            return None

    def record_review(
        self,
        user_id: str,
        was_correct: bool,
        elapsed_ms: int,
        now: Optional[datetime] = None,
    ) -> Optional[DailyLedgerEntry]:
        """Add one answered card to today's ledger and re-evaluate the daily goal."""
        now = now or self.clock.now()
        today = local_day(now)
        try:
            before = self._open_day(user_id, today)
            self.store.increment_ledger_entry(
                user_id,
                today,
                words_studied=1,
                correct_answers=1 if was_correct else 0,
                total_answers=1,
                study_time_ms=max(0, int(elapsed_ms)),
            )
            entry = self.store.get_ledger_entry(user_id, today)
            achieved = entry.words_studied >= self.settings.goal_words
            if achieved != entry.goal_achieved:
                self.store.set_goal_achieved(user_id, today, achieved)
                entry = entry.model_copy(update={"goal_achieved": achieved})
        except StoreError:
            logger.exception("Could not record review for user %s", user_id)
            return None

        if entry.goal_achieved and not before.goal_achieved:
            logger.info("User %s reached the daily goal of %d words", user_id, self.settings.goal_words)
            emit(
                daily_goal_completed,
                self,
                user_id=user_id,
                date=today,
                words_studied=entry.words_studied,
                goal=self.settings.goal_words,
            )
        return entry

    def today_entry(self, user_id: str, now: Optional[datetime] = None) -> Optional[DailyLedgerEntry]:
        """Today's entry with goal_achieved finalized against the current goal."""
        now = now or self.clock.now()
        today = local_day(now)
        entry = self.store.get_ledger_entry(user_id, today)
        if entry is None:
            return None
        achieved = entry.words_studied >= self.settings.goal_words
        if achieved != entry.goal_achieved:
            try:
                self.store.set_goal_achieved(user_id, today, achieved)
            except StoreError:
                logger.exception("Could not finalize goal for user %s on %s", user_id, today)
            entry = entry.model_copy(update={"goal_achieved": achieved})
        return entry

    def streak_days(self, user_id: str, now: Optional[datetime] = None) -> int:
        entry = self.store.get_ledger_entry(user_id, local_day(now or self.clock.now()))
        return entry.streak_count if entry else 0

    def monthly_stats(self, user_id: str, now: Optional[datetime] = None) -> MonthlyStats:
        now = now or self.clock.now()
        today = local_day(now)
        month_start = today.replace(day=1)
        days_in_month = calendar.monthrange(today.year, today.month)[1]
        month_entries = self.store.list_ledger_entries(user_id, month_start, today)
        active_days = len(month_entries)
        study_time_ms = sum(entry.study_time_ms for entry in month_entries)

        chart_start = today - timedelta(days=CHART_DAYS - 1)
        active = {entry.date for entry in self.store.list_ledger_entries(user_id, chart_start, today)}
        chart = []
        for offset in range(CHART_DAYS):
            day = chart_start + timedelta(days=offset)
            chart.append(ChartPoint(day=str(day.day), value=1.0 if day in active else 0.0))

        return MonthlyStats(
            active_days_this_month=active_days,
            days_in_month=days_in_month,
            discipline_score=discipline_score(active_days, days_in_month),
            study_time_minutes=study_time_ms // 60000,
            chart=chart,
        )

    def daily_goal_progress(self, user_id: str, now: Optional[datetime] = None) -> DailyGoalProgress:
        entry = self.today_entry(user_id, now)
        selected = self.store.count_selections(user_id, SelectionStatus.SELECTED)
        mastered = self.store.count_selections(user_id, SelectionStatus.MASTERED)
        return DailyGoalProgress(
            words_studied_today=entry.words_studied if entry else 0,
            daily_goal=self.settings.goal_words,
            goal_achieved=entry.goal_achieved if entry else False,
            total_deck_cards=selected + mastered,
            mastered_deck_cards=mastered,
            available_deck_cards=selected,
        )

    def summary(self, user_id: str, now: Optional[datetime] = None) -> ProgressSummary:
        now = now or self.clock.now()
        return ProgressSummary(
            streak_days=self.streak_days(user_id, now),
            daily_goal_progress=self.daily_goal_progress(user_id, now),
            monthly_stats=self.monthly_stats(user_id, now),
        )

    def total_words_studied(self, user_id: str) -> int:
        return self.store.sum_words_studied(user_id)

    def _open_day(self, user_id: str, today: date) -> DailyLedgerEntry:
        existing = self.store.get_ledger_entry(user_id, today)
        if existing is not None:
            return existing
        yesterday = self.store.get_ledger_entry(user_id, today - timedelta(days=1))
        streak = yesterday.streak_count + 1 if yesterday else 1
        created = self.store.insert_ledger_entry_if_absent(
            DailyLedgerEntry(user_id=user_id, date=today, streak_count=streak)
        )
        if created:
            logger.info("Opened %s for user %s, streak %d", today, user_id, streak)
        return self.store.get_ledger_entry(user_id, today)
